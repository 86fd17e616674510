"""kubectl CLI wrapper for fetching and deleting resources.

Wraps the kubectl binary via asyncio subprocesses so that fetches run
out-of-line while the event loop keeps drawing. Every call reports back
as an ordinary awaitable completion on the loop that issued it.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import shlex
import shutil
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict

from kubelens.integrations.kubernetes.exceptions import (
    CommandCancelled,
    FetchFailed,
    KubectlNotFoundError,
    KubernetesError,
    MutationFailed,
)
from kubelens.integrations.kubernetes.kinds import ResourceKind
from kubelens.integrations.kubernetes.models.base import Resource

logger = structlog.get_logger()

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

KUBECTL_TIMEOUT_SECONDS = 60.0


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class KubectlResult(BaseModel):
    """Outcome of one kubectl invocation."""

    model_config = ConfigDict(frozen=True)

    returncode: int
    stdout: str = ""
    stderr: str = ""


class KubectlInvocationError(KubernetesError):
    """kubectl did not run to completion: it could not start or timed out."""


class KubectlLaunchError(KubectlInvocationError):
    """Raised when the kubectl process cannot be started."""

    def __init__(self, command: str, error: OSError) -> None:
        super().__init__(message=f"Could not run {command}: {error.strerror or error}")
        self.command = command


class KubectlTimeoutError(KubectlInvocationError):
    """Raised when a kubectl command exceeds its timeout."""

    def __init__(self, command: str, timeout: float) -> None:
        super().__init__(message=f"kubectl timed out after {timeout:g}s: {command}")
        self.command = command
        self.timeout = timeout


def parse_collection(kind: ResourceKind, doc: dict[str, Any]) -> list[Resource]:
    """Turn a kubectl JSON document into resources, in server order.

    ``kubectl config view`` returns a kubeconfig rather than a list, so
    contexts are taken from its ``contexts`` entry and flagged with
    whether they are the current one.
    """
    if kind is ResourceKind.CONTEXTS:
        current = doc.get("current-context")
        return [
            Resource.from_payload(kind, {**ctx, "current": ctx.get("name") == current})
            for ctx in doc.get("contexts") or []
        ]
    return [Resource.from_payload(kind, item) for item in doc.get("items") or []]


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class KubectlClient:
    """Client for interacting with the kubectl CLI.

    Wraps kubectl execution and provides typed results. Cancelling a
    coroutine of this client kills the child process immediately.
    """

    def __init__(
        self,
        binary_path: str | None = None,
        *,
        flags: Sequence[str] = (),
        timeout: float = KUBECTL_TIMEOUT_SECONDS,
    ) -> None:
        """Initialize kubectl client.

        Args:
            binary_path: Optional explicit path to kubectl.
                If None, searches PATH.
            flags: Extra global flags passed to every command
                (e.g. ``--context=dev``).
            timeout: Per-command timeout in seconds.

        Raises:
            KubectlNotFoundError: If binary not found.
        """
        self._binary = self._find_binary(binary_path)
        self._flags = list(flags)
        self._timeout = timeout
        self._log = logger.bind(binary=self._binary)
        self._log.debug("kubectl_client_initialized")

    @staticmethod
    def _find_binary(binary_path: str | None) -> str:
        """Locate the kubectl binary.

        Args:
            binary_path: Explicit path, a command name, or None to search PATH.

        Returns:
            Path to the kubectl binary.

        Raises:
            KubectlNotFoundError: If not found.
        """
        if binary_path:
            path = Path(binary_path).expanduser()
            if path.exists():
                return str(path.resolve())
            found = shutil.which(binary_path)
            if not found:
                raise KubectlNotFoundError(binary_path)
            return found

        found = shutil.which("kubectl")
        if not found:
            raise KubectlNotFoundError()
        return found

    def command_line(self, args: Sequence[str]) -> str:
        """Printable command line for ``args``, as recorded in errors."""
        return shlex.join([Path(self._binary).name, *args])

    def _build_args(self, args: Sequence[str], namespace: str | None) -> list[str]:
        full = [*self._flags, *args]
        if namespace:
            full.extend(["--namespace", namespace])
        return full

    async def _run(self, args: Sequence[str]) -> KubectlResult:
        """Run a kubectl command and capture its output.

        Args:
            args: Command arguments (without the ``kubectl`` prefix).

        Returns:
            The exit code and decoded output streams.

        Raises:
            KubectlLaunchError: If the process cannot be started.
            KubectlTimeoutError: If the command exceeds the timeout.
        """
        self._log.debug("running_kubectl_command", args=list(args))
        try:
            proc = await asyncio.create_subprocess_exec(
                self._binary,
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            self._log.warning("kubectl_launch_failed", args=list(args), error=str(e))
            raise KubectlLaunchError(self.command_line(args), e) from e
        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self._timeout)
        except asyncio.CancelledError:
            _kill(proc)
            raise
        except asyncio.TimeoutError as e:
            _kill(proc)
            raise KubectlTimeoutError(self.command_line(args), self._timeout) from e

        return KubectlResult(
            returncode=proc.returncode if proc.returncode is not None else -1,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )

    # -----------------------------------------------------------------------
    # Fetch
    # -----------------------------------------------------------------------

    async def fetch(self, kind: ResourceKind, namespace: str | None = None) -> list[Resource]:
        """Fetch every resource of ``kind``.

        Args:
            kind: Resource kind to fetch.
            namespace: Namespace override; ignored for cluster-scoped kinds.

        Returns:
            Resources in the order the server returned them.

        Raises:
            FetchFailed: On launch failure, non-zero exit, timeout, or unparseable output.
            CommandCancelled: If kubectl was killed by a signal.
        """
        args = self._build_args(kind.get_args, namespace if kind.namespaced else None)
        command = self.command_line(args)

        try:
            result = await self._run(args)
        except KubectlInvocationError as e:
            raise FetchFailed(kind.value, e.message, command=command) from e

        if result.returncode < 0:
            raise CommandCancelled(command, -result.returncode)
        if result.returncode != 0:
            raise FetchFailed(
                kind.value,
                result.stderr.strip() or f"exit code {result.returncode}",
                command=command,
                exit_code=result.returncode,
            )

        try:
            doc = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise FetchFailed(
                kind.value, f"Invalid JSON from kubectl: {e}", command=command
            ) from e

        resources = parse_collection(kind, doc)
        self._log.debug("kubectl_fetch_success", kind=kind.value, count=len(resources))
        return resources

    # -----------------------------------------------------------------------
    # Mutations
    # -----------------------------------------------------------------------

    async def delete(
        self,
        kind: ResourceKind,
        name: str,
        namespace: str | None = None,
    ) -> str:
        """Delete one resource.

        Args:
            kind: Resource kind.
            name: Resource name.
            namespace: Namespace override; ignored for cluster-scoped kinds.

        Returns:
            kubectl's stdout (e.g. ``pod "web-1" deleted``).

        Raises:
            MutationFailed: On launch failure, non-zero exit, or timeout.
            CommandCancelled: If kubectl was killed by a signal.
        """
        ns = namespace if kind.namespaced else None
        args = self._build_args(["delete", kind.singular, name], ns)
        command = self.command_line(args)
        result = await self._mutate(kind, name, args, ns)
        self._log.info("kubectl_delete_success", kind=kind.value, name=name, command=command)
        return result.stdout.strip()

    async def use_context(self, name: str) -> str:
        """Switch kubectl's current context.

        Raises:
            MutationFailed: If kubectl rejects the context.
        """
        args = self._build_args(["config", "use-context", name], None)
        result = await self._mutate(ResourceKind.CONTEXTS, name, args, None)
        self._log.info("kubectl_use_context_success", context=name)
        return result.stdout.strip()

    async def _mutate(
        self,
        kind: ResourceKind,
        name: str,
        args: list[str],
        namespace: str | None,
    ) -> KubectlResult:
        command = self.command_line(args)
        try:
            result = await self._run(args)
        except KubectlInvocationError as e:
            raise MutationFailed(
                kind.value, name, e.message, command=command, namespace=namespace
            ) from e

        if result.returncode < 0:
            raise CommandCancelled(command, -result.returncode)
        if result.returncode != 0:
            raise MutationFailed(
                kind.value,
                name,
                result.stderr.strip() or f"exit code {result.returncode}",
                command=command,
                namespace=namespace,
            )
        return result


def _kill(proc: asyncio.subprocess.Process) -> None:
    """Kill without waiting; the loop's child watcher reaps the process."""
    with contextlib.suppress(ProcessLookupError):
        proc.kill()
