"""Kubernetes integration custom exceptions."""

from __future__ import annotations


class KubernetesError(Exception):
    """Base exception for kubectl-backed operations.

    Attributes:
        message: Human-readable error message.
        resource_type: Kind of resource involved (e.g., "pods").
        resource_name: Name of the resource involved.
        namespace: Namespace of the resource (if applicable).
    """

    def __init__(
        self,
        message: str,
        resource_type: str | None = None,
        resource_name: str | None = None,
        namespace: str | None = None,
    ) -> None:
        """Initialize KubernetesError.

        Args:
            message: Human-readable error message.
            resource_type: Kind of resource involved.
            resource_name: Name of the resource involved.
            namespace: Namespace of the resource.
        """
        super().__init__(message)
        self.message = message
        self.resource_type = resource_type
        self.resource_name = resource_name
        self.namespace = namespace

    def __str__(self) -> str:
        """Return string representation of the error."""
        parts = [self.message]
        if self.resource_type and self.resource_name:
            loc = f"[{self.resource_type}/{self.resource_name}"
            if self.namespace:
                loc += f" in {self.namespace}"
            loc += "]"
            parts.append(loc)
        return " ".join(parts)


class KubectlNotFoundError(KubernetesError):
    """Raised when the kubectl binary is not found."""

    def __init__(self, binary: str = "kubectl") -> None:
        super().__init__(
            message=(
                f"{binary} binary not found. "
                "Install from: https://kubernetes.io/docs/tasks/tools/"
            ),
        )


class CommandCancelled(KubernetesError):
    """Raised when kubectl exits because of a signal.

    A signal exit means the process was killed on purpose (view teardown,
    namespace switch), so callers must not surface it as an error.
    """

    def __init__(self, command: str, signal_number: int) -> None:
        super().__init__(message=f"Command cancelled by signal {signal_number}: {command}")
        self.command = command
        self.signal_number = signal_number


class FetchFailed(KubernetesError):
    """Raised when fetching a resource collection fails.

    Attributes:
        kind: Resource kind value that was being fetched.
        command: The full command line that failed.
        exit_code: Process exit code, or None for timeouts and parse errors.
    """

    def __init__(
        self,
        kind: str,
        message: str,
        command: str = "",
        exit_code: int | None = None,
    ) -> None:
        super().__init__(message=message, resource_type=kind)
        self.kind = kind
        self.command = command
        self.exit_code = exit_code


class MutationFailed(KubernetesError):
    """Raised when a delete request is rejected or fails."""

    def __init__(
        self,
        kind: str,
        name: str,
        message: str,
        command: str = "",
        namespace: str | None = None,
    ) -> None:
        super().__init__(
            message=message,
            resource_type=kind,
            resource_name=name,
            namespace=namespace,
        )
        self.kind = kind
        self.name = name
        self.command = command


class UnknownResource(KubernetesError):
    """Raised when a resource looked up by name is not in the current snapshot."""

    def __init__(self, kind: str, name: str, namespace: str | None = None) -> None:
        message = f"{kind} '{name}' not found"
        if namespace:
            message += f" in namespace '{namespace}'"
        super().__init__(
            message=message,
            resource_type=kind,
            resource_name=name,
            namespace=namespace,
        )
        self.kind = kind
        self.name = name

    def __str__(self) -> str:
        """Return the not-found message without the location suffix."""
        return self.message
