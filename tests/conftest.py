"""Shared pytest fixtures for kubelens tests."""

from __future__ import annotations

import asyncio
import logging
import os
import shlex
import tempfile
from collections.abc import Generator, Sequence
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest
import typer
from typer.testing import CliRunner

from kubelens.cli.main import app
from kubelens.integrations.kubernetes.exceptions import (
    FetchFailed,
    KubernetesError,
    MutationFailed,
)
from kubelens.integrations.kubernetes.kinds import ResourceKind
from kubelens.integrations.kubernetes.models import Resource

# Fixed instant used by the fake clock and the resource factory
NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=UTC)


# =============================================================================
# Fakes
# =============================================================================


class FakeClock:
    """Manually advanced clock for snapshot and error-expiry tests."""

    def __init__(self, start: datetime = NOW) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class FakeKubectl:
    """In-memory stand-in for ``KubectlClient``.

    Fetches return whatever is in ``collections``. A kind listed in
    ``fetch_errors`` fails instead; a kind with an entry in ``gates``
    blocks until the event is set.
    """

    def __init__(self) -> None:
        self.collections: dict[ResourceKind, list[Resource]] = {}
        self.fetch_errors: dict[ResourceKind, KubernetesError] = {}
        self.delete_errors: dict[str, str] = {}
        self.gates: dict[ResourceKind, asyncio.Event] = {}
        self.fetch_calls: list[tuple[ResourceKind, str | None]] = []
        self.deleted: list[tuple[ResourceKind, str, str | None]] = []
        self.contexts_used: list[str] = []
        self.in_flight: dict[ResourceKind, int] = {}
        self.max_in_flight: dict[ResourceKind, int] = {}

    def command_line(self, args: Sequence[str]) -> str:
        return shlex.join(["kubectl", *args])

    async def fetch(self, kind: ResourceKind, namespace: str | None = None) -> list[Resource]:
        self.fetch_calls.append((kind, namespace))
        self.in_flight[kind] = self.in_flight.get(kind, 0) + 1
        self.max_in_flight[kind] = max(self.max_in_flight.get(kind, 0), self.in_flight[kind])
        try:
            gate = self.gates.get(kind)
            if gate is not None:
                await gate.wait()
            if kind in self.fetch_errors:
                raise self.fetch_errors[kind]
            return list(self.collections.get(kind, []))
        finally:
            self.in_flight[kind] -= 1

    async def delete(self, kind: ResourceKind, name: str, namespace: str | None = None) -> str:
        await asyncio.sleep(0)
        if name in self.delete_errors:
            raise MutationFailed(
                kind.value,
                name,
                self.delete_errors[name],
                command=self.command_line(["delete", kind.singular, name]),
                namespace=namespace,
            )
        self.deleted.append((kind, name, namespace))
        self.collections[kind] = [r for r in self.collections.get(kind, []) if r.name != name]
        return f'{kind.singular} "{name}" deleted'

    async def use_context(self, name: str) -> str:
        names = [r.name for r in self.collections.get(ResourceKind.CONTEXTS, [])]
        if name not in names:
            raise MutationFailed(
                ResourceKind.CONTEXTS.value,
                name,
                f'no context exists with the name: "{name}"',
                command=self.command_line(["config", "use-context", name]),
            )
        self.contexts_used.append(name)
        self.collections[ResourceKind.CONTEXTS] = [
            Resource.from_payload(
                ResourceKind.CONTEXTS, {**r.payload, "current": r.name == name}
            )
            for r in self.collections[ResourceKind.CONTEXTS]
        ]
        return f'Switched to context "{name}".'

    def fail_fetch(self, kind: ResourceKind, message: str, exit_code: int = 1) -> None:
        """Make fetches of ``kind`` fail like a non-zero kubectl exit."""
        self.fetch_errors[kind] = FetchFailed(
            kind.value,
            message,
            command=self.command_line(["get", kind.value, "-o", "json"]),
            exit_code=exit_code,
        )


class ResourceFactory:
    """Builds resources shaped like kubectl's JSON output."""

    created = "2024-05-01T10:00:00Z"

    def pod(
        self,
        name: str,
        phase: str = "Running",
        restarts: int = 0,
        namespace: str = "default",
        ready: bool = True,
    ) -> Resource:
        return Resource.from_payload(
            ResourceKind.PODS,
            {
                "metadata": {
                    "name": name,
                    "namespace": namespace,
                    "creationTimestamp": self.created,
                },
                "spec": {
                    "nodeName": "node-1",
                    "containers": [{"name": "app", "image": "nginx:1.25"}],
                },
                "status": {
                    "phase": phase,
                    "podIP": "10.0.0.5",
                    "containerStatuses": [
                        {
                            "name": "app",
                            "image": "nginx:1.25",
                            "ready": ready,
                            "restartCount": restarts,
                            "state": {"running": {}},
                        }
                    ],
                },
            },
        )

    def configmap(self, name: str, data: dict[str, str] | None = None) -> Resource:
        return Resource.from_payload(
            ResourceKind.CONFIGMAPS,
            {
                "metadata": {
                    "name": name,
                    "namespace": "default",
                    "creationTimestamp": self.created,
                },
                "data": data if data is not None else {"app.conf": "debug=true"},
            },
        )

    def secret(self, name: str, data: dict[str, str] | None = None) -> Resource:
        return Resource.from_payload(
            ResourceKind.SECRETS,
            {
                "metadata": {
                    "name": name,
                    "namespace": "default",
                    "creationTimestamp": self.created,
                },
                "type": "Opaque",
                "data": data if data is not None else {"password": "aHVudGVyMg=="},
            },
        )

    def service(self, name: str, port: int = 80) -> Resource:
        return Resource.from_payload(
            ResourceKind.SERVICES,
            {
                "metadata": {
                    "name": name,
                    "namespace": "default",
                    "creationTimestamp": self.created,
                },
                "spec": {
                    "type": "ClusterIP",
                    "clusterIP": "10.96.0.10",
                    "ports": [{"port": port, "protocol": "TCP", "targetPort": 8080}],
                    "selector": {"app": name},
                },
            },
        )

    def namespace(self, name: str, phase: str = "Active") -> Resource:
        return Resource.from_payload(
            ResourceKind.NAMESPACES,
            {
                "metadata": {"name": name, "creationTimestamp": self.created},
                "status": {"phase": phase},
            },
        )

    def context(
        self,
        name: str,
        current: bool = False,
        namespace: str | None = None,
    ) -> Resource:
        context: dict[str, Any] = {"cluster": f"{name}-cluster", "user": f"{name}-admin"}
        if namespace:
            context["namespace"] = namespace
        return Resource.from_payload(
            ResourceKind.CONTEXTS, {"name": name, "context": context, "current": current}
        )


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def temp_dir() -> Generator[Path]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_config_file(temp_dir: Path) -> Path:
    """Create a temporary config file."""
    config_path = temp_dir / "config.yaml"
    config_path.write_text(
        """
poll_interval: 2
error_display_seconds: 3
restart_warning_threshold: 3
namespace: staging
"""
    )
    return config_path


@pytest.fixture(autouse=True)
def reset_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset environment variables for each test."""
    # Clear any KUBELENS_ prefixed environment variables
    for key in list(os.environ.keys()):
        if key.startswith("KUBELENS_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def isolated_logging(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Generator[None]:
    """Keep log files out of the home directory and drop added handlers."""
    monkeypatch.setattr("kubelens.logging.config.LOG_DIR", tmp_path / "logs")
    monkeypatch.setattr("kubelens.logging.config.LOG_FILE", tmp_path / "logs" / "kubelens.log")
    root = logging.getLogger()
    original_handlers = list(root.handlers)
    yield
    for handler in root.handlers:
        if handler not in original_handlers:
            handler.close()
    root.handlers = original_handlers


@pytest.fixture
def capture_logs(caplog: pytest.LogCaptureFixture) -> pytest.LogCaptureFixture:
    """Fixture to capture log output."""
    caplog.set_level(logging.DEBUG)
    return caplog


@pytest.fixture
def cli_app() -> typer.Typer:
    """Return the CLI app for testing."""
    return app


@pytest.fixture
def clock() -> FakeClock:
    """Clock frozen at ``NOW`` until advanced."""
    return FakeClock()


@pytest.fixture
def kubectl() -> FakeKubectl:
    """Fake kubectl client with empty collections."""
    return FakeKubectl()


@pytest.fixture
def make() -> ResourceFactory:
    """Factory for kubectl-shaped resources."""
    return ResourceFactory()
