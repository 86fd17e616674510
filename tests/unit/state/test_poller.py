"""Unit tests for the poll coordinator."""

from __future__ import annotations

import asyncio
from typing import Any
from unittest.mock import AsyncMock, patch

import pytest

from kubelens.core.config import BrowserConfig
from kubelens.integrations.kubernetes.exceptions import CommandCancelled
from kubelens.integrations.kubernetes.kinds import ResourceKind
from kubelens.integrations.kubernetes.kubectl_client import KubectlClient
from kubelens.state.poller import PollCoordinator
from kubelens.state.snapshot import UNFETCHED, ApplicationState, Fetched

PODS = ResourceKind.PODS
CONFIGMAPS = ResourceKind.CONFIGMAPS


@pytest.fixture
def state(clock: Any) -> ApplicationState:
    return ApplicationState(BrowserConfig(), clock=clock)


def _coordinator(
    kubectl: Any,
    state: ApplicationState,
    kinds: tuple[ResourceKind, ...] = (PODS,),
    poll_interval: float = 3600,
) -> PollCoordinator:
    return PollCoordinator(kubectl, state, lambda: kinds, poll_interval=poll_interval)


class TestTick:
    """Tests for ticks and fetch results."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_tick_fetches_active_kinds(
        self, kubectl: Any, state: ApplicationState, make: Any
    ) -> None:
        """Each active kind is fetched and stored."""
        kubectl.collections[PODS] = [make.pod("web-1")]
        coordinator = _coordinator(kubectl, state, (PODS, CONFIGMAPS))

        assert set(coordinator.tick()) == {PODS, CONFIGMAPS}
        await coordinator.wait_idle()

        assert state.snapshot().names(PODS) == ["web-1"]
        assert isinstance(state.snapshot().collection(CONFIGMAPS), Fetched)
        assert coordinator.in_flight() == frozenset()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_fetch_uses_namespace_override(
        self, kubectl: Any, state: ApplicationState
    ) -> None:
        """The state's namespace is passed to every fetch."""
        state.namespace = "staging"
        coordinator = _coordinator(kubectl, state)
        coordinator.tick()
        await coordinator.wait_idle()
        assert kubectl.fetch_calls == [(PODS, "staging")]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_at_most_one_fetch_per_kind(
        self, kubectl: Any, state: ApplicationState
    ) -> None:
        """Ticks while a fetch is running do not start another one."""
        gate = asyncio.Event()
        kubectl.gates[PODS] = gate
        coordinator = _coordinator(kubectl, state)

        assert coordinator.tick() == [PODS]
        for _ in range(5):
            await asyncio.sleep(0)
            assert coordinator.tick() == []
        assert coordinator.in_flight() == frozenset({PODS})

        gate.set()
        await coordinator.wait_idle()
        assert len(kubectl.fetch_calls) == 1
        assert kubectl.max_in_flight[PODS] == 1

        assert coordinator.tick() == [PODS]
        await coordinator.wait_idle()
        assert len(kubectl.fetch_calls) == 2

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failure_records_error_and_keeps_collection(
        self, kubectl: Any, state: ApplicationState, make: Any
    ) -> None:
        """A failed fetch records the error but never drops fetched data."""
        kubectl.collections[PODS] = [make.pod("web-1")]
        coordinator = _coordinator(kubectl, state)
        coordinator.tick()
        await coordinator.wait_idle()

        kubectl.fail_fetch(PODS, "Unable to connect to the server")
        coordinator.tick()
        await coordinator.wait_idle()

        snapshot = state.snapshot()
        assert snapshot.names(PODS) == ["web-1"]
        assert snapshot.error is not None
        assert snapshot.error.message == "Unable to connect to the server"
        assert coordinator.in_flight() == frozenset()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failing_kind_does_not_stop_others(
        self, kubectl: Any, state: ApplicationState, make: Any, clock: Any
    ) -> None:
        """A configmaps failure is reported while pods keep updating."""
        kubectl.collections[PODS] = [make.pod("web-1")]
        kubectl.fail_fetch(CONFIGMAPS, "connection refused")
        coordinator = _coordinator(kubectl, state, (PODS, CONFIGMAPS))

        coordinator.tick()
        await coordinator.wait_idle()

        snapshot = state.snapshot()
        assert snapshot.error is not None
        assert snapshot.error.message == "connection refused"
        assert "get configmaps" in snapshot.error.command
        assert snapshot.error.timestamp == clock.now
        assert snapshot.collection(CONFIGMAPS) is UNFETCHED

        kubectl.collections[PODS] = [make.pod("web-1"), make.pod("web-2")]
        coordinator.tick()
        await coordinator.wait_idle()
        assert state.snapshot().names(PODS) == ["web-1", "web-2"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_cancelled_command_is_not_an_error(
        self, kubectl: Any, state: ApplicationState
    ) -> None:
        """A signal-killed kubectl is ignored."""
        kubectl.fetch_errors[PODS] = CommandCancelled("kubectl get pods -o json", 9)
        coordinator = _coordinator(kubectl, state)
        coordinator.tick()
        await coordinator.wait_idle()

        assert state.snapshot().error is None
        assert coordinator.in_flight() == frozenset()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_listener_failure_still_releases_slot(
        self, kubectl: Any, state: ApplicationState
    ) -> None:
        """A raising listener does not leave the kind stuck in flight."""
        coordinator = _coordinator(kubectl, state)
        calls: list[bool] = []

        def broken(refreshing: bool) -> None:
            calls.append(refreshing)
            raise RuntimeError("listener bug")

        coordinator.add_listener(broken)
        coordinator.tick()
        await coordinator.wait_idle()

        assert calls == [False]
        assert coordinator.in_flight() == frozenset()
        assert coordinator.tick() == [PODS]
        await coordinator.wait_idle()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_refresh_notifies_even_when_busy(
        self, kubectl: Any, state: ApplicationState
    ) -> None:
        """Refresh tells listeners right away, even if every kind is in flight."""
        gate = asyncio.Event()
        kubectl.gates[PODS] = gate
        coordinator = _coordinator(kubectl, state)
        calls: list[bool] = []
        coordinator.add_listener(calls.append)

        coordinator.tick()
        assert coordinator.refresh() == []
        assert calls == [True]

        gate.set()
        await coordinator.wait_idle()
        assert calls == [True, False]


class TestLifecycle:
    """Tests for start, stop, and reset."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_start_fetches_immediately_then_on_timer(
        self, kubectl: Any, state: ApplicationState
    ) -> None:
        """Starting ticks at once and then every poll interval."""
        coordinator = _coordinator(kubectl, state, poll_interval=0.01)
        coordinator.start()
        await asyncio.sleep(0)
        assert coordinator.running
        assert kubectl.fetch_calls == [(PODS, None)]

        await asyncio.sleep(0.1)
        coordinator.stop()

        assert len(kubectl.fetch_calls) >= 2
        assert not coordinator.running

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_start_twice_is_noop(self, kubectl: Any, state: ApplicationState) -> None:
        """A second start does not tick again."""
        coordinator = _coordinator(kubectl, state)
        coordinator.start()
        coordinator.start()
        await coordinator.wait_idle()
        coordinator.stop()
        assert len(kubectl.fetch_calls) == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_stop_cancels_in_flight(self, kubectl: Any, state: ApplicationState) -> None:
        """Stopping abandons running fetches without applying them."""
        kubectl.gates[PODS] = asyncio.Event()
        coordinator = _coordinator(kubectl, state)
        coordinator.start()
        await asyncio.sleep(0)

        coordinator.stop()
        await asyncio.sleep(0.01)

        assert coordinator.in_flight() == frozenset()
        assert kubectl.in_flight[PODS] == 0
        assert state.snapshot().collection(PODS) is UNFETCHED

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_reset_drops_in_flight_work(
        self, kubectl: Any, state: ApplicationState
    ) -> None:
        """Reset bumps the generation and frees every kind for a new fetch."""
        kubectl.gates[PODS] = asyncio.Event()
        coordinator = _coordinator(kubectl, state)
        coordinator.tick()
        await asyncio.sleep(0)

        coordinator.reset()

        assert coordinator.generation == 1
        assert coordinator.in_flight() == frozenset()
        del kubectl.gates[PODS]
        assert coordinator.tick() == [PODS]
        await coordinator.wait_idle()
        assert isinstance(state.snapshot().collection(PODS), Fetched)


class TestUnlaunchableKubectl:
    """Fetches whose kubectl process fails to start."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failure_is_recorded(self, state: ApplicationState) -> None:
        with patch("shutil.which", return_value="/usr/local/bin/kubectl"):
            client = KubectlClient()
        coordinator = _coordinator(client, state)
        changes: list[bool] = []
        coordinator.add_listener(changes.append)

        with patch(
            "asyncio.create_subprocess_exec",
            new_callable=AsyncMock,
            side_effect=PermissionError(13, "Permission denied"),
        ):
            coordinator.tick()
            await coordinator.wait_idle()

        snapshot = state.snapshot()
        assert snapshot.error is not None
        assert "Permission denied" in snapshot.error.message
        assert snapshot.error.command == "kubectl get pods -o json"
        assert snapshot.collection(PODS) is UNFETCHED
        assert coordinator.in_flight() == frozenset()
        assert changes == [False]
