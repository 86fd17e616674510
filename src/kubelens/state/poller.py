"""Periodic fetching of the kinds open views need.

The coordinator keeps at most one fetch per kind in flight. A tick
starts a fetch for every active kind that has none running; kinds
already in flight are skipped, never queued, so a slow kubectl can
not pile up processes.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable

import structlog

from kubelens.integrations.kubernetes.exceptions import CommandCancelled, FetchFailed
from kubelens.integrations.kubernetes.kinds import ResourceKind
from kubelens.integrations.kubernetes.kubectl_client import KubectlClient
from kubelens.state.snapshot import ApplicationState

logger = structlog.get_logger()

Listener = Callable[[bool], None]


class PollCoordinator:
    """Runs fetches on a timer and feeds their results into the state.

    Args:
        client: kubectl client used for fetches.
        state: Application state receiving results and errors.
        active_kinds: Returns the kinds to fetch on each tick.
        poll_interval: Seconds between ticks.
    """

    def __init__(
        self,
        client: KubectlClient,
        state: ApplicationState,
        active_kinds: Callable[[], Iterable[ResourceKind]],
        poll_interval: float = 5.0,
    ) -> None:
        self._client = client
        self._state = state
        self._active_kinds = active_kinds
        self._poll_interval = poll_interval
        self._in_flight: dict[ResourceKind, asyncio.Task[None]] = {}
        self._listeners: list[Listener] = []
        self._timer: asyncio.Task[None] | None = None
        self._generation = 0

    @property
    def running(self) -> bool:
        return self._timer is not None

    @property
    def generation(self) -> int:
        return self._generation

    def in_flight(self) -> frozenset[ResourceKind]:
        """Kinds with a fetch currently running."""
        return frozenset(self._in_flight)

    def add_listener(self, listener: Listener) -> None:
        """Call ``listener(refreshing)`` after every state change."""
        self._listeners.append(listener)

    # -----------------------------------------------------------------------
    # Lifecycle
    # -----------------------------------------------------------------------

    def start(self) -> None:
        """Tick now, then every ``poll_interval`` seconds until stopped."""
        if self._timer is not None:
            return
        logger.debug("poller_started", interval=self._poll_interval)
        self.tick()
        self._timer = asyncio.get_running_loop().create_task(self._run_timer())

    async def _run_timer(self) -> None:
        while True:
            await asyncio.sleep(self._poll_interval)
            self.tick()

    def stop(self) -> None:
        """Cancel the timer and every in-flight fetch."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._cancel_in_flight()
        logger.debug("poller_stopped")

    def reset(self) -> None:
        """Drop in-flight work after a namespace or context switch.

        Fetches that complete anyway belong to an older generation and
        their results are discarded.
        """
        self._generation += 1
        self._cancel_in_flight()
        logger.debug("poller_reset", generation=self._generation)

    def _cancel_in_flight(self) -> None:
        for task in self._in_flight.values():
            task.cancel()
        self._in_flight.clear()

    async def wait_idle(self) -> None:
        """Wait until the fetches running right now have finished."""
        tasks = list(self._in_flight.values())
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # -----------------------------------------------------------------------
    # Ticks
    # -----------------------------------------------------------------------

    def tick(self) -> list[ResourceKind]:
        """Start a fetch for each active kind that is not already in flight.

        Returns:
            The kinds a fetch was started for.
        """
        loop = asyncio.get_running_loop()
        started: list[ResourceKind] = []
        for kind in self._active_kinds():
            if kind in self._in_flight:
                continue
            self._in_flight[kind] = loop.create_task(
                self._fetch(kind, self._generation), name=f"fetch-{kind.value}"
            )
            started.append(kind)
        if started:
            logger.debug("fetches_started", kinds=[k.value for k in started])
        return started

    def refresh(self) -> list[ResourceKind]:
        """Tick now and tell listeners a refresh is under way."""
        started = self.tick()
        self._notify(refreshing=True)
        return started

    async def _fetch(self, kind: ResourceKind, generation: int) -> None:
        task = asyncio.current_task()
        changed = False
        try:
            items = await self._client.fetch(kind, self._state.namespace)
        except FetchFailed as e:
            if generation == self._generation:
                logger.warning("fetch_failed", kind=kind.value, error=e.message, command=e.command)
                self._state.record_error(e.message, e.command)
                changed = True
        except CommandCancelled:
            logger.debug("fetch_cancelled", kind=kind.value)
        else:
            if generation == self._generation:
                self._state.apply_fetch(kind, items)
                changed = True
            else:
                logger.debug("stale_fetch_dropped", kind=kind.value, generation=generation)
        finally:
            if self._in_flight.get(kind) is task:
                del self._in_flight[kind]

        if changed:
            self._notify(refreshing=False)

    def _notify(self, refreshing: bool) -> None:
        for listener in list(self._listeners):
            try:
                listener(refreshing)
            except Exception as e:
                logger.warning("poll_listener_error", error=str(e))
