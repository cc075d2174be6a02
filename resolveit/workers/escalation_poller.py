"""Worker that keeps the escalation tracker fresh on a fixed interval."""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from typing import Awaitable, Callable, Optional, Protocol

from resolveit.domain.escalation.policy import can_monitor_escalations
from resolveit.domain.identity.session import Session
from resolveit.obs import metrics as obs_metrics
from resolveit.settings import settings

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class RefreshableTracker(Protocol):
    async def refresh(self) -> bool:
        ...

    def close(self) -> None:
        ...


class EscalationPoller:
    """Refreshes immediately on start, then once per interval until stopped.

    A failing refresh is logged and the loop carries on with the next
    tick. Manual refreshes go through :meth:`refresh_now` and never start
    a second loop.
    """

    def __init__(
        self,
        tracker: RefreshableTracker,
        *,
        interval: Optional[float] = None,
        sleep: Sleep = asyncio.sleep,
        owns_tracker: bool = True,
        name: str = "escalation-poller",
    ) -> None:
        self.tracker = tracker
        self.interval = max(0.0, float(interval if interval is not None else settings.escalation_poll_interval_seconds))
        self.name = name
        self._sleep = sleep
        self._owns_tracker = owns_tracker
        self._task: Optional[asyncio.Task] = None
        self._tracker_closed = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        if self._task is not None and not self._task.done():
            return self._task
        if self._tracker_closed:
            raise RuntimeError("escalation poller was stopped and its tracker closed")
        self._task = asyncio.create_task(self._run(), name=self.name)
        logger.debug("escalation poller started", extra={"interval": self.interval})
        return self._task

    async def refresh_now(self) -> bool:
        return await self._refresh_safely()

    async def stop(self) -> None:
        task = self._task
        self._task = None
        if self._owns_tracker:
            self.tracker.close()
            self._tracker_closed = True
        if task is None:
            return
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task
        logger.debug("escalation poller stopped")

    async def _run(self) -> None:
        await self._refresh_safely()
        while True:
            await self._sleep(self.interval)
            obs_metrics.ESCALATION_POLL_TICKS.inc()
            await self._refresh_safely()

    async def _refresh_safely(self) -> bool:
        try:
            return await self.tracker.refresh()
        except asyncio.CancelledError:
            raise
        except Exception:  # noqa: BLE001 - the next tick must still fire
            logger.exception("escalation refresh raised")
            return False


def spawn_escalation_poller(
    tracker: RefreshableTracker,
    session: Session,
    *,
    interval: Optional[float] = None,
    sleep: Sleep = asyncio.sleep,
) -> Optional[EscalationPoller]:
    """Start a poller when ``session`` may read the requiring-escalation list."""

    if not can_monitor_escalations(session.role):
        logger.info("skipping escalation poller for non-admin session")
        return None
    poller = EscalationPoller(tracker, interval=interval, sleep=sleep)
    poller.start()
    return poller


__all__ = ["EscalationPoller", "RefreshableTracker", "spawn_escalation_poller"]
