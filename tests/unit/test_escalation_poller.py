from __future__ import annotations

import asyncio

import pytest

from resolveit.domain.complaints.models import Role
from resolveit.workers.escalation_poller import EscalationPoller, spawn_escalation_poller

from tests.conftest import make_session


class FakeClock:
	"""Sleep replacement whose wake-ups are released by the test."""

	def __init__(self) -> None:
		self.slept: list[float] = []
		self._waiters: list[asyncio.Future] = []

	async def sleep(self, seconds: float) -> None:
		self.slept.append(seconds)
		waiter = asyncio.get_running_loop().create_future()
		self._waiters.append(waiter)
		await waiter

	async def advance(self) -> None:
		while self._waiters:
			waiter = self._waiters.pop(0)
			if not waiter.done():
				waiter.set_result(None)
		await _settle()


class StubTracker:
	def __init__(self, *, fail: bool = False) -> None:
		self.refreshes = 0
		self.closed = False
		self.fail = fail

	async def refresh(self) -> bool:
		self.refreshes += 1
		if self.fail:
			raise RuntimeError("backend exploded")
		return True

	def close(self) -> None:
		self.closed = True


async def _settle() -> None:
	for _ in range(5):
		await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_refreshes_on_start_then_once_per_interval() -> None:
	clock = FakeClock()
	tracker = StubTracker()
	poller = EscalationPoller(tracker, interval=300, sleep=clock.sleep)

	poller.start()
	await _settle()
	assert tracker.refreshes == 1
	assert clock.slept == [300]

	await clock.advance()
	assert tracker.refreshes == 2
	await clock.advance()
	assert tracker.refreshes == 3
	assert clock.slept == [300, 300, 300]

	await poller.stop()


@pytest.mark.asyncio
async def test_stop_cancels_loop_and_closes_tracker() -> None:
	clock = FakeClock()
	tracker = StubTracker()
	poller = EscalationPoller(tracker, interval=60, sleep=clock.sleep)
	task = poller.start()
	await _settle()

	await poller.stop()
	await clock.advance()

	assert task.done()
	assert not poller.running
	assert tracker.closed
	assert tracker.refreshes == 1


@pytest.mark.asyncio
async def test_restart_after_stop_is_refused() -> None:
	tracker = StubTracker()
	poller = EscalationPoller(tracker, interval=60, sleep=FakeClock().sleep)
	poller.start()
	await _settle()
	await poller.stop()

	with pytest.raises(RuntimeError):
		poller.start()
	assert not poller.running
	assert tracker.refreshes == 1


@pytest.mark.asyncio
async def test_stop_leaves_shared_tracker_open() -> None:
	clock = FakeClock()
	tracker = StubTracker()
	poller = EscalationPoller(tracker, interval=60, sleep=clock.sleep, owns_tracker=False)
	poller.start()
	await _settle()

	await poller.stop()

	assert not tracker.closed
	poller.start()
	await _settle()
	assert poller.running
	assert tracker.refreshes == 2
	await poller.stop()


@pytest.mark.asyncio
async def test_failing_refresh_does_not_kill_the_loop() -> None:
	clock = FakeClock()
	tracker = StubTracker(fail=True)
	poller = EscalationPoller(tracker, interval=10, sleep=clock.sleep)
	poller.start()
	await _settle()

	await clock.advance()
	await clock.advance()

	assert tracker.refreshes == 3
	assert poller.running
	await poller.stop()


@pytest.mark.asyncio
async def test_start_is_idempotent() -> None:
	clock = FakeClock()
	tracker = StubTracker()
	poller = EscalationPoller(tracker, interval=10, sleep=clock.sleep)

	first = poller.start()
	second = poller.start()
	await _settle()

	assert first is second
	assert tracker.refreshes == 1
	assert len(clock.slept) == 1
	await poller.stop()


@pytest.mark.asyncio
async def test_manual_refresh_does_not_start_a_loop() -> None:
	tracker = StubTracker()
	poller = EscalationPoller(tracker, interval=10, sleep=FakeClock().sleep)

	assert await poller.refresh_now() is True
	assert not poller.running
	assert tracker.refreshes == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("role", [Role.SENIOR_EMPLOYEE, Role.EMPLOYEE, Role.USER, None])
async def test_spawn_declines_non_admin_sessions(role) -> None:
	tracker = StubTracker()

	poller = spawn_escalation_poller(tracker, make_session(role), interval=10, sleep=FakeClock().sleep)
	await _settle()

	assert poller is None
	assert tracker.refreshes == 0


@pytest.mark.asyncio
async def test_spawn_starts_for_admin() -> None:
	tracker = StubTracker()

	poller = spawn_escalation_poller(tracker, make_session(Role.ADMIN), interval=10, sleep=FakeClock().sleep)
	await _settle()

	assert poller is not None and poller.running
	assert tracker.refreshes == 1
	await poller.stop()
