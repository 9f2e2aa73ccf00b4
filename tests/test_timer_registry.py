import asyncio

from quiz_live.core.models import LiveTimerSession
from quiz_live.core.services.timer_registry import TimerRegistry

from conftest import START


def _session(attempt_id=1, remaining=3):
    return LiveTimerSession(
        attempt_id=attempt_id,
        user_id=7,
        quiz_id=1,
        started_at=START,
        remaining_seconds=remaining,
        total_duration=remaining,
    )


def test_countdown_ticks_to_zero_then_expires_once():
    async def scenario():
        registry = TimerRegistry(tick_interval=0.01)
        ticks, expired = [], []
        done = asyncio.Event()

        async def on_expire(session):
            expired.append(session.attempt_id)
            done.set()

        registry.start(_session(), lambda s: ticks.append(s.remaining_seconds), on_expire)
        await asyncio.wait_for(done.wait(), timeout=2)
        await asyncio.sleep(0.05)
        return ticks, expired, registry.is_active(1)

    ticks, expired, active = asyncio.run(scenario())

    assert ticks == [2, 1, 0]
    assert expired == [1]
    assert active is False


def test_restarting_a_timer_cancels_the_previous_one():
    async def scenario():
        registry = TimerRegistry(tick_interval=0.01)
        expired = []

        async def on_expire(session):
            expired.append(session.remaining_seconds)

        first = registry.start(_session(remaining=100), lambda s: None, on_expire)
        second = registry.start(_session(remaining=2), lambda s: None, on_expire)
        await asyncio.gather(first, return_exceptions=True)
        await asyncio.wait_for(second, timeout=2)
        return first.cancelled(), expired, registry.active_attempt_ids()

    first_cancelled, expired, active = asyncio.run(scenario())

    assert first_cancelled
    assert expired == [0]
    assert active == []


def test_cancel_stops_without_expiry():
    async def scenario():
        registry = TimerRegistry(tick_interval=0.01)
        expired = []

        async def on_expire(session):
            expired.append(session.attempt_id)

        registry.start(_session(remaining=5), lambda s: None, on_expire)
        await asyncio.sleep(0.015)
        cancelled = registry.cancel(1)
        await asyncio.sleep(0.1)
        return cancelled, expired, registry.is_active(1)

    cancelled, expired, active = asyncio.run(scenario())

    assert cancelled is True
    assert expired == []
    assert active is False


def test_failing_tick_callback_removes_timer():
    async def scenario():
        registry = TimerRegistry(tick_interval=0.01)

        def on_tick(session):
            raise RuntimeError("socket gone")

        async def on_expire(session):
            raise AssertionError("should not expire")

        task = registry.start(_session(), on_tick, on_expire)
        await asyncio.wait_for(task, timeout=2)
        return registry.is_active(1)

    assert asyncio.run(scenario()) is False
