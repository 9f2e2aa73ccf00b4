import asyncio

from quiz_live.core.services.broadcaster import Broadcaster, Observer, attempt_scope


def test_scoped_events_arrive_in_publish_order():
    async def scenario():
        broadcaster = Broadcaster()
        student, other = Observer("student"), Observer("other")
        broadcaster.join(attempt_scope(1), student)
        broadcaster.join(attempt_scope(2), other)

        for remaining in (3, 2, 1):
            broadcaster.publish(attempt_scope(1), "timer_update", {"remaining_time": remaining})
        broadcaster.publish(attempt_scope(1), "quiz_submitted", {"attempt_id": 1})

        first = await student.next_message()
        return first, student.drain(), other.drain()

    first, rest, other = asyncio.run(scenario())

    assert first == {"event": "timer_update", "data": {"remaining_time": 3}}
    assert [m["event"] for m in rest] == ["timer_update", "timer_update", "quiz_submitted"]
    assert [m["data"].get("remaining_time") for m in rest[:2]] == [2, 1]
    assert other == []


def test_global_events_only_reach_registered_observers():
    async def scenario():
        broadcaster = Broadcaster()
        monitor, student = Observer("monitor"), Observer("student")
        broadcaster.register(monitor)
        broadcaster.join(attempt_scope(1), student)

        delivered = broadcaster.publish_global("admin_timer_reset", {"attempt_id": 1})
        return delivered, monitor.drain(), student.drain()

    delivered, monitor_messages, student_messages = asyncio.run(scenario())

    assert delivered == 1
    assert monitor_messages[0]["event"] == "admin_timer_reset"
    assert student_messages == []


def test_unregister_leaves_every_scope():
    broadcaster = Broadcaster()
    observer = Observer()
    broadcaster.register(observer)
    broadcaster.join(attempt_scope(1), observer)
    broadcaster.join(attempt_scope(2), observer)

    broadcaster.unregister(observer)

    assert broadcaster.observers(attempt_scope(1)) == []
    assert broadcaster.publish(attempt_scope(2), "timer_update", {}) == 0
    assert broadcaster.publish_global("attempt_completed", {}) == 0


def test_full_mailbox_marks_observer_overflowed():
    async def scenario():
        broadcaster = Broadcaster()
        stalled = Observer("stalled", maxsize=2)
        broadcaster.join(attempt_scope(1), stalled)
        for remaining in (3, 2, 1, 0):
            broadcaster.publish(attempt_scope(1), "timer_update", {"remaining_time": remaining})
        return stalled.overflowed, stalled.drain()

    overflowed, messages = asyncio.run(scenario())

    assert overflowed is True
    assert [m["data"]["remaining_time"] for m in messages] == [3, 2]
