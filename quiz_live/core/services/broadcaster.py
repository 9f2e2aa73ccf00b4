"""Fan-out of session events to connected observers.

Every connection owns one :class:`Observer`. Events for one attempt are
published to that attempt's scope; administrative events go to every
registered observer. Joining a scope does not register an observer for
administrative events. Delivery is a non-blocking enqueue, so observers receive
events in exactly the order they were published.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
import logging
from typing import Any
from uuid import uuid4

from quiz_live.constants.session_constants import OBSERVER_QUEUE_LIMIT

logger = logging.getLogger(__name__)

Message = dict[str, Any]


def attempt_scope(attempt_id: int) -> str:
    return f"attempt:{attempt_id}"


class Observer:
    """FIFO mailbox for one connection.

    The mailbox holds at most ``maxsize`` undelivered messages. Once it is
    full the observer is marked ``overflowed`` and drops every later event;
    the owning connection is expected to close.
    """

    def __init__(self, name: str | None = None, maxsize: int = OBSERVER_QUEUE_LIMIT) -> None:
        self.name = name or uuid4().hex
        self.overflowed = False
        self._queue: asyncio.Queue[Message] = asyncio.Queue(maxsize=maxsize)

    def deliver(self, event: str, payload: Any) -> None:
        if self.overflowed:
            return
        try:
            self._queue.put_nowait({"event": event, "data": payload})
        except asyncio.QueueFull:
            self.overflowed = True
            logger.warning("Observer %s fell behind; dropping its events", self.name)

    async def next_message(self) -> Message:
        return await self._queue.get()

    def drain(self) -> list[Message]:
        """Return every queued message without waiting."""
        messages: list[Message] = []
        while True:
            try:
                messages.append(self._queue.get_nowait())
            except asyncio.QueueEmpty:
                return messages

    def __repr__(self) -> str:
        return f"Observer({self.name!r})"


class Broadcaster:
    def __init__(self) -> None:
        self._observers: dict[str, Observer] = {}
        self._scopes: defaultdict[str, dict[str, Observer]] = defaultdict(dict)

    def register(self, observer: Observer) -> None:
        self._observers[observer.name] = observer

    def unregister(self, observer: Observer) -> None:
        self._observers.pop(observer.name, None)
        for scope in list(self._scopes):
            self.leave(scope, observer)

    def join(self, scope: str, observer: Observer) -> None:
        self._scopes[scope][observer.name] = observer

    def leave(self, scope: str, observer: Observer) -> None:
        members = self._scopes.get(scope)
        if members is None:
            return
        members.pop(observer.name, None)
        if not members:
            del self._scopes[scope]

    def observers(self, scope: str) -> list[Observer]:
        return list(self._scopes.get(scope, {}).values())

    def publish(self, scope: str, event: str, payload: Any) -> int:
        members = self.observers(scope)
        for observer in members:
            observer.deliver(event, payload)
        logger.debug("Published %s to %s (%d observers)", event, scope, len(members))
        return len(members)

    def publish_global(self, event: str, payload: Any) -> int:
        members = list(self._observers.values())
        for observer in members:
            observer.deliver(event, payload)
        return len(members)
