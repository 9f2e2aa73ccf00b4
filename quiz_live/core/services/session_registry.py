"""In-memory table of live timer sessions keyed by attempt id."""

from __future__ import annotations

from quiz_live.core.models import LiveTimerSession


class SessionRegistry:
    """Authoritative view of time left for attempts with a running timer.

    Entries live only as long as the process; after a restart remaining time
    is re-derived from the persisted attempt.
    """

    def __init__(self) -> None:
        self._sessions: dict[int, LiveTimerSession] = {}

    def put(self, session: LiveTimerSession) -> None:
        self._sessions[session.attempt_id] = session

    def get(self, attempt_id: int) -> LiveTimerSession | None:
        return self._sessions.get(attempt_id)

    def remove(self, attempt_id: int) -> LiveTimerSession | None:
        return self._sessions.pop(attempt_id, None)

    def clear(self) -> None:
        self._sessions.clear()

    def __contains__(self, attempt_id: object) -> bool:
        return attempt_id in self._sessions
