"""Collaborator contracts consumed by the session coordinator.

Implementations may be backed by any database. Every method is a suspension
point: callers re-check attempt status after awaiting one.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any, Protocol

from quiz_live.core.models import (
    Assignment,
    AssignmentStatus,
    Attempt,
    AttemptFilters,
    AttemptState,
    BankQuestion,
    LiveAttemptRow,
    QuestionId,
    Quiz,
    TimerOverride,
)


class AttemptStore(Protocol):
    async def get_attempt(self, attempt_id: int) -> Attempt | None: ...

    async def find_attempts(self, quiz_id: int, student_id: int) -> list[Attempt]: ...

    async def list_attempts_for_student(self, student_id: int) -> list[Attempt]: ...

    async def create_attempt(
        self,
        quiz_id: int,
        student_id: int,
        state: AttemptState,
        started_at: datetime,
    ) -> Attempt: ...

    async def apply_state(
        self,
        attempt_id: int,
        incoming: Mapping[str, Any] | None,
        synced_at: datetime,
    ) -> AttemptState | None:
        """Merge ``incoming`` into the stored state of an in-progress attempt.

        Read, merge and write happen as one step, so concurrent syncs each
        merge into the other's result. Implementations apply
        :func:`quiz_live.core.state_merge.merge_state`, which keeps the stored
        ``timer_override``. Returns the merged state, or ``None`` when the
        attempt is missing or no longer in progress.
        """
        ...

    async def set_timer_override(self, attempt_id: int, override: TimerOverride) -> bool: ...

    async def complete_attempt(self, attempt_id: int, score: float, finished_at: datetime) -> bool:
        """Mark the attempt completed, only if it is still in progress.

        Returns ``False`` when another caller completed it first.
        """
        ...

    async def delete_attempt(self, attempt_id: int) -> bool: ...

    async def get_assignment(self, quiz_id: int, student_id: int) -> Assignment | None: ...

    async def set_assignment_status(
        self,
        quiz_id: int,
        student_id: int,
        status: AssignmentStatus,
    ) -> bool: ...

    async def list_live_attempts(self, filters: AttemptFilters) -> list[LiveAttemptRow]:
        """In-progress attempts matching ``filters``, most recently started first."""
        ...


class QuestionBank(Protocol):
    async def get_quiz(self, quiz_id: int) -> Quiz | None: ...

    async def get_quiz_questions(self, quiz_id: int) -> list[BankQuestion]: ...

    async def fetch_answer_keys(
        self,
        question_ids: Iterable[QuestionId],
    ) -> dict[QuestionId, list[Any]]: ...


class StatisticsHook(Protocol):
    async def record_attempt(self, user_id: int, summary: dict[str, Any]) -> None: ...
