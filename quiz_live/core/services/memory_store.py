"""In-memory attempt store and question bank.

Records are copied on the way in and out so callers cannot mutate stored
state without going through the store, as with a real database.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Mapping
import copy
from datetime import datetime
from typing import Any

from quiz_live.core.models import (
    Assignment,
    AssignmentStatus,
    Attempt,
    AttemptFilters,
    AttemptState,
    AttemptStatus,
    BankQuestion,
    LiveAttemptRow,
    QuestionId,
    Quiz,
    StudentProfile,
    TimerOverride,
)
from quiz_live.core.state_merge import merge_state


class InMemoryStore:
    """Implements both :class:`AttemptStore` and :class:`QuestionBank`."""

    def __init__(self, latency: float = 0.0) -> None:
        self._latency = latency
        self._quizzes: dict[int, Quiz] = {}
        self._quiz_question_ids: dict[int, list[QuestionId]] = {}
        self._questions: dict[QuestionId, BankQuestion] = {}
        self._students: dict[int, StudentProfile] = {}
        self._assignments: dict[tuple[int, int], Assignment] = {}
        self._attempts: dict[int, Attempt] = {}
        self._attempt_counter: int = 0

    # --- Setup ---

    def add_quiz(self, quiz: Quiz, questions: Iterable[BankQuestion] = ()) -> None:
        self._quizzes[quiz.id] = copy.deepcopy(quiz)
        ordered_ids: list[QuestionId] = []
        for question in questions:
            self._questions[question.id] = copy.deepcopy(question)
            ordered_ids.append(question.id)
        self._quiz_question_ids[quiz.id] = ordered_ids

    def add_student(self, student: StudentProfile) -> None:
        self._students[student.id] = copy.deepcopy(student)

    def assign(self, quiz_id: int, student_id: int, shuffle_questions: bool = False) -> Assignment:
        if quiz_id not in self._quizzes:
            raise ValueError(f"Unknown quiz {quiz_id}")
        assignment = Assignment(
            quiz_id=quiz_id,
            student_id=student_id,
            shuffle_questions=shuffle_questions,
        )
        self._assignments[(quiz_id, student_id)] = assignment
        return copy.deepcopy(assignment)

    def put_attempt(self, attempt: Attempt) -> None:
        """Insert a fully formed attempt, e.g. one restored from a backup."""
        self._attempts[attempt.id] = copy.deepcopy(attempt)
        self._attempt_counter = max(self._attempt_counter, attempt.id)

    # --- QuestionBank ---

    async def get_quiz(self, quiz_id: int) -> Quiz | None:
        await self._pause()
        return copy.deepcopy(self._quizzes.get(quiz_id))

    async def get_quiz_questions(self, quiz_id: int) -> list[BankQuestion]:
        await self._pause()
        return [
            copy.deepcopy(self._questions[question_id])
            for question_id in self._quiz_question_ids.get(quiz_id, [])
            if question_id in self._questions
        ]

    async def fetch_answer_keys(
        self,
        question_ids: Iterable[QuestionId],
    ) -> dict[QuestionId, list[Any]]:
        await self._pause()
        return {
            question_id: list(self._questions[question_id].correct_answers)
            for question_id in question_ids
            if question_id in self._questions
        }

    # --- AttemptStore ---

    async def get_attempt(self, attempt_id: int) -> Attempt | None:
        await self._pause()
        return copy.deepcopy(self._attempts.get(attempt_id))

    async def find_attempts(self, quiz_id: int, student_id: int) -> list[Attempt]:
        await self._pause()
        return [
            copy.deepcopy(attempt)
            for attempt in self._attempts.values()
            if attempt.quiz_id == quiz_id and attempt.student_id == student_id
        ]

    async def list_attempts_for_student(self, student_id: int) -> list[Attempt]:
        await self._pause()
        attempts = [a for a in self._attempts.values() if a.student_id == student_id]
        attempts.sort(key=lambda a: (a.started_at, a.id), reverse=True)
        return copy.deepcopy(attempts)

    async def create_attempt(
        self,
        quiz_id: int,
        student_id: int,
        state: AttemptState,
        started_at: datetime,
    ) -> Attempt:
        await self._pause()
        self._attempt_counter += 1
        attempt = Attempt(
            id=self._attempt_counter,
            quiz_id=quiz_id,
            student_id=student_id,
            status=AttemptStatus.IN_PROGRESS,
            started_at=started_at,
            state=copy.deepcopy(state),
        )
        self._attempts[attempt.id] = attempt
        return copy.deepcopy(attempt)

    async def apply_state(
        self,
        attempt_id: int,
        incoming: Mapping[str, Any] | None,
        synced_at: datetime,
    ) -> AttemptState | None:
        await self._pause()
        attempt = self._attempts.get(attempt_id)
        if attempt is None or not attempt.is_in_progress:
            return None
        attempt.state = merge_state(attempt.state, copy.deepcopy(incoming))
        attempt.last_synced_at = synced_at
        return copy.deepcopy(attempt.state)

    async def set_timer_override(self, attempt_id: int, override: TimerOverride) -> bool:
        await self._pause()
        attempt = self._attempts.get(attempt_id)
        if attempt is None:
            return False
        attempt.state.timer_override = copy.deepcopy(override)
        return True

    async def complete_attempt(self, attempt_id: int, score: float, finished_at: datetime) -> bool:
        await self._pause()
        attempt = self._attempts.get(attempt_id)
        if attempt is None or not attempt.is_in_progress:
            return False
        attempt.status = AttemptStatus.COMPLETED
        attempt.score = score
        attempt.finished_at = finished_at
        return True

    async def delete_attempt(self, attempt_id: int) -> bool:
        await self._pause()
        return self._attempts.pop(attempt_id, None) is not None

    async def get_assignment(self, quiz_id: int, student_id: int) -> Assignment | None:
        await self._pause()
        return copy.deepcopy(self._assignments.get((quiz_id, student_id)))

    async def set_assignment_status(
        self,
        quiz_id: int,
        student_id: int,
        status: AssignmentStatus,
    ) -> bool:
        await self._pause()
        assignment = self._assignments.get((quiz_id, student_id))
        if assignment is None:
            return False
        assignment.status = status
        return True

    async def list_live_attempts(self, filters: AttemptFilters) -> list[LiveAttemptRow]:
        await self._pause()
        rows: list[LiveAttemptRow] = []
        for attempt in self._attempts.values():
            if not attempt.is_in_progress:
                continue
            student = self._students.get(attempt.student_id)
            quiz = self._quizzes.get(attempt.quiz_id)
            if not filters.matches(student, quiz):
                continue
            rows.append(
                LiveAttemptRow(
                    attempt=copy.deepcopy(attempt),
                    student=copy.deepcopy(student),
                    quiz=copy.deepcopy(quiz),
                )
            )
        rows.sort(key=lambda row: (row.attempt.started_at, row.attempt.id), reverse=True)
        return rows

    async def _pause(self) -> None:
        await asyncio.sleep(self._latency)
