"""Domain models for live quiz attempts."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

QuestionId = int | str


class AttemptStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class AssignmentStatus(str, Enum):
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


def parse_timestamp(value: datetime | str | None) -> datetime | None:
    """Parse an ISO timestamp (``Z`` suffix allowed) into an aware datetime."""
    if value is None or isinstance(value, datetime):
        return _as_utc(value) if value is not None else None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return _as_utc(datetime.fromisoformat(text))


def format_timestamp(value: datetime | None) -> str | None:
    if value is None:
        return None
    return _as_utc(value).isoformat()


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(slots=True)
class QuestionSnapshot:
    """Question content frozen into an attempt; only ``answer`` changes later."""

    id: QuestionId
    question_text: str = ""
    question_type: str | None = None
    options: list[Any] | None = None
    image_url: str | None = None
    answer: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "question_text": self.question_text,
            "question_type": self.question_type,
            "options": list(self.options) if self.options is not None else None,
            "image_url": self.image_url,
            "answer": self.answer,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> QuestionSnapshot:
        options = data.get("options")
        return cls(
            id=data["id"],
            question_text=data.get("question_text") or "",
            question_type=data.get("question_type"),
            options=list(options) if isinstance(options, (list, tuple)) else options,
            image_url=data.get("image_url"),
            answer=data.get("answer"),
        )


@dataclass(slots=True)
class TimerOverride:
    """Administrative replacement of an attempt's duration and start anchor."""

    total_duration_sec: int
    reset_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_duration_sec": self.total_duration_sec,
            "reset_at": format_timestamp(self.reset_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TimerOverride:
        return cls(
            total_duration_sec=int(data["total_duration_sec"]),
            reset_at=parse_timestamp(data["reset_at"]),
        )


@dataclass(slots=True)
class AttemptState:
    """Structured snapshot persisted with an attempt."""

    quiz_id: int | None
    questions: list[QuestionSnapshot] = field(default_factory=list)
    current_question_index: int | None = None
    current_question_id: QuestionId | None = None
    timer_override: TimerOverride | None = None
    shuffle_applied: bool = False

    def question_ids(self) -> list[QuestionId]:
        return [question.id for question in self.questions]

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "quiz_id": self.quiz_id,
            "shuffle_applied": self.shuffle_applied,
            "questions": [question.to_dict() for question in self.questions],
        }
        if self.current_question_index is not None:
            payload["current_question_index"] = self.current_question_index
        if self.current_question_id is not None:
            payload["current_question_id"] = self.current_question_id
        if self.timer_override is not None:
            payload["timer_override"] = self.timer_override.to_dict()
        return payload

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> AttemptState:
        data = data or {}
        override = data.get("timer_override")
        return cls(
            quiz_id=data.get("quiz_id"),
            questions=[
                QuestionSnapshot.from_dict(item)
                for item in data.get("questions") or []
                if isinstance(item, dict) and item.get("id") is not None
            ],
            current_question_index=data.get("current_question_index"),
            current_question_id=data.get("current_question_id"),
            timer_override=TimerOverride.from_dict(override) if override else None,
            shuffle_applied=bool(data.get("shuffle_applied", False)),
        )


@dataclass(slots=True)
class Attempt:
    """One student's instance of taking one quiz."""

    id: int
    quiz_id: int
    student_id: int
    status: AttemptStatus
    started_at: datetime
    state: AttemptState
    finished_at: datetime | None = None
    score: float | None = None
    last_synced_at: datetime | None = None

    @property
    def is_in_progress(self) -> bool:
        return self.status is AttemptStatus.IN_PROGRESS

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "quiz_id": self.quiz_id,
            "student_id": self.student_id,
            "status": self.status.value,
            "started_at": format_timestamp(self.started_at),
            "finished_at": format_timestamp(self.finished_at),
            "score": self.score,
            "last_synced_at": format_timestamp(self.last_synced_at),
            "state": self.state.to_dict(),
        }


@dataclass(slots=True)
class Assignment:
    quiz_id: int
    student_id: int
    status: AssignmentStatus = AssignmentStatus.ASSIGNED
    shuffle_questions: bool = False


@dataclass(slots=True)
class Quiz:
    """Quiz metadata as provided by the question bank."""

    id: int
    title: str
    total_time: int | None = None
    description: str | None = None
    quiz_type: str | None = None
    difficulty: str | None = None
    tags: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "total_time": self.total_time,
            "quiz_type": self.quiz_type,
            "difficulty": self.difficulty,
            "tags": list(self.tags),
        }


@dataclass(slots=True)
class BankQuestion:
    """Authoritative question record including its answer key."""

    id: QuestionId
    question_text: str
    question_type: str | None = None
    options: list[Any] | None = None
    image_url: str | None = None
    correct_answers: list[Any] = field(default_factory=list)

    def freeze(self) -> QuestionSnapshot:
        return QuestionSnapshot(
            id=self.id,
            question_text=self.question_text,
            question_type=self.question_type,
            options=list(self.options) if self.options is not None else None,
            image_url=self.image_url,
            answer=None,
        )


@dataclass(slots=True)
class StudentProfile:
    id: int
    name: str
    username: str | None = None
    email: str | None = None
    school: str | None = None
    class_name: str | None = None
    section: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "student_name": self.name,
            "student_username": self.username,
            "student_email": self.email,
            "student_school": self.school,
            "student_class": self.class_name,
            "student_section": self.section,
        }


@dataclass(slots=True, frozen=True)
class Identity:
    """Verified user attached to a connection or request."""

    user_id: int
    role: str


@dataclass(slots=True)
class LiveTimerSession:
    """In-memory countdown state for one in-progress attempt."""

    attempt_id: int
    user_id: int
    quiz_id: int
    started_at: datetime
    remaining_seconds: int
    total_duration: int

    @property
    def elapsed_seconds(self) -> int:
        return max(0, self.total_duration - self.remaining_seconds)


@dataclass(slots=True)
class AttemptFilters:
    """Case-insensitive substring filters used by monitoring and mass operations."""

    school: str | None = None
    class_name: str | None = None
    section: str | None = None
    quiz_title: str | None = None
    student_name: str | None = None

    def matches(self, student: StudentProfile | None, quiz: Quiz | None) -> bool:
        checks = (
            (self.school, student.school if student else None),
            (self.class_name, student.class_name if student else None),
            (self.section, student.section if student else None),
            (self.quiz_title, quiz.title if quiz else None),
            (self.student_name, student.name if student else None),
        )
        for needle, haystack in checks:
            if not needle:
                continue
            if haystack is None or needle.casefold() not in haystack.casefold():
                return False
        return True


@dataclass(slots=True)
class LiveAttemptRow:
    """An in-progress attempt joined with its student and quiz records."""

    attempt: Attempt
    student: StudentProfile | None
    quiz: Quiz | None


@dataclass(slots=True, frozen=True)
class GradeResult:
    earned: int
    total: int
    unanswered: int
    answered: int
    score: float

    def to_response(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "total_questions": self.total,
            "correct": self.earned,
            "answered": self.answered,
            "unanswered": self.unanswered,
        }


@dataclass(slots=True)
class SubmissionResult:
    attempt_id: int
    grade: GradeResult
    finished_at: datetime
    auto_submitted: bool = False

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"attempt_id": self.attempt_id}
        payload.update(self.grade.to_response())
        payload["finished_at"] = format_timestamp(self.finished_at)
        payload["auto_submitted"] = self.auto_submitted
        return payload


@dataclass(slots=True)
class MassOperationResult:
    success_count: int = 0
    error_count: int = 0
    total_attempts: int = 0

    def to_payload(self) -> dict[str, int]:
        return {
            "success_count": self.success_count,
            "error_count": self.error_count,
            "total_attempts": self.total_attempts,
        }
