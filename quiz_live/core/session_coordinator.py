"""Lifecycle authority for live quiz attempts.

The coordinator is the only component that moves an attempt between states.
It owns the timer and session registries, grades through the pure engine,
has the attempt store merge client state in a single write, and publishes
every transition to the attempt's observers.

All methods run on one event loop. Each store call is a suspension point, so
attempt status is re-read before any transition that depends on it, and
completion itself is a conditional write that only one caller can win.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
import logging
from typing import Any

from quiz_live.constants.session_constants import (
    DEFAULT_TOTAL_TIME_SECONDS,
    MASS_OPERATION_ROLES,
    MONITOR_ROLES,
)
from quiz_live.core.authorization import authorize, require_role
from quiz_live.core.errors import (
    AlreadyCompleted,
    AlreadyInProgress,
    Forbidden,
    InvalidRequest,
    NoQuestions,
    NotAssigned,
    NotFound,
    SessionError,
    StorageFailure,
)
from quiz_live.core.grading import grade
from quiz_live.core.markdown_math_renderer import MarkdownMathRenderer, renderer as default_renderer
from quiz_live.core.models import (
    Assignment,
    AssignmentStatus,
    Attempt,
    AttemptFilters,
    AttemptState,
    Identity,
    LiveTimerSession,
    MassOperationResult,
    Quiz,
    SubmissionResult,
    TimerOverride,
    format_timestamp,
)
from quiz_live.core.services.broadcaster import Broadcaster, Observer, attempt_scope
from quiz_live.core.services.contracts import AttemptStore, QuestionBank, StatisticsHook
from quiz_live.core.services.session_registry import SessionRegistry
from quiz_live.core.services.statistics import LoggingStatisticsHook
from quiz_live.core.services.timer_registry import TimerRegistry
from quiz_live.core.shuffle import shuffle_questions
from quiz_live.core.timer_math import Clock, effective_timing, timing_for_attempt, utc_now

logger = logging.getLogger(__name__)


@contextmanager
def storage_errors(action: str) -> Iterator[None]:
    """Report unexpected collaborator failures as :class:`StorageFailure`."""
    try:
        yield
    except SessionError:
        raise
    except Exception as exc:
        logger.exception("Storage call failed while trying to %s", action)
        raise StorageFailure(f"Failed to {action}.") from exc


@dataclass(slots=True)
class StartedSession:
    """A freshly created attempt together with its quiz and initial countdown."""

    attempt: Attempt
    quiz: Quiz
    remaining_time: int
    total_time: int

    def to_payload(self, renderer: MarkdownMathRenderer = default_renderer) -> dict[str, Any]:
        return {
            "attempt_id": self.attempt.id,
            "quiz": self.quiz.to_dict(),
            "questions": [renderer.render_question(q) for q in self.attempt.state.questions],
        }

    def timer_payload(self) -> dict[str, Any]:
        return {
            "attempt_id": self.attempt.id,
            "remaining_time": self.remaining_time,
            "total_time": self.total_time,
        }


@dataclass(slots=True)
class ResumedSession:
    """Outcome of a resume; ``submission`` is set when time had already run out."""

    attempt: Attempt
    remaining_time: int
    total_time: int
    submission: SubmissionResult | None = None

    @property
    def auto_submitted(self) -> bool:
        return self.submission is not None


class SessionCoordinator:
    """Orchestrates timers, state sync, grading and admin overrides."""

    def __init__(
        self,
        store: AttemptStore,
        questions: QuestionBank,
        *,
        broadcaster: Broadcaster | None = None,
        sessions: SessionRegistry | None = None,
        timers: TimerRegistry | None = None,
        statistics: StatisticsHook | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self._questions = questions
        self._broadcaster = broadcaster if broadcaster is not None else Broadcaster()
        self._sessions = sessions if sessions is not None else SessionRegistry()
        self._timers = timers if timers is not None else TimerRegistry()
        self._statistics = statistics if statistics is not None else LoggingStatisticsHook()
        self._clock = clock
        self._starting: set[tuple[int, int]] = set()
        self._background: set[asyncio.Task[None]] = set()

    @property
    def broadcaster(self) -> Broadcaster:
        return self._broadcaster

    @property
    def sessions(self) -> SessionRegistry:
        return self._sessions

    @property
    def timers(self) -> TimerRegistry:
        return self._timers

    # --- Student session lifecycle ---

    async def start_session(
        self,
        user_id: int,
        quiz_id: int,
        observer: Observer | None = None,
    ) -> StartedSession:
        key = (quiz_id, user_id)
        if key in self._starting:
            raise AlreadyInProgress("Quiz start already in progress.", quiz_id=quiz_id)
        self._starting.add(key)
        try:
            return await self._start_session(user_id, quiz_id, observer)
        finally:
            self._starting.discard(key)

    async def _start_session(
        self,
        user_id: int,
        quiz_id: int,
        observer: Observer | None,
    ) -> StartedSession:
        with storage_errors("load assignment"):
            assignment = await self._store.get_assignment(quiz_id, user_id)
        self._require_assigned(assignment, quiz_id)

        with storage_errors("load quiz"):
            quiz = await self._questions.get_quiz(quiz_id)
            if quiz is None:
                raise NotFound("Quiz not found.", quiz_id=quiz_id)
            bank_questions = await self._questions.get_quiz_questions(quiz_id)
            previous = await self._store.find_attempts(quiz_id, user_id)
        running = next((a for a in previous if a.is_in_progress), None)
        if running is not None:
            raise AlreadyInProgress("An attempt is already in progress.", attempt_id=running.id)

        snapshots = [question.freeze() for question in bank_questions]
        if assignment.shuffle_questions:
            snapshots = shuffle_questions(snapshots, quiz_id, user_id)
        state = AttemptState(
            quiz_id=quiz_id,
            questions=snapshots,
            shuffle_applied=assignment.shuffle_questions,
        )

        with storage_errors("create attempt"):
            assignment = await self._store.get_assignment(quiz_id, user_id)
            self._require_assigned(assignment, quiz_id)
            started_at = self._clock()
            attempt = await self._store.create_attempt(quiz_id, user_id, state, started_at)
            await self._store.set_assignment_status(quiz_id, user_id, AssignmentStatus.IN_PROGRESS)

        timing = effective_timing(started_at, quiz.total_time)
        self._start_timer(attempt, timing.started_at, timing.total_seconds, timing.total_seconds)
        if observer is not None:
            self._broadcaster.join(attempt_scope(attempt.id), observer)
        logger.info(
            "User %s started quiz %s as attempt %s (%ss, shuffled=%s)",
            user_id,
            quiz_id,
            attempt.id,
            timing.total_seconds,
            assignment.shuffle_questions,
        )
        return StartedSession(
            attempt=attempt,
            quiz=quiz,
            remaining_time=timing.total_seconds,
            total_time=timing.total_seconds,
        )

    async def resume_session(
        self,
        attempt_id: int,
        user_id: int,
        observer: Observer | None = None,
    ) -> ResumedSession:
        """Restore the countdown for an attempt, auto-submitting if time ran out."""
        attempt = await self._load_owned_attempt(attempt_id, user_id)
        if not attempt.is_in_progress:
            raise AlreadyCompleted("Attempt is already completed.", attempt_id=attempt_id)
        if observer is not None:
            self._broadcaster.join(attempt_scope(attempt_id), observer)

        quiz_total_time = await self._quiz_total_time(attempt.quiz_id)
        with storage_errors("reload attempt"):
            current = await self._store.get_attempt(attempt_id)
        if current is None:
            raise NotFound("Attempt not found.", attempt_id=attempt_id)
        if not current.is_in_progress:
            raise AlreadyCompleted("Attempt is already completed.", attempt_id=attempt_id)

        # Timing comes from the reloaded row so an override written meanwhile wins.
        timing = timing_for_attempt(current, quiz_total_time)
        remaining = timing.remaining_at(self._clock())
        if remaining <= 0:
            logger.info("Attempt %s expired while disconnected; auto-submitting", attempt_id)
            self._stop_timer(attempt_id)
            submission = await self._auto_submit(attempt_id)
            if submission is None:
                raise AlreadyCompleted("Attempt is already completed.", attempt_id=attempt_id)
            return ResumedSession(current, 0, timing.total_seconds, submission)

        self._start_timer(current, timing.started_at, timing.total_seconds, remaining)
        self._broadcaster.publish(
            attempt_scope(attempt_id),
            "timer_update",
            {"attempt_id": attempt_id, "remaining_time": remaining, "total_time": timing.total_seconds},
        )
        logger.info("Resumed attempt %s with %ss remaining", attempt_id, remaining)
        return ResumedSession(current, remaining, timing.total_seconds)

    async def sync_state(
        self,
        attempt_id: int,
        user_id: int,
        incoming_state: Mapping[str, Any] | None,
        client_id: str | None = None,
        observer: Observer | None = None,
    ) -> AttemptState:
        attempt = await self._load_owned_attempt(attempt_id, user_id)
        if not attempt.is_in_progress:
            raise AlreadyCompleted("Attempt not in progress.", attempt_id=attempt_id)

        with storage_errors("save attempt state"):
            merged = await self._store.apply_state(attempt_id, incoming_state, self._clock())
        if merged is None:
            raise AlreadyCompleted("Attempt not in progress.", attempt_id=attempt_id)

        if observer is not None:
            self._broadcaster.join(attempt_scope(attempt_id), observer)
        self._broadcaster.publish(
            attempt_scope(attempt_id),
            "state_update",
            {"attempt_id": attempt_id, "state": merged.to_dict(), "source": client_id},
        )
        return merged

    async def submit_session(self, attempt_id: int, user_id: int) -> SubmissionResult:
        attempt = await self._load_owned_attempt(attempt_id, user_id)
        if not attempt.is_in_progress:
            raise AlreadyCompleted("Attempt is already completed.", attempt_id=attempt_id)
        if not attempt.state.questions:
            raise NoQuestions("Attempt has no questions to grade.", attempt_id=attempt_id)

        submission = await self._finalize(attempt, auto_submitted=False)
        if submission is None:
            raise AlreadyCompleted("Attempt is already completed.", attempt_id=attempt_id)
        logger.info(
            "User %s submitted attempt %s: score=%s", user_id, attempt_id, submission.grade.score
        )
        return submission

    async def get_attempt(
        self,
        attempt_id: int,
        user: Identity,
        observer: Observer | None = None,
    ) -> dict[str, Any]:
        """Attempt with computed ``remaining_time``, or with answer keys once completed."""
        attempt = await self._load_attempt(attempt_id)
        is_owner = attempt.student_id == user.user_id
        if not is_owner and not authorize(user, MONITOR_ROLES).allowed:
            raise Forbidden("Attempt belongs to another user.", attempt_id=attempt_id)

        payload = attempt.to_dict()
        if attempt.is_in_progress:
            live = self._sessions.get(attempt_id)
            if live is not None:
                payload["remaining_time"] = live.remaining_seconds
                payload["total_time"] = live.total_duration
            else:
                timing = timing_for_attempt(attempt, await self._quiz_total_time(attempt.quiz_id))
                payload["remaining_time"] = timing.remaining_at(self._clock())
                payload["total_time"] = timing.total_seconds
        elif attempt.state.questions:
            with storage_errors("load answer keys"):
                keys = await self._questions.fetch_answer_keys(attempt.state.question_ids())
            for question in payload["state"]["questions"]:
                question["correct_answers"] = keys.get(question["id"], [])

        if observer is not None and is_owner:
            self._broadcaster.join(attempt_scope(attempt_id), observer)
        return payload

    async def list_my_attempts(self, user_id: int) -> list[dict[str, Any]]:
        with storage_errors("list attempts"):
            attempts = await self._store.list_attempts_for_student(user_id)
        return [attempt.to_dict() for attempt in attempts]

    # --- Administrative monitoring and overrides ---

    async def list_live_attempts(
        self,
        actor: Identity | None,
        filters: AttemptFilters | None = None,
    ) -> list[dict[str, Any]]:
        require_role(actor, MONITOR_ROLES)
        with storage_errors("list live attempts"):
            rows = await self._store.list_live_attempts(filters or AttemptFilters())

        listing: list[dict[str, Any]] = []
        for row in rows:
            attempt = row.attempt
            live = self._sessions.get(attempt.id)
            if live is not None:
                remaining = live.remaining_seconds
                total = live.total_duration
                elapsed = live.elapsed_seconds
            else:
                timing = timing_for_attempt(attempt, row.quiz.total_time if row.quiz else None)
                now = self._clock()
                remaining = timing.remaining_at(now)
                elapsed = timing.elapsed_at(now)
                total = timing.total_seconds
                if remaining <= 0 and await self._expire_unattended(attempt.id):
                    continue

            entry: dict[str, Any] = {
                "attempt_id": attempt.id,
                "student_id": attempt.student_id,
                "quiz_id": attempt.quiz_id,
                "started_at": format_timestamp(attempt.started_at),
                "status": attempt.status.value,
                "state": attempt.state.to_dict(),
            }
            if row.student is not None:
                entry.update(row.student.to_dict())
            entry["quiz_title"] = row.quiz.title if row.quiz else None
            entry["total_time"] = row.quiz.total_time if row.quiz else None
            entry.update(
                remaining_time=remaining,
                elapsed_time=elapsed,
                quiz_total_time=total,
                is_timer_active=self._timers.is_active(attempt.id),
            )
            listing.append(entry)
        return listing

    async def reset_timer(
        self,
        actor: Identity | None,
        attempt_id: int,
        new_duration: int | None = None,
    ) -> dict[str, Any]:
        require_role(actor, MONITOR_ROLES)
        duration = _validate_duration(new_duration)
        attempt = await self._load_attempt(attempt_id)
        if not attempt.is_in_progress:
            raise AlreadyCompleted("Attempt is already completed.", attempt_id=attempt_id)

        await self._apply_timer_reset(attempt, duration)
        payload = {"attempt_id": attempt_id, "new_duration": duration}
        self._broadcaster.publish_global("admin_timer_reset", payload)
        logger.info("User %s reset timer of attempt %s to %ss", actor.user_id, attempt_id, duration)
        return payload

    async def reset_assignment(
        self,
        actor: Identity | None,
        quiz_id: int,
        student_id: int,
    ) -> dict[str, Any]:
        require_role(actor, MONITOR_ROLES)
        with storage_errors("load assignment"):
            assignment = await self._store.get_assignment(quiz_id, student_id)
        if assignment is None:
            raise NotFound("Assignment not found.", quiz_id=quiz_id, student_id=student_id)

        deleted = await self._apply_assignment_reset(quiz_id, student_id)
        payload = {"quiz_id": quiz_id, "student_id": student_id, "deleted_attempts": deleted}
        self._broadcaster.publish_global("admin_assignment_reset", payload)
        logger.info(
            "User %s reset assignment of quiz %s for student %s (deleted %s)",
            actor.user_id,
            quiz_id,
            student_id,
            deleted,
        )
        return payload

    async def mass_reset_timer(
        self,
        actor: Identity | None,
        filters: AttemptFilters | None = None,
        new_duration: int | None = None,
    ) -> MassOperationResult:
        require_role(actor, MASS_OPERATION_ROLES)
        duration = _validate_duration(new_duration)
        with storage_errors("list live attempts"):
            rows = await self._store.list_live_attempts(filters or AttemptFilters())

        result = MassOperationResult(total_attempts=len(rows))
        for row in rows:
            try:
                await self._apply_timer_reset(row.attempt, duration)
            except Exception:
                logger.exception("Mass timer reset failed for attempt %s", row.attempt.id)
                result.error_count += 1
            else:
                result.success_count += 1
        self._broadcaster.publish_global("admin_mass_timer_reset", result.to_payload())
        logger.info("Mass timer reset by user %s: %s", actor.user_id, result.to_payload())
        return result

    async def mass_reset_assignment(
        self,
        actor: Identity | None,
        filters: AttemptFilters | None = None,
    ) -> MassOperationResult:
        require_role(actor, MASS_OPERATION_ROLES)
        with storage_errors("list live attempts"):
            rows = await self._store.list_live_attempts(filters or AttemptFilters())

        result = MassOperationResult(total_attempts=len(rows))
        for row in rows:
            attempt = row.attempt
            try:
                await self._apply_assignment_reset(attempt.quiz_id, attempt.student_id)
            except Exception:
                logger.exception("Mass assignment reset failed for attempt %s", attempt.id)
                result.error_count += 1
            else:
                result.success_count += 1
        self._broadcaster.publish_global("admin_mass_assignment_reset", result.to_payload())
        logger.info("Mass assignment reset by user %s: %s", actor.user_id, result.to_payload())
        return result

    async def shutdown(self) -> None:
        """Cancel all tickers and wait for pending statistics updates."""
        await self._timers.cancel_all()
        self._sessions.clear()
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

    # --- Timers ---

    def _start_timer(
        self,
        attempt: Attempt,
        anchor: datetime,
        total_seconds: int,
        remaining_seconds: int,
    ) -> LiveTimerSession:
        self._stop_timer(attempt.id)
        session = LiveTimerSession(
            attempt_id=attempt.id,
            user_id=attempt.student_id,
            quiz_id=attempt.quiz_id,
            started_at=anchor,
            remaining_seconds=remaining_seconds,
            total_duration=total_seconds,
        )
        self._sessions.put(session)
        self._timers.start(session, self._on_tick, self._on_expire)
        return session

    def _stop_timer(self, attempt_id: int) -> None:
        self._timers.cancel(attempt_id)
        self._sessions.remove(attempt_id)

    def _on_tick(self, session: LiveTimerSession) -> None:
        self._broadcaster.publish(
            attempt_scope(session.attempt_id),
            "timer_update",
            {
                "attempt_id": session.attempt_id,
                "remaining_time": session.remaining_seconds,
                "total_time": session.total_duration,
            },
        )

    async def _on_expire(self, session: LiveTimerSession) -> None:
        if self._sessions.get(session.attempt_id) is session:
            self._sessions.remove(session.attempt_id)
        logger.info("Timer expired for attempt %s; auto-submitting", session.attempt_id)
        try:
            await self._auto_submit(session.attempt_id)
        except SessionError as exc:
            logger.warning("Auto-submit failed for attempt %s: %s", session.attempt_id, exc)
        except Exception:
            logger.exception("Auto-submit crashed for attempt %s", session.attempt_id)

    async def _apply_timer_reset(self, attempt: Attempt, duration: int) -> LiveTimerSession:
        reset_at = self._clock()
        override = TimerOverride(total_duration_sec=duration, reset_at=reset_at)
        with storage_errors("save timer override"):
            if not await self._store.set_timer_override(attempt.id, override):
                raise NotFound("Attempt not found.", attempt_id=attempt.id)
            current = await self._store.get_attempt(attempt.id)
        if current is None:
            raise NotFound("Attempt not found.", attempt_id=attempt.id)
        if not current.is_in_progress:
            raise AlreadyCompleted("Attempt is already completed.", attempt_id=attempt.id)

        session = self._start_timer(current, reset_at, duration, duration)
        self._broadcaster.publish(
            attempt_scope(attempt.id),
            "timer_update",
            {"attempt_id": attempt.id, "remaining_time": duration, "total_time": duration},
        )
        return session

    async def _apply_assignment_reset(self, quiz_id: int, student_id: int) -> list[int]:
        with storage_errors("reset assignment"):
            attempts = await self._store.find_attempts(quiz_id, student_id)
            deleted: list[int] = []
            for attempt in attempts:
                self._stop_timer(attempt.id)
                await self._store.delete_attempt(attempt.id)
                deleted.append(attempt.id)
                self._broadcaster.publish(
                    attempt_scope(attempt.id),
                    "attempt_reset",
                    {"attempt_id": attempt.id, "quiz_id": quiz_id, "student_id": student_id},
                )
            await self._store.set_assignment_status(quiz_id, student_id, AssignmentStatus.ASSIGNED)
        return deleted

    # --- Grading ---

    async def _auto_submit(self, attempt_id: int) -> SubmissionResult | None:
        with storage_errors("load attempt"):
            attempt = await self._store.get_attempt(attempt_id)
        if attempt is None or not attempt.is_in_progress:
            logger.info("Attempt %s is no longer in progress; nothing to auto-submit", attempt_id)
            return None
        return await self._finalize(attempt, auto_submitted=True)

    async def _expire_unattended(self, attempt_id: int) -> bool:
        """Auto-submit an expired attempt found without a live timer."""
        logger.info("Attempt %s expired without a running timer; auto-submitting", attempt_id)
        try:
            await self._auto_submit(attempt_id)
        except SessionError:
            logger.exception("Auto-submit of expired attempt %s failed", attempt_id)
            return False
        return True

    async def _finalize(self, attempt: Attempt, *, auto_submitted: bool) -> SubmissionResult | None:
        graded_ids = set(attempt.state.question_ids())
        with storage_errors("load answer keys"):
            keys = await self._questions.fetch_answer_keys(list(graded_ids)) if graded_ids else {}
            current = await self._store.get_attempt(attempt.id)
            if current is not None:
                late_ids = [qid for qid in current.state.question_ids() if qid not in graded_ids]
                if late_ids:
                    keys.update(await self._questions.fetch_answer_keys(late_ids))
        if current is None or not current.is_in_progress:
            return None

        result = grade(current.state.questions, keys)
        finished_at = self._clock()
        with storage_errors("complete attempt"):
            completed = await self._store.complete_attempt(current.id, result.score, finished_at)
        if not completed:
            logger.info("Attempt %s was completed concurrently; skipping", current.id)
            return None

        self._stop_timer(current.id)
        # The attempt is completed from here on; assignment write failures are only logged.
        try:
            await self._store.set_assignment_status(
                current.quiz_id, current.student_id, AssignmentStatus.COMPLETED
            )
        except Exception:
            logger.exception("Attempt %s completed but its assignment was not advanced", current.id)
        submission = SubmissionResult(
            attempt_id=current.id,
            grade=result,
            finished_at=finished_at,
            auto_submitted=auto_submitted,
        )
        self._record_statistics(current, submission)

        payload = submission.to_payload()
        self._broadcaster.publish(attempt_scope(current.id), "quiz_submitted", payload)
        self._broadcaster.publish_global(
            "attempt_completed",
            dict(payload, quiz_id=current.quiz_id, student_id=current.student_id),
        )
        if auto_submitted:
            logger.info(
                "Auto-submitted attempt %s: %s/%s correct, score=%s",
                current.id,
                result.earned,
                result.total,
                result.score,
            )
        return submission

    def _record_statistics(self, attempt: Attempt, submission: SubmissionResult) -> None:
        elapsed = (submission.finished_at - attempt.started_at).total_seconds()
        summary = dict(
            submission.to_payload(),
            quiz_id=attempt.quiz_id,
            time_minutes=round(max(0.0, elapsed) / 60, 2),
        )
        task = asyncio.create_task(self._run_statistics_hook(attempt.student_id, summary))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _run_statistics_hook(self, user_id: int, summary: dict[str, Any]) -> None:
        try:
            await self._statistics.record_attempt(user_id, summary)
        except Exception:
            logger.exception("Statistics update failed for attempt %s", summary.get("attempt_id"))

    # --- Lookups ---

    async def _load_attempt(self, attempt_id: int) -> Attempt:
        with storage_errors("load attempt"):
            attempt = await self._store.get_attempt(attempt_id)
        if attempt is None:
            raise NotFound("Attempt not found.", attempt_id=attempt_id)
        return attempt

    async def _load_owned_attempt(self, attempt_id: int, user_id: int) -> Attempt:
        attempt = await self._load_attempt(attempt_id)
        if attempt.student_id != user_id:
            raise Forbidden("Attempt belongs to another user.", attempt_id=attempt_id)
        return attempt

    async def _quiz_total_time(self, quiz_id: int) -> int | None:
        with storage_errors("load quiz"):
            quiz = await self._questions.get_quiz(quiz_id)
        return quiz.total_time if quiz is not None else None

    @staticmethod
    def _require_assigned(assignment: Assignment | None, quiz_id: int) -> None:
        if assignment is None:
            raise NotAssigned("Quiz is not assigned to this user.", quiz_id=quiz_id)
        if assignment.status is not AssignmentStatus.ASSIGNED:
            raise NotAssigned(
                f"Assignment is {assignment.status.value}, not assigned.",
                quiz_id=quiz_id,
                assignment_status=assignment.status.value,
            )


def _validate_duration(new_duration: int | None) -> int:
    if new_duration is None:
        return DEFAULT_TOTAL_TIME_SECONDS
    if isinstance(new_duration, bool) or not isinstance(new_duration, int):
        raise InvalidRequest("new_duration must be a whole number of seconds.")
    if new_duration <= 0:
        raise InvalidRequest("new_duration must be positive.")
    return new_duration
