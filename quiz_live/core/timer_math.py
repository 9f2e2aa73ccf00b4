"""Remaining-time computation shared by start, resume, recovery and monitoring.

Timer state must be reconstructible from persisted fields alone: the
effective duration comes from a timer override if one was recorded, else from
the quiz, else from the default; the effective start is the override's reset
time, else the attempt's ``started_at``.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
import math

from quiz_live.constants.session_constants import DEFAULT_TOTAL_TIME_SECONDS
from quiz_live.core.models import Attempt, TimerOverride

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True, frozen=True)
class EffectiveTiming:
    total_seconds: int
    started_at: datetime

    def remaining_at(self, now: datetime) -> int:
        return remaining_seconds(self.total_seconds, self.started_at, now)

    def elapsed_at(self, now: datetime) -> int:
        return elapsed_seconds(self.started_at, now)


def effective_timing(
    started_at: datetime,
    quiz_total_time: int | None,
    override: TimerOverride | None = None,
) -> EffectiveTiming:
    if override is not None and override.total_duration_sec:
        total = override.total_duration_sec
    else:
        total = quiz_total_time or DEFAULT_TOTAL_TIME_SECONDS
    start = override.reset_at if override is not None and override.reset_at else started_at
    return EffectiveTiming(total_seconds=int(total), started_at=start)


def timing_for_attempt(attempt: Attempt, quiz_total_time: int | None) -> EffectiveTiming:
    return effective_timing(attempt.started_at, quiz_total_time, attempt.state.timer_override)


def elapsed_seconds(started_at: datetime, now: datetime) -> int:
    return max(0, math.floor((now - started_at).total_seconds()))


def remaining_seconds(total_seconds: int, started_at: datetime, now: datetime) -> int:
    """Whole seconds left, clamped to ``[0, total_seconds]``."""
    return max(0, total_seconds - elapsed_seconds(started_at, now))
