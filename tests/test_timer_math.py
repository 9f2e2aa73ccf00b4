from datetime import timedelta

from quiz_live.core.models import TimerOverride
from quiz_live.core.timer_math import effective_timing, remaining_seconds

from conftest import START


def test_remaining_time_is_clamped_and_never_increases():
    samples = [START + timedelta(seconds=s) for s in (-5, 0, 0.4, 1, 150.9, 299.5, 300, 1000)]
    remaining = [remaining_seconds(300, START, now) for now in samples]

    assert remaining == [300, 300, 300, 299, 150, 1, 0, 0]
    assert all(later <= earlier for earlier, later in zip(remaining, remaining[1:]))


def test_override_replaces_duration_and_anchor():
    reset_at = START + timedelta(minutes=10)
    timing = effective_timing(START, 600, TimerOverride(total_duration_sec=120, reset_at=reset_at))

    assert timing.total_seconds == 120
    assert timing.started_at == reset_at
    assert timing.remaining_at(reset_at + timedelta(seconds=30)) == 90


def test_missing_quiz_duration_falls_back_to_default():
    timing = effective_timing(START, None)

    assert timing.total_seconds == 300
    assert timing.elapsed_at(START + timedelta(seconds=42)) == 42
