from datetime import datetime, timezone

from quiz_live.core.models import AttemptFilters, AttemptState, Quiz, StudentProfile


def test_stored_state_with_zulu_timestamps_is_parsed():
    stored = {
        "quiz_id": 4,
        "shuffle_applied": True,
        "current_question_index": 2,
        "questions": [
            {"id": 1, "question_text": "Q1", "options": ("a", "b"), "answer": "a"},
            {"question_text": "orphan without id"},
        ],
        "timer_override": {"total_duration_sec": "120", "reset_at": "2024-03-01T09:05:00Z"},
    }

    state = AttemptState.from_dict(stored)

    assert state.question_ids() == [1]
    assert state.questions[0].options == ["a", "b"]
    assert state.timer_override.total_duration_sec == 120
    assert state.timer_override.reset_at == datetime(2024, 3, 1, 9, 5, tzinfo=timezone.utc)
    assert state.to_dict()["timer_override"]["reset_at"] == "2024-03-01T09:05:00+00:00"


def test_filters_match_case_insensitive_substrings():
    student = StudentProfile(id=7, name="Ada Lovelace", school="North High", class_name="5", section="B")
    quiz = Quiz(id=1, title="Fractions Check")

    assert AttemptFilters().matches(student, quiz)
    assert AttemptFilters(school="NORTH", quiz_title="fraction", section="b").matches(student, quiz)
    assert not AttemptFilters(student_name="turing").matches(student, quiz)
    assert not AttemptFilters(quiz_title="fractions").matches(student, None)
