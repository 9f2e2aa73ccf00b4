"""Scores a frozen question list against the stored answer keys.

Unanswered questions are graded as wrong and stay in the denominator. Answers
are compared as sets, so the order and repetition of selected options do not
matter.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from quiz_live.core.models import GradeResult, QuestionId, QuestionSnapshot


def is_unanswered(answer: Any) -> bool:
    if answer is None or answer == "":
        return True
    return isinstance(answer, (list, tuple)) and len(answer) == 0


def normalize_answer(answer: Any) -> list[Any]:
    if isinstance(answer, (list, tuple, set, frozenset)):
        return list(answer)
    return [answer]


def answers_match(submitted: Any, correct: Iterable[Any]) -> bool:
    submitted_set = _as_set(normalize_answer(submitted))
    correct_set = _as_set(correct)
    return len(submitted_set) == len(correct_set) and correct_set <= submitted_set


def grade(
    questions: Sequence[QuestionSnapshot],
    answer_keys_by_id: Mapping[QuestionId, Iterable[Any]],
) -> GradeResult:
    earned = 0
    unanswered = 0
    for question in questions:
        if is_unanswered(question.answer):
            unanswered += 1
            continue
        correct = answer_keys_by_id.get(question.id) or []
        if answers_match(question.answer, correct):
            earned += 1

    total = len(questions)
    score = round(earned / total * 100, 2) if total else 0
    return GradeResult(
        earned=earned,
        total=total,
        unanswered=unanswered,
        answered=total - unanswered,
        score=score,
    )


def _as_set(values: Iterable[Any]) -> frozenset[Any]:
    # list-valued options compare by content
    return frozenset(tuple(value) if isinstance(value, list) else value for value in values)
