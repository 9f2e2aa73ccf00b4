"""Reconciles client-submitted attempt state with the stored state.

A client that reconnects with a stale or partially loaded copy of the attempt
must never erase answers the server already holds, so an incoming answer only
wins when it carries a value. The merge is idempotent: applying the same
payload twice gives the same result as applying it once.

Client payloads are untrusted. Question entries without a usable id and
answers that are not a scalar or a list of scalars are ignored.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from quiz_live.core.models import AttemptState, QuestionId, QuestionSnapshot

_TEXT_FIELDS = ("question_text", "question_type", "image_url")
_SCALAR_TYPES = (str, int, float)


def merge_state(
    existing: AttemptState,
    incoming: Mapping[str, Any] | AttemptState | None,
) -> AttemptState:
    """Return the merged state; neither argument is modified."""
    if isinstance(incoming, AttemptState):
        incoming = incoming.to_dict()
    if not isinstance(incoming, Mapping):
        incoming = {}

    incoming_by_id, incoming_order = _index_questions(incoming.get("questions"))

    merged_questions = [
        _merge_question(question, incoming_by_id.get(question.id))
        for question in existing.questions
    ]
    existing_ids = {question.id for question in existing.questions}
    for question_id in incoming_order:
        if question_id not in existing_ids:
            merged_questions.append(
                _merge_question(QuestionSnapshot(id=question_id), incoming_by_id[question_id])
            )

    return AttemptState(
        quiz_id=_pick(incoming, "quiz_id", existing.quiz_id, _is_int),
        questions=merged_questions,
        current_question_index=_pick(
            incoming,
            "current_question_index",
            existing.current_question_index,
            lambda value: _is_int(value) and value >= 0,
        ),
        current_question_id=_pick(
            incoming,
            "current_question_id",
            existing.current_question_id,
            is_question_id,
        ),
        # Owned by the server: a client may never move its own timer.
        timer_override=existing.timer_override,
        shuffle_applied=existing.shuffle_applied,
    )


def has_answer(value: Any) -> bool:
    return value is not None and value != ""


def is_question_id(value: Any) -> bool:
    return _is_int(value) or isinstance(value, str)


def is_answer_value(value: Any) -> bool:
    """Scalars and flat lists of scalars; anything else cannot be graded."""
    if isinstance(value, (list, tuple)):
        return all(_is_scalar(item) for item in value)
    return _is_scalar(value)


def _index_questions(
    raw_questions: Any,
) -> tuple[dict[QuestionId, Mapping[str, Any]], list[QuestionId]]:
    by_id: dict[QuestionId, Mapping[str, Any]] = {}
    order: list[QuestionId] = []
    if not isinstance(raw_questions, (list, tuple)):
        return by_id, order
    for item in raw_questions:
        if not isinstance(item, Mapping):
            continue
        question_id = item.get("id")
        if not is_question_id(question_id):
            continue
        if question_id not in by_id:
            order.append(question_id)
        by_id[question_id] = item
    return by_id, order


def _merge_question(
    existing: QuestionSnapshot,
    incoming: Mapping[str, Any] | None,
) -> QuestionSnapshot:
    merged = QuestionSnapshot.from_dict(existing.to_dict())
    if incoming is None:
        return merged
    for field_name in _TEXT_FIELDS:
        value = incoming.get(field_name)
        if isinstance(value, str):
            setattr(merged, field_name, value)
    options = incoming.get("options")
    if isinstance(options, (list, tuple)) and is_answer_value(options):
        merged.options = list(options)
    incoming_answer = incoming.get("answer")
    if has_answer(incoming_answer) and is_answer_value(incoming_answer):
        merged.answer = list(incoming_answer) if isinstance(incoming_answer, tuple) else incoming_answer
    return merged


def _pick(incoming: Mapping[str, Any], key: str, fallback: Any, is_valid) -> Any:
    value = incoming.get(key)
    if value is not None and is_valid(value):
        return value
    return fallback


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_scalar(value: Any) -> bool:
    return value is None or isinstance(value, _SCALAR_TYPES)
