"""Load quizzes, students and assignments from a JSON seed file.

File format::

    {
      "quizzes": [
        {
          "id": 1,
          "title": "Fractions",
          "total_time": 600,          (optional, seconds; default 300)
          "questions": [
            {"id": 11, "question_text": "What is $1/2 + 1/4$?",
             "question_type": "single", "options": ["3/4", "2/6"],
             "correct_answers": ["3/4"]}
          ]
        }
      ],
      "students": [
        {"id": 7, "name": "Ada", "school": "North", "class": "5", "section": "B"}
      ],
      "assignments": [
        {"quiz_id": 1, "student_id": 7, "shuffle_questions": true}
      ]
    }

The in-memory store is only populated once the whole file has parsed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import json
from pathlib import Path
from typing import Any

from quiz_live.core.models import BankQuestion, Quiz, StudentProfile
from quiz_live.core.services.memory_store import InMemoryStore


class SeedImportError(Exception):
    """Raised when a seed file cannot be parsed."""


@dataclass(slots=True)
class SeedData:
    quizzes: list[tuple[Quiz, list[BankQuestion]]] = field(default_factory=list)
    students: list[StudentProfile] = field(default_factory=list)
    assignments: list[tuple[int, int, bool]] = field(default_factory=list)

    def apply(self, store: InMemoryStore) -> None:
        for quiz, questions in self.quizzes:
            store.add_quiz(quiz, questions)
        for student in self.students:
            store.add_student(student)
        for quiz_id, student_id, shuffle in self.assignments:
            store.assign(quiz_id, student_id, shuffle_questions=shuffle)


def load_seed_file(file_path: Path, store: InMemoryStore) -> SeedData:
    try:
        raw = json.loads(file_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise SeedImportError(f"Seed file is not valid JSON: {exc}") from exc
    seed = parse_seed(raw)
    seed.apply(store)
    return seed


def parse_seed(raw: Any) -> SeedData:
    if not isinstance(raw, dict):
        raise SeedImportError("Seed file must contain a JSON object.")
    seed = SeedData(
        quizzes=[_parse_quiz(item) for item in _as_list(raw, "quizzes")],
        students=[_parse_student(item) for item in _as_list(raw, "students")],
    )
    quiz_ids = {quiz.id for quiz, _ in seed.quizzes}
    for item in _as_list(raw, "assignments"):
        quiz_id = _require_int(item, "quiz_id", "assignment")
        if quiz_id not in quiz_ids:
            raise SeedImportError(f"Assignment references unknown quiz {quiz_id}.")
        student_id = _require_int(item, "student_id", "assignment")
        seed.assignments.append((quiz_id, student_id, bool(item.get("shuffle_questions", False))))
    return seed


def _parse_quiz(item: dict[str, Any]) -> tuple[Quiz, list[BankQuestion]]:
    quiz_id = _require_int(item, "id", "quiz")
    title = str(item.get("title") or "").strip()
    if not title:
        raise SeedImportError(f"Quiz {quiz_id} is missing a title.")
    total_time = item.get("total_time")
    if total_time is not None:
        if isinstance(total_time, bool) or not isinstance(total_time, int) or total_time <= 0:
            raise SeedImportError(f"Quiz {quiz_id} total_time must be a positive integer.")
    quiz = Quiz(
        id=quiz_id,
        title=title,
        total_time=total_time,
        description=item.get("description"),
        quiz_type=item.get("quiz_type"),
        difficulty=item.get("difficulty"),
        tags=[str(tag) for tag in item.get("tags") or []],
    )
    questions = [_parse_question(question, quiz_id) for question in _as_list(item, "questions")]
    return quiz, questions


def _parse_question(item: dict[str, Any], quiz_id: int) -> BankQuestion:
    question_id = item.get("id")
    if question_id is None or isinstance(question_id, bool) or not isinstance(question_id, (int, str)):
        raise SeedImportError(f"Question in quiz {quiz_id} needs an integer or string id.")
    question_text = str(item.get("question_text") or "").strip()
    if not question_text:
        raise SeedImportError(f"Question {question_id} text cannot be empty.")
    options = item.get("options")
    if options is not None and not isinstance(options, list):
        raise SeedImportError(f"Question {question_id} options must be a list.")
    correct = item.get("correct_answers", [])
    if not isinstance(correct, list):
        correct = [correct]
    return BankQuestion(
        id=question_id,
        question_text=question_text,
        question_type=item.get("question_type"),
        options=options,
        image_url=item.get("image_url"),
        correct_answers=correct,
    )


def _parse_student(item: dict[str, Any]) -> StudentProfile:
    student_id = _require_int(item, "id", "student")
    return StudentProfile(
        id=student_id,
        name=str(item.get("name") or ""),
        username=item.get("username"),
        email=item.get("email"),
        school=item.get("school"),
        class_name=item.get("class", item.get("class_name")),
        section=item.get("section"),
    )


def _as_list(container: dict[str, Any], key: str) -> list[dict[str, Any]]:
    value = container.get(key) or []
    if not isinstance(value, list) or not all(isinstance(item, dict) for item in value):
        raise SeedImportError(f"'{key}' must be a list of objects.")
    return value


def _require_int(item: dict[str, Any], key: str, kind: str) -> int:
    value = item.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise SeedImportError(f"Each {kind} needs an integer '{key}'.")
    return value
