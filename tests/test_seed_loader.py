import asyncio
import json

import pytest

from quiz_live.core.seed_loader import SeedImportError, load_seed_file, parse_seed
from quiz_live.core.services.memory_store import InMemoryStore

SEED = {
    "quizzes": [
        {
            "id": 1,
            "title": "Fractions",
            "total_time": 600,
            "questions": [
                {"id": 11, "question_text": "What is $1/2 + 1/4$?", "options": ["3/4", "2/6"],
                 "correct_answers": ["3/4"]},
                {"id": "q-12", "question_text": "Half of 8?", "correct_answers": "4"},
            ],
        }
    ],
    "students": [{"id": 7, "name": "Ada", "school": "North", "class": "5", "section": "B"}],
    "assignments": [{"quiz_id": 1, "student_id": 7, "shuffle_questions": True}],
}


def test_seed_file_populates_the_store(tmp_path):
    seed_path = tmp_path / "seed.json"
    seed_path.write_text(json.dumps(SEED), encoding="utf-8")
    store = InMemoryStore()

    seed = load_seed_file(seed_path, store)

    async def lookup():
        return (
            await store.get_quiz(1),
            await store.get_quiz_questions(1),
            await store.get_assignment(1, 7),
            await store.fetch_answer_keys([11, "q-12"]),
        )

    quiz, questions, assignment, keys = asyncio.run(lookup())
    assert len(seed.students) == 1
    assert quiz.total_time == 600
    assert [q.id for q in questions] == [11, "q-12"]
    assert assignment.shuffle_questions is True
    assert keys == {11: ["3/4"], "q-12": ["4"]}


def test_invalid_json_is_reported(tmp_path):
    seed_path = tmp_path / "seed.json"
    seed_path.write_text("{not json", encoding="utf-8")

    with pytest.raises(SeedImportError):
        load_seed_file(seed_path, InMemoryStore())


@pytest.mark.parametrize(
    "raw",
    [
        [],
        {"quizzes": [{"id": 1}]},
        {"quizzes": [{"id": 1, "title": "T", "total_time": 0}]},
        {"quizzes": [{"id": 1, "title": "T", "questions": [{"id": 1, "question_text": ""}]}]},
        {"assignments": [{"quiz_id": 5, "student_id": 7}]},
    ],
)
def test_malformed_seed_is_rejected(raw):
    with pytest.raises(SeedImportError):
        parse_seed(raw)
