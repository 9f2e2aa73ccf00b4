from datetime import datetime, timedelta, timezone

import pytest

from quiz_live.core.models import BankQuestion, Identity, Quiz, StudentProfile
from quiz_live.core.services.memory_store import InMemoryStore

START = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now=START):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += timedelta(seconds=seconds)


class RecordingStatistics:
    def __init__(self):
        self.calls = []

    async def record_attempt(self, user_id, summary):
        self.calls.append((user_id, summary))


def populate(store):
    store.add_quiz(
        Quiz(id=1, title="Fractions Check", total_time=600),
        [
            BankQuestion(
                id=11,
                question_text="What is $1/2 + 1/4$?",
                question_type="single",
                options=["3/4", "2/6", "1"],
                correct_answers=["3/4"],
            ),
            BankQuestion(
                id=12,
                question_text="Simplify **2/4**",
                question_type="single",
                options=["1/2", "2/8"],
                correct_answers=["1/2"],
            ),
            BankQuestion(
                id=13,
                question_text="Pick the even numbers",
                question_type="multiple",
                options=["1", "2", "3", "4"],
                correct_answers=["2", "4"],
            ),
        ],
    )
    store.add_quiz(
        Quiz(id=2, title="Speed Round", total_time=2),
        [BankQuestion(id=21, question_text="2 + 2?", options=["4", "5"], correct_answers=["4"])],
    )
    store.add_student(
        StudentProfile(id=7, name="Ada Lovelace", school="North High", class_name="5", section="B")
    )
    store.add_student(
        StudentProfile(id=8, name="Alan Turing", school="South High", class_name="6", section="A")
    )
    store.assign(1, 7)
    store.assign(1, 8)
    store.assign(2, 7)
    return store


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return populate(InMemoryStore())


@pytest.fixture
def statistics():
    return RecordingStatistics()


@pytest.fixture
def admin():
    return Identity(user_id=1, role="admin")


@pytest.fixture
def teacher():
    return Identity(user_id=2, role="teacher")
