"""Shared fixtures: in-memory state, a small catalog and a seeded engine."""

import random

import pytest

from reading_heroes.config import Settings
from reading_heroes.content.catalog import Catalog
from reading_heroes.engine.session import SessionOrchestrator
from reading_heroes.storage.repository import StudentRepository
from reading_heroes.storage.store import MemoryStore


def make_question(qid: str, skill_id: int, correct_index: int = 0) -> dict:
    return {
        "id": qid,
        "skill_id": skill_id,
        "stem": f"Question {qid}?",
        "choices": ["alpha", "bravo", "charlie", "delta"],
        "correct_index": correct_index,
        "explanation": f"Explanation for {qid}",
    }


def make_passage(pid: str, skills: list[int]) -> dict:
    return {
        "id": pid,
        "title": f"Title {pid}",
        "genre": "story",
        "body": f"Body of passage {pid}.",
        "questions": [make_question(f"{pid}-Q{i + 1}", s, i % 4) for i, s in enumerate(skills)],
    }


@pytest.fixture
def passage_factory():
    return make_passage


@pytest.fixture
def catalog():
    # skill 1: three questions, skill 2: two, skill 5: three, skill 3: none
    return Catalog.from_dict(
        {
            "passages": [
                make_passage("P1", [1, 1, 2, 5]),
                make_passage("P2", [1, 2, 5, 6]),
                make_passage("P3", [5, 7, 8, 9]),
            ]
        }
    )


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def repo(store):
    return StudentRepository(store)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        xp_per_correct=10,
        xp_per_text_complete=50,
        xp_per_level=200,
        exam_total_minutes=1,
        skill_drill_max_questions=15,
        reference_timezone="Asia/Riyadh",
        daily_tips=["Read slowly.", "Check every choice."],
        data_dir=tmp_path / "state",
    )


@pytest.fixture
def orchestrator(settings, catalog, repo):
    return SessionOrchestrator(settings, catalog, repo, random.Random(7))
