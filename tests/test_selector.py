"""Tests for passage selection, choice shuffling and skill drills."""

import random

import pytest

from reading_heroes.content.catalog import Catalog
from reading_heroes.engine import selector as selector_module
from reading_heroes.engine.selector import QuestionSelector, shuffle_question
from reading_heroes.errors import ContentValidationError, InsufficientContentError
from reading_heroes.models.content import Question, SkillDrillQuestion
from reading_heroes.models.progress import CompletedPassageRecord


@pytest.fixture
def selector(catalog, repo):
    return QuestionSelector(catalog, repo, random.Random(3))


class TestShuffleQuestion:
    def test_permutation_keeps_correct_answer(self, catalog):
        original = catalog.get("P1").questions[2]
        for seed in range(20):
            shuffled = shuffle_question(original, random.Random(seed))
            assert sorted(shuffled.choices) == sorted(original.choices)
            assert shuffled.correct_choice == original.correct_choice
            assert shuffled.id == original.id

    def test_original_untouched(self, catalog):
        original = catalog.get("P1").questions[0]
        shuffle_question(original, random.Random(1))
        assert original.choices == ("alpha", "bravo", "charlie", "delta")


class TestNextPassage:
    def test_requested_passage(self, selector):
        assert selector.next_passage("P2").id == "P2"

    def test_unknown_id_falls_back(self, selector, catalog):
        passage = selector.next_passage("NOPE")
        assert catalog.get(passage.id) is passage

    def test_prefers_unseen(self, selector, repo):
        repo.set_completed(
            {
                "P1": CompletedPassageRecord(passage_id="P1", best_score=100),
                "P2": CompletedPassageRecord(passage_id="P2", best_score=100),
            }
        )
        for _ in range(5):
            assert selector.next_passage().id == "P3"

    def test_all_seen_still_returns_a_passage(self, selector, repo, catalog):
        repo.set_completed(
            {p.id: CompletedPassageRecord(passage_id=p.id, best_score=80) for p in catalog}
        )
        assert selector.next_passage().id in {"P1", "P2", "P3"}

    def test_passage_questions_shuffled_copies(self, selector, catalog):
        passage = catalog.get("P3")
        questions = selector.passage_questions(passage)
        assert [q.id for q in questions] == [q.id for q in passage.questions]
        for shuffled, original in zip(questions, passage.questions):
            assert shuffled.correct_choice == original.correct_choice


class TestSkillDrill:
    def test_only_requested_skill(self, selector, catalog):
        drill = selector.skill_drill(1)
        assert len(drill) == 3
        assert all(isinstance(item, SkillDrillQuestion) for item in drill)
        assert all(item.skill_id == 1 for item in drill)
        originals = {q.id: q for _, q in catalog.questions()}
        for item in drill:
            assert item.choices[item.correct_index] == originals[item.id].correct_choice
            assert item.passage_title == f"Title {item.passage_id}"

    def test_max_questions(self, repo, passage_factory):
        catalog = Catalog.from_dict({"passages": [passage_factory("P1", [4] * 6)]})
        drill = QuestionSelector(catalog, repo, random.Random(0)).skill_drill(4, max_questions=4)
        assert len(drill) == 4
        assert len({item.id for item in drill}) == 4

    def test_too_few_questions(self, selector):
        with pytest.raises(InsufficientContentError) as exc_info:
            selector.skill_drill(2)
        assert exc_info.value.available == 2
        assert exc_info.value.code == "insufficient_skill_content"

    def test_no_questions(self, selector):
        with pytest.raises(InsufficientContentError) as exc_info:
            selector.skill_drill(3)
        assert exc_info.value.available == 0

    def test_limit_below_minimum(self, selector):
        with pytest.raises(InsufficientContentError):
            selector.skill_drill(1, max_questions=2)

    @pytest.mark.parametrize("skill_id", [0, 16])
    def test_invalid_skill(self, selector, skill_id):
        with pytest.raises(ContentValidationError):
            selector.skill_drill(skill_id)

    def test_mislabelled_question_rejected(self, selector, monkeypatch):
        class Mislabelled:
            def __init__(self, question: Question, **kwargs):
                self.question = question
                self.id = question.id
                self.skill_id = question.skill_id + 1

        monkeypatch.setattr(selector_module, "SkillDrillQuestion", Mislabelled)
        with pytest.raises(ContentValidationError) as exc_info:
            selector.skill_drill(1)
        assert exc_info.value.code == "validation_failure"
