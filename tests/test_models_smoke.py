"""Smoke tests for Pydantic models."""

from datetime import datetime

import pytest
from pydantic import ValidationError

from reading_heroes.models.content import Passage, Question, skill_name
from reading_heroes.models.progress import Progress, SkillRecord, percent
from reading_heroes.models.session import AnswerRecord, PlaySession, SessionMode


def _question(**overrides):
    data = {
        "id": "Q1",
        "passage_id": "P1",
        "skill_id": 3,
        "stem": "What does it mean?",
        "choices": ["a", "b", "c", "d"],
        "correct_index": 2,
    }
    data.update(overrides)
    return data


class TestQuestion:
    def test_valid_question(self):
        q = Question.model_validate(_question())
        assert q.correct_choice == "c"
        assert q.explanation is None

    def test_requires_four_choices(self):
        with pytest.raises(ValidationError):
            Question.model_validate(_question(choices=["a", "b", "c"]))

    def test_correct_index_must_point_at_a_choice(self):
        with pytest.raises(ValidationError):
            Question.model_validate(_question(correct_index=4))
        with pytest.raises(ValidationError):
            Question.model_validate(_question(correct_index=-1))

    @pytest.mark.parametrize("skill_id", [0, 16])
    def test_skill_id_range(self, skill_id):
        with pytest.raises(ValidationError):
            Question.model_validate(_question(skill_id=skill_id))

    def test_frozen(self):
        q = Question.model_validate(_question())
        with pytest.raises(ValidationError):
            q.correct_index = 0


class TestPassage:
    def test_questions_inherit_passage_id(self):
        data = _question()
        del data["passage_id"]
        p = Passage.model_validate({"id": "P9", "title": "T", "body": "B", "questions": [data]})
        assert p.questions[0].passage_id == "P9"
        assert p.difficulty == "medium"

    def test_foreign_question_rejected(self):
        with pytest.raises(ValidationError):
            Passage.model_validate(
                {"id": "P9", "title": "T", "body": "B", "questions": [_question(passage_id="P1")]}
            )

    def test_needs_at_least_one_question(self):
        with pytest.raises(ValidationError):
            Passage.model_validate({"id": "P9", "title": "T", "body": "B", "questions": []})


def test_skill_names():
    assert skill_name(1) == "Word meanings"
    assert skill_name(15) == "Applying the moral"
    assert skill_name(99) == "Skill 99"


class TestPercent:
    def test_rounds_half_up(self):
        assert percent(1, 8) == 13
        assert percent(1, 3) == 33
        assert percent(2, 3) == 67
        assert percent(1, 2) == 50

    def test_zero_denominator(self):
        assert percent(0, 0) == 0
        assert percent(3, 0) == 0


class TestSkillRecord:
    def test_mastery_uses_last_three(self):
        record = SkillRecord()
        for outcome in [True, True, True, False, True, True, False, True, True, True]:
            record.record(outcome)
        assert record.mastery == 100
        assert record.total_answered == 10
        assert record.total_correct == 8

    def test_partial_window(self):
        record = SkillRecord()
        record.record(True)
        assert record.mastery == 100
        record.record(False)
        assert record.mastery == 50

    def test_history_capped_at_ten(self):
        record = SkillRecord()
        for i in range(11):
            record.record(i == 0)
        assert len(record.history) == 10
        assert record.history[0] is False
        assert record.total_answered == 11
        assert record.total_correct == 1
        assert record.mastery == 0


class TestProgress:
    def test_defaults(self):
        progress = Progress()
        assert progress.xp == 0
        assert progress.average_percent == 0
        assert progress.level(200) == 1

    def test_level_boundaries(self):
        assert Progress(xp=199).level(200) == 1
        assert Progress(xp=200).level(200) == 2
        assert Progress(xp=650).level(200) == 4

    def test_average(self):
        assert Progress(total_correct=7, total_answered=9).average_percent == 78


class TestPlaySession:
    def _session(self, n_questions=4):
        questions = [Question.model_validate(_question(id=f"Q{i}", skill_id=i + 1)) for i in range(n_questions)]
        return PlaySession(
            session_id="s1",
            mode=SessionMode.PRACTICE,
            passage_id="P1",
            title="T",
            questions=questions,
        )

    def test_score_counts_unanswered_as_wrong(self):
        session = self._session()
        session.answers.append(
            AnswerRecord(question_id="Q0", skill_id=1, selected=2, correct_index=2, is_correct=True)
        )
        assert session.correct_count == 1
        assert session.score_percent == 25

    def test_skill_breakdown(self):
        session = self._session()
        session.answers.extend(
            [
                AnswerRecord(question_id="Q0", skill_id=1, selected=2, correct_index=2, is_correct=True),
                AnswerRecord(question_id="Q1", skill_id=1, selected=0, correct_index=2, is_correct=False),
            ]
        )
        assert session.skill_breakdown() == {1: {"correct": 1, "total": 2}}

    def test_seconds_remaining(self):
        session = self._session()
        assert session.seconds_remaining() is None
        session.deadline = datetime(2025, 1, 1, 10, 0, 30)
        assert session.seconds_remaining(datetime(2025, 1, 1, 10, 0, 0)) == 30
        assert session.seconds_remaining(datetime(2025, 1, 1, 10, 5, 0)) == 0
