"""Tests for per-skill mastery tracking."""

import pytest

from reading_heroes.engine.mastery import MasteryTracker, validate_skill_id
from reading_heroes.errors import ContentValidationError


@pytest.fixture
def tracker(repo):
    return MasteryTracker(repo)


class TestValidateSkillId:
    def test_accepts_range(self):
        assert validate_skill_id(1) == 1
        assert validate_skill_id(15) == 15

    @pytest.mark.parametrize("skill_id", [0, 16, -1, True, "3", 2.0, None])
    def test_rejects_invalid(self, skill_id):
        with pytest.raises(ContentValidationError):
            validate_skill_id(skill_id)


class TestMasteryTracker:
    def test_record_persists(self, tracker, repo):
        tracker.record_answer(4, True)
        tracker.record_answer(4, False)
        record = repo.get_skills()[4]
        assert record.history == [True, False]
        assert record.mastery == 50

    def test_rolling_window(self, tracker):
        for outcome in [True, True, True, False, True, True, False, True, True, True]:
            record = tracker.record_answer(2, outcome)
        assert record.mastery == 100
        record = tracker.record_answer(2, False)
        assert record.mastery == 67
        assert len(record.history) == 10

    def test_invalid_skill_rejected(self, tracker, repo):
        with pytest.raises(ContentValidationError):
            tracker.record_answer(16, True)
        assert repo.get_skills() == {}

    def test_get(self, tracker):
        assert tracker.get(7) is None
        tracker.record_answer(7, True)
        assert tracker.get(7).total_correct == 1

    def test_mastery_map_covers_all_skills(self, tracker):
        tracker.record_answer(3, True)
        mastery = tracker.mastery_map()
        assert list(mastery) == list(range(1, 16))
        assert mastery[3] == 100
        assert mastery[4] == 0

    def test_weakest_skills(self, tracker):
        assert tracker.weakest_skills() == [1, 2, 3]
        tracker.record_answer(1, True)
        tracker.record_answer(2, True)
        tracker.record_answer(2, False)
        assert tracker.weakest_skills() == [3, 4, 5]
        assert tracker.weakest_skills(limit=1) == [3]

    def test_weakest_skills_skips_mastered(self, tracker):
        for sid in range(1, 16):
            tracker.record_answer(sid, True)
        tracker.record_answer(9, False)
        assert tracker.weakest_skills() == [9]
