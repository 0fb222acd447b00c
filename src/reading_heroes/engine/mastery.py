"""Per-skill mastery tracking."""

import structlog

from reading_heroes.errors import ContentValidationError
from reading_heroes.models.content import SKILL_IDS
from reading_heroes.models.progress import SkillRecord
from reading_heroes.storage.repository import StudentRepository

logger = structlog.get_logger()

MASTERED_THRESHOLD = 80


def validate_skill_id(skill_id: int) -> int:
    if isinstance(skill_id, bool) or not isinstance(skill_id, int) or skill_id not in SKILL_IDS:
        raise ContentValidationError(f"skill id {skill_id!r} is outside {SKILL_IDS[0]}..{SKILL_IDS[-1]}")
    return skill_id


class MasteryTracker:
    """Maintains the rolling correctness window for each skill.

    Mastery is the percentage correct among the last 3 recorded outcomes;
    the 10-entry history only bounds what is kept.
    """

    def __init__(self, repo: StudentRepository):
        self.repo = repo

    def record_answer(self, skill_id: int, is_correct: bool) -> SkillRecord:
        """Record one outcome for ``skill_id`` and return the updated record."""
        validate_skill_id(skill_id)
        skills = self.repo.get_skills()
        record = skills.setdefault(skill_id, SkillRecord())
        record.record(is_correct)
        self.repo.set_skills(skills)
        logger.debug(
            "answer_recorded",
            skill_id=skill_id,
            is_correct=is_correct,
            mastery=record.mastery,
        )
        return record

    def get(self, skill_id: int) -> SkillRecord | None:
        validate_skill_id(skill_id)
        return self.repo.get_skills().get(skill_id)

    def skills(self) -> dict[int, SkillRecord]:
        return self.repo.get_skills()

    def mastery_map(self) -> dict[int, int]:
        """Mastery for all 15 skills, 0 for skills never attempted."""
        skills = self.repo.get_skills()
        return {sid: skills[sid].mastery if sid in skills else 0 for sid in SKILL_IDS}

    def weakest_skills(self, limit: int = 3, threshold: int = MASTERED_THRESHOLD) -> list[int]:
        """Lowest-mastery skills that are still below ``threshold``."""
        ranked = sorted(self.mastery_map().items(), key=lambda item: (item[1], item[0]))
        return [sid for sid, mastery in ranked[:limit] if mastery < threshold]
