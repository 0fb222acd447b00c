"""Achievement badges unlocked by skill mastery."""

import structlog
from pydantic import BaseModel, ConfigDict

from reading_heroes.engine.mastery import MASTERED_THRESHOLD
from reading_heroes.models.progress import SkillRecord
from reading_heroes.storage.repository import StudentRepository

logger = structlog.get_logger()


class BadgeDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    icon: str
    skills: tuple[int, ...]

    def is_unlocked(self, skills: dict[int, SkillRecord], threshold: int = MASTERED_THRESHOLD) -> bool:
        return all(s in skills and skills[s].mastery >= threshold for s in self.skills)


BADGE_DEFINITIONS: tuple[BadgeDefinition, ...] = (
    BadgeDefinition(id="vocab", name="Vocabulary Hero", icon="📚", skills=(1, 2, 3, 4)),
    BadgeDefinition(id="direct", name="Direct Comprehension Hero", icon="🎯", skills=(5,)),
    BadgeDefinition(id="analysis", name="Analysis and Comparison Hero", icon="🔍", skills=(6, 7)),
    BadgeDefinition(id="narrative", name="Narrative Hero", icon="📖", skills=(8,)),
    BadgeDefinition(id="reality", name="Real-Life Connection Hero", icon="🌍", skills=(9,)),
    BadgeDefinition(id="taste", name="Literary Taste Hero", icon="✨", skills=(10,)),
    BadgeDefinition(id="opinion", name="Opinion and Critique Hero", icon="💬", skills=(11, 12)),
    BadgeDefinition(id="creative", name="Creativity Hero", icon="🎨", skills=(13,)),
    BadgeDefinition(id="persuade", name="Persuasion Hero", icon="🎤", skills=(14,)),
    BadgeDefinition(id="solutions", name="Solutions Hero", icon="💡", skills=(15,)),
)


def newly_unlocked(
    skills: dict[int, SkillRecord],
    earned: set[str],
    definitions: tuple[BadgeDefinition, ...] = BADGE_DEFINITIONS,
) -> list[str]:
    """Badge ids unlocked by ``skills`` that are not already in ``earned``."""
    return [bd.id for bd in definitions if bd.id not in earned and bd.is_unlocked(skills)]


class BadgeEvaluator:
    """Grants badges; badges once earned are never revoked."""

    def __init__(self, repo: StudentRepository, definitions: tuple[BadgeDefinition, ...] = BADGE_DEFINITIONS):
        self.repo = repo
        self.definitions = definitions

    def earned(self) -> list[str]:
        return self.repo.get_badges()

    def evaluate(self) -> set[str]:
        """Unlock and persist newly earned badges; returns only the new ones."""
        badges = self.repo.get_badges()
        new = newly_unlocked(self.repo.get_skills(), set(badges), self.definitions)
        if new:
            self.repo.set_badges(badges + new)
            logger.info("badges_earned", badges=new)
        return set(new)
