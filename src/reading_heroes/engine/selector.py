"""Question selection for passage and skill-drill play."""

import random

import structlog

from reading_heroes.content.catalog import Catalog
from reading_heroes.engine.mastery import validate_skill_id
from reading_heroes.errors import ContentValidationError, InsufficientContentError
from reading_heroes.models.content import CHOICES_PER_QUESTION, Passage, Question, SkillDrillQuestion
from reading_heroes.storage.repository import StudentRepository

logger = structlog.get_logger()

MIN_DRILL_QUESTIONS = 3
DEFAULT_DRILL_QUESTIONS = 15


def shuffle_question(question: Question, rng: random.Random) -> Question:
    """Return a copy with the four choices permuted and correct_index remapped."""
    order = list(range(CHOICES_PER_QUESTION))
    rng.shuffle(order)
    return question.model_copy(
        update={
            "choices": tuple(question.choices[i] for i in order),
            "correct_index": order.index(question.correct_index),
        }
    )


class QuestionSelector:
    """Builds shuffled question sets from the catalog.

    Args:
        catalog: Loaded content catalog.
        repo: Student state (used to find passages not yet completed).
        rng: Random source for passage picks and shuffles.
    """

    def __init__(self, catalog: Catalog, repo: StudentRepository, rng: random.Random | None = None):
        self.catalog = catalog
        self.repo = repo
        self.rng = rng or random.Random()

    def next_passage(self, passage_id: str | None = None) -> Passage:
        """Requested passage, else a random unseen one, else any passage."""
        if passage_id is not None:
            passage = self.catalog.get(passage_id)
            if passage is not None:
                return passage
            logger.warning("passage_not_found", passage_id=passage_id)
        completed = self.repo.get_completed()
        unseen = [p for p in self.catalog if p.id not in completed]
        if unseen:
            return self.rng.choice(unseen)
        return self.rng.choice(self.catalog.passages)

    def passage_questions(self, passage: Passage) -> list[Question]:
        return [shuffle_question(q, self.rng) for q in passage.questions]

    def skill_drill(
        self,
        skill_id: int,
        max_questions: int = DEFAULT_DRILL_QUESTIONS,
    ) -> list[SkillDrillQuestion]:
        """Questions for a single-skill drill.

        Args:
            skill_id: Skill to train (1-15).
            max_questions: Upper bound on returned questions.

        Returns:
            Up to ``max_questions`` shuffled questions, all tagged ``skill_id``.

        Raises:
            ContentValidationError: A gathered question carries another skill id.
            InsufficientContentError: Fewer than 3 questions exist for the skill.
        """
        validate_skill_id(skill_id)
        gathered = [
            SkillDrillQuestion(
                question=q,
                passage_id=passage.id,
                passage_title=passage.title,
                passage_body=passage.body,
            )
            for passage, q in self.catalog.questions()
            if q.skill_id == skill_id
        ]

        mismatched = [item.id for item in gathered if item.skill_id != skill_id]
        if mismatched:
            logger.error("skill_validation_failed", skill_id=skill_id, question_ids=mismatched)
            raise ContentValidationError(
                f"questions {mismatched} do not match requested skill {skill_id}"
            )

        self.rng.shuffle(gathered)
        selected = gathered[:max_questions]
        if len(selected) < MIN_DRILL_QUESTIONS:
            logger.info("skill_content_insufficient", skill_id=skill_id, available=len(gathered))
            raise InsufficientContentError(skill_id, len(gathered), MIN_DRILL_QUESTIONS)

        return [
            item.model_copy(update={"question": shuffle_question(item.question, self.rng)})
            for item in selected
        ]
