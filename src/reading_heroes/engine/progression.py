"""Experience, level and passage-completion bookkeeping."""

from datetime import datetime

import structlog

from reading_heroes.config import Settings
from reading_heroes.models.progress import CompletedPassageRecord, Progress
from reading_heroes.storage.repository import StudentRepository

logger = structlog.get_logger()


class ProgressionLedger:
    """Accumulates xp and completed passages.

    Level is always ``xp // xp_per_level + 1``; it is computed on read and
    never persisted on its own.

    Args:
        repo: Student state repository.
        settings: Reward magnitudes (xp per correct answer, per completed
            passage, per level).
    """

    def __init__(self, repo: StudentRepository, settings: Settings):
        self.repo = repo
        self.xp_per_correct = settings.xp_per_correct
        self.xp_per_text_complete = settings.xp_per_text_complete
        self.xp_per_level = settings.xp_per_level

    @property
    def progress(self) -> Progress:
        return self.repo.get_progress()

    @property
    def level(self) -> int:
        return self.level_for(self.progress)

    def level_for(self, progress: Progress) -> int:
        return progress.level(self.xp_per_level)

    def apply_reward(self, xp_delta: int) -> Progress:
        """Add ``xp_delta`` experience points. xp never decreases."""
        if xp_delta < 0:
            raise ValueError(f"xp reward must not be negative, got {xp_delta}")
        progress = self.repo.get_progress()
        progress.xp += xp_delta
        self.repo.set_progress(progress)
        return progress

    def record_answer(self, is_correct: bool) -> Progress:
        """Update lifetime totals and award the per-correct reward."""
        progress = self.repo.get_progress()
        progress.total_answered += 1
        if is_correct:
            progress.total_correct += 1
            progress.xp += self.xp_per_correct
        self.repo.set_progress(progress)
        return progress

    def complete_passage(
        self,
        passage_id: str,
        score: int,
        bonus_xp: int | None = None,
    ) -> Progress:
        """Count a completed passage and keep its best score.

        Args:
            passage_id: Completed passage.
            score: Score percentage for this attempt.
            bonus_xp: Completion reward; defaults to the configured value.

        Returns:
            Updated progress.
        """
        bonus = self.xp_per_text_complete if bonus_xp is None else bonus_xp
        if bonus < 0:
            raise ValueError(f"xp reward must not be negative, got {bonus}")
        progress = self.repo.get_progress()
        old_level = self.level_for(progress)
        progress.texts_completed += 1
        progress.xp += bonus
        self.repo.set_progress(progress)

        completed = self.repo.get_completed()
        existing = completed.get(passage_id)
        if existing:
            existing.best_score = max(existing.best_score, score)
            existing.attempts += 1
            existing.last_attempt = datetime.now()
        else:
            completed[passage_id] = CompletedPassageRecord(passage_id=passage_id, best_score=score)
        self.repo.set_completed(completed)

        new_level = self.level_for(progress)
        logger.info(
            "passage_completed",
            passage_id=passage_id,
            score=score,
            xp=progress.xp,
            level=new_level,
        )
        if new_level > old_level:
            logger.info("level_up", old_level=old_level, new_level=new_level)
        return progress

    def completed_passages(self) -> dict[str, CompletedPassageRecord]:
        return self.repo.get_completed()
