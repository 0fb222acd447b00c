"""Student progression state models."""

import math
from datetime import datetime

from pydantic import BaseModel, Field

HISTORY_CAPACITY = 10
MASTERY_WINDOW = 3


def percent(part: int, whole: int) -> int:
    """Integer percentage rounded half up; 0 when ``whole`` is 0."""
    if whole <= 0:
        return 0
    return math.floor(100 * part / whole + 0.5)


class StudentProfile(BaseModel):
    name: str = Field(min_length=1)
    class_name: str = ""


class SkillRecord(BaseModel):
    """Rolling correctness record for one skill."""

    history: list[bool] = Field(default_factory=list, max_length=HISTORY_CAPACITY)
    total_correct: int = Field(default=0, ge=0)
    total_answered: int = Field(default=0, ge=0)
    mastery: int = Field(default=0, ge=0, le=100)

    def record(self, is_correct: bool) -> None:
        """Append an outcome, evict beyond capacity and recompute mastery."""
        self.history.append(is_correct)
        if len(self.history) > HISTORY_CAPACITY:
            del self.history[: len(self.history) - HISTORY_CAPACITY]
        self.total_answered += 1
        if is_correct:
            self.total_correct += 1
        recent = self.history[-MASTERY_WINDOW:]
        if recent:
            self.mastery = percent(sum(recent), len(recent))


class Progress(BaseModel):
    """Lifetime experience and answer counters.

    Level is not stored here; it is always derived from xp by the ledger.
    """

    xp: int = Field(default=0, ge=0)
    texts_completed: int = Field(default=0, ge=0)
    total_correct: int = Field(default=0, ge=0)
    total_answered: int = Field(default=0, ge=0)

    @property
    def average_percent(self) -> int:
        return percent(self.total_correct, self.total_answered)

    def level(self, xp_per_level: int) -> int:
        return self.xp // xp_per_level + 1


class CompletedPassageRecord(BaseModel):
    passage_id: str
    best_score: int = Field(ge=0, le=100)
    attempts: int = Field(default=1, ge=1)
    last_attempt: datetime = Field(default_factory=datetime.now)


class DailyState(BaseModel):
    last_date: str | None = None  # ISO calendar date in the reference timezone
    streak: int = Field(default=0, ge=0)
    today_done: bool = False
    today_passage_id: str | None = None


class Certificate(BaseModel):
    """Completion record; immutable once issued."""

    name: str
    class_name: str
    issued_at: datetime = Field(default_factory=datetime.now)
    average_percent: int
    grade: str
    verification_code: str
    xp: int
    texts_completed: int


class StudentSnapshot(BaseModel):
    """Denormalized roster entry for the instructor view."""

    name: str
    class_name: str
    xp: int = 0
    level: int = 1
    texts_completed: int = 0
    total_correct: int = 0
    total_answered: int = 0
    skills: dict[int, int] = Field(default_factory=dict)
    last_active: datetime = Field(default_factory=datetime.now)

    @property
    def average_percent(self) -> int:
        return percent(self.total_correct, self.total_answered)
