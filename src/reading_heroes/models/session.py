"""Play session data models."""

from datetime import datetime, timedelta
from enum import StrEnum

from pydantic import BaseModel, Field

from reading_heroes.models.content import Question, SkillDrillQuestion
from reading_heroes.models.progress import Progress, SkillRecord, percent


class SessionMode(StrEnum):
    """Ways a student can play."""

    PRACTICE = "practice"
    DAILY = "daily"
    EXAM = "exam"
    SKILL = "skill"


class SessionStatus(StrEnum):
    """Session lifecycle states."""

    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


class AnswerRecord(BaseModel):
    """A single submitted answer."""

    question_id: str
    skill_id: int
    selected: int
    correct_index: int
    is_correct: bool
    answered_at: datetime = Field(default_factory=datetime.now)


class PlaySession(BaseModel):
    """One play-through of an ordered question sequence."""

    session_id: str
    mode: SessionMode
    passage_id: str
    title: str
    body: str = ""
    skill_id: int | None = None
    questions: list[Question | SkillDrillQuestion]
    status: SessionStatus = SessionStatus.IN_PROGRESS
    current_index: int = 0
    answers: list[AnswerRecord] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=datetime.now)
    ended_at: datetime | None = None
    deadline: datetime | None = None
    timed_out: bool = False

    @property
    def is_finished(self) -> bool:
        return self.status == SessionStatus.FINISHED

    @property
    def current_question(self) -> Question | SkillDrillQuestion | None:
        if self.is_finished or self.current_index >= len(self.questions):
            return None
        return self.questions[self.current_index]

    @property
    def correct_count(self) -> int:
        return sum(1 for a in self.answers if a.is_correct)

    @property
    def score_percent(self) -> int:
        """Correct answers over the full question count, answered or not."""
        return percent(self.correct_count, len(self.questions))

    def seconds_remaining(self, now: datetime | None = None) -> int | None:
        if self.deadline is None:
            return None
        remaining = self.deadline - (now or datetime.now())
        return max(0, int(remaining / timedelta(seconds=1)))

    def skill_breakdown(self) -> dict[int, dict[str, int]]:
        """Per-skill correct/total counts for the answers given so far."""
        breakdown: dict[int, dict[str, int]] = {}
        for answer in self.answers:
            entry = breakdown.setdefault(answer.skill_id, {"correct": 0, "total": 0})
            entry["total"] += 1
            if answer.is_correct:
                entry["correct"] += 1
        return breakdown


class AnswerOutcome(BaseModel):
    """Result of submitting one answer."""

    is_correct: bool
    correct_index: int
    explanation: str | None = None
    xp_awarded: int
    skill: SkillRecord
    progress: Progress
    finished: bool


class SessionReport(BaseModel):
    """Summary produced when a session finishes."""

    session_id: str
    mode: SessionMode
    passage_id: str
    score_percent: int
    correct: int
    total: int
    answered: int
    timed_out: bool
    skill_breakdown: dict[int, dict[str, int]]
    weak_skills: list[int]
    new_badges: list[str]
    progress: Progress
    level: int
    certificate_eligible: bool
