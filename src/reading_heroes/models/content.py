"""Reading passage and question models."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

SKILL_IDS: tuple[int, ...] = tuple(range(1, 16))
CHOICES_PER_QUESTION = 4

SKILL_NAMES: dict[int, str] = {
    1: "Word meanings",
    2: "Similar words",
    3: "Synonyms and antonyms",
    4: "Using vocabulary",
    5: "Direct comprehension",
    6: "Comparison and analysis",
    7: "Main and supporting ideas",
    8: "Characters and events",
    9: "Connecting to real life",
    10: "Aesthetic expressions",
    11: "Clarity of information",
    12: "Values and attitudes",
    13: "Titles and rewording",
    14: "Persuasion and reasoning",
    15: "Applying the moral",
}


def skill_name(skill_id: int) -> str:
    """Display name for a skill id."""
    return SKILL_NAMES.get(skill_id, f"Skill {skill_id}")


class Difficulty(StrEnum):
    """Passage difficulty tiers."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class Question(BaseModel):
    """A multiple-choice question attached to a passage."""

    model_config = ConfigDict(frozen=True)

    id: str
    passage_id: str
    skill_id: int = Field(ge=SKILL_IDS[0], le=SKILL_IDS[-1])
    stem: str = Field(min_length=1)
    choices: tuple[str, ...]
    correct_index: int
    explanation: str | None = None

    @field_validator("choices")
    @classmethod
    def _four_choices(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if len(value) != CHOICES_PER_QUESTION:
            raise ValueError(f"expected {CHOICES_PER_QUESTION} choices, got {len(value)}")
        return value

    @model_validator(mode="after")
    def _correct_index_in_range(self) -> "Question":
        if not 0 <= self.correct_index < len(self.choices):
            raise ValueError(f"correct_index {self.correct_index} does not index a choice")
        return self

    @property
    def correct_choice(self) -> str:
        return self.choices[self.correct_index]


class Passage(BaseModel):
    """A reading text plus its question set."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    genre: str = ""
    difficulty: Difficulty = Difficulty.MEDIUM
    body: str
    questions: tuple[Question, ...] = Field(min_length=1)

    @model_validator(mode="before")
    @classmethod
    def _attach_passage_id(cls, data):
        """Questions in content files may omit their owning passage id."""
        if isinstance(data, dict) and "id" in data:
            questions = []
            for q in data.get("questions") or []:
                if isinstance(q, dict):
                    q = {"passage_id": data["id"], **q}
                questions.append(q)
            data = {**data, "questions": questions}
        return data

    @model_validator(mode="after")
    def _questions_belong_here(self) -> "Passage":
        for q in self.questions:
            if q.passage_id != self.id:
                raise ValueError(f"question {q.id} belongs to passage {q.passage_id}, not {self.id}")
        return self


class SkillDrillQuestion(BaseModel):
    """A question gathered for a skill drill, with the passage it came from."""

    model_config = ConfigDict(frozen=True)

    question: Question
    passage_id: str
    passage_title: str
    passage_body: str

    @property
    def id(self) -> str:
        return self.question.id

    @property
    def skill_id(self) -> int:
        return self.question.skill_id

    @property
    def stem(self) -> str:
        return self.question.stem

    @property
    def choices(self) -> tuple[str, ...]:
        return self.question.choices

    @property
    def correct_index(self) -> int:
        return self.question.correct_index

    @property
    def explanation(self) -> str | None:
        return self.question.explanation
