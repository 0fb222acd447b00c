"""Typed, self-healing access to persisted student state."""

from collections.abc import Callable
from typing import Any, TypeVar

import structlog
from pydantic import TypeAdapter

from reading_heroes.models.progress import (
    Certificate,
    CompletedPassageRecord,
    DailyState,
    Progress,
    SkillRecord,
    StudentProfile,
    StudentSnapshot,
)
from reading_heroes.storage.store import STUDENT_KEYS, StateStore, StoreKey

logger = structlog.get_logger()

T = TypeVar("T")

_skills_adapter = TypeAdapter(dict[int, SkillRecord])
_completed_adapter = TypeAdapter(list[CompletedPassageRecord])
_badges_adapter = TypeAdapter(list[str])
_students_adapter = TypeAdapter(list[StudentSnapshot])
_str_adapter = TypeAdapter(str)


class StudentRepository:
    """Reads and writes engine entities through an injected state store.

    Absent or corrupt entries fall back to the entity's default so a damaged
    record never takes the rest of the student's state down with it.
    """

    def __init__(self, store: StateStore):
        self.store = store

    def _load(self, key: StoreKey, parse: Callable[[Any], T], default: Callable[[], T]) -> T:
        try:
            raw = self.store.get(key)
            if raw is None:
                return default()
            return parse(raw)
        except (ValueError, TypeError, OSError) as e:
            logger.warning("state_corrupt", key=str(key), error=str(e))
            return default()

    # Profile
    def get_profile(self) -> StudentProfile | None:
        return self._load(StoreKey.PROFILE, StudentProfile.model_validate, lambda: None)

    def set_profile(self, profile: StudentProfile) -> None:
        self.store.set(StoreKey.PROFILE, profile.model_dump(mode="json"))

    # Progress
    def get_progress(self) -> Progress:
        return self._load(StoreKey.PROGRESS, Progress.model_validate, Progress)

    def set_progress(self, progress: Progress) -> None:
        self.store.set(StoreKey.PROGRESS, progress.model_dump(mode="json"))

    # Skills
    def get_skills(self) -> dict[int, SkillRecord]:
        return self._load(StoreKey.SKILLS, _skills_adapter.validate_python, dict)

    def set_skills(self, skills: dict[int, SkillRecord]) -> None:
        self.store.set(StoreKey.SKILLS, _skills_adapter.dump_python(skills, mode="json"))

    # Completed passages
    def get_completed(self) -> dict[str, CompletedPassageRecord]:
        records = self._load(StoreKey.COMPLETED, _completed_adapter.validate_python, list)
        return {r.passage_id: r for r in records}

    def set_completed(self, completed: dict[str, CompletedPassageRecord]) -> None:
        records = list(completed.values())
        self.store.set(StoreKey.COMPLETED, _completed_adapter.dump_python(records, mode="json"))

    # Daily challenge
    def get_daily(self) -> DailyState:
        return self._load(StoreKey.DAILY, DailyState.model_validate, DailyState)

    def set_daily(self, daily: DailyState) -> None:
        self.store.set(StoreKey.DAILY, daily.model_dump(mode="json"))

    # Badges
    def get_badges(self) -> list[str]:
        return self._load(StoreKey.BADGES, _badges_adapter.validate_python, list)

    def set_badges(self, badges: list[str]) -> None:
        self.store.set(StoreKey.BADGES, list(badges))

    # Certificate
    def get_certificate(self) -> Certificate | None:
        return self._load(StoreKey.CERTIFICATE, Certificate.model_validate, lambda: None)

    def set_certificate(self, certificate: Certificate) -> None:
        self.store.set(StoreKey.CERTIFICATE, certificate.model_dump(mode="json"))

    # Instructor credential
    def get_admin_credential(self) -> tuple[str, str] | None:
        """Return ``(hash, salt)`` or None when no credential is stored."""
        digest = self._load(StoreKey.ADMIN_HASH, _str_adapter.validate_python, lambda: None)
        salt = self._load(StoreKey.ADMIN_SALT, _str_adapter.validate_python, lambda: None)
        if not digest or not salt:
            return None
        return digest, salt

    def set_admin_credential(self, digest: str, salt: str) -> None:
        self.store.set(StoreKey.ADMIN_HASH, digest)
        self.store.set(StoreKey.ADMIN_SALT, salt)

    # Instructor roster
    def get_students(self) -> list[StudentSnapshot]:
        return self._load(StoreKey.STUDENTS, _students_adapter.validate_python, list)

    def set_students(self, students: list[StudentSnapshot]) -> None:
        self.store.set(StoreKey.STUDENTS, _students_adapter.dump_python(students, mode="json"))

    def clear_student_data(self) -> None:
        """Remove the current student's state; keeps the credential and roster."""
        for key in STUDENT_KEYS:
            self.store.remove(key)
        logger.info("student_data_cleared")

    def clear_all(self) -> None:
        for key in StoreKey:
            self.store.remove(key)
        logger.info("all_data_cleared")
