"""Instructor roster snapshots and CSV export."""

import csv
import io
from datetime import datetime

import structlog

from reading_heroes.models.content import SKILL_IDS
from reading_heroes.models.progress import StudentSnapshot
from reading_heroes.storage.repository import StudentRepository

logger = structlog.get_logger()

_FORMULA_PREFIXES = ("=", "+", "-", "@", "\t", "\r")


def sanitize_csv_cell(value) -> str:
    """Neutralize spreadsheet formula injection; quoting is left to csv.writer."""
    text = str(value)
    if text.startswith(_FORMULA_PREFIXES):
        text = "'" + text
    return text


class Roster:
    """Denormalized per-student rollups for the instructor view.

    Args:
        repo: Student state repository.
        xp_per_level: Level threshold used to derive the snapshot level.
    """

    def __init__(self, repo: StudentRepository, xp_per_level: int = 200):
        self.repo = repo
        self.xp_per_level = xp_per_level

    def current_snapshot(self, now: datetime | None = None) -> StudentSnapshot | None:
        profile = self.repo.get_profile()
        if profile is None:
            return None
        progress = self.repo.get_progress()
        skills = self.repo.get_skills()
        return StudentSnapshot(
            name=profile.name,
            class_name=profile.class_name,
            xp=progress.xp,
            level=progress.level(self.xp_per_level),
            texts_completed=progress.texts_completed,
            total_correct=progress.total_correct,
            total_answered=progress.total_answered,
            skills={sid: skills[sid].mastery if sid in skills else 0 for sid in SKILL_IDS},
            last_active=now or datetime.now(),
        )

    def save_snapshot(self, now: datetime | None = None) -> StudentSnapshot | None:
        """Upsert the current student's snapshot keyed by (name, class)."""
        snapshot = self.current_snapshot(now)
        if snapshot is None:
            return None
        students = self.repo.get_students()
        for i, existing in enumerate(students):
            if (existing.name, existing.class_name) == (snapshot.name, snapshot.class_name):
                students[i] = snapshot
                break
        else:
            students.append(snapshot)
        self.repo.set_students(students)
        logger.debug("snapshot_saved", name=snapshot.name, class_name=snapshot.class_name)
        return snapshot

    def students(self) -> list[StudentSnapshot]:
        return self.repo.get_students()

    def export_csv(self) -> str:
        """CSV of every roster entry, or of the current student if the roster is empty."""
        rows = self.repo.get_students()
        if not rows:
            current = self.current_snapshot()
            rows = [current] if current else []

        buf = io.StringIO()
        writer = csv.writer(buf, lineterminator="\n")
        writer.writerow(
            ["name", "class", "date"]
            + [f"skill {sid}" for sid in SKILL_IDS]
            + ["average", "xp", "passages"]
        )
        for s in rows:
            writer.writerow(
                [sanitize_csv_cell(v) for v in (s.name, s.class_name, s.last_active.date().isoformat())]
                + [sanitize_csv_cell(f"{s.skills.get(sid, 0)}%") for sid in SKILL_IDS]
                + [sanitize_csv_cell(v) for v in (f"{s.average_percent}%", s.xp, s.texts_completed)]
            )
        logger.info("roster_exported", rows=len(rows))
        return buf.getvalue()
