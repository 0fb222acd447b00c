"""Daily challenge: one passage per calendar day and a consecutive-day streak."""

from datetime import date, datetime
from zoneinfo import ZoneInfo

import structlog

from reading_heroes.content.catalog import Catalog
from reading_heroes.models.content import Passage
from reading_heroes.models.progress import DailyState
from reading_heroes.storage.repository import StudentRepository

logger = structlog.get_logger()


def reference_date(timezone: str, now: datetime | None = None) -> str:
    """ISO calendar date in ``timezone``, independent of the host's timezone."""
    tz = ZoneInfo(timezone)
    moment = now.astimezone(tz) if now is not None else datetime.now(tz)
    return moment.date().isoformat()


def date_hash(date_str: str) -> int:
    """Stable non-negative hash of a date string (32-bit ``h * 31 + c``)."""
    h = 0
    for ch in date_str:
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


def next_streak(daily: DailyState, today: str) -> int:
    """Streak value for a challenge first served on ``today``.

    +1 when the previous served day was yesterday and its challenge was done,
    reset to 0 after a gap of more than one day, unchanged otherwise.
    """
    if not daily.last_date:
        return daily.streak
    elapsed = (date.fromisoformat(today) - date.fromisoformat(daily.last_date)).days
    if elapsed == 1 and daily.today_done:
        return daily.streak + 1
    if elapsed > 1:
        return 0
    return daily.streak


class DailyChallenge:
    """Serves the same passage to every student on a given day.

    Args:
        catalog: Loaded content catalog.
        repo: Student state repository.
        timezone: Reference timezone that defines the calendar day.
        tips: Optional pool of daily reading tips.
    """

    def __init__(
        self,
        catalog: Catalog,
        repo: StudentRepository,
        timezone: str = "Asia/Riyadh",
        tips: list[str] | None = None,
    ):
        self.catalog = catalog
        self.repo = repo
        self.timezone = timezone
        self.tips = tips or []

    def today(self, now: datetime | None = None) -> str:
        return reference_date(self.timezone, now)

    def passage_for_date(self, date_str: str) -> Passage:
        index = date_hash(date_str) % len(self.catalog)
        return self.catalog.passages[index]

    def get_passage(self, today: str | None = None) -> Passage:
        """Today's passage; memoized so re-entry on the same day repeats it."""
        today = today or self.today()
        daily = self.repo.get_daily()

        if daily.last_date == today and daily.today_passage_id:
            return self.catalog.get(daily.today_passage_id) or self.catalog.passages[0]

        streak = next_streak(daily, today)
        passage = self.passage_for_date(today)
        self.repo.set_daily(
            DailyState(
                last_date=today,
                streak=streak,
                today_done=False,
                today_passage_id=passage.id,
            )
        )
        logger.info("daily_challenge_assigned", date=today, passage_id=passage.id, streak=streak)
        return passage

    def mark_done(self) -> DailyState:
        daily = self.repo.get_daily()
        daily.today_done = True
        self.repo.set_daily(daily)
        return daily

    def state(self) -> DailyState:
        return self.repo.get_daily()

    def tip(self, today: str | None = None) -> str:
        if not self.tips:
            return ""
        return self.tips[date_hash(today or self.today()) % len(self.tips)]
