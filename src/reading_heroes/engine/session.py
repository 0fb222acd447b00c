"""Play session orchestration: question flow, answer intake and completion."""

import random
import uuid
from datetime import datetime, timedelta

import structlog

from reading_heroes.config import Settings
from reading_heroes.content.catalog import Catalog
from reading_heroes.engine.badges import BadgeEvaluator
from reading_heroes.engine.certificate import CertificateAuthority
from reading_heroes.engine.daily import DailyChallenge
from reading_heroes.engine.mastery import MasteryTracker
from reading_heroes.engine.progression import ProgressionLedger
from reading_heroes.engine.selector import QuestionSelector
from reading_heroes.engine.timer import ExamCountdown
from reading_heroes.errors import SessionStateError
from reading_heroes.instructor.roster import Roster
from reading_heroes.models.content import CHOICES_PER_QUESTION, skill_name
from reading_heroes.models.session import (
    AnswerOutcome,
    AnswerRecord,
    PlaySession,
    SessionMode,
    SessionReport,
    SessionStatus,
)
from reading_heroes.storage.repository import StudentRepository

logger = structlog.get_logger()

WEAK_SESSION_RATIO = 0.5
EXPLAINED_MODES = frozenset({SessionMode.PRACTICE, SessionMode.SKILL})


class SessionOrchestrator:
    """Runs one play-through at a time against the student's state.

    Starting a session discards any unfinished previous one. Each answer
    updates mastery and xp immediately; finishing triggers passage
    bookkeeping, the roster snapshot, badge evaluation and the certificate
    eligibility check.

    Args:
        settings: Reward, exam and drill configuration.
        catalog: Loaded content catalog.
        repo: Student state repository.
        rng: Random source for passage picks and shuffles.
    """

    def __init__(
        self,
        settings: Settings,
        catalog: Catalog,
        repo: StudentRepository,
        rng: random.Random | None = None,
    ):
        self.settings = settings
        self.catalog = catalog
        self.repo = repo
        self.selector = QuestionSelector(catalog, repo, rng)
        self.daily = DailyChallenge(
            catalog, repo, timezone=settings.reference_timezone, tips=settings.daily_tips
        )
        self.mastery = MasteryTracker(repo)
        self.ledger = ProgressionLedger(repo, settings)
        self.badges = BadgeEvaluator(repo)
        self.certificates = CertificateAuthority(repo, settings.certificate)
        self.roster = Roster(repo, xp_per_level=settings.xp_per_level)
        self.countdown = ExamCountdown(self)

        self._session: PlaySession | None = None
        self.last_report: SessionReport | None = None

    @property
    def current(self) -> PlaySession | None:
        return self._session

    def start(
        self,
        mode: SessionMode,
        passage_id: str | None = None,
        skill_id: int | None = None,
        now: datetime | None = None,
    ) -> PlaySession:
        """Start a new session, discarding any unfinished one.

        Raises:
            ContentValidationError: Skill drill content failed validation.
            InsufficientContentError: Too few questions for the skill drill.
        """
        mode = SessionMode(mode)
        now = now or datetime.now()

        if mode == SessionMode.SKILL:
            if skill_id is None:
                raise ValueError("skill_id is required for a skill drill")
            questions = self.selector.skill_drill(skill_id, self.settings.skill_drill_max_questions)
            session = PlaySession(
                session_id=str(uuid.uuid4()),
                mode=mode,
                passage_id=f"SKILL_{skill_id}",
                title=skill_name(skill_id),
                skill_id=skill_id,
                questions=questions,
                started_at=now,
            )
        else:
            if mode == SessionMode.DAILY:
                passage = self.daily.get_passage(self.daily.today(now))
            else:
                passage = self.selector.next_passage(passage_id)
            session = PlaySession(
                session_id=str(uuid.uuid4()),
                mode=mode,
                passage_id=passage.id,
                title=passage.title,
                body=passage.body,
                questions=self.selector.passage_questions(passage),
                started_at=now,
            )
            if mode == SessionMode.EXAM:
                session.deadline = now + timedelta(seconds=self.settings.exam_total_seconds)

        self.discard()
        self._session = session
        self.last_report = None
        logger.info(
            "session_started",
            session_id=session.session_id,
            mode=session.mode.value,
            passage_id=session.passage_id,
            questions=len(session.questions),
        )
        return session

    def discard(self) -> None:
        """Drop the active session without scoring it and stop its countdown."""
        self.countdown.cancel()
        previous = self._session
        if previous is not None and not previous.is_finished:
            logger.info("session_discarded", session_id=previous.session_id, answered=len(previous.answers))
        self._session = None
        self.last_report = None

    def reset_student(self) -> None:
        """Wipe the current student's state; instructor credential and roster stay."""
        self.discard()
        self.repo.clear_student_data()

    def reset_all(self) -> None:
        """Wipe every stored key, instructor credential and roster included."""
        self.discard()
        self.repo.clear_all()

    def _require_active(self, now: datetime | None = None) -> PlaySession:
        session = self._session
        if session is None:
            raise SessionStateError("no session has been started")
        self.check_deadline(now)
        if session.is_finished:
            raise SessionStateError("session is already finished")
        return session

    def answer(self, choice_index: int, now: datetime | None = None) -> AnswerOutcome:
        """Submit an answer for the current question.

        Raises:
            SessionStateError: No session, or the session already finished.
            ValueError: ``choice_index`` is not 0-3.
        """
        session = self._require_active(now)
        if not 0 <= choice_index < CHOICES_PER_QUESTION:
            raise ValueError(f"choice index must be 0-{CHOICES_PER_QUESTION - 1}, got {choice_index}")

        question = session.questions[session.current_index]
        is_correct = choice_index == question.correct_index
        session.answers.append(
            AnswerRecord(
                question_id=question.id,
                skill_id=question.skill_id,
                selected=choice_index,
                correct_index=question.correct_index,
                is_correct=is_correct,
                answered_at=now or datetime.now(),
            )
        )
        skill = self.mastery.record_answer(question.skill_id, is_correct)
        progress = self.ledger.record_answer(is_correct)

        session.current_index += 1
        if session.current_index >= len(session.questions):
            self._finish(session, timed_out=False, now=now)

        return AnswerOutcome(
            is_correct=is_correct,
            correct_index=question.correct_index,
            explanation=question.explanation if session.mode in EXPLAINED_MODES else None,
            xp_awarded=self.ledger.xp_per_correct if is_correct else 0,
            skill=skill,
            progress=progress,
            finished=session.is_finished,
        )

    def check_deadline(self, now: datetime | None = None) -> SessionReport | None:
        """Finish an exam session whose countdown has run out."""
        session = self._session
        if session is None or session.is_finished or session.deadline is None:
            return None
        if (now or datetime.now()) >= session.deadline:
            return self.expire(now)
        return None

    def expire(self, now: datetime | None = None) -> SessionReport | None:
        """Force the active session to finish, scoring what was answered."""
        session = self._session
        if session is None or session.is_finished:
            return None
        logger.info("session_time_expired", session_id=session.session_id, answered=len(session.answers))
        return self._finish(session, timed_out=True, now=now)

    def _finish(self, session: PlaySession, timed_out: bool, now: datetime | None = None) -> SessionReport:
        session.status = SessionStatus.FINISHED
        session.ended_at = now or datetime.now()
        session.timed_out = timed_out
        score = session.score_percent

        if session.mode != SessionMode.SKILL:
            self.ledger.complete_passage(session.passage_id, score)
        self.roster.save_snapshot(session.ended_at)
        if session.mode == SessionMode.DAILY:
            self.daily.mark_done()

        new_badges = self.badges.evaluate()
        eligibility = self.certificates.check_eligibility()
        progress = self.ledger.progress

        breakdown = session.skill_breakdown()
        weak = sorted(
            sid for sid, counts in breakdown.items()
            if counts["correct"] / counts["total"] < WEAK_SESSION_RATIO
        )
        report = SessionReport(
            session_id=session.session_id,
            mode=session.mode,
            passage_id=session.passage_id,
            score_percent=score,
            correct=session.correct_count,
            total=len(session.questions),
            answered=len(session.answers),
            timed_out=timed_out,
            skill_breakdown=breakdown,
            weak_skills=weak,
            new_badges=sorted(new_badges),
            progress=progress,
            level=self.ledger.level_for(progress),
            certificate_eligible=eligibility.eligible,
        )
        self.last_report = report
        logger.info(
            "session_finished",
            session_id=session.session_id,
            mode=session.mode.value,
            score=score,
            timed_out=timed_out,
            new_badges=report.new_badges,
        )
        return report
