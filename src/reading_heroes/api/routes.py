"""REST API routes exposing the trainer engine to the browser front end."""

import functools
import random

import structlog
from fastapi import APIRouter, Header, HTTPException
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from reading_heroes.config import get_settings
from reading_heroes.content.catalog import load_catalog
from reading_heroes.engine.badges import BADGE_DEFINITIONS
from reading_heroes.engine.session import SessionOrchestrator
from reading_heroes.errors import (
    AuthMismatchError,
    ContentValidationError,
    CredentialSetupError,
    InsufficientContentError,
    NotEligibleError,
    ProfileRequiredError,
    SessionStateError,
    TrainerError,
)
from reading_heroes.instructor.auth import InstructorAuth
from reading_heroes.models.content import SKILL_IDS, skill_name
from reading_heroes.models.progress import StudentProfile
from reading_heroes.models.session import PlaySession, SessionMode
from reading_heroes.storage.repository import StudentRepository
from reading_heroes.storage.store import JsonFileStore

logger = structlog.get_logger()
router = APIRouter(prefix="/api")

_ERROR_STATUS: dict[type[TrainerError], int] = {
    ContentValidationError: 422,
    InsufficientContentError: 422,
    NotEligibleError: 409,
    ProfileRequiredError: 409,
    SessionStateError: 409,
    CredentialSetupError: 400,
    AuthMismatchError: 401,
}


@functools.lru_cache
def get_orchestrator() -> SessionOrchestrator:
    """Build the engine once: catalog, local file store and orchestrator."""
    settings = get_settings()
    catalog = load_catalog(settings.catalog_file)
    repo = StudentRepository(JsonFileStore(settings.state_dir))
    return SessionOrchestrator(settings, catalog, repo, random.Random())


def _error(exc: TrainerError) -> HTTPException:
    status = next((s for cls, s in _ERROR_STATUS.items() if isinstance(exc, cls)), 400)
    logger.info("request_rejected", error=exc.code, status=status)
    detail: dict = {"error": exc.code, "message": str(exc)}
    if isinstance(exc, NotEligibleError):
        detail["eligibility"] = exc.report.model_dump()
    if isinstance(exc, InsufficientContentError):
        detail["available"] = exc.available
    return HTTPException(status_code=status, detail=detail)


def _session_view(session: PlaySession) -> dict:
    """Client view of a session; never reveals the correct answer ahead of time."""
    question = session.current_question
    view = {
        "session_id": session.session_id,
        "mode": session.mode.value,
        "passage_id": session.passage_id,
        "title": session.title,
        "body": session.body,
        "status": session.status.value,
        "index": session.current_index,
        "total": len(session.questions),
        "correct": session.correct_count,
        "seconds_remaining": session.seconds_remaining(),
        "question": None,
    }
    if question is not None:
        view["question"] = {
            "id": question.id,
            "skill_id": question.skill_id,
            "skill_name": skill_name(question.skill_id),
            "stem": question.stem,
            "choices": list(question.choices),
        }
        if session.mode == SessionMode.SKILL:
            view["title"] = f"{session.title}: {question.passage_title}"
            view["body"] = question.passage_body
    return view


class ProfileRequest(BaseModel):
    name: str = Field(min_length=1)
    class_name: str = ""


class StartSessionRequest(BaseModel):
    mode: SessionMode = SessionMode.PRACTICE
    passage_id: str | None = None
    skill_id: int | None = None


class AnswerRequest(BaseModel):
    choice_index: int


class SetupRequest(BaseModel):
    password: str
    confirm: str


class LoginRequest(BaseModel):
    password: str


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


@router.put("/profile")
async def set_profile(body: ProfileRequest) -> dict:
    engine = get_orchestrator()
    profile = StudentProfile(name=body.name.strip(), class_name=body.class_name.strip())
    engine.repo.set_profile(profile)
    return profile.model_dump()


@router.delete("/profile")
async def clear_profile() -> dict:
    """Student self-reset: clears their own progress and ends any session."""
    get_orchestrator().reset_student()
    return {"reset": True}


@router.get("/dashboard")
async def dashboard() -> dict:
    """Progress, mastery, badges and daily streak for the current student."""
    engine = get_orchestrator()
    progress = engine.ledger.progress
    earned = set(engine.badges.earned())
    profile = engine.repo.get_profile()
    return {
        "profile": profile.model_dump() if profile else None,
        "progress": progress.model_dump(),
        "level": engine.ledger.level_for(progress),
        "average_percent": progress.average_percent,
        "skills": engine.mastery.mastery_map(),
        "weakest_skills": engine.mastery.weakest_skills(),
        "badges": [
            {**bd.model_dump(), "earned": bd.id in earned} for bd in BADGE_DEFINITIONS
        ],
        "daily": engine.daily.state().model_dump(),
        "tip": engine.daily.tip(),
    }


@router.get("/skills")
async def list_skills() -> list[dict]:
    engine = get_orchestrator()
    mastery = engine.mastery.mastery_map()
    return [
        {
            "id": sid,
            "name": skill_name(sid),
            "mastery": mastery[sid],
            "questions": engine.catalog.question_count(sid),
        }
        for sid in SKILL_IDS
    ]


@router.get("/passages")
async def list_passages() -> list[dict]:
    engine = get_orchestrator()
    completed = engine.ledger.completed_passages()
    return [
        {
            "id": p.id,
            "title": p.title,
            "genre": p.genre,
            "difficulty": p.difficulty.value,
            "questions": len(p.questions),
            "best_score": completed[p.id].best_score if p.id in completed else None,
        }
        for p in engine.catalog
    ]


@router.post("/sessions")
async def start_session(body: StartSessionRequest) -> dict:
    engine = get_orchestrator()
    try:
        session = engine.start(body.mode, passage_id=body.passage_id, skill_id=body.skill_id)
    except TrainerError as e:
        raise _error(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail={"error": "bad_request", "message": str(e)})
    if session.deadline is not None:
        engine.countdown.start()
    return _session_view(session)


@router.get("/sessions/current")
async def current_session() -> dict:
    engine = get_orchestrator()
    engine.check_deadline()
    if engine.current is None:
        raise HTTPException(status_code=404, detail={"error": "no_session", "message": "No active session"})
    view = _session_view(engine.current)
    view["report"] = engine.last_report.model_dump() if engine.last_report else None
    return view


@router.post("/sessions/current/answer")
async def submit_answer(body: AnswerRequest) -> dict:
    engine = get_orchestrator()
    try:
        outcome = engine.answer(body.choice_index)
    except TrainerError as e:
        raise _error(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail={"error": "bad_request", "message": str(e)})
    return {
        "outcome": outcome.model_dump(),
        "session": _session_view(engine.current),
        "report": engine.last_report.model_dump() if outcome.finished else None,
    }


@router.post("/sessions/current/expire")
async def expire_session() -> dict:
    engine = get_orchestrator()
    report = engine.expire()
    if report is None:
        raise HTTPException(status_code=409, detail={"error": "session_state", "message": "No active session"})
    return report.model_dump()


@router.get("/certificate")
async def certificate_status() -> dict:
    engine = get_orchestrator()
    certificate = engine.certificates.certificate
    return {
        "eligibility": engine.certificates.check_eligibility().model_dump(),
        "certificate": certificate.model_dump() if certificate else None,
    }


@router.post("/certificate")
async def issue_certificate() -> dict:
    engine = get_orchestrator()
    try:
        return engine.certificates.issue().model_dump()
    except TrainerError as e:
        raise _error(e)


@router.get("/certificate/verify/{code}")
async def verify_certificate(code: str) -> dict:
    engine = get_orchestrator()
    return engine.certificates.verify(code).model_dump()


async def _require_instructor(password: str | None) -> InstructorAuth:
    auth = InstructorAuth(get_orchestrator().repo)
    try:
        await auth.login(password or "")
    except TrainerError as e:
        raise _error(e)
    return auth


@router.get("/instructor/status")
async def instructor_status() -> dict:
    return {"configured": InstructorAuth(get_orchestrator().repo).is_configured}


@router.post("/instructor/setup")
async def instructor_setup(body: SetupRequest) -> dict:
    auth = InstructorAuth(get_orchestrator().repo)
    if auth.is_configured:
        raise HTTPException(
            status_code=409,
            detail={"error": "credential_setup", "message": "Instructor password already set"},
        )
    try:
        await auth.setup(body.password, body.confirm)
    except TrainerError as e:
        raise _error(e)
    return {"configured": True}


@router.post("/instructor/login")
async def instructor_login(body: LoginRequest) -> dict:
    await _require_instructor(body.password)
    return {"authenticated": True}


@router.get("/instructor/roster")
async def instructor_roster(x_instructor_password: str | None = Header(default=None)) -> dict:
    await _require_instructor(x_instructor_password)
    engine = get_orchestrator()
    current = engine.roster.current_snapshot()
    return {
        "current": current.model_dump() if current else None,
        "students": [
            {**s.model_dump(), "average_percent": s.average_percent}
            for s in engine.roster.students()
        ],
    }


@router.get("/instructor/export.csv")
async def instructor_export(x_instructor_password: str | None = Header(default=None)) -> PlainTextResponse:
    await _require_instructor(x_instructor_password)
    csv_text = get_orchestrator().roster.export_csv()
    return PlainTextResponse(
        "\ufeff" + csv_text,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": 'attachment; filename="reading_heroes_report.csv"'},
    )


@router.post("/instructor/reset-student")
async def instructor_reset_student(x_instructor_password: str | None = Header(default=None)) -> dict:
    await _require_instructor(x_instructor_password)
    get_orchestrator().reset_student()
    return {"reset": True}


@router.post("/instructor/reset-all")
async def instructor_reset_all(x_instructor_password: str | None = Header(default=None)) -> dict:
    """Remove every stored key, including this instructor password and the roster."""
    await _require_instructor(x_instructor_password)
    get_orchestrator().reset_all()
    return {"reset": True}
