"""Best-effort exam countdown driven by the event loop."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from reading_heroes.engine.session import SessionOrchestrator

logger = structlog.get_logger()


class ExamCountdown:
    """Ticks once per interval and expires the exam session when time is up.

    The session also finishes on its own once the last question is answered;
    the countdown then stops at its next tick.

    Args:
        orchestrator: Orchestrator owning the exam session.
        interval: Seconds between ticks.
        on_tick: Optional async callback receiving the seconds remaining.
    """

    def __init__(
        self,
        orchestrator: "SessionOrchestrator",
        interval: float = 1.0,
        on_tick: Callable[[int], Awaitable[None]] | None = None,
    ):
        self.orchestrator = orchestrator
        self.interval = interval
        self.on_tick = on_tick
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        """Start ticking for the orchestrator's current session."""
        self.cancel()
        session = self.orchestrator.current
        if session is None or session.deadline is None:
            raise ValueError("current session has no deadline")
        self._task = asyncio.create_task(self._run(session.session_id))
        return self._task

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _run(self, session_id: str) -> None:
        while True:
            await asyncio.sleep(self.interval)
            session = self.orchestrator.current
            # A newer session replaced ours, or the student finished first
            if session is None or session.session_id != session_id or session.is_finished:
                return
            if self.orchestrator.check_deadline() is not None:
                logger.info("exam_countdown_expired", session_id=session_id)
                return
            if self.on_tick is not None:
                await self.on_tick(session.seconds_remaining() or 0)
