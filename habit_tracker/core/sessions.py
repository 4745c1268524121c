# habit_tracker/core/sessions.py
# Live login sessions. Each one owns an idle monitor that clears it on timeout.
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Callable

from habit_tracker.core.config import settings
from habit_tracker.services.session_timeout import AsyncioScheduler, IdleSessionMonitor, Scheduler

logger = logging.getLogger(__name__)


@dataclass
class SessionContext:
    session_id: str
    username: str
    monitor: IdleSessionMonitor
    started_at: float = field(default_factory=time.time)


class SessionRegistry:
    def __init__(
        self,
        scheduler: Scheduler | None = None,
        clock: Callable[[], float] = time.monotonic,
        warning_delay: float | None = None,
        total_timeout: float | None = None,
        debounce: float | None = None,
        tick: float | None = None,
    ):
        self.scheduler = scheduler or AsyncioScheduler()
        self.clock = clock
        self.warning_delay = warning_delay if warning_delay is not None else settings.SESSION_WARNING_SECONDS
        self.total_timeout = total_timeout if total_timeout is not None else settings.SESSION_TIMEOUT_SECONDS
        self.debounce = debounce if debounce is not None else settings.SESSION_ACTIVITY_DEBOUNCE_SECONDS
        self.tick = tick if tick is not None else settings.SESSION_COUNTDOWN_TICK_SECONDS
        self._sessions: dict[str, SessionContext] = {}

    def open(self, username: str) -> SessionContext:
        """Start a session for a freshly logged-in user and arm its idle monitor."""
        session_id = uuid.uuid4().hex
        monitor = IdleSessionMonitor(
            warning_delay=self.warning_delay,
            total_timeout=self.total_timeout,
            on_logout=lambda: self._forget(session_id),
            scheduler=self.scheduler,
            clock=self.clock,
            debounce=self.debounce,
            tick=self.tick,
        )
        session = SessionContext(session_id=session_id, username=username, monitor=monitor)
        self._sessions[session_id] = session
        monitor.enable()
        logger.info("Session %s opened for %s", session_id, username)
        return session

    def load(self, session_id: str) -> SessionContext | None:
        return self._sessions.get(session_id)

    def clear(self, session_id: str) -> None:
        """Drop a session without running its logout path."""
        session = self._sessions.pop(session_id, None)
        if session is not None:
            session.monitor.disable()

    def clear_all(self) -> None:
        for session_id in list(self._sessions):
            self.clear(session_id)

    def __len__(self) -> int:
        return len(self._sessions)

    def _forget(self, session_id: str) -> None:
        session = self._sessions.pop(session_id, None)
        if session is not None:
            logger.info("Session %s for %s ended", session_id, session.username)
