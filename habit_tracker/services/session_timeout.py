# habit_tracker/services/session_timeout.py
"""
Idle session monitor.

Logs a session out after a period without activity, showing a warning with a
countdown first. The monitor is a small state machine:

    IDLE --enable--> ACTIVE --warning_delay--> WARNING --countdown ends--> LOGGED_OUT
                       ^  |                      |  |
                       +--+ activity (debounced) |  +--sign_out--> LOGGED_OUT
                       +----- stay_signed_in ----+

Every state change goes through ``_transition``, which cancels all timers the
monitor owns before scheduling the ones the new state needs. Activity seen
while the warning is up is ignored; only ``stay_signed_in`` dismisses it.

Timers come from a ``Scheduler`` (``call_later`` / ``call_every``), so the
monitor runs on the asyncio loop in the API and on a fake clock in tests.
"""
import asyncio
import enum
import logging
import math
import time
from typing import Callable, Optional, Protocol

from habit_tracker.core.errors import TimerInvariantViolation

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...

    def call_every(self, interval: float, callback: Callable[[], None]) -> TimerHandle: ...


class _RepeatingTimer:
    def __init__(self, loop: asyncio.AbstractEventLoop, interval: float, callback: Callable[[], None]):
        self._loop = loop
        self._interval = interval
        self._callback = callback
        self._cancelled = False
        self._handle = loop.call_later(interval, self._run)

    def _run(self) -> None:
        if self._cancelled:
            return
        # reschedule first so a callback that cancels us also cancels the next run
        self._handle = self._loop.call_later(self._interval, self._run)
        self._callback()

    def cancel(self) -> None:
        self._cancelled = True
        self._handle.cancel()


class AsyncioScheduler:
    """Scheduler backed by the running asyncio event loop. Must be used from the loop thread."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        return self._loop or asyncio.get_running_loop()

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        return self._get_loop().call_later(delay, callback)

    def call_every(self, interval: float, callback: Callable[[], None]) -> TimerHandle:
        return _RepeatingTimer(self._get_loop(), interval, callback)


class MonitorState(enum.Enum):
    IDLE = "idle"
    ACTIVE = "active"
    WARNING = "warning"
    LOGGED_OUT = "logged_out"


def format_time_remaining(seconds: float) -> str:
    """``m:ss`` with seconds rounded up, e.g. 245 -> ``4:05``."""
    total = max(0, math.ceil(seconds))
    minutes, secs = divmod(total, 60)
    return f"{minutes}:{secs:02d}"


class IdleSessionMonitor:
    def __init__(
        self,
        warning_delay: float,
        total_timeout: float,
        on_logout: Callable[[], None],
        scheduler: Scheduler,
        clock: Callable[[], float] = time.monotonic,
        debounce: float = 1.0,
        tick: float = 1.0,
    ):
        if warning_delay <= 0 or total_timeout <= warning_delay:
            raise ValueError("total_timeout must be greater than warning_delay, both positive")
        self.warning_delay = warning_delay
        self.total_timeout = total_timeout
        self.debounce = debounce
        self.tick = tick
        self._on_logout = on_logout
        self._scheduler = scheduler
        self._clock = clock

        self._state = MonitorState.IDLE
        self._generation = 0
        self._timers: list[TimerHandle] = []
        self._debounce_timer: Optional[TimerHandle] = None
        self.last_activity: Optional[float] = None
        self.warning_started: Optional[float] = None
        self._remaining = 0.0

    # --- Caller-facing surface ---

    @property
    def state(self) -> MonitorState:
        return self._state

    @property
    def grace_period(self) -> float:
        return self.total_timeout - self.warning_delay

    @property
    def warning_visible(self) -> bool:
        return self._state is MonitorState.WARNING

    @property
    def time_remaining(self) -> float:
        return self._remaining

    @property
    def time_remaining_display(self) -> str:
        return format_time_remaining(self._remaining)

    def enable(self) -> None:
        if self._state in (MonitorState.IDLE, MonitorState.LOGGED_OUT):
            self._transition(MonitorState.ACTIVE)

    def disable(self) -> None:
        if self._state is not MonitorState.IDLE:
            self._transition(MonitorState.IDLE)

    def record_activity(self) -> None:
        """Note user activity. Bursts collapse into one reset, fired ``debounce`` seconds after the last event."""
        if self._state is not MonitorState.ACTIVE:
            return
        if self._debounce_timer is not None:
            self._debounce_timer.cancel()
        self._debounce_timer = self._scheduler.call_later(
            self.debounce, self._guarded(self._on_debounced_activity)
        )

    def stay_signed_in(self) -> None:
        if self._state in (MonitorState.ACTIVE, MonitorState.WARNING):
            self._transition(MonitorState.ACTIVE)

    def sign_out(self) -> None:
        if self._state in (MonitorState.ACTIVE, MonitorState.WARNING):
            self._transition(MonitorState.LOGGED_OUT)

    # --- Transitions ---

    def _transition(self, target: MonitorState) -> None:
        self._cancel_all()
        self._generation += 1
        previous, self._state = self._state, target
        logger.debug("Session monitor %s -> %s", previous.value, target.value)

        if target is MonitorState.ACTIVE:
            self.last_activity = self._clock()
            self.warning_started = None
            self._remaining = 0.0
            self._timers.append(self._scheduler.call_later(self.warning_delay, self._guarded(self._on_warning_due)))
        elif target is MonitorState.WARNING:
            self.warning_started = self._clock()
            self._remaining = self.grace_period
            self._timers.append(self._scheduler.call_every(self.tick, self._guarded(self._on_tick)))
            self._timers.append(self._scheduler.call_later(self._remaining, self._guarded(self._on_logout_due)))
        else:
            self.warning_started = None
            self._remaining = 0.0
            if target is MonitorState.LOGGED_OUT:
                logger.info("Session logged out after %s", previous.value)
                self._on_logout()

    def _cancel_all(self) -> None:
        for timer in self._timers:
            timer.cancel()
        self._timers = []
        if self._debounce_timer is not None:
            self._debounce_timer.cancel()
            self._debounce_timer = None

    def _guarded(self, callback: Callable[[], None]) -> Callable[[], None]:
        generation = self._generation

        def fire() -> None:
            if generation != self._generation:
                raise TimerInvariantViolation(
                    f"timer from generation {generation} fired in generation {self._generation}"
                )
            callback()

        return fire

    # --- Timer callbacks ---

    def _on_debounced_activity(self) -> None:
        self._debounce_timer = None
        if self._state is MonitorState.ACTIVE:
            self._transition(MonitorState.ACTIVE)

    def _on_warning_due(self) -> None:
        logger.info("Session idle for %ss, showing warning", self.warning_delay)
        self._transition(MonitorState.WARNING)

    def _on_tick(self) -> None:
        elapsed = self._clock() - self.warning_started
        self._remaining = max(0.0, self.grace_period - elapsed)
        if self._remaining <= 0:
            self._transition(MonitorState.LOGGED_OUT)

    def _on_logout_due(self) -> None:
        self._transition(MonitorState.LOGGED_OUT)
