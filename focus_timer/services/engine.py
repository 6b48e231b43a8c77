from dataclasses import replace
from datetime import datetime
from typing import Callable, List, Optional
import logging
import threading

from focus_timer.config.config import SessionConfig
from focus_timer.models.events import (
    SessionCompleted,
    SessionEvent,
    SessionPaused,
    SessionRestarted,
    SessionStarted,
)
from focus_timer.models.session import CompletedSessionRecord, SessionState, SessionType
from focus_timer.services import persistence
from focus_timer.services.errors import EngineError

logger = logging.getLogger(__name__)

Listener = Callable[[SessionEvent], None]

class SessionEngine:
    """Pomodoro state machine driven by an external tick source.

    The engine performs no timing of its own: the host calls ``tick()`` once
    per ``tick_seconds``. Configuration and the active intent are injected;
    side effects are left to listeners subscribed to the typed lifecycle
    events. All mutating operations hold one re-entrant lock so a
    multi-threaded host cannot interleave them.
    """

    def __init__(
        self,
        config: Optional[SessionConfig] = None,
        intent_provider: Optional[Callable[[], Optional[int]]] = None,
        tick_seconds: int = 1,
        clock: Callable[[], datetime] = datetime.now
    ):
        if tick_seconds < 1:
            raise EngineError(f"Tick interval must be at least 1 second, got {tick_seconds}")

        self.config = config or SessionConfig()
        self.intent_provider = intent_provider
        self.tick_seconds = tick_seconds
        self.clock = clock
        self._state = SessionState(duration_minutes=self.config.duration_for(SessionType.FOCUS))
        self._listeners: List[Listener] = []
        self._lock = threading.RLock()

    @property
    def state(self) -> SessionState:
        """Copy of the current state"""
        with self._lock:
            return replace(self._state)

    @property
    def type(self) -> SessionType:
        return self._state.type

    @property
    def is_running(self) -> bool:
        return self._state.is_running

    @property
    def elapsed_seconds(self) -> int:
        return self._state.elapsed_seconds

    @property
    def iteration_count(self) -> int:
        return self._state.iteration_count

    @property
    def time_remaining(self) -> int:
        return self._state.time_remaining

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a lifecycle listener; returns a callable that removes it"""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: SessionEvent) -> None:
        logger.debug(f"Emitting {event}")
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.error(f"Listener {listener!r} failed on {type(event).__name__}: {e}", exc_info=True)

    def start(self) -> None:
        """Start or resume the current session"""
        with self._lock:
            state = self._state
            if state.is_running:
                logger.debug(f"{state.type.label} session already running")
                return

            resumed = state.started_at is not None
            if not resumed:
                state.started_at = self.clock()
            state.is_running = True
            logger.info(f"{'Resumed' if resumed else 'Started'} {state.type.label.lower()} session")
            self._emit(SessionStarted(
                type=state.type,
                started_at=state.started_at,
                elapsed_seconds=state.elapsed_seconds,
                resumed=resumed
            ))

    def pause(self) -> None:
        """Pause the current session, keeping elapsed time and start timestamp"""
        with self._lock:
            if not self._state.is_running:
                logger.debug("Pause requested while idle, ignoring")
                return
            self._deactivate()

    def tick(self) -> bool:
        """Advance the running session by one tick.

        Returns True when the tick carried the session to its duration and a
        transition to the next session type was performed.
        """
        with self._lock:
            state = self._state
            if not state.is_running:
                return False

            state.elapsed_seconds += self.tick_seconds
            if state.is_due:
                logger.info(
                    f"{state.type.label} session reached {state.duration_minutes} min "
                    f"({state.elapsed_seconds}s elapsed)"
                )
                self.next(manual=False)
                return True
            return False

    def next(self, manual: bool = False) -> SessionType:
        """Move to the next session type and return it.

        Called with ``manual=False`` when the session ran its full duration and
        ``manual=True`` when the user skips. Every transition deactivates the
        session first, so pause side effects fire on completion too.
        """
        with self._lock:
            state = self._state
            self._deactivate()

            previous_type = state.type
            elapsed = state.elapsed_seconds
            record = None

            if previous_type is SessionType.FOCUS:
                record = self._evaluate()
                state.iteration_count += 1
                if self._is_long_break_due(state.iteration_count):
                    next_type = SessionType.LONG_BREAK
                else:
                    next_type = SessionType.BREAK
            else:
                next_type = SessionType.FOCUS

            self._switch(next_type)
            logger.info(
                f"{previous_type.label} -> {next_type.label} "
                f"({'skipped' if manual else 'completed'}, iteration {state.iteration_count})"
            )
            self._emit(SessionCompleted(
                previous_type=previous_type,
                next_type=next_type,
                elapsed_seconds=elapsed,
                iteration_count=state.iteration_count,
                manual=manual,
                system_notifications=self.config.system_notifications,
                record=record
            ))

            if not manual and self.config.auto_start_for(next_type):
                self.start()

            return next_type

    def restart(self) -> None:
        """Reset the current session, recording any eligible focus time first"""
        with self._lock:
            state = self._state
            self._deactivate()

            elapsed = state.elapsed_seconds
            record = self._evaluate()
            self._switch(state.type)
            logger.info(f"Restarted {state.type.label.lower()} session after {elapsed}s")
            self._emit(SessionRestarted(type=state.type, elapsed_seconds=elapsed, record=record))

    def apply_config(self, config: SessionConfig) -> None:
        """Replace the configuration snapshot.

        Only the active duration of the current type changes; elapsed time
        and the start timestamp are kept, so a shortened session completes on
        its next tick.
        """
        with self._lock:
            self.config = config
            duration = config.duration_for(self._state.type)
            if duration != self._state.duration_minutes:
                logger.info(
                    f"{self._state.type.label} duration changed "
                    f"{self._state.duration_minutes} -> {duration} min"
                )
            self._state.duration_minutes = duration

    def _deactivate(self) -> None:
        self._state.is_running = False
        self._emit(SessionPaused(type=self._state.type, elapsed_seconds=self._state.elapsed_seconds))

    def _evaluate(self) -> Optional[CompletedSessionRecord]:
        state = self._state
        return persistence.evaluate(
            state.type,
            state.elapsed_seconds,
            state.started_at,
            self._current_intent()
        )

    def _current_intent(self) -> Optional[int]:
        if self.intent_provider is None:
            return None
        try:
            return self.intent_provider()
        except Exception as e:
            logger.warning(f"Could not read active intent: {e}")
            return None

    def _is_long_break_due(self, iteration_count: int) -> bool:
        return iteration_count > 0 and iteration_count % self.config.long_break_interval == 0

    def _switch(self, session_type: SessionType) -> None:
        state = self._state
        state.type = session_type
        state.elapsed_seconds = 0
        state.started_at = None
        state.duration_minutes = self.config.duration_for(session_type)
