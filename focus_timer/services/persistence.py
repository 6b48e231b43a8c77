from datetime import datetime
from typing import Callable, Optional, Protocol
import logging
import threading

from focus_timer.models.events import SessionCompleted, SessionEvent, SessionRestarted
from focus_timer.models.session import CompletedSessionRecord, SessionType
from focus_timer.services.background import BackgroundTasks

logger = logging.getLogger(__name__)

MIN_RECORDED_SECONDS = 60

class SessionStore(Protocol):
    """External store receiving completed focus sessions"""

    def create_session(self, record: CompletedSessionRecord) -> int:
        ...

def evaluate(
    session_type: SessionType,
    elapsed_seconds: int,
    started_at: Optional[datetime],
    intent_id: Optional[int] = None
) -> Optional[CompletedSessionRecord]:
    """Decide whether a departing session should be recorded.

    Only focus sessions that ran for at least a minute and were actually
    started produce a record. The duration is floored to whole minutes.
    """
    if session_type is not SessionType.FOCUS:
        return None
    if elapsed_seconds < MIN_RECORDED_SECONDS or started_at is None:
        return None

    return CompletedSessionRecord(
        duration_minutes=elapsed_seconds // 60,
        started_at=started_at,
        intent_id=intent_id
    )

class SessionRecorder:
    """Forwards gated records to the session store without blocking the timer"""

    def __init__(
        self,
        store: SessionStore,
        tasks: BackgroundTasks,
        reporter: Optional[Callable[[str, bool], None]] = None
    ):
        self.store = store
        self.tasks = tasks
        self.reporter = reporter
        self.saved_count = 0
        self.failed_count = 0
        self._lock = threading.Lock()

    def __call__(self, event: SessionEvent) -> None:
        if isinstance(event, (SessionCompleted, SessionRestarted)) and event.record:
            self.tasks.spawn(self.save, event.record, description="save session", lane="sessions")

    def save(self, record: CompletedSessionRecord) -> Optional[int]:
        """Persist one record; failures are reported, never raised"""
        try:
            session_id = self.store.create_session(record)
        except Exception as e:
            with self._lock:
                self.failed_count += 1
            logger.error(f"Failed to save session ({record.duration_minutes} min): {e}")
            self._report(f"Failed to save session: {e}", False)
            return None

        with self._lock:
            self.saved_count += 1
        logger.info(f"Saved session {session_id}: {record.duration_minutes} min")
        self._report("Session saved", True)
        return session_id

    def _report(self, message: str, ok: bool) -> None:
        if self.reporter is None:
            return
        try:
            self.reporter(message, ok)
        except Exception as e:
            logger.warning(f"Session save reporter failed: {e}")
