from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

class SessionType(str, Enum):
    """Kind of interval the timer is counting"""
    FOCUS = "focus"
    BREAK = "break"
    LONG_BREAK = "long_break"

    @property
    def is_break(self) -> bool:
        return self is not SessionType.FOCUS

    @property
    def label(self) -> str:
        return {
            SessionType.FOCUS: "Focus",
            SessionType.BREAK: "Break",
            SessionType.LONG_BREAK: "Long break",
        }[self]

@dataclass
class SessionState:
    """Mutable core of the timer; one live instance per process"""
    type: SessionType = SessionType.FOCUS
    elapsed_seconds: int = 0
    is_running: bool = False
    started_at: Optional[datetime] = None
    iteration_count: int = 0
    duration_minutes: int = 25  # active duration for the current type

    @property
    def duration_seconds(self) -> int:
        return self.duration_minutes * 60

    @property
    def time_remaining(self) -> int:
        """Seconds left before the session reaches its duration (may go negative)"""
        return self.duration_seconds - self.elapsed_seconds

    @property
    def is_due(self) -> bool:
        return self.elapsed_seconds >= self.duration_seconds

class CompletedSessionRecord(BaseModel):
    """Finished focus interval handed to the session store"""
    duration_minutes: int = Field(
        ge=1,
        description="Whole minutes focused (floor of elapsed seconds / 60)"
    )
    started_at: datetime = Field(description="When the focus session was first started")
    intent_id: Optional[int] = Field(
        default=None,
        description="Intent the session was associated with"
    )

class StoredSession(CompletedSessionRecord):
    """Session row as read back from the store"""
    id: int
    created_at: Optional[datetime] = None
