"""Typed lifecycle events emitted by the session engine.

Listeners (script dispatcher, session recorder, notifier, theme switcher, UI)
subscribe to the engine and receive these in emission order. ``SessionPaused``
doubles as the deactivate event: it is emitted by an explicit pause and also
at the start of every transition and restart.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from focus_timer.models.session import SessionType, CompletedSessionRecord

@dataclass(frozen=True)
class SessionStarted:
    type: SessionType
    started_at: datetime
    elapsed_seconds: int
    resumed: bool = False  # True when continuing a paused run

@dataclass(frozen=True)
class SessionPaused:
    type: SessionType
    elapsed_seconds: int

@dataclass(frozen=True)
class SessionCompleted:
    previous_type: SessionType
    next_type: SessionType
    elapsed_seconds: int
    iteration_count: int
    manual: bool
    system_notifications: bool
    record: Optional[CompletedSessionRecord] = None

@dataclass(frozen=True)
class SessionRestarted:
    type: SessionType
    elapsed_seconds: int
    record: Optional[CompletedSessionRecord] = None

SessionEvent = Union[SessionStarted, SessionPaused, SessionCompleted, SessionRestarted]
