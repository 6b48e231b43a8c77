"""
Focus Timer - A Pomodoro session engine with scripts, notifications and session history
"""

__version__ = "0.1.0"

from .config.config import SessionConfig
from .models.session import SessionState, SessionType, CompletedSessionRecord
from .services.engine import SessionEngine
from .services.persistence import evaluate

__all__ = [
    'SessionConfig',
    'SessionState',
    'SessionType',
    'CompletedSessionRecord',
    'SessionEngine',
    'evaluate',
]
