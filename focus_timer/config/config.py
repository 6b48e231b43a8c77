import json
from pathlib import Path
from typing import List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, ValidationError
import logging

from focus_timer.models.script import Script
from focus_timer.models.session import SessionType
from focus_timer.services.errors import ConfigError

logger = logging.getLogger(__name__)

DURATION_FIELDS = ("focus_duration", "break_duration", "long_break_duration", "long_break_interval")

class SessionConfig(BaseModel):
    """Timer configuration snapshot, replaced wholesale on every settings update"""
    model_config = ConfigDict(frozen=True, extra="ignore")

    focus_duration: int = Field(
        default=25,
        ge=1,
        description="Minutes in a focus session"
    )
    break_duration: int = Field(
        default=5,
        ge=1,
        description="Minutes in a short break"
    )
    long_break_duration: int = Field(
        default=15,
        ge=1,
        description="Minutes in a long break"
    )
    long_break_interval: int = Field(
        default=4,
        ge=2,
        description="Completed focus sessions between long breaks"
    )
    auto_start_focus: bool = Field(
        default=False,
        description="Start the next focus session automatically after a break"
    )
    auto_start_breaks: bool = Field(
        default=False,
        description="Start breaks automatically after a focus session"
    )
    system_notifications: bool = Field(
        default=True,
        description="Send a notification when a session ends on its own"
    )

    def duration_for(self, session_type: SessionType) -> int:
        """Configured duration in minutes for a session type"""
        if session_type is SessionType.FOCUS:
            return self.focus_duration
        if session_type is SessionType.BREAK:
            return self.break_duration
        return self.long_break_duration

    def auto_start_for(self, session_type: SessionType) -> bool:
        """Whether a session of this type starts itself after a transition"""
        if session_type is SessionType.FOCUS:
            return self.auto_start_focus
        return self.auto_start_breaks

class InterfaceConfig(BaseModel):
    """Theme ids applied while the timer runs or idles"""
    focus_theme_id: Optional[str] = None
    break_theme_id: Optional[str] = None
    long_break_theme_id: Optional[str] = None
    idle_theme_id: Optional[str] = None

    def theme_for(self, session_type: Optional[SessionType]) -> Optional[str]:
        """Theme id for a running session type, or the idle theme for None"""
        if session_type is None:
            return self.idle_theme_id
        return {
            SessionType.FOCUS: self.focus_theme_id,
            SessionType.BREAK: self.break_theme_id,
            SessionType.LONG_BREAK: self.long_break_theme_id,
        }[session_type]

class AppConfig(BaseModel):
    """Contents of the JSON configuration file"""
    session: SessionConfig = SessionConfig()
    interface: InterfaceConfig = InterfaceConfig()
    scripts: List[Script] = Field(default_factory=list)

def parse_session_config(raw: Union[SessionConfig, dict]) -> SessionConfig:
    """Validate a session config snapshot, raising ConfigError when malformed"""
    if isinstance(raw, SessionConfig):
        return raw
    if not isinstance(raw, dict):
        raise ConfigError(f"Session configuration must be a mapping, got {type(raw).__name__}")

    # Live snapshots must carry every duration; defaults only apply to config files
    missing = [name for name in DURATION_FIELDS if raw.get(name) is None]
    if missing:
        raise ConfigError(f"Session configuration missing {', '.join(missing)}")
    try:
        return SessionConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid session configuration: {e}")

def load_app_config(path: Optional[Union[str, Path]]) -> AppConfig:
    """Load the application config file, falling back to defaults when absent"""
    if path is None:
        return AppConfig()

    path = Path(path)
    if not path.exists():
        logger.info(f"Config file {path} not found, using defaults")
        return AppConfig()

    try:
        with open(path) as f:
            data = json.load(f)
        return AppConfig.model_validate(data)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Failed to read config file {path}: {e}")
    except ValidationError as e:
        raise ConfigError(f"Invalid config file {path}: {e}")
