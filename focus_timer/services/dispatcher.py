from enum import Enum
from typing import Callable, Iterable, List, Optional, Protocol, Sequence
import logging

from focus_timer.config.config import InterfaceConfig
from focus_timer.models.events import SessionCompleted, SessionEvent, SessionPaused, SessionStarted
from focus_timer.models.script import Script
from focus_timer.models.session import SessionType
from focus_timer.services.background import BackgroundTasks

logger = logging.getLogger(__name__)

NOTIFICATION_TITLE = "Session"
NOTIFICATION_BODIES = {
    SessionType.BREAK: "Time for a break!",
    SessionType.LONG_BREAK: "Time for a long break!",
    SessionType.FOCUS: "Time to focus!",
}

class TriggerClass(str, Enum):
    """Lifecycle moments a script can be attached to"""
    SESSION_START = "run_on_session_start"
    SESSION_PAUSE = "run_on_session_pause"
    SESSION_END = "run_on_session_end"
    BREAK_START = "run_on_break_start"
    BREAK_PAUSE = "run_on_break_pause"
    BREAK_END = "run_on_break_end"

    @classmethod
    def for_event(cls, event: SessionEvent) -> Optional["TriggerClass"]:
        """Trigger class fired by an engine event, keyed on the departing session type"""
        if isinstance(event, SessionStarted):
            return cls.BREAK_START if event.type.is_break else cls.SESSION_START
        if isinstance(event, SessionPaused):
            return cls.BREAK_PAUSE if event.type.is_break else cls.SESSION_PAUSE
        if isinstance(event, SessionCompleted):
            return cls.BREAK_END if event.previous_type.is_break else cls.SESSION_END
        return None

class ScriptExecutor(Protocol):
    def execute(self, body: str) -> None:
        ...

class Notifier(Protocol):
    def notify(self, title: str, body: str) -> None:
        ...

class ThemeService(Protocol):
    def set_current_theme(self, theme_id: str) -> None:
        ...

class SoundPlayer(Protocol):
    def play(self) -> None:
        ...

def select_scripts(scripts: Iterable[Script], trigger: TriggerClass) -> List[Script]:
    """Active scripts attached to a trigger, in collection order"""
    return [
        script for script in scripts
        if script.active and getattr(script, trigger.value)
    ]

class ScriptDispatcher:
    """Runs user scripts matching each lifecycle event"""

    def __init__(
        self,
        scripts_provider: Callable[[], Sequence[Script]],
        executor: ScriptExecutor,
        tasks: BackgroundTasks
    ):
        self.scripts_provider = scripts_provider
        self.executor = executor
        self.tasks = tasks

    def __call__(self, event: SessionEvent) -> None:
        trigger = TriggerClass.for_event(event)
        if trigger is not None:
            self.dispatch(trigger)

    def dispatch(self, trigger: TriggerClass) -> int:
        """Queue the matching scripts as one background batch; returns the batch size"""
        scripts = select_scripts(self.scripts_provider(), trigger)
        if scripts:
            logger.debug(f"Dispatching {len(scripts)} script(s) for {trigger.name}")
            self.tasks.spawn(
                self.run_batch, scripts, trigger,
                description=f"scripts ({trigger.name.lower()})",
                lane="scripts"
            )
        return len(scripts)

    def run_batch(self, scripts: List[Script], trigger: TriggerClass) -> int:
        """Execute scripts in order; a failing script does not stop the rest"""
        failures = 0
        for script in scripts:
            try:
                self.executor.execute(script.body)
            except Exception as e:
                failures += 1
                logger.error(f"Script '{script.name or script.id}' failed on {trigger.name}: {e}")
        return failures

class NotificationDispatcher:
    """Sends one notification per automatic session transition"""

    def __init__(self, notifier: Notifier, tasks: BackgroundTasks):
        self.notifier = notifier
        self.tasks = tasks

    def __call__(self, event: SessionEvent) -> None:
        if not isinstance(event, SessionCompleted):
            return
        if event.manual or not event.system_notifications:
            return

        body = NOTIFICATION_BODIES[event.next_type]
        self.tasks.spawn(
            self.notifier.notify, NOTIFICATION_TITLE, body,
            description="notification",
            lane="notifications"
        )

class ThemeSwitcher:
    """Applies the theme of the running session type, or the idle theme when paused"""

    def __init__(self, themes: ThemeService, interface_config: InterfaceConfig, tasks: BackgroundTasks):
        self.themes = themes
        self.interface_config = interface_config
        self.tasks = tasks

    def __call__(self, event: SessionEvent) -> None:
        if isinstance(event, SessionStarted):
            theme_id = self.interface_config.theme_for(event.type)
        elif isinstance(event, SessionPaused):
            theme_id = self.interface_config.theme_for(None)
        else:
            return

        if theme_id:
            self.tasks.spawn(
                self.themes.set_current_theme, theme_id,
                description="theme switch",
                lane="themes"
            )

class CompletionSound:
    """Plays the completion sound whenever a session ends on its own"""

    def __init__(self, player: SoundPlayer, tasks: BackgroundTasks):
        self.player = player
        self.tasks = tasks

    def __call__(self, event: SessionEvent) -> None:
        if isinstance(event, SessionCompleted) and not event.manual:
            self.tasks.spawn(self.player.play, description="completion sound", lane="sound")
