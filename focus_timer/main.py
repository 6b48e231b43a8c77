import asyncio
import logging
import sys
import platform
from pathlib import Path
from typing import List, Optional, Union

from focus_timer.config.config import AppConfig, load_app_config
from focus_timer.config.settings import Settings, settings as default_settings
from focus_timer.models.script import Script
from focus_timer.services.background import BackgroundTasks
from focus_timer.services.config_sync import ConfigFileWatcher, ConfigSync
from focus_timer.services.database import DatabaseManager
from focus_timer.services.dispatcher import CompletionSound, NotificationDispatcher, ScriptDispatcher, ThemeSwitcher
from focus_timer.services.display import TerminalDisplay
from focus_timer.services.engine import SessionEngine
from focus_timer.services.notifications import ConsoleNotifier, TerminalBell, ThemeTracker
from focus_timer.services.persistence import SessionRecorder
from focus_timer.services.runner import TimerRunner
from focus_timer.services.scripts import ShellScriptExecutor

logger = logging.getLogger(__name__)

def check_environment():
    """Check if the environment meets requirements"""
    if sys.version_info < (3, 10):
        print("Python 3.10 or higher is required")
        sys.exit(1)

    if platform.system() not in ['Darwin', 'Linux', 'Windows']:
        print(f"Unsupported operating system: {platform.system()}")
        sys.exit(1)

class FocusTimer:
    """Wires the session engine to its collaborators"""

    def __init__(
        self,
        settings: Settings = default_settings,
        config_path: Optional[Union[str, Path]] = None,
        intent_id: Optional[int] = None,
        db: Optional[DatabaseManager] = None,
        display: Optional[TerminalDisplay] = None,
        desktop_notifications: bool = False
    ):
        logger.info("Initializing FocusTimer...")
        self.settings = settings
        self.config_path = config_path or settings.CONFIG_FILE
        self.app_config: AppConfig = load_app_config(self.config_path)
        self.scripts: List[Script] = list(self.app_config.scripts)
        self.intent_id = intent_id

        self.db = db or DatabaseManager(settings.DB_PATH)
        self.display = display or TerminalDisplay()
        self.tasks = BackgroundTasks(max_workers=settings.MAX_BACKGROUND_WORKERS)
        self.themes = ThemeTracker(self.app_config.interface.idle_theme_id)

        self.engine = SessionEngine(
            self.app_config.session,
            intent_provider=lambda: self.intent_id,
            tick_seconds=settings.TICK_INTERVAL_SECONDS
        )
        self.config_sync = ConfigSync(self.engine)

        self.script_dispatcher = ScriptDispatcher(
            lambda: self.scripts,
            ShellScriptExecutor(timeout_seconds=settings.SCRIPT_TIMEOUT_SECONDS),
            self.tasks
        )
        self.theme_switcher = ThemeSwitcher(self.themes, self.app_config.interface, self.tasks)
        self.recorder = SessionRecorder(self.db, self.tasks, reporter=self.display.show_message)
        self.notifications = NotificationDispatcher(
            ConsoleNotifier(self.display.console, desktop=desktop_notifications),
            self.tasks
        )
        self.completion_sound = CompletionSound(TerminalBell(self.display.console), self.tasks)

        listeners = (
            self.script_dispatcher,
            self.recorder,
            self.notifications,
            self.completion_sound,
            self.theme_switcher
        )
        for listener in listeners:
            self.engine.subscribe(listener)

        self.watcher = None
        if self.config_path is not None:
            self.watcher = ConfigFileWatcher(self.config_path, self.config_sync)

        logger.info("FocusTimer initialized successfully")

    def reload_config(self) -> Optional[AppConfig]:
        """Re-read the config file, replacing scripts and interface themes too"""
        if self.watcher is None:
            return None
        app_config = self.watcher.poll()
        if app_config is not None:
            self.app_config = app_config
            self.scripts = list(app_config.scripts)
            self.theme_switcher.interface_config = app_config.interface
        return app_config

    def build_runner(self) -> TimerRunner:
        runner = TimerRunner(
            self.engine,
            self.tasks,
            tick_interval=self.settings.TICK_INTERVAL_SECONDS,
            poll=self.reload_config if self.watcher is not None else None,
            poll_interval=self.settings.CONFIG_POLL_INTERVAL_SECONDS,
            display=self.display,
            intent_id=self.intent_id
        )
        return runner

    async def run(self, auto_start: bool = False, interactive: bool = True):
        """Run the timer until quit"""
        runner = self.build_runner()
        self.display.show_status(self.engine.state, self.intent_id)
        self.display.show_help()
        try:
            if interactive:
                runner.start_stdin_reader()
            if auto_start:
                runner.submit("start")
            await runner.run()
        finally:
            self.close()

    def close(self):
        """Cleanup resources"""
        try:
            # Session saves run on their own lane; shutdown() lets them finish before the store closes
            self.tasks.shutdown()
            self.db.close()
            logger.info("Cleanup completed")
        except Exception as e:
            logger.error(f"Error during cleanup: {e}")

async def main(config_path: Optional[Union[str, Path]] = None, intent_id: Optional[int] = None):
    check_environment()
    timer = FocusTimer(config_path=config_path, intent_id=intent_id)
    await timer.run(auto_start=True)

if __name__ == "__main__":
    asyncio.run(main())
