import logging
import subprocess
import sys
from typing import Optional
from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from focus_timer.services.errors import NotificationError

logger = logging.getLogger(__name__)

class ConsoleNotifier:
    """Shows session notifications in the terminal, optionally as desktop notifications"""

    def __init__(self, console: Optional[Console] = None, desktop: bool = False):
        self.console = console or Console()
        self.desktop = desktop

    def notify(self, title: str, body: str) -> None:
        logger.info(f"Notification: {title} - {body}")

        message = Text()
        message.append(f"🔔 {title}\n", style="bold cyan")
        message.append(body, style="bold")
        self.console.print(Panel(message, expand=False))

        if self.desktop:
            self._send_desktop(title, body)

    def _send_desktop(self, title: str, body: str) -> None:
        if sys.platform == "darwin":
            command = ["osascript", "-e", f'display notification "{body}" with title "{title}"']
        elif sys.platform.startswith("linux"):
            command = ["notify-send", title, body]
        else:
            logger.debug(f"Desktop notifications unsupported on {sys.platform}")
            return

        try:
            subprocess.run(command, check=True, capture_output=True, timeout=5)
        except (OSError, subprocess.SubprocessError) as e:
            raise NotificationError(f"Desktop notification failed: {e}")

class ThemeTracker:
    """Theme collaborator for hosts without a real theme service: remembers the requested theme"""

    def __init__(self, initial_theme_id: Optional[str] = None):
        self.current_theme_id = initial_theme_id

    def set_current_theme(self, theme_id: str) -> None:
        if theme_id != self.current_theme_id:
            logger.info(f"Switching theme {self.current_theme_id} -> {theme_id}")
        self.current_theme_id = theme_id

class TerminalBell:
    """Completion sound for terminal hosts: rings the console bell"""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def play(self) -> None:
        self.console.bell()
