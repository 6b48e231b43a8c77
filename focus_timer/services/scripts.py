import logging
import subprocess
import sys
from typing import Optional

from focus_timer.services.errors import ScriptError

logger = logging.getLogger(__name__)

class ShellScriptExecutor:
    """Runs script bodies through the platform shell"""

    def __init__(self, timeout_seconds: Optional[int] = 30, shell: Optional[str] = None):
        self.timeout_seconds = timeout_seconds
        self.shell = shell

    def execute(self, body: str) -> None:
        """Run one script body, raising ScriptError on a non-zero exit or timeout"""
        if not body.strip():
            logger.debug("Skipping empty script body")
            return

        try:
            result = subprocess.run(
                body,
                shell=True,
                executable=self.shell if sys.platform != "win32" else None,
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds
            )
        except subprocess.TimeoutExpired:
            raise ScriptError(f"Script timed out after {self.timeout_seconds}s")
        except OSError as e:
            raise ScriptError(f"Failed to launch script: {e}")

        if result.stdout:
            logger.debug(f"Script output: {result.stdout.strip()}")
        if result.returncode != 0:
            raise ScriptError(
                f"Script exited with status {result.returncode}: {result.stderr.strip()}"
            )
