from pathlib import Path
from typing import Optional, Union
import logging

from focus_timer.config.config import AppConfig, SessionConfig, load_app_config, parse_session_config
from focus_timer.services.engine import SessionEngine
from focus_timer.services.errors import ConfigError

logger = logging.getLogger(__name__)

class ConfigSync:
    """Validates incoming configuration and keeps the engine's durations aligned"""

    def __init__(self, engine: SessionEngine):
        self.engine = engine
        self.rejected = 0

    @property
    def current(self) -> SessionConfig:
        return self.engine.config

    def ingest(self, raw: Union[SessionConfig, dict]) -> SessionConfig:
        """Replace the live configuration.

        A malformed snapshot raises ConfigError and leaves the previous
        configuration and the running session untouched.
        """
        try:
            config = parse_session_config(raw)
        except ConfigError as e:
            self.rejected += 1
            logger.error(f"Rejected configuration update, keeping previous: {e}")
            raise

        if config != self.engine.config:
            logger.info("Applying configuration update")
        self.engine.apply_config(config)
        return config

class ConfigFileWatcher:
    """Re-reads the JSON config file whenever its modification time changes"""

    def __init__(self, path: Union[str, Path], sync: ConfigSync):
        self.path = Path(path)
        self.sync = sync
        self._mtime: Optional[float] = self._stat()

    def _stat(self) -> Optional[float]:
        try:
            return self.path.stat().st_mtime
        except OSError:
            return None

    def poll(self) -> Optional[AppConfig]:
        """Apply the file's session section if it changed; returns the loaded config"""
        mtime = self._stat()
        if mtime is None or mtime == self._mtime:
            return None
        self._mtime = mtime

        try:
            app_config = load_app_config(self.path)
            self.sync.ingest(app_config.session)
        except ConfigError as e:
            logger.warning(f"Ignoring config file change: {e}")
            return None

        logger.info(f"Reloaded configuration from {self.path}")
        return app_config
