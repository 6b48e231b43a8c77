from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional

class Settings(BaseSettings):
    """Process-level settings with validation"""
    
    # Timer Configuration
    TICK_INTERVAL_SECONDS: int = 1
    CONFIG_POLL_INTERVAL_SECONDS: int = 5
    
    # Side effect Configuration
    SCRIPT_TIMEOUT_SECONDS: int = 30
    MAX_BACKGROUND_WORKERS: int = 4
    
    # Path Configuration
    BASE_DIR: Path = Path(__file__).parent.parent.parent
    DATA_DIR: Path = BASE_DIR / "data"
    LOG_DIR: Path = BASE_DIR / "logs"
    DB_PATH: Path = DATA_DIR / "focus_timer.db"
    CONFIG_FILE: Optional[Path] = None
    
    # Development Configuration
    DEBUG: bool = False
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )
    
    def validate_paths(self) -> None:
        """Ensure all required paths exist"""
        for path in [self.DATA_DIR, self.LOG_DIR]:
            path.mkdir(parents=True, exist_ok=True)

settings = Settings()
