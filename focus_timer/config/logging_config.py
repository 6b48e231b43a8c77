import logging
from pathlib import Path
from typing import Optional

def setup_logging(log_dir: Optional[Path] = None, debug: bool = False):
    """Configure logging for the application"""
    # Create logs directory if it doesn't exist
    log_dir = Path(log_dir or "logs")
    log_dir.mkdir(parents=True, exist_ok=True)
    
    # Configure logging
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_dir / "focus_timer.log"),
            logging.StreamHandler()  # Also log to console
        ]
    )
    
    logger = logging.getLogger(__name__)
    logger.debug("Logging initialized")
