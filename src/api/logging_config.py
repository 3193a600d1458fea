"""
Logging configuration for the caption server.

- File: full logs to LOG_DIR/YYYY-MM-DD_HH-MM-SS.log (one file per server start)
- Console: LOG_LEVEL and above
"""
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from .settings import APISettings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_server_logging(settings: APISettings) -> Optional[Path]:
    """
    Configure root logging for the server process.

    Returns:
        Path to the log file, or None when file logging is disabled.
    """
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in root.handlers[:]:
        root.removeHandler(h)
    root.addHandler(console_handler)

    log_path: Optional[Path] = None
    if settings.log_to_file:
        log_dir = Path(settings.log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
        log_path = log_dir / f"{timestamp}.log"
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(file_handler)

    # third-party clients are chatty at DEBUG
    for noisy in ("httpx", "httpcore", "openai", "multipart"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logging.getLogger(__name__).info("Logging configured (file: %s)", log_path or "disabled")
    return log_path
