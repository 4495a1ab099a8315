"""Logging setup shared by the API process and the test suite."""

import logging
import logging.handlers
import sys
from pathlib import Path

from app.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"

_configured = False


def setup_logging(level: str | None = None, log_dir: str | None = None) -> None:
    """Configure the root logger once.

    Console output always; a rotating ``app.log`` file is added when
    ``log_dir`` (or ``settings.log_dir``) is set.
    """
    global _configured
    if _configured:
        return

    level = (level or settings.log_level).upper()
    log_dir = log_dir or settings.log_dir

    root = logging.getLogger()
    root.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT)

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    root.addHandler(console)

    if log_dir:
        path = Path(log_dir)
        path.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            path / "app.log", maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    # Quiet noisy HTTP client loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    _configured = True
