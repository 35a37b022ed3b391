import os
import logging
from logging.handlers import RotatingFileHandler

from cloudscan.core.config import settings

LOG_DIR = settings.LOG_DIR or os.path.join(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "config", "logs"
)
LOG_FILE = os.path.join(LOG_DIR, "cloud_to_scan.log")

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Per-point rejection detail, below DEBUG
TRACE = 5
logging.addLevelName(TRACE, "TRACE")


def _resolve_level(name: str) -> int:
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(level_name: str = settings.LOG_LEVEL) -> None:
    """Root config: console plus a size-rotated file that /logs reads back."""
    os.makedirs(LOG_DIR, exist_ok=True)
    logging.basicConfig(
        level=_resolve_level(level_name),
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=[
            logging.StreamHandler(),
            RotatingFileHandler(
                LOG_FILE,
                maxBytes=(10 * 1024 * 1024),   # 10MB per file
                backupCount=7,
                encoding="utf-8"
            )
        ]
    )


configure_logging()


def get_logger(name: str) -> logging.Logger:
    """Return a configured logger with the given module name."""
    return logging.getLogger(name)
