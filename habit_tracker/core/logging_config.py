# habit_tracker/core/logging_config.py
import logging
from logging import Logger

from habit_tracker.core.config import settings


def setup_logging() -> Logger:
    """Configure the root logger for the API process."""
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    return logging.getLogger("habit_tracker")
