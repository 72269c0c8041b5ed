# scoring_api/logging_setup.py
from __future__ import annotations

import logging

from scoring_api.config import LOG_LEVEL


def setup_logging(level_name: str = LOG_LEVEL) -> None:
    """Configure application-wide logging.

    The format includes timestamp, log level, logger name, and message.
    """
    level = getattr(logging, level_name.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    # Align uvicorn loggers with the application log level
    for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(logger_name).setLevel(level)
