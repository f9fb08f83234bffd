"""Logging configuration."""

import logging
import os
from typing import Optional

# Client libraries that log every HTTP request at INFO
NOISY_LOGGERS = ("httpx", "openai", "temporalio")


def setup_logging(level: Optional[str] = None) -> None:
    """Configure application logging."""
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.getLogger().level, logging.WARNING))
