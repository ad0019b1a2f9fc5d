"""Logging configuration for the Scrapbook API process."""

import logging
import os
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Third-party loggers that are chatty at INFO
NOISY_LOGGERS = ("httpx", "urllib3", "aiohttp.access")


def configure_logging(level: Optional[str] = None) -> int:
    """Configure root logging to stdout.

    The level comes from ``level`` or the ``LOG_LEVEL`` environment variable
    (default: INFO). Returns the numeric level that was applied.
    """
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    level_int = getattr(logging, level_name, logging.INFO)

    logging.basicConfig(
        level=level_int,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level_int, logging.WARNING))

    return level_int
