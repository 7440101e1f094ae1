# core/logging_config.py

"""
Logging setup shared by the API process
"""

import logging
import sys
from typing import Union

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Per-request chatter from the HTTP client stack
NOISY_LOGGERS = ["httpx", "httpcore"]


def setup_logging(level: Union[int, str] = logging.INFO) -> logging.Logger:
    """Configure the root logger and quiet third-party loggers"""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    return logging.getLogger()
