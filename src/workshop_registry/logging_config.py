"""Logging setup for Workshop Registry"""

import logging
import sys
from typing import Optional

from workshop_registry.config import config

LOG_FORMAT = "%(asctime)s %(levelname)s:%(name)s:%(message)s"

# Client libraries that log every HTTP round trip at INFO
CHATTY_LOGGERS = ("httpx", "httpcore", "anthropic", "urllib3")


class BelowWarningFilter(logging.Filter):
    """Pass DEBUG and INFO records only"""

    def filter(self, record):
        return record.levelno < logging.WARNING


def _stream_handler(stream, level: int, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.StreamHandler(stream)
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(log_level: Optional[str] = None) -> None:
    """
    Route DEBUG/INFO to stdout and WARNING+ to stderr.

    Args:
        log_level: Level name; defaults to config["log_level"]
    """
    name = (log_level or config.get("log_level") or "INFO").upper()
    level = getattr(logging, name, logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT)

    stdout_handler = _stream_handler(sys.stdout, logging.DEBUG, formatter)
    stdout_handler.addFilter(BelowWarningFilter())
    stderr_handler = _stream_handler(sys.stderr, logging.WARNING, formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    # Reloads must not stack handlers
    root_logger.handlers.clear()
    root_logger.addHandler(stdout_handler)
    root_logger.addHandler(stderr_handler)

    for logger_name in CHATTY_LOGGERS:
        logging.getLogger(logger_name).setLevel(max(level, logging.WARNING))
