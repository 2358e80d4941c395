"""Logging setup"""

import logging
import sys

from fieldservice.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Third-party loggers that are too chatty at INFO
NOISY_LOGGERS = ["httpx", "httpcore", "urllib3", "openai", "apscheduler", "qdrant_client"]


def setup_logging(level: str = None):
    """
    Configure root logging once for the application

    Args:
        level: Log level name (default: LOG_LEVEL setting)
    """
    level_name = (level or settings.LOG_LEVEL).upper()
    log_level = getattr(logging, level_name, logging.INFO)

    root = logging.getLogger()
    root.setLevel(log_level)

    if not any(getattr(h, "_fieldservice", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._fieldservice = True
        root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    if settings.DEBUG:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)
