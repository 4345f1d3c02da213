"""Process-wide logging setup."""

import logging
import sys

from app.core.settings import settings

LOG_LINE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_LOGGING_INITIALIZED = False


def setup_logging() -> logging.Logger:
    """Configure the root logger once and route uvicorn loggers through it.

    Returns the application logger ("app").
    """
    global _LOGGING_INITIALIZED
    app_logger = logging.getLogger("app")
    if _LOGGING_INITIALIZED:
        return app_logger

    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_LINE_FORMAT, datefmt=LOG_DATE_FORMAT))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        log = logging.getLogger(logger_name)
        log.handlers = []
        log.propagate = True

    # SQLAlchemy echoes through its own logger; keep it quiet unless asked
    if not settings.sql_debug:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    _LOGGING_INITIALIZED = True
    app_logger.debug("Logging configured at level %s", logging.getLevelName(level))
    return app_logger
