import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Any

from spanreed.settings import LOG_LEVEL, ENABLE_CONSOLE_LOG

Logger = logging.Logger


class SafeStreamHandler(logging.StreamHandler):
    """
    A StreamHandler that suppresses BlockingIOError during stdout congestion.

    The bridge runs inside a host process whose stdout may be a pipe nobody
    drains. Messages are dropped instead of crashing the dispatch loop.
    """
    def emit(self, record):
        try:
            super().emit(record)
        except BlockingIOError:
            # Message is dropped, but the loop keeps running.
            pass


# Log formatting style
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FORMAT_CONSOLE = "\033[92m%(asctime)s\033[0m - \033[94m%(name)s\033[0m - %(levelname)s - %(message)s"

# Convert string level from settings to actual logging constant
DEFAULT_LEVEL = getattr(logging, LOG_LEVEL.upper(), logging.INFO)

# Every module logger lives under this one and inherits its level and handlers
PACKAGE_LOGGER = "spanreed"


def _file_handler(path: str) -> RotatingFileHandler:
    # ~1MB per file, 3 backups (bridge.log.1, .2, .3)
    handler = RotatingFileHandler(path, maxBytes=1_000_000, backupCount=3)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def _console_handler() -> SafeStreamHandler:
    handler = SafeStreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT_CONSOLE))
    return handler


def get_logger(name: str) -> Logger:
    """
    Return a bare logger (no handlers yet); `configure_logger` attaches them.

    Loggers inside the package are left at NOTSET so that the package
    logger's configuration reaches them.
    """
    logger = logging.getLogger(name)
    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
        logger.setLevel(DEFAULT_LEVEL)
    return logger


logging.getLogger(PACKAGE_LOGGER).setLevel(DEFAULT_LEVEL)


def configure_logger(logger: Logger, logger_cfg: dict[str, Any]) -> Logger:
    """
    Apply the `logger` section of the bridge config to `logger`.

    Recognized keys: `log_level`, `enable_console_log`, `log_file_path`.
    Existing handlers are replaced, so calling this twice is safe.
    """
    level_name = str(logger_cfg.get("log_level", LOG_LEVEL)).upper()
    logger.setLevel(getattr(logging, level_name, DEFAULT_LEVEL))

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if logger_cfg.get("enable_console_log", ENABLE_CONSOLE_LOG):
        logger.addHandler(_console_handler())

    log_file_path = logger_cfg.get("log_file_path")
    if log_file_path:
        logger.addHandler(_file_handler(log_file_path))

    return logger
