"""Logging for the WebFit API server, the Shiny app and the scripts.

Everything logs through the single ``webfit`` logger created here. Its level
and optional rotating log file come from ``WEBFIT_LOG_LEVEL`` and
``WEBFIT_LOG_FILE``. Storage reads log at DEBUG, writes at INFO, rejected
requests at WARNING and storage failures with a traceback.
"""
import logging
import sys
from functools import wraps
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from .config import log_config
from .errors import WebFitError


def setup_logger(
    name: str = "webfit",
    level: str = "INFO",
    log_file: Optional[str] = None,
    console: bool = True
) -> logging.Logger:
    """Configure and return the ``webfit`` logger.

    Calling it again replaces the handlers, so tests and the entry points
    can reconfigure logging without duplicating output.

    Args:
        name: Logger name (default: "webfit")
        level: Level name; unknown names fall back to INFO
        log_file: Rotating log file (10 MB x 5). If None, stdout only.
        console: Whether to log to stdout (default: True)

    Example:
        >>> logger = setup_logger(level="DEBUG", log_file="logs/webfit.log")
        >>> logger.info("WebFit API started")
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    logger.handlers.clear()

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10_000_000,
            backupCount=5,
            encoding='utf-8'
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


_cfg = log_config()
logger = setup_logger(level=_cfg.level, log_file=_cfg.log_file)


def log_function_call(func):
    """Trace a ledger operation.

    The call is logged at DEBUG. Errors are re-raised after logging: a
    ``WebFitError`` (bad input, unknown id) at WARNING, anything else at
    ERROR with its traceback.

    Example:
        >>> @log_function_call
        ... def delete_goal(repo, goal_id):
        ...     ...
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        func_name = func.__name__
        logger.debug(f"Calling {func_name} with args={args[1:]}, kwargs={kwargs}")
        try:
            result = func(*args, **kwargs)
        except WebFitError as e:
            logger.warning(f"{func_name} rejected: {e.message}")
            raise
        except Exception:
            logger.exception(f"{func_name} failed")
            raise
        logger.debug(f"{func_name} completed")
        return result

    return wrapper
