"""
Logging Configuration
Sets up the 'cladeview' logger for scripts and the viewer app.

Besides the console and an optional file, records can be forwarded to an
``on_log(msg)`` callback, the same hook the pipeline and readers report
through, so a front end can list log lines next to its own messages.
Level and file default to CLADEVIEW_LOG_LEVEL / CLADEVIEW_LOG_FILE
(a local ``.env`` file is honoured).
"""
import logging
import os
import sys
from typing import Callable, Optional, Union

from dotenv import load_dotenv

LOGGER_NAME = "cladeview"
CONSOLE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
CALLBACK_FORMAT = '%(levelname)s %(name)s: %(message)s'


class CallbackHandler(logging.Handler):
    """Hands every formatted record to an on_log(msg) callback."""

    def __init__(self, on_log: Callable[[str], None], level: int = logging.NOTSET):
        super().__init__(level)
        self.on_log = on_log

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.on_log(self.format(record))
        except Exception:
            self.handleError(record)


def resolve_level(level: Union[int, str]) -> int:
    """logging.DEBUG, 10 or "debug" -> 10."""
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).strip().upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return value


def setup_logging(
    level: Optional[Union[int, str]] = None,
    log_file: Optional[str] = None,
    on_log: Optional[Callable[[str], None]] = None,
) -> logging.Logger:
    """
    Configures the logger for the 'cladeview' namespace.

    Args:
        level: Logging level (e.g. logging.DEBUG or "info"); defaults to
            CLADEVIEW_LOG_LEVEL, then INFO.
        log_file: Optional path to save logs to; defaults to CLADEVIEW_LOG_FILE.
        on_log: Optional callback receiving each formatted record.
    """
    if level is None or log_file is None:
        load_dotenv()
    level = resolve_level(level if level is not None else os.getenv("CLADEVIEW_LOG_LEVEL", "INFO"))
    log_file = log_file or os.getenv("CLADEVIEW_LOG_FILE") or None

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    # Streamlit reruns the script; don't stack handlers on every rerun
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt='%H:%M:%S'))
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt='%H:%M:%S'))
        logger.addHandler(file_handler)

    if on_log:
        callback_handler = CallbackHandler(on_log)
        callback_handler.setFormatter(logging.Formatter(CALLBACK_FORMAT))
        logger.addHandler(callback_handler)

    logger.debug("Logging initialized (level %s, file %s).", logging.getLevelName(level), log_file or "-")
    return logger
