"""
Logging Configuration for recpipe.

Provides centralized logger setup for the command-line runner and the
pipe-point trace log. File logs go to the log directory:

1. RECPIPE_LOG_DIR (explicit)
2. CWD/.recpipe (fallback)

Set RECPIPE_DEBUG_LOG="" to disable file logging.
"""

import logging
import os
import sys
from pathlib import Path
from typing import List, Optional, Union

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

PACKAGE_LOGGER = "recpipe"
TRACE_LOGGER = "recpipe.trace"


def _get_log_directory() -> Path:
    """Get the log directory path."""
    log_dir = os.getenv("RECPIPE_LOG_DIR")
    if not log_dir:
        log_dir = str(Path.cwd() / ".recpipe")
    return Path(log_dir)


def _ensure_log_directory() -> Path:
    """Ensure log directory exists and return its path."""
    log_dir = _get_log_directory()
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def debug_log_enabled() -> bool:
    """File logging is on unless RECPIPE_DEBUG_LOG is set to the empty string."""
    value = os.getenv("RECPIPE_DEBUG_LOG")
    return value is None or value != ""


def _create_file_handler(log_filename: str) -> Optional[logging.FileHandler]:
    """
    Create a file handler for the specified log file.

    Args:
        log_filename: Name of the log file (e.g., 'trace.log')

    Returns:
        Configured FileHandler, or None if file logging is disabled or the
        directory cannot be created
    """
    if not debug_log_enabled():
        return None

    try:
        log_dir = _ensure_log_directory()
        handler = logging.FileHandler(log_dir / log_filename, mode='a', encoding='utf-8')
    except OSError:
        return None
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


class FlushingStreamHandler(logging.StreamHandler):
    """StreamHandler that flushes after every emit.

    ::: This is-in-layer Infrastructure-Layer.
    ::: This is a handler.
    ::: This is-in-process Main-Process.
    ::: This is stateless.
    """
    def emit(self, record):
        super().emit(record)
        self.flush()


def _create_stderr_handler(level: int) -> logging.StreamHandler:
    """Create a stderr handler for console output with auto-flush."""
    handler = FlushingStreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def _reset_handlers(logger: logging.Logger) -> None:
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)


def _to_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level}")
    return resolved


def configure_logging(level: Union[int, str] = logging.WARNING) -> logging.Logger:
    """
    Configure the ``recpipe`` package logger.

    Messages at ``level`` and above go to stderr; everything at DEBUG and
    above also goes to recpipe.log in the log directory. Pipe-point trace
    records are left out unless ``get_trace_logger`` has been set up.

    Returns:
        The package logger
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    _reset_handlers(logger)
    stderr_level = _to_level(level)

    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    file_handler = _create_file_handler("recpipe.log")
    if file_handler:
        logger.addHandler(file_handler)
    else:
        logger.setLevel(stderr_level)

    logger.addHandler(_create_stderr_handler(stderr_level))

    # Pipe-point tracing stays off until get_trace_logger() is asked for it.
    trace = logging.getLogger(TRACE_LOGGER)
    if not trace.handlers:
        trace.setLevel(logging.WARNING)
    return logger


def get_trace_logger(to_stderr: bool = False) -> logging.Logger:
    """
    Get the pipe-point trace logger.

    Every pipe point a RAT walk arrives at is logged at DEBUG. Output goes
    to trace.log in the log directory, and to stderr when ``to_stderr``.

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(TRACE_LOGGER)
    _reset_handlers(logger)

    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    file_handler = _create_file_handler("trace.log")
    if file_handler:
        logger.addHandler(file_handler)
    if to_stderr:
        logger.addHandler(_create_stderr_handler(logging.DEBUG))
    if not logger.handlers:
        logger.setLevel(logging.WARNING)

    return logger


def _stderr_handlers() -> List[logging.Handler]:
    handlers = []
    for name in (PACKAGE_LOGGER, TRACE_LOGGER):
        for handler in logging.getLogger(name).handlers:
            if isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler):
                handlers.append(handler)
    return handlers


def suppress_stderr_logging() -> List[int]:
    """
    Silence stderr logging while the rich console owns the terminal.

    File logging continues to work normally.

    Returns:
        The previous handler levels, for ``restore_stderr_logging``
    """
    handlers = _stderr_handlers()
    previous = [h.level for h in handlers]
    for handler in handlers:
        handler.setLevel(logging.CRITICAL + 1)
    return previous


def restore_stderr_logging(levels: List[int]) -> None:
    """Restore the stderr handler levels saved by ``suppress_stderr_logging``."""
    for handler, level in zip(_stderr_handlers(), levels):
        handler.setLevel(level)
