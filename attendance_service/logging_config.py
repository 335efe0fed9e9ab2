"""
Logging configuration for Attendance Service.

Provides structured logging with attendance session context.
"""

import logging
import sys


class SessionContextFilter(logging.Filter):
    """Add session context to log records."""

    def __init__(self, session_id: str):
        super().__init__()
        self.session_id = session_id

    def filter(self, record: logging.LogRecord) -> bool:
        record.session_id = self.session_id
        return True


def setup_logging(session_id: str, debug: bool = False) -> None:
    """
    Configure logging for the service.

    Args:
        session_id: Attendance session identifier for log context
        debug: Enable debug level logging
    """
    level = logging.DEBUG if debug else logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(
        '[%(levelname)s] [session=%(session_id)s] %(message)s'
    ))
    console_handler.addFilter(SessionContextFilter(session_id or '-'))

    root_logger.addHandler(console_handler)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
