#!/usr/bin/env python3
"""
wschat Logging Configuration

Centralized logging setup for consistent formatting across the client.
Supports both development (console) and production (file) modes.

Usage:
    from shared.log import get_logger

    logger = get_logger(__name__)
    logger.info("Connecting...")
    logger.warning("Dropped frame", extra={"endpoint": "ws://localhost:3000/ws"})
"""

from __future__ import annotations
import logging
import sys
from pathlib import Path
from typing import Any, Optional, TYPE_CHECKING
import os

if TYPE_CHECKING:
    from shared.message import ChatMessage


# ========================================
#           LOGGING FORMATTERS
# ========================================

class ColoredFormatter(logging.Formatter):
    """Colored formatter for console output"""

    # ANSI Color codes
    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
        'RESET': '\033[0m'       # Reset
    }

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        if levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{self.COLORS['RESET']}"
        try:
            return super().format(record)
        finally:
            # other handlers share the record
            record.levelname = levelname


class ContextFormatter(logging.Formatter):
    """Prefixes the message with chat context passed through `extra`"""

    CONTEXT_FIELDS = ('endpoint', 'sender', 'state', 'event')

    def format(self, record: logging.LogRecord) -> str:
        context = [
            f"{field}={getattr(record, field)}"
            for field in self.CONTEXT_FIELDS
            if getattr(record, field, None) is not None
        ]
        message = super().format(record)
        if not context:
            return message
        # insert after the fixed prefix so the context sits next to the message
        rendered = record.getMessage()
        return message.replace(rendered, f"[{' '.join(context)}] {rendered}", 1)


class ColoredContextFormatter(ColoredFormatter, ContextFormatter):
    pass


# ========================================
#           LOGGING CONFIGURATION
# ========================================

_loggers_configured = set()

CONSOLE_FORMAT = '[%(levelname)-8s][%(asctime)s][%(name)-5s]: %(message)s'
FILE_FORMAT = '%(asctime)s | %(name)-30s | %(levelname)-8s | %(message)s'


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Get a configured logger for the given module.

    Args:
        name: Usually __name__ from the calling module
        level: Override log level ("DEBUG", "INFO", "WARNING", "ERROR")

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Only configure each logger once
    if name not in _loggers_configured:
        _configure_logger(logger, level)
        _loggers_configured.add(name)

    return logger


def set_level(level: str) -> None:
    """Apply a level to every logger configured through get_logger"""
    log_level = _get_log_level(level)
    for name in _loggers_configured:
        logging.getLogger(name).setLevel(log_level)


def _configure_logger(logger: logging.Logger, level: Optional[str] = None) -> None:
    """Configure a logger with appropriate handlers and formatters"""

    logger.setLevel(_get_log_level(level))

    # Clear existing handlers to avoid duplicates
    logger.handlers.clear()

    if _is_development():
        _add_file_handler(logger)
        _add_console_handler(logger, colored=True)
    else:
        _add_console_handler(logger, colored=False)
        _add_file_handler(logger)

    # Prevent duplicate messages from parent loggers
    logger.propagate = False


def _get_log_level(level: Optional[str] = None) -> int:
    """Determine appropriate log level"""
    if level:
        return getattr(logging, level.upper(), logging.INFO)
    return logging.DEBUG if _is_development() else logging.INFO


def _is_development() -> bool:
    """Detect if we're in development mode"""
    return (
        os.getenv('PYTHON_ENV', '').lower() in ['dev', 'development'] or
        'pytest' in sys.modules
    )


def _add_console_handler(logger: logging.Logger, colored: bool = True) -> None:
    """Add console handler with appropriate formatter"""

    handler = logging.StreamHandler(sys.stdout)

    if colored and _supports_color():
        formatter: logging.Formatter = ColoredContextFormatter(fmt=CONSOLE_FORMAT, datefmt='%H:%M:%S')
    else:
        formatter = ContextFormatter(fmt=CONSOLE_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')

    handler.setFormatter(formatter)
    logger.addHandler(handler)


def _add_file_handler(logger: logging.Logger) -> None:
    """Add file handler for production logging"""

    log_dir = Path(os.getenv('WSCHAT_LOG_DIR', 'logs'))
    log_dir.mkdir(parents=True, exist_ok=True)

    handler = logging.FileHandler(log_dir / "wschat.log", encoding="utf-8")
    handler.setFormatter(ContextFormatter(fmt=FILE_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
    logger.addHandler(handler)


def _supports_color() -> bool:
    """Check if terminal supports color output"""

    # stdout must be a terminal
    if not (hasattr(sys.stdout, "isatty") and sys.stdout.isatty()):
        return False

    if os.getenv("TERM", "") == "dumb":
        return False

    if sys.platform == "win32":
        return (
            os.getenv("ANSICON") is not None
            or os.getenv("WT_SESSION") is not None
            or os.getenv("TERM_PROGRAM") == "vscode"
        )

    return True

# ========================================
#           CONVENIENCE FUNCTIONS
# ========================================

def configure_root_logging(level: Optional[str] = None) -> None:
    """
    Configure root logging for the entire application.
    Call this once at application startup.

    Args:
        level: Root log level ("DEBUG", "INFO", "WARNING", "ERROR")
    """
    _configure_logger(logging.getLogger(), level)
    if level:
        set_level(level)


def log_chat_event(logger: logging.Logger, level: str, message: str,
                   chat_message: Optional["ChatMessage"] = None,
                   **context: Any) -> None:
    """
    Log a chat event with structured context.

    Example:
        log_chat_event(logger, "debug", "Rendered message",
                       chat_message=msg, endpoint=url)
    """
    extra_context = {}
    if chat_message is not None:
        extra_context['sender'] = chat_message.from_
    extra_context.update(context)

    log_func = getattr(logger, level.lower())
    log_func(message, extra=extra_context)
