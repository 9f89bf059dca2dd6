"""
Logging utilities for the GitXab client.
"""
import functools
import inspect
import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

from gitxab.config import get_settings


class ColoredFormatter(logging.Formatter):
    """Custom formatter that adds colors to console output."""

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',    # Cyan
        'INFO': '\033[32m',     # Green
        'WARNING': '\033[33m',  # Yellow
        'ERROR': '\033[31m',    # Red
        'CRITICAL': '\033[35m', # Magenta
    }
    RESET = '\033[0m'

    def format(self, record):
        formatted = super().format(record)

        if getattr(record, 'console_output', False):
            color = self.COLORS.get(record.levelname, '')
            return f"{color}{formatted}{self.RESET}"

        return formatted


class _ConsoleFilter(logging.Filter):
    """Marks records routed to the console so they get colored."""

    def filter(self, record):
        record.console_output = True
        return True


class LoggerSetup:
    """Handles logger setup and configuration."""

    _loggers_configured = False
    _file_handler = None
    _console_handler = None

    @classmethod
    def setup_logging(cls, force_reconfigure: bool = False) -> None:
        """Set up logging configuration based on settings."""
        if cls._loggers_configured and not force_reconfigure:
            return

        settings = get_settings()

        package_logger = logging.getLogger("gitxab")

        if force_reconfigure:
            for handler in (cls._file_handler, cls._console_handler):
                if handler is not None:
                    package_logger.removeHandler(handler)
                    handler.close()
            cls._file_handler = None
            cls._console_handler = None

        log_level = getattr(logging, settings.app.log_level.upper(), logging.INFO)
        package_logger.setLevel(logging.DEBUG if settings.app.debug else log_level)
        package_logger.propagate = False

        file_formatter = logging.Formatter(
            fmt=settings.logging.format,
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        console_formatter = ColoredFormatter(
            fmt='%(levelname)-8s | %(name)-28s | %(message)s',
            datefmt='%H:%M:%S'
        )

        # File logging only when logging.file is set
        if cls._file_handler is None and settings.logging.file:
            log_file_path = Path(settings.logging.file)
            log_file_path.parent.mkdir(parents=True, exist_ok=True)
            cls._file_handler = logging.handlers.RotatingFileHandler(
                filename=str(log_file_path),
                maxBytes=settings.logging.max_size_mb * 1024 * 1024,
                backupCount=settings.logging.backup_count,
                encoding='utf-8'
            )
            cls._file_handler.setFormatter(file_formatter)
            cls._file_handler.setLevel(log_level)
            package_logger.addHandler(cls._file_handler)

        # Console logs go to stderr
        if cls._console_handler is None:
            cls._console_handler = logging.StreamHandler(sys.stderr)
            cls._console_handler.setFormatter(console_formatter)
            console_level = logging.DEBUG if settings.app.debug else logging.WARNING
            cls._console_handler.setLevel(console_level)
            cls._console_handler.addFilter(_ConsoleFilter())
            package_logger.addHandler(cls._console_handler)

        cls._setup_third_party_loggers()

        cls._loggers_configured = True

        logger = logging.getLogger(__name__)
        logger.debug(
            f"Logging configured - Level: {settings.app.log_level}, "
            f"File: {settings.logging.file or 'disabled'}"
        )

    @classmethod
    def _setup_third_party_loggers(cls) -> None:
        """Configure logging levels for third-party libraries."""
        logging.getLogger("requests").setLevel(logging.WARNING)
        logging.getLogger("urllib3").setLevel(logging.WARNING)

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """Get a logger instance with automatic setup."""
        cls.setup_logging()
        return logging.getLogger(name)

    @classmethod
    def set_console_level(cls, level: int) -> None:
        """Change how much reaches the console (the CLI's --debug flag)."""
        cls.setup_logging()
        cls._console_handler.setLevel(level)
        logging.getLogger("gitxab").setLevel(min(level, logging.getLogger("gitxab").level))

    @classmethod
    def reconfigure(cls) -> None:
        """Reconfigure logging (useful when settings change)."""
        cls._loggers_configured = False
        cls.setup_logging(force_reconfigure=True)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Convenience function to get a logger instance.

    Args:
        name: Logger name. If None, uses the calling module's name.

    Returns:
        Configured logger instance.
    """
    if name is None:
        frame = inspect.currentframe().f_back
        name = frame.f_globals.get('__name__', 'unknown')

    return LoggerSetup.get_logger(name)


def log_function_call(func):
    """Decorator to log function calls (useful for debugging)."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = get_logger(func.__module__)

        args_str = ', '.join([repr(arg) for arg in args])
        kwargs_str = ', '.join([f"{k}={v!r}" for k, v in kwargs.items()])
        all_args = ', '.join(filter(None, [args_str, kwargs_str]))

        logger.debug(f"Calling {func.__name__}({all_args})")

        try:
            result = func(*args, **kwargs)
            logger.debug(f"{func.__name__} completed successfully")
            return result
        except Exception as e:
            logger.debug(f"{func.__name__} failed: {e}")
            raise

    return wrapper
