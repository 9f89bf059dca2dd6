"""Utility modules for the GitXab client."""

from .logger import get_logger, log_function_call, LoggerSetup

__all__ = [
    "get_logger",
    "log_function_call",
    "LoggerSetup",
]
