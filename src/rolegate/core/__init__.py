"""Core RoleGate utilities.

This module exports core utilities for use throughout the application.
"""

from rolegate.core.config import Settings, get_settings
from rolegate.core.locks import KeyedLock
from rolegate.core.logging import (
    LoggingContext,
    bind_correlation_id,
    configure_logging,
    get_logger,
)

__all__ = [
    "KeyedLock",
    "LoggingContext",
    "Settings",
    "bind_correlation_id",
    "configure_logging",
    "get_logger",
    "get_settings",
]
