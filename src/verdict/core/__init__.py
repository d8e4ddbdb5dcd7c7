"""
Shared infrastructure for verdict: settings and logging.
"""

from .config import VerdictSettings, get_settings, reset_settings
from .logging import get_logger, reset_logging, set_log_level

__all__ = [
    "VerdictSettings",
    "get_logger",
    "get_settings",
    "reset_logging",
    "reset_settings",
    "set_log_level",
]
