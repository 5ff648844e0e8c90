"""Configuration module."""

from lounge_pos.config.logging import configure_logging, get_logger, sale_log_context
from lounge_pos.config.settings import Settings, get_settings, reset_settings

__all__ = [
    "Settings",
    "get_settings",
    "reset_settings",
    "configure_logging",
    "get_logger",
    "sale_log_context",
]
