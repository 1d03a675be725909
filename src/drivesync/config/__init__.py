"""
Configuration management.

Configuration file parsing, environment resolution and typed sync settings.
"""

from drivesync.config.loader import Config, load_config
from drivesync.config.resolver import resolve_config
from drivesync.config.settings import DEFAULT_TIMEZONE_SKEW, SyncSettings

__all__ = [
    "load_config",
    "Config",
    "resolve_config",
    "SyncSettings",
    "DEFAULT_TIMEZONE_SKEW",
]
