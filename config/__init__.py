"""Configuration module."""

from config.settings import Settings, OperatingMode, get_settings, reload_settings

__all__ = [
    "Settings",
    "OperatingMode",
    "get_settings",
    "reload_settings",
]
