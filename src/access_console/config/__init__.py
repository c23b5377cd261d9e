"""Configuration helpers for the access console."""

from .settings import DEFAULT_API_BASE_URL, Settings, SettingsManager

__all__ = [
    "DEFAULT_API_BASE_URL",
    "Settings",
    "SettingsManager",
]
