"""Application services: persisted settings."""

from .settings import DEFAULT_SETTINGS_PATH, Settings, SettingsStore

__all__ = ["Settings", "SettingsStore", "DEFAULT_SETTINGS_PATH"]
