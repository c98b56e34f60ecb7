"""Configuration package for deployment settings and startup validation."""

from .settings import DeploySettings, SettingsLoadError, config_load_settings

__all__ = ["DeploySettings", "SettingsLoadError", "config_load_settings"]
