"""
Core configuration module for docfacade.

Provides centralized configuration management with support for directory paths,
logging switches, MongoDB connection defaults and environment variable overrides.
"""

from docfacade.core.config.config import Config, CoreConfig, CoreSettings, SettingsLike

__all__ = ["Config", "CoreConfig", "CoreSettings", "SettingsLike"]
