"""Configuration management."""

from .models import AppConfig, LoggingConfig, YahooConfig
from .config_manager import ConfigManager

__all__ = ["ConfigManager", "AppConfig", "LoggingConfig", "YahooConfig"]
