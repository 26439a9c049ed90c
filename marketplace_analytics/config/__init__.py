"""
Configuration Management

This module provides centralized configuration management
for the marketplace analytics engine.
"""

from .settings import Settings, DatabaseConfig, AnalyticsConfig, AppConfig
from .environment import Environment, detect_environment

__all__ = [
    "Settings",
    "DatabaseConfig",
    "AnalyticsConfig",
    "AppConfig",
    "Environment",
    "detect_environment",
]
