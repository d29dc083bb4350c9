"""Configuration management"""

from .loader import (
    ServiceSettings,
    LoggerSettings,
    MetricsSettings,
    TracerSettings,
    RuntimeSettings,
    load_settings,
)

__all__ = [
    "ServiceSettings",
    "LoggerSettings",
    "MetricsSettings",
    "TracerSettings",
    "RuntimeSettings",
    "load_settings",
]
