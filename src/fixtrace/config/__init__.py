"""Configuration loading and validation."""

from .loader import load_config
from .schema import (
    CorrelationConfig,
    DetectorConfig,
    FileLoggingConfig,
    FixTraceConfig,
    LoggingConfig,
    RuntimeConfig,
    TrackerConfig,
)

__all__ = [
    # Loader
    "load_config",
    # Root config
    "FixTraceConfig",
    # Section configs
    "DetectorConfig",
    "TrackerConfig",
    "CorrelationConfig",
    "LoggingConfig",
    "FileLoggingConfig",
    "RuntimeConfig",
]
