"""Configuration management for ScopeSync."""

from scopesync.config.loader import load_config
from scopesync.config.models import Config, LoggingConfig, ReconcilerConfig, StorageConfig

__all__ = ["Config", "LoggingConfig", "ReconcilerConfig", "StorageConfig", "load_config"]
