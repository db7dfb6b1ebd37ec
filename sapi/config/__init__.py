"""Configuration loader utilities."""

from .loader import DEFAULT_CONFIG_PATH, build_config, load_config
from .schema import AppConfig, LogLevel, RedisAddr

__all__ = [
    "AppConfig",
    "DEFAULT_CONFIG_PATH",
    "LogLevel",
    "RedisAddr",
    "build_config",
    "load_config",
]
