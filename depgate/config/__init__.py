"""Configuration for depgate."""

from depgate.config.settings import CommandConfig, DepgateSettings, ExecutorSettings, LoggingConfig

__all__ = ["CommandConfig", "DepgateSettings", "ExecutorSettings", "LoggingConfig"]
