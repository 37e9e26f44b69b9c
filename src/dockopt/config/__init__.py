"""Configuration loading, schema, and defaults."""

from dockopt.config.loader import ConfigError, load_config
from dockopt.config.schema import DockoptConfig, Severity, severity_at_or_above

__all__ = [
    "ConfigError",
    "DockoptConfig",
    "Severity",
    "load_config",
    "severity_at_or_above",
]
