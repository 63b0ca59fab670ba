"""Configuration loading (YAML) and typed session settings."""

from src.config.settings import (
    Configuration,
    get_catalog_config,
    get_reconnect_config,
    get_scheduler_config,
    get_session_config,
    read_config,
)

__all__ = [
    "Configuration",
    "read_config",
    "get_session_config",
    "get_scheduler_config",
    "get_reconnect_config",
    "get_catalog_config",
]
