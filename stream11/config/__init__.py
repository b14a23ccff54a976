"""Configuration module for the stream11 predictions backend."""

from stream11.config.logging import configure_logging
from stream11.config.settings import Settings, get_settings

__all__ = ["Settings", "configure_logging", "get_settings"]
