"""Utility functions for medallion."""

from medallion.utils.config import ConfigSettings, find_config_file, load_config
from medallion.utils.logging import configure_logging

__all__ = [
    "ConfigSettings",
    "configure_logging",
    "find_config_file",
    "load_config",
]
