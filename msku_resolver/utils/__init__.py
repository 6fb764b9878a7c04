"""
Utility modules.

Configuration loading, logging setup and tabular file I/O.
"""

from msku_resolver.utils.config_loader import AppConfig, load_config, load_env
from msku_resolver.utils.io_helpers import read_table, write_table
from msku_resolver.utils.logging_config import setup_logging

__all__ = [
    "load_config",
    "load_env",
    "AppConfig",
    "setup_logging",
    "read_table",
    "write_table",
]
