"""
Configuration management for the hostwatch package.

Loads the TOML configuration (targets and engine settings), validates it and
caches the result for the process lifetime.
"""

from .manager import (
    clear_config_cache,
    get_config,
    is_config_loaded,
    load_config,
    set_config_path,
)
from .loader import extract_targets, load_main_config, load_toml_file
from .validators import validate_monitor_config, validate_target, validate_targets_config

__all__ = [
    "get_config",
    "load_config",
    "set_config_path",
    "clear_config_cache",
    "is_config_loaded",
    "load_toml_file",
    "load_main_config",
    "extract_targets",
    "validate_monitor_config",
    "validate_target",
    "validate_targets_config",
]
