"""Configuration and preflight checks."""

from atempo.config.loader import (
    get_home_config_path,
    get_local_config_path,
    load_config,
    save_config,
)
from atempo.config.schema import DEFAULT_CONFIG, AtempoConfig

__all__ = [
    "DEFAULT_CONFIG",
    "AtempoConfig",
    "get_home_config_path",
    "get_local_config_path",
    "load_config",
    "save_config",
]
