"""Configuration file loading and merging."""

import logging
import os
from pathlib import Path

import yaml

from atempo.config.schema import DEFAULT_CONFIG, AtempoConfig

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "config.yaml"

ENV_TEMPLATES_DIR = "ATEMPO_TEMPLATES_DIR"
ENV_COMMAND_TIMEOUT = "ATEMPO_COMMAND_TIMEOUT"


def get_home_config_path() -> Path:
    """Get path to global config: ~/.atempo/config.yaml."""
    return Path.home() / ".atempo" / CONFIG_FILENAME


def get_local_config_path() -> Path:
    """Get path to local config: ./.atempo/config.yaml."""
    return Path.cwd() / ".atempo" / CONFIG_FILENAME


def load_yaml_config(path: Path) -> dict[str, object] | None:
    """Load a YAML config file, return None if not found or empty."""
    if not path.exists():
        return None
    try:
        with path.open() as f:
            data = yaml.safe_load(f)
            if data is None:
                return None
            if not isinstance(data, dict):
                return None
            result: dict[str, object] = data
            return result
    except yaml.YAMLError:
        logger.warning("Ignoring malformed config file %s", path, exc_info=True)
        return None


def env_overrides() -> AtempoConfig:
    """Config values taken from ATEMPO_* environment variables."""
    data: dict[str, object] = {}
    templates_dir = os.environ.get(ENV_TEMPLATES_DIR)
    if templates_dir:
        data["templates_dir"] = templates_dir
    timeout = os.environ.get(ENV_COMMAND_TIMEOUT)
    if timeout:
        try:
            data["command_timeout"] = float(timeout)
        except ValueError:
            logger.warning("Ignoring non-numeric %s=%r", ENV_COMMAND_TIMEOUT, timeout)
    return AtempoConfig.from_dict(data)


def load_config() -> AtempoConfig:
    """Load merged configuration.

    Precedence (lowest to highest):
    1. Built-in defaults
    2. Global config (~/.atempo/config.yaml)
    3. Local config (./.atempo/config.yaml)
    4. ATEMPO_* environment variables

    Returns merged AtempoConfig.
    """
    config = DEFAULT_CONFIG

    home_data = load_yaml_config(get_home_config_path())
    if home_data:
        config = config.merge(AtempoConfig.from_dict(home_data))

    local_data = load_yaml_config(get_local_config_path())
    if local_data:
        config = config.merge(AtempoConfig.from_dict(local_data))

    return config.merge(env_overrides())


def save_config(config: AtempoConfig, path: Path) -> None:
    """Save config to a YAML file.

    Creates parent directories if needed.
    Only saves non-None values.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    data = config.to_dict()
    with path.open("w") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
