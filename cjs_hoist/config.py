"""
Configuration management for cjs-hoist.

This module provides configuration loading with sensible defaults for the
transform options and for the file discovery done by the command line runner.
"""

import logging
import os
from dataclasses import asdict, dataclass, field, fields
from typing import List, Optional

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_NAMES = [".cjs-hoist.yml", ".cjs-hoist.yaml", "cjs-hoist.yml", "cjs-hoist.yaml"]


@dataclass
class HoistConfig:
    """Configuration for a cjs-hoist run."""

    # Transform options
    source_map: bool = False
    ignore_dynamic_require: bool = True

    # File discovery
    extensions: List[str] = field(default_factory=lambda: [".js", ".cjs", ".jsx"])
    exclude_dirs: List[str] = field(default_factory=lambda: ["node_modules"])


def load_config(config_path: Optional[str] = None) -> HoistConfig:
    """
    Load configuration from file or use defaults.

    Args:
        config_path: Path to config file (YAML). If None, uses defaults.

    Returns:
        HoistConfig instance

    Raises:
        ConfigError: if the file is not valid YAML, is not a mapping, or
            names settings that do not exist
    """
    if not config_path:
        return HoistConfig()

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            file_config = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to load config from {config_path}: {e}") from e

    if not isinstance(file_config, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping")

    known = {f.name for f in fields(HoistConfig)}
    unknown = sorted(set(file_config) - known)
    if unknown:
        raise ConfigError(f"Unknown settings in {config_path}: {', '.join(unknown)}")

    logger.debug(f"Loaded config from {config_path}: {file_config}")
    return HoistConfig(**file_config)


def save_config(config: HoistConfig, config_path: str) -> None:
    """
    Save configuration to file.

    Args:
        config: HoistConfig to save
        config_path: Path where to save the config
    """
    directory = os.path.dirname(config_path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(config_path, 'w', encoding='utf-8') as f:
        yaml.dump(asdict(config), f, default_flow_style=False, indent=2)


def find_config_file(start_path: str = ".") -> Optional[str]:
    """
    Find configuration file by walking up the directory tree.

    Looks for files in this order:
    1. .cjs-hoist.yml
    2. .cjs-hoist.yaml
    3. cjs-hoist.yml
    4. cjs-hoist.yaml

    Args:
        start_path: File or directory to start searching from

    Returns:
        Path to config file or None if not found
    """
    current_path = os.path.abspath(start_path)
    if os.path.isfile(current_path):
        current_path = os.path.dirname(current_path)

    while True:
        for config_name in CONFIG_NAMES:
            config_path = os.path.join(current_path, config_name)
            if os.path.exists(config_path):
                return config_path

        parent_path = os.path.dirname(current_path)
        if parent_path == current_path:
            # Reached the root directory
            break
        current_path = parent_path

    return None
