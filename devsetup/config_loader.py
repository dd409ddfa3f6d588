# devsetup/config_loader.py
# -*- coding: utf-8 -*-
"""
Configuration loader for the application.

Handles loading settings from Pydantic model defaults, environment variables
and an optional YAML file, applying this order of precedence:
1. Pydantic Model Defaults
2. Environment Variables (``DEVSETUP_`` prefix, ``__`` for nesting)
3. YAML Configuration File (``$DEVSETUP_CONFIG_FILE`` or
   ``~/.config/devsetup/config.yaml``)
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import ValidationError

from devsetup import config as static_config

from .config_models import AppSettings

module_logger = logging.getLogger(__name__)


def _deep_update(
    source: Dict[str, Any], overrides: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Recursively updates a dictionary `source` with values from another dictionary
    `overrides`. If a key exists in both dictionaries and its corresponding value
    is a dictionary, the function updates the nested dictionary recursively.
    Otherwise, it replaces or adds the value for the key in the `source` with the
    value from `overrides`. A None override never replaces an existing value.

    Parameters:
        source: Dict[str, Any]
            The dictionary to be updated. This dictionary gets modified in place.
        overrides: Dict[str, Any]
            The dictionary containing values to update or add to the `source`.

    Returns:
        Dict[str, Any]:
            The updated dictionary after applying all `overrides` to the input `source`.
    """
    for key, value in overrides.items():
        if (
            isinstance(value, dict)
            and key in source
            and isinstance(source[key], dict)
        ):
            source[key] = _deep_update(source[key], value)
        elif value is not None:
            source[key] = value
        elif key not in source:
            source[key] = value
    return source


def default_config_path() -> Path:
    env_path = os.environ.get(static_config.CONFIG_FILE_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return static_config.DEFAULT_CONFIG_FILE.expanduser()


def read_yaml_config(
    yaml_config_path: Path, current_logger: Optional[logging.Logger] = None
) -> Dict[str, Any]:
    """Return the mapping in `yaml_config_path`; anything unusable yields {}."""
    logger_to_use = current_logger if current_logger else module_logger
    if not yaml_config_path.is_file():
        logger_to_use.debug(
            f"Configuration file '{yaml_config_path}' not found. Using defaults and environment variables."
        )
        return {}
    try:
        with open(yaml_config_path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger_to_use.warning(
            f"Could not parse YAML config file '{yaml_config_path}': {e}. Using defaults and environment variables."
        )
        return {}
    except OSError as e:
        logger_to_use.warning(
            f"Could not read config file '{yaml_config_path}': {e}. Using defaults and environment variables."
        )
        return {}

    if yaml_data is None:
        return {}
    if not isinstance(yaml_data, dict):
        logger_to_use.warning(
            f"Config file '{yaml_config_path}' does not contain a valid YAML dictionary. Ignoring."
        )
        return {}
    logger_to_use.info(f"Loaded configuration from {yaml_config_path}")
    return yaml_data


def load_app_settings(
    config_file_path: Optional[Union[str, Path]] = None,
    current_logger: Optional[logging.Logger] = None,
) -> AppSettings:
    """
    Loads application settings with the following precedence:
    1. Pydantic Model Defaults.
    2. Environment Variables (BaseSettings loads these).
    3. Values from the YAML configuration file.

    Args:
        config_file_path: Path to the YAML configuration file. Defaults to
            ``$DEVSETUP_CONFIG_FILE`` or ``~/.config/devsetup/config.yaml``.
        current_logger: Optional logger to use instead of the module logger.

    Returns:
        An instance of AppSettings with the fully resolved configuration.

    Raises:
        ValidationError: The merged values do not satisfy the settings models.
    """
    logger_to_use = current_logger if current_logger else module_logger

    current_values_dict = AppSettings().model_dump(exclude_defaults=False)

    yaml_config_path = (
        Path(config_file_path).expanduser()
        if config_file_path
        else default_config_path()
    )
    yaml_data = read_yaml_config(yaml_config_path, logger_to_use)
    if yaml_data:
        current_values_dict = _deep_update(current_values_dict, yaml_data)

    try:
        return AppSettings(**current_values_dict)
    except ValidationError as e:
        logger_to_use.error(f"Invalid configuration: {e}")
        raise
