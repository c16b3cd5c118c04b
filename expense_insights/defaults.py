"""Loader for the packaged JSON defaults."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .config import get_data_dir


def load_config(config_name: str, data_dir: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """Load a JSON defaults file by name.

    Args:
        config_name: Name of the file (without .json extension)
        data_dir: Directory to read from; defaults to ``config.get_data_dir()``

    Returns:
        Dictionary containing the configuration

    Raises:
        FileNotFoundError: If the configuration file doesn't exist
        json.JSONDecodeError: If the configuration file is invalid JSON

    Example:
        >>> config = load_config('categories')
        >>> config['fallback']['name']
        'Other'
    """
    directory = Path(data_dir) if data_dir is not None else get_data_dir()
    config_path = directory / f"{config_name}.json"

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        return json.load(f)


def get_config_value(config_name: str, *keys: str, default: Any = None,
                     data_dir: Optional[Union[str, Path]] = None) -> Any:
    """Get a nested configuration value by key path.

    Example:
        >>> get_config_value('currency_locales', 'currencies', 'USD')
        'en-US'
    """
    try:
        value = load_config(config_name, data_dir)
        for key in keys:
            value = value[key]
        return value
    except (KeyError, TypeError, FileNotFoundError):
        return default
