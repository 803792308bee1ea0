"""
Configuration Management Module

Handles loading, validating, and updating application configuration from config.json
Supports merging with defaults and tracks load/save status in status.json
"""

import json
from pathlib import Path
from datetime import datetime
import logging

logger = logging.getLogger("bto_tracker")


def default_config() -> dict:
    """Fresh copy of the built-in configuration."""
    from .constants import LOCK_TIMEOUT_SECONDS

    return {
        "general": {
            "create_data_backups": True,
        },
        "storage": {
            "data_dir": "data",
            "lock_timeout_seconds": LOCK_TIMEOUT_SECONDS,
        },
        "logging": {
            "level": "INFO",
        },
    }


def load_config():
    """
    Load configuration from config.json with sensible defaults

    Returns:
        dict: Configuration dictionary
    """
    from .constants import CONFIG_FILE

    defaults = default_config()

    if not CONFIG_FILE.exists():
        _save_config(CONFIG_FILE, defaults)
        return defaults

    try:
        with open(CONFIG_FILE, 'r', encoding='utf-8') as f:
            config = json.load(f)

        # Merge with defaults to ensure all keys exist
        merged = _deep_merge(defaults, config)

        # Save merged config back if anything was added
        if merged != config:
            _save_config(CONFIG_FILE, merged)

        return merged
    except json.JSONDecodeError as e:
        logger.error(f"Config file corrupted: {e}. Using defaults.")
        return defaults
    except OSError as e:
        logger.error(f"Error loading config: {e}. Using defaults.")
        return defaults


def resolve_data_dir(config: dict) -> Path:
    """Data directory from config; relative paths hang off BASE_DIR."""
    from .constants import BASE_DIR

    data_dir = Path(config['storage']['data_dir'])
    if not data_dir.is_absolute():
        data_dir = BASE_DIR / data_dir
    return data_dir


def _deep_merge(defaults: dict, override: dict) -> dict:
    """
    Deep merge override config into defaults, preserving new defaults

    Args:
        defaults: Default configuration
        override: User-provided configuration

    Returns:
        dict: Merged configuration
    """
    result = defaults.copy()
    for key, value in override.items():
        if key in defaults and isinstance(defaults[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(defaults[key], value)
        else:
            result[key] = value
    return result


def _save_config(config_file: Path, config: dict):
    """
    Save configuration to file

    Args:
        config_file: Path to config file
        config: Configuration dictionary
    """
    try:
        config_file.parent.mkdir(parents=True, exist_ok=True)
        with open(config_file, 'w', encoding='utf-8') as f:
            json.dump(config, f, indent=4)
    except OSError as e:
        logger.error(f"Failed to save config: {e}")


def get_status():
    """
    Get system status including timestamps

    Returns:
        dict: Status dictionary with last_data_change, last_load, etc.
    """
    from .constants import STATUS_FILE

    default_status = {
        'last_data_change': None,
        'last_load': None,
        'last_load_success': False
    }

    if not STATUS_FILE.exists():
        return default_status

    try:
        with open(STATUS_FILE, 'r', encoding='utf-8') as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError):
        return default_status


def update_status(key: str, value):
    """
    Update a specific status key

    Args:
        key: Status key to update
        value: New value
    """
    from .constants import STATUS_FILE

    status = get_status()
    status[key] = value

    try:
        STATUS_FILE.parent.mkdir(parents=True, exist_ok=True)
        with open(STATUS_FILE, 'w', encoding='utf-8') as f:
            json.dump(status, f, indent=4)
    except OSError as e:
        logger.error(f"Failed to update status: {e}")


def mark_data_changed():
    """Mark that data files were rewritten"""
    update_status('last_data_change', datetime.now().isoformat())


def mark_load_complete(success: bool = True):
    """Mark that a load of the data directory completed"""
    update_status('last_load', datetime.now().isoformat())
    update_status('last_load_success', success)
