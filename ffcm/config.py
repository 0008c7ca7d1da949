"""Application configuration management."""

import os
from functools import lru_cache
from pathlib import Path

from .schemas import AppConfig
from .utils import load_json

PROJECT_ROOT = Path(__file__).parent.parent
CONFIG_PATH = PROJECT_ROOT / 'data' / 'app_config.json'


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """
    Load application configuration from data/app_config.json.

    Configuration is cached after first load. A missing file yields the
    defaults. The FFCM_DATA_DIR environment variable overrides ``data_dir``.

    Returns:
        AppConfig object with validated settings

    Raises:
        ValueError: If the config file has invalid structure

    Example:
        from ffcm.config import get_config
        config = get_config()
        print(f"Tag multiplier: {config.franchise_tag_multiplier}")
    """
    if CONFIG_PATH.exists():
        config = load_json(CONFIG_PATH, schema=AppConfig)
    else:
        config = AppConfig()

    data_dir = os.environ.get('FFCM_DATA_DIR')
    if data_dir:
        config = config.model_copy(update={'data_dir': data_dir})
    return config


def get_data_dir() -> Path:
    """Get the data directory, resolved against the project root when relative."""
    data_dir = Path(get_config().data_dir)
    return data_dir if data_dir.is_absolute() else PROJECT_ROOT / data_dir


def get_log_level() -> str:
    """Get the configured log level name."""
    return get_config().log_level


def get_franchise_tag_multiplier() -> float:
    """Get the raise applied to a player's own salary when tagged."""
    return get_config().franchise_tag_multiplier


def get_franchise_tag_top_n() -> int:
    """Get how many top salaries at a position the tag value averages."""
    return get_config().franchise_tag_top_n


def clear_config_cache() -> None:
    """
    Clear the configuration cache.

    Use this if the config file or FFCM_DATA_DIR changes at runtime.
    """
    get_config.cache_clear()
