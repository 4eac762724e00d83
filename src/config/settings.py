"""
Settings management for DBC Tools.
Handles loading, saving, and managing generator settings.
"""

import json
import os
import traceback
from dataclasses import dataclass, asdict
from typing import Dict, Any

from constants import (
    CONFIG_FILE,
    DEFAULT_PACKAGE_NAME,
    DEV_MODE,
    SCHEMA_CACHE_DIR,
    SCRIPT_DIR,
    WORK_DIR,
)


@dataclass
class Settings:
    """Generator settings with default values."""

    schema_dir: str = ""
    schema_base_url: str = ""  # Remote directory of <Name>.xml files, optional
    cache_dir: str = ""
    output_dir: str = ""
    package_name: str = DEFAULT_PACKAGE_NAME
    emit_const_path: bool = True
    emit_sqlite_converter: bool = False
    work_dir: str = ""

    def __post_init__(self):
        """Set default paths if not specified."""
        if not self.work_dir:
            self.work_dir = WORK_DIR
        if not self.schema_dir:
            self.schema_dir = _get_default_schema_dir()
        if not self.cache_dir:
            self.cache_dir = SCHEMA_CACHE_DIR
        if not self.output_dir:
            self.output_dir = os.path.join(self.work_dir, "generated")

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        """Create Settings from dictionary."""
        # Filter out unknown keys
        valid_keys = {f.name for f in cls.__dataclass_fields__.values()}
        filtered_data = {k: v for k, v in data.items() if k in valid_keys}
        return cls(**filtered_data)


def _get_default_schema_dir() -> str:
    """Get the default schema directory based on environment."""
    if DEV_MODE:
        return os.path.join(SCRIPT_DIR, "..", "schemas")
    return os.path.join(WORK_DIR, "schemas")


def get_default_settings() -> Dict[str, Any]:
    """Get default settings as a dictionary."""
    return Settings().to_dict()


def load_settings(config_file: str = CONFIG_FILE) -> Dict[str, Any]:
    """
    Load settings from config file.

    Args:
        config_file: Path of the JSON settings file

    Returns:
        Dictionary of settings with defaults for missing values
    """
    default_settings = get_default_settings()

    try:
        if os.path.exists(config_file):
            with open(config_file, "r") as f:
                loaded_settings = json.load(f)
                # Merge with defaults to handle new settings
                default_settings.update(loaded_settings)
        else:
            # Create config file with defaults
            save_settings(default_settings, config_file)
    except (OSError, ValueError) as e:
        from utils.logging import log_error

        log_error(
            "Failed to load settings, using defaults",
            type(e).__name__,
            traceback.format_exc(),
        )

    return default_settings


def save_settings(settings_to_save: Dict[str, Any], config_file: str = CONFIG_FILE) -> bool:
    """
    Save settings to config file.

    Args:
        settings_to_save: Dictionary of settings to save
        config_file: Path of the JSON settings file

    Returns:
        True if successful, False otherwise
    """
    try:
        # Create directory if it doesn't exist
        config_dir = os.path.dirname(config_file)
        if config_dir:
            os.makedirs(config_dir, exist_ok=True)

        with open(config_file, "w") as f:
            json.dump(settings_to_save, f, indent=2)
        return True
    except OSError as e:
        from utils.logging import log_error

        log_error("Failed to save settings", type(e).__name__, traceback.format_exc())
        return False
