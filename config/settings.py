"""
Configuration settings for the SOP metrics system.

This module provides the Settings class that holds all configuration
parameters for the application, including data file paths, the default
time window and view, and the sizes of the "top-N" aggregates.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)


class Settings:
    """
    Configuration settings for the SOP metrics system.

    Values come from the defaults below, then an optional JSON/YAML file,
    then ``SOPMETRICS_*`` environment variables, each layer overriding the
    previous one.
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize settings with default values or from config file.

        Args:
            config_path: Optional path to configuration file
        """
        # Default base paths
        self.BASE_DIR = Path(__file__).parent.parent  # Project root directory
        self.INPUT_DIR = self.BASE_DIR / "input"
        self.OUTPUT_DIR = self.BASE_DIR / "output"
        self.LOG_DIR = self.BASE_DIR / "logs"

        # File paths for data sources (one JSON export per table)
        self.SOPS_DATA_PATH = self.INPUT_DIR / "sops.json"
        self.STEPS_DATA_PATH = self.INPUT_DIR / "sop_steps.json"
        self.COMPLETIONS_DATA_PATH = self.INPUT_DIR / "sop_step_completions.json"
        self.PROFILES_DATA_PATH = self.INPUT_DIR / "profiles.json"

        # Metrics parameters
        self.DEFAULT_TIME_WINDOW = "last30days"
        self.DEFAULT_VIEW = "overview"
        self.TOP_N_SOPS = 5
        self.TOP_N_USERS = 5
        self.RECENT_ACTIVITY_LIMIT = 4
        # "label" folds the same month of different years into one bucket
        self.MONTHLY_BUCKETING = "label"
        # "relative" counts a step at its rank inside its SOP, "index" at order_index
        self.DROPOFF_POSITION = "relative"

        self.LOG_LEVEL = "INFO"

        if config_path:
            self._load_from_file(config_path)

        self._load_from_env()

    def create_directories(self) -> None:
        """Create output and log directories if they don't exist."""
        self.OUTPUT_DIR.mkdir(exist_ok=True, parents=True)
        self.LOG_DIR.mkdir(exist_ok=True, parents=True)

    def _load_from_file(self, config_path: str) -> None:
        """
        Load settings from a configuration file.

        Args:
            config_path: Path to a .json, .yml or .yaml file

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file format is not supported
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        suffix = config_file.suffix.lower()
        with open(config_file, "r", encoding="utf-8") as f:
            if suffix == ".json":
                config_data = json.load(f)
            elif suffix in (".yml", ".yaml"):
                config_data = yaml.safe_load(f) or {}
            else:
                raise ValueError(f"Unsupported config file format: {config_file.suffix}")

        self._apply(config_data)

    def _apply(self, config_data: Dict[str, Any]) -> None:
        """Update known settings, converting to the current attribute type."""
        for key, value in config_data.items():
            if not hasattr(self, key):
                logger.warning(f"Ignoring unknown setting: {key}")
                continue
            setattr(self, key, self._coerce(getattr(self, key), value))

    @staticmethod
    def _coerce(current: Any, value: Any) -> Any:
        if isinstance(current, bool):
            if isinstance(value, str):
                return value.lower() in ("true", "1", "yes")
            return bool(value)
        if isinstance(current, int):
            return int(value)
        if isinstance(current, float):
            return float(value)
        if isinstance(current, Path):
            return Path(value)
        return value

    def _load_from_env(self) -> None:
        """Load settings from ``SOPMETRICS_<NAME>`` environment variables."""
        for key in list(self.__dict__):
            if key.startswith("_"):
                continue
            env_name = f"SOPMETRICS_{key}"
            if env_name in os.environ:
                setattr(self, key, self._coerce(getattr(self, key), os.environ[env_name]))

    def use_data_dir(self, data_dir: str) -> None:
        """Point every data file path at ``data_dir``."""
        self.INPUT_DIR = Path(data_dir)
        self.SOPS_DATA_PATH = self.INPUT_DIR / "sops.json"
        self.STEPS_DATA_PATH = self.INPUT_DIR / "sop_steps.json"
        self.COMPLETIONS_DATA_PATH = self.INPUT_DIR / "sop_step_completions.json"
        self.PROFILES_DATA_PATH = self.INPUT_DIR / "profiles.json"

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert settings to a dictionary.

        Returns:
            Dict[str, Any]: Dictionary representation of settings
        """
        result = {}
        for key, value in self.__dict__.items():
            if not key.startswith("_"):
                result[key] = str(value) if isinstance(value, Path) else value
        return result

    def save_to_file(self, file_path: str) -> None:
        """
        Save current settings to a JSON or YAML file.

        Args:
            file_path: Path to save settings
        """
        settings_dict = self.to_dict()
        path = Path(file_path)

        with open(path, "w", encoding="utf-8") as f:
            if path.suffix.lower() in (".yml", ".yaml"):
                yaml.safe_dump(settings_dict, f, default_flow_style=False)
            else:
                json.dump(settings_dict, f, indent=4)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a setting value by key.

        Args:
            key: Setting key
            default: Default value if key not found

        Returns:
            Any: Setting value or default
        """
        return getattr(self, key, default)
