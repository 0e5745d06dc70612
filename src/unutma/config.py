"""Configuration management for unutma."""

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

import yaml

from .keywords import DEFAULT_KEYWORDS, KeywordTable

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when a configuration file cannot be understood."""


REMINDER_HOUR_FIELDS = ("default_reminder_hour", "evening_hour", "morning_hour", "noon_hour")


@dataclass
class ConfigModel:
    """Global configuration model for unutma."""

    # File paths
    data_dir: str = "~/.unutma"
    keywords_file: Optional[str] = None  # YAML overrides for the keyword tables

    # Reminder hours used by the phrase parser
    default_reminder_hour: int = 9  # date-only phrases ("yarın")
    evening_hour: int = 21
    morning_hour: int = 9
    noon_hour: int = 12

    # Notification text
    reminder_title_prefix: str = "Hatırlatıcı: "
    reminder_body: str = "Unutma!"

    # Logging
    log_level: str = "WARNING"

    def __post_init__(self):
        """Expand user paths and check the reminder hours.

        Raises:
            ConfigError: if a reminder hour is not an integer from 0 to 23
        """
        for name in REMINDER_HOUR_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 23:
                raise ConfigError(f"{name} must be an hour from 0 to 23, got {value!r}")

        self.data_dir = os.path.expanduser(self.data_dir)
        if self.keywords_file:
            self.keywords_file = os.path.expanduser(self.keywords_file)

    def to_yaml(self) -> str:
        """Serialize config to YAML."""
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        return yaml.dump(data, default_flow_style=False, allow_unicode=True)

    @classmethod
    def from_yaml(cls, yaml_str: str) -> "ConfigModel":
        """Deserialize config from YAML.

        Raises:
            ConfigError: if the document is not a YAML mapping
        """
        try:
            data = yaml.safe_load(yaml_str) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError("Configuration must be a YAML mapping")

        known = {f.name for f in fields(cls)}
        for key in sorted(set(data) - known):
            logger.warning(f"Ignoring unknown configuration key: {key}")

        return cls(**{k: v for k, v in data.items() if k in known})

    def load_keywords(self) -> KeywordTable:
        """Keyword table with this config's overrides applied."""
        if not self.keywords_file:
            return DEFAULT_KEYWORDS
        try:
            return KeywordTable.load(self.keywords_file)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to load keywords from {self.keywords_file}: {e}") from e

    def get_config_path(self) -> Path:
        """Get the config file path."""
        return Path(self.data_dir) / "config.yaml"

    def get_days_dir(self) -> Path:
        """Directory holding one markdown file per calendar day."""
        return Path(self.data_dir) / "days"

    def get_day_path(self, date_key: str) -> Path:
        """Get the file path for a day's tasks."""
        return self.get_days_dir() / f"{date_key}.md"

    def get_notifications_path(self) -> Path:
        """File holding reminders scheduled from the CLI."""
        return Path(self.data_dir) / "notifications.yaml"


class Config:
    """Configuration manager for unutma."""

    _instance: Optional[ConfigModel] = None

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> ConfigModel:
        """Load configuration from file or fall back to defaults."""
        if cls._instance is not None:
            return cls._instance

        config = ConfigModel()

        if config_path is None:
            config_path = config.get_config_path()

        if config_path.exists():
            try:
                with open(config_path, "r", encoding="utf-8") as f:
                    config = ConfigModel.from_yaml(f.read())
                logger.debug(f"Loaded configuration from {config_path}")
            except (OSError, ConfigError, TypeError) as e:
                logger.warning(f"Failed to load config from {config_path}: {e}. Using defaults.")
                config = ConfigModel()

        cls._instance = config
        return config

    @classmethod
    def save(cls, config: ConfigModel, config_path: Optional[Path] = None) -> None:
        """Save configuration to file."""
        if config_path is None:
            config_path = config.get_config_path()

        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            f.write(config.to_yaml())
        logger.info(f"Configuration saved to {config_path}")

    @classmethod
    def get(cls) -> ConfigModel:
        """Get the current configuration instance."""
        if cls._instance is None:
            cls._instance = cls.load()
        return cls._instance

    @classmethod
    def reload(cls, config_path: Optional[Path] = None) -> ConfigModel:
        """Drop the cached configuration and load it again."""
        cls._instance = None
        return cls.load(config_path)


def get_config() -> ConfigModel:
    """Get the current configuration."""
    return Config.get()


def load_config(config_path: Optional[Path] = None) -> ConfigModel:
    """Load configuration from file."""
    return Config.load(config_path)


def save_config(config: ConfigModel, config_path: Optional[Path] = None) -> None:
    """Save configuration to file."""
    Config.save(config, config_path)
