"""Configuration management for taskkeeper."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)


@dataclass
class ConfigModel:
    """Global configuration model for taskkeeper."""

    # File paths
    data_dir: str = "~/.taskkeeper"
    backup_dir: str = "~/.taskkeeper/backups"

    # Defaults for new tasks
    default_category: Optional[str] = None

    # Date preferences
    date_format: str = "%Y-%m-%d"
    upcoming_days: int = 7  # Window for "due soon" on the dashboard

    # Behavior settings
    confirm_deletion: bool = True

    # UI and diagnostics
    no_color: bool = False
    log_level: str = "WARNING"

    def __post_init__(self):
        """Expand user paths."""
        self.data_dir = os.path.expanduser(self.data_dir)
        self.backup_dir = os.path.expanduser(self.backup_dir)

    def to_yaml(self) -> str:
        """Serialize config to YAML."""
        data = {
            "data_dir": self.data_dir,
            "backup_dir": self.backup_dir,
            "default_category": self.default_category,
            "date_format": self.date_format,
            "upcoming_days": self.upcoming_days,
            "confirm_deletion": self.confirm_deletion,
            "no_color": self.no_color,
            "log_level": self.log_level,
        }
        return yaml.dump(data, default_flow_style=False)

    @classmethod
    def from_yaml(cls, yaml_str: str) -> "ConfigModel":
        """Deserialize config from YAML, ignoring unknown keys."""
        data = yaml.safe_load(yaml_str) or {}
        if not isinstance(data, dict):
            raise ValueError("Configuration must be a mapping")

        known = set(cls.__dataclass_fields__)
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning("Ignoring unknown config keys: %s", ", ".join(unknown))

        return cls(**{k: v for k, v in data.items() if k in known})

    def get_data_path(self, filename: str) -> Path:
        """Get the path of a data document (tasks.json, ...)."""
        return Path(self.data_dir) / filename

    def get_config_path(self) -> Path:
        """Get the config file path."""
        return Path(self.data_dir) / "config.yaml"

    def get_backup_path(self, timestamp: Optional[str] = None) -> Path:
        """Get backup directory path."""
        if timestamp:
            return Path(self.backup_dir) / timestamp
        return Path(self.backup_dir)


class Config:
    """Configuration manager for taskkeeper."""

    _instance: Optional[ConfigModel] = None

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> ConfigModel:
        """Load configuration from file or create default."""
        if cls._instance is not None:
            return cls._instance

        config = ConfigModel()

        if config_path is None:
            config_path = config.get_config_path()

        if config_path.exists():
            try:
                with open(config_path, "r", encoding="utf-8") as f:
                    yaml_content = f.read()
                config = ConfigModel.from_yaml(yaml_content)
                logger.info("Loaded configuration from %s", config_path)
            except (OSError, ValueError, TypeError, yaml.YAMLError) as e:
                logger.warning("Failed to load config from %s: %s. Using defaults.", config_path, e)
        else:
            cls.save(config, config_path)
            logger.info("Created default configuration at %s", config_path)

        cls._instance = config
        return config

    @classmethod
    def save(cls, config: ConfigModel, config_path: Optional[Path] = None) -> None:
        """Save configuration to file."""
        if config_path is None:
            config_path = config.get_config_path()

        try:
            config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(config_path, "w", encoding="utf-8") as f:
                f.write(config.to_yaml())
            logger.info("Configuration saved to %s", config_path)
        except OSError as e:
            logger.error("Failed to save config to %s: %s", config_path, e)

    @classmethod
    def get(cls) -> ConfigModel:
        """Get the current configuration instance."""
        if cls._instance is None:
            cls._instance = cls.load()
        return cls._instance

    @classmethod
    def set(cls, config: ConfigModel) -> None:
        """Install a configuration without touching the filesystem."""
        cls._instance = config

    @classmethod
    def reload(cls) -> ConfigModel:
        """Reload configuration from file."""
        cls._instance = None
        return cls.load()

    @classmethod
    def reset(cls) -> None:
        """Forget the current instance (useful for testing)."""
        cls._instance = None


def get_config() -> ConfigModel:
    """Get the current configuration."""
    return Config.get()


def load_config(config_path: Optional[Path] = None) -> ConfigModel:
    """Load configuration from file."""
    return Config.load(config_path)


def save_config(config: ConfigModel, config_path: Optional[Path] = None) -> None:
    """Save configuration to file."""
    Config.save(config, config_path)
