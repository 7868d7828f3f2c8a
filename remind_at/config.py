"""
Configuration management

Type-safe configuration using Pydantic, loaded from YAML and
REMIND_AT_* environment variables
"""

from pathlib import Path
from typing import Literal, Optional

import yaml
from loguru import logger
from pydantic import BaseModel, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ParserConfig(BaseModel):
    """Reminder phrase parsing"""
    # both off: past times stay today, several " at " are rejected
    roll_past_to_tomorrow: bool = False
    split_on_last: bool = False


class SchedulerConfig(BaseModel):
    """Tick loop configuration"""
    tick_interval: float = 1.0

    @field_validator("tick_interval")
    @classmethod
    def _positive_interval(cls, value: float) -> float:
        if value <= 0:
            raise ValueError(f"tick_interval must be positive, got {value}")
        return value


class NotifierConfig(BaseModel):
    """Notification backend configuration"""
    backend: Literal["console", "desktop"] = "desktop"
    title: str = "Reminder"
    app_name: str = "Remind me At"
    timeout: int = 10  # seconds the desktop alert stays up
    app_icon: Optional[str] = None  # path to an icon shown with desktop alerts


class LoggingConfig(BaseModel):
    """Log sinks"""
    level: str = "INFO"
    file: Optional[str] = None
    rotation: str = "1 MB"

    @field_validator("level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        value = value.upper()
        valid_levels = ["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]
        if value not in valid_levels:
            raise ValueError(f"Invalid log level: {value}. Must be one of {valid_levels}")
        return value


class Config(BaseSettings):
    """remind-at main configuration"""

    model_config = SettingsConfigDict(
        env_prefix="REMIND_AT_",
        env_nested_delimiter="__",
    )

    name: str = "remind-at"

    # Sub-configs
    parser: ParserConfig = ParserConfig()
    scheduler: SchedulerConfig = SchedulerConfig()
    notifier: NotifierConfig = NotifierConfig()
    logging: LoggingConfig = LoggingConfig()

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> "Config":
        """Load configuration from file

        Args:
            config_path: Path to config file, defaults to config/config.yaml

        Returns:
            Config instance
        """
        if config_path is None:
            paths = [
                Path("config/config.yaml"),
                Path("config.yaml"),
                Path.home() / ".remind-at/config.yaml",
            ]
            for path in paths:
                if path.exists():
                    config_path = str(path)
                    break

        if config_path and Path(config_path).exists():
            try:
                with open(config_path, "r", encoding="utf-8") as f:
                    data = yaml.safe_load(f) or {}
                return cls(**data)
            except Exception as e:
                logger.error(f"Failed to load config from {config_path}: {e}")
                logger.info("Using default configuration")
                return cls()

        logger.info("No config file found, using default configuration")
        return cls()

    def save(self, config_path: str = "config/config.yaml"):
        """Save configuration to file"""
        Path(config_path).parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            yaml.dump(self.model_dump(), f, allow_unicode=True, sort_keys=False)
