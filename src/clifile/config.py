"""Settings for the clifile command.

Settings come from a YAML file (``.clifile.yaml`` in the working directory,
or an explicit path) and are overridden by ``CLIFILE_*`` environment
variables:

    file: Clifile          # CLIFILE_FILE
    shell: /bin/bash       # CLIFILE_SHELL
    log_level: WARNING     # CLIFILE_LOG_LEVEL
    prompt: true           # CLIFILE_PROMPT
"""

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigError

DEFAULT_CONFIG = ".clifile.yaml"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CLIFILE_",
        env_ignore_empty=True,
        case_sensitive=False,
        extra="ignore",
    )

    file: Path = Path("Clifile")
    shell: str | None = None
    log_level: str = "WARNING"
    prompt: bool = True  # ask for invalid or missing flag values

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level '{value}'")
        return level

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # Values from the YAML file arrive as init kwargs; the environment wins.
        return env_settings, init_settings


def read_config(path: str | Path | None = None) -> dict:
    """Read the YAML config file into a mapping.

    A missing default config file is not an error; a missing explicit one is.
    """
    config_path = Path(path) if path else Path(DEFAULT_CONFIG)
    if not config_path.exists():
        if path:
            raise ConfigError(f"config file '{config_path}' not found")
        return {}
    try:
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid config file '{config_path}': {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config file '{config_path}' must contain a mapping")
    return data


def load_settings(path: str | Path | None = None) -> Settings:
    """Load settings from YAML and the ``CLIFILE_*`` environment."""
    data = read_config(path)
    try:
        return Settings(**data)
    except ValidationError as e:
        raise ConfigError(f"invalid settings: {e}") from e


def configure_logging(level: str = "WARNING") -> None:
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
    )
