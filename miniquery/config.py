"""Package settings loaded from ``MINIQUERY_*`` environment variables."""

import logging

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from miniquery.exceptions import ConfigurationError


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="MINIQUERY_", extra="ignore")

    db_path: str = ":memory:"
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value):
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level


def get_settings():
    try:
        return Settings()
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid settings: {exc}") from exc
