"""Runtime settings (environment) and the persisted default provider."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from weathercli.errors import ConfigError
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="config")

APP_NAME = "weathercli"
CONFIG_FILE_NAME = "config.json"
DEFAULT_PROVIDER = "open-meteo"


def default_config_dir() -> Path:
    """Return $XDG_CONFIG_HOME/weathercli, falling back to ~/.config/weathercli."""
    base = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / APP_NAME


class Settings(BaseSettings):
    """Environment-driven configuration for the weather CLI."""
    model_config = SettingsConfigDict(env_prefix="WEATHER_", extra="ignore")

    provider: Optional[str] = None  # overrides the persisted default when set
    http_timeout: float = 10.0
    http_retries: int = 0
    user_agent: str = "weathercli/0.1.0"
    geocoder_url: str = "https://nominatim.openstreetmap.org"
    config_dir: Path = Field(default_factory=default_config_dir)
    log_level: str = "WARNING"

    @field_validator("geocoder_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URLs to avoid double slashes."""
        return str(v).rstrip("/")

    @field_validator("http_retries", mode="after")
    @classmethod
    def non_negative_retries(cls, v: int) -> int:
        if v < 0:
            raise ValueError("http_retries must be >= 0")
        return v


class StoredConfig(BaseModel):
    """Shape of config.json."""
    provider: str = DEFAULT_PROVIDER


class ConfigStore:
    """Load and save the persisted default provider."""

    def __init__(self, path: Path) -> None:
        self.path = path

    @classmethod
    def from_settings(cls, settings: Settings) -> "ConfigStore":
        return cls(Path(settings.config_dir) / CONFIG_FILE_NAME)

    def load(self) -> StoredConfig:
        """Read config.json, writing a default one first if it does not exist."""
        if not self.path.exists():
            logger.info("No config file found; writing defaults", extra={"path": str(self.path)})
            config = StoredConfig()
            self.save(config)
            return config
        try:
            return StoredConfig.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as exc:
            raise ConfigError(f"could not read {self.path}: {exc}") from exc

    def save(self, config: StoredConfig) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(config.model_dump_json(indent=2), encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"could not write {self.path}: {exc}") from exc
        logger.debug("Saved config", extra={"path": str(self.path), "provider": config.provider})


def selected_provider(settings: Settings, store: Optional[ConfigStore] = None) -> str:
    """Provider to use: WEATHER_PROVIDER wins, then config.json, then the default."""
    if settings.provider:
        return settings.provider
    store = store or ConfigStore.from_settings(settings)
    return store.load().provider
