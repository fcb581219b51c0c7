from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import Field
from pydantic import ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from tmdb_cli.core.errors import ConfigError

APP_NAME = "tmdb-cli"
APP_VERSION = "1.0.0"
CONFIG_DIR_NAME = ".tmdb-cli"
CONFIG_FILE_NAME = "config.yaml"

# keys accepted in config.yaml that don't match a field name
_CONFIG_ALIASES = {"api_key": "tmdb_api_key"}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    log_level: str = "WARNING"
    log_format: Literal["text", "json"] = "text"

    tmdb_api_key: str | None = None
    tmdb_base_url: str = "https://api.themoviedb.org/3"
    tmdb_timeout_seconds: float = 10.0
    tmdb_max_retries: int = Field(default=5, ge=1)
    tmdb_initial_backoff_seconds: float = Field(default=0.5, ge=0.0)
    tmdb_max_retry_after_seconds: float = Field(default=60.0, ge=0.0)

    default_max_items: int = Field(default=20, ge=1, le=400)


def default_config_path() -> Path:
    return Path.home() / CONFIG_DIR_NAME / CONFIG_FILE_NAME


def _read_config_file(path: Path) -> dict[str, Any]:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(
            "config_unreadable",
            "read the configuration file",
            details={"path": str(path), "error": str(exc)},
        ) from exc

    try:
        loaded = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise ConfigError(
            "config_invalid",
            "parse the configuration file",
            details={"path": str(path), "error": str(exc)},
        ) from exc

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError("config_invalid", "configuration file must be a YAML mapping", details={"path": str(path)})
    return {_CONFIG_ALIASES.get(str(key), str(key)): value for key, value in loaded.items()}


def load_settings(config_path: Path | None = None) -> Settings:
    path = config_path or default_config_path()
    values = _read_config_file(path)
    try:
        settings = Settings(**values)
    except PydanticValidationError as exc:
        raise ConfigError(
            "config_invalid",
            "configuration file contains invalid values",
            details={"path": str(path), "error": str(exc)},
        ) from exc

    if not settings.tmdb_api_key:
        raise ConfigError(
            "missing_api_key",
            f"missing API key in {path}, please ensure you include your API key in the following format:\n"
            "  api_key: YOUR_API_KEY",
        )
    return settings
