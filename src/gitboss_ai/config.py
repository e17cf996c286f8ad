"""
GitBoss AI configuration.

Resolution order (later wins): defaults, ~/.gitboss/config.json, GITBOSS_* environment variables.
A value that fails validation falls back to that field's default; the other fields are kept.
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional

from pydantic import Field, ValidationError, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("gitboss_ai.config")

CONFIG_DIR = Path.home() / ".gitboss"
CONFIG_FILE = CONFIG_DIR / "config.json"

DEFAULT_API_BASE = "http://localhost:8003"
DEFAULT_WS_URL = "wss://gitboss-ai.emirbosnak.com/ws-dev"


class Settings(BaseSettings):
    """Client settings. Environment variables override constructor arguments."""

    model_config = SettingsConfigDict(env_prefix="GITBOSS_", extra="ignore", populate_by_name=True)

    api_base: str = DEFAULT_API_BASE
    ws_url: str = DEFAULT_WS_URL
    storage_path: str = Field(default=str(CONFIG_DIR / "storage.json"), validation_alias="GITBOSS_STORAGE")
    max_reconnect_attempts: int = 5
    typing_timeout_s: float = Field(default=10.0, validation_alias="GITBOSS_TYPING_TIMEOUT")
    http_timeout_s: float = Field(default=30.0, validation_alias="GITBOSS_HTTP_TIMEOUT")

    @field_validator("*", mode="wrap")
    @classmethod
    def _default_on_invalid(cls, value: Any, handler, info: ValidationInfo) -> Any:
        try:
            return handler(value)
        except ValidationError as e:
            default = cls.model_fields[info.field_name].default
            logger.warning("Invalid %s=%r, using default %r: %s", info.field_name, value, default, e)
            return default

    @classmethod
    def settings_customise_sources(cls, settings_cls, init_settings, env_settings, dotenv_settings, file_secret_settings):
        return env_settings, init_settings


def _read_config_file(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Ignoring unreadable config file %s: %s", path, e)
        return {}
    return data if isinstance(data, dict) else {}


def load_settings(path: Optional[Path] = None) -> Settings:
    values = {k: v for k, v in _read_config_file(path or CONFIG_FILE).items() if k in Settings.model_fields}
    return Settings(**values)


def save_settings(settings: Settings, path: Optional[Path] = None) -> None:
    target = path or CONFIG_FILE
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(settings.model_dump(), indent=2), encoding="utf-8")
