"""
Centralized configuration management using Pydantic settings.

Settings come from environment variables and an optional ``.env`` file.
Every value has a working default so the package runs with no
configuration at all (in-memory storage, fallback replies).
"""

import logging
import os
from typing import List, Literal, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

DEFAULT_TAGS = ["Work", "Personal", "Research", "Project", "Important"]


def resolve_env_var(value: Optional[str]) -> Optional[str]:
    """Resolve a complete ``${VAR}`` reference; anything else is returned as-is."""
    if value and value.startswith("${") and value.endswith("}"):
        return os.environ.get(value[2:-1])
    return value


class AppSettings(BaseSettings):
    """Main application settings loaded from environment variables."""

    # Application settings
    app_name: str = "thinkchat"
    debug_mode: bool = False
    environment: str = Field(default="production", validation_alias="ENVIRONMENT")

    # Logging settings
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR
    app_log_dir: Optional[str] = Field(default=None, validation_alias="APP_LOG_DIR")
    log_previews: bool = Field(
        False,
        description="Include short message content previews in DEBUG logs",
        validation_alias=AliasChoices("LOG_PREVIEWS"),
    )

    # Remote responder
    responder_url: Optional[str] = Field(
        default=None,
        description="Base URL of the structured-response function; unset means every turn falls back",
        validation_alias=AliasChoices("RESPONDER_URL"),
    )
    responder_path: str = Field(default="/.netlify/functions/anthropic-chat", validation_alias="RESPONDER_PATH")
    responder_api_key: Optional[str] = Field(default=None, validation_alias="RESPONDER_API_KEY")
    responder_timeout: float = Field(default=60.0, validation_alias="RESPONDER_TIMEOUT")

    # Storage
    storage_backend: Literal["memory", "sql"] = Field(default="memory", validation_alias="STORAGE_BACKEND")
    chat_history_db_url: str = Field(
        default="duckdb:///data/chat_history.db",
        validation_alias=AliasChoices("CHAT_HISTORY_DB_URL"),
    )

    # Tags offered before the user creates any (comma separated)
    default_tags: str = Field(default=",".join(DEFAULT_TAGS), validation_alias="DEFAULT_TAGS")

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        return v.upper() if isinstance(v, str) else v

    @property
    def default_tag_list(self) -> List[str]:
        return [tag.strip() for tag in self.default_tags.split(",") if tag.strip()]

    @property
    def is_development(self) -> bool:
        return self.debug_mode or self.environment.lower() in {"dev", "development"}

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "env_prefix": "",
        "populate_by_name": True,
    }


class ConfigManager:
    """Centralized configuration manager with proper error handling."""

    def __init__(self, settings: Optional[AppSettings] = None):
        self._app_settings: Optional[AppSettings] = settings

    @property
    def app_settings(self) -> AppSettings:
        """Get application settings (cached)."""
        if self._app_settings is None:
            try:
                self._app_settings = AppSettings()
                logger.info("Application settings loaded successfully")
            except Exception as e:
                logger.error(f"Failed to load application settings: {e}", exc_info=True)
                # Environment is unusable; fall back to defaults only
                self._app_settings = AppSettings.model_construct()
        return self._app_settings

    @property
    def responder_api_key(self) -> Optional[str]:
        return resolve_env_var(self.app_settings.responder_api_key)

    def reload(self) -> AppSettings:
        """Drop the cached settings and read the environment again."""
        self._app_settings = None
        return self.app_settings


# Global configuration manager instance
config_manager = ConfigManager()


def get_app_settings() -> AppSettings:
    """Get application settings."""
    return config_manager.app_settings
