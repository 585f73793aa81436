"""Configuration management for the chat relay.

Supports an optional YAML configuration file with environment variable
overrides. Settings are loaded once per process and cached; each request
derives an explicit RelayConfig from them.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared.errors import ConfigurationError
from shared.models import DEFAULT_BASE_URL, DEFAULT_MODEL, RelayConfig


class OpenAISettings(BaseSettings):
    """Upstream provider configuration.

    Reads the variable names the relay has always used (``OPENAI_API_KEY``,
    ``ASSISTANT_ID``, ``OPENAI_MODEL``).
    """
    api_key: Optional[str] = Field(
        default=None,
        validation_alias="OPENAI_API_KEY",
        repr=False,
    )
    assistant_id: str = Field(
        default="",
        validation_alias="ASSISTANT_ID",
        description="Assistant to run; selects the Assistants path when set",
    )
    model: str = Field(
        default=DEFAULT_MODEL,
        validation_alias="OPENAI_MODEL",
    )
    base_url: str = Field(
        default=DEFAULT_BASE_URL,
        validation_alias="OPENAI_BASE_URL",
    )
    timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        validation_alias="OPENAI_TIMEOUT",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    def to_relay_config(self) -> RelayConfig:
        """
        Build the per-request relay configuration.

        Raises:
            ConfigurationError: If the API key is not set
        """
        if not self.api_key:
            raise ConfigurationError("OPENAI_API_KEY not set")

        return RelayConfig(
            api_key=self.api_key,
            assistant_id=self.assistant_id or "",
            model=self.model or DEFAULT_MODEL,
            base_url=self.base_url,
            timeout_seconds=self.timeout_seconds,
        )


class ServerSettings(BaseSettings):
    """HTTP server configuration."""
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    model_config = SettingsConfigDict(
        env_prefix="RELAY_SERVER_",
        env_file=".env",
        extra="ignore"
    )


class Settings(BaseSettings):
    """Main application settings."""
    environment: str = Field(default="development")
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    # Component settings
    openai: OpenAISettings = Field(default_factory=OpenAISettings)
    server: ServerSettings = Field(default_factory=ServerSettings)

    model_config = SettingsConfigDict(
        env_prefix="RELAY_",
        env_file=".env",
        extra="ignore"
    )

    @property
    def json_logs(self) -> bool:
        return self.environment == "production"

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """
        Load settings from a YAML file.

        Component sections are built as settings of their own so that
        environment variables still fill whatever the file leaves out.
        """
        data = load_yaml_config(path)
        if not data:
            return cls()

        openai = OpenAISettings(**(data.pop("openai", None) or {}))
        server = ServerSettings(**(data.pop("server", None) or {}))
        return cls(openai=openai, server=server, **data)


def load_yaml_config(path: str | Path) -> dict[str, Any]:
    """Load a YAML configuration file."""
    path = Path(path)
    if not path.exists():
        return {}

    with open(path) as f:
        return yaml.safe_load(f) or {}


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    config_path = os.environ.get("RELAY_CONFIG_PATH", "config/settings.yaml")
    return Settings.from_yaml(config_path)
