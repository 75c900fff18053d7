"""Configuration settings using Pydantic."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

KEYS_FILENAME = "api-keys.json"


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API Settings
    api_host: str = Field(default="127.0.0.1", alias="KEYWARD_HOST")
    api_port: int = Field(default=8080, alias="KEYWARD_PORT")

    # Paths
    config_dir: Path = Field(
        default=Path.home() / ".config" / "keyward",
        alias="KEYWARD_CONFIG_DIR",
    )

    # Security
    # Kept as the raw string: only the literal "true" disables auth.
    skip_api_key_auth: str | None = Field(
        default=None,
        alias="SKIP_API_KEY_AUTH",
        description="Set to 'true' to disable API key checks (development only)",
    )

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @property
    def keys_path(self) -> Path:
        """Location of the API key document."""
        return self.config_dir / KEYS_FILENAME

    @property
    def auth_disabled(self) -> bool:
        """Whether the development override is active."""
        return self.skip_api_key_auth == "true"


@lru_cache
def get_settings() -> Settings:
    """Get application settings (cached)."""
    return Settings()
