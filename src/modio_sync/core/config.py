"""Library configuration using pydantic-settings."""
from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

GAME_ID_VARIABLE = "$GAME_ID$"


class Settings(BaseSettings):
    """Settings loaded from environment variables prefixed with MODIO_."""

    model_config = SettingsConfigDict(
        env_prefix="MODIO_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API
    api_url: str = "https://api.mod.io/v1"
    game_id: int = 0
    game_api_key: str = ""
    max_page_size: int = 100  # Server-side maximum for _limit
    request_timeout: float = 10.0

    # Request logging
    log_all_requests: bool = False
    errors_as_warnings: bool = True

    # Local user data
    user_directory: str = f"~/.config/mod.io/game-{GAME_ID_VARIABLE}"
    user_data_filename: str = "user.data"

    # Redis-backed profile store
    redis_url: str = "redis://localhost:6379"
    redis_enabled: bool = False
    profile_cache_ttl: int = 86400

    # Image cache
    clear_image_cache_on_deactivate: bool = True

    @field_validator("api_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Store the API URL without a trailing slash so paths can be appended."""
        return v.rstrip("/") if isinstance(v, str) else v

    @field_validator("max_page_size")
    @classmethod
    def check_page_size(cls, v: int) -> int:
        """Page size must be a positive number."""
        if v < 1:
            raise ValueError(f"max_page_size must be positive (got {v})")
        return v

    @property
    def user_data_path(self) -> Path:
        """
        Location of the persisted local user file.

        The $GAME_ID$ variable in user_directory is replaced with the configured
        game id and a leading ~ is expanded.
        """
        directory = self.user_directory.replace(GAME_ID_VARIABLE, str(self.game_id))
        return Path(directory).expanduser() / self.user_data_filename


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
