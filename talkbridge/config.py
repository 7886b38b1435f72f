"""Application configuration management."""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Nextcloud server
    server_url: str = ""
    username: str = ""
    app_password: str = ""
    request_timeout_seconds: float = 60.0

    # Logging
    log_level: str = "info"

    # Room text block
    language: str = "en"
    body_block_search_lines: int = 40

    # Directory cache
    directory_cache_hours: int = 24

    class Config:
        env_prefix = "TALKBRIDGE_"
        env_file = ".env"
        env_file_encoding = "utf-8"

    def normalized_server_url(self) -> str:
        """Return the server URL with a scheme and without trailing slashes."""
        trimmed = (self.server_url or "").strip()
        if not trimmed:
            return ""

        if not trimmed.lower().startswith(("http://", "https://")):
            trimmed = "https://" + trimmed

        return trimmed.rstrip("/")

    def is_complete(self) -> bool:
        """Check whether all credentials needed for REST calls are present."""
        return bool(
            self.server_url.strip()
            and self.username.strip()
            and self.app_password.strip()
        )

    def current_user_id(self) -> Optional[str]:
        """The Nextcloud user id the add-in acts as."""
        user = (self.username or "").strip()
        return user or None


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
