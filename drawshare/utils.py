import logging
from functools import lru_cache

from pydantic import computed_field
from pydantic_settings import BaseSettings

from drawshare.logging import LogLevels

log = logging.getLogger(__name__)


class Settings(BaseSettings):
    # cors
    allowed_origins: str | None = None
    """A comma-separated list of allowed origins for CORS. No spaces allowed."""
    allowed_origins_regex: str | None = None

    @computed_field
    @property
    def allowed_origins_list(self) -> list[str]:
        """Parse the allowed origins into a list."""
        if not self.allowed_origins:
            return []

        return [origin.strip() for origin in self.allowed_origins.split(",")]

    # dropbox settings
    dropbox_access_token: str
    dropbox_refresh_token: str | None = None
    """Long-lived token exchanged for a new access token once the current one expires."""
    dropbox_app_key: str | None = None
    dropbox_app_secret: str | None = None
    dropbox_api_url: str = "https://api.dropboxapi.com"
    dropbox_content_url: str = "https://content.dropboxapi.com"
    dropbox_timeout: float | None = None
    """Seconds to wait on Dropbox. None leaves the bound to the host's request timeout."""

    # upload settings
    upload_directory: str = "/drawings"
    upload_prefix: str = "drawing"
    unique_suffix: bool = False
    """Append a random suffix to upload paths so same-millisecond uploads don't overwrite."""

    max_file_size: int = 5 * 1024 * 1024  # Default to 5 MB

    log_level: LogLevels = LogLevels.error

    # server
    host: str = "0.0.0.0"
    port: int = 8000

    @computed_field
    @property
    def can_refresh(self) -> bool:
        """Whether a refresh token exchange is possible with this configuration."""
        return bool(
            self.dropbox_refresh_token
            and self.dropbox_app_key
            and self.dropbox_app_secret
        )


@lru_cache
def get_settings() -> Settings:
    """Get application settings from environment variables."""
    return Settings()
