"""
HumorAI Configuration Settings.

Uses Pydantic Settings for type-safe configuration with environment variable support.

Environment variables (with defaults):
- HUMORAI_API_BASE_URL: Captioning service base URL (default: 'https://api.almostcrackd.ai')
- SUPABASE_URL: Data store project URL, required for the feed and voting
- SUPABASE_ANON_KEY: Data store public API key, required for the feed and voting
- HUMORAI_ACCESS_TOKEN: Bearer credential of an existing session (optional)
- HUMORAI_USER_ID: Voter identity of an existing session (optional)
- HUMORAI_REQUEST_TIMEOUT: Per-request timeout in seconds (default: 120)
- HUMORAI_FEED_LIMIT: Number of captions loaded into the feed (default: 20)
- HUMORAI_PREVIEW_SIZE: Longest edge of preview thumbnails in pixels (default: 512)
- HUMORAI_DEBUG: Enable debug logging (default: false)
"""
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore',
    )

    # Captioning service
    api_base_url: str = Field(default='https://api.almostcrackd.ai', alias='HUMORAI_API_BASE_URL')
    request_timeout: float = Field(default=120.0, alias='HUMORAI_REQUEST_TIMEOUT')

    # Data store (optional - only needed for the feed and voting)
    supabase_url: str | None = Field(default=None, alias='SUPABASE_URL')
    supabase_anon_key: str | None = Field(default=None, alias='SUPABASE_ANON_KEY')

    # Session supplied from outside
    access_token: str | None = Field(default=None, alias='HUMORAI_ACCESS_TOKEN')
    user_id: str | None = Field(default=None, alias='HUMORAI_USER_ID')

    feed_limit: int = Field(default=20, alias='HUMORAI_FEED_LIMIT')
    preview_size: int = Field(default=512, alias='HUMORAI_PREVIEW_SIZE')

    # Debug settings
    debug: bool = Field(default=False, alias='HUMORAI_DEBUG')

    @property
    def data_store_url(self) -> str | None:
        if not self.supabase_url:
            return None
        return f"{self.supabase_url.rstrip('/')}/rest/v1"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
