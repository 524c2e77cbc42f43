"""Application settings with environment variable support."""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)


def _env(name: str) -> AliasChoices:
    """Accept both ASD_NEWS_<NAME> and the bare deployment name."""
    return AliasChoices(f"ASD_NEWS_{name}", name)


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_prefix="ASD_NEWS_",  # ASD_NEWS_LLM_MODEL, ASD_NEWS_RETENTION_LIMIT, etc.
        populate_by_name=True,
        extra="ignore",
    )

    # Local storage
    news_file: Path = Path("data") / "news.json"

    # LLM
    gemini_api_key: Optional[str] = Field(default=None, validation_alias=_env("GEMINI_API_KEY"))
    llm_model: str = "gemini-2.5-flash"
    llm_max_tokens: int = 2000
    llm_temperature: float = 0.4

    # Remote key-value store (Upstash REST protocol)
    kv_rest_api_url: Optional[str] = Field(default=None, validation_alias=_env("KV_REST_API_URL"))
    kv_rest_api_token: Optional[str] = Field(default=None, validation_alias=_env("KV_REST_API_TOKEN"))
    kv_key: str = "asd-news"

    # Ingestion
    feeds_file: Optional[Path] = None
    fetch_timeout_seconds: int = 30
    user_agent: str = DEFAULT_USER_AGENT

    # Update cycle
    max_articles_per_update: int = 10
    delay_between_requests_seconds: float = 4.5
    retention_limit: int = 50

    # Triggers
    cron_secret: Optional[str] = Field(default=None, validation_alias=_env("CRON_SECRET"))
    update_password: Optional[str] = Field(default=None, validation_alias=_env("UPDATE_PASSWORD"))
    schedule_cron: str = "0 9 * * *"

    log_level: str = "INFO"

    @property
    def kv_enabled(self) -> bool:
        """The remote store is used only when both URL and token are set."""
        return bool(self.kv_rest_api_url and self.kv_rest_api_token)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build the process-wide settings once, for entry points only."""
    return Settings()
