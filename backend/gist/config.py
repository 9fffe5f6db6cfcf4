"""Application configuration."""
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings

from gist.errors import ConfigurationError


class Settings(BaseSettings):
    """App settings from env."""

    openai_api_key: str = ""
    serper_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("SERPER_API_KEY", "SERP_API_KEY", "serper_api_key"),
    )

    summary_model: str = "gpt-4o-mini"  # fast, cheap for summaries

    # Search backend (Serper)
    search_endpoint: str = "https://google.serper.dev/search"
    search_country: str = "in"
    search_language: str = "en"
    search_timeout_seconds: float = 10.0

    # Page fetching / extraction
    fetch_timeout_seconds: float = 10.0
    fetch_user_agent: str = "Mozilla/5.0 (compatible; GetAGist/1.0)"
    fetch_max_bytes: int = 2_000_000
    max_content_chars: int = 5000
    # None = page text only has to beat the snippet length
    page_min_chars: Optional[int] = 100
    placeholder_domains: list[str] = Field(default_factory=lambda: ["example.com"])

    # Orchestration
    max_concurrency: int = Field(default=5, ge=1, le=10)
    request_deadline_seconds: Optional[float] = None
    summary_truncation_fallback: bool = True

    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        extra = "ignore"
        populate_by_name = True

    def require_credentials(self) -> None:
        """Raise ConfigurationError naming every missing credential."""
        missing = []
        if not self.openai_api_key:
            missing.append("OPENAI_API_KEY")
        if not self.serper_api_key:
            missing.append("SERPER_API_KEY")
        if missing:
            raise ConfigurationError(f"Missing required configuration: {', '.join(missing)}")
