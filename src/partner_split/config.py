"""Configuration management for partner-split."""

from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError
from .models import Partner, PartnerPair


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Partners
    partner_a_id: str = "taha"
    partner_a_name: str = "Taha"
    partner_b_id: str = "burak"
    partner_b_name: str = "Burak"

    # Display
    currency: str = "USD"
    recent_limit: int = 5

    # Data source
    data_source: Literal["sqlite", "supabase"] = "sqlite"

    # Supabase REST API
    supabase_url: str | None = None
    supabase_key: str | None = None

    # Database path
    database_path: Path = Path.home() / ".partner_split" / "partner_split.db"

    def __init__(self, **kwargs):
        """Initialize settings and create database directory if needed."""
        super().__init__(**kwargs)
        self.database_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def partners(self) -> PartnerPair:
        """The configured partner pair."""
        return PartnerPair(
            first=Partner(id=self.partner_a_id, name=self.partner_a_name),
            second=Partner(id=self.partner_b_id, name=self.partner_b_name),
        )

    def require_supabase(self) -> tuple[str, str]:
        """Return (url, key), raising if the hosted backend is not configured."""
        if not self.supabase_url or not self.supabase_key:
            raise ConfigurationError(
                "data_source is 'supabase' but SUPABASE_URL or SUPABASE_KEY is not set"
            )
        return self.supabase_url, self.supabase_key


def load_settings() -> Settings:
    """Load application settings from environment variables."""
    try:
        return Settings()
    except Exception as e:
        raise ValueError(
            f"Failed to load settings. Make sure your .env file or environment "
            f"defines valid partner-split variables. See .env.example for reference.\n"
            f"Error: {e}"
        ) from e
