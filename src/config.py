"""
Settings for the Office 365 calendar adapter.

Values come from environment variables or a ``.env`` file in the working
directory, loaded once through pydantic-settings.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_ASYNC_DRIVERS = {
    "sqlite:///": "sqlite+aiosqlite:///",
    "postgresql://": "postgresql+asyncpg://",
}


class Settings(BaseSettings):
    """Adapter configuration. Field names map to upper-case env vars."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    python_env: Literal["development", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Credential store
    database_url: str = Field(
        default="sqlite:///./data/calendar_adapter.db",
        description="Sync-style URL; the async driver is chosen from it",
    )

    # Azure AD app registration used for the refresh grant
    ms_graph_client_id: str = ""
    ms_graph_client_secret: str = ""
    ms_graph_scopes: str = Field(
        default="User.Read Calendars.Read Calendars.ReadWrite",
        description="Space-separated scopes sent with every refresh grant",
    )
    ms_graph_token_url: str = "https://login.microsoftonline.com/common/oauth2/v2.0/token"

    # Graph REST endpoint
    ms_graph_base_url: str = "https://graph.microsoft.com/v1.0"
    ms_graph_http_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Seconds before Graph and token requests time out",
    )

    @field_validator("ms_graph_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def is_development(self) -> bool:
        return self.python_env == "development"

    @property
    def is_production(self) -> bool:
        return self.python_env == "production"

    @property
    def uses_postgresql(self) -> bool:
        return self.database_url.lower().startswith("postgresql")

    @property
    def uses_ms_graph_oauth(self) -> bool:
        """True when both halves of the app registration are set."""
        return bool(self.ms_graph_client_id and self.ms_graph_client_secret)

    @property
    def async_database_url(self) -> str:
        """database_url rewritten for aiosqlite / asyncpg."""
        for prefix, async_prefix in _ASYNC_DRIVERS.items():
            if self.database_url.startswith(prefix):
                return async_prefix + self.database_url[len(prefix):]
        return self.database_url

    def validate_ms_graph_config(self) -> None:
        """
        Check that the refresh grant can be performed.

        Raises:
            ValueError: Naming the first missing MS_GRAPH_* variable
        """
        for env_name, value in (
            ("MS_GRAPH_CLIENT_ID", self.ms_graph_client_id),
            ("MS_GRAPH_CLIENT_SECRET", self.ms_graph_client_secret),
        ):
            if not value:
                raise ValueError(
                    f"{env_name} not configured. Please set it in your .env file."
                )

    def validate_production_config(self) -> None:
        """
        Collect every production misconfiguration into one error.

        No-op outside production.

        Raises:
            ValueError: If PostgreSQL or the Graph app registration is missing
        """
        if not self.is_production:
            return

        problems = []
        if not self.uses_postgresql:
            problems.append("Production requires PostgreSQL for DATABASE_URL.")
        if not self.uses_ms_graph_oauth:
            problems.append(
                "MS_GRAPH_CLIENT_ID and MS_GRAPH_CLIENT_SECRET are required in production."
            )

        if problems:
            raise ValueError("Production configuration errors:\n- " + "\n- ".join(problems))


@lru_cache()
def get_settings() -> Settings:
    """Process-wide Settings, loaded on first use."""
    return Settings()
