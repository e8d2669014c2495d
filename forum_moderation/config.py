"""Application Configuration: environment-driven settings via pydantic-settings.

Invariants:
    - Every setting can be overridden by an environment variable (case-insensitive)
    - get_settings() is cached (lru_cache): single instance per process
    - sanctions_page_size_default never exceeds sanctions_page_size_max

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults for everything: works out-of-the-box against a local Postgres
"""

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://forum:forum@db:5432/forum"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted Postgres hands out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    # Expiration sweep
    sweep_enabled: bool = True
    sweep_interval_minutes: float = 30
    sweep_initial_delay_seconds: float = 5

    # Listings
    sanctions_page_size_default: int = 20
    sanctions_page_size_max: int = 100

    @model_validator(mode="after")
    def check_page_sizes(self) -> "Settings":
        if self.sanctions_page_size_max < 1:
            raise ValueError("sanctions_page_size_max must be at least 1")
        self.sanctions_page_size_default = min(
            max(self.sanctions_page_size_default, 1), self.sanctions_page_size_max,
        )
        return self


@lru_cache
def get_settings() -> Settings:
    return Settings()
