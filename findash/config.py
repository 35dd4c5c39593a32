"""Application configuration from environment variables."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class AppConfig(BaseSettings):
    """Process-level settings loaded from ``FINDASH_*`` environment variables.

    Risk thresholds live in the database (see ``findash.settings``), not here.
    """

    model_config = SettingsConfigDict(env_prefix="FINDASH_", env_file=".env", env_file_encoding="utf-8")

    # Application
    app_name: str = "FinDash"
    debug: bool = False
    log_level: str = "INFO"

    # Web server
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list[str] = ["*"]

    # Database
    data_dir: Path = Path("data")
    database_path: Path | None = None  # Defaults to <data_dir>/findash.db

    # API tokens
    token_prefix: str = "fd_"
    token_default_expiry_days: int | None = 90

    def resolved_database_path(self) -> Path:
        """Database file path, falling back to the data directory."""
        return self.database_path or (self.data_dir / "findash.db")


@lru_cache
def get_config() -> AppConfig:
    """Return the cached application config."""
    return AppConfig()
