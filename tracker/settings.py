"""Configuration for the finance tracker."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Tracker settings, overridable through ``FINANCE_TRACKER_*`` variables or ``.env``."""

    storage_dir: Path = Path("data/store")
    storage_quota_bytes: int | None = None
    key_prefix: str = "expense_tracker_"
    max_backups: int = 10
    backups_kept_on_quota: int = 5
    history_cap: int = 1000
    data_version: str = "1.0.0"
    seed_file: Path = Path("data/seed.json")
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="FINANCE_TRACKER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


def get_settings(**overrides) -> Settings:
    """Return settings, with keyword overrides taking precedence over the environment."""
    return Settings(**overrides)
