import logging
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, HttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict

from tourney.models.enums import MatchPolicy


class AppSettings(BaseSettings):
    """Application settings loaded from environment variables or .env file."""

    # Storage Configuration
    store_backend: Literal["memory", "supabase"] = Field(
        "memory", description="Document store backend to use."
    )
    supabase_url: Optional[HttpUrl] = Field(
        None, description="URL for the Supabase project."
    )
    supabase_key: Optional[str] = Field(
        None, description="Anon key for the Supabase project."
    )
    supabase_service_key: Optional[str] = Field(
        None, description="Service role key for Supabase (use with caution!)."
    )
    teams_table: str = Field("teams", description="Collection holding team records.")
    groups_table: str = Field(
        "groups", description="Collection holding per-group team counts."
    )
    matches_table: str = Field(
        "matches", description="Collection holding match records."
    )
    store_max_attempts: int = Field(
        5,
        ge=1,
        le=20,
        description="Attempts for a read-modify-write before giving up on conflicts.",
    )

    # Competition Rules
    match_policy: MatchPolicy = Field(
        MatchPolicy.STRICT,
        description="STRICT requires both teams of a match to share a group.",
    )
    qualifiers_per_group: int = Field(
        3, ge=0, description="Top teams per group that qualify for the next round."
    )

    # Seeding
    seed_teams_file: Optional[Path] = Field(
        None, description="Text file of '<name> <DD/MM> <group>' lines."
    )
    seed_matches_file: Optional[Path] = Field(
        None, description="Text file of '<teamA> <teamB> <scoreA> <scoreB>' lines."
    )

    # Logging Configuration
    log_level: str = Field(
        "INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."
    )

    # Pydantic Settings Configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )


def load_settings() -> AppSettings:
    """Loads and validates application settings."""
    try:
        settings = AppSettings()
        log_level_upper = settings.log_level.upper()
        # Validate log_level even if loaded from .env
        if log_level_upper not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            logging.warning(
                f"Invalid LOG_LEVEL '{settings.log_level}' found in .env or default. Using INFO."
            )
            settings.log_level = "INFO"
        else:
            settings.log_level = log_level_upper
        return settings
    except Exception as e:
        logging.exception(f"Error loading application settings: {e}")
        raise SystemExit("Failed to load application settings. Exiting.")


settings: AppSettings = load_settings()
