"""Configuration settings for grocerylist."""
from functools import lru_cache
from pathlib import Path
from typing import Optional, Literal
from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Repository root: src/grocerylist/config/settings.py -> ../../../..
PROJECT_ROOT = Path(__file__).parent.parent.parent.parent

DEFAULT_LOG_FILE = PROJECT_ROOT / "logs" / "grocerylist.log"

LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")

SQLITE_PREFIX = "sqlite:///"


class GroceryListSettings(BaseSettings):
    """Settings read from GROCERYLIST_* environment variables and .env."""

    # Database
    DB_URL: str = f"{SQLITE_PREFIX}grocery.db"
    DB_ECHO: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[Path] = DEFAULT_LOG_FILE
    LOG_FORMAT: Literal["simple", "detailed"] = "detailed"
    LOG_RETENTION_DAYS: int = 7
    LOG_ROTATION_SIZE_MB: int = 1

    # Categories
    DEFAULT_CATEGORY_NAME: str = "Uncategorized"

    # Ordering; must stay above any position a real list will reach
    PARKING_OFFSET: int = 100000

    # Entries
    MAX_DESCRIPTION_LENGTH: int = 200
    SUGGESTION_LIMIT: int = 10

    model_config = SettingsConfigDict(
        env_prefix="GROCERYLIST_",
        case_sensitive=False,
        env_file=PROJECT_ROOT / ".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v = v.upper()
        if v not in LOG_LEVELS:
            raise ValueError(f"Log level must be one of: {', '.join(LOG_LEVELS)}")
        return v

    @field_validator("LOG_FORMAT", mode="before")
    @classmethod
    def normalize_log_format(cls, v):
        return v.lower() if isinstance(v, str) else v

    @field_validator("PARKING_OFFSET")
    @classmethod
    def validate_parking_offset(cls, v: int) -> int:
        if v <= 1:
            raise ValueError("Parking offset must be greater than 1")
        return v

    @field_validator("SUGGESTION_LIMIT", "MAX_DESCRIPTION_LENGTH")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Value must be at least 1")
        return v

    @field_validator("DEFAULT_CATEGORY_NAME")
    @classmethod
    def validate_category_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Default category name cannot be empty")
        return v.strip()

    @model_validator(mode="after")
    def resolve_paths(self) -> "GroceryListSettings":
        """Anchor relative SQLite and log paths at the project root."""
        if self.DB_URL.startswith(SQLITE_PREFIX) and self.DB_URL != f"{SQLITE_PREFIX}:memory:":
            db_path = Path(self.DB_URL[len(SQLITE_PREFIX):])
            if not db_path.is_absolute():
                self.DB_URL = f"{SQLITE_PREFIX}{PROJECT_ROOT / db_path}"

        if self.LOG_FILE and not self.LOG_FILE.is_absolute():
            self.LOG_FILE = PROJECT_ROOT / self.LOG_FILE
        return self


@lru_cache()
def get_settings() -> GroceryListSettings:
    """Get cached settings instance."""
    return GroceryListSettings()


def clear_settings_cache() -> None:
    """Drop the cached settings so the next get_settings() rereads the environment."""
    get_settings.cache_clear()
