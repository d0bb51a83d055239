"""
Configuration Management

Uses Pydantic Settings for environment-based configuration.
Loads from .env file automatically.
"""

from typing import Optional
from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Engine settings loaded from environment."""

    # Application Settings
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Request handling
    REQUEST_TIMEOUT: float = 10.0  # seconds per validate_content call
    MAX_CONCURRENCY: int = 3  # default batch ceiling

    # Caching
    RULES_CACHE_TTL: int = 3600  # compiled rule sets, seconds
    RESULT_CACHE_TTL: int = 900
    RESULT_CACHE_ENABLED: bool = True
    REDIS_URL: Optional[str] = None
    CACHE_NAMESPACE: str = "brand_compliance"

    # Brand alignment blend (tunable, see DESIGN.md)
    VOICE_ALIGNMENT_WEIGHT: float = 0.4
    MESSAGE_ALIGNMENT_WEIGHT: float = 0.6

    # Rule behaviour
    READABILITY_TOLERANCE: int = 2  # grades above target before violating
    SUGGESTION_MATCH_RATIO: float = 0.3  # share of terms a "should" rule needs
    AUTO_RESOLVE_TIES: bool = True  # equal-priority must vs must_not -> must wins

    # Live prediction
    PREDICTION_MIN_WORDS: int = 30  # draft length before key-message checks kick in

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"
        case_sensitive = False


@lru_cache
def get_settings() -> Settings:
    """Get or create cached settings instance."""
    return Settings()
