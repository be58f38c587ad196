"""Application configuration."""

import os
from functools import lru_cache

from dotenv import load_dotenv

# Load .env file from project root
load_dotenv()


class Settings:
    """Application settings from environment variables."""

    anthropic_api_key: str
    database_url: str
    powerful_max_count: int
    explore_score_threshold: int
    otlp_endpoint: str

    def __init__(self):
        self.anthropic_api_key = os.environ.get("ANTHROPIC_API_KEY", "")
        self.database_url = os.environ.get("DATABASE_URL", "sqlite+aiosqlite:///./thouthy.db")
        self.powerful_max_count = int(os.environ.get("POWERFUL_MAX_COUNT", "3"))
        self.explore_score_threshold = int(os.environ.get("EXPLORE_SCORE_THRESHOLD", "50"))
        # Empty disables trace export
        self.otlp_endpoint = os.environ.get("OTLP_ENDPOINT", "http://localhost:4317")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
