"""Configuration for the pickup tracker."""

from typing import List
from zoneinfo import ZoneInfo
import os
from dotenv import load_dotenv

load_dotenv()


DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:8000",
    "http://127.0.0.1:8000",
]


class Settings:
    """Application settings."""

    # API Settings
    API_TITLE = "Pickup Tracker"
    API_VERSION = "1.0.0"
    API_DESCRIPTION = (
        "Childcare pickup log with time-based tariffs and monthly CSV reports"
    )

    def __init__(self):
        # Storage Settings
        self.PICKUP_LOG_FILE = os.getenv(
            "PICKUP_LOG_FILE", os.path.join(".", "data", "pickup-logs.json")
        )
        self.STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "json").lower()
        self.DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./pickup_logs.db")

        # Wall-clock time and weekday of a pickup are read in this zone
        self.TIMEZONE = os.getenv("PICKUP_TIMEZONE", "Europe/Amsterdam")

        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self.EXPORT_FILENAME_PREFIX = os.getenv("EXPORT_FILENAME_PREFIX", "pickup-log")

        # CORS Settings
        self.CORS_ORIGINS = self._parse_origins(os.getenv("CORS_ORIGINS"))

    @staticmethod
    def _parse_origins(raw) -> List[str]:
        if not raw:
            return list(DEFAULT_CORS_ORIGINS)
        return [origin.strip() for origin in raw.split(",") if origin.strip()]

    @property
    def tzinfo(self) -> ZoneInfo:
        """Timezone object for the configured pickup timezone."""
        return ZoneInfo(self.TIMEZONE)


settings = Settings()
