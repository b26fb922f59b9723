from datetime import time
from typing import List, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    LMS_API_KEY: Optional[str] = None

    GOOGLE_MAPS_KEY: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("GOOGLE_MAPS_KEY", "GOOGLE_MAPS_API_KEY"),
    )
    DISTANCE_MATRIX_URL: str = "https://maps.googleapis.com/maps/api/distancematrix/json"
    DISTANCE_REGION: str = "au"
    DISTANCE_TIMEOUT: float = 5.0

    DISTANCE_CACHE_ENABLED: bool = True
    DISTANCE_CACHE_TTL: int = 12 * 60 * 60  # 12 hours
    REDIS_URL: Optional[str] = None

    CURRENCY: str = "AUD"
    PRICE_BASE: float = 65.0
    PRICE_PER_KM: float = 2.2
    PRICE_PER_MIN: float = 0.0
    PRICE_PER_PAX: float = 5.0
    PRICE_PER_BAG: float = 2.0

    AFTER_HOURS_START: time = time(22, 0)
    AFTER_HOURS_END: time = time(6, 0)
    AFTER_HOURS_RATE: float = 0.0
    LOCAL_TIMEZONE: str = "Australia/Brisbane"

    AIRPORT_SURCHARGE: float = 0.0
    AIRPORT_PATTERN: str = r"\bairport\b"

    ALLOWED_ORIGINS: List[str] = [
        "https://limomanagementsys.com.au",
        "https://www.limomanagementsys.com.au",
    ]

    RATE_LIMIT_WINDOW: int = 15 * 60  # 15 minutes
    RATE_LIMIT_QUOTE: int = 60
    RATE_LIMIT_BOOK: int = 20
    TRUST_PROXY: bool = True

    MAX_BODY_BYTES: int = 1024 * 1024  # 1MB

    API_TITLE: str = "Limo Quote API"
    API_DESCRIPTION: str = "Trip quotes and booking requests for the limousine service"
    API_VERSION: str = "1.0.0"

    LOG_LEVEL: str = "INFO"
    PORT: int = 10000

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def maps_configured(self) -> bool:
        return bool(self.GOOGLE_MAPS_KEY)


def get_settings() -> Settings:
    return Settings()
