"""Configuration management for the quoting service."""

import logging
from typing import Optional

import pycountry
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from glassquote.coordinates import Coordinates

logger = logging.getLogger(__name__)


class QuoteConfig(BaseSettings):
    """Configuration for pricing, transportation and geocoding."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    currency: str = Field(
        default="COP",
        description="ISO 4217 currency code quotes are expressed in",
    )

    transport_base_rate: float = Field(
        default=0.0,
        ge=0.0,
        description="Flat delivery charge added to every transported quote",
    )

    transport_per_km_rate: float = Field(
        default=0.0,
        ge=0.0,
        description="Delivery charge per kilometer from the warehouse",
    )

    transport_review_distance_km: float = Field(
        default=1000.0,
        gt=0.0,
        description="Deliveries farther than this are flagged for manual review",
    )

    warehouse_latitude: Optional[float] = Field(
        default=None, ge=-90.0, le=90.0, description="Warehouse latitude"
    )
    warehouse_longitude: Optional[float] = Field(
        default=None, ge=-180.0, le=180.0, description="Warehouse longitude"
    )
    warehouse_city: Optional[str] = Field(
        default=None, description="Warehouse city, used for display"
    )

    geocoding_api_url: str = Field(
        default="https://nominatim.openstreetmap.org",
        description="Nominatim-compatible geocoding base URL",
    )

    geocoding_user_agent: str = Field(
        default="glassquote/0.1 (quotes@example.com)",
        description="User-Agent sent to the geocoding API (required by Nominatim)",
    )

    geocoding_language: str = Field(
        default="es",
        description="Accept-Language for geocoding results",
    )

    geocoding_timeout_sec: float = Field(
        default=5.0,
        ge=1.0,
        le=60.0,
        description="Geocoding request timeout in seconds",
    )

    geocoding_min_interval_sec: float = Field(
        default=1.0,
        ge=0.0,
        le=10.0,
        description="Minimum delay between geocoding requests",
    )

    geocode_cache_enabled: bool = Field(
        default=True,
        description="Cache geocoding results in memory",
    )

    geocode_cache_ttl_sec: int = Field(
        default=86400,
        ge=1,
        description="Geocoding cache entry lifetime in seconds",
    )

    geocode_cache_max_entries: int = Field(
        default=512,
        ge=1,
        description="Maximum cached geocoding queries",
    )

    api_host: str = Field(
        default="0.0.0.0",
        description="API host address",
    )

    api_port: int = Field(
        default=8000,
        description="API port",
    )

    @field_validator("currency")
    @classmethod
    def validate_currency(cls, v: str) -> str:
        """Validate the currency is a 3-letter ISO 4217 code."""
        code = v.strip().upper()
        if len(code) != 3 or not code.isalpha():
            raise ValueError(
                f"Invalid currency code format: '{v}'. "
                f"Must be a 3-letter ISO 4217 code (e.g., COP, USD)."
            )
        if pycountry.currencies.get(alpha_3=code) is None:
            raise ValueError(
                f"Invalid ISO 4217 code: {code}. "
                f"See https://en.wikipedia.org/wiki/ISO_4217"
            )
        return code

    def warehouse_location(self) -> Optional[Coordinates]:
        """Return warehouse coordinates, or None when not configured."""
        if self.warehouse_latitude is None or self.warehouse_longitude is None:
            return None
        return Coordinates(
            latitude=self.warehouse_latitude,
            longitude=self.warehouse_longitude,
            label=self.warehouse_city,
        )

    def validate_config(self) -> None:
        """Validate configuration at startup. Raises ValueError if invalid."""
        errors = []

        # Warehouse coordinates only make sense as a pair
        if (self.warehouse_latitude is None) != (self.warehouse_longitude is None):
            errors.append(
                "WAREHOUSE_LATITUDE and WAREHOUSE_LONGITUDE must be set together"
            )

        if self.transport_per_km_rate > 0 and self.warehouse_latitude is None:
            errors.append("TRANSPORT_PER_KM_RATE requires a configured warehouse")

        if not self.geocoding_api_url.startswith(("http://", "https://")):
            errors.append("GEOCODING_API_URL must be an http(s) URL")

        if not self.geocoding_user_agent.strip():
            errors.append("GEOCODING_USER_AGENT cannot be empty")

        if errors:
            raise ValueError(
                "Configuration validation failed:\n"
                + "\n".join(f"  - {e}" for e in errors)
            )


_config_instance = None


def get_config() -> QuoteConfig:
    """Get or create global configuration instance."""
    global _config_instance
    if _config_instance is None:
        _config_instance = QuoteConfig()
        _config_instance.validate_config()
        logger.info("Configuration validated successfully")
    return _config_instance


def reload_config() -> QuoteConfig:
    """Reload configuration (useful for testing)."""
    global _config_instance
    _config_instance = QuoteConfig()
    return _config_instance
