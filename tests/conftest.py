"""Shared test fixtures."""

from collections.abc import Callable, Generator
from typing import Any

import httpx
import pytest
from fastapi.testclient import TestClient

from glassquote.api import create_app, limiter
from glassquote.config import QuoteConfig
from glassquote.dependencies import get_app_config, get_geocoding_client
from glassquote.geocode_cache import AddressSearchCache
from glassquote.geocoding import GeocodingClient

NOMINATIM_MEDELLIN = [
    {
        "place_id": 298734,
        "lat": "6.2442",
        "lon": "-75.5812",
        "display_name": "Medellín, Valle de Aburrá, Antioquia, Colombia",
        "address": {
            "city": "Medellín",
            "state": "Antioquia",
            "country": "Colombia",
            "postcode": "050001",
        },
    }
]


@pytest.fixture
def sample_item() -> dict[str, Any]:
    """One priced door: 199 100 cost basis, 20 % margin."""
    return {
        "item_id": "door-1",
        "width_mm": 1000,
        "height_mm": 2000,
        "min_width_mm": 800,
        "min_height_mm": 800,
        "base_price": 100000,
        "cost_per_mm_width": 10,
        "cost_per_mm_height": 5,
        "accessory_price": 5000,
        "glass_price_per_sqm": 40000,
        "glass_discount_width_mm": 50,
        "glass_discount_height_mm": 50,
        "profit_margin_percentage": 20,
    }


@pytest.fixture
def api_test_config() -> QuoteConfig:
    """Provide a test-owned config with a warehouse in Bogotá."""
    return QuoteConfig(
        _env_file=None,
        currency="COP",
        transport_base_rate=25000,
        transport_per_km_rate=1200,
        warehouse_latitude=4.711,
        warehouse_longitude=-74.0721,
        warehouse_city="Bogotá",
        geocoding_api_url="https://geocoder.test",
        geocoding_min_interval_sec=0,
        geocode_cache_ttl_sec=3600,
        geocode_cache_max_entries=16,
    )


@pytest.fixture
def geocoding_handler() -> Callable[[httpx.Request], httpx.Response]:
    """Default fake Nominatim: every query resolves to Medellín."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=NOMINATIM_MEDELLIN)

    return handler


@pytest.fixture
def geocoding_client(
    api_test_config: QuoteConfig,
    geocoding_handler: Callable[[httpx.Request], httpx.Response],
) -> Generator[GeocodingClient, None, None]:
    """Geocoding client backed by httpx.MockTransport."""
    client = GeocodingClient(
        api_test_config,
        client=httpx.Client(transport=httpx.MockTransport(geocoding_handler)),
        cache=AddressSearchCache(
            ttl_sec=api_test_config.geocode_cache_ttl_sec,
            max_entries=api_test_config.geocode_cache_max_entries,
        ),
        sleep=lambda _: None,
    )
    try:
        yield client
    finally:
        client.close()


@pytest.fixture
def api_test_app(
    monkeypatch: pytest.MonkeyPatch,
    api_test_config: QuoteConfig,
    geocoding_client: GeocodingClient,
) -> Generator[Any, None, None]:
    """Create a fresh FastAPI app with explicit dependency overrides."""
    monkeypatch.setenv("ALLOWED_ORIGINS", "http://localhost:5173")
    limiter.reset()
    app = create_app()
    app.dependency_overrides[get_app_config] = lambda: api_test_config
    app.dependency_overrides[get_geocoding_client] = lambda: geocoding_client
    try:
        yield app
    finally:
        app.dependency_overrides.clear()
        limiter.reset()


@pytest.fixture
def api_test_client(api_test_app: Any) -> Generator[TestClient, None, None]:
    """Create a TestClient for the overridden API app."""
    with TestClient(api_test_app) as client:
        yield client
