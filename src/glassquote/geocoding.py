"""Address search against a Nominatim-compatible geocoding API."""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

import httpx
from pydantic import ValidationError

from glassquote.config import QuoteConfig
from glassquote.coordinates import Coordinates
from glassquote.geocode_cache import AddressSearchCache
from glassquote.models import GeocodingResult

logger = logging.getLogger(__name__)

MAX_SEARCH_LIMIT = 10


class GeocodingError(RuntimeError):
    """Geocoding API failed or returned an unusable payload."""


class GeocodingTimeoutError(GeocodingError):
    """Geocoding API did not answer within the configured timeout."""


@dataclass(frozen=True)
class GeocodingSearch:
    results: list[GeocodingResult]
    cache_status: str


def _first_present(address: dict, *keys: str) -> Optional[str]:
    for key in keys:
        value = address.get(key)
        if value:
            return str(value)
    return None


def parse_result(item: dict[str, Any]) -> GeocodingResult:
    """Map one raw Nominatim record to a ``GeocodingResult``."""
    address = item.get("address") or {}
    return GeocodingResult(
        place_id=str(item["place_id"]),
        display_name=item.get("display_name", ""),
        latitude=float(item["lat"]),
        longitude=float(item["lon"]),
        city=_first_present(address, "city", "town", "village", "municipality"),
        state=_first_present(address, "state", "county"),
        country=address.get("country"),
        postcode=address.get("postcode"),
    )


def to_coordinates(result: GeocodingResult) -> Coordinates:
    return Coordinates(
        latitude=result.latitude,
        longitude=result.longitude,
        label=result.city or result.display_name,
    )


class GeocodingClient:
    """Blocking geocoding client with request spacing and optional caching.

    Public Nominatim allows one request per second, so calls are serialized
    under a lock and spaced by ``geocoding_min_interval_sec``.
    """

    def __init__(
        self,
        config: QuoteConfig,
        *,
        client: Optional[httpx.Client] = None,
        cache: Optional[AddressSearchCache] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self.client = client or httpx.Client(
            timeout=config.geocoding_timeout_sec,
            headers={"User-Agent": config.geocoding_user_agent},
        )
        self.cache = cache if config.geocode_cache_enabled else None
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._last_request_at: Optional[float] = None

    def search(
        self, query: str, *, limit: int = 5, language: Optional[str] = None
    ) -> GeocodingSearch:
        """Search addresses matching ``query``.

        Raises:
            ValueError: Empty query or limit outside 1..10.
            GeocodingTimeoutError: Upstream timed out.
            GeocodingError: Upstream error or malformed response.
        """
        normalized = query.strip()
        if not normalized:
            raise ValueError("Geocoding query cannot be empty")
        if limit < 1 or limit > MAX_SEARCH_LIMIT:
            raise ValueError(f"limit must be between 1 and {MAX_SEARCH_LIMIT}")
        language = language or self.config.geocoding_language

        if self.cache is not None:
            cached = self.cache.lookup(normalized, limit=limit, language=language)
            if cached is not None:
                logger.info("Geocoding cache hit for %r", normalized)
                return GeocodingSearch(
                    results=list(cached),
                    cache_status="hit",
                )

        raw_items = self._request(normalized, limit, language)
        try:
            results = [parse_result(item) for item in raw_items]
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            logger.error("Malformed geocoding payload for %r: %s", normalized, e)
            raise GeocodingError(f"Malformed geocoding response: {e}") from e

        if self.cache is not None:
            self.cache.store(normalized, results, limit=limit, language=language)

        logger.info("Geocoding %r returned %d result(s)", normalized, len(results))
        return GeocodingSearch(
            results=results,
            cache_status="miss" if self.cache is not None else "bypass",
        )

    def first_match(self, query: str) -> Optional[GeocodingResult]:
        """Return the best match for ``query`` or None."""
        found = self.search(query, limit=1)
        return found.results[0] if found.results else None

    def close(self) -> None:
        self.client.close()

    def _request(self, query: str, limit: int, language: str) -> list:
        url = f"{self.config.geocoding_api_url.rstrip('/')}/search"
        params = {
            "q": query,
            "format": "json",
            "limit": limit,
            "addressdetails": 1,
            "accept-language": language,
        }
        with self._lock:
            self._wait_for_slot_locked()
            try:
                response = self.client.get(
                    url,
                    params=params,
                    headers={"User-Agent": self.config.geocoding_user_agent},
                    timeout=self.config.geocoding_timeout_sec,
                )
                response.raise_for_status()
                payload = response.json()
            except httpx.TimeoutException as e:
                logger.error("Geocoding request timed out for %r", query)
                raise GeocodingTimeoutError(
                    f"Geocoding timed out after {self.config.geocoding_timeout_sec}s"
                ) from e
            except httpx.HTTPStatusError as e:
                logger.error(
                    "Geocoding API returned HTTP %s for %r",
                    e.response.status_code,
                    query,
                )
                raise GeocodingError(
                    f"Geocoding API returned HTTP {e.response.status_code}"
                ) from e
            except httpx.HTTPError as e:
                logger.error("Geocoding request failed for %r: %s", query, e)
                raise GeocodingError(f"Geocoding request failed: {e}") from e
            except ValueError as e:
                logger.error("Geocoding API returned invalid JSON for %r", query)
                raise GeocodingError("Geocoding API returned invalid JSON") from e
            finally:
                self._last_request_at = self._clock()

        if not isinstance(payload, list):
            raise GeocodingError("Geocoding API returned an unexpected payload")
        return payload

    def _wait_for_slot_locked(self) -> None:
        if self._last_request_at is None:
            return
        elapsed = self._clock() - self._last_request_at
        remaining = self.config.geocoding_min_interval_sec - elapsed
        if remaining > 0:
            logger.debug("Waiting %.2fs before next geocoding request", remaining)
            self._sleep(remaining)
