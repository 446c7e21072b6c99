"""FastAPI application for the glass quoting service."""

import logging
import os
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict

from fastapi import APIRouter, Depends, FastAPI, Query, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from glassquote.config import get_config
from glassquote.dependencies import (
    AppResources,
    get_geocoding_client,
    get_quote_service,
)
from glassquote.exceptions import ContractError
from glassquote.geocode_cache import AddressSearchCache
from glassquote.geocoding import (
    MAX_SEARCH_LIMIT,
    GeocodingClient,
    GeocodingError,
    GeocodingTimeoutError,
)
from glassquote.models import (
    GeocodingSearchResponse,
    QuoteCalculateRequest,
    QuoteItemResponse,
    QuotePreviewRequest,
    QuotePreviewResponse,
    TransportationEstimateRequest,
    TransportationEstimateResponse,
)
from glassquote.quote_service import QuoteService

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


def get_allowed_origins() -> list[str]:
    """Get allowed CORS origins from environment."""
    origins = os.getenv("ALLOWED_ORIGINS", "http://localhost:5173")
    return [origin.strip() for origin in origins.split(",") if origin.strip()]


# Initialize rate limiter
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["60/minute"],
    swallow_errors=True,
)

router = APIRouter()


@router.get("/health")
@limiter.exempt
async def health_check() -> Dict[str, Any]:
    """Health check endpoint for container orchestration."""
    return {
        "status": "healthy",
        "service": "glass-quoting",
        "version": VERSION,
    }


@router.post(
    "/quote/calculate",
    response_model=QuoteItemResponse,
    status_code=status.HTTP_200_OK,
    responses={
        400: {"description": "Invalid pricing input"},
        409: {"description": "Warehouse not configured"},
        422: {"description": "Address not found"},
        429: {"description": "Rate limit exceeded"},
        502: {"description": "Geocoding upstream failure"},
        504: {"description": "Geocoding timed out"},
    },
)
@limiter.limit("30/minute")
async def calculate_quote_item(
    request: Request,
    payload: QuoteCalculateRequest,
    quote_service: QuoteService = Depends(get_quote_service),
) -> QuoteItemResponse:
    """Price one configured item with its full breakdown."""
    return await run_in_threadpool(quote_service.calculate_item, payload)


@router.post(
    "/quote/preview",
    response_model=QuotePreviewResponse,
    status_code=status.HTTP_200_OK,
    responses={
        409: {"description": "Warehouse not configured"},
        422: {"description": "Address not found"},
        429: {"description": "Rate limit exceeded"},
        502: {"description": "Geocoding upstream failure"},
        504: {"description": "Geocoding timed out"},
    },
)
@limiter.limit("30/minute")
async def preview_quote(
    request: Request,
    payload: QuotePreviewRequest,
    quote_service: QuoteService = Depends(get_quote_service),
) -> QuotePreviewResponse:
    """Compute a whole-cart quote preview with per-item status."""
    return await run_in_threadpool(quote_service.preview_quote, payload)


@router.post(
    "/transportation/estimate",
    response_model=TransportationEstimateResponse,
    status_code=status.HTTP_200_OK,
    responses={
        409: {"description": "Warehouse not configured"},
        422: {"description": "Address not found"},
        429: {"description": "Rate limit exceeded"},
        502: {"description": "Geocoding upstream failure"},
        504: {"description": "Geocoding timed out"},
    },
)
@limiter.limit("30/minute")
async def estimate_transportation(
    request: Request,
    payload: TransportationEstimateRequest,
    quote_service: QuoteService = Depends(get_quote_service),
) -> TransportationEstimateResponse:
    """Estimate the delivery charge from the warehouse to a destination."""
    return await run_in_threadpool(quote_service.estimate_transportation, payload)


@router.get(
    "/geocoding/search",
    response_model=GeocodingSearchResponse,
    responses={
        429: {"description": "Rate limit exceeded"},
        502: {"description": "Geocoding upstream failure"},
        504: {"description": "Geocoding timed out"},
    },
)
@limiter.limit("1/second")
async def search_addresses(
    request: Request,
    q: str = Query(..., min_length=1, pattern=r"\S", description="Free-text address"),
    limit: int = Query(5, ge=1, le=MAX_SEARCH_LIMIT),
    geocoder: GeocodingClient = Depends(get_geocoding_client),
) -> JSONResponse:
    """Search addresses; results are cached per normalized query."""
    found = await run_in_threadpool(geocoder.search, q, limit=limit)
    body = GeocodingSearchResponse(
        query=q,
        results=found.results,
        total_results=len(found.results),
    )
    return JSONResponse(
        content=body.model_dump(mode="json"),
        headers={"X-Geocode-Cache": found.cache_status},
    )


async def rate_limit_exceeded_handler(
    request: Request, exc: RateLimitExceeded
) -> JSONResponse:
    """Rate limit exceeded handler."""
    return JSONResponse(
        status_code=429,
        content={"detail": "Rate limit exceeded. Please try again later."},
    )


def _error_payload(code: str, message: str, details: Dict[str, Any]) -> Dict[str, Any]:
    return {"error": {"code": code, "message": message, "details": details}}


async def contract_error_handler(request: Request, exc: ContractError) -> JSONResponse:
    """Map domain contract errors to stable API error payload."""
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_payload(exc.code, exc.message, exc.details),
    )


async def geocoding_error_handler(request: Request, exc: GeocodingError) -> JSONResponse:
    """Map geocoding upstream failures to 502/504."""
    if isinstance(exc, GeocodingTimeoutError):
        return JSONResponse(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            content=_error_payload("GEOCODING_TIMEOUT", str(exc), {}),
        )
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content=_error_payload("GEOCODING_FAILED", str(exc), {}),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build app-scoped resources once and release them on shutdown."""
    config = get_config()
    geocode_cache = AddressSearchCache(
        ttl_sec=config.geocode_cache_ttl_sec,
        max_entries=config.geocode_cache_max_entries,
    )
    geocoding_client = GeocodingClient(config, cache=geocode_cache)
    app.state.glassquote_resources = AppResources(
        config=config,
        geocode_cache=geocode_cache,
        geocoding_client=geocoding_client,
    )
    logger.info("Quoting API started (currency=%s)", config.currency)
    try:
        yield
    finally:
        geocoding_client.close()


def create_app() -> FastAPI:
    """Create a configured FastAPI application."""
    application = FastAPI(
        title="Glass Quoting Service",
        description="Price glass and window products with delivery estimates",
        version=VERSION,
        lifespan=lifespan,
    )
    application.state.limiter = limiter
    application.add_middleware(
        CORSMiddleware,
        allow_origins=get_allowed_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Geocode-Cache"],
    )
    application.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)  # type: ignore[arg-type]
    application.add_exception_handler(ContractError, contract_error_handler)  # type: ignore[arg-type]
    application.add_exception_handler(GeocodingError, geocoding_error_handler)  # type: ignore[arg-type]
    application.include_router(router)
    return application


app = create_app()


def main() -> None:
    """Run API server."""
    import uvicorn

    config = get_config()
    uvicorn.run(
        "glassquote.api:app",
        host=config.api_host,
        port=config.api_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
