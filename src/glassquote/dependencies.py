"""Shared FastAPI app resource container and provider dependencies."""

from __future__ import annotations

from dataclasses import dataclass
from typing import cast

from fastapi import Depends, HTTPException, Request, status

from glassquote.config import QuoteConfig
from glassquote.geocode_cache import AddressSearchCache
from glassquote.geocoding import GeocodingClient
from glassquote.quote_service import QuoteService


@dataclass
class AppResources:
    """App-scoped resources initialized during FastAPI lifespan."""

    config: QuoteConfig
    geocode_cache: AddressSearchCache
    geocoding_client: GeocodingClient


def get_app_resources(request: Request) -> AppResources:
    """Return initialized app resources from state."""
    resources = getattr(request.app.state, "glassquote_resources", None)
    if resources is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Application resources are not initialized",
        )
    return cast(AppResources, resources)


def get_app_config(resources: AppResources = Depends(get_app_resources)) -> QuoteConfig:
    """Get app-scoped config instance."""
    return resources.config


def get_geocoding_client(
    resources: AppResources = Depends(get_app_resources),
) -> GeocodingClient:
    """Get app-scoped geocoding client."""
    return resources.geocoding_client


def get_quote_service(
    config: QuoteConfig = Depends(get_app_config),
    geocoder: GeocodingClient = Depends(get_geocoding_client),
) -> QuoteService:
    """Get quote service bound to the app-scoped collaborators."""
    return QuoteService(config=config, geocoder=geocoder)
