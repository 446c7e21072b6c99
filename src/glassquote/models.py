"""Pydantic request/response models for the quoting API and CLI."""

import math
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class AdjustmentPayload(BaseModel):
    """Signed line item applied to a quoted item."""

    adjustment_id: Optional[str] = Field(None, description="Stable id; derived from concept if missing")
    concept: str = Field(..., min_length=1, description="Display label")
    unit: Literal["fixed", "unit", "sqm", "ml"] = Field(..., description="Pricing unit")
    value: float = Field(..., description="Rate per unit")
    sign: Literal["positive", "negative"] = Field("positive", description="Surcharge or discount")


class ServicePayload(BaseModel):
    """Service offered for an item; priced only when selected."""

    service_id: str = Field(..., min_length=1)
    name: Optional[str] = None
    unit: Literal["fixed", "unit", "sqm", "ml"]
    rate: float
    minimum_billing_unit: Optional[float] = None
    quantity_override: Optional[float] = None


class QuoteItemRequest(BaseModel):
    """One configured window/door to price.

    Domain rules (positive sizes, margin below 100 %, ...) are enforced by the
    pricing engine so each violation maps to its own error code.
    """

    item_id: Optional[str] = None
    quantity: int = Field(1, ge=1, description="Number of identical units")
    width_mm: float
    height_mm: float
    min_width_mm: float = 0.0
    min_height_mm: float = 0.0
    base_price: float
    cost_per_mm_width: float
    cost_per_mm_height: float
    accessory_price: float = 0.0
    glass_price_per_sqm: float = 0.0
    glass_discount_width_mm: float = 0.0
    glass_discount_height_mm: float = 0.0
    color_surcharge_percentage: float = Field(
        0.0, description="Colour surcharge in percent (15 means ×1.15)"
    )
    profit_margin_percentage: float = Field(
        0.0, description="Profit as a percentage of the final sale price"
    )
    adjustments: List[AdjustmentPayload] = Field(default_factory=list)
    services: List[ServicePayload] = Field(default_factory=list)
    selected_service_ids: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_numeric_finite(self) -> "QuoteItemRequest":
        for field_name in (
            "width_mm",
            "height_mm",
            "min_width_mm",
            "min_height_mm",
            "base_price",
            "cost_per_mm_width",
            "cost_per_mm_height",
            "accessory_price",
            "glass_price_per_sqm",
            "glass_discount_width_mm",
            "glass_discount_height_mm",
            "color_surcharge_percentage",
            "profit_margin_percentage",
        ):
            if not math.isfinite(getattr(self, field_name)):
                raise ValueError(f"{field_name} must be finite")
        return self


class DeliveryPayload(BaseModel):
    """Delivery destination: coordinates, or an address to geocode."""

    latitude: Optional[float] = None
    longitude: Optional[float] = None
    city: Optional[str] = None
    address: Optional[str] = Field(None, description="Free-text address resolved by geocoding")

    @model_validator(mode="after")
    def validate_location(self) -> "DeliveryPayload":
        has_coordinates = self.latitude is not None and self.longitude is not None
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be provided together")
        if not has_coordinates and not (self.address and self.address.strip()):
            raise ValueError("either coordinates or address is required")
        return self


class QuoteCalculateRequest(BaseModel):
    """Request payload for single item pricing."""

    item: QuoteItemRequest
    delivery: Optional[DeliveryPayload] = None


class QuotePreviewRequest(BaseModel):
    """Request payload for whole-cart quote preview."""

    items: List[QuoteItemRequest] = Field(..., min_length=1)
    delivery: Optional[DeliveryPayload] = None


class TransportationEstimateRequest(BaseModel):
    delivery: DeliveryPayload


class ComputedItemPricing(BaseModel):
    """Price breakdown of one item, rounded to cents for display."""

    base_price: float
    profile_cost: float
    glass_area_m2: float
    glass_cost: float
    accessory_cost: float
    color_surcharge: float
    adjustments_total: float
    services_total: float
    transportation_cost: float
    cost_basis: float
    margin_amount: float
    unit_total: float
    quantity: int
    line_total: float


class AdjustmentLine(BaseModel):
    adjustment_id: str
    concept: str
    unit: str
    quantity: float
    amount: float


class ServiceLine(BaseModel):
    service_id: str
    name: str
    unit: str
    quantity: float
    amount: float


class TransportationBreakdown(BaseModel):
    """Distance and cost from the warehouse to the delivery point."""

    warehouse_city: Optional[str]
    destination_city: Optional[str]
    distance_km: float
    base_rate: float
    per_km_rate: float
    distance_cost: float
    total: float
    requires_review: bool
    display_text: str


class QuoteItemResponse(BaseModel):
    """Response payload for single item pricing."""

    item_id: Optional[str]
    currency: str
    computed: ComputedItemPricing
    adjustments: List[AdjustmentLine]
    services: List[ServiceLine]
    transportation: Optional[TransportationBreakdown] = None
    warnings: List[str] = Field(default_factory=list)


class QuotePreviewItemResult(BaseModel):
    """Per-item preview status."""

    item_id: Optional[str]
    status: Literal["ok", "error"]
    messages: List[str]
    computed: Optional[ComputedItemPricing]
    adjustments: List[AdjustmentLine] = Field(default_factory=list)
    services: List[ServiceLine] = Field(default_factory=list)


class QuotePreviewSummary(BaseModel):
    ok_count: int
    error_count: int


class QuotePreviewResponse(BaseModel):
    """Response payload for whole-cart quote preview."""

    currency: str
    items: List[QuotePreviewItemResult]
    subtotal: float
    transportation: Optional[TransportationBreakdown] = None
    total: float
    warnings: List[str] = Field(default_factory=list)
    summary: QuotePreviewSummary


class TransportationEstimateResponse(BaseModel):
    currency: str
    transportation: TransportationBreakdown
    warnings: List[str] = Field(default_factory=list)


class GeocodingResult(BaseModel):
    """Normalized geocoding match."""

    model_config = ConfigDict(frozen=True)

    place_id: str
    display_name: str
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    postcode: Optional[str] = None


class GeocodingSearchResponse(BaseModel):
    query: str
    results: List[GeocodingResult]
    total_results: int
