"""Quote calculation/preview orchestration service."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

from glassquote.calculators import transportation
from glassquote.calculators.adjustment import Adjustment
from glassquote.calculators.service import Service
from glassquote.calculators.transportation import TransportationCost, TransportationParams
from glassquote.config import QuoteConfig
from glassquote.coordinates import Coordinates
from glassquote.dimensions import GlassDiscounts
from glassquote.exceptions import ContractError, PricingError
from glassquote.geocoding import GeocodingClient, to_coordinates
from glassquote.models import (
    AdjustmentLine,
    ComputedItemPricing,
    DeliveryPayload,
    QuoteCalculateRequest,
    QuoteItemRequest,
    QuoteItemResponse,
    QuotePreviewItemResult,
    QuotePreviewRequest,
    QuotePreviewResponse,
    QuotePreviewSummary,
    ServiceLine,
    TransportationBreakdown,
    TransportationEstimateRequest,
    TransportationEstimateResponse,
)
from glassquote.money import Money, coerce_decimal, round_half_up
from glassquote.pricing import PriceCalculationInput, PriceCalculationResult, calculate

logger = logging.getLogger(__name__)

REVIEW_WARNING = "TRANSPORTATION_REQUIRES_REVIEW"
_HUNDRED = Decimal("100")


def percentage_to_fraction(value: float, *, field: str) -> Decimal:
    return coerce_decimal(value, field=field) / _HUNDRED


def format_distance(distance_m: Decimal) -> str:
    """Human readable distance: meters below 1 km, otherwise km with 1 decimal."""
    if distance_m < 1000:
        return f"{round_half_up(distance_m, 0)} m"
    return f"{round_half_up(distance_m / 1000, 1)} km"


def build_calculation_input(
    item: QuoteItemRequest,
    transportation_params: Optional[TransportationParams] = None,
) -> PriceCalculationInput:
    """Translate an API item into the engine's input.

    Percentages become fractions: a 15 % colour surcharge is a 1.15
    multiplier, a 20 % margin is 0.2.

    Raises:
        PricingError: Any value the engine rejects.
    """
    adjustments = [
        Adjustment(
            adjustment_id=payload.adjustment_id or payload.concept,
            concept=payload.concept,
            unit=payload.unit,
            value=payload.value,
            is_positive=payload.sign == "positive",
        )
        for payload in item.adjustments
    ]
    services = [
        Service(
            service_id=payload.service_id,
            name=payload.name or payload.service_id,
            unit=payload.unit,
            rate=payload.rate,
            minimum_billing_unit=payload.minimum_billing_unit,
            quantity_override=payload.quantity_override,
        )
        for payload in item.services
    ]
    color_multiplier = Decimal("1") + percentage_to_fraction(
        item.color_surcharge_percentage, field="color_surcharge_percentage"
    )
    return PriceCalculationInput(
        width_mm=item.width_mm,
        height_mm=item.height_mm,
        min_width_mm=item.min_width_mm,
        min_height_mm=item.min_height_mm,
        base_price=item.base_price,
        cost_per_mm_width=item.cost_per_mm_width,
        cost_per_mm_height=item.cost_per_mm_height,
        accessory_price=item.accessory_price,
        glass_price_per_sqm=item.glass_price_per_sqm,
        glass_discounts=GlassDiscounts(
            width_mm=item.glass_discount_width_mm,
            height_mm=item.glass_discount_height_mm,
        ),
        color_multiplier=color_multiplier,
        profit_margin=percentage_to_fraction(
            item.profit_margin_percentage, field="profit_margin"
        ),
        adjustments=adjustments,
        services=services,
        selected_service_ids=item.selected_service_ids,
        transportation=transportation_params,
    )


def computed_pricing(result: PriceCalculationResult, quantity: int) -> ComputedItemPricing:
    line_total = result.total.multiply(quantity)
    return ComputedItemPricing(
        base_price=result.base_price.to_number(2),
        profile_cost=result.profile_cost.to_number(2),
        glass_area_m2=float(round_half_up(result.glass_area_m2, 4)),
        glass_cost=result.glass_cost.to_number(2),
        accessory_cost=result.accessory_cost.to_number(2),
        color_surcharge=result.color_surcharge.to_number(2),
        adjustments_total=result.adjustments_total.to_number(2),
        services_total=result.services_total.to_number(2),
        transportation_cost=result.transportation_cost.to_number(2),
        cost_basis=result.cost_basis.to_number(2),
        margin_amount=result.margin_amount.to_number(2),
        unit_total=result.total.to_number(2),
        quantity=quantity,
        line_total=line_total.to_number(2),
    )


def adjustment_lines(result: PriceCalculationResult) -> list[AdjustmentLine]:
    return [
        AdjustmentLine(
            adjustment_id=row.adjustment_id,
            concept=row.concept,
            unit=row.unit.value,
            quantity=float(round_half_up(row.quantity, 4)),
            amount=row.amount.to_number(2),
        )
        for row in result.adjustments
    ]


def service_lines(result: PriceCalculationResult) -> list[ServiceLine]:
    return [
        ServiceLine(
            service_id=row.service_id,
            name=row.name,
            unit=row.unit.value,
            quantity=float(round_half_up(row.quantity, 4)),
            amount=row.amount.to_number(2),
        )
        for row in result.services
    ]


def transportation_breakdown(cost: TransportationCost) -> TransportationBreakdown:
    return TransportationBreakdown(
        warehouse_city=cost.warehouse.label,
        destination_city=cost.destination.label,
        distance_km=float(round_half_up(cost.distance_km, 2)),
        base_rate=cost.base_rate.to_number(2),
        per_km_rate=cost.per_km_rate.to_number(2),
        distance_cost=cost.distance_cost.to_number(2),
        total=cost.total.to_number(2),
        requires_review=cost.requires_review,
        display_text=format_distance(cost.distance_m),
    )


class QuoteService:
    """Coordinates item pricing, cart previews and delivery estimates."""

    def __init__(
        self,
        config: QuoteConfig,
        geocoder: Optional[GeocodingClient] = None,
    ) -> None:
        self.config = config
        self.geocoder = geocoder

    def calculate_item(self, payload: QuoteCalculateRequest) -> QuoteItemResponse:
        """Price one item, including delivery when a destination is given.

        Raises:
            ContractError: Rejected input or unresolvable delivery.
        """
        params = None
        if payload.delivery is not None:
            params = self.transportation_params(self.resolve_destination(payload.delivery))

        try:
            result = calculate(build_calculation_input(payload.item, params))
        except PricingError as exc:
            logger.info("Rejected item %s: %s", payload.item.item_id, exc.code)
            raise ContractError.from_pricing_error(exc) from exc

        if result.transportation is not None and result.transportation.requires_review:
            logger.warning(
                "Delivery distance %.1f km exceeds review threshold",
                result.transportation.distance_km,
            )
        logger.info(
            "Calculated item %s: total=%s %s",
            payload.item.item_id,
            result.total,
            self.config.currency,
        )

        return QuoteItemResponse(
            item_id=payload.item.item_id,
            currency=self.config.currency,
            computed=computed_pricing(result, payload.item.quantity),
            adjustments=adjustment_lines(result),
            services=service_lines(result),
            transportation=(
                transportation_breakdown(result.transportation)
                if result.transportation is not None
                else None
            ),
            warnings=list(result.warnings),
        )

    def preview_quote(self, payload: QuotePreviewRequest) -> QuotePreviewResponse:
        """Price every cart item independently and add one delivery charge.

        Invalid items are reported with status ``error`` and excluded from the
        subtotal; they do not abort the preview.
        """
        items: list[QuotePreviewItemResult] = []
        line_totals: list[Money] = []
        ok_count = 0
        error_count = 0

        for item in payload.items:
            try:
                result = calculate(build_calculation_input(item))
            except PricingError as exc:
                items.append(
                    QuotePreviewItemResult(
                        item_id=item.item_id,
                        status="error",
                        messages=[exc.code],
                        computed=None,
                    )
                )
                error_count += 1
                continue

            line_totals.append(result.total.multiply(item.quantity))
            items.append(
                QuotePreviewItemResult(
                    item_id=item.item_id,
                    status="ok",
                    messages=[],
                    computed=computed_pricing(result, item.quantity),
                    adjustments=adjustment_lines(result),
                    services=service_lines(result),
                )
            )
            ok_count += 1

        subtotal = Money.sum(line_totals)
        delivery: Optional[TransportationCost] = None
        warnings: list[str] = []
        if payload.delivery is not None:
            delivery = self._estimate(payload.delivery)
            if delivery.requires_review:
                warnings.append(REVIEW_WARNING)

        total = subtotal.add(delivery.total) if delivery is not None else subtotal
        logger.info(
            "Previewed quote: %d ok, %d error, total=%s %s",
            ok_count,
            error_count,
            total,
            self.config.currency,
        )

        return QuotePreviewResponse(
            currency=self.config.currency,
            items=items,
            subtotal=subtotal.to_number(2),
            transportation=transportation_breakdown(delivery) if delivery else None,
            total=total.to_number(2),
            warnings=warnings,
            summary=QuotePreviewSummary(ok_count=ok_count, error_count=error_count),
        )

    def estimate_transportation(
        self, payload: TransportationEstimateRequest
    ) -> TransportationEstimateResponse:
        cost = self._estimate(payload.delivery)
        return TransportationEstimateResponse(
            currency=self.config.currency,
            transportation=transportation_breakdown(cost),
            warnings=[REVIEW_WARNING] if cost.requires_review else [],
        )

    def resolve_destination(self, delivery: DeliveryPayload) -> Coordinates:
        """Return delivery coordinates, geocoding the address when needed.

        Raises:
            ContractError: Invalid coordinates, no geocoder, or no match.
            GeocodingError: Upstream geocoding failure.
        """
        if delivery.latitude is not None and delivery.longitude is not None:
            try:
                return Coordinates(
                    latitude=delivery.latitude,
                    longitude=delivery.longitude,
                    label=delivery.city,
                )
            except PricingError as exc:
                raise ContractError.from_pricing_error(exc) from exc

        if self.geocoder is None:
            raise ContractError(
                "GEOCODING_UNAVAILABLE",
                "Address lookup is not available; send coordinates instead",
                status_code=503,
            )

        address = delivery.address or ""
        match = self.geocoder.first_match(address)
        if match is None:
            raise ContractError(
                "ADDRESS_NOT_FOUND",
                "No location found for the delivery address",
                status_code=422,
                details={"address": address},
            )
        destination = to_coordinates(match)
        if delivery.city:
            destination = Coordinates(
                latitude=destination.latitude,
                longitude=destination.longitude,
                label=delivery.city,
            )
        return destination

    def transportation_params(self, destination: Coordinates) -> TransportationParams:
        warehouse = self.config.warehouse_location()
        if warehouse is None:
            raise ContractError(
                "WAREHOUSE_NOT_CONFIGURED",
                "Warehouse location is not configured",
                status_code=409,
            )
        return TransportationParams(
            warehouse=warehouse,
            destination=destination,
            base_rate=Money.price(self.config.transport_base_rate, field="base_rate"),
            per_km_rate=Money.price(self.config.transport_per_km_rate, field="per_km_rate"),
            review_distance_km=coerce_decimal(
                self.config.transport_review_distance_km, field="review_distance_km"
            ),
        )

    def _estimate(self, delivery: DeliveryPayload) -> TransportationCost:
        params = self.transportation_params(self.resolve_destination(delivery))
        cost = transportation.calculate_for(params)
        if cost.requires_review:
            logger.warning(
                "Delivery to %s is %.1f km away and requires review",
                params.destination.label or "destination",
                cost.distance_km,
            )
        return cost
