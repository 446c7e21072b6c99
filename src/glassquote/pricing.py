"""Item price calculation: composes the calculators into one breakdown."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import FrozenSet, Optional, Tuple

from glassquote.calculators import accessory, adjustment, glass_area, profile, service
from glassquote.calculators import transportation
from glassquote.calculators.adjustment import Adjustment, AdjustmentResult
from glassquote.calculators.service import Service, ServiceResult
from glassquote.calculators.transportation import TransportationCost, TransportationParams
from glassquote.dimensions import Dimensions, GlassDiscounts
from glassquote.exceptions import InvalidColorMultiplier, InvalidMarginError
from glassquote.money import Money, Numeric, coerce_decimal

_ONE = Decimal("1")


def validate_margin(profit_margin: Numeric) -> Decimal:
    """Return the margin as a fraction of the sale price, in [0, 1)."""
    margin = coerce_decimal(
        profit_margin, field="profit_margin", error=InvalidMarginError
    )
    if margin < 0:
        raise InvalidMarginError("profit_margin cannot be negative", field="profit_margin")
    if margin >= _ONE:
        raise InvalidMarginError(
            f"profit_margin must be below 100%, got {margin * 100}%",
            field="profit_margin",
        )
    return margin


def validate_color_multiplier(color_multiplier: Numeric) -> Decimal:
    multiplier = coerce_decimal(
        color_multiplier, field="color_multiplier", error=InvalidColorMultiplier
    )
    if multiplier < _ONE:
        raise InvalidColorMultiplier(
            "color_multiplier must be at least 1.0", field="color_multiplier"
        )
    return multiplier


@dataclass(frozen=True)
class PriceCalculationInput:
    """Fully resolved numeric input for one quoted item.

    Prices accept ``Money`` or plain numbers; they are normalized to
    non-negative ``Money`` on construction. ``profit_margin`` is a fraction
    of the final sale price (0.2 means 20 %).
    """

    width_mm: Numeric
    height_mm: Numeric
    base_price: Money
    cost_per_mm_width: Money
    cost_per_mm_height: Money
    min_width_mm: Numeric = 0
    min_height_mm: Numeric = 0
    accessory_price: Money = Money(Decimal("0"))
    glass_price_per_sqm: Money = Money(Decimal("0"))
    glass_discounts: GlassDiscounts = GlassDiscounts()
    color_multiplier: Numeric = _ONE
    profit_margin: Numeric = Decimal("0")
    adjustments: Tuple[Adjustment, ...] = ()
    services: Tuple[Service, ...] = ()
    selected_service_ids: FrozenSet[str] = frozenset()
    transportation: Optional[TransportationParams] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "profit_margin", validate_margin(self.profit_margin))
        object.__setattr__(
            self, "color_multiplier", validate_color_multiplier(self.color_multiplier)
        )
        for name in (
            "base_price",
            "cost_per_mm_width",
            "cost_per_mm_height",
            "accessory_price",
            "glass_price_per_sqm",
        ):
            object.__setattr__(self, name, Money.price(getattr(self, name), field=name))
        object.__setattr__(self, "adjustments", tuple(self.adjustments))
        object.__setattr__(self, "services", tuple(self.services))
        object.__setattr__(self, "selected_service_ids", frozenset(self.selected_service_ids))


@dataclass(frozen=True)
class PriceCalculationResult:
    """Itemized price of one item.

    ``cost_basis`` is the exact sum of the cost components and ``total`` is
    ``cost_basis + margin_amount``; nothing is rounded between them.
    ``color_surcharge`` is informational: it is already part of the profile,
    glass and accessory costs.
    """

    dimensions: Dimensions
    base_price: Money
    profile_cost: Money
    glass_area_m2: Decimal
    glass_cost: Money
    accessory_cost: Money
    color_surcharge: Money
    adjustments: Tuple[AdjustmentResult, ...]
    adjustments_total: Money
    services: Tuple[ServiceResult, ...]
    services_total: Money
    transportation: Optional[TransportationCost]
    transportation_cost: Money
    cost_basis: Money
    profit_margin: Decimal
    margin_amount: Money
    total: Money
    warnings: Tuple[str, ...] = field(default=())

    def breakdown(self) -> list[tuple[str, Money]]:
        """Line items in display order; their sum equals ``total``."""
        return [
            ("base_price", self.base_price),
            ("profile_cost", self.profile_cost),
            ("glass_cost", self.glass_cost),
            ("accessory_cost", self.accessory_cost),
            ("adjustments_total", self.adjustments_total),
            ("services_total", self.services_total),
            ("transportation_cost", self.transportation_cost),
            ("margin_amount", self.margin_amount),
        ]


def margin_amount(cost_basis: Money, profit_margin: Decimal) -> Money:
    """Markup that makes ``profit_margin`` a fraction of the sale price.

    sale = cost / (1 - m), so the markup is cost × m / (1 - m). This is the
    one division in the pipeline and the only rounded amount (cents,
    half-up).
    """
    return cost_basis.multiply(profit_margin).divide(_ONE - profit_margin)


def calculate(data: PriceCalculationInput) -> PriceCalculationResult:
    """Compute the full price breakdown for one item.

    Raises:
        InvalidMarginError: margin outside [0, 1).
        InvalidColorMultiplier: multiplier below 1.0.
        InvalidDimensions: non-positive raw width/height or negative minimum.
    """
    margin = validate_margin(data.profit_margin)
    color = validate_color_multiplier(data.color_multiplier)
    dimensions = Dimensions(
        width_mm=data.width_mm,
        height_mm=data.height_mm,
        min_width_mm=data.min_width_mm,
        min_height_mm=data.min_height_mm,
    )

    profile_cost = profile.calculate(
        dimensions, data.cost_per_mm_width, data.cost_per_mm_height, color
    )

    area = glass_area.calculate(dimensions.width_mm, dimensions.height_mm, data.glass_discounts)
    glass_cost = data.glass_price_per_sqm.multiply(area).multiply(color)

    accessory_cost = accessory.calculate_accessory_cost(data.accessory_price, color)

    surcharge = profile.color_surcharge(
        Money.sum(
            [
                profile.calculate(
                    dimensions, data.cost_per_mm_width, data.cost_per_mm_height, _ONE
                ),
                data.glass_price_per_sqm.multiply(area),
                data.accessory_price,
            ]
        ),
        color,
    )

    adjustment_results = tuple(
        adjustment.calculate_adjustments(data.adjustments, dimensions)
    )
    adjustments_total = adjustment.total(adjustment_results)

    service_results = tuple(
        service.calculate_services(data.services, data.selected_service_ids, dimensions)
    )
    services_total = service.total(service_results)

    transport: Optional[TransportationCost] = None
    transportation_cost = Money.zero()
    warnings: list[str] = []
    if data.transportation is not None:
        transport = transportation.calculate_for(data.transportation)
        transportation_cost = transport.total
        if transport.requires_review:
            warnings.append("TRANSPORTATION_REQUIRES_REVIEW")

    cost_basis = Money.sum(
        [
            data.base_price,
            profile_cost,
            glass_cost,
            accessory_cost,
            adjustments_total,
            services_total,
            transportation_cost,
        ]
    )
    markup = margin_amount(cost_basis, margin)

    return PriceCalculationResult(
        dimensions=dimensions,
        base_price=data.base_price,
        profile_cost=profile_cost,
        glass_area_m2=area,
        glass_cost=glass_cost,
        accessory_cost=accessory_cost,
        color_surcharge=surcharge,
        adjustments=adjustment_results,
        adjustments_total=adjustments_total,
        services=service_results,
        services_total=services_total,
        transportation=transport,
        transportation_cost=transportation_cost,
        cost_basis=cost_basis,
        profit_margin=margin,
        margin_amount=markup,
        total=cost_basis.add(markup),
        warnings=tuple(warnings),
    )
