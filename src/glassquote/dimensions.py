"""Billable dimensions value types."""

from dataclasses import dataclass, field
from decimal import Decimal

from glassquote.exceptions import InvalidDimensions
from glassquote.money import Numeric, coerce_decimal

MILLIMETERS_PER_METER = Decimal("1000")


def mm_to_meters(value_mm: Decimal) -> Decimal:
    return value_mm / MILLIMETERS_PER_METER


@dataclass(frozen=True)
class Dimensions:
    """Width x height in millimeters with a minimum billable size.

    A product smaller than its model's minimum is billed as if it had the
    minimum size: the effective side is ``max(raw, minimum)``. Raw sides must
    be positive; clamping never turns an invalid raw value into a valid one.

    Derived values are computed once at construction so that a whole price
    calculation reads the same area and perimeter.
    """

    width_mm: Decimal
    height_mm: Decimal
    min_width_mm: Decimal = Decimal("0")
    min_height_mm: Decimal = Decimal("0")

    effective_width_mm: Decimal = field(init=False)
    effective_height_mm: Decimal = field(init=False)
    effective_width_m: Decimal = field(init=False)
    effective_height_m: Decimal = field(init=False)
    area_m2: Decimal = field(init=False)
    perimeter_m: Decimal = field(init=False)

    def __post_init__(self) -> None:
        width = _side(self.width_mm, "width_mm")
        height = _side(self.height_mm, "height_mm")
        min_width = _minimum(self.min_width_mm, "min_width_mm")
        min_height = _minimum(self.min_height_mm, "min_height_mm")

        effective_width = max(width, min_width)
        effective_height = max(height, min_height)
        width_m = mm_to_meters(effective_width)
        height_m = mm_to_meters(effective_height)

        values = {
            "width_mm": width,
            "height_mm": height,
            "min_width_mm": min_width,
            "min_height_mm": min_height,
            "effective_width_mm": effective_width,
            "effective_height_mm": effective_height,
            "effective_width_m": width_m,
            "effective_height_m": height_m,
            "area_m2": width_m * height_m,
            "perimeter_m": 2 * (width_m + height_m),
        }
        for name, value in values.items():
            object.__setattr__(self, name, value)


@dataclass(frozen=True)
class GlassDiscounts:
    """Millimeters taken by the surrounding profile on each axis."""

    width_mm: Decimal = Decimal("0")
    height_mm: Decimal = Decimal("0")

    def __post_init__(self) -> None:
        for name in ("width_mm", "height_mm"):
            value = coerce_decimal(
                getattr(self, name), field=f"discount_{name}", error=InvalidDimensions
            )
            # Negative discounts would enlarge the glass; treat them as none.
            object.__setattr__(self, name, max(value, Decimal("0")))


def _side(value: Numeric, name: str) -> Decimal:
    result = coerce_decimal(value, field=name, error=InvalidDimensions)
    if result <= 0:
        raise InvalidDimensions(f"{name} must be greater than 0", field=name)
    return result


def _minimum(value: Numeric, name: str) -> Decimal:
    result = coerce_decimal(value, field=name, error=InvalidDimensions)
    if result < 0:
        raise InvalidDimensions(f"{name} cannot be negative", field=name)
    return result
