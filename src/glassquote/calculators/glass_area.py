"""Billable glass area after profile discounts."""

from decimal import Decimal

from glassquote.dimensions import GlassDiscounts, mm_to_meters
from glassquote.exceptions import InvalidDimensions
from glassquote.money import Numeric, coerce_decimal

_ZERO = Decimal("0")


def calculate(
    width_mm: Numeric, height_mm: Numeric, discounts: GlassDiscounts
) -> Decimal:
    """Return the visible glass area in m².

    Discounts apply to the raw opening, not to the minimum-billable size.
    Each side is clamped to zero on its own; a discount larger than the
    opening leaves no visible glass and yields exactly 0.
    """
    width = coerce_decimal(width_mm, field="width_mm", error=InvalidDimensions)
    height = coerce_decimal(height_mm, field="height_mm", error=InvalidDimensions)

    glass_width = max(width - discounts.width_mm, _ZERO)
    glass_height = max(height - discounts.height_mm, _ZERO)
    if glass_width <= 0 or glass_height <= 0:
        return _ZERO

    return mm_to_meters(glass_width) * mm_to_meters(glass_height)
