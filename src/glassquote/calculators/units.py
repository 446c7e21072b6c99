"""Pricing units shared by adjustments and services."""

from decimal import Decimal
from enum import Enum

from glassquote.dimensions import Dimensions


class PricingUnit(str, Enum):
    """How a rate scales with the item: flat, per m² or per linear meter."""

    FIXED = "fixed"
    SQM = "sqm"
    ML = "ml"

    @classmethod
    def _missing_(cls, value: object) -> "PricingUnit | None":
        if isinstance(value, str):
            normalized = value.strip().lower()
            # Services store flat pricing as "unit".
            if normalized == "unit":
                return cls.FIXED
            for member in cls:
                if member.value == normalized:
                    return member
        return None


def unit_quantity(unit: PricingUnit, dimensions: Dimensions) -> Decimal:
    """Return how many units of ``unit`` the item measures."""
    if unit is PricingUnit.SQM:
        return dimensions.area_m2
    if unit is PricingUnit.ML:
        return dimensions.perimeter_m
    return Decimal("1")
