"""Structural profile cost from linear dimensions."""

from glassquote.dimensions import Dimensions
from glassquote.money import Money, Numeric


def calculate(
    dimensions: Dimensions,
    cost_per_mm_width: Money,
    cost_per_mm_height: Money,
    color_multiplier: Numeric,
) -> Money:
    """Price the frame on its billable (minimum-clamped) width and height.

    The colour multiplier is applied once to the combined cost.
    """
    width_cost = cost_per_mm_width.multiply(dimensions.effective_width_mm)
    height_cost = cost_per_mm_height.multiply(dimensions.effective_height_mm)
    return width_cost.add(height_cost).multiply(color_multiplier)


def color_surcharge(cost: Money, color_multiplier: Numeric) -> Money:
    """Return the part of ``cost × multiplier`` that is colour surcharge."""
    return cost.multiply(color_multiplier).subtract(cost)
