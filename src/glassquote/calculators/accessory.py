"""Accessory cost with colour surcharge."""

from glassquote.money import Money, Numeric


def calculate_accessory_cost(accessory_price: Money, color_multiplier: Numeric) -> Money:
    return accessory_price.multiply(color_multiplier)
