"""Signed adjustments (surcharges and discounts) priced per unit."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Sequence

from glassquote.calculators.units import PricingUnit, unit_quantity
from glassquote.dimensions import Dimensions
from glassquote.money import Money, coerce_decimal


@dataclass(frozen=True)
class Adjustment:
    """Named line item; ``is_positive`` False turns it into a discount."""

    adjustment_id: str
    concept: str
    unit: PricingUnit
    value: Decimal
    is_positive: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "unit", PricingUnit(self.unit))
        object.__setattr__(
            self, "value", coerce_decimal(self.value, field=f"{self.adjustment_id}.value")
        )


@dataclass(frozen=True)
class AdjustmentResult:
    adjustment_id: str
    concept: str
    unit: PricingUnit
    quantity: Decimal
    amount: Money


def calculate_adjustments(
    adjustments: Sequence[Adjustment], dimensions: Dimensions
) -> list[AdjustmentResult]:
    """Price each adjustment, keeping the caller's order."""
    results: list[AdjustmentResult] = []
    for adjustment in adjustments:
        quantity = unit_quantity(adjustment.unit, dimensions)
        amount = Money(quantity * adjustment.value)
        if not adjustment.is_positive:
            amount = amount.negate()
        results.append(
            AdjustmentResult(
                adjustment_id=adjustment.adjustment_id,
                concept=adjustment.concept,
                unit=adjustment.unit,
                quantity=quantity,
                amount=amount,
            )
        )
    return results


def total(results: Iterable[AdjustmentResult]) -> Money:
    return Money.sum(result.amount for result in results)
