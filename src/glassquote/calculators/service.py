"""Optional additive services (installation, cutting, ...)."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Collection, Iterable, Optional, Sequence

from glassquote.calculators.units import PricingUnit, unit_quantity
from glassquote.dimensions import Dimensions
from glassquote.exceptions import InvalidMoneyValue
from glassquote.money import Money, coerce_decimal


@dataclass(frozen=True)
class Service:
    """Service offered for an item.

    Attributes:
        service_id: Identifier matched against the customer's selection.
        name: Display label.
        unit: Flat, per m² or per linear meter.
        rate: Non-negative price per unit.
        minimum_billing_unit: Quantity floor for any unit, override included
            (e.g. bill at least 2 m²).
        quantity_override: Number of units for flat services (default 1).
    """

    service_id: str
    name: str
    unit: PricingUnit
    rate: Money
    minimum_billing_unit: Optional[Decimal] = None
    quantity_override: Optional[Decimal] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "unit", PricingUnit(self.unit))
        object.__setattr__(
            self, "rate", Money.price(self.rate, field=f"{self.service_id}.rate")
        )
        for name in ("minimum_billing_unit", "quantity_override"):
            raw = getattr(self, name)
            if raw is None:
                continue
            value = coerce_decimal(raw, field=f"{self.service_id}.{name}")
            if value < 0:
                raise InvalidMoneyValue(
                    f"{name} cannot be negative", field=f"{self.service_id}.{name}"
                )
            object.__setattr__(self, name, value)


@dataclass(frozen=True)
class ServiceResult:
    service_id: str
    name: str
    unit: PricingUnit
    quantity: Decimal
    amount: Money


def service_quantity(service: Service, dimensions: Dimensions) -> Decimal:
    if service.unit is PricingUnit.FIXED and service.quantity_override is not None:
        quantity = service.quantity_override
    else:
        quantity = unit_quantity(service.unit, dimensions)

    if service.minimum_billing_unit:
        quantity = max(quantity, service.minimum_billing_unit)
    return quantity


def calculate_services(
    services: Sequence[Service],
    selected_ids: Collection[str],
    dimensions: Dimensions,
) -> list[ServiceResult]:
    """Price the selected services; unselected ones produce no row at all."""
    results: list[ServiceResult] = []
    for service in services:
        if service.service_id not in selected_ids:
            continue
        quantity = service_quantity(service, dimensions)
        results.append(
            ServiceResult(
                service_id=service.service_id,
                name=service.name,
                unit=service.unit,
                quantity=quantity,
                amount=service.rate.multiply(quantity),
            )
        )
    return results


def total(results: Iterable[ServiceResult]) -> Money:
    return Money.sum(result.amount for result in results)
