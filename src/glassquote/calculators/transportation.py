"""Distance-based delivery cost from warehouse to destination."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Union

from glassquote.coordinates import Coordinates, haversine_distance_m
from glassquote.money import Money, Numeric, coerce_decimal

DEFAULT_REVIEW_DISTANCE_KM = Decimal("1000")
_METERS_PER_KM = Decimal("1000")


@dataclass(frozen=True)
class TransportationParams:
    """Resolved delivery inputs: geocoding already happened upstream."""

    warehouse: Coordinates
    destination: Coordinates
    base_rate: Money
    per_km_rate: Money
    review_distance_km: Decimal = DEFAULT_REVIEW_DISTANCE_KM

    def __post_init__(self) -> None:
        object.__setattr__(self, "base_rate", Money.price(self.base_rate, field="base_rate"))
        object.__setattr__(
            self, "per_km_rate", Money.price(self.per_km_rate, field="per_km_rate")
        )


@dataclass(frozen=True)
class TransportationCost:
    warehouse: Coordinates
    destination: Coordinates
    distance_m: Decimal
    distance_km: Decimal
    base_rate: Money
    per_km_rate: Money
    distance_cost: Money
    total: Money
    # Set above the review distance; the caller decides what to do with it.
    requires_review: bool


def calculate(
    warehouse: Coordinates,
    destination: Coordinates,
    base_rate: Union[Money, Numeric],
    per_km_rate: Union[Money, Numeric],
    *,
    review_distance_km: Numeric = DEFAULT_REVIEW_DISTANCE_KM,
) -> TransportationCost:
    """Cost = base rate + per-km rate × great-circle distance in km."""
    base = Money.price(base_rate, field="base_rate")
    per_km = Money.price(per_km_rate, field="per_km_rate")
    review_km = coerce_decimal(review_distance_km, field="review_distance_km")

    distance_m = coerce_decimal(
        haversine_distance_m(warehouse, destination), field="distance_m"
    )
    distance_km = distance_m / _METERS_PER_KM
    distance_cost = per_km.multiply(distance_km)

    return TransportationCost(
        warehouse=warehouse,
        destination=destination,
        distance_m=distance_m,
        distance_km=distance_km,
        base_rate=base,
        per_km_rate=per_km,
        distance_cost=distance_cost,
        total=base.add(distance_cost),
        requires_review=distance_km > review_km,
    )


def calculate_for(params: TransportationParams) -> TransportationCost:
    return calculate(
        params.warehouse,
        params.destination,
        params.base_rate,
        params.per_km_rate,
        review_distance_km=params.review_distance_km,
    )
