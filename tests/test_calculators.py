"""Tests for the glass, profile, accessory, adjustment and service calculators."""

from decimal import Decimal

import pytest

from glassquote.calculators import accessory, adjustment, glass_area, profile, service
from glassquote.calculators.adjustment import Adjustment
from glassquote.calculators.service import Service
from glassquote.calculators.units import PricingUnit
from glassquote.dimensions import Dimensions, GlassDiscounts
from glassquote.exceptions import InvalidMoneyValue
from glassquote.money import Money


@pytest.fixture
def door() -> Dimensions:
    return Dimensions(width_mm=1000, height_mm=2000, min_width_mm=800, min_height_mm=800)


def test_glass_area_subtracts_discounts():
    area = glass_area.calculate(1000, 2000, GlassDiscounts(width_mm=50, height_mm=50))
    assert area == Decimal("1.8525")


def test_glass_area_without_discounts():
    assert glass_area.calculate(1000, 2000, GlassDiscounts()) == Decimal("2")


@pytest.mark.parametrize(
    ("discounts", "label"),
    [
        (GlassDiscounts(width_mm=1000, height_mm=0), "exact width"),
        (GlassDiscounts(width_mm=1500, height_mm=0), "wider than opening"),
        (GlassDiscounts(width_mm=0, height_mm=2500), "taller than opening"),
    ],
)
def test_glass_area_zero_when_discount_consumes_side(discounts, label):
    assert glass_area.calculate(1000, 2000, discounts) == Decimal("0"), label


def test_glass_area_uses_raw_not_billable_size():
    """Minimum billable size does not inflate visible glass."""
    small = Dimensions(width_mm=500, height_mm=500, min_width_mm=800, min_height_mm=800)
    area = glass_area.calculate(small.width_mm, small.height_mm, GlassDiscounts())
    assert area == Decimal("0.25")
    assert small.area_m2 == Decimal("0.64")


def test_profile_cost_on_effective_dimensions():
    dims = Dimensions(width_mm=500, height_mm=2000, min_width_mm=800)
    cost = profile.calculate(dims, Money("10"), Money("5"), 1)
    assert cost.amount == Decimal("18000")


def test_profile_cost_applies_color_multiplier_once(door):
    cost = profile.calculate(door, Money("10"), Money("5"), Decimal("1.15"))
    assert cost.amount == Decimal("23000")
    assert profile.color_surcharge(Money("20000"), Decimal("1.15")).amount == Decimal("3000")


@pytest.mark.parametrize(
    ("price", "multiplier", "expected"),
    [
        ("50", 1.1, Decimal("55")),
        ("0", 1.1, Decimal("0")),
        ("0", 3, Decimal("0")),
        ("50", 0, Decimal("0")),
        ("80", 1, Decimal("80")),
    ],
)
def test_accessory_cost(price, multiplier, expected):
    assert accessory.calculate_accessory_cost(Money(price), multiplier).amount == expected


def test_adjustments_empty_input_gives_empty_output(door):
    assert adjustment.calculate_adjustments([], door) == []
    assert adjustment.total([]).is_zero()


def test_adjustment_per_square_meter(door):
    results = adjustment.calculate_adjustments(
        [Adjustment("a1", "Tempered", "sqm", 10, is_positive=True)], door
    )
    assert results[0].amount.amount == Decimal("20")
    assert results[0].quantity == Decimal("2")


def test_adjustment_per_linear_meter_discount(door):
    results = adjustment.calculate_adjustments(
        [Adjustment("a2", "Promo", "ml", 5, is_positive=False)], door
    )
    assert results[0].amount.amount == Decimal("-30")


def test_adjustments_keep_input_order(door):
    results = adjustment.calculate_adjustments(
        [
            Adjustment("z", "Last alphabetically", "fixed", 100),
            Adjustment("a", "First alphabetically", "sqm", 10, is_positive=False),
        ],
        door,
    )
    assert [row.adjustment_id for row in results] == ["z", "a"]
    assert adjustment.total(results).amount == Decimal("80")


def test_unit_alias_maps_to_fixed():
    assert PricingUnit("unit") is PricingUnit.FIXED
    assert PricingUnit("SQM") is PricingUnit.SQM
    with pytest.raises(ValueError):
        PricingUnit("kg")


def test_only_selected_services_are_priced(door):
    services = [
        Service("install", "Installation", "sqm", Money("15")),
        Service("cut", "Cutting", "fixed", Money("8")),
    ]
    results = service.calculate_services(services, {"install"}, door)
    assert [row.service_id for row in results] == ["install"]
    assert service.total(results).amount == Decimal("30")


def test_no_selected_services_is_zero(door):
    services = [Service("install", "Installation", "sqm", Money("15"))]
    results = service.calculate_services(services, set(), door)
    assert results == []
    assert service.total(results).is_zero()


def test_service_minimum_billing_unit(door):
    install = Service("install", "Installation", "sqm", Money("15"), minimum_billing_unit=3)
    results = service.calculate_services([install], {"install"}, door)
    assert results[0].quantity == Decimal("3")
    assert results[0].amount.amount == Decimal("45")


def test_fixed_service_quantity_override(door):
    cut = Service("cut", "Cutting", "unit", Money("8"), quantity_override=2)
    results = service.calculate_services([cut], ["cut"], door)
    assert results[0].unit is PricingUnit.FIXED
    assert results[0].amount.amount == Decimal("16")


@pytest.mark.parametrize(
    ("override", "expected"),
    [(None, Decimal("2")), (1, Decimal("2")), (5, Decimal("5"))],
)
def test_minimum_billing_unit_floors_fixed_services(door, override, expected):
    """The floor applies to flat services too, even with an explicit quantity."""
    visit = Service(
        "visit",
        "Site visit",
        "fixed",
        Money("100"),
        minimum_billing_unit=2,
        quantity_override=override,
    )
    results = service.calculate_services([visit], ["visit"], door)
    assert results[0].quantity == expected
    assert results[0].amount.amount == expected * 100


def test_linear_service_uses_perimeter(door):
    seal = Service("seal", "Sealing", "ml", Money("2.5"))
    results = service.calculate_services([seal], ["seal"], door)
    assert results[0].amount.amount == Decimal("15")


def test_service_rate_cannot_be_negative():
    with pytest.raises(InvalidMoneyValue, match="install.rate cannot be negative"):
        Service("install", "Installation", "sqm", -1)  # type: ignore[arg-type]
