"""Tests for quote calculation and preview orchestration."""

import logging
from decimal import Decimal

import pytest

from glassquote.config import QuoteConfig
from glassquote.exceptions import ContractError
from glassquote.models import (
    QuoteCalculateRequest,
    QuoteItemRequest,
    QuotePreviewRequest,
    TransportationEstimateRequest,
)
from glassquote.quote_service import (
    QuoteService,
    build_calculation_input,
    format_distance,
)


def test_calculate_item_breakdown(api_test_config, sample_item):
    service = QuoteService(api_test_config)
    response = service.calculate_item(QuoteCalculateRequest(item=sample_item))

    assert response.currency == "COP"
    assert response.item_id == "door-1"
    assert response.computed.glass_area_m2 == 1.8525
    assert response.computed.cost_basis == 199100.0
    assert response.computed.margin_amount == 49775.0
    assert response.computed.unit_total == 248875.0
    assert response.computed.line_total == 248875.0
    assert response.transportation is None
    assert response.warnings == []


def test_percentages_become_fractions(sample_item):
    data = build_calculation_input(
        QuoteItemRequest(**{**sample_item, "color_surcharge_percentage": 15})
    )
    assert data.color_multiplier == Decimal("1.15")
    assert data.profit_margin == Decimal("0.2")


def test_quantity_multiplies_line_total(api_test_config, sample_item):
    service = QuoteService(api_test_config)
    response = service.calculate_item(
        QuoteCalculateRequest(item={**sample_item, "quantity": 3})
    )
    assert response.computed.unit_total == 248875.0
    assert response.computed.line_total == 746625.0


def test_adjustments_and_services_are_listed(api_test_config, sample_item):
    item = {
        **sample_item,
        "adjustments": [
            {"concept": "Tempered", "unit": "sqm", "value": 10},
            {"adjustment_id": "promo", "concept": "Promo", "unit": "ml", "value": 5, "sign": "negative"},
        ],
        "services": [
            {"service_id": "install", "name": "Installation", "unit": "sqm", "rate": 15000, "minimum_billing_unit": 3},
            {"service_id": "cut", "unit": "unit", "rate": 8000},
        ],
        "selected_service_ids": ["install"],
    }
    response = QuoteService(api_test_config).calculate_item(QuoteCalculateRequest(item=item))

    assert [(row.adjustment_id, row.amount) for row in response.adjustments] == [
        ("Tempered", 20.0),
        ("promo", -30.0),
    ]
    assert response.computed.adjustments_total == -10.0
    assert [(row.service_id, row.quantity, row.amount) for row in response.services] == [
        ("install", 3.0, 45000.0)
    ]
    assert response.computed.services_total == 45000.0


def test_invalid_margin_maps_to_contract_error(api_test_config, sample_item):
    service = QuoteService(api_test_config)
    with pytest.raises(ContractError) as exc:
        service.calculate_item(
            QuoteCalculateRequest(item={**sample_item, "profit_margin_percentage": 100})
        )
    assert exc.value.code == "INVALID_MARGIN"
    assert exc.value.status_code == 400
    assert exc.value.details == {"field": "profit_margin"}


def test_delivery_by_coordinates_adds_transportation(api_test_config, sample_item):
    service = QuoteService(api_test_config)
    response = service.calculate_item(
        QuoteCalculateRequest(
            item=sample_item,
            delivery={"latitude": 4.711, "longitude": -74.0721, "city": "Bogotá"},
        )
    )
    assert response.transportation is not None
    assert response.transportation.distance_km == 0
    assert response.transportation.total == 25000.0
    assert response.transportation.display_text == "0 m"
    assert response.computed.cost_basis == 224100.0


def test_delivery_by_address_uses_geocoder(api_test_config, geocoding_client, sample_item):
    service = QuoteService(api_test_config, geocoder=geocoding_client)
    response = service.calculate_item(
        QuoteCalculateRequest(item=sample_item, delivery={"address": "Medellín"})
    )
    assert response.transportation is not None
    assert response.transportation.destination_city == "Medellín"
    assert response.transportation.warehouse_city == "Bogotá"
    assert 235 < response.transportation.distance_km < 245


def test_address_without_geocoder_is_rejected(api_test_config, sample_item):
    with pytest.raises(ContractError) as exc:
        QuoteService(api_test_config).calculate_item(
            QuoteCalculateRequest(item=sample_item, delivery={"address": "Medellín"})
        )
    assert exc.value.code == "GEOCODING_UNAVAILABLE"


def test_missing_warehouse_is_conflict(sample_item):
    service = QuoteService(QuoteConfig(_env_file=None))
    with pytest.raises(ContractError) as exc:
        service.calculate_item(
            QuoteCalculateRequest(
                item=sample_item, delivery={"latitude": 6.2, "longitude": -75.5}
            )
        )
    assert exc.value.code == "WAREHOUSE_NOT_CONFIGURED"
    assert exc.value.status_code == 409


def test_preview_reports_invalid_items_without_aborting(api_test_config, sample_item):
    payload = QuotePreviewRequest(
        items=[
            sample_item,
            {**sample_item, "item_id": "bad", "width_mm": 0},
            {**sample_item, "item_id": "window-2", "quantity": 2},
        ],
        delivery={"latitude": 4.711, "longitude": -74.0721},
    )
    response = QuoteService(api_test_config).preview_quote(payload)

    assert [row.status for row in response.items] == ["ok", "error", "ok"]
    assert response.items[1].messages == ["INVALID_DIMENSIONS"]
    assert response.items[1].computed is None
    assert response.summary.ok_count == 2
    assert response.summary.error_count == 1
    assert response.subtotal == 746625.0
    assert response.transportation is not None
    assert response.total == 771625.0


def test_preview_far_delivery_warns(api_test_config, sample_item, caplog):
    payload = QuotePreviewRequest(
        items=[sample_item],
        delivery={"latitude": 40.4168, "longitude": -3.7038, "city": "Madrid"},
    )
    with caplog.at_level(logging.WARNING, logger="glassquote.quote_service"):
        response = QuoteService(api_test_config).preview_quote(payload)

    assert response.warnings == ["TRANSPORTATION_REQUIRES_REVIEW"]
    assert response.transportation is not None
    assert response.transportation.requires_review is True
    assert "requires review" in caplog.text


def test_estimate_transportation(api_test_config):
    response = QuoteService(api_test_config).estimate_transportation(
        TransportationEstimateRequest(delivery={"latitude": 6.2442, "longitude": -75.5812})
    )
    breakdown = response.transportation
    assert breakdown.base_rate == 25000.0
    assert breakdown.per_km_rate == 1200.0
    assert breakdown.display_text.endswith(" km")
    assert response.warnings == []


@pytest.mark.parametrize(
    ("meters", "expected"),
    [("0", "0 m"), ("850.4", "850 m"), ("1000", "1.0 km"), ("238674", "238.7 km")],
)
def test_format_distance(meters, expected):
    assert format_distance(Decimal(meters)) == expected
