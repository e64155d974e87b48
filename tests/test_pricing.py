"""Tests for the delivery fee schedule and order totals."""
from decimal import Decimal

import pytest

from core.errors import ValidationFailure
from models.order import DeliveryZoneCode
from services.pricing import compute_totals, delivery_fee, get_zone


class TestDeliveryFee:

    def test_local_free_over_threshold(self):
        """220€ local order ships free."""
        totals = compute_totals([(Decimal("110"), 2)], get_zone("local"))
        assert totals.subtotal == Decimal("220.00")
        assert totals.delivery_fee == Decimal("0.00")
        assert totals.total == Decimal("220.00")

    def test_national_never_free(self):
        """150€ national order pays the 15€ flat fee."""
        totals = compute_totals([(Decimal("75"), 2)], get_zone("national"))
        assert totals.delivery_fee == Decimal("15.00")
        assert totals.total == Decimal("165.00")

    def test_national_zero_threshold_even_for_large_orders(self):
        assert delivery_fee(get_zone("national"), Decimal("100000")) == Decimal("15.00")

    def test_local_threshold_boundary(self):
        zone = get_zone(DeliveryZoneCode.LOCAL)
        assert delivery_fee(zone, Decimal("199.99")) == Decimal("8.00")
        assert delivery_fee(zone, Decimal("200.00")) == Decimal("0.00")

    def test_schedule_follows_settings(self, delivery_schedule):
        delivery_schedule.LOCAL_DELIVERY_FEE = Decimal("9.90")
        delivery_schedule.LOCAL_FREE_SHIPPING_THRESHOLD = Decimal("0")
        assert delivery_fee(get_zone("local"), Decimal("5000")) == Decimal("9.90")

    @pytest.mark.parametrize("lines", [
        [(Decimal("2.50"), 10), (Decimal("40.00"), 3)],
        [(Decimal("0.333"), 3)],
        [(Decimal("199.99"), 1)],
    ])
    def test_total_is_subtotal_plus_fee(self, lines):
        for code in DeliveryZoneCode:
            totals = compute_totals(lines, get_zone(code))
            assert totals.total == totals.subtotal + totals.delivery_fee

    def test_unit_price_rounded_before_multiplying(self):
        totals = compute_totals([(Decimal("0.333"), 3)], get_zone("national"))
        assert totals.subtotal == Decimal("0.99")


class TestZones:

    def test_carriers(self):
        assert get_zone("local").carrier == "internal"
        assert get_zone(DeliveryZoneCode.NATIONAL).carrier == "colissimo"

    def test_only_local_has_time_slots(self):
        assert get_zone("local").time_slots == ("morning", "afternoon")
        assert get_zone("national").time_slots == ()

    def test_unknown_zone(self):
        with pytest.raises(ValidationFailure):
            get_zone("mars")
