"""
Stock arithmetic tests.

Covers quantity vs weight products, stock status classification and
amount validation. No database needed: the helpers read plain dicts.
"""

import pytest

from warehouse.services import measurement_service as ms
from warehouse.services.measurement_service import MeasurementError


def quantity_product(quantity=10, min_quantity=5):
    return {"measurementType": "quantity", "quantity": quantity, "minQuantity": min_quantity}


def weight_product(weight=5.0, min_weight=1.0, unit="kg"):
    return {"measurementType": "weight", "weight": weight, "minWeight": min_weight, "weightUnit": unit}


# =============================================================================
# STOCK AXIS
# =============================================================================


class TestStockAxis:

    def test_quantity_product_uses_quantity(self):
        assert ms.get_current_stock(quantity_product(quantity=7)) == 7
        assert ms.get_min_stock(quantity_product(min_quantity=3)) == 3

    def test_weight_product_uses_weight(self):
        product = weight_product(weight=2.5, min_weight=0.5)
        assert ms.is_weight_based(product)
        assert ms.get_current_stock(product) == 2.5
        assert ms.get_min_stock(product) == 0.5

    def test_sold_amount_picks_matching_field(self):
        assert ms.get_sold_amount(quantity_product(), 3, 9.9) == 3
        assert ms.get_sold_amount(weight_product(), 3, 1.25) == 1.25

    def test_reduce_stock_returns_new_snapshot(self):
        product = quantity_product(quantity=10)
        after = ms.reduce_stock(product, 4)
        assert after.quantity == 6
        assert product["quantity"] == 10

    def test_increase_weight_stock(self):
        after = ms.increase_stock(weight_product(weight=2.0), 0.75)
        assert after.weight == pytest.approx(2.75)

    def test_apply_snapshot_writes_live_axis_only(self):
        class Row:
            measurement_type = "weight"
            quantity = 4
            weight = 1.0

        row = Row()
        ms.apply_snapshot(row, ms.reduce_stock(row, 0.25))
        assert row.weight == pytest.approx(0.75)
        assert row.quantity == 4


# =============================================================================
# STOCK STATUS
# =============================================================================


class TestStockStatus:

    def test_at_minimum_is_low(self):
        assert ms.is_low_stock(quantity_product(quantity=5, min_quantity=5))
        assert ms.get_stock_status(quantity_product(quantity=5, min_quantity=5)) == ms.STOCK_LOW

    def test_zero_is_out_even_when_also_low(self):
        assert ms.get_stock_status(quantity_product(quantity=0)) == ms.STOCK_OUT

    def test_above_minimum_is_available(self):
        assert ms.get_stock_status(weight_product(weight=3.0, min_weight=1.0)) == ms.STOCK_AVAILABLE

    def test_availability_is_inclusive(self):
        assert ms.is_stock_available(quantity_product(quantity=3), 3)
        assert not ms.is_stock_available(quantity_product(quantity=3), 4)


# =============================================================================
# VALIDATION AND FORMATTING
# =============================================================================


class TestValidation:

    def test_quantity_must_be_whole(self):
        with pytest.raises(MeasurementError):
            ms.validate_measurement_value(1.5, "quantity")
        assert ms.validate_measurement_value("3", "quantity") == 3

    def test_weight_must_be_positive(self):
        with pytest.raises(MeasurementError):
            ms.validate_measurement_value(0, "weight")
        assert ms.validate_measurement_value(0.5, "weight") == 0.5

    @pytest.mark.parametrize("value", [None, -1, "abc", True])
    def test_rejects_invalid_values(self, value):
        with pytest.raises(MeasurementError):
            ms.validate_measurement_value(value, "quantity")

    def test_convert_weight(self):
        assert ms.convert_weight(1.5, "kg", "g") == 1500
        assert ms.convert_weight(250, "g", "kg") == 0.25
        with pytest.raises(MeasurementError):
            ms.convert_weight(1, "kg", "lb")

    def test_format_measurement(self):
        assert ms.format_measurement(quantity_product(quantity=12)) == "12 قطعة"
        assert ms.format_measurement(weight_product(weight=2.5)) == "2.5 kg"
