# Overview: Pure stock arithmetic for products tracked by quantity or by weight.

"""
Measurement helpers

Products carry two stock pairs (quantity/min_quantity and
weight/min_weight); measurement_type decides which one is live.
Every function here reads attributes only and never touches the session,
so the same helpers work on Product rows, plain dicts from to_dict(), and
StockSnapshot values.

reduce_stock / increase_stock return a new StockSnapshot; callers copy the
result back onto the row they intend to persist.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from ..models.inventory import MEASUREMENT_QUANTITY, MEASUREMENT_WEIGHT


STOCK_AVAILABLE = "available"
STOCK_LOW = "low_stock"
STOCK_OUT = "out_of_stock"

WEIGHT_UNITS = ("kg", "g")

# Attribute name on models -> key in to_dict() output
_DICT_KEYS = {
    "measurement_type": "measurementType",
    "quantity": "quantity",
    "min_quantity": "minQuantity",
    "weight": "weight",
    "min_weight": "minWeight",
    "weight_unit": "weightUnit",
}


class MeasurementError(ValueError):
    """Invalid amount for the product's measurement type."""


@dataclass(frozen=True)
class StockSnapshot:
    measurement_type: str
    quantity: int = 0
    min_quantity: int = 0
    weight: float = 0.0
    min_weight: float = 0.0
    weight_unit: str = "kg"


def _read(product: Any, attr: str, default=None):
    if isinstance(product, dict):
        value = product.get(_DICT_KEYS[attr], product.get(attr, default))
    else:
        value = getattr(product, attr, default)
    return default if value is None else value


def is_weight_based(product: Any) -> bool:
    return _read(product, "measurement_type", MEASUREMENT_QUANTITY) == MEASUREMENT_WEIGHT


def snapshot(product: Any) -> StockSnapshot:
    """Freeze the stock fields of a product-like object."""
    return StockSnapshot(
        measurement_type=_read(product, "measurement_type", MEASUREMENT_QUANTITY),
        quantity=_read(product, "quantity", 0),
        min_quantity=_read(product, "min_quantity", 0),
        weight=_read(product, "weight", 0.0),
        min_weight=_read(product, "min_weight", 0.0),
        weight_unit=_read(product, "weight_unit", "kg"),
    )


def get_current_stock(product: Any) -> float:
    if is_weight_based(product):
        return _read(product, "weight", 0.0)
    return _read(product, "quantity", 0)


def get_min_stock(product: Any) -> float:
    if is_weight_based(product):
        return _read(product, "min_weight", 0.0)
    return _read(product, "min_quantity", 0)


def get_sold_amount(product: Any, quantity: float | None, weight: float | None) -> float:
    """Pick the amount that applies to this product from a (quantity, weight) pair."""
    if is_weight_based(product):
        return weight or 0.0
    return quantity or 0


def reduce_stock(product: Any, amount: float) -> StockSnapshot:
    """Return a new snapshot with `amount` removed from the live stock axis."""
    current = snapshot(product)
    if current.measurement_type == MEASUREMENT_WEIGHT:
        return replace(current, weight=current.weight - amount)
    return replace(current, quantity=current.quantity - int(amount))


def increase_stock(product: Any, amount: float) -> StockSnapshot:
    """Return a new snapshot with `amount` added to the live stock axis."""
    current = snapshot(product)
    if current.measurement_type == MEASUREMENT_WEIGHT:
        return replace(current, weight=current.weight + amount)
    return replace(current, quantity=current.quantity + int(amount))


def apply_snapshot(product: Any, stock: StockSnapshot) -> None:
    """Copy the live stock axis of `stock` onto a model instance."""
    if stock.measurement_type == MEASUREMENT_WEIGHT:
        product.weight = stock.weight
    else:
        product.quantity = stock.quantity


def is_low_stock(product: Any) -> bool:
    # Inclusive: sitting exactly at the minimum counts as low
    return get_current_stock(product) <= get_min_stock(product)


def is_out_of_stock(product: Any) -> bool:
    return get_current_stock(product) == 0


def is_stock_available(product: Any, amount: float) -> bool:
    return get_current_stock(product) >= amount


def get_stock_status(product: Any) -> str:
    """Display classification; out of stock wins over low stock."""
    if is_out_of_stock(product):
        return STOCK_OUT
    if is_low_stock(product):
        return STOCK_LOW
    return STOCK_AVAILABLE


def convert_weight(value: float, from_unit: str, to_unit: str) -> float:
    if from_unit not in WEIGHT_UNITS or to_unit not in WEIGHT_UNITS:
        raise MeasurementError(f"Unsupported weight unit: {from_unit} -> {to_unit}")
    if from_unit == to_unit:
        return value
    if from_unit == "kg":
        return value * 1000
    return value / 1000


def validate_measurement_value(value: Any, measurement_type: str) -> float:
    """
    Validate a sold/returned amount for the given measurement type.

    Quantities must be whole, non-negative numbers; weights must be
    strictly positive.
    """
    if value is None or isinstance(value, bool):
        raise MeasurementError("القيمة مطلوبة")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise MeasurementError("القيمة يجب أن تكون رقماً")
    if number < 0:
        raise MeasurementError("القيمة لا يمكن أن تكون سالبة")
    if measurement_type == MEASUREMENT_QUANTITY:
        if not number.is_integer():
            raise MeasurementError("الكمية يجب أن تكون رقماً صحيحاً")
        return int(number)
    if number <= 0:
        raise MeasurementError("الوزن يجب أن يكون أكبر من صفر")
    return number


def format_measurement(product: Any, value: float | None = None) -> str:
    """Human-readable stock or amount, e.g. '12 قطعة' or '2.5 kg'."""
    amount = get_current_stock(product) if value is None else value
    if is_weight_based(product):
        return f"{amount:g} {_read(product, 'weight_unit', 'kg')}"
    return f"{int(amount)} قطعة"
