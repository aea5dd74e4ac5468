# Overview: Service-layer operations for returns; validates against the original sale and restores stock.

"""
Return Service

WHY: A return gives goods back to stock and money back to the customer.
The cumulative amount returned against one sale can never exceed what
that sale sold; the check and the stock increase run in the same write
transaction so two concurrent returns cannot both pass the bound.
"""

from __future__ import annotations

import math
from datetime import datetime

from sqlalchemy import func

from ..extensions import db
from ..models import Sale, Return, Product
from . import measurement_service
from .concurrency import begin_write_transaction, lock_for_update


# Floating point slack for weight sums (0.1 + 0.2 style drift)
EPSILON = 1e-9


class ReturnError(Exception):
    """Raised for return operation errors."""
    def __init__(self, message: str, details: dict | None = None, not_found: bool = False):
        super().__init__(message)
        self.details = details or {}
        self.not_found = not_found


def _weight_based_sale(sale: Sale) -> bool:
    if sale.product is not None:
        return measurement_service.is_weight_based(sale.product)
    return sale.weight is not None


def get_sold_amount(sale: Sale) -> float:
    if _weight_based_sale(sale):
        return sale.weight or 0.0
    return sale.quantity or 0


def get_returned_amount(sale: Sale) -> float:
    column = Return.returned_weight if _weight_based_sale(sale) else Return.returned_quantity
    total = db.session.query(func.coalesce(func.sum(column), 0)).filter(Return.sale_id == sale.id).scalar()
    return total or 0


def get_remaining_returnable(sale: Sale) -> float:
    return get_sold_amount(sale) - get_returned_amount(sale)


def create_return(
    sale_id: int | None,
    product_id: int | None,
    returned_quantity: float | None = None,
    returned_weight: float | None = None,
    unit_price: float | None = None,
    reason: str | None = None,
    processed_by: str | None = None,
    weight_unit: str | None = None,
) -> Return:
    """
    Record a return and put the goods back into stock.

    Raises ReturnError (not_found=True for a missing sale or product).
    """
    if not sale_id or not product_id:
        raise ReturnError("saleId and productId are required")

    try:
        begin_write_transaction()

        sale = db.session.get(Sale, sale_id)
        if sale is None:
            raise ReturnError("Sale not found", details={"saleId": sale_id}, not_found=True)

        product = lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
        if product is None:
            raise ReturnError("Product not found", details={"productId": product_id}, not_found=True)

        if sale.product_id != product.id:
            raise ReturnError(
                "Product does not match the sale",
                details={"saleId": sale.id, "saleProductId": sale.product_id, "productId": product.id},
            )

        weight_based = measurement_service.is_weight_based(product)
        amount = returned_weight if weight_based else returned_quantity
        if amount is None or not math.isfinite(amount) or amount <= 0:
            raise ReturnError("يجب أن تكون كمية الإرجاع أكبر من الصفر")
        if unit_price is not None and (not math.isfinite(unit_price) or unit_price < 0):
            raise ReturnError("unitPrice must be >= 0", details={"unitPrice": unit_price})
        if not weight_based and not float(amount).is_integer():
            raise ReturnError("يجب أن تكون الكمية رقماً صحيحاً")

        sold = get_sold_amount(sale)
        already_returned = get_returned_amount(sale)
        remaining = sold - already_returned
        if amount > remaining + EPSILON:
            unit_label = product.weight_unit if weight_based else "قطعة"
            raise ReturnError(
                f"لا يمكن إرجاع أكثر من {remaining:g} {unit_label}. (تم إرجاع {already_returned:g} من هذه المبيعة)",
                details={"saleId": sale.id, "sold": sold, "alreadyReturned": already_returned, "maxAllowed": remaining},
            )

        price = sale.unit_price if unit_price is None else unit_price
        record = Return(
            sale_id=sale.id,
            product_id=product.id,
            returned_quantity=None if weight_based else int(amount),
            returned_weight=amount if weight_based else None,
            weight_unit=(weight_unit or sale.weight_unit or product.weight_unit) if weight_based else None,
            unit_price=price,
            total_refund=price * amount,
            reason=reason,
            processed_by=processed_by,
        )
        db.session.add(record)
        measurement_service.apply_snapshot(product, measurement_service.increase_stock(product, amount))

        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    return record


def list_returns(start: datetime | None = None, end: datetime | None = None) -> list[Return]:
    query = db.session.query(Return)
    if start is not None:
        query = query.filter(Return.return_date >= start)
    if end is not None:
        query = query.filter(Return.return_date <= end)
    return query.order_by(Return.return_date.desc(), Return.id.desc()).all()


def get_return_by_id(return_id: int) -> Return | None:
    return db.session.get(Return, return_id)


def list_returns_by_sale(sale_id: int) -> list[Return]:
    return db.session.query(Return).filter(Return.sale_id == sale_id).order_by(Return.id.asc()).all()


def list_returns_by_product(product_id: int) -> list[Return]:
    return (
        db.session.query(Return)
        .filter(Return.product_id == product_id)
        .order_by(Return.return_date.desc())
        .all()
    )


def list_returnable_sales(product_id: int) -> list[Sale]:
    """Sales of a product that still have something left to return, newest first."""
    sales = (
        db.session.query(Sale)
        .filter(Sale.product_id == product_id)
        .order_by(Sale.sale_date.desc(), Sale.id.desc())
        .all()
    )
    return [s for s in sales if get_remaining_returnable(s) > EPSILON]
