# Overview: Service-layer checkout; turns a cart into sale rows, stock updates and an optional debt.

"""
Checkout Service

WHY: A cart checkout is the only workflow that touches products, sales
and debts together. All of it happens in one database transaction:
either every line is sold (and the debt recorded) or nothing changes.

DESIGN:
- The write lock is taken before any stock is read (BEGIN IMMEDIATE on
  SQLite, SELECT ... FOR UPDATE elsewhere), so two checkouts cannot both
  pass the stock check against the same pre-sale quantity.
- One Sale row per cart line; amount is quantity or weight depending on
  the product's measurement type.
- A debt checkout creates ONE Debt for the sum of all lines, linked to
  the first sale, and every sale row gets that debt's id.
- final_price = unit_price * amount - discount, not clamped at zero.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime

from ..extensions import db
from ..models import Product, Sale, Debt, DebtCustomer
from ..models.sales import SALE_TYPES, SALE_TYPE_RETAIL, SALE_PAYMENT_METHODS, PAYMENT_DEBT
from ..models.debts import DEBT_UNPAID
from ..validation import ValidationError, require_amount, optional_int
from . import measurement_service
from .concurrency import begin_write_transaction, lock_for_update


class CheckoutError(Exception):
    """Raised when a checkout must be rejected; nothing has been written."""
    def __init__(self, message: str, details: dict | None = None, not_found: bool = False):
        super().__init__(message)
        self.details = details or {}
        self.not_found = not_found


@dataclass(frozen=True)
class CartLine:
    product_id: int
    quantity: float | None
    weight: float | None
    unit_price: float
    discount: float = 0.0
    sale_type: str = SALE_TYPE_RETAIL
    weight_unit: str | None = None


@dataclass
class CheckoutResult:
    transaction_id: str
    sales: list[Sale] = field(default_factory=list)
    total_amount: float = 0.0
    debt: Debt | None = None

    def to_dict(self) -> dict:
        return {
            "success": True,
            "transactionId": self.transaction_id,
            "salesCount": len(self.sales),
            "totalAmount": self.total_amount,
            "debtId": self.debt.id if self.debt else None,
            "saleIds": [s.id for s in self.sales],
        }


def parse_cart_line(raw: dict, index: int = 0) -> CartLine:
    """Validate one cart line from JSON (camelCase keys)."""
    if not isinstance(raw, dict):
        raise ValidationError(f"Cart line {index + 1} must be an object")

    product_id = optional_int(raw.get("productId"), "productId")
    if product_id is None:
        raise ValidationError(f"Cart line {index + 1}: productId is required")

    quantity = raw.get("quantity")
    weight = raw.get("weight")
    if quantity is None and weight is None:
        raise ValidationError(f"Cart line {index + 1}: quantity or weight is required")
    if quantity is not None:
        quantity = require_amount(quantity, "quantity")
    if weight is not None:
        weight = require_amount(weight, "weight")

    if raw.get("unitPrice") is None:
        raise ValidationError(f"Cart line {index + 1}: unitPrice is required")
    unit_price = require_amount(raw.get("unitPrice"), "unitPrice")
    discount = require_amount(raw.get("discount") or 0, "discount")

    sale_type = raw.get("saleType") or SALE_TYPE_RETAIL
    if sale_type not in SALE_TYPES:
        raise ValidationError(f"Cart line {index + 1}: saleType must be retail or wholesale")

    weight_unit = raw.get("weightUnit")
    if weight_unit is not None and weight_unit not in measurement_service.WEIGHT_UNITS:
        raise ValidationError(f"Cart line {index + 1}: weightUnit must be kg or g")

    return CartLine(
        product_id=product_id,
        quantity=quantity,
        weight=weight,
        unit_price=unit_price,
        discount=discount,
        sale_type=sale_type,
        weight_unit=weight_unit,
    )


def _build_sale(product: Product, line: CartLine, amount: float, *, payment_method: str,
                customer_name: str | None, debt_customer_id: int | None) -> Sale:
    total_price = line.unit_price * amount
    weight_based = measurement_service.is_weight_based(product)
    return Sale(
        product_id=product.id,
        sale_type=line.sale_type,
        quantity=None if weight_based else int(amount),
        weight=amount if weight_based else None,
        weight_unit=(line.weight_unit or product.weight_unit) if weight_based else None,
        unit_price=line.unit_price,
        total_price=total_price,
        discount=line.discount,
        final_price=total_price - line.discount,
        customer_name=customer_name,
        payment_method=payment_method,
        debt_customer_id=debt_customer_id,
    )


def checkout(
    items: list,
    payment_method: str,
    debt_customer_id: int | None = None,
    customer_name: str | None = None,
    transaction_id: str | None = None,
    due_date: datetime | None = None,
    notes: str | None = None,
) -> CheckoutResult:
    """
    Sell every cart line atomically.

    Raises CheckoutError (business rule) or ValidationError (malformed line);
    on any exception the transaction is rolled back.
    """
    if not items:
        raise CheckoutError("السلة فارغة")
    if not isinstance(items, list):
        raise ValidationError("items must be a list")
    if payment_method not in SALE_PAYMENT_METHODS:
        raise CheckoutError("طريقة الدفع غير صالحة", details={"paymentMethod": payment_method})
    if payment_method == PAYMENT_DEBT and not debt_customer_id:
        raise CheckoutError("يجب اختيار عميل من دفتر الديون للبيع الآجل")

    lines = [parse_cart_line(raw, i) for i, raw in enumerate(items)]
    result = CheckoutResult(transaction_id=transaction_id or uuid.uuid4().hex)

    try:
        begin_write_transaction()

        customer = None
        if payment_method == PAYMENT_DEBT:
            customer = db.session.get(DebtCustomer, debt_customer_id)
            if customer is None:
                raise CheckoutError(
                    f"عميل الدين غير موجود: {debt_customer_id}",
                    details={"debtCustomerId": debt_customer_id},
                    not_found=True,
                )
            customer_name = customer_name or customer.name

        for index, line in enumerate(lines):
            product = lock_for_update(
                db.session.query(Product).filter_by(id=line.product_id)
            ).first()
            if product is None:
                raise CheckoutError(
                    f"المنتج غير موجود: {line.product_id}",
                    details={"line": index + 1, "productId": line.product_id},
                    not_found=True,
                )

            weight_based = measurement_service.is_weight_based(product)
            if (line.weight if weight_based else line.quantity) is None:
                raise CheckoutError(
                    f"{'الوزن' if weight_based else 'الكمية'} مطلوب للمنتج: {product.name}",
                    details={
                        "line": index + 1,
                        "productId": product.id,
                        "measurementType": product.measurement_type,
                    },
                )

            amount = measurement_service.get_sold_amount(product, line.quantity, line.weight)
            if not weight_based and not float(amount).is_integer():
                raise CheckoutError(
                    f"الكمية يجب أن تكون رقماً صحيحاً للمنتج: {product.name}",
                    details={"line": index + 1, "productId": product.id},
                )

            if not measurement_service.is_stock_available(product, amount):
                raise CheckoutError(
                    f"مخزون غير كافي للمنتج: {product.name}",
                    details={
                        "line": index + 1,
                        "productId": product.id,
                        "requested": amount,
                        "available": measurement_service.get_current_stock(product),
                    },
                )

            sale = _build_sale(
                product,
                line,
                amount,
                payment_method=payment_method,
                customer_name=customer_name,
                debt_customer_id=customer.id if customer else None,
            )
            db.session.add(sale)
            measurement_service.apply_snapshot(product, measurement_service.reduce_stock(product, amount))
            db.session.flush()
            result.sales.append(sale)

        result.total_amount = sum(s.final_price for s in result.sales)

        if customer is not None:
            debt = Debt(
                sale_id=result.sales[0].id,
                customer_id=customer.id,
                total_amount=result.total_amount,
                amount_paid=0.0,
                amount_remaining=result.total_amount,
                status=DEBT_UNPAID,
                due_date=due_date,
                notes=notes,
            )
            db.session.add(debt)
            db.session.flush()
            for sale in result.sales:
                sale.debt_id = debt.id
            result.debt = debt

        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    return result


def create_single_sale(payload: dict) -> Sale:
    """Record one sale line through the checkout path (POST /api/sales)."""
    result = checkout(
        items=[payload],
        payment_method=payload.get("paymentMethod") or "cash",
        debt_customer_id=optional_int(payload.get("debtCustomerId"), "debtCustomerId"),
        customer_name=payload.get("customerName"),
    )
    return result.sales[0]
