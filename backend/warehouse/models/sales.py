from __future__ import annotations

from ..extensions import db
from warehouse.time_utils import to_utc_z, utcnow


SALE_TYPE_RETAIL = "retail"
SALE_TYPE_WHOLESALE = "wholesale"
SALE_TYPES = (SALE_TYPE_RETAIL, SALE_TYPE_WHOLESALE)

PAYMENT_CASH = "cash"
PAYMENT_DEBT = "debt"
SALE_PAYMENT_METHODS = (PAYMENT_CASH, PAYMENT_DEBT)


class Sale(db.Model):
    """
    One sold line: a single product, amount and price.

    A checkout with N cart lines writes N rows. The product is referenced by
    id only; its current state is re-joined when the sale is read.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.CheckConstraint("sale_type IN ('retail', 'wholesale')", name="sale_type"),
        db.CheckConstraint("payment_method IN ('cash', 'debt')", name="payment_method"),
        db.Index("ix_sales_sale_date", "sale_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    sale_type = db.Column(db.String(16), nullable=False, default=SALE_TYPE_RETAIL)

    quantity = db.Column(db.Integer, nullable=True)
    weight = db.Column(db.Float, nullable=True)
    weight_unit = db.Column(db.String(4), nullable=True)

    unit_price = db.Column(db.Float, nullable=False)
    total_price = db.Column(db.Float, nullable=False)
    discount = db.Column(db.Float, nullable=False, default=0.0)
    final_price = db.Column(db.Float, nullable=False)

    customer_name = db.Column(db.String(255), nullable=True)
    payment_method = db.Column(db.String(16), nullable=False, default=PAYMENT_CASH)
    debt_customer_id = db.Column(db.Integer, db.ForeignKey("debt_customers.id"), nullable=True, index=True)
    # Back-filled after the debt row exists; plain column to avoid a sales <-> debts cycle
    debt_id = db.Column(db.Integer, nullable=True, index=True)

    sale_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    product = db.relationship("Product", backref=db.backref("sales", lazy=True))

    def to_dict(self, include_product: bool = True) -> dict:
        data = {
            "id": self.id,
            "productId": self.product_id,
            "saleType": self.sale_type,
            "quantity": self.quantity,
            "weight": self.weight,
            "weightUnit": self.weight_unit,
            "unitPrice": self.unit_price,
            "totalPrice": self.total_price,
            "discount": self.discount,
            "finalPrice": self.final_price,
            "customerName": self.customer_name,
            "paymentMethod": self.payment_method,
            "debtCustomerId": self.debt_customer_id,
            "debtId": self.debt_id,
            "saleDate": to_utc_z(self.sale_date),
        }
        if include_product:
            data["product"] = self.product.to_dict() if self.product else None
        return data


class Return(db.Model):
    """
    Goods returned against a prior sale.

    Stock for the product is increased by the returned amount when the
    return is recorded. The cumulative bound against the sale is checked
    in return_service, not by the database.
    """
    __tablename__ = "returns"
    __table_args__ = (
        db.Index("ix_returns_return_date", "return_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    returned_quantity = db.Column(db.Integer, nullable=True)
    returned_weight = db.Column(db.Float, nullable=True)
    weight_unit = db.Column(db.String(4), nullable=True)

    unit_price = db.Column(db.Float, nullable=False)
    total_refund = db.Column(db.Float, nullable=False)

    reason = db.Column(db.Text, nullable=True)
    processed_by = db.Column(db.String(128), nullable=True)
    return_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    sale = db.relationship("Sale", backref=db.backref("returns", lazy=True))
    product = db.relationship("Product", backref=db.backref("returns", lazy=True))

    def to_dict(self, include_product: bool = True) -> dict:
        data = {
            "id": self.id,
            "saleId": self.sale_id,
            "productId": self.product_id,
            "returnedQuantity": self.returned_quantity,
            "returnedWeight": self.returned_weight,
            "weightUnit": self.weight_unit,
            "unitPrice": self.unit_price,
            "totalRefund": self.total_refund,
            "reason": self.reason,
            "processedBy": self.processed_by,
            "returnDate": to_utc_z(self.return_date),
        }
        if include_product:
            data["product"] = self.product.to_dict() if self.product else None
        return data
