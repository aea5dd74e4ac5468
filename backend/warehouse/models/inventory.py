from __future__ import annotations

from ..extensions import db
from warehouse.time_utils import to_utc_z, utcnow


MEASUREMENT_QUANTITY = "quantity"
MEASUREMENT_WEIGHT = "weight"


class Category(db.Model):
    """
    Product category with an owned list of subcategories.

    Products reference categories by name (free text), not by foreign key.
    """
    __tablename__ = "categories"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    subcategories = db.relationship(
        "Subcategory",
        backref="category",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="Subcategory.id",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "subcategories": [s.to_dict() for s in self.subcategories],
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }


class Subcategory(db.Model):
    __tablename__ = "subcategories"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=False, index=True)
    name = db.Column(db.String(128), nullable=False)
    description = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "categoryId": self.category_id,
            "name": self.name,
            "description": self.description,
            "createdAt": to_utc_z(self.created_at),
        }


class Product(db.Model):
    """
    Sellable product tracked either by count or by weight.

    measurement_type selects which stock pair is authoritative:
    quantity/min_quantity for "quantity", weight/min_weight/weight_unit
    for "weight". The inactive pair is kept but ignored.

    Pricing: wholesale_price is the retail cost basis and the wholesale list
    price; wholesale_cost_price is the purchase cost used for wholesale profit.
    discount is a fixed amount in the product's currency.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("measurement_type IN ('quantity', 'weight')", name="measurement_type"),
        db.CheckConstraint("currency IN ('IQD', 'USD')", name="currency"),
        db.Index("ix_products_barcode", "barcode"),
        db.Index("ix_products_category", "category"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    category = db.Column(db.String(128), nullable=True)
    subcategory = db.Column(db.String(128), nullable=True)

    measurement_type = db.Column(db.String(16), nullable=False, default=MEASUREMENT_QUANTITY)

    wholesale_cost_price = db.Column(db.Float, nullable=False, default=0.0)
    wholesale_price = db.Column(db.Float, nullable=False, default=0.0)
    sale_price = db.Column(db.Float, nullable=False, default=0.0)
    discount = db.Column(db.Float, nullable=False, default=0.0)

    quantity = db.Column(db.Integer, nullable=True, default=0)
    min_quantity = db.Column(db.Integer, nullable=True, default=5)
    weight = db.Column(db.Float, nullable=True, default=0.0)
    min_weight = db.Column(db.Float, nullable=True, default=0.0)
    weight_unit = db.Column(db.String(4), nullable=True, default="kg")

    barcode = db.Column(db.String(64), nullable=True)
    image_url = db.Column(db.String(512), nullable=True)
    currency = db.Column(db.String(3), nullable=False, default="IQD")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "subcategory": self.subcategory,
            "measurementType": self.measurement_type,
            "wholesaleCostPrice": self.wholesale_cost_price,
            "wholesalePrice": self.wholesale_price,
            "salePrice": self.sale_price,
            "discount": self.discount,
            "quantity": self.quantity,
            "minQuantity": self.min_quantity,
            "weight": self.weight,
            "minWeight": self.min_weight,
            "weightUnit": self.weight_unit,
            "barcode": self.barcode,
            "imageUrl": self.image_url,
            "currency": self.currency,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }
