from __future__ import annotations

from ..extensions import db
from procsim.money import money_str
from procsim.time_utils import to_utc_z


class Supplier(db.Model):
    """
    Supplier master data, shared by every task.

    Purchase orders reference a supplier; the negotiation simulator looks it up
    before quoting.
    """
    __tablename__ = "suppliers"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)

    # Product categories this supplier serves
    categories = db.Column(db.JSON, nullable=True)

    rating = db.Column(db.Numeric(2, 1), nullable=False, default=0)
    reliability = db.Column(db.Integer, nullable=False, default=0)  # 0-100
    quality_level = db.Column(db.String(16), nullable=False, default="medium")  # low, medium, high
    cooperation_years = db.Column(db.Integer, nullable=False, default=0)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Supplier id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "categories": self.categories or [],
            "rating": str(self.rating) if self.rating is not None else None,
            "reliability": self.reliability,
            "quality_level": self.quality_level,
            "cooperation_years": self.cooperation_years,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }


class Product(db.Model):
    """
    Product master data.

    unit_price is the supplier list price: the negotiation base price and
    the reference for holding-cost estimates.
    safety_stock NULL means "use the default threshold" in low-stock checks.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_category", "category"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sku = db.Column(db.String(50), nullable=False, unique=True)
    name = db.Column(db.String(200), nullable=False)
    category = db.Column(db.String(100), nullable=True)
    description = db.Column(db.Text, nullable=True)

    unit_price = db.Column(db.Numeric(10, 2), nullable=False)
    safety_stock = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sku": self.sku,
            "name": self.name,
            "category": self.category,
            "description": self.description,
            "unit_price": money_str(self.unit_price),
            "safety_stock": self.safety_stock,
            "created_at": to_utc_z(self.created_at),
        }
