from __future__ import annotations

from ..extensions import db
from procsim.money import money_str
from procsim.time_utils import to_utc_z


ORDER_TYPES = ("purchase", "sale")
ORDER_STATUSES = ("pending", "confirmed", "completed", "cancelled")


class Order(db.Model):
    """
    Purchase or sales order document.

    Lifecycle:
    - pending -> completed (settled: stock and money moved)
    - pending -> cancelled (no stock or money moved)
    - completed and cancelled are terminal.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_user_task_status", "user_id", "task_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human-readable document number (e.g., "PO-000012")
    order_number = db.Column(db.String(50), nullable=False, unique=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    task_id = db.Column(db.Integer, db.ForeignKey("training_tasks.id"), nullable=False, index=True)

    # Purchase orders name a supplier, sales orders a customer
    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=True, index=True)
    customer_name = db.Column(db.String(200), nullable=True)

    order_type = db.Column(db.String(16), nullable=False)
    total_amount = db.Column(db.Numeric(15, 2), nullable=False)
    status = db.Column(db.String(16), nullable=False, default="pending", index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    cancelled_at = db.Column(db.DateTime(timezone=True), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    supplier = db.relationship("Supplier")
    lines = db.relationship(
        "OrderLine",
        backref="order",
        lazy=True,
        order_by="OrderLine.id",
    )
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Order id={self.id} number={self.order_number!r} type={self.order_type} status={self.status}>"

    @property
    def total_quantity(self) -> int:
        return sum(line.quantity for line in self.lines)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_number": self.order_number,
            "user_id": self.user_id,
            "task_id": self.task_id,
            "supplier_id": self.supplier_id,
            "customer_name": self.customer_name,
            "order_type": self.order_type,
            "total_amount": money_str(self.total_amount),
            "status": self.status,
            "items": [line.to_dict() for line in self.lines],
            "created_at": to_utc_z(self.created_at),
            "completed_at": to_utc_z(self.completed_at) if self.completed_at else None,
            "cancelled_at": to_utc_z(self.cancelled_at) if self.cancelled_at else None,
            "version_id": self.version_id,
        }


class OrderLine(db.Model):
    """Individual line items on an order."""
    __tablename__ = "order_lines"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_order_lines_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(10, 2), nullable=False)
    line_total = db.Column(db.Numeric(15, 2), nullable=False)

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "unit_price": money_str(self.unit_price),
            "line_total": money_str(self.line_total),
        }


class OrderSequence(db.Model):
    """
    Counter backing order numbers, one row per order type.

    next_number is the number the NEXT allocation will hand out.
    """
    __tablename__ = "order_sequences"

    order_type = db.Column(db.String(16), primary_key=True)
    next_number = db.Column(db.Integer, nullable=False, default=1)
