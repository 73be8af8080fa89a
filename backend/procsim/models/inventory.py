from __future__ import annotations

from ..extensions import db
from procsim.money import money_str
from procsim.time_utils import to_utc_z


class InventoryRecord(db.Model):
    """
    Stock level of one product for one student in one task.

    Invariants:
    - current_stock >= 0 at all times (outgoing movements fail closed).
    - average_unit_cost is the running weighted average of incoming unit costs:
        (stock * avg + qty * unit_cost) / (stock + qty)
      Outgoing movements do not change it.
    """
    __tablename__ = "inventory_records"
    __table_args__ = (
        db.UniqueConstraint("user_id", "task_id", "product_id", name="uq_inventory_user_task_product"),
        db.CheckConstraint("current_stock >= 0", name="ck_inventory_stock_non_negative"),
        db.CheckConstraint("reserved_stock >= 0", name="ck_inventory_reserved_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    task_id = db.Column(db.Integer, db.ForeignKey("training_tasks.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    current_stock = db.Column(db.Integer, nullable=False, default=0)
    reserved_stock = db.Column(db.Integer, nullable=False, default=0)

    average_unit_cost = db.Column(db.Numeric(12, 4), nullable=False, default=0)

    last_updated = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    version_id = db.Column(db.Integer, nullable=False, default=1)

    product = db.relationship("Product")
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return (
            f"<InventoryRecord user_id={self.user_id} task_id={self.task_id} "
            f"product_id={self.product_id} stock={self.current_stock}>"
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "task_id": self.task_id,
            "product_id": self.product_id,
            "current_stock": self.current_stock,
            "reserved_stock": self.reserved_stock,
            "average_unit_cost": money_str(self.average_unit_cost),
            "last_updated": to_utc_z(self.last_updated),
            "version_id": self.version_id,
        }
