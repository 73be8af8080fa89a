from __future__ import annotations

from ..extensions import db
from procsim.money import money_str
from procsim.time_utils import to_utc_z


RECORD_TYPES = ("income", "expense", "investment")


class FinancialRecord(db.Model):
    """
    Flat transaction log for one student in one task.

    Append-only: rows are never updated or deleted. Revenue, cost and
    profit figures are derived by summing amount per record_type.
    """
    __tablename__ = "financial_records"
    __table_args__ = (
        db.Index("ix_financial_user_task_type", "user_id", "task_id", "record_type"),
        db.CheckConstraint("amount >= 0", name="ck_financial_amount_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    task_id = db.Column(db.Integer, db.ForeignKey("training_tasks.id"), nullable=False)

    record_type = db.Column(db.String(16), nullable=False)
    amount = db.Column(db.Numeric(15, 2), nullable=False)
    description = db.Column(db.Text, nullable=True)
    category = db.Column(db.String(32), nullable=True)  # initial, procurement, sales, operational

    related_order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<FinancialRecord id={self.id} type={self.record_type} amount={self.amount} category={self.category}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "task_id": self.task_id,
            "record_type": self.record_type,
            "amount": money_str(self.amount),
            "description": self.description,
            "category": self.category,
            "related_order_id": self.related_order_id,
            "created_at": to_utc_z(self.created_at),
        }
