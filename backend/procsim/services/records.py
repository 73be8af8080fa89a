# Overview: Record Store - the narrow storage interface the simulation services call.

"""
Record Store

Every service takes an optional `store=` keyword; the default wraps the
Flask-SQLAlchemy session. Tests and background jobs can hand in a store bound
to another session.

- Per-student entities are always looked up by their owning (user_id, task_id).
- create_* methods add and flush (ids assigned) but never commit; the calling
  service commits once per logical operation.
- lock=True reads go through lock_for_update().
"""

from __future__ import annotations

from ..extensions import db
from ..models import (
    User,
    TrainingTask,
    StudentProgress,
    EvaluationRecord,
    Supplier,
    Product,
    InventoryRecord,
    Order,
    FinancialRecord,
    MarketData,
)
from .concurrency import lock_for_update


class RecordStore:
    def __init__(self, session=None):
        self._session = session

    @property
    def session(self):
        # Resolved lazily so a store built at import time still follows the app context
        return self._session if self._session is not None else db.session

    def add(self, obj):
        self.session.add(obj)
        self.session.flush()
        return obj

    def flush(self) -> None:
        self.session.flush()

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    # Users

    def get_user(self, user_id: int) -> User | None:
        return self.session.get(User, user_id)

    def get_user_by_username(self, username: str) -> User | None:
        return self.session.query(User).filter_by(username=username).first()

    # Training tasks

    def get_task(self, task_id: int) -> TrainingTask | None:
        return self.session.get(TrainingTask, task_id)

    def list_tasks(self, *, created_by: int | None = None, status: str | None = None) -> list[TrainingTask]:
        q = self.session.query(TrainingTask)
        if created_by is not None:
            q = q.filter(TrainingTask.created_by == created_by)
        if status is not None:
            q = q.filter(TrainingTask.status == status)
        return q.order_by(TrainingTask.id.asc()).all()

    # Student progress

    def get_progress(self, user_id: int, task_id: int, *, lock: bool = False) -> StudentProgress | None:
        q = self.session.query(StudentProgress).filter_by(user_id=user_id, task_id=task_id)
        if lock:
            q = lock_for_update(q)
        return q.first()

    def list_progress(self, user_id: int) -> list[StudentProgress]:
        return (
            self.session.query(StudentProgress)
            .filter_by(user_id=user_id)
            .order_by(StudentProgress.id.asc())
            .all()
        )

    # Catalog

    def get_supplier(self, supplier_id: int) -> Supplier | None:
        return self.session.get(Supplier, supplier_id)

    def list_suppliers(self, *, active_only: bool = False) -> list[Supplier]:
        q = self.session.query(Supplier)
        if active_only:
            q = q.filter(Supplier.is_active.is_(True))
        return q.order_by(Supplier.id.asc()).all()

    def get_product(self, product_id: int) -> Product | None:
        return self.session.get(Product, product_id)

    def list_products(self, *, category: str | None = None) -> list[Product]:
        q = self.session.query(Product)
        if category is not None:
            q = q.filter(Product.category == category)
        return q.order_by(Product.id.asc()).all()

    # Inventory

    def get_inventory_record(
        self, user_id: int, task_id: int, product_id: int, *, lock: bool = False
    ) -> InventoryRecord | None:
        q = self.session.query(InventoryRecord).filter_by(
            user_id=user_id, task_id=task_id, product_id=product_id
        )
        if lock:
            q = lock_for_update(q)
        return q.first()

    def list_inventory_records(self, user_id: int, task_id: int) -> list[InventoryRecord]:
        return (
            self.session.query(InventoryRecord)
            .filter_by(user_id=user_id, task_id=task_id)
            .order_by(InventoryRecord.product_id.asc())
            .all()
        )

    # Orders

    def get_order(
        self,
        order_id: int,
        *,
        user_id: int | None = None,
        task_id: int | None = None,
        lock: bool = False,
    ) -> Order | None:
        q = self.session.query(Order).filter(Order.id == order_id)
        if user_id is not None:
            q = q.filter(Order.user_id == user_id)
        if task_id is not None:
            q = q.filter(Order.task_id == task_id)
        if lock:
            q = lock_for_update(q)
        return q.first()

    def list_orders(
        self,
        user_id: int,
        task_id: int,
        *,
        order_type: str | None = None,
        status: str | None = None,
    ) -> list[Order]:
        q = self.session.query(Order).filter_by(user_id=user_id, task_id=task_id)
        if order_type is not None:
            q = q.filter(Order.order_type == order_type)
        if status is not None:
            q = q.filter(Order.status == status)
        return q.order_by(Order.id.asc()).all()

    # Financial records (append-only: no update or delete helpers)

    def list_financial_records(
        self, user_id: int, task_id: int, *, record_type: str | None = None
    ) -> list[FinancialRecord]:
        q = self.session.query(FinancialRecord).filter_by(user_id=user_id, task_id=task_id)
        if record_type is not None:
            q = q.filter(FinancialRecord.record_type == record_type)
        return q.order_by(FinancialRecord.id.asc()).all()

    # Evaluations

    def get_latest_evaluation(self, user_id: int, task_id: int) -> EvaluationRecord | None:
        return (
            self.session.query(EvaluationRecord)
            .filter_by(user_id=user_id, task_id=task_id)
            .order_by(EvaluationRecord.id.desc())
            .first()
        )

    def list_evaluations(self, user_id: int, *, task_id: int | None = None) -> list[EvaluationRecord]:
        q = self.session.query(EvaluationRecord).filter_by(user_id=user_id)
        if task_id is not None:
            q = q.filter(EvaluationRecord.task_id == task_id)
        return q.order_by(EvaluationRecord.id.asc()).all()

    # Market data

    def get_market_data(self, category: str) -> MarketData | None:
        return self.session.query(MarketData).filter_by(category=category).first()

    def list_market_data(self) -> list[MarketData]:
        return self.session.query(MarketData).order_by(MarketData.category.asc()).all()

    def upsert_market_data(self, category: str, **fields) -> MarketData:
        snapshot = self.get_market_data(category)
        if snapshot is None:
            snapshot = MarketData(category=category)
            self.session.add(snapshot)
        for key, value in fields.items():
            setattr(snapshot, key, value)
        self.session.flush()
        return snapshot
