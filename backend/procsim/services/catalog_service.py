# Overview: Master data administration - users, training tasks, suppliers and products.

"""
Catalog Service

Authoring is restricted to teacher/admin at the HTTP layer; these functions
only validate the data. Every create commits on its own.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from ..models import User, TrainingTask, Supplier, Product
from ..models.auth import USER_ROLES
from procsim.money import to_money, to_decimal
from .errors import ConflictError, TaskNotFoundError
from .records import RecordStore

logger = logging.getLogger(__name__)

TASK_STATUSES = ("draft", "active", "completed", "archived")
QUALITY_LEVELS = ("low", "medium", "high")


def _required_text(value, field: str) -> str:
    if value is None or not str(value).strip():
        raise ValueError(f"{field} is required")
    return str(value).strip()


def _commit_unique(store: RecordStore, obj, conflict_message: str, details: dict):
    try:
        store.add(obj)
        store.commit()
    except IntegrityError as exc:
        store.rollback()
        raise ConflictError(conflict_message, details=details) from exc
    return obj


# Users

def create_user(
    username: str,
    *,
    name: str | None = None,
    role: str = "student",
    student_number: str | None = None,
    store: RecordStore | None = None,
) -> User:
    store = store or RecordStore()
    username = _required_text(username, "username")
    if role not in USER_ROLES:
        raise ValueError(f"role must be one of {', '.join(USER_ROLES)}")

    if store.get_user_by_username(username) is not None:
        raise ConflictError("Username already exists", details={"username": username})

    user = User(username=username, name=name, role=role, student_number=student_number)
    return _commit_unique(store, user, "Username already exists", {"username": username})


def get_user(user_id: int, *, store: RecordStore | None = None) -> User | None:
    store = store or RecordStore()
    return store.get_user(user_id)


# Training tasks

def create_training_task(
    name: str,
    initial_budget,
    duration_days: int,
    *,
    description: str | None = None,
    created_by: int | None = None,
    status: str = "active",
    store: RecordStore | None = None,
) -> TrainingTask:
    """
    Author a new task.

    initial_budget must be > 0 and duration_days a positive integer.
    """
    store = store or RecordStore()
    name = _required_text(name, "name")

    initial_budget = to_money(initial_budget)
    if initial_budget <= 0:
        raise ValueError("initial_budget must be > 0")
    if isinstance(duration_days, bool) or not isinstance(duration_days, int):
        raise ValueError("duration_days must be an integer")
    if duration_days <= 0:
        raise ValueError("duration_days must be > 0")
    if status not in TASK_STATUSES:
        raise ValueError(f"status must be one of {', '.join(TASK_STATUSES)}")

    task = TrainingTask(
        name=name,
        description=description,
        initial_budget=initial_budget,
        duration_days=duration_days,
        created_by=created_by,
        status=status,
    )
    store.add(task)
    store.commit()
    logger.info("Training task %s created (%s days, budget %s)", task.id, duration_days, initial_budget)
    return task


def list_training_tasks(
    *,
    created_by: int | None = None,
    status: str | None = None,
    store: RecordStore | None = None,
) -> list[TrainingTask]:
    store = store or RecordStore()
    return store.list_tasks(created_by=created_by, status=status)


def get_training_task(task_id: int, *, store: RecordStore | None = None) -> TrainingTask:
    store = store or RecordStore()
    task = store.get_task(task_id)
    if task is None:
        raise TaskNotFoundError(task_id)
    return task


# Suppliers

def create_supplier(
    name: str,
    *,
    description: str | None = None,
    categories: list[str] | None = None,
    rating=0,
    reliability: int = 0,
    quality_level: str = "medium",
    cooperation_years: int = 0,
    is_active: bool = True,
    store: RecordStore | None = None,
) -> Supplier:
    store = store or RecordStore()
    name = _required_text(name, "name")

    rating = to_decimal(rating)
    if rating < 0 or rating > 5:
        raise ValueError("rating must be between 0 and 5")
    if isinstance(reliability, bool) or not isinstance(reliability, int) or not 0 <= reliability <= 100:
        raise ValueError("reliability must be an integer between 0 and 100")
    if quality_level not in QUALITY_LEVELS:
        raise ValueError(f"quality_level must be one of {', '.join(QUALITY_LEVELS)}")
    if isinstance(cooperation_years, bool) or not isinstance(cooperation_years, int) or cooperation_years < 0:
        raise ValueError("cooperation_years must be a non-negative integer")

    supplier = Supplier(
        name=name,
        description=description,
        categories=list(categories or []),
        rating=rating,
        reliability=reliability,
        quality_level=quality_level,
        cooperation_years=cooperation_years,
        is_active=bool(is_active),
    )
    store.add(supplier)
    store.commit()
    return supplier


def list_suppliers(*, active_only: bool = False, store: RecordStore | None = None) -> list[Supplier]:
    store = store or RecordStore()
    return store.list_suppliers(active_only=active_only)


# Products

def create_product(
    sku: str,
    name: str,
    unit_price,
    *,
    category: str | None = None,
    description: str | None = None,
    safety_stock: int | None = None,
    store: RecordStore | None = None,
) -> Product:
    """
    Add a product to the shared catalog.

    SKU is unique; a duplicate raises ConflictError.
    """
    store = store or RecordStore()
    sku = _required_text(sku, "sku")
    name = _required_text(name, "name")

    unit_price = to_money(unit_price)
    if unit_price <= 0:
        raise ValueError("unit_price must be > 0")
    if safety_stock is not None:
        if isinstance(safety_stock, bool) or not isinstance(safety_stock, int) or safety_stock < 0:
            raise ValueError("safety_stock must be a non-negative integer")

    product = Product(
        sku=sku,
        name=name,
        unit_price=unit_price,
        category=category,
        description=description,
        safety_stock=safety_stock,
    )
    return _commit_unique(store, product, "SKU already exists", {"sku": sku})


def list_products(*, category: str | None = None, store: RecordStore | None = None) -> list[Product]:
    store = store or RecordStore()
    return store.list_products(category=category)
