# Overview: Service-layer operations for the financial ledger; append-only transaction log per student/task.

"""
Financial Ledger Invariants (authoritative)

- Append-only: records are never updated or deleted.
- amount is always >= 0; the direction lives in record_type (income/expense/investment).
- Records are written inside the same DB transaction as the balance change they explain.
- The cached StudentProgress.current_balance must always equal
    initial_budget + sum(income excluding category 'initial') - sum(expense)
  i.e. the ledger and the cached balance never diverge.
"""

from __future__ import annotations

from decimal import Decimal

from ..models import FinancialRecord
from ..models.finance import RECORD_TYPES
from procsim.money import to_money, ZERO
from .records import RecordStore


def append_financial_record(
    *,
    user_id: int,
    task_id: int,
    record_type: str,
    amount,
    category: str | None = None,
    description: str | None = None,
    related_order_id: int | None = None,
    store: RecordStore | None = None,
) -> FinancialRecord:
    """
    Append-only financial record.

    - No domain logic here (balances are the caller's job).
    - Flushes so the id is assigned, never commits.
    """
    store = store or RecordStore()

    if record_type not in RECORD_TYPES:
        raise ValueError(f"invalid record_type: {record_type}")

    amount = to_money(amount)
    if amount < 0:
        raise ValueError("amount must be >= 0")

    record = FinancialRecord(
        user_id=user_id,
        task_id=task_id,
        record_type=record_type,
        amount=amount,
        category=category,
        description=description,
        related_order_id=related_order_id,
    )
    return store.add(record)


def list_financial_records(
    user_id: int,
    task_id: int,
    *,
    record_type: str | None = None,
    store: RecordStore | None = None,
) -> list[FinancialRecord]:
    store = store or RecordStore()
    return store.list_financial_records(user_id, task_id, record_type=record_type)


def summarize_financials(user_id: int, task_id: int, *, store: RecordStore | None = None) -> dict:
    """
    Sum the ledger by type.

    total_income includes the initial budget seed; operating_income excludes it.
    """
    store = store or RecordStore()
    records = store.list_financial_records(user_id, task_id)

    total_income = ZERO
    operating_income = ZERO
    total_expense = ZERO
    total_investment = ZERO
    for record in records:
        amount = Decimal(record.amount)
        if record.record_type == "income":
            total_income += amount
            if record.category != "initial":
                operating_income += amount
        elif record.record_type == "expense":
            total_expense += amount
        elif record.record_type == "investment":
            total_investment += amount

    return {
        "total_income": total_income,
        "operating_income": operating_income,
        "total_expense": total_expense,
        "total_investment": total_investment,
        "record_count": len(records),
    }
