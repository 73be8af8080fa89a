"""
Task Lifecycle - start / advance / complete a student's run through a task

StudentProgress is the single mutable record of a run. Every transition
here is a locked read-modify-write of that row plus an append to the
financial ledger, committed together.

Lifecycle:
- start_task: seeds balance with the task budget (idempotent per user/task).
- advance_day: charges 1% of the balance as the daily operating cost,
  moves to the next day and refreshes the KPI snapshot.
- complete_task: scores the run, writes one EvaluationRecord and marks the
  progress completed. Completing again returns that same evaluation.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy.exc import IntegrityError

from ..models import EvaluationRecord, StudentProgress
from procsim.money import to_money, ZERO
from procsim.time_utils import utcnow
from .concurrency import run_with_retry
from .errors import TaskAlreadyCompleteError
from .ledger_service import append_financial_record, summarize_financials
from .progress_service import require_progress, require_task
from .records import RecordStore
from .scoring_service import KpiScores, calculate_kpis, grade_for, generate_feedback

logger = logging.getLogger(__name__)

DAILY_OPERATING_COST_RATE = Decimal("0.01")


def _store_kpis(progress: StudentProgress, scores: KpiScores) -> None:
    progress.kpi_financial = scores.financial
    progress.kpi_operational = scores.operational
    progress.kpi_decision = scores.decision
    progress.kpi_learning = scores.learning
    progress.kpi_total = scores.total


def start_task(user_id: int, task_id: int, *, store: RecordStore | None = None) -> StudentProgress:
    """
    Start a task for a student.

    Idempotent: an existing progress row is returned unchanged and no second
    initial-budget record is written.
    """
    store = store or RecordStore()

    def _op():
        task = require_task(task_id, store=store)

        existing = store.get_progress(user_id, task_id)
        if existing is not None:
            return existing

        budget = to_money(task.initial_budget)
        progress = StudentProgress(
            user_id=user_id,
            task_id=task_id,
            current_balance=budget,
            current_day=1,
            inventory_value=ZERO,
            total_revenue=ZERO,
            total_profit=ZERO,
            kpi_financial=0,
            kpi_operational=0,
            kpi_decision=0,
            kpi_learning=0,
            kpi_total=0,
            status="active",
        )
        try:
            store.add(progress)
            append_financial_record(
                user_id=user_id,
                task_id=task_id,
                record_type="income",
                amount=budget,
                category="initial",
                description="Initial budget",
                store=store,
            )
            store.commit()
        except IntegrityError:
            # Concurrent start won the unique (user_id, task_id) race
            store.rollback()
            winner = store.get_progress(user_id, task_id)
            if winner is None:
                raise
            return winner

        logger.info("Task %s started for user %s with budget %s", task_id, user_id, budget)
        return progress

    return run_with_retry(_op, session=store.session)


def advance_day(user_id: int, task_id: int, *, store: RecordStore | None = None) -> StudentProgress:
    """
    Move a run to its next day.

    Fails with TaskAlreadyCompleteError once current_day has reached the
    task duration (or the run was completed).
    """
    store = store or RecordStore()

    def _op():
        progress = require_progress(user_id, task_id, store=store, require_active=False)
        task = require_task(task_id, store=store)

        if progress.status == "completed" or progress.current_day >= task.duration_days:
            raise TaskAlreadyCompleteError(
                "Task has no days left",
                details={
                    "user_id": user_id,
                    "task_id": task_id,
                    "current_day": progress.current_day,
                    "duration_days": task.duration_days,
                    "status": progress.status,
                },
            )

        balance = to_money(progress.current_balance)
        daily_cost = max(ZERO, to_money(balance * DAILY_OPERATING_COST_RATE))

        append_financial_record(
            user_id=user_id,
            task_id=task_id,
            record_type="expense",
            amount=daily_cost,
            category="operational",
            description=f"Day {progress.current_day} operating cost",
            store=store,
        )

        progress.current_balance = balance - daily_cost
        progress.current_day = progress.current_day + 1
        store.flush()

        _store_kpis(progress, calculate_kpis(user_id, task_id, progress.current_day, store=store))
        store.commit()

        logger.info(
            "User %s advanced task %s to day %s (operating cost %s)",
            user_id, task_id, progress.current_day, daily_cost,
        )
        return progress

    return run_with_retry(_op, session=store.session)


def complete_task(user_id: int, task_id: int, *, store: RecordStore | None = None) -> EvaluationRecord:
    """
    Score the run and close it.

    Re-completing a completed run returns the evaluation written the first time.
    """
    store = store or RecordStore()

    def _op():
        progress = require_progress(user_id, task_id, store=store, require_active=False)

        if progress.status == "completed":
            existing = store.get_latest_evaluation(user_id, task_id)
            if existing is not None:
                return existing

        scores = calculate_kpis(user_id, task_id, progress.current_day, store=store)
        grade = grade_for(scores.total)

        evaluation = EvaluationRecord(
            user_id=user_id,
            task_id=task_id,
            financial_score=scores.financial,
            operational_score=scores.operational,
            decision_score=scores.decision,
            learning_score=scores.learning,
            total_score=scores.total,
            grade=grade,
            feedback=generate_feedback(scores, grade),
        )
        store.add(evaluation)

        _store_kpis(progress, scores)
        progress.status = "completed"
        progress.completed_at = utcnow()

        store.commit()
        logger.info("User %s completed task %s with grade %s (%s)", user_id, task_id, grade, scores.total)
        return evaluation

    return run_with_retry(_op, session=store.session)


def get_progress(user_id: int, task_id: int, *, store: RecordStore | None = None) -> StudentProgress | None:
    store = store or RecordStore()
    return store.get_progress(user_id, task_id)


def list_progress(user_id: int, *, store: RecordStore | None = None) -> list[StudentProgress]:
    store = store or RecordStore()
    return store.list_progress(user_id)


def get_task_statistics(user_id: int, task_id: int, *, store: RecordStore | None = None) -> dict | None:
    """Dashboard figures for a run; None when the task was never started."""
    store = store or RecordStore()
    progress = store.get_progress(user_id, task_id)
    if progress is None:
        return None

    totals = summarize_financials(user_id, task_id, store=store)
    orders = store.list_orders(user_id, task_id)

    revenue = totals["operating_income"]
    cost = totals["total_expense"]
    profit = revenue - cost

    return {
        "current_balance": to_money(progress.current_balance),
        "current_day": progress.current_day,
        "total_revenue": revenue,
        "total_cost": cost,
        "total_profit": profit,
        "profit_margin": float(profit / revenue * 100) if revenue > 0 else 0.0,
        "pending_orders": sum(1 for o in orders if o.status == "pending"),
        "completed_orders": sum(1 for o in orders if o.status == "completed"),
        "inventory_value": to_money(progress.inventory_value),
        "kpi_scores": progress.kpi_scores,
        "status": progress.status,
    }


def list_evaluations(
    user_id: int, *, task_id: int | None = None, store: RecordStore | None = None
) -> list[EvaluationRecord]:
    store = store or RecordStore()
    return store.list_evaluations(user_id, task_id=task_id)
