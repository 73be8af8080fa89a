"""
Task lifecycle tests: start, day advance, completion and KPI snapshots.
"""

from decimal import Decimal

import pytest

from procsim.models import EvaluationRecord, FinancialRecord, StudentProgress
from procsim.services.errors import (
    InvalidStateError,
    TaskAlreadyCompleteError,
    TaskNotFoundError,
    TaskNotStartedError,
)
from procsim.services.inventory_service import process_incoming
from procsim.services.order_service import create_purchase_order, create_sales_order
from procsim.services.task_service import (
    advance_day,
    complete_task,
    get_task_statistics,
    list_evaluations,
    start_task,
)


class TestStartTask:

    def test_seeds_balance_and_day(self, store, student, task):
        progress = start_task(student.id, task.id, store=store)

        assert progress.current_balance == Decimal("10000.00")
        assert progress.current_day == 1
        assert progress.inventory_value == Decimal("0")
        assert progress.status == "active"
        assert progress.kpi_scores == {
            "financial": 0, "operational": 0, "decision": 0, "learning": 0, "total": 0,
        }

        records = store.list_financial_records(student.id, task.id)
        assert len(records) == 1
        assert records[0].record_type == "income"
        assert records[0].category == "initial"
        assert records[0].amount == Decimal("10000.00")

    def test_start_is_idempotent(self, store, db_session, student, task):
        first = start_task(student.id, task.id, store=store)
        first_id = first.id
        second = start_task(student.id, task.id, store=store)

        assert second.id == first_id
        assert db_session.query(StudentProgress).count() == 1
        assert db_session.query(FinancialRecord).filter_by(category="initial").count() == 1

    def test_second_start_keeps_progress(self, store, progress, student, task, product):
        process_incoming(student.id, task.id, product.id, 10, "50.00", store=store)

        again = start_task(student.id, task.id, store=store)
        assert again.current_balance == Decimal("9500.00")

    def test_unknown_task(self, store, student):
        with pytest.raises(TaskNotFoundError) as exc:
            start_task(student.id, 9999, store=store)
        assert exc.value.details == {"task_id": 9999}

    def test_students_are_isolated(self, store, progress, other_student, task):
        other = start_task(other_student.id, task.id, store=store)
        assert other.id != progress.id
        assert len(store.list_financial_records(other_student.id, task.id)) == 1


class TestAdvanceDay:

    def test_charges_one_percent_operating_cost(self, store, progress, student, task):
        progress = advance_day(student.id, task.id, store=store)

        assert progress.current_day == 2
        assert progress.current_balance == Decimal("9900.00")

        expenses = store.list_financial_records(student.id, task.id, record_type="expense")
        assert [(e.amount, e.category) for e in expenses] == [(Decimal("100.00"), "operational")]

    def test_operating_cost_rounds_to_cents(self, store, progress, student, task, product):
        process_incoming(student.id, task.id, product.id, 1, "0.55", store=store)
        # balance 9999.45 -> 1% = 99.9945 -> 99.99
        progress = advance_day(student.id, task.id, store=store)
        assert progress.current_balance == Decimal("9899.46")

    def test_refreshes_kpi_snapshot(self, store, progress, student, task):
        progress = advance_day(student.id, task.id, store=store)

        # learning 2/5 = 40; financial margin 99% x2 clamps to 100
        assert progress.kpi_learning == 40
        assert progress.kpi_financial == 100
        assert progress.kpi_operational == 0
        assert progress.kpi_decision == 0
        assert progress.kpi_total == 44

    def test_stops_at_duration(self, store, progress, student, task):
        for expected_day in range(2, 6):
            assert advance_day(student.id, task.id, store=store).current_day == expected_day

        balance_before = store.get_progress(student.id, task.id).current_balance
        with pytest.raises(TaskAlreadyCompleteError) as exc:
            advance_day(student.id, task.id, store=store)

        assert exc.value.details["current_day"] == 5
        assert exc.value.details["duration_days"] == 5
        progress = store.get_progress(student.id, task.id)
        assert progress.current_day == 5
        assert progress.current_balance == balance_before

    def test_not_started(self, store, student, task):
        with pytest.raises(TaskNotStartedError):
            advance_day(student.id, task.id, store=store)

    def test_completed_task_cannot_advance(self, store, progress, student, task):
        complete_task(student.id, task.id, store=store)
        with pytest.raises(TaskAlreadyCompleteError):
            advance_day(student.id, task.id, store=store)


class TestCompleteTask:

    def test_writes_evaluation_and_closes_progress(self, store, progress, student, task):
        evaluation = complete_task(student.id, task.id, store=store)

        assert evaluation.user_id == student.id
        assert evaluation.grade in {"A", "B", "C", "D", "F"}
        assert evaluation.feedback.startswith(f"Overall grade: {evaluation.grade}")

        progress = store.get_progress(student.id, task.id)
        assert progress.status == "completed"
        assert progress.completed_at is not None
        assert progress.kpi_total == evaluation.total_score

    def test_recompletion_returns_existing_evaluation(self, store, db_session, progress, student, task):
        first = complete_task(student.id, task.id, store=store)
        first_id = first.id
        second = complete_task(student.id, task.id, store=store)

        assert second.id == first_id
        assert db_session.query(EvaluationRecord).count() == 1
        assert [e.id for e in list_evaluations(student.id, store=store)] == [first_id]

    def test_full_run_scores(self, store, progress, student, task, supplier, product):
        advance_day(student.id, task.id, store=store)
        create_purchase_order(
            student.id, task.id, supplier.id,
            [{"product_id": product.id, "quantity": 10, "unit_price": "50.00"}],
            store=store,
        )
        create_sales_order(
            student.id, task.id, "Walk-in",
            [{"product_id": product.id, "quantity": 5, "unit_price": "80.00"}],
            store=store,
        )

        evaluation = complete_task(student.id, task.id, store=store)

        # financial 100, operational 100, decision 5 sold / 5 stock x10 = 10, learning 40
        assert evaluation.financial_score == 100
        assert evaluation.operational_score == 100
        assert evaluation.decision_score == 10
        assert evaluation.learning_score == 40
        assert evaluation.total_score == 76
        assert evaluation.grade == "C"

    def test_completed_task_rejects_stock_movements(self, store, progress, student, task, product):
        complete_task(student.id, task.id, store=store)
        with pytest.raises(InvalidStateError):
            process_incoming(student.id, task.id, product.id, 1, "10.00", store=store)

    def test_not_started(self, store, student, task):
        with pytest.raises(TaskNotStartedError):
            complete_task(student.id, task.id, store=store)


class TestTaskStatistics:

    def test_not_started_returns_none(self, store, student, task):
        assert get_task_statistics(student.id, task.id, store=store) is None

    def test_scenario_figures(self, store, progress, student, task, supplier, product):
        advance_day(student.id, task.id, store=store)
        create_purchase_order(
            student.id, task.id, supplier.id,
            [{"product_id": product.id, "quantity": 10, "unit_price": "50.00"}],
            store=store,
        )
        create_sales_order(
            student.id, task.id, None,
            [{"product_id": product.id, "quantity": 5, "unit_price": "80.00"}],
            store=store,
        )

        stats = get_task_statistics(student.id, task.id, store=store)

        assert stats["current_balance"] == Decimal("9800.00")
        assert stats["current_day"] == 2
        assert stats["total_revenue"] == Decimal("400.00")
        assert stats["total_cost"] == Decimal("600.00")
        assert stats["total_profit"] == Decimal("-200.00")
        assert stats["profit_margin"] == pytest.approx(-50.0)
        assert stats["completed_orders"] == 2
        assert stats["pending_orders"] == 0
        assert stats["inventory_value"] == Decimal("250.00")
