"""
Scoring engine tests: axis formulas, bounds, grades and feedback.
"""

from decimal import Decimal

import pytest

from procsim.services.errors import TaskNotFoundError
from procsim.services.scoring_service import (
    FEEDBACK_MESSAGES,
    KpiScores,
    calculate_kpis,
    decision_score,
    feedback_tier,
    financial_score,
    generate_feedback,
    grade_for,
    learning_score,
    operational_score,
    round_half_up,
)


@pytest.mark.parametrize("income,expense,expected", [
    (Decimal("0"), Decimal("0"), 0.0),
    (Decimal("1000"), Decimal("900"), 20.0),
    (Decimal("1000"), Decimal("5000"), 0.0),
    (Decimal("1000"), Decimal("0"), 100.0),
])
def test_financial_score(income, expense, expected):
    assert financial_score(income, expense) == pytest.approx(expected)


def test_operational_score():
    assert operational_score(0, 0) == 0.0
    assert operational_score(3, 4) == 75.0
    assert operational_score(4, 4) == 100.0


def test_decision_score_is_clamped():
    assert decision_score(0.0) == 0.0
    assert decision_score(2.5) == 25.0
    assert decision_score(50.0) == 100.0


def test_learning_score():
    assert learning_score(1, 5) == 20.0
    assert learning_score(5, 5) == 100.0
    assert learning_score(3, 0) == 0.0


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(3.5) == 4
    assert round_half_up(44.49) == 44


@pytest.mark.parametrize("total,grade", [
    (100, "A"), (90, "A"), (89, "B"), (80, "B"), (79, "C"), (70, "C"), (69, "D"), (60, "D"), (59, "F"), (0, "F"),
])
def test_grade_for(total, grade):
    assert grade_for(total) == grade


def test_feedback_tiers():
    assert feedback_tier(80) == "high"
    assert feedback_tier(79) == "medium"
    assert feedback_tier(60) == "medium"
    assert feedback_tier(59) == "low"


def test_generate_feedback_is_table_driven():
    scores = KpiScores(financial=95, operational=65, decision=10, learning=100, total=72)
    feedback = generate_feedback(scores, "C").split("\n")

    assert feedback == [
        "Overall grade: C",
        FEEDBACK_MESSAGES["financial"]["high"],
        FEEDBACK_MESSAGES["operational"]["medium"],
        FEEDBACK_MESSAGES["decision"]["low"],
        FEEDBACK_MESSAGES["learning"]["high"],
    ]


class TestCalculateKpis:

    def test_fresh_progress_scores_only_learning_and_finance(self, store, progress, student, task):
        scores = calculate_kpis(student.id, task.id, 1, store=store)

        # Only the initial budget is on the ledger: 100% margin
        assert scores.financial == 100
        assert scores.operational == 0
        assert scores.decision == 0
        assert scores.learning == 20
        assert scores.total == 42

    def test_no_records_at_all(self, store, student, task):
        scores = calculate_kpis(student.id, task.id, 1, store=store)
        for value in scores.to_dict().values():
            assert 0 <= value <= 100
        assert scores.financial == 0

    def test_unknown_task(self, store, student):
        with pytest.raises(TaskNotFoundError):
            calculate_kpis(student.id, 9999, 1, store=store)
