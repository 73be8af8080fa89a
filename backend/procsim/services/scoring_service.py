# Overview: KPI scoring, letter grades and template feedback for a student's task run.

"""
Scoring Engine

Four axes, each clamped to [0, 100] and rounded half-up to an integer:

    financial   (0.4)  profit margin over all financial records, x2
    operational (0.3)  completed orders / all orders, as a percentage
    decision    (0.2)  units sold / average stock across products, x10
    learning    (0.1)  current day / task duration, as a percentage

total = round(weighted sum of the unrounded axis scores).
Scoring only reads records; it never writes.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from decimal import Decimal, ROUND_HALF_UP

from .errors import TaskNotFoundError
from .inventory_service import units_sold_by_product
from .ledger_service import summarize_financials
from .records import RecordStore

KPI_WEIGHTS = {
    "financial": 0.4,
    "operational": 0.3,
    "decision": 0.2,
    "learning": 0.1,
}

GRADE_THRESHOLDS = (
    (90, "A"),
    (80, "B"),
    (70, "C"),
    (60, "D"),
)

# (axis, tier) -> sentence; tiers: high >= 80, medium >= 60, low otherwise
FEEDBACK_MESSAGES = {
    "financial": {
        "high": "Excellent financial management: margins are well controlled.",
        "medium": "Solid financial results, with room to improve.",
        "low": "Tighten cost control and profit management.",
    },
    "operational": {
        "high": "Highly efficient operations with an excellent order fulfillment rate.",
        "medium": "Operations are adequate; processes can be streamlined.",
        "low": "Operational efficiency needs work; watch the order completion rate.",
    },
    "decision": {
        "high": "Strong decisions with excellent inventory turnover.",
        "medium": "Good decisions; inventory management can be optimized.",
        "low": "Purchasing and inventory decisions need improvement.",
    },
    "learning": {
        "high": "Excellent progress: the task is largely complete.",
        "medium": "Progress is on track.",
        "low": "Pick up the pace to finish the task.",
    },
}


@dataclass(frozen=True)
class KpiScores:
    financial: int
    operational: int
    decision: int
    learning: int
    total: int

    def to_dict(self) -> dict:
        return asdict(self)


def round_half_up(value: float) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _clamp_score(value: float) -> float:
    return max(0.0, min(100.0, value))


def financial_score(total_income: Decimal, total_expense: Decimal) -> float:
    if total_income <= 0:
        return 0.0
    profit_margin = float((total_income - total_expense) / total_income * 100)
    return _clamp_score(profit_margin * 2)


def operational_score(completed_orders: int, total_orders: int) -> float:
    if total_orders <= 0:
        return 0.0
    return _clamp_score(completed_orders / total_orders * 100)


def decision_score(turnover: float) -> float:
    return _clamp_score(turnover * 10)


def learning_score(current_day: int, duration_days: int) -> float:
    if duration_days <= 0:
        return 0.0
    return _clamp_score(current_day / duration_days * 100)


def inventory_turnover(user_id: int, task_id: int, *, store: RecordStore) -> float:
    """Units sold on completed sales orders / average current stock across products."""
    records = store.list_inventory_records(user_id, task_id)
    if not records:
        return 0.0

    total_sold = sum(units_sold_by_product(user_id, task_id, store=store).values())
    average_stock = sum(r.current_stock for r in records) / len(records)
    return total_sold / average_stock if average_stock > 0 else 0.0


def calculate_kpis(
    user_id: int,
    task_id: int,
    current_day: int,
    *,
    store: RecordStore | None = None,
) -> KpiScores:
    store = store or RecordStore()
    task = store.get_task(task_id)
    if task is None:
        raise TaskNotFoundError(task_id)

    totals = summarize_financials(user_id, task_id, store=store)
    orders = store.list_orders(user_id, task_id)
    completed = sum(1 for o in orders if o.status == "completed")

    raw = {
        "financial": financial_score(totals["total_income"], totals["total_expense"]),
        "operational": operational_score(completed, len(orders)),
        "decision": decision_score(inventory_turnover(user_id, task_id, store=store)),
        "learning": learning_score(current_day, task.duration_days),
    }
    total = sum(raw[axis] * weight for axis, weight in KPI_WEIGHTS.items())

    return KpiScores(
        financial=round_half_up(raw["financial"]),
        operational=round_half_up(raw["operational"]),
        decision=round_half_up(raw["decision"]),
        learning=round_half_up(raw["learning"]),
        total=round_half_up(_clamp_score(total)),
    )


def grade_for(total_score: int) -> str:
    for threshold, grade in GRADE_THRESHOLDS:
        if total_score >= threshold:
            return grade
    return "F"


def feedback_tier(score: int) -> str:
    if score >= 80:
        return "high"
    if score >= 60:
        return "medium"
    return "low"


def generate_feedback(scores: KpiScores, grade: str) -> str:
    lines = [f"Overall grade: {grade}"]
    for axis in KPI_WEIGHTS:
        lines.append(FEEDBACK_MESSAGES[axis][feedback_tier(getattr(scores, axis))])
    return "\n".join(lines)
