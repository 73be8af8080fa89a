# backend/procsim/routes/finance.py
"""Financial record and evaluation listings for the caller."""
from flask import Blueprint, request, g

from ..decorators import require_user
from ..services import ledger_service, task_service
from procsim.money import money_str
from ..validation import parse_optional_int

finance_bp = Blueprint("finance", __name__, url_prefix="/api")


@finance_bp.get("/tasks/<int:task_id>/finance/records")
@require_user
def list_records_route(task_id: int):
    records = ledger_service.list_financial_records(
        g.current_user.id,
        task_id,
        record_type=request.args.get("type"),
    )
    return {"items": [r.to_dict() for r in records], "count": len(records)}


@finance_bp.get("/tasks/<int:task_id>/finance/summary")
@require_user
def summary_route(task_id: int):
    totals = ledger_service.summarize_financials(g.current_user.id, task_id)
    return {
        "summary": {
            "total_income": money_str(totals["total_income"]),
            "operating_income": money_str(totals["operating_income"]),
            "total_expense": money_str(totals["total_expense"]),
            "total_investment": money_str(totals["total_investment"]),
            "record_count": totals["record_count"],
        }
    }


@finance_bp.get("/evaluations")
@require_user
def list_evaluations_route():
    task_id = parse_optional_int(request.args.get("task_id"), "task_id")
    evaluations = task_service.list_evaluations(g.current_user.id, task_id=task_id)
    return {"items": [e.to_dict() for e in evaluations], "count": len(evaluations)}
