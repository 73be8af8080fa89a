# backend/procsim/routes/tasks.py
"""
Training task routes: authoring plus the student lifecycle.

All routes require X-User-Id. The lifecycle routes act on the caller's own
progress; task creation requires the teacher or admin role.
"""
from flask import Blueprint, request, g

from ..decorators import require_user, require_author_role
from ..services import catalog_service, task_service
from ..services.errors import TaskNotStartedError
from ..validation import require_fields, parse_int

tasks_bp = Blueprint("tasks", __name__, url_prefix="/api/tasks")


@tasks_bp.get("")
@require_user
def list_tasks_route():
    status = request.args.get("status")
    tasks = catalog_service.list_training_tasks(status=status)
    return {"items": [t.to_dict() for t in tasks], "count": len(tasks)}


@tasks_bp.post("")
@require_user
@require_author_role
def create_task_route():
    payload = request.get_json(silent=True) or {}
    require_fields(payload, "name", "initial_budget", "duration_days")

    task = catalog_service.create_training_task(
        name=payload["name"],
        initial_budget=payload["initial_budget"],
        duration_days=parse_int(payload["duration_days"], "duration_days"),
        description=payload.get("description"),
        created_by=g.current_user.id,
        status=payload.get("status", "active"),
    )
    return {"task": task.to_dict()}, 201


@tasks_bp.get("/progress")
@require_user
def list_my_progress_route():
    rows = task_service.list_progress(g.current_user.id)
    return {"items": [p.to_dict() for p in rows], "count": len(rows)}


@tasks_bp.get("/<int:task_id>")
@require_user
def get_task_route(task_id: int):
    return {"task": catalog_service.get_training_task(task_id).to_dict()}


@tasks_bp.post("/<int:task_id>/start")
@require_user
def start_task_route(task_id: int):
    progress = task_service.start_task(g.current_user.id, task_id)
    return {"progress": progress.to_dict()}


@tasks_bp.post("/<int:task_id>/advance")
@require_user
def advance_day_route(task_id: int):
    progress = task_service.advance_day(g.current_user.id, task_id)
    return {"progress": progress.to_dict()}


@tasks_bp.post("/<int:task_id>/complete")
@require_user
def complete_task_route(task_id: int):
    evaluation = task_service.complete_task(g.current_user.id, task_id)
    return {"evaluation": evaluation.to_dict()}


@tasks_bp.get("/<int:task_id>/progress")
@require_user
def get_progress_route(task_id: int):
    progress = task_service.get_progress(g.current_user.id, task_id)
    if progress is None:
        raise TaskNotStartedError(g.current_user.id, task_id)
    return {"progress": progress.to_dict()}


@tasks_bp.get("/<int:task_id>/statistics")
@require_user
def task_statistics_route(task_id: int):
    stats = task_service.get_task_statistics(g.current_user.id, task_id)
    if stats is None:
        raise TaskNotStartedError(g.current_user.id, task_id)
    return {"statistics": stats}
