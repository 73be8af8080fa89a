# Overview: Shared lookups for the per-(user, task) progress row that every money/stock operation mutates.

from __future__ import annotations

from ..models import StudentProgress, TrainingTask
from .errors import TaskNotFoundError, TaskNotStartedError, InvalidStateError
from .records import RecordStore


def require_task(task_id: int, *, store: RecordStore) -> TrainingTask:
    task = store.get_task(task_id)
    if task is None:
        raise TaskNotFoundError(task_id)
    return task


def require_progress(
    user_id: int,
    task_id: int,
    *,
    store: RecordStore,
    lock: bool = True,
    require_active: bool = True,
) -> StudentProgress:
    """
    Load the progress row for (user_id, task_id), locked for update by default.

    Raises TaskNotStartedError when absent and InvalidStateError when the
    task was already completed and require_active is set.
    """
    progress = store.get_progress(user_id, task_id, lock=lock)
    if progress is None:
        raise TaskNotStartedError(user_id, task_id)
    if require_active and progress.status == "completed":
        raise InvalidStateError(
            "Task already completed",
            details={"user_id": user_id, "task_id": task_id},
        )
    return progress


def validate_quantity(quantity) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValueError("quantity must be an integer")
    if quantity <= 0:
        raise ValueError("quantity must be > 0")
    return quantity
