# Overview: Error kinds raised by simulation services; each carries a stable code and context details.

"""
Simulation error kinds.

Every rejection raised by a service is a SimulationError subclass raised
before any write, so the caller's prior state is unchanged. `details` holds
the ids and the required vs. available figures a caller needs to build a
message. `http_status` is only a hint for the HTTP layer.

Malformed input (bad quantities, negative prices) raises plain ValueError.
"""


class SimulationError(Exception):
    """Base class for simulation rejections."""
    code = "simulation_error"
    http_status = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message, "details": self.details}


class NotFoundError(SimulationError):
    """Referenced task/supplier/product/order does not exist."""
    code = "not_found"
    http_status = 404


class TaskNotFoundError(NotFoundError):
    def __init__(self, task_id):
        super().__init__(f"Task {task_id} not found", details={"task_id": task_id})


class SupplierNotFoundError(NotFoundError):
    def __init__(self, supplier_id):
        super().__init__(f"Supplier {supplier_id} not found", details={"supplier_id": supplier_id})


class ProductNotFoundError(NotFoundError):
    def __init__(self, product_id):
        super().__init__(f"Product {product_id} not found", details={"product_id": product_id})


class OrderNotFoundError(NotFoundError):
    def __init__(self, order_id):
        super().__init__(f"Order {order_id} not found", details={"order_id": order_id})


class TaskNotStartedError(SimulationError):
    """Operation requires a StudentProgress row that does not exist."""
    code = "not_started"
    http_status = 409

    def __init__(self, user_id, task_id):
        super().__init__(
            "Task has not been started",
            details={"user_id": user_id, "task_id": task_id},
        )


class TaskAlreadyCompleteError(SimulationError):
    """Day advance requested at or past the task's last day."""
    code = "already_complete"
    http_status = 409


class InsufficientFundsError(SimulationError):
    code = "insufficient_funds"
    http_status = 422

    def __init__(self, required, available):
        super().__init__(
            "Insufficient funds",
            details={"required": str(required), "available": str(available)},
        )


class InsufficientStockError(SimulationError):
    """
    details["items"] lists every short product:
    {"product_id", "requested_quantity", "available_quantity"}.
    """
    code = "insufficient_stock"
    http_status = 422

    def __init__(self, items: list[dict]):
        super().__init__("Insufficient stock", details={"items": items})


class InvalidStateError(SimulationError):
    code = "invalid_state"
    http_status = 409


class OrderAlreadyCompletedError(InvalidStateError):
    """Completed orders are immutable; they cannot be cancelled or reprocessed."""

    def __init__(self, order_id, order_number: str | None = None):
        super().__init__(
            "Completed orders cannot be cancelled",
            details={"order_id": order_id, "order_number": order_number},
        )


class ConflictError(SimulationError):
    """Unique master data (username, product SKU) already taken."""
    code = "conflict"
    http_status = 409
