from __future__ import annotations

from ..extensions import db
from procsim.money import money_str
from procsim.time_utils import to_utc_z


class TrainingTask(db.Model):
    """
    Scenario definition authored by a teacher.

    initial_budget seeds every student's balance; duration_days caps day advances.
    """
    __tablename__ = "training_tasks"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)

    initial_budget = db.Column(db.Numeric(15, 2), nullable=False)
    duration_days = db.Column(db.Integer, nullable=False)

    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    status = db.Column(db.String(16), nullable=False, default="draft")  # draft, active, completed, archived

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    creator = db.relationship("User", foreign_keys=[created_by])

    def __repr__(self) -> str:
        return f"<TrainingTask id={self.id} name={self.name!r} days={self.duration_days}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "initial_budget": money_str(self.initial_budget),
            "duration_days": self.duration_days,
            "created_by": self.created_by,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class StudentProgress(db.Model):
    """
    One student's running state inside one task.

    CONCURRENCY: every balance/day mutation is a read-modify-write of this row.
    version_id is the optimistic lock; a concurrent writer gets StaleDataError
    and the service layer re-runs the whole operation.
    """
    __tablename__ = "student_progress"
    __table_args__ = (
        db.UniqueConstraint("user_id", "task_id", name="uq_progress_user_task"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    task_id = db.Column(db.Integer, db.ForeignKey("training_tasks.id"), nullable=False, index=True)

    current_balance = db.Column(db.Numeric(15, 2), nullable=False)
    current_day = db.Column(db.Integer, nullable=False, default=1)
    inventory_value = db.Column(db.Numeric(15, 2), nullable=False, default=0)
    total_revenue = db.Column(db.Numeric(15, 2), nullable=False, default=0)
    total_profit = db.Column(db.Numeric(15, 2), nullable=False, default=0)

    # KPI snapshot, refreshed on every day advance
    kpi_financial = db.Column(db.Integer, nullable=False, default=0)
    kpi_operational = db.Column(db.Integer, nullable=False, default=0)
    kpi_decision = db.Column(db.Integer, nullable=False, default=0)
    kpi_learning = db.Column(db.Integer, nullable=False, default=0)
    kpi_total = db.Column(db.Integer, nullable=False, default=0)

    status = db.Column(db.String(16), nullable=False, default="active", index=True)  # active, completed

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    task = db.relationship("TrainingTask")
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return (
            f"<StudentProgress user_id={self.user_id} task_id={self.task_id} "
            f"day={self.current_day} balance={self.current_balance}>"
        )

    @property
    def kpi_scores(self) -> dict:
        return {
            "financial": self.kpi_financial,
            "operational": self.kpi_operational,
            "decision": self.kpi_decision,
            "learning": self.kpi_learning,
            "total": self.kpi_total,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "task_id": self.task_id,
            "current_balance": money_str(self.current_balance),
            "current_day": self.current_day,
            "inventory_value": money_str(self.inventory_value),
            "total_revenue": money_str(self.total_revenue),
            "total_profit": money_str(self.total_profit),
            "kpi_scores": self.kpi_scores,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "completed_at": to_utc_z(self.completed_at) if self.completed_at else None,
            "version_id": self.version_id,
        }


class EvaluationRecord(db.Model):
    """Final grade written once when a task is completed. Never updated."""
    __tablename__ = "evaluation_records"
    __table_args__ = (
        db.Index("ix_evaluations_user_task", "user_id", "task_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    task_id = db.Column(db.Integer, db.ForeignKey("training_tasks.id"), nullable=False)

    financial_score = db.Column(db.Integer, nullable=False)
    operational_score = db.Column(db.Integer, nullable=False)
    decision_score = db.Column(db.Integer, nullable=False)
    learning_score = db.Column(db.Integer, nullable=False)
    total_score = db.Column(db.Integer, nullable=False)

    grade = db.Column(db.String(1), nullable=False)
    feedback = db.Column(db.Text, nullable=False)

    completed_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "task_id": self.task_id,
            "financial_score": self.financial_score,
            "operational_score": self.operational_score,
            "decision_score": self.decision_score,
            "learning_score": self.learning_score,
            "total_score": self.total_score,
            "grade": self.grade,
            "feedback": self.feedback,
            "completed_at": to_utc_z(self.completed_at),
        }
