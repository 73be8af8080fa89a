from __future__ import annotations

from ..extensions import db
from procsim.time_utils import to_utc_z


USER_ROLES = ("student", "teacher", "admin")


class User(db.Model):
    """
    Simulation participant.

    Authentication happens upstream; this table only carries identity and role.
    Students own progress/inventory/orders; teachers and admins author tasks and catalog data.
    """
    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), nullable=False, unique=True, index=True)
    name = db.Column(db.String(100), nullable=True)
    role = db.Column(db.String(16), nullable=False, default="student")
    student_number = db.Column(db.String(32), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username!r} role={self.role}>"

    @property
    def can_author(self) -> bool:
        return self.role in ("teacher", "admin")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "name": self.name,
            "role": self.role,
            "student_number": self.student_number,
            "created_at": to_utc_z(self.created_at),
        }
