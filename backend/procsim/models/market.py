from __future__ import annotations

from ..extensions import db
from procsim.time_utils import to_utc_z


class MarketData(db.Model):
    """
    Latest market snapshot for one product category.

    Shared by all students; only the market tick writes it. No history is kept.
    """
    __tablename__ = "market_data"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    category = db.Column(db.String(100), nullable=False, unique=True)

    demand_level = db.Column(db.Integer, nullable=False, default=50)  # 0-100
    competition_level = db.Column(db.Integer, nullable=False, default=50)  # 0-100
    price_index = db.Column(db.Numeric(5, 2), nullable=False, default=1)  # 0.50-2.00
    trend_direction = db.Column(db.String(16), nullable=False, default="stable")  # rising, falling, stable
    market_events = db.Column(db.JSON, nullable=False, default=list)

    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return (
            f"<MarketData category={self.category!r} demand={self.demand_level} "
            f"competition={self.competition_level} index={self.price_index}>"
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "category": self.category,
            "demand_level": self.demand_level,
            "competition_level": self.competition_level,
            "price_index": str(self.price_index) if self.price_index is not None else None,
            "trend_direction": self.trend_direction,
            "market_events": self.market_events or [],
            "updated_at": to_utc_z(self.updated_at),
        }
