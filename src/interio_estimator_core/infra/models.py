"""
ORM records for pricing grids and window summaries
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import JSON, Boolean, DateTime, Float, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    pass


class PricingGridRecord(Base):
    """Uploaded pricing grid, stored in canonical form"""
    __tablename__ = "pricing_grids"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    account_id: Mapped[str] = mapped_column(String(64), index=True)
    name: Mapped[str] = mapped_column(String(255))
    grid_code: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    unit: Mapped[str] = mapped_column(String(2))
    grid_data: Mapped[dict] = mapped_column(JSON)
    active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "grid_code": self.grid_code,
            "unit": self.unit,
            "active": self.active,
            "grid_data": self.grid_data,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class WindowSummaryRecord(Base):
    """Per-window treatment cost record, upserted on every worksheet save"""
    __tablename__ = "windows_summary"

    window_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    account_id: Mapped[str] = mapped_column(String(64), index=True)
    treatment_category: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    treatment_type: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    total_cost: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    payload: Mapped[dict] = mapped_column(JSON)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)
