"""
Repositories for pricing grids and window summaries
All queries are scoped to the owning account
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..engine.grid_csv import grid_to_dict
from ..engine.grid_shapes import StandardGrid
from ..engine.units import parse_measurement
from .models import PricingGridRecord, WindowSummaryRecord

logger = logging.getLogger(__name__)


class OwnershipError(PermissionError):
    """Record exists but belongs to another account"""
    pass


class GridRepository:
    """Pricing grid storage"""

    def __init__(self, session: Session):
        self.session = session

    def create(
        self,
        account_id: str,
        name: str,
        grid: StandardGrid,
        grid_code: Optional[str] = None,
    ) -> PricingGridRecord:
        record = PricingGridRecord(
            account_id=account_id,
            name=name,
            grid_code=grid_code,
            unit=grid.unit,
            grid_data=grid_to_dict(grid),
            active=True,
        )
        self.session.add(record)
        self.session.flush()
        logger.info(f"Stored pricing grid {record.id} '{name}' for account {account_id}")
        return record

    def get(self, account_id: str, grid_id: str) -> Optional[PricingGridRecord]:
        record = self.session.get(PricingGridRecord, grid_id)
        if record is None or record.account_id != account_id:
            return None
        return record

    def list(self, account_id: str, active_only: bool = True) -> List[PricingGridRecord]:
        stmt = select(PricingGridRecord).where(PricingGridRecord.account_id == account_id)
        if active_only:
            stmt = stmt.where(PricingGridRecord.active.is_(True))
        stmt = stmt.order_by(PricingGridRecord.created_at.desc())
        return list(self.session.scalars(stmt))

    def soft_delete(self, account_id: str, grid_id: str) -> bool:
        record = self.get(account_id, grid_id)
        if record is None:
            return False
        record.active = False
        self.session.flush()
        return True

    def delete(self, account_id: str, grid_id: str) -> bool:
        record = self.get(account_id, grid_id)
        if record is None:
            return False
        self.session.delete(record)
        self.session.flush()
        return True


class WindowSummaryRepository:
    """Window summary storage, upserted by window id"""

    def __init__(self, session: Session):
        self.session = session

    def upsert(self, account_id: str, summary: Mapping[str, Any]) -> WindowSummaryRecord:
        """
        Insert or replace the summary for summary['window_id'].

        Last writer wins; there is no version check.

        Raises:
            ValueError: summary has no window_id
            OwnershipError: the window belongs to another account
        """
        window_id = summary.get("window_id")
        if not window_id:
            raise ValueError("Window summary requires window_id")

        record = self.session.get(WindowSummaryRecord, str(window_id))
        if record is not None and record.account_id != account_id:
            raise OwnershipError(f"Window {window_id} belongs to another account")

        if record is None:
            record = WindowSummaryRecord(window_id=str(window_id), account_id=account_id)
            self.session.add(record)

        record.treatment_category = summary.get("treatment_category")
        record.treatment_type = summary.get("treatment_type")
        record.total_cost = parse_measurement(summary.get("total_cost"))
        record.payload = dict(summary)
        self.session.flush()
        return record

    def get(self, account_id: str, window_id: str) -> Optional[Dict[str, Any]]:
        record = self.session.get(WindowSummaryRecord, window_id)
        if record is None or record.account_id != account_id:
            return None
        summary = dict(record.payload or {})
        summary["updated_at"] = record.updated_at.isoformat() if record.updated_at else None
        return summary
