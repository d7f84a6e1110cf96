"""Summaries Router - window summary save (enrich + upsert) and read"""
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from api.auth import get_account_id
from api.models.pricing_schemas import WindowSummaryIn
from api.services import summary_service
from interio_estimator_core.infra import get_session

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/v1/windows", tags=["windows"])


@router.put("/{window_id}/summary")
async def save_window_summary(
    window_id: str,
    summary: WindowSummaryIn,
    account_id: str = Depends(get_account_id),
    db: Session = Depends(get_session),
) -> Dict[str, Any]:
    return summary_service.save_summary(db, account_id, window_id, summary.as_summary())


@router.get("/{window_id}/summary")
async def get_window_summary(
    window_id: str,
    account_id: str = Depends(get_account_id),
    db: Session = Depends(get_session),
) -> Dict[str, Any]:
    return summary_service.get_summary(db, account_id, window_id)
