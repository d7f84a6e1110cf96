"""
Summary Service - window summary enrichment and persistence
Enrich → upsert keyed by window id (last writer wins)
"""
import logging
from typing import Any, Dict

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from interio_estimator_core.engine import enrich_summary
from interio_estimator_core.infra import OwnershipError, WindowSummaryRepository

logger = logging.getLogger(__name__)


def save_summary(db: Session, account_id: str, window_id: str, summary: Dict[str, Any]) -> Dict[str, Any]:
    """
    Enrich a window summary and upsert it.

    The path window id is authoritative over any window_id in the body.
    """
    summary = dict(summary)
    summary["window_id"] = window_id
    enriched = enrich_summary(summary)

    repo = WindowSummaryRepository(db)
    try:
        repo.upsert(account_id, enriched)
    except OwnershipError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "code": "WINDOW_FORBIDDEN",
                "message": f"Window {window_id} belongs to another account",
                "hint": None,
            },
        )

    logger.info(
        f"Saved window summary {window_id} "
        f"(category={enriched.get('treatment_category')}, total_cost={enriched.get('total_cost')})"
    )
    return repo.get(account_id, window_id)


def get_summary(db: Session, account_id: str, window_id: str) -> Dict[str, Any]:
    summary = WindowSummaryRepository(db).get(account_id, window_id)
    if summary is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "code": "SUMMARY_NOT_FOUND",
                "message": f"No summary saved for window {window_id}",
                "hint": None,
            },
        )
    return summary
