"""
Grid Service - pricing grid import, storage and lookup
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from interio_estimator_core.engine import (
    GridImportError,
    PriceResolution,
    parse_grid_csv,
    resolve_grid_price,
)
from interio_estimator_core.infra import GridRepository

logger = logging.getLogger(__name__)


def resolution_to_dict(result: PriceResolution) -> Dict[str, Any]:
    return {
        "price": result.price_or_zero(),
        "resolved": result.resolved,
        "failure": result.failure.value if result.failure else None,
        "unit": result.unit,
        "matched_width": result.matched_width,
        "matched_drop": result.matched_drop,
    }


def _not_found(grid_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={
            "code": "GRID_NOT_FOUND",
            "message": f"Pricing grid {grid_id} not found",
            "hint": "Check the grid id or list grids with GET /v1/grids",
        },
    )


def import_grid(
    db: Session,
    account_id: str,
    name: str,
    csv_text: str,
    unit: Optional[str] = None,
    grid_code: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Parse an uploaded CSV and store it as a canonical grid.

    Raises:
        HTTPException: 400 GRID_IMPORT_ERROR naming the offending row
    """
    try:
        grid = parse_grid_csv(csv_text, unit=unit)
    except GridImportError as e:
        logger.info(f"Rejected grid upload '{name}' for account {account_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "code": "GRID_IMPORT_ERROR",
                "message": str(e),
                "hint": "Expected header 'Drop/Width,<w1>,<w2>,...' and numeric price rows",
            },
        )

    record = GridRepository(db).create(account_id, name, grid, grid_code=grid_code)
    return record.to_dict()


def list_grids(db: Session, account_id: str, include_inactive: bool = False) -> List[Dict[str, Any]]:
    records = GridRepository(db).list(account_id, active_only=not include_inactive)
    return [record.to_dict() for record in records]


def get_grid(db: Session, account_id: str, grid_id: str) -> Dict[str, Any]:
    record = GridRepository(db).get(account_id, grid_id)
    if record is None:
        raise _not_found(grid_id)
    return record.to_dict()


def delete_grid(db: Session, account_id: str, grid_id: str, hard: bool = False) -> Dict[str, Any]:
    repo = GridRepository(db)
    deleted = repo.delete(account_id, grid_id) if hard else repo.soft_delete(account_id, grid_id)
    if not deleted:
        raise _not_found(grid_id)
    logger.info(f"{'Deleted' if hard else 'Deactivated'} pricing grid {grid_id}")
    return {"id": grid_id, "deleted": True, "hard": hard}


def grid_data_for(db: Session, account_id: str, grid_id: str) -> Dict[str, Any]:
    record = GridRepository(db).get(account_id, grid_id)
    if record is None:
        raise _not_found(grid_id)
    return record.grid_data


def price_from_grid(db: Session, account_id: str, grid_id: str, width_cm: float, drop_cm: float) -> Dict[str, Any]:
    grid_data = grid_data_for(db, account_id, grid_id)
    return resolution_to_dict(resolve_grid_price(grid_data, width_cm, drop_cm))


def price_from_inline_grid(grid_data: Any, width_cm: float, drop_cm: float) -> Dict[str, Any]:
    return resolution_to_dict(resolve_grid_price(grid_data, width_cm, drop_cm))
