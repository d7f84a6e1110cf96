"""Grids Router - pricing grid upload, listing, deletion and lookup"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from api.auth import get_account_id
from api.config import config
from api.models.pricing_schemas import GridOut, PriceQuery, PriceResult
from api.services import grid_service
from interio_estimator_core.infra import get_session

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/v1/grids", tags=["grids"])


def _bad_upload(message: str, hint: Optional[str] = None) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"code": "GRID_IMPORT_ERROR", "message": message, "hint": hint},
    )


@router.post("", status_code=status.HTTP_201_CREATED, response_model=GridOut)
async def upload_grid(
    name: str = Form(...),
    file: UploadFile = File(None),
    csv_text: str = Form(None),
    unit: str = Form(None),
    grid_code: str = Form(None),
    account_id: str = Depends(get_account_id),
    db: Session = Depends(get_session),
):
    """
    Import a Drop/Width CSV as a pricing grid.

    Send either a multipart `file` or a `csv_text` form field.
    """
    if file is not None:
        raw = await file.read()
        if len(raw) > config.MAX_UPLOAD_BYTES:
            raise _bad_upload(f"File exceeds {config.MAX_UPLOAD_BYTES} bytes")
        try:
            csv_text = raw.decode("utf-8-sig")
        except UnicodeDecodeError:
            raise _bad_upload("File is not UTF-8 encoded text", "Export the grid as CSV (UTF-8)")

    if not csv_text:
        raise _bad_upload("No CSV provided", "Send a 'file' upload or a 'csv_text' field")

    return grid_service.import_grid(db, account_id, name, csv_text, unit=unit or None, grid_code=grid_code)


@router.get("", response_model=List[GridOut])
async def list_grids(
    include_inactive: bool = False,
    account_id: str = Depends(get_account_id),
    db: Session = Depends(get_session),
):
    """List the account's pricing grids"""
    return grid_service.list_grids(db, account_id, include_inactive=include_inactive)


@router.get("/{grid_id}", response_model=GridOut)
async def get_grid(
    grid_id: str,
    account_id: str = Depends(get_account_id),
    db: Session = Depends(get_session),
):
    return grid_service.get_grid(db, account_id, grid_id)


@router.delete("/{grid_id}")
async def delete_grid(
    grid_id: str,
    hard: bool = False,
    account_id: str = Depends(get_account_id),
    db: Session = Depends(get_session),
):
    """Deactivate a grid, or remove it entirely with ?hard=true"""
    return grid_service.delete_grid(db, account_id, grid_id, hard=hard)


@router.post("/{grid_id}/price", response_model=PriceResult)
async def price_from_grid(
    grid_id: str,
    query: PriceQuery,
    account_id: str = Depends(get_account_id),
    db: Session = Depends(get_session),
):
    """Manufacturing price for a width/drop in centimetres"""
    return grid_service.price_from_grid(db, account_id, grid_id, query.width_cm, query.drop_cm)
