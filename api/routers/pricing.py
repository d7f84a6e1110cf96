"""Pricing Router - stateless grid resolution, treatment pricing and worksheet enrichment"""
import logging
from dataclasses import asdict
from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from api.auth import get_account_id
from api.models.pricing_schemas import (
    InlineGridQuery,
    PriceResult,
    TreatmentPriceOut,
    TreatmentPriceRequest,
    WindowSummaryIn,
)
from api.services import grid_service
from interio_estimator_core.engine import calculate_treatment_price, enrich_summary
from interio_estimator_core.infra import get_session

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/v1/pricing", tags=["pricing"])


@router.post("/resolve", response_model=PriceResult)
async def resolve_inline(query: InlineGridQuery, account_id: str = Depends(get_account_id)):
    """Resolve a price against a grid supplied in the request body"""
    return grid_service.price_from_inline_grid(query.grid_data, query.width_cm, query.drop_cm)


@router.post("/treatment", response_model=TreatmentPriceOut)
async def treatment_price(
    req: TreatmentPriceRequest,
    account_id: str = Depends(get_account_id),
    db: Session = Depends(get_session),
):
    """
    Base price by fabrication method plus margin

    - per-drop: unit_price x drop (m)
    - per-meter: unit_price x width (m)
    - per-yard: unit_price x width (yd)
    - pricing-grid: grid lookup (grid_id or inline grid_data)
    """
    grid = req.grid_data
    if req.method == "pricing-grid" and req.grid_id:
        grid = grid_service.grid_data_for(db, account_id, req.grid_id)

    result = calculate_treatment_price(
        req.method,
        unit_price=req.unit_price,
        margin_percentage=req.margin_percentage,
        width_cm=req.width_cm,
        drop_cm=req.drop_cm,
        grid=grid,
    )
    return asdict(result)


@router.post("/enrich")
async def enrich(summary: WindowSummaryIn, account_id: str = Depends(get_account_id)) -> Dict[str, Any]:
    """Preview the enriched summary without saving it"""
    return enrich_summary(summary.as_summary())
