"""
Treatment price calculator
Base price by fabrication pricing method, plus margin
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from .grid_resolver import resolve_price

logger = logging.getLogger(__name__)

CM_PER_METER = 100.0
CM_PER_YARD = 91.44

PRICING_METHODS = ("per-drop", "per-meter", "per-yard", "pricing-grid")


@dataclass
class TreatmentPrice:
    method: str
    base_price: float
    margin_percentage: float
    margin_amount: float
    final_price: float


def calculate_base_price(
    method: str,
    unit_price: float = 0.0,
    width_cm: Optional[float] = None,
    drop_cm: Optional[float] = None,
    grid: Any = None,
) -> float:
    """Base fabrication price for one treatment. Unknown methods price at 0."""
    unit_price = unit_price or 0.0

    if method == "per-drop":
        return unit_price * ((drop_cm or 0.0) / CM_PER_METER)
    if method == "per-meter":
        return unit_price * ((width_cm or 0.0) / CM_PER_METER)
    if method == "per-yard":
        return unit_price * ((width_cm or 0.0) / CM_PER_YARD)
    if method == "pricing-grid":
        if grid is None or not width_cm or not drop_cm:
            return 0.0
        return resolve_price(grid, width_cm, drop_cm)

    logger.warning(f"Unknown pricing method '{method}', pricing at 0")
    return 0.0


def calculate_treatment_price(
    method: str,
    *,
    unit_price: float = 0.0,
    margin_percentage: float = 0.0,
    width_cm: Optional[float] = None,
    drop_cm: Optional[float] = None,
    grid: Any = None,
) -> TreatmentPrice:
    base = calculate_base_price(method, unit_price, width_cm, drop_cm, grid)
    margin_percentage = margin_percentage or 0.0
    margin_amount = base * margin_percentage / 100.0
    return TreatmentPrice(
        method=method,
        base_price=base,
        margin_percentage=margin_percentage,
        margin_amount=margin_amount,
        final_price=base + margin_amount,
    )
