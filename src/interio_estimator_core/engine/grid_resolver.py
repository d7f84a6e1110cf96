"""
Grid Resolver
Manufacturing price lookup against uploaded pricing grids

Query width/drop are always centimetres. They are converted once into the
grid's unit, then matched on each axis independently:
- nearest-value grids: nearest width column and nearest drop row
- legacy range grids: inclusive range containment, no nearest fallback

resolve_price() never raises; malformed or missing data resolves to 0.0.
resolve_grid_price() reports why a lookup failed so callers can tell a
stored price of zero from a failed resolution.
"""

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Sequence, Tuple

from .grid_shapes import NormalizedGrid, RangeGrid, StandardGrid, normalize_grid_data
from .units import cm_to_unit, parse_measurement, to_number

logger = logging.getLogger(__name__)


class ResolutionFailure(str, Enum):
    """Why a grid lookup produced no price"""
    MISSING_GRID = "missing_grid"
    UNRECOGNIZED_SHAPE = "unrecognized_shape"
    EMPTY_GRID = "empty_grid"
    INVALID_DIMENSIONS = "invalid_dimensions"
    OUT_OF_RANGE = "out_of_range"
    NO_PRICE = "no_price"
    PARSE_ERROR = "parse_error"


@dataclass(frozen=True)
class PriceResolution:
    """Outcome of a grid lookup"""
    price: Optional[float] = None
    failure: Optional[ResolutionFailure] = None
    unit: Optional[str] = None
    matched_width: Optional[float] = None
    matched_drop: Optional[float] = None

    @property
    def resolved(self) -> bool:
        return self.failure is None and self.price is not None

    def price_or_zero(self) -> float:
        return self.price if self.resolved else 0.0

    @classmethod
    def failed(cls, failure: ResolutionFailure, unit: Optional[str] = None) -> "PriceResolution":
        return cls(failure=failure, unit=unit)


def nearest_index(values: Sequence[float], target: float) -> int:
    """
    Index of the value closest to target.

    Equal distances resolve to the lower value, whatever the storage order.
    """
    return min(range(len(values)), key=lambda i: (abs(values[i] - target), values[i]))


def _lookup_standard(grid: StandardGrid, width: float, drop: float) -> PriceResolution:
    width_idx = nearest_index(grid.width_columns, width)
    drop_idx = nearest_index([row.drop for row in grid.drop_rows], drop)

    row = grid.drop_rows[drop_idx]
    matched_width = grid.width_columns[width_idx]
    price = row.prices[width_idx] if width_idx < len(row.prices) else None
    if price is None:
        return PriceResolution(
            failure=ResolutionFailure.NO_PRICE,
            unit=grid.unit,
            matched_width=matched_width,
            matched_drop=row.drop,
        )
    return PriceResolution(
        price=price,
        unit=grid.unit,
        matched_width=matched_width,
        matched_drop=row.drop,
    )


def _lookup_ranges(grid: RangeGrid, width: float, drop: float) -> PriceResolution:
    row = next((r for r in grid.rows if r.drop_min <= drop <= r.drop_max), None)
    column = next((c for c in grid.columns if c.width_min <= width <= c.width_max), None)
    if row is None or column is None:
        logger.debug(
            f"No range match for width={width} drop={drop} "
            f"(row={'ok' if row else 'none'}, column={'ok' if column else 'none'})"
        )
        return PriceResolution.failed(ResolutionFailure.OUT_OF_RANGE, grid.unit)

    raw = row.cells.get(column.key)
    if raw is None:
        return PriceResolution(failure=ResolutionFailure.NO_PRICE, unit=grid.unit)
    return PriceResolution(
        price=to_number(raw),
        unit=grid.unit,
        matched_width=column.width_min,
        matched_drop=row.drop_min,
    )


def _coerce_grid(grid: Any) -> Any:
    """Grids occasionally arrive as serialized JSON or raw CSV text."""
    if not isinstance(grid, str):
        return grid
    text = grid.strip()
    if not text:
        return None
    if text[0] in "{[":
        return json.loads(text)

    from .grid_csv import grid_to_dict, parse_grid_csv
    return grid_to_dict(parse_grid_csv(text))


def _dimensions(width_cm: Any, drop_cm: Any) -> Optional[Tuple[float, float]]:
    width = parse_measurement(width_cm)
    drop = parse_measurement(drop_cm)
    if width is None or drop is None:
        return None
    return width, drop


def lookup_normalized(grid: NormalizedGrid, width_cm: float, drop_cm: float) -> PriceResolution:
    """Resolve against an already-normalized grid."""
    if grid.is_empty:
        return PriceResolution.failed(ResolutionFailure.EMPTY_GRID, grid.unit)

    width = cm_to_unit(width_cm, grid.unit)
    drop = cm_to_unit(drop_cm, grid.unit)

    if isinstance(grid, RangeGrid):
        return _lookup_ranges(grid, width, drop)
    return _lookup_standard(grid, width, drop)


def resolve_grid_price(grid: Any, width_cm: Any, drop_cm: Any) -> PriceResolution:
    """Resolve a price for a width/drop in centimetres, reporting failures."""
    if grid is None:
        return PriceResolution.failed(ResolutionFailure.MISSING_GRID)

    try:
        data = _coerce_grid(grid)
        if not data:
            return PriceResolution.failed(ResolutionFailure.MISSING_GRID)

        normalized = normalize_grid_data(data)
        if normalized is None:
            logger.warning("Pricing grid has no recognized layout")
            return PriceResolution.failed(ResolutionFailure.UNRECOGNIZED_SHAPE)

        dims = _dimensions(width_cm, drop_cm)
        if dims is None:
            return PriceResolution.failed(ResolutionFailure.INVALID_DIMENSIONS, normalized.unit)

        result = lookup_normalized(normalized, *dims)
        logger.debug(
            f"Grid lookup width={dims[0]}cm drop={dims[1]}cm unit={normalized.unit} "
            f"-> price={result.price} failure={result.failure}"
        )
        return result
    except Exception as e:
        logger.error(f"Error resolving price from grid: {e}", exc_info=True)
        return PriceResolution.failed(ResolutionFailure.PARSE_ERROR)


def resolve_price(grid: Any, width_cm: Any, drop_cm: Any) -> float:
    """Price for a width/drop in centimetres, 0.0 when the grid cannot resolve it."""
    return resolve_grid_price(grid, width_cm, drop_cm).price_or_zero()
