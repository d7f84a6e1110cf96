"""
Pricing grid shapes
Detection of the stored grid formats and normalization into canonical variants

Stored grids accumulated several layouts over time. Every layout with
nearest-value semantics is folded into StandardGrid; the legacy range layout
keeps its own RangeGrid variant because it resolves by containment.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from .units import (
    explicit_unit,
    infer_unit_from_values,
    leading_number,
    to_number,
)

logger = logging.getLogger(__name__)


class GridShape(str, Enum):
    """Known stored layouts of grid_data"""
    DROP_ROWS = "drop_rows"            # CSV upload: widthColumns + dropRows[{drop, prices}]
    KEYED_PRICES = "keyed_prices"      # widthColumns + dropRows[] + prices{"w_d": p}
    WIDTHS_HEIGHTS = "widths_heights"  # vendor import: widths + heights + prices[][]
    RANGE_LABELS = "range_labels"      # dropRanges + widthRanges + prices[][]
    LEGACY_RANGES = "legacy_ranges"    # rows[{drop_min, drop_max, key: p}] + columns[{width_min, width_max, key}]
    BEST_EFFORT = "best_effort"


@dataclass(frozen=True)
class DropRow:
    drop: float
    prices: Tuple[Optional[float], ...]


@dataclass(frozen=True)
class StandardGrid:
    """Canonical grid: ascending width columns, ascending drop rows, mandatory unit."""
    unit: str
    width_columns: Tuple[float, ...]
    drop_rows: Tuple[DropRow, ...]

    @property
    def is_empty(self) -> bool:
        return not self.width_columns or not self.drop_rows


@dataclass(frozen=True)
class RangeColumn:
    width_min: float
    width_max: float
    key: str


@dataclass(frozen=True)
class RangeRow:
    drop_min: float
    drop_max: float
    cells: Dict[str, Any]


@dataclass(frozen=True)
class RangeGrid:
    """Legacy range-containment grid; prices are read from row cells by column key."""
    unit: str
    rows: Tuple[RangeRow, ...]
    columns: Tuple[RangeColumn, ...]

    @property
    def is_empty(self) -> bool:
        return not self.rows or not self.columns


NormalizedGrid = Union[StandardGrid, RangeGrid]


def _is_list(value: Any) -> bool:
    return isinstance(value, list)


def detect_shape(data: Any) -> Optional[GridShape]:
    """Identify the stored layout, or None when no known array field is present."""
    if not isinstance(data, dict):
        return None

    width_columns = data.get("widthColumns")
    drop_rows = data.get("dropRows")
    prices = data.get("prices")

    if _is_list(width_columns) and _is_list(drop_rows):
        if drop_rows and isinstance(drop_rows[0], dict):
            return GridShape.DROP_ROWS
        if isinstance(prices, dict):
            return GridShape.KEYED_PRICES
        if not drop_rows:
            return GridShape.DROP_ROWS
    if _is_list(data.get("widths")) and _is_list(data.get("heights")) and _is_list(prices):
        return GridShape.WIDTHS_HEIGHTS
    if _is_list(data.get("dropRanges")) and _is_list(data.get("widthRanges")) and _is_list(prices):
        return GridShape.RANGE_LABELS
    if _is_list(data.get("rows")) and _is_list(data.get("columns")):
        return GridShape.LEGACY_RANGES

    if any(_is_list(data.get(k)) for k in ("widthColumns", "widthRanges", "widths")) and any(
        _is_list(data.get(k)) for k in ("dropRows", "dropRanges", "heights")
    ):
        return GridShape.BEST_EFFORT
    return None


def _dimension_values(data: Dict[str, Any]) -> List[float]:
    values: List[float] = []
    for key in ("widthColumns", "widthRanges", "widths", "dropRanges", "heights"):
        raw = data.get(key)
        if _is_list(raw):
            values.extend(to_number(v) for v in raw if not isinstance(v, dict))
    drop_rows = data.get("dropRows")
    if _is_list(drop_rows):
        for row in drop_rows:
            values.append(to_number(row.get("drop")) if isinstance(row, dict) else to_number(row))
    return values


def resolve_unit(data: Dict[str, Any], values: Optional[Sequence[float]] = None) -> str:
    """
    Explicit unit wins; otherwise infer from the largest stored dimension.

    Inference is a migration step for grids that predate the mandatory unit,
    so it is logged every time it happens.
    """
    unit = explicit_unit(data)
    if unit:
        return unit
    inferred = infer_unit_from_values(values if values is not None else _dimension_values(data))
    logger.info(f"Grid unit not stated, inferred '{inferred}' from stored dimensions")
    return inferred


def _price_or_none(value: Any) -> Optional[float]:
    if value is None:
        return None
    return to_number(value)


def _build_standard(
    unit: str,
    widths: Sequence[Any],
    rows: Sequence[Tuple[Any, Sequence[Any]]],
) -> StandardGrid:
    """
    Sort widths and drops ascending, permuting every row's prices together
    with their width column so each (width, price) pair stays aligned.
    """
    order = sorted(range(len(widths)), key=lambda i: to_number(widths[i]))
    width_columns = tuple(to_number(widths[i]) for i in order)

    drop_rows = []
    for drop, prices in rows:
        prices = list(prices) if _is_list(prices) or isinstance(prices, tuple) else []
        aligned = tuple(_price_or_none(prices[i]) if i < len(prices) else None for i in order)
        drop_rows.append(DropRow(drop=to_number(drop), prices=aligned))
    drop_rows.sort(key=lambda row: row.drop)

    return StandardGrid(unit=unit, width_columns=width_columns, drop_rows=tuple(drop_rows))


def _normalize_drop_rows(data: Dict[str, Any]) -> StandardGrid:
    rows = [
        (row.get("drop"), row.get("prices") or [])
        for row in data["dropRows"]
        if isinstance(row, dict)
    ]
    return _build_standard(resolve_unit(data), data["widthColumns"], rows)


def _normalize_keyed_prices(data: Dict[str, Any]) -> StandardGrid:
    unit = resolve_unit(data)
    prices: Dict[str, Any] = data["prices"]
    widths = [to_number(w) for w in data["widthColumns"]]

    def _lookup(width: float, drop: float) -> Any:
        w, d = _label(width), _label(drop)
        for key in (f"{w}_{d}", f"{w}-{d}", f"{d}_{w}"):
            if key in prices:
                return prices[key]
        return 0

    rows = []
    for raw_drop in data["dropRows"]:
        drop = to_number(raw_drop)
        rows.append((drop, [_lookup(width, drop) for width in widths]))
    return _build_standard(unit, widths, rows)


def _label(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def _normalize_matrix(data: Dict[str, Any], width_key: str, drop_key: str) -> StandardGrid:
    matrix = data["prices"]
    widths = data[width_key]
    drops = data[drop_key]
    rows = [
        (drop, matrix[idx] if idx < len(matrix) and _is_list(matrix[idx]) else [])
        for idx, drop in enumerate(drops)
    ]
    return _build_standard(resolve_unit(data), widths, rows)


def _normalize_range_labels(data: Dict[str, Any]) -> StandardGrid:
    # Range labels ("100-150") resolve on their leading number
    widths = [leading_number(w) or 0.0 for w in data["widthRanges"]]
    drops = [leading_number(d) or 0.0 for d in data["dropRanges"]]
    matrix = data["prices"]
    rows = [
        (drop, matrix[idx] if idx < len(matrix) and _is_list(matrix[idx]) else [])
        for idx, drop in enumerate(drops)
    ]
    unit = resolve_unit(data, widths + drops)
    return _build_standard(unit, widths, rows)


def _normalize_legacy_ranges(data: Dict[str, Any]) -> RangeGrid:
    columns = tuple(
        RangeColumn(
            width_min=to_number(col.get("width_min")),
            width_max=to_number(col.get("width_max")),
            key=str(col.get("key")),
        )
        for col in data["columns"]
        if isinstance(col, dict) and col.get("key") is not None
    )
    rows = tuple(
        RangeRow(
            drop_min=to_number(row.get("drop_min")),
            drop_max=to_number(row.get("drop_max")),
            cells=dict(row),
        )
        for row in data["rows"]
        if isinstance(row, dict)
    )
    bounds = [c.width_max for c in columns] + [r.drop_max for r in rows]
    unit = resolve_unit(data, bounds)
    return RangeGrid(unit=unit, rows=rows, columns=columns)


def _normalize_best_effort(data: Dict[str, Any]) -> Optional[StandardGrid]:
    logger.warning("Unknown grid format, attempting best-effort normalization")
    widths = data.get("widthColumns") or data.get("widthRanges") or data.get("widths") or []
    drops = data.get("dropRows") or data.get("dropRanges") or data.get("heights") or []
    prices = data.get("prices") or []

    if not widths or not drops:
        return None
    if isinstance(drops[0], dict):
        rows = [(row.get("drop"), row.get("prices") or []) for row in drops if isinstance(row, dict)]
    elif _is_list(prices) and prices and _is_list(prices[0]):
        rows = [(drop, prices[idx] if idx < len(prices) else []) for idx, drop in enumerate(drops)]
    else:
        logger.warning("Could not determine prices structure of grid")
        return None
    return _build_standard(resolve_unit(data), widths, rows)


def normalize_grid_data(data: Any) -> Optional[NormalizedGrid]:
    """
    Normalize any stored grid layout into its canonical variant.

    Returns None when the input is not a mapping or carries no recognized
    layout. Errors raised by malformed contents propagate to the caller.
    """
    shape = detect_shape(data)
    if shape is None:
        return None

    if shape is GridShape.DROP_ROWS:
        return _normalize_drop_rows(data)
    if shape is GridShape.KEYED_PRICES:
        return _normalize_keyed_prices(data)
    if shape is GridShape.WIDTHS_HEIGHTS:
        return _normalize_matrix(data, "widths", "heights")
    if shape is GridShape.RANGE_LABELS:
        return _normalize_range_labels(data)
    if shape is GridShape.LEGACY_RANGES:
        return _normalize_legacy_ranges(data)
    return _normalize_best_effort(data)
