"""
CSV pricing grid importer
Parses vendor CSV exports into the canonical grid and validates it

Accepted layout:
    Drop/Width,60,90,120
    100,45.00,52.50,61.00
    150,50.00,58.00,67.50

Import is the one place in the pricing core that raises: a broken upload
must be reported to the user, naming the offending line.
"""

import csv
import io
import logging
import math
from typing import Any, Dict, List, Optional

from .grid_shapes import DropRow, StandardGrid, resolve_unit
from .units import GRID_UNITS, convert_between, leading_number

logger = logging.getLogger(__name__)

GRID_FORMAT_VERSION = 1


class GridImportError(ValueError):
    """Raised when an uploaded grid CSV cannot be imported"""

    def __init__(self, message: str, line: Optional[int] = None):
        super().__init__(message)
        self.line = line


def _read_rows(csv_text: str) -> List[List[str]]:
    reader = csv.reader(io.StringIO(csv_text.lstrip("\ufeff")))
    try:
        return [[cell.strip() for cell in row] for row in reader]
    except csv.Error as e:
        raise GridImportError(f"Row {reader.line_num}: {e}", line=reader.line_num)


def _parse_price(cell: str, line_no: int, column: int) -> float:
    try:
        price = float(cell.replace(",", ""))
    except ValueError:
        price = None
    # float() accepts nan and inf
    if price is None or not math.isfinite(price):
        raise GridImportError(
            f"Row {line_no}: price '{cell}' in column {column} is not a number",
            line=line_no,
        )
    return price


def parse_grid_csv(csv_text: str, unit: Optional[str] = None) -> StandardGrid:
    """
    Parse a Drop/Width CSV into a StandardGrid.

    Args:
        csv_text: raw CSV content
        unit: 'cm' or 'mm'; inferred from the largest dimension when omitted

    Raises:
        GridImportError: empty file, bad header, non-numeric cell, row length
            mismatch or an invalid resulting grid
    """
    if unit is not None and unit not in GRID_UNITS:
        raise GridImportError(f"Unsupported unit '{unit}', expected one of {', '.join(GRID_UNITS)}")

    rows = _read_rows(csv_text or "")
    numbered = [(idx + 1, row) for idx, row in enumerate(rows) if any(row)]
    if len(numbered) < 2:
        raise GridImportError("CSV must have a header row and at least one data row")

    header_line, header = numbered[0]
    widths: List[float] = []
    for column, label in enumerate(header[1:], start=2):
        width = leading_number(label)
        if width is None:
            raise GridImportError(
                f"Row {header_line}: width header '{label}' in column {column} is not a number",
                line=header_line,
            )
        widths.append(width)
    if not widths:
        raise GridImportError(f"Row {header_line}: header has no width columns", line=header_line)

    drop_rows: List[DropRow] = []
    for line_no, row in numbered[1:]:
        if len(row) != len(header):
            raise GridImportError(
                f"Row {line_no}: expected {len(header)} cells but found {len(row)}",
                line=line_no,
            )
        drop = leading_number(row[0])
        if drop is None:
            raise GridImportError(f"Row {line_no}: drop '{row[0]}' is not a number", line=line_no)
        prices = tuple(_parse_price(cell, line_no, column) for column, cell in enumerate(row[1:], start=2))
        drop_rows.append(DropRow(drop=drop, prices=prices))

    if unit is None:
        unit = resolve_unit({}, widths + [row.drop for row in drop_rows])

    # Columns and rows are stored ascending; keep prices aligned with their width
    order = sorted(range(len(widths)), key=lambda i: widths[i])
    grid = StandardGrid(
        unit=unit,
        width_columns=tuple(widths[i] for i in order),
        drop_rows=tuple(
            sorted(
                (DropRow(drop=r.drop, prices=tuple(r.prices[i] for i in order)) for r in drop_rows),
                key=lambda r: r.drop,
            )
        ),
    )

    errors = validate_standard_grid(grid)
    if errors:
        raise GridImportError("Invalid pricing grid: " + "; ".join(errors))

    logger.info(
        f"Imported pricing grid: {len(grid.width_columns)} widths x "
        f"{len(grid.drop_rows)} drops, unit={grid.unit}"
    )
    return grid


def validate_standard_grid(grid: StandardGrid) -> List[str]:
    """Consistency checks for a canonical grid. Returns a list of error messages."""
    errors: List[str] = []

    if not grid.width_columns:
        errors.append("No width columns defined")
    if not grid.drop_rows:
        errors.append("No drop rows defined")

    for idx, row in enumerate(grid.drop_rows):
        if len(row.prices) != len(grid.width_columns):
            errors.append(
                f"Row {idx} (drop {row.drop:g}) has {len(row.prices)} prices "
                f"but expected {len(grid.width_columns)}"
            )
        if any(p is not None and not math.isfinite(p) for p in row.prices):
            errors.append(f"Row {idx} (drop {row.drop:g}) has non-numeric prices")
        elif any(p is not None and p < 0 for p in row.prices):
            errors.append(f"Row {idx} (drop {row.drop:g}) has negative prices")

    drops = [row.drop for row in grid.drop_rows]
    if len(set(drops)) != len(drops):
        errors.append("Duplicate drop values found")
    if len(set(grid.width_columns)) != len(grid.width_columns):
        errors.append("Duplicate width values found")

    if any(w <= 0 for w in grid.width_columns):
        errors.append("Width values must be positive")
    if any(d <= 0 for d in drops):
        errors.append("Drop values must be positive")
    if not all(math.isfinite(v) for v in (*grid.width_columns, *drops)):
        errors.append("Width and drop values must be finite")

    return errors


def convert_grid_unit(grid: StandardGrid, unit: str) -> StandardGrid:
    """Rescale grid dimensions into another unit. Prices are unchanged."""
    if grid.unit == unit:
        return grid
    return StandardGrid(
        unit=unit,
        width_columns=tuple(convert_between(w, grid.unit, unit) for w in grid.width_columns),
        drop_rows=tuple(
            DropRow(drop=convert_between(row.drop, grid.unit, unit), prices=row.prices)
            for row in grid.drop_rows
        ),
    )


def grid_to_dict(grid: StandardGrid) -> Dict[str, Any]:
    """Canonical storage representation of a grid."""
    return {
        "unit": grid.unit,
        "widthColumns": list(grid.width_columns),
        "dropRows": [{"drop": row.drop, "prices": list(row.prices)} for row in grid.drop_rows],
        "version": GRID_FORMAT_VERSION,
    }
