"""
Unit helpers for pricing grids and worksheet measurements
Numeric coercion, grid unit inference and cm <-> mm conversion
"""

import logging
import math
import re
from typing import Any, Iterable, Optional

logger = logging.getLogger(__name__)

UNIT_CM = "cm"
UNIT_MM = "mm"
GRID_UNITS = (UNIT_CM, UNIT_MM)

# Largest stored dimension at or above this is read as millimetres
MM_INFERENCE_THRESHOLD = 500.0

_LEADING_NUMBER = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")
_NON_NUMERIC = re.compile(r"[^0-9.\-]")


def to_number(value: Any) -> float:
    """
    Lenient coercion used for stored grid values.

    Strings have every non-numeric character stripped ("1,250" -> 1250,
    "$45.50" -> 45.5). Anything that still does not parse becomes 0.0.
    """
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else 0.0
    if isinstance(value, str):
        cleaned = _NON_NUMERIC.sub("", value)
        match = _LEADING_NUMBER.match(cleaned)
        if not match:
            return 0.0
        number = float(match.group(0))
        return number if math.isfinite(number) else 0.0
    return 0.0


def parse_measurement(value: Any) -> Optional[float]:
    """Strict coercion for worksheet inputs: None when the value is absent or unparseable."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    if isinstance(value, str):
        match = _LEADING_NUMBER.match(value.strip())
        if not match:
            return None
        number = float(match.group(0))
        return number if math.isfinite(number) else None
    return None


def leading_number(label: Any) -> Optional[float]:
    """Leading number of a grid label ("100-150" -> 100.0)."""
    if isinstance(label, (int, float)) and not isinstance(label, bool):
        return float(label) if math.isfinite(label) else None
    if not isinstance(label, str):
        return None
    match = _LEADING_NUMBER.match(label.strip())
    return float(match.group(0)) if match else None


def first_present(*candidates: Any) -> Optional[float]:
    """First candidate that parses as a measurement, in priority order."""
    for candidate in candidates:
        number = parse_measurement(candidate)
        if number is not None:
            return number
    return None


def explicit_unit(grid_data: Any) -> Optional[str]:
    unit = grid_data.get("unit") if isinstance(grid_data, dict) else None
    return unit if unit in GRID_UNITS else None


def infer_unit_from_values(values: Iterable[float]) -> str:
    largest = max((v for v in values), default=0.0)
    return UNIT_MM if largest >= MM_INFERENCE_THRESHOLD else UNIT_CM


def cm_to_unit(value_cm: float, unit: str) -> float:
    """Convert a centimetre query value into the grid's unit."""
    if unit == UNIT_MM:
        return value_cm * 10.0
    return value_cm


def convert_between(value: float, from_unit: str, to_unit: str) -> float:
    if from_unit == to_unit:
        return value
    if from_unit == UNIT_CM and to_unit == UNIT_MM:
        return value * 10.0
    if from_unit == UNIT_MM and to_unit == UNIT_CM:
        return value / 10.0
    raise ValueError(f"Unsupported unit conversion: {from_unit} -> {to_unit}")
