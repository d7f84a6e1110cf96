"""
Interio Estimator Engine Module
Pricing grid resolution, CSV grid import and curtain worksheet enrichment
"""

from .enrichment import derive_curtain_worksheet, enrich_summary, is_non_curtain_treatment
from .grid_csv import GridImportError, grid_to_dict, parse_grid_csv, validate_standard_grid
from .grid_resolver import PriceResolution, ResolutionFailure, resolve_grid_price, resolve_price
from .grid_shapes import StandardGrid, RangeGrid, normalize_grid_data
from .treatment_pricing import TreatmentPrice, calculate_treatment_price

__all__ = [
    "derive_curtain_worksheet",
    "enrich_summary",
    "is_non_curtain_treatment",
    "GridImportError",
    "grid_to_dict",
    "parse_grid_csv",
    "validate_standard_grid",
    "PriceResolution",
    "ResolutionFailure",
    "resolve_grid_price",
    "resolve_price",
    "StandardGrid",
    "RangeGrid",
    "normalize_grid_data",
    "TreatmentPrice",
    "calculate_treatment_price",
]
