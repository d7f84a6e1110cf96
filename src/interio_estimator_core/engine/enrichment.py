"""
Measurement Enrichment Engine
Derives curtain worksheet quantities before a window summary is persisted

Guards, first match wins:
1. A summary that already carries cost_summary is authoritative: pass through.
2. Hard blinds, shutters and wallpaper: cost fields re-asserted verbatim,
   curtain derivation never applies.
Otherwise curtain quantities are derived, but only when rail width, drop,
fullness ratio and fabric width are all known. Nothing is ever defaulted
for those four; a partial worksheet is returned untouched.
"""

import json
import logging
import math
import os
from typing import Any, Dict, Mapping

from .units import first_present, parse_measurement

logger = logging.getLogger(__name__)

PRESERVED_COST_FIELDS = (
    "total_cost",
    "options_cost",
    "selected_options",
    "fabric_cost",
    "lining_cost",
    "manufacturing_cost",
    "hardware_cost",
)

# Roman blinds share curtain fabrics and linings, so they are not listed here
HARD_BLIND_CATEGORIES = {
    "roller_blind",
    "roller_blinds",
    "venetian_blinds",
    "vertical_blinds",
    "cellular_blinds",
    "cellular_shades",
}
HARD_BLIND_TYPE_MARKERS = ("roller", "venetian", "vertical", "cellular")

CURTAIN_SINGLE = "single"
CURTAIN_PAIR = "pair"


def _is_development() -> bool:
    return os.getenv("APP_ENV", "development").lower() == "development"


def is_non_curtain_treatment(summary: Mapping[str, Any]) -> bool:
    """True for hard blinds, shutters and wallpaper."""
    category = str(summary.get("treatment_category") or "").lower()
    treatment_type = str(summary.get("treatment_type") or "").lower()

    is_blind = category in HARD_BLIND_CATEGORIES or any(
        marker in treatment_type for marker in HARD_BLIND_TYPE_MARKERS
    )
    is_shutter = category == "shutters" or "shutter" in treatment_type
    is_wallpaper = category == "wallpaper" or treatment_type == "wallpaper"
    return is_blind or is_shutter or is_wallpaper


def _with_default_details(summary: Mapping[str, Any]) -> Dict[str, Any]:
    result = dict(summary)
    result["fabric_details"] = summary.get("fabric_details") or {}
    result["measurements_details"] = summary.get("measurements_details") or {}
    return result


def _measurements(summary: Mapping[str, Any]) -> Dict[str, Any]:
    raw = summary.get("measurements_details")
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            return {}
    return dict(raw) if isinstance(raw, Mapping) else {}


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def derive_curtain_worksheet(
    *,
    rail_width: float,
    drop: float,
    fullness: float,
    fabric_width: float,
    pooling: float = 0.0,
    side_hems: float = 0.0,
    seam_hems: float = 0.0,
    header_allowance: float = 0.0,
    bottom_hem: float = 0.0,
    return_left: float = 0.0,
    return_right: float = 0.0,
    curtain_count: int = 1,
) -> Dict[str, float]:
    """Worksheet quantities for one curtain treatment. All inputs and outputs in cm."""
    required_width = rail_width * fullness
    total_side_hems = side_hems * 2 * curtain_count
    total_width_with_allowances = required_width + return_left + return_right + total_side_hems

    widths_required = max(1, math.ceil(total_width_with_allowances / fabric_width))
    seams_required = max(0, widths_required - 1)
    seam_allow_total = (widths_required - 1) * seam_hems * 2 if widths_required > 1 else 0.0

    total_drop_per_width = drop + header_allowance + bottom_hem + pooling

    fabric_capacity_width_total = widths_required * fabric_width
    leftover_width_total = max(0.0, fabric_capacity_width_total - total_width_with_allowances)
    leftover_per_panel = leftover_width_total / widths_required if widths_required > 0 else 0.0

    return {
        "required_width_cm": required_width,
        "total_width_with_allowances_cm": total_width_with_allowances,
        "widths_required": widths_required,
        "seams_required": seams_required,
        "seam_allow_total_cm": seam_allow_total,
        "total_drop_per_width_cm": total_drop_per_width,
        "fabric_capacity_width_total_cm": fabric_capacity_width_total,
        "leftover_width_total_cm": leftover_width_total,
        "leftover_per_panel_cm": leftover_per_panel,
    }


def _enrich_curtain(summary: Mapping[str, Any]) -> Dict[str, Any]:
    template = _mapping(summary.get("template_details"))
    fabric_details = _mapping(summary.get("fabric_details"))
    md = _measurements(summary)

    rail_width = first_present(md.get("rail_width_cm"), md.get("rail_width"), summary.get("rail_width"))
    drop = first_present(md.get("drop_cm"), md.get("drop"), summary.get("drop"))
    fullness = first_present(
        md.get("fullness_ratio"), md.get("fullness"),
        summary.get("fullness_ratio"), template.get("fullness_ratio"),
    )
    fabric_width = first_present(
        md.get("fabric_width_cm"), md.get("fabric_width"),
        fabric_details.get("width_cm"), fabric_details.get("width"),
    )

    missing = [
        name for name, value in (
            ("rail_width", rail_width),
            ("drop", drop),
            ("fullness_ratio", fullness),
            ("fabric_width", fabric_width),
        )
        if value is None
    ]
    if not missing and fabric_width <= 0:
        missing.append("fabric_width")
    if missing:
        if _is_development():
            logger.warning(
                f"Skipping curtain worksheet derivation for window "
                f"{summary.get('window_id')}: missing {', '.join(missing)}"
            )
        return dict(summary)

    pooling = first_present(
        md.get("pooling_amount_cm"), md.get("pooling_cm"),
        md.get("pooling_amount"), md.get("pooling"),
    ) or 0.0
    side_hems = first_present(md.get("side_hems_cm"), md.get("side_hems"), template.get("side_hems")) or 0.0
    seam_hems = first_present(md.get("seam_hems_cm"), md.get("seam_hems"), template.get("seam_hems")) or 0.0
    header_allowance = first_present(
        md.get("header_allowance_cm"), md.get("header_hem_cm"),
        md.get("header_allowance"), md.get("header_hem"),
        template.get("header_allowance"),
    ) or 0.0
    bottom_hem = first_present(md.get("bottom_hem_cm"), md.get("bottom_hem"), template.get("bottom_hem")) or 0.0
    return_left = first_present(md.get("return_left_cm"), md.get("return_left"), template.get("return_left")) or 0.0
    return_right = first_present(md.get("return_right_cm"), md.get("return_right"), template.get("return_right")) or 0.0

    curtain_type = md.get("curtain_type") or summary.get("curtain_type") or template.get("curtain_type") or CURTAIN_SINGLE
    explicit_count = parse_measurement(md.get("curtain_count"))
    if explicit_count is not None:
        curtain_count = max(1, int(explicit_count))
    else:
        curtain_count = 2 if curtain_type == CURTAIN_PAIR else 1

    derived = derive_curtain_worksheet(
        rail_width=rail_width,
        drop=drop,
        fullness=fullness,
        fabric_width=fabric_width,
        pooling=pooling,
        side_hems=side_hems,
        seam_hems=seam_hems,
        header_allowance=header_allowance,
        bottom_hem=bottom_hem,
        return_left=return_left,
        return_right=return_right,
        curtain_count=curtain_count,
    )

    # Caller-supplied widths_required wins over the derived count
    existing_widths = md.get("widths_required")
    if existing_widths is None:
        existing_widths = summary.get("widths_required")
    if existing_widths is not None:
        derived["widths_required"] = existing_widths

    md.update({
        "rail_width_cm": rail_width,
        "drop_cm": drop,
        "pooling_amount_cm": pooling,
        "fabric_width_cm": fabric_width,
        "side_hems_cm": side_hems,
        "seam_hems_cm": seam_hems,
        "header_allowance_cm": header_allowance,
        "bottom_hem_cm": bottom_hem,
        "return_left_cm": return_left,
        "return_right_cm": return_right,
        "fullness_ratio": fullness,
        "curtain_type": curtain_type,
        "curtain_count": curtain_count,
    })
    md.update(derived)

    normalized_fabric = dict(fabric_details)
    normalized_fabric["width_cm"] = fabric_width
    if normalized_fabric.get("width") is None:
        normalized_fabric["width"] = fabric_width

    enriched = dict(summary)
    enriched["fabric_details"] = normalized_fabric
    enriched["measurements_details"] = md
    return enriched


def enrich_summary(summary: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Merge derived worksheet fields into a window summary before persistence.

    Never raises: unexpected input is returned as a plain copy.
    """
    if not isinstance(summary, Mapping):
        logger.warning(f"enrich_summary expected a mapping, got {type(summary).__name__}")
        return summary

    if summary.get("cost_summary"):
        return _with_default_details(summary)

    if is_non_curtain_treatment(summary):
        result = _with_default_details(summary)
        for field in PRESERVED_COST_FIELDS:
            if field in summary:
                result[field] = summary[field]
        return result

    try:
        return _enrich_curtain(summary)
    except Exception as e:
        logger.error(f"Curtain enrichment failed for window {summary.get('window_id')}: {e}", exc_info=True)
        return dict(summary)
