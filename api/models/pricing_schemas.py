"""
Pricing API Pydantic schemas
"""

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


# === Request schemas ===

class PriceQuery(BaseModel):
    """Width/drop query against a stored grid"""
    width_cm: float = Field(..., ge=0, description="Requested width in centimetres")
    drop_cm: float = Field(..., ge=0, description="Requested drop in centimetres")


class InlineGridQuery(PriceQuery):
    """Width/drop query against a grid supplied in the request"""
    grid_data: Any = Field(..., description="Grid in any stored layout, or raw CSV text")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "grid_data": {
                    "widthColumns": ["60", "90", "120"],
                    "dropRows": [
                        {"drop": "100", "prices": [45, 52.5, 61]},
                        {"drop": "150", "prices": [50, 58, 67.5]},
                    ],
                },
                "width_cm": 95,
                "drop_cm": 140,
            }
        }
    )


class TreatmentPriceRequest(BaseModel):
    """Treatment price by fabrication method"""
    method: Literal["per-drop", "per-meter", "per-yard", "pricing-grid"]
    unit_price: float = Field(0.0, ge=0)
    margin_percentage: float = Field(0.0)
    width_cm: Optional[float] = Field(None, ge=0)
    drop_cm: Optional[float] = Field(None, ge=0)
    grid_id: Optional[str] = Field(None, description="Stored grid to use for pricing-grid")
    grid_data: Optional[Any] = Field(None, description="Inline grid for pricing-grid")


class WindowSummaryIn(BaseModel):
    """Per-window treatment cost record (partial); unknown fields are kept"""
    model_config = ConfigDict(extra="allow")

    window_id: Optional[str] = None
    treatment_category: Optional[str] = None
    treatment_type: Optional[str] = None
    template_id: Optional[str] = None
    # Worksheet and cost fields pass through as sent; the engine parses them
    fabric_details: Optional[Any] = None
    lining_details: Optional[Any] = None
    heading_details: Optional[Any] = None
    template_details: Optional[Any] = None
    measurements_details: Optional[Any] = None
    fabric_cost: Optional[Any] = None
    lining_cost: Optional[Any] = None
    manufacturing_cost: Optional[Any] = None
    options_cost: Optional[Any] = None
    hardware_cost: Optional[Any] = None
    heading_cost: Optional[Any] = None
    total_cost: Optional[Any] = None
    total_selling: Optional[Any] = None
    selected_options: Optional[Any] = None
    widths_required: Optional[Any] = None
    rail_width: Optional[Any] = None
    drop: Optional[Any] = None

    def as_summary(self) -> Dict[str, Any]:
        """Fields the caller actually sent, including extras"""
        return self.model_dump(exclude_unset=True)


# === Response schemas ===

class PriceResult(BaseModel):
    price: float
    resolved: bool
    failure: Optional[str] = None
    unit: Optional[str] = None
    matched_width: Optional[float] = None
    matched_drop: Optional[float] = None


class GridOut(BaseModel):
    id: str
    name: str
    grid_code: Optional[str] = None
    unit: str
    active: bool
    grid_data: Dict[str, Any]
    created_at: Optional[str] = None


class TreatmentPriceOut(BaseModel):
    method: str
    base_price: float
    margin_percentage: float
    margin_amount: float
    final_price: float
