from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class Material(BaseModel):
    """
    Inventory record for one purchasable material (usually a foam set).

    yield_per_unit is board-feet per unit (e.g. 16 000 bdft per open-cell set).
    cost_per_bdft is derived from unit_price / yield_per_unit when not stored.
    """
    model_config = ConfigDict(allow_inf_nan=False)

    id: Optional[str] = None
    business_id: Optional[str] = None
    material_name: str = Field(..., min_length=1)
    material_type: str = Field(..., description="Type key, e.g. OC, CC, HFO")
    unit_price: float = Field(..., ge=0)
    yield_per_unit: float = Field(..., ge=0)
    unit_type: str = "set"
    quantity_on_hand: float = Field(0.0, ge=0)
    reorder_level: Optional[float] = Field(None, ge=0)
    cost_per_bdft: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None


class MaterialUsage(BaseModel):
    material_name: str
    board_feet: float
    sets_required: int
    quantity_on_hand: float
    remaining: float
    shortfall: float
