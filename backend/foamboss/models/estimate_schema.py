"""
Estimate data contracts — assembly inputs, pricing snapshot, and calculation results.

Inputs are validated here (negative or non-finite dimensions, unknown geometry kinds)
so the calculation engines can assume clean, non-negative numbers.
"""
import uuid
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Annotated, Any, Dict, List, Literal, Mapping, Optional, Union

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, PlainSerializer, TypeAdapter

from foamboss.config import DEFAULTS

GeometryKind = Literal["wall", "attic", "flat", "linear"]
Condition = Literal["tight", "typical", "wide"]

NonNegativeFloat = Annotated[float, Field(ge=0)]


def _freeze_material_costs(costs: Mapping[str, float]) -> Mapping[str, float]:
    """Upper-case the type keys (oc → OC) and return a read-only mapping."""
    return MappingProxyType({str(key).upper(): cost for key, cost in costs.items()})


# $/bdft by material type key
MaterialCosts = Annotated[
    Dict[str, NonNegativeFloat],
    AfterValidator(_freeze_material_costs),
    PlainSerializer(lambda costs: dict(costs), return_type=Dict[str, float]),
]


def _new_id() -> str:
    return str(uuid.uuid4())


# ── Assembly inputs ──────────────────────────────────────────────────────────

class _AssemblyBase(BaseModel):
    """Fields shared by every sprayed construction element."""
    model_config = ConfigDict(allow_inf_nan=False, frozen=True)

    id: str = Field(default_factory=_new_id)
    name: str = ""
    thickness_inches: float = Field(..., gt=0, description="Foam depth in inches")
    material_type: Optional[str] = Field(None, description="Foam key, e.g. OC or CC")
    material_cost_per_bdft: Optional[float] = Field(
        None, ge=0, description="Explicit $/bdft; wins over material_type"
    )
    condition: Condition = "typical"


class WallAssemblyInput(_AssemblyBase):
    kind: Literal["wall"] = "wall"
    linear_feet: float = Field(..., ge=0)
    height_feet: float = Field(..., ge=0)


class AtticAssemblyInput(_AssemblyBase):
    kind: Literal["attic"] = "attic"
    area_sqft: float = Field(..., ge=0)
    pitch: float = Field(..., ge=0, description="Rise over 12 (4 = 4/12) or a direct multiplier")
    pitch_is_rise_over_12: bool = True


class FlatAssemblyInput(_AssemblyBase):
    kind: Literal["flat"] = "flat"
    area_sqft: float = Field(..., ge=0)


class LinearAssemblyInput(_AssemblyBase):
    kind: Literal["linear"] = "linear"
    linear_feet: float = Field(..., ge=0)
    spray_width_inches: float = Field(..., ge=0, description="Width of the spray band")


AssemblyInput = Annotated[
    Union[WallAssemblyInput, AtticAssemblyInput, FlatAssemblyInput, LinearAssemblyInput],
    Field(discriminator="kind"),
]

_ASSEMBLY_ADAPTER = TypeAdapter(AssemblyInput)


def parse_assembly(data: Any) -> AssemblyInput:
    """Validate a raw mapping (form payload, stored JSON) into a typed assembly."""
    return _ASSEMBLY_ADAPTER.validate_python(data)


# ── Pricing snapshot ─────────────────────────────────────────────────────────

class PricingConfig(BaseModel):
    """
    Business-wide pricing settings consumed by every calculation.

    Percentages are whole numbers (18 means 18 %). Unset productivity rates
    fall back to the system typical rate.
    """
    model_config = ConfigDict(allow_inf_nan=False, frozen=True)

    labor_rate_per_hour: float = Field(DEFAULTS["labor_rate_per_hour"], ge=0)
    crew_size: int = Field(int(DEFAULTS["crew_size"]), ge=1)

    prod_typical: Optional[float] = Field(None, ge=0, description="bdft/hr")
    prod_wide_open: Optional[float] = Field(None, ge=0, description="bdft/hr")
    prod_tight: Optional[float] = Field(None, ge=0, description="bdft/hr")
    auto_productivity: bool = True

    material_costs: MaterialCosts = Field(default_factory=dict, validate_default=True)
    material_markup_percent: float = Field(0.0, ge=0)

    overhead_percent: float = Field(DEFAULTS["overhead_percent"], ge=0)
    profit_percent: float = Field(DEFAULTS["profit_percent"], ge=0)
    margin_percent: float = Field(DEFAULTS["margin_percent"], ge=0, lt=100)

    mobilization_fee: float = Field(DEFAULTS["mobilization_fee"], ge=0)
    fuel_surcharge_per_mile: float = Field(DEFAULTS["fuel_surcharge_per_mile"], ge=0)


# ── Results ──────────────────────────────────────────────────────────────────

class AssemblyResult(BaseModel):
    """Cost breakdown of one assembly. Derived; recomputed whenever inputs change."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    kind: GeometryKind
    board_feet: float
    productivity_rate: float       # bdft/hr used for labor
    labor_hours: float
    cost_per_bdft: float           # raw material $/bdft before markup
    material_cost: float           # with markup
    labor_cost: float
    total_before_margin: float     # material (marked up) + labor
    total_with_margin: float       # after overhead + profit


class AssemblyCostLine(BaseModel):
    """Minimal per-assembly figures needed for job aggregation."""
    board_feet: float = 0.0
    material_cost: float = 0.0     # already marked up
    labor_cost: float = 0.0


class JobTotalsConfig(BaseModel):
    overhead_percent: Optional[float] = None
    profit_percent: Optional[float] = None
    mobilization_fee: Optional[float] = None

    @classmethod
    def from_pricing(cls, pricing: PricingConfig) -> "JobTotalsConfig":
        return cls(
            overhead_percent=pricing.overhead_percent,
            profit_percent=pricing.profit_percent,
            mobilization_fee=pricing.mobilization_fee,
        )


class JobTotals(BaseModel):
    total_board_feet: float
    material_total: float
    labor_total: float
    overhead_total: float
    profit_total: float
    subtotal_with_margin: float
    mobilization_fee: float
    grand_total: float


class EstimateTotals(BaseModel):
    assemblies: List[AssemblyResult] = Field(default_factory=list)
    total_board_feet: float = 0.0
    material_total: float = 0.0
    labor_total: float = 0.0
    overhead_total: float = 0.0
    profit_total: float = 0.0
    subtotal_with_margin: float = 0.0
    mobilization_fee: float = 0.0
    fuel_surcharge: float = 0.0
    grand_total: float = 0.0


class MarginQuote(BaseModel):
    """Quick quote priced with a single gross margin on the whole job."""
    assemblies: List[AssemblyResult]
    subtotal: float
    fuel_surcharge: float
    mobilization_fee: float
    pre_margin_total: float
    margin_percent: float
    margin_amount: float
    grand_total: float


class PricingPreview(BaseModel):
    board_feet: float
    productivity: float
    labor_hours: float
    labor_cost: float
    marked_up_material: float
    estimated_sell: float
    overhead_percent: float
    profit_percent: float


# ── Saved estimate ───────────────────────────────────────────────────────────

class EstimateRecord(BaseModel):
    """
    Serialized estimate: metadata, assemblies, and the pricing snapshot that was
    active at the last recalculation. Reopening a record never consults live settings.
    """
    id: str = Field(default_factory=_new_id)
    business_id: Optional[str] = None
    job_name: Optional[str] = None
    customer_name: Optional[str] = None
    building_type: Optional[str] = None
    default_foam: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    miles: Optional[float] = Field(None, ge=0)
    assemblies: List[AssemblyInput] = Field(default_factory=list)
    pricing: PricingConfig = Field(default_factory=PricingConfig)
    totals: EstimateTotals = Field(default_factory=EstimateTotals)
