"""
CostingEngine — per-assembly cost composition for spray-foam estimates.

Covers:
  - Labor hours from board-feet and crew productivity (guarded division)
  - Labor cost by crew size and hourly rate
  - Material cost with per-type $/bdft resolution and markup
  - Two named margin models:
      * overhead-then-profit (cost-plus): canonical for estimates
      * gross margin on sell price: quick quotes
  - Single-assembly calculation and the pricing-settings preview

All functions are pure; the pricing snapshot is passed into every call.
Money is rounded to cents only when a result object is built.
"""

import logging
from typing import Optional, Tuple

from foamboss.config import DEFAULTS, HOURS_DECIMALS, MATERIAL_COSTS, MONEY_DECIMALS
from foamboss.models.estimate_schema import (
    AssemblyResult,
    Condition,
    PricingConfig,
    PricingPreview,
)
from foamboss.services.geometry_engine import board_feet_for_assembly
from foamboss.services.productivity_engine import production_rate_for

logger = logging.getLogger("foamboss-estimator")


# ---------------------------------------------------------------------------
# 1. Labor
# ---------------------------------------------------------------------------

def labor_hours(board_feet: float, productivity_rate: float) -> float:
    """Hours to spray board_feet at productivity_rate bdft/hr; a zero rate yields 0 hours."""
    if productivity_rate <= 0:
        return 0.0
    return board_feet / productivity_rate


def labor_cost(hours: float, labor_rate_per_hour: float, crew_size: int) -> float:
    """Crew labor: every tech on the rig is paid for the full spray time."""
    return hours * labor_rate_per_hour * crew_size


# ---------------------------------------------------------------------------
# 2. Material
# ---------------------------------------------------------------------------

def material_cost(board_feet: float, cost_per_bdft: float) -> float:
    return board_feet * cost_per_bdft


def apply_markup(raw_cost: float, markup_percent: float) -> float:
    """Handling / procurement markup on raw material cost."""
    return raw_cost * (1.0 + markup_percent / 100.0)


def resolve_material_cost_per_bdft(
    material_type: Optional[str],
    override_per_bdft: Optional[float],
    config: PricingConfig,
) -> float:
    """
    Resolution order:
        1. explicit $/bdft on the assembly
        2. config.material_costs[material_type]
        3. MATERIAL_COSTS[material_type]
        4. DEFAULTS['material_cost_per_bdft'] (open-cell price)
    """
    if override_per_bdft is not None:
        return float(override_per_bdft)
    if material_type:
        key = material_type.upper()
        if key in config.material_costs:
            return float(config.material_costs[key])
        if key in MATERIAL_COSTS:
            return MATERIAL_COSTS[key]
        logger.warning(
            f"No material cost for type '{material_type}'; using default "
            f"{DEFAULTS['material_cost_per_bdft']} $/bdft"
        )
    return DEFAULTS["material_cost_per_bdft"]


# ---------------------------------------------------------------------------
# 3. Margin models
# ---------------------------------------------------------------------------

def split_overhead_and_profit(
    base_cost: float, overhead_percent: float, profit_percent: float
) -> Tuple[float, float]:
    """Overhead on the base, then profit on (base + overhead). Returns (overhead, profit)."""
    overhead = base_cost * overhead_percent / 100.0
    profit = (base_cost + overhead) * profit_percent / 100.0
    return overhead, profit


def apply_overhead_and_profit(base_cost: float, overhead_percent: float, profit_percent: float) -> float:
    """
    Cost-plus sell price:
        with_overhead = base × (1 + overhead%)
        sell          = with_overhead × (1 + profit%)
    """
    overhead, profit = split_overhead_and_profit(base_cost, overhead_percent, profit_percent)
    return base_cost + overhead + profit


def apply_gross_margin(base_cost: float, margin_percent: float) -> float:
    """
    Gross-margin sell price: margin is a share of the final price.
        sell = base / (1 - margin%)

    Raises ValueError for margins of 100 % or more (no finite price exists).
    """
    if margin_percent >= 100.0 or margin_percent < 0.0:
        raise ValueError(f"margin_percent must be in [0, 100), got {margin_percent}")
    return base_cost / (1.0 - margin_percent / 100.0)


# ---------------------------------------------------------------------------
# 4. Assembly calculation
# ---------------------------------------------------------------------------

def calculate_assembly(assembly, config: PricingConfig) -> AssemblyResult:
    """
    Full cost breakdown for one assembly.

    Material markup and overhead/profit (cost-plus) are applied at the assembly
    level so the result can be shown on its own line.
    """
    board_feet = board_feet_for_assembly(assembly)
    rate = production_rate_for(assembly.condition, config)

    hours = labor_hours(board_feet, rate)
    labor = labor_cost(hours, config.labor_rate_per_hour, config.crew_size)

    cost_per_bdft = resolve_material_cost_per_bdft(
        assembly.material_type, assembly.material_cost_per_bdft, config
    )
    raw_material = material_cost(board_feet, cost_per_bdft)
    material_with_markup = apply_markup(raw_material, config.material_markup_percent)

    before_margin = material_with_markup + labor
    with_margin = apply_overhead_and_profit(
        before_margin, config.overhead_percent, config.profit_percent
    )

    logger.debug(
        f"Assembly '{assembly.name or assembly.id}' ({assembly.kind}): "
        f"{board_feet:.2f} bdft @ {rate:.0f} bdft/hr"
    )

    return AssemblyResult(
        id=assembly.id,
        name=assembly.name,
        kind=assembly.kind,
        board_feet=round(board_feet, MONEY_DECIMALS),
        productivity_rate=round(rate, MONEY_DECIMALS),
        labor_hours=round(hours, HOURS_DECIMALS),
        cost_per_bdft=round(cost_per_bdft, 4),
        material_cost=round(material_with_markup, MONEY_DECIMALS),
        labor_cost=round(labor, MONEY_DECIMALS),
        total_before_margin=round(before_margin, MONEY_DECIMALS),
        total_with_margin=round(with_margin, MONEY_DECIMALS),
    )


# ---------------------------------------------------------------------------
# 5. Pricing preview (settings screen sample job)
# ---------------------------------------------------------------------------

def calculate_pricing_preview(
    config: PricingConfig,
    material_type: str = "OC",
    condition: Condition = "typical",
    example_board_feet: Optional[float] = None,
) -> PricingPreview:
    """
    Price a fixed-size sample job so settings changes can be sanity-checked.

    Mobilization is folded into the base before overhead and profit, so the
    preview sell price carries a marked-up mobilization fee.
    """
    board_feet = example_board_feet if example_board_feet is not None else DEFAULTS["example_board_feet"]

    rate = production_rate_for(condition, config)
    hours = labor_hours(board_feet, rate)
    labor = labor_cost(hours, config.labor_rate_per_hour, config.crew_size)

    cost_per_bdft = resolve_material_cost_per_bdft(material_type, None, config)
    material_with_markup = apply_markup(
        material_cost(board_feet, cost_per_bdft), config.material_markup_percent
    )

    base = material_with_markup + labor + config.mobilization_fee
    sell = apply_overhead_and_profit(base, config.overhead_percent, config.profit_percent)

    return PricingPreview(
        board_feet=board_feet,
        productivity=round(rate, MONEY_DECIMALS),
        labor_hours=round(hours, 1),
        labor_cost=round(labor, MONEY_DECIMALS),
        marked_up_material=round(material_with_markup, MONEY_DECIMALS),
        estimated_sell=round(sell, MONEY_DECIMALS),
        overhead_percent=config.overhead_percent,
        profit_percent=config.profit_percent,
    )
