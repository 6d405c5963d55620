"""
materials_engine.py — Inventory figures for foam and coating materials.

Covers:
  - $/bdft from set price and set yield
  - Inventory value and top-yield material (materials summary card)
  - Reorder alerts
  - Per-type material costs feeding PricingConfig.material_costs
  - Set usage for a job's board-feet against stock on hand
"""

import logging
import math
from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from foamboss.models.material_schema import Material, MaterialUsage

logger = logging.getLogger("foamboss-materials")


def cost_per_board_foot(unit_price: float, yield_per_unit: float) -> float:
    """
    Raw $/bdft for a material sold by the unit.

    Example: open-cell set at $700 yielding 16 000 bdft → 0.04375 $/bdft.
    A zero (unknown) yield gives 0 rather than dividing by zero.
    """
    if yield_per_unit <= 0:
        return 0.0
    return unit_price / yield_per_unit


def effective_cost_per_bdft(material: Material) -> float:
    """Stored cost_per_bdft when present, otherwise derived from price and yield."""
    if material.cost_per_bdft is not None:
        return material.cost_per_bdft
    return cost_per_board_foot(material.unit_price, material.yield_per_unit)


def inventory_value(materials: Iterable[Material]) -> float:
    """Σ unit_price × quantity_on_hand."""
    return round(sum(m.unit_price * m.quantity_on_hand for m in materials), 2)


def top_yield_material(materials: Iterable[Material]) -> Optional[Material]:
    """Material with the highest yield per unit; first one wins a tie."""
    top: Optional[Material] = None
    for material in materials:
        if top is None or material.yield_per_unit > top.yield_per_unit:
            top = material
    return top


def materials_below_reorder(materials: Iterable[Material]) -> List[Material]:
    """Materials at or under their reorder level. No reorder level → never flagged."""
    flagged = [
        m for m in materials
        if m.reorder_level is not None and m.quantity_on_hand <= m.reorder_level
    ]
    if flagged:
        logger.info(f"{len(flagged)} material(s) at or below reorder level")
    return flagged


def material_costs_by_type(materials: Iterable[Material]) -> Dict[str, float]:
    """
    $/bdft per material type for PricingConfig.material_costs.

    Weighted by quantity on hand; a type with no stock uses the plain average.
    """
    grouped: Dict[str, List[Material]] = defaultdict(list)
    for material in materials:
        grouped[material.material_type.upper()].append(material)

    costs: Dict[str, float] = {}
    for material_type, items in grouped.items():
        stock = sum(m.quantity_on_hand for m in items)
        if stock > 0:
            weighted = sum(effective_cost_per_bdft(m) * m.quantity_on_hand for m in items)
            costs[material_type] = round(weighted / stock, 4)
        else:
            costs[material_type] = round(
                sum(effective_cost_per_bdft(m) for m in items) / len(items), 4
            )
    return costs


def material_usage(material: Material, board_feet: float) -> MaterialUsage:
    """
    Whole sets needed to spray board_feet, and what that leaves on the shelf.

    A material without a yield cannot be planned and raises ValueError.
    """
    if material.yield_per_unit <= 0:
        raise ValueError(f"Material '{material.material_name}' has no yield per unit")
    sets_required = math.ceil(board_feet / material.yield_per_unit) if board_feet > 0 else 0
    remaining = material.quantity_on_hand - sets_required
    return MaterialUsage(
        material_name=material.material_name,
        board_feet=board_feet,
        sets_required=sets_required,
        quantity_on_hand=material.quantity_on_hand,
        remaining=max(remaining, 0.0),
        shortfall=max(-remaining, 0.0),
    )
