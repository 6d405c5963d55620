"""
geometry_engine.py — Board-foot quantities from physical assembly dimensions.

1 board-foot (bdft) = 1 sq ft of coverage at 1 inch of foam.

Inputs are assumed validated (non-negative, finite); the primitives compute
straightforwardly and never clamp.
"""

import math

from foamboss.models.estimate_schema import (
    AtticAssemblyInput,
    FlatAssemblyInput,
    LinearAssemblyInput,
    WallAssemblyInput,
)

INCHES_PER_FOOT: float = 12.0


# ---------------------------------------------------------------------------
# Primitives
# ---------------------------------------------------------------------------

def wall_board_feet(linear_feet: float, height_feet: float, thickness_inches: float) -> float:
    """Wall section: linear_feet × height_feet × thickness / 12."""
    return linear_feet * height_feet * thickness_inches / INCHES_PER_FOOT


def pitch_factor(pitch: float, pitch_is_rise_over_12: bool = True) -> float:
    """
    Roof-slope area multiplier.

    With pitch_is_rise_over_12 (default) the pitch is rise per 12 in of run and the
    true slope correction sqrt(1 + (pitch/12)²) is returned; 4 → 1.0541.
    Otherwise the pitch is already a multiplier and is returned unchanged.
    """
    if pitch_is_rise_over_12:
        return math.sqrt(1.0 + (pitch / INCHES_PER_FOOT) ** 2)
    return pitch


def attic_roof_board_feet(
    area_sqft: float,
    pitch: float,
    thickness_inches: float,
    pitch_is_rise_over_12: bool = True,
) -> float:
    """Attic / pitched roof deck: plan area × pitch factor × thickness / 12."""
    return area_sqft * pitch_factor(pitch, pitch_is_rise_over_12) * thickness_inches / INCHES_PER_FOOT


def flat_area_board_feet(area_sqft: float, thickness_inches: float) -> float:
    """Flat roof, floor, crawl space: area × thickness / 12."""
    return area_sqft * thickness_inches / INCHES_PER_FOOT


def linear_board_feet(linear_feet: float, spray_width_inches: float, thickness_inches: float) -> float:
    """Rim joists and other banded runs: (linear_feet × width/12) × thickness / 12."""
    coverage_sqft = linear_feet * spray_width_inches / INCHES_PER_FOOT
    return coverage_sqft * thickness_inches / INCHES_PER_FOOT


# ---------------------------------------------------------------------------
# Dispatch by geometry kind
# ---------------------------------------------------------------------------

def board_feet_for_assembly(assembly) -> float:
    """Board-feet for a validated assembly input; raises ValueError for unknown kinds."""
    if isinstance(assembly, WallAssemblyInput):
        return wall_board_feet(assembly.linear_feet, assembly.height_feet, assembly.thickness_inches)
    if isinstance(assembly, AtticAssemblyInput):
        return attic_roof_board_feet(
            assembly.area_sqft,
            assembly.pitch,
            assembly.thickness_inches,
            assembly.pitch_is_rise_over_12,
        )
    if isinstance(assembly, FlatAssemblyInput):
        return flat_area_board_feet(assembly.area_sqft, assembly.thickness_inches)
    if isinstance(assembly, LinearAssemblyInput):
        return linear_board_feet(
            assembly.linear_feet, assembly.spray_width_inches, assembly.thickness_inches
        )
    kind = getattr(assembly, "kind", type(assembly).__name__)
    raise ValueError(f"Unknown geometry kind '{kind}'; expected wall, attic, flat or linear")
