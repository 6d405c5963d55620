"""
productivity_engine.py — Crew productivity (bdft/hr) by job-site condition.

Conditions:
  - tight:   cramped bays, lots of masking and repositioning
  - typical: baseline rate entered in pricing settings
  - wide:    wide-open attics / pole barns

With auto-productivity on, every condition is derived from the typical rate via
PRODUCTIVITY_MULTIPLIERS. With it off, explicit per-condition overrides win and
missing overrides fall back to the derived value.
"""

import math
from typing import Dict, Mapping, Optional

from foamboss.config import DEFAULTS, PRODUCTIVITY_MULTIPLIERS
from foamboss.models.estimate_schema import Condition, PricingConfig

CONDITIONS = ("tight", "typical", "wide")


def _multiplier_for(condition: str) -> float:
    return PRODUCTIVITY_MULTIPLIERS.get(condition, 1.0)


def _normalise_rate(value: Optional[float]) -> Optional[float]:
    """None stays unset; negative or non-finite rates collapse to 0."""
    if value is None:
        return None
    value = float(value)
    if not math.isfinite(value) or value <= 0:
        return 0.0
    return value


def _resolve_base_rate(base_rate: Optional[float], overrides: Mapping[str, Optional[float]]) -> float:
    direct = _normalise_rate(base_rate)
    if direct is not None:
        return direct
    typical = _normalise_rate(overrides.get("typical"))
    if typical is not None:
        return typical
    return DEFAULTS["production_rate_bdft_per_hour"]


def derive_auto_productivity_rates(base_rate: Optional[float]) -> Dict[str, int]:
    """Whole-number rates for every condition derived from a typical rate."""
    base = _normalise_rate(base_rate)
    if base is None:
        base = DEFAULTS["production_rate_bdft_per_hour"]
    return {condition: round(base * _multiplier_for(condition)) for condition in CONDITIONS}


def resolve_productivity_rate(
    condition: Condition,
    base_rate: Optional[float],
    auto_productivity: bool = True,
    overrides: Optional[Mapping[str, Optional[float]]] = None,
) -> float:
    """
    Effective bdft/hr for one condition.

    Args:
        condition:         'tight' | 'typical' | 'wide'
        base_rate:         typical rate; falls back to the typical override, then
                           the system default (1200 bdft/hr)
        auto_productivity: derive from base_rate × multiplier when True
        overrides:         explicit per-condition rates used when auto is off

    Never returns a negative or non-finite value.
    """
    overrides = overrides or {}
    base = max(_resolve_base_rate(base_rate, overrides), 0.0)
    multiplier = _multiplier_for(condition)

    if auto_productivity:
        return base * multiplier

    explicit = _normalise_rate(overrides.get(condition))
    if explicit is not None:
        return explicit

    if condition == "typical":
        return base
    return float(round(base * multiplier))


def production_rate_for(condition: Condition, config: PricingConfig) -> float:
    """Resolve the bdft/hr for a condition from a pricing snapshot."""
    return resolve_productivity_rate(
        condition,
        config.prod_typical,
        auto_productivity=config.auto_productivity,
        overrides={
            "typical": config.prod_typical,
            "wide": config.prod_wide_open,
            "tight": config.prod_tight,
        },
    )


def resolve_all_rates(config: PricingConfig) -> Dict[str, float]:
    """Rates for every condition, e.g. for the production settings summary."""
    return {condition: production_rate_for(condition, config) for condition in CONDITIONS}
