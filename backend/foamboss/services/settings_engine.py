"""
settings_engine.py — Partial updates to business pricing settings and users.

Settings forms send partial patches. apply_pricing_update() merges a patch into
the current PricingConfig, normalizes numbers, then applies DERIVED_FIELD_RULES
in table order. Nothing here mutates its inputs; every call returns a new object.
"""

import logging
import math
from typing import Any, Callable, Dict, Mapping, NamedTuple, Tuple

from foamboss.config import PRODUCTIVITY_MULTIPLIERS
from foamboss.models.estimate_schema import PricingConfig
from foamboss.models.settings_schema import BusinessSettings, UserSetting

logger = logging.getLogger("foamboss-settings")


# Pricing defaults shipped to a new business (distinct from the engine fallbacks)
DEFAULT_PRICING: Dict[str, Any] = {
    "labor_rate_per_hour": 50.0,
    "crew_size": 2,
    "prod_typical": 1000.0,
    "prod_wide_open": 1400.0,
    "prod_tight": 700.0,
    "auto_productivity": True,
    "material_costs": {"OC": 0.10, "CC": 0.50},
    "material_markup_percent": 20.0,
    "overhead_percent": 18.0,
    "profit_percent": 25.0,
    "margin_percent": 25.0,
    "mobilization_fee": 150.0,
    "fuel_surcharge_per_mile": 5.0,
}

_NON_NEGATIVE_FIELDS: Tuple[str, ...] = (
    "labor_rate_per_hour",
    "prod_typical",
    "prod_wide_open",
    "prod_tight",
    "material_markup_percent",
    "overhead_percent",
    "profit_percent",
    "margin_percent",
    "mobilization_fee",
    "fuel_surcharge_per_mile",
)


def default_pricing() -> PricingConfig:
    return PricingConfig.model_validate(DEFAULT_PRICING)


def reset_pricing() -> PricingConfig:
    """Pricing back to the shipped defaults."""
    return default_pricing()


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------

def _clamp_non_negative(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) and number >= 0 else 0.0


def _normalise(merged: Dict[str, Any]) -> Dict[str, Any]:
    for field in _NON_NEGATIVE_FIELDS:
        if merged.get(field) is not None:
            merged[field] = _clamp_non_negative(merged[field])
    merged["crew_size"] = max(1, math.floor(_clamp_non_negative(merged.get("crew_size"))))
    merged["material_costs"] = {
        str(key).upper(): _clamp_non_negative(cost)
        for key, cost in (merged.get("material_costs") or {}).items()
    }
    return merged


# ---------------------------------------------------------------------------
# Derived-field dependency table
# ---------------------------------------------------------------------------

class DerivedFieldRule(NamedTuple):
    trigger: str                    # patch key that fires the rule
    targets: Tuple[str, ...]        # fields recomputed; an explicit value in the patch suppresses the rule
    applies: Callable[[Dict[str, Any]], bool]
    compute: Callable[[Dict[str, Any]], Dict[str, Any]]


def _derive_condition_rates(merged: Dict[str, Any]) -> Dict[str, Any]:
    typical = merged.get("prod_typical")
    if typical is None:
        return {}
    return {
        "prod_wide_open": float(round(typical * PRODUCTIVITY_MULTIPLIERS["wide"])),
        "prod_tight": float(round(typical * PRODUCTIVITY_MULTIPLIERS["tight"])),
    }


DERIVED_FIELD_RULES: Tuple[DerivedFieldRule, ...] = (
    # auto productivity on + typical changed → wide/tight follow typical
    DerivedFieldRule(
        trigger="prod_typical",
        targets=("prod_wide_open", "prod_tight"),
        applies=lambda merged: bool(merged.get("auto_productivity")),
        compute=_derive_condition_rates,
    ),
)


def _apply_derived_fields(merged: Dict[str, Any], patch: Mapping[str, Any]) -> Dict[str, Any]:
    for rule in DERIVED_FIELD_RULES:
        if rule.trigger not in patch:
            continue
        if any(target in patch for target in rule.targets):
            continue
        if not rule.applies(merged):
            continue
        merged.update(rule.compute(merged))
    return merged


# ---------------------------------------------------------------------------
# Reducer
# ---------------------------------------------------------------------------

def apply_pricing_update(current: PricingConfig, patch: Mapping[str, Any]) -> PricingConfig:
    """
    Merge a partial settings patch into the current pricing config.

    Order:
        1. shallow merge (material_costs merged per material key)
        2. normalize: negatives / non-finite → 0, crew_size → int ≥ 1
        3. DERIVED_FIELD_RULES

    Raises ValueError for unknown fields and pydantic.ValidationError for values
    still invalid after normalization (e.g. margin_percent ≥ 100).
    """
    unknown = set(patch) - set(PricingConfig.model_fields)
    if unknown:
        raise ValueError(f"Unknown pricing fields: {sorted(unknown)}")

    merged = current.model_dump()
    for key, value in patch.items():
        if key == "material_costs" and value is not None:
            merged["material_costs"] = {**merged["material_costs"], **value}
        else:
            merged[key] = value

    merged = _apply_derived_fields(_normalise(merged), patch)
    updated = PricingConfig.model_validate(merged)
    logger.debug(f"Pricing updated: {sorted(patch)}")
    return updated


def update_business_pricing(settings: BusinessSettings, patch: Mapping[str, Any]) -> BusinessSettings:
    return settings.model_copy(update={"pricing": apply_pricing_update(settings.pricing, patch)})


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

def add_user(settings: BusinessSettings, user: UserSetting) -> BusinessSettings:
    if any(u.id == user.id for u in settings.users):
        raise ValueError(f"User '{user.id}' already exists")
    return settings.model_copy(update={"users": [*settings.users, user]})


def update_user(settings: BusinessSettings, user_id: str, changes: Mapping[str, Any]) -> BusinessSettings:
    """Apply partial changes to one user; the id itself cannot change."""
    users = []
    found = False
    for user in settings.users:
        if user.id == user_id:
            found = True
            data = {**user.model_dump(), **changes, "id": user_id}
            user = UserSetting.model_validate(data)
        users.append(user)
    if not found:
        raise KeyError(f"User '{user_id}' not found")
    return settings.model_copy(update={"users": users})


def remove_user(settings: BusinessSettings, user_id: str) -> BusinessSettings:
    users = [u for u in settings.users if u.id != user_id]
    if len(users) == len(settings.users):
        raise KeyError(f"User '{user_id}' not found")
    return settings.model_copy(update={"users": users})
