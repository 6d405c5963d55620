"""
Engine configuration — single source of truth for pricing defaults,
material fallbacks, and productivity multipliers.

Import from here in all services rather than hardcoding values.
Runtime settings (database URL, log level) come from the environment.
"""
from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


# ── Pricing fallbacks ─────────────────────────────────────────────────────────
# Used whenever a PricingConfig field is unset. Percentages are whole numbers
# (10 means 10 %), never fractions.
DEFAULTS: dict[str, float] = {
    # Labor & crew
    "labor_rate_per_hour": 35.0,     # $/hr per tech
    "crew_size": 2,

    # Material
    "material_cost_per_bdft": 0.45,  # open-cell fallback
    "mobilization_fee": 50.0,

    # Financial
    "overhead_percent": 10.0,
    "profit_percent": 20.0,
    "margin_percent": 20.0,          # gross margin, share of sell price
    "fuel_surcharge_per_mile": 5.0,

    # Productivity
    "production_rate_bdft_per_hour": 1200.0,  # "typical" condition
    "example_board_feet": 1000.0,             # pricing preview sample size
}

# ── Material cost per board-foot by foam type ($/bdft) ───────────────────────
MATERIAL_COSTS: dict[str, float] = {
    "OC": 0.45,   # open cell
    "CC": 1.00,   # closed cell
}

# ── Productivity condition multipliers (applied to the typical rate) ─────────
PRODUCTIVITY_MULTIPLIERS: dict[str, float] = {
    "wide": 1.4,
    "typical": 1.0,
    "tight": 0.7,
}

# Result rounding
MONEY_DECIMALS: int = 2
HOURS_DECIMALS: int = 3


# ── Runtime configuration ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class AppConfig:
    database_url: str
    log_level: str = "INFO"
    json_logs: bool = True


_DEFAULT_DATABASE_URL = "sqlite:///foamboss.db"


def load_app_config() -> AppConfig:
    """Read runtime settings from the environment (and a local .env file, if any)."""
    load_dotenv()
    return AppConfig(
        database_url=os.getenv("DATABASE_URL", "") or _DEFAULT_DATABASE_URL,
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        json_logs=os.getenv("LOG_FORMAT", "json").lower() != "text",
    )
