"""
conftest.py — Shared pytest fixtures for the FoamBoss estimator test suite.

Engine tests are pure unit tests. Repository tests get a throwaway SQLite
database per test through the ``db_session`` fixture.

Import-path bootstrapping:
    The ``backend/`` directory is inserted into sys.path so that all
    ``foamboss.*`` imports resolve correctly regardless of where pytest is invoked.
"""

import os
import sys
import tempfile

import pytest

# ---------------------------------------------------------------------------
# Ensure ``backend/`` is on the import path before any foamboss imports occur.
# ---------------------------------------------------------------------------
_BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)


# ---------------------------------------------------------------------------
# Pricing fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def scenario_pricing():
    """
    Reference job pricing:
      labor = 125 $/hr, crew = 1, typical = 1200 bdft/hr,
      overhead = 18%, profit = 25%, mobilization = 250, no markup.
    """
    from foamboss.models.estimate_schema import PricingConfig
    return PricingConfig(
        labor_rate_per_hour=125.0,
        crew_size=1,
        prod_typical=1200.0,
        overhead_percent=18.0,
        profit_percent=25.0,
        mobilization_fee=250.0,
    )


@pytest.fixture(scope="session")
def shipped_pricing():
    """Defaults a new business starts with (labor 50, crew 2, typical 1000, OC 0.10)."""
    from foamboss.services.settings_engine import default_pricing
    return default_pricing()


# ---------------------------------------------------------------------------
# Assembly fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def scenario_wall():
    """50 lf × 8 ft wall at 3 in, explicit 0.55 $/bdft → 100 bdft."""
    from foamboss.models.estimate_schema import WallAssemblyInput
    return WallAssemblyInput(
        id="wall-1",
        name="North wall",
        linear_feet=50.0,
        height_feet=8.0,
        thickness_inches=3.0,
        material_cost_per_bdft=0.55,
        condition="typical",
    )


@pytest.fixture
def mixed_assemblies(scenario_wall):
    """One of each geometry kind."""
    from foamboss.models.estimate_schema import (
        AtticAssemblyInput,
        FlatAssemblyInput,
        LinearAssemblyInput,
    )
    return [
        scenario_wall,
        AtticAssemblyInput(
            id="attic-1", name="Attic deck", area_sqft=1200.0, pitch=4.0,
            thickness_inches=5.5, material_type="OC", condition="wide",
        ),
        FlatAssemblyInput(
            id="flat-1", name="Crawl floor", area_sqft=600.0,
            thickness_inches=2.0, material_type="CC", condition="tight",
        ),
        LinearAssemblyInput(
            id="rim-1", name="Rim joist", linear_feet=160.0, spray_width_inches=10.0,
            thickness_inches=3.0, material_type="CC",
        ),
    ]


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def temp_db():
    """Path of a temporary SQLite database file."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        path = f.name
    yield path
    try:
        os.unlink(path)
    except OSError:
        pass


@pytest.fixture
def db_session(temp_db):
    """Session on a fresh schema."""
    from foamboss.db import init_database

    session_factory = init_database(f"sqlite:///{temp_db}")
    session = session_factory()
    try:
        yield session
    finally:
        session.close()
        session_factory.kw["bind"].dispose()
