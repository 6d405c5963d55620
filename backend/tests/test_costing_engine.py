"""
test_costing_engine.py — Unit tests for per-assembly cost composition.

Tests cover:
  - Guarded labor-hour division and crew labor cost
  - Material $/bdft resolution order and markup
  - Overhead-then-profit (cost-plus) and gross-margin models
  - Single-assembly calculation against the reference wall job
  - Pricing preview sample job

All tests are pure unit tests; no database or external services required.
"""

import logging

import pytest

from foamboss.models.estimate_schema import FlatAssemblyInput, PricingConfig, WallAssemblyInput
from foamboss.services.costing_engine import (
    apply_gross_margin,
    apply_markup,
    apply_overhead_and_profit,
    calculate_assembly,
    calculate_pricing_preview,
    labor_cost,
    labor_hours,
    material_cost,
    resolve_material_cost_per_bdft,
    split_overhead_and_profit,
)


# ===========================================================================
# Class 1: Labor
# ===========================================================================

class TestLabor:

    def test_zero_board_feet(self):
        assert labor_hours(0.0, 1200.0) == 0.0

    @pytest.mark.parametrize("rate", [0.0, -100.0])
    def test_zero_or_negative_rate_no_division_error(self, rate):
        assert labor_hours(500.0, rate) == 0.0

    def test_hours(self):
        assert labor_hours(2400.0, 1200.0) == 2.0

    def test_crew_paid_for_full_time(self):
        """2 h × 50 $/hr × 2 techs = 200."""
        assert labor_cost(2.0, 50.0, 2) == 200.0


# ===========================================================================
# Class 2: Material
# ===========================================================================

class TestMaterial:

    @pytest.mark.parametrize("raw", [0.0, 1.0, 55.0, 123.456, 1e6])
    def test_zero_markup_is_identity(self, raw):
        assert apply_markup(raw, 0.0) == raw

    def test_markup(self):
        assert abs(apply_markup(100.0, 20.0) - 120.0) < 1e-9

    def test_raw_material(self):
        assert abs(material_cost(100.0, 0.55) - 55.0) < 1e-9

    def test_explicit_override_wins(self):
        config = PricingConfig(material_costs={"OC": 0.12})
        assert resolve_material_cost_per_bdft("OC", 0.30, config) == 0.30

    def test_config_mapping_case_insensitive(self):
        config = PricingConfig(material_costs={"OC": 0.12})
        assert resolve_material_cost_per_bdft("oc", None, config) == 0.12

    def test_lowercase_config_key_beats_builtin(self):
        config = PricingConfig(material_costs={"oc": 0.20})
        assert resolve_material_cost_per_bdft("OC", None, config) == 0.20
        assembly = FlatAssemblyInput(area_sqft=120.0, thickness_inches=1.0, material_type="OC")
        assert calculate_assembly(assembly, config).cost_per_bdft == 0.20

    def test_builtin_mapping(self):
        assert resolve_material_cost_per_bdft("CC", None, PricingConfig()) == 1.00

    def test_unknown_type_falls_back_with_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="foamboss-estimator"):
            cost = resolve_material_cost_per_bdft("HFO", None, PricingConfig())
        assert cost == 0.45
        assert any("HFO" in r.getMessage() for r in caplog.records)

    def test_no_type_uses_default(self):
        assert resolve_material_cost_per_bdft(None, None, PricingConfig()) == 0.45


# ===========================================================================
# Class 3: Margin models
# ===========================================================================

class TestMarginModels:

    def test_overhead_then_profit(self):
        """100 × 1.18 × 1.25 = 147.50."""
        assert abs(apply_overhead_and_profit(100.0, 18.0, 25.0) - 147.5) < 1e-9

    def test_split(self):
        overhead, profit = split_overhead_and_profit(100.0, 18.0, 25.0)
        assert abs(overhead - 18.0) < 1e-9
        assert abs(profit - 29.5) < 1e-9

    def test_zero_percentages_passthrough(self):
        assert apply_overhead_and_profit(65.42, 0.0, 0.0) == 65.42

    def test_gross_margin(self):
        """80 / (1 - 0.20) = 100: margin is 20 % of the sell price."""
        assert abs(apply_gross_margin(80.0, 20.0) - 100.0) < 1e-9

    def test_models_differ(self):
        assert apply_gross_margin(100.0, 25.0) != apply_overhead_and_profit(100.0, 0.0, 25.0)

    @pytest.mark.parametrize("margin", [100.0, 150.0, -1.0])
    def test_gross_margin_out_of_range(self, margin):
        with pytest.raises(ValueError):
            apply_gross_margin(100.0, margin)


# ===========================================================================
# Class 4: Assembly calculation
# ===========================================================================

class TestCalculateAssembly:

    def test_reference_wall(self, scenario_wall, scenario_pricing):
        """
        100 bdft @ 1200 bdft/hr → 0.083 h; labor 10.42; material 55.00;
        base 65.42; with overhead 77.19..77.20; with profit ≈ 96.50.
        """
        result = calculate_assembly(scenario_wall, scenario_pricing)
        assert result.board_feet == 100.0
        assert result.productivity_rate == 1200.0
        assert result.labor_hours == 0.083
        assert result.labor_cost == 10.42
        assert result.material_cost == 55.0
        assert result.total_before_margin == 65.42
        assert abs(result.total_before_margin * 1.18 - 77.20) < 0.02
        assert abs(result.total_with_margin - 96.50) < 0.02

    def test_markup_applied_before_margin(self, scenario_wall, scenario_pricing):
        config = scenario_pricing.model_copy(update={"material_markup_percent": 20.0})
        result = calculate_assembly(scenario_wall, config)
        assert result.material_cost == 66.0
        assert result.cost_per_bdft == 0.55

    def test_zero_rate_zero_labor(self, scenario_wall):
        config = PricingConfig(prod_typical=0.0)
        result = calculate_assembly(scenario_wall, config)
        assert result.labor_hours == 0.0
        assert result.labor_cost == 0.0

    def test_tight_condition_costs_more_labor(self, scenario_pricing):
        common = dict(linear_feet=50.0, height_feet=8.0, thickness_inches=3.0, material_cost_per_bdft=0.55)
        typical = calculate_assembly(WallAssemblyInput(condition="typical", **common), scenario_pricing)
        tight = calculate_assembly(WallAssemblyInput(condition="tight", **common), scenario_pricing)
        assert tight.labor_cost > typical.labor_cost
        assert tight.material_cost == typical.material_cost


# ===========================================================================
# Class 5: Pricing preview
# ===========================================================================

class TestPricingPreview:

    def test_shipped_defaults(self, shipped_pricing):
        """
        1000 bdft @ 1000 bdft/hr → 1.0 h; labor 1 × 50 × 2 = 100;
        material 100 × 1.20 = 120; base incl. mobilization 370;
        sell 370 × 1.18 × 1.25 = 545.75.
        """
        preview = calculate_pricing_preview(shipped_pricing)
        assert preview.board_feet == 1000.0
        assert preview.productivity == 1000.0
        assert preview.labor_hours == 1.0
        assert preview.labor_cost == 100.0
        assert preview.marked_up_material == 120.0
        assert abs(preview.estimated_sell - 545.75) < 0.01

    def test_custom_sample_size(self, shipped_pricing):
        small = calculate_pricing_preview(shipped_pricing, example_board_feet=500.0)
        large = calculate_pricing_preview(shipped_pricing, example_board_feet=2000.0)
        assert small.estimated_sell < large.estimated_sell
