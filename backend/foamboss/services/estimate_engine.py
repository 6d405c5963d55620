"""
estimate_engine.py — Job-level rollup of assembly costs.

Covers:
  - Job totals from stored assembly cost lines (overhead + profit on the aggregate base)
  - Full estimate totals from assembly inputs, with mobilization and fuel surcharge
  - Quick gross-margin quote (single margin on the whole job)
  - EstimateSession: the in-progress estimate a caller edits, saves and reopens

Totals are always recomputed in full from the current assembly list; nothing is
kept as a running sum.
"""

import logging
import math
import time
from datetime import datetime
from typing import Any, Iterable, List, Optional, Sequence, Union

from foamboss.config import DEFAULTS, MONEY_DECIMALS
from foamboss.models.estimate_schema import (
    AssemblyResult,
    EstimateRecord,
    EstimateTotals,
    JobTotals,
    JobTotalsConfig,
    MarginQuote,
    PricingConfig,
    parse_assembly,
)
from foamboss.services.costing_engine import (
    apply_gross_margin,
    calculate_assembly,
    split_overhead_and_profit,
)

logger = logging.getLogger("foamboss-estimator")


def _figure(item: Any, name: str) -> float:
    """Read a cost figure from a result object or a plain mapping; non-finite → 0."""
    if isinstance(item, dict):
        value = item.get(name, 0.0)
    else:
        value = getattr(item, name, 0.0)
    try:
        value = float(value)
    except (TypeError, ValueError):
        return 0.0
    return value if math.isfinite(value) else 0.0


def fuel_surcharge(miles: Optional[float], rate_per_mile: float) -> float:
    """Trip fuel charge; no miles means no surcharge."""
    if miles is None:
        return 0.0
    return miles * rate_per_mile


# ---------------------------------------------------------------------------
# 1. Job totals from assembly cost lines
# ---------------------------------------------------------------------------

def calculate_job_totals_from_assemblies(
    assemblies: Iterable[Any],
    config: Union[JobTotalsConfig, PricingConfig, None] = None,
) -> JobTotals:
    """
    Aggregate per-assembly figures into job totals.

    Each item needs board_feet, material_cost (already marked up) and labor_cost,
    as attributes or mapping keys. Overhead and profit are applied once to the
    aggregate material + labor base, then mobilization is added.
    """
    if config is None:
        config = JobTotalsConfig()
    elif isinstance(config, PricingConfig):
        config = JobTotalsConfig.from_pricing(config)

    overhead_pct = config.overhead_percent if config.overhead_percent is not None else DEFAULTS["overhead_percent"]
    profit_pct = config.profit_percent if config.profit_percent is not None else DEFAULTS["profit_percent"]
    mobilization = config.mobilization_fee if config.mobilization_fee is not None else DEFAULTS["mobilization_fee"]

    total_bdft = 0.0
    material_total = 0.0
    labor_total = 0.0
    for item in assemblies:
        total_bdft += _figure(item, "board_feet")
        material_total += _figure(item, "material_cost")
        labor_total += _figure(item, "labor_cost")

    base = material_total + labor_total
    overhead, profit = split_overhead_and_profit(base, overhead_pct, profit_pct)
    subtotal = base + overhead + profit

    return JobTotals(
        total_board_feet=round(total_bdft, MONEY_DECIMALS),
        material_total=round(material_total, MONEY_DECIMALS),
        labor_total=round(labor_total, MONEY_DECIMALS),
        overhead_total=round(overhead, MONEY_DECIMALS),
        profit_total=round(profit, MONEY_DECIMALS),
        subtotal_with_margin=round(subtotal, MONEY_DECIMALS),
        mobilization_fee=round(mobilization, MONEY_DECIMALS),
        grand_total=round(subtotal + mobilization, MONEY_DECIMALS),
    )


# ---------------------------------------------------------------------------
# 2. Estimate totals from assembly inputs
# ---------------------------------------------------------------------------

def calculate_estimate_totals(
    assemblies: Sequence[Any],
    config: PricingConfig,
    miles: Optional[float] = None,
    fuel_rate_per_mile: Optional[float] = None,
    mobilization_fee_override: Optional[float] = None,
) -> EstimateTotals:
    """
    Price every assembly, roll them up, and add job-level fees.

        grand_total = subtotal_with_margin + mobilization_fee + fuel_surcharge

    Job totals aggregate the per-assembly results as displayed (rounded to cents),
    so line items always sum to the totals.
    """
    start = time.perf_counter()

    results: List[AssemblyResult] = [calculate_assembly(a, config) for a in assemblies]

    mobilization = (
        mobilization_fee_override if mobilization_fee_override is not None else config.mobilization_fee
    )
    fuel_rate = fuel_rate_per_mile if fuel_rate_per_mile is not None else config.fuel_surcharge_per_mile
    fuel = fuel_surcharge(miles, fuel_rate)

    job = calculate_job_totals_from_assemblies(
        results,
        JobTotalsConfig(
            overhead_percent=config.overhead_percent,
            profit_percent=config.profit_percent,
            mobilization_fee=mobilization,
        ),
    )

    totals = EstimateTotals(
        assemblies=results,
        total_board_feet=job.total_board_feet,
        material_total=job.material_total,
        labor_total=job.labor_total,
        overhead_total=job.overhead_total,
        profit_total=job.profit_total,
        subtotal_with_margin=job.subtotal_with_margin,
        mobilization_fee=job.mobilization_fee,
        fuel_surcharge=round(fuel, MONEY_DECIMALS),
        grand_total=round(job.subtotal_with_margin + mobilization + fuel, MONEY_DECIMALS),
    )

    logger.debug(
        "estimate totals recomputed",
        extra={
            "assembly_count": len(results),
            "duration_ms": round((time.perf_counter() - start) * 1000, 2),
        },
    )
    return totals


def recompute_totals(
    assemblies: Sequence[Any],
    config: PricingConfig,
    miles: Optional[float] = None,
    fuel_rate_per_mile: Optional[float] = None,
    mobilization_fee_override: Optional[float] = None,
) -> EstimateTotals:
    """Full recompute after any add/remove; same contract as calculate_estimate_totals."""
    return calculate_estimate_totals(
        assemblies,
        config,
        miles=miles,
        fuel_rate_per_mile=fuel_rate_per_mile,
        mobilization_fee_override=mobilization_fee_override,
    )


# ---------------------------------------------------------------------------
# 3. Quick gross-margin quote
# ---------------------------------------------------------------------------

def calculate_margin_quote(
    assemblies: Sequence[Any],
    config: PricingConfig,
    miles: Optional[float] = None,
    fuel_rate_per_mile: Optional[float] = None,
    mobilization_fee_override: Optional[float] = None,
    margin_percent: Optional[float] = None,
) -> MarginQuote:
    """
    Price a job with one gross margin applied to everything, fees included:

        pre_margin  = Σ assembly.total_before_margin + mobilization + fuel
        grand_total = pre_margin / (1 - margin%)

    Overhead and profit percentages are not used on this path.
    """
    results = [calculate_assembly(a, config) for a in assemblies]
    subtotal = sum(r.total_before_margin for r in results)

    mobilization = (
        mobilization_fee_override if mobilization_fee_override is not None else config.mobilization_fee
    )
    fuel_rate = fuel_rate_per_mile if fuel_rate_per_mile is not None else config.fuel_surcharge_per_mile
    fuel = fuel_surcharge(miles, fuel_rate)

    margin = margin_percent if margin_percent is not None else config.margin_percent
    pre_margin = subtotal + mobilization + fuel
    grand_total = apply_gross_margin(pre_margin, margin)

    return MarginQuote(
        assemblies=results,
        subtotal=round(subtotal, MONEY_DECIMALS),
        fuel_surcharge=round(fuel, MONEY_DECIMALS),
        mobilization_fee=round(mobilization, MONEY_DECIMALS),
        pre_margin_total=round(pre_margin, MONEY_DECIMALS),
        margin_percent=margin,
        margin_amount=round(grand_total - pre_margin, MONEY_DECIMALS),
        grand_total=round(grand_total, MONEY_DECIMALS),
    )


# ---------------------------------------------------------------------------
# 4. In-progress estimate
# ---------------------------------------------------------------------------

class EstimateSession:
    """
    The estimate currently being edited.

    Owns its assembly list and a pricing snapshot; every mutation recomputes the
    totals from scratch. save() produces an EstimateRecord carrying the snapshot,
    and from_record() reopens it without consulting live settings.
    """

    METADATA_FIELDS = ("job_name", "customer_name", "building_type", "default_foam")

    def __init__(
        self,
        pricing: Optional[PricingConfig] = None,
        business_id: Optional[str] = None,
        miles: Optional[float] = None,
        **metadata: Optional[str],
    ) -> None:
        self.business_id = business_id
        self.pricing: PricingConfig = pricing or PricingConfig()
        self.miles = miles
        self._assemblies: List[Any] = []
        self._start_new_record()
        self.set_metadata(**metadata)
        self.totals: EstimateTotals = self._recompute()

    def _start_new_record(self) -> None:
        fresh = EstimateRecord()
        self.id: str = fresh.id
        self.created_at: datetime = fresh.created_at
        self.job_name: Optional[str] = None
        self.customer_name: Optional[str] = None
        self.building_type: Optional[str] = None
        self.default_foam: Optional[str] = None

    def _recompute(self) -> EstimateTotals:
        self.totals = recompute_totals(self._assemblies, self.pricing, miles=self.miles)
        return self.totals

    # -- assemblies ---------------------------------------------------------

    @property
    def assemblies(self) -> tuple:
        return tuple(self._assemblies)

    def add_assembly(self, assembly: Any) -> EstimateTotals:
        """Append an assembly (typed input or raw mapping) and recompute."""
        if isinstance(assembly, dict):
            assembly = parse_assembly(assembly)
        self._assemblies.append(assembly)
        return self._recompute()

    def remove_assembly(self, assembly_id: str) -> EstimateTotals:
        remaining = [a for a in self._assemblies if a.id != assembly_id]
        if len(remaining) == len(self._assemblies):
            raise KeyError(f"Assembly '{assembly_id}' is not part of estimate {self.id}")
        self._assemblies = remaining
        return self._recompute()

    # -- pricing / job inputs -----------------------------------------------

    def reprice(self, pricing: PricingConfig) -> EstimateTotals:
        """Swap in a new pricing snapshot (e.g. after settings changed)."""
        self.pricing = pricing
        return self._recompute()

    def set_trip_miles(self, miles: Optional[float]) -> EstimateTotals:
        if miles is not None and (not math.isfinite(miles) or miles < 0):
            raise ValueError(f"miles must be a non-negative number, got {miles}")
        self.miles = miles
        return self._recompute()

    def set_metadata(self, **fields: Optional[str]) -> None:
        unknown = set(fields) - set(self.METADATA_FIELDS)
        if unknown:
            raise ValueError(f"Unknown estimate fields: {sorted(unknown)}")
        for name, value in fields.items():
            setattr(self, name, value)

    def reset(self) -> EstimateTotals:
        """Start a blank estimate under a new id, keeping the pricing snapshot."""
        self._assemblies = []
        self.miles = None
        self._start_new_record()
        return self._recompute()

    # -- save / load --------------------------------------------------------

    def save(self) -> EstimateRecord:
        record = EstimateRecord(
            id=self.id,
            business_id=self.business_id,
            job_name=self.job_name,
            customer_name=self.customer_name,
            building_type=self.building_type,
            default_foam=self.default_foam,
            created_at=self.created_at,
            miles=self.miles,
            assemblies=list(self._assemblies),
            pricing=self.pricing,
            totals=self.totals,
        )
        logger.info(
            "estimate saved",
            extra={
                "estimate_id": record.id,
                "business_id": record.business_id,
                "assembly_count": len(record.assemblies),
            },
        )
        return record

    @classmethod
    def from_record(cls, record: EstimateRecord) -> "EstimateSession":
        """Reopen a saved estimate using only its stored pricing snapshot."""
        session = cls(pricing=record.pricing, business_id=record.business_id, miles=record.miles)
        session.id = record.id
        session.created_at = record.created_at
        session.set_metadata(**{name: getattr(record, name) for name in cls.METADATA_FIELDS})
        session._assemblies = list(record.assemblies)
        session._recompute()
        return session
