"""Profitability — income matching, per-vehicle and fleet break-even metrics.

  profit             = income − total_cost
  contribution_ratio = (income − variable_cost) / income        (0 if income ≤ 0)
  break_even_revenue = fixed_cost / contribution_ratio          (0 if ratio ≤ 0)
  cost_per_km        = total_cost / kms                         (0 if kms = 0)

Fixed cost = fixed pool shares + fixed imputed + both amortizations.
Variable cost = variable pool shares + variable imputed.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Sequence

from fleet_costing.config.income import VehicleIncome, YearlyIncomeData
from fleet_costing.config.vehicle import Vehicle, normalize_plate
from fleet_costing.models.results import (
    FleetTotals,
    Issue,
    IssueKind,
    VehicleAllocation,
    VehicleMetrics,
)

logger = logging.getLogger(__name__)

_MATCH_FIELDS = ("license_plate", "vehicle_id", "id")


# ═══════════════════════════════════════════════════════════════════════════
# Income matching
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class MatchResult:
    record: VehicleIncome | None
    field: str | None = None
    """Which identifier matched: license_plate, vehicle_id or id."""
    candidates: int = 0
    """Records matching on that identifier; > 1 means the match was ambiguous."""

    @property
    def ambiguous(self) -> bool:
        return self.candidates > 1


def match_income(vehicle: Vehicle, own_fleet: Sequence[VehicleIncome]) -> MatchResult:
    """Find the income record for *vehicle*.

    Tries the record's ``license_plate``, then ``vehicle_id``, then ``id``
    against the vehicle's normalized plate.  The first identifier with any
    hit decides; within it the first record in order wins.
    """
    plate = normalize_plate(vehicle.license_plate)
    if not plate:
        return MatchResult(record=None)
    for field_name in _MATCH_FIELDS:
        hits = [r for r in own_fleet if normalize_plate(getattr(r, field_name)) == plate]
        if hits:
            return MatchResult(record=hits[0], field=field_name, candidates=len(hits))
    return MatchResult(record=None)


def vehicle_income(
    vehicle: Vehicle,
    yearly: YearlyIncomeData | None,
    issues: list[Issue] | None = None,
) -> float:
    """Annual income of *vehicle*: sum of its matched monthly values (0 if none)."""
    if yearly is None:
        return 0.0
    match = match_income(vehicle, yearly.own_fleet)
    if match.ambiguous:
        logger.warning(
            "%d income records match %s on %s; using the first",
            match.candidates, vehicle.license_plate, match.field,
        )
        if issues is not None:
            issues.append(Issue(
                kind=IssueKind.AMBIGUOUS_MATCH, source="incomes", key=vehicle.license_plate,
                message=f"{match.candidates} income records match on {match.field}; first one used",
            ))
    if match.record is None:
        return 0.0
    return math.fsum(match.record.income.values())


# ═══════════════════════════════════════════════════════════════════════════
# Metrics
# ═══════════════════════════════════════════════════════════════════════════

def contribution_ratio(income: float, variable_cost: float) -> float:
    return (income - variable_cost) / income if income > 0 else 0.0


def break_even(fixed_cost: float, ratio: float) -> float:
    """Revenue covering *fixed_cost*; 0 flags 'unreachable' when ratio ≤ 0."""
    return fixed_cost / ratio if ratio > 0 else 0.0


def compute_vehicle_metrics(allocation: VehicleAllocation, income: float) -> VehicleMetrics:
    """Add profitability figures to one vehicle's allocation."""
    a = allocation
    fixed = (
        a.direct_fixed_share + a.indirect_fixed_share + a.direct_imputed_fixed
        + a.own_amortization + a.indirect_amortization_share
    )
    variable = a.direct_variable_share + a.indirect_variable_share + a.direct_imputed_variable
    ratio = contribution_ratio(income, variable)

    return VehicleMetrics(
        **a.model_dump(),
        income=income,
        profit=income - a.total_cost,
        total_fixed_cost=fixed,
        total_variable_cost=variable,
        contribution_ratio=ratio,
        break_even_revenue=break_even(fixed, ratio),
        cost_per_km=a.total_cost / a.kms if a.kms > 0 else 0.0,
        cost_per_km_fixed=fixed / a.kms if a.kms > 0 else 0.0,
        cost_per_km_variable=variable / a.kms if a.kms > 0 else 0.0,
    )


_SUMMED = (
    "kms", "time_coefficient",
    "direct_fixed_share", "direct_variable_share",
    "indirect_fixed_share", "indirect_variable_share",
    "indirect_amortization_share", "own_amortization",
    "direct_imputed_fixed", "direct_imputed_variable",
    "total_cost", "total_fixed_cost", "total_variable_cost",
    "income", "profit",
)


def compute_fleet_totals(metrics: Iterable[VehicleMetrics]) -> FleetTotals:
    """Sum the per-vehicle metrics; ratios are recomputed from the sums."""
    metrics = list(metrics)
    sums = {name: math.fsum(getattr(m, name) for m in metrics) for name in _SUMMED}
    ratio = contribution_ratio(sums["income"], sums["total_variable_cost"])
    return FleetTotals(
        vehicles=len(metrics),
        **sums,
        contribution_ratio=ratio,
        break_even_revenue=break_even(sums["total_fixed_cost"], ratio),
        cost_per_km=sums["total_cost"] / sums["kms"] if sums["kms"] > 0 else 0.0,
    )


def compute_profitability(
    allocations: Sequence[VehicleAllocation],
    vehicles: Sequence[Vehicle],
    yearly: YearlyIncomeData | None,
    issues: list[Issue] | None = None,
) -> tuple[list[VehicleMetrics], FleetTotals]:
    """Metrics for each allocated vehicle plus fleet totals.

    *vehicles* must hold the vehicle behind each allocation, in the same
    order.
    """
    if len(allocations) != len(vehicles):
        raise ValueError("allocations and vehicles must be parallel sequences")
    metrics = [
        compute_vehicle_metrics(a, vehicle_income(v, yearly, issues))
        for a, v in zip(allocations, vehicles)
    ]
    return metrics, compute_fleet_totals(metrics)
