"""Allocation engine — apportion classified costs across the active fleet.

Pools (generic-target costs only):
  direct_fixed, indirect_fixed       → by time coefficient
  direct_variable, indirect_variable → by km
  indirect amortization              → by time coefficient

Per vehicle:
  share_X(v)       = X × weight(v) / Σ weight
  own_amortization = annual_amortization × time_coefficient
  total_cost       = Σ shares + direct_imputed + own_amortization

Σ_v share_X(v) == X whenever Σ weight > 0.  When Σ weight == 0 a non-zero
pool is reported in ``unallocated`` instead of being spread as zeros, so the
fleet still reconciles to the classified cost total.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Iterable, Sequence

import numpy as np

from fleet_costing.config.amortization import AmortizationAccount
from fleet_costing.config.classification import CostCenter, Nature
from fleet_costing.config.settings import AnalysisSettings
from fleet_costing.config.vehicle import Vehicle, normalize_plate
from fleet_costing.models.results import (
    ClassifiedCost,
    CostPools,
    Issue,
    IssueKind,
    Reconciliation,
    VehicleActivity,
    VehicleAllocation,
)

logger = logging.getLogger(__name__)

_POOL_FIELD = {
    (CostCenter.DIRECT, Nature.FIXED): "direct_fixed",
    (CostCenter.DIRECT, Nature.VARIABLE): "direct_variable",
    (CostCenter.INDIRECT, Nature.FIXED): "indirect_fixed",
    (CostCenter.INDIRECT, Nature.VARIABLE): "indirect_variable",
}

AMORTIZATION_POOL = "indirect_amortization"


# ═══════════════════════════════════════════════════════════════════════════
# Pool building
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class PoolBuild:
    """Classified costs split into shared pools and vehicle-targeted amounts."""

    pools: CostPools
    direct_imputed: dict[str, dict[Nature, float]] = field(default_factory=dict)
    """Normalized plate → {FIXED: amount, VARIABLE: amount}."""
    unmatched_imputed: dict[str, float] = field(default_factory=dict)
    """Distribution target with no active vehicle → amount."""
    classified_total: float = 0.0


def build_cost_pools(
    costs: Iterable[ClassifiedCost],
    active_plates: Iterable[str],
    settings: AnalysisSettings | None = None,
    issues: list[Issue] | None = None,
) -> PoolBuild:
    """Partition classified costs into the four shared pools.

    A cost whose ``distribution`` is not a generic bucket is aimed at one
    vehicle.  It goes to ``direct_imputed`` when the plate belongs to an
    active vehicle, else to ``unmatched_imputed``.  Unmatched amounts stay in
    ``classified_total`` and are reported, not redistributed.
    """
    settings = settings or AnalysisSettings()
    active = {normalize_plate(p) for p in active_plates}
    sums = dict.fromkeys(_POOL_FIELD.values(), 0.0)
    imputed: dict[str, dict[Nature, float]] = {}
    unmatched: dict[str, float] = {}
    total = 0.0

    for c in costs:
        total += c.amount
        if settings.is_generic_target(c.distribution):
            sums[_POOL_FIELD[(c.cost_center, c.nature)]] += c.amount
            continue
        plate = normalize_plate(c.distribution)
        if plate in active:
            bucket = imputed.setdefault(plate, {Nature.FIXED: 0.0, Nature.VARIABLE: 0.0})
            bucket[c.nature] += c.amount
        else:
            unmatched[c.distribution] = unmatched.get(c.distribution, 0.0) + c.amount

    for target, amount in unmatched.items():
        logger.warning("Cost of %.2f imputed to %r matches no active vehicle", amount, target)
        if issues is not None:
            issues.append(Issue(
                kind=IssueKind.UNMATCHED_IMPUTATION, source="allocation", key=target,
                message=f"{amount:.2f} imputed to a plate with no active vehicle; left unallocated",
            ))

    return PoolBuild(
        pools=CostPools(**sums),
        direct_imputed=imputed,
        unmatched_imputed=unmatched,
        classified_total=total,
    )


def indirect_amortization_total(accounts: Iterable[AmortizationAccount], year: int) -> float:
    """Amortization of non-fleet assets charged in *year*."""
    return sum(a.amount_for(year) for a in accounts if not a.is_fleet_related)


# ═══════════════════════════════════════════════════════════════════════════
# Apportionment
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class AllocationResult:
    allocations: list[VehicleAllocation]
    total_coef_time: float
    total_kms: float
    unallocated: dict[str, float] = field(default_factory=dict)
    """Pool name → amount left unapportioned (zero denominator)."""


def apportion(amount: float, weights: np.ndarray) -> np.ndarray | None:
    """Split *amount* proportionally to *weights*.

    Returns ``None`` when the weights sum to zero (nothing to split over).
    """
    total = float(weights.sum())
    if total <= 0:
        return None
    return amount * weights / total


def allocate(
    pools: CostPools,
    activities: Sequence[VehicleActivity],
    vehicles: Sequence[Vehicle],
    direct_imputed: dict[str, dict[Nature, float]] | None = None,
    indirect_amortization: float = 0.0,
    issues: list[Issue] | None = None,
) -> AllocationResult:
    """Apportion shared pools across the active vehicles.

    *activities* and *vehicles* are parallel sequences; inactive entries are
    ignored.  Vehicle-targeted amounts in *direct_imputed* are keyed by
    normalized plate; a duplicated plate receives them only once.
    """
    if len(activities) != len(vehicles):
        raise ValueError("activities and vehicles must be parallel sequences")
    direct_imputed = direct_imputed or {}

    active = [(v, a) for v, a in zip(vehicles, activities) if a.active]
    coef = np.array([a.time_coefficient for _, a in active], dtype=float)
    kms = np.array([a.kms for _, a in active], dtype=float)
    total_coef = float(coef.sum())
    total_kms = float(kms.sum())

    unallocated: dict[str, float] = {}
    zeros = np.zeros(len(active), dtype=float)

    def _share(name: str, amount: float, weights: np.ndarray) -> np.ndarray:
        shares = apportion(amount, weights)
        if shares is not None:
            return shares
        if amount != 0:
            unallocated[name] = amount
            logger.warning("Pool %s (%.2f) left unallocated: zero denominator", name, amount)
            if issues is not None:
                issues.append(Issue(
                    kind=IssueKind.ZERO_DENOMINATOR, source="allocation", key=name,
                    message=f"{amount:.2f} could not be apportioned (no active time or km)",
                ))
        return zeros

    direct_fixed = _share("direct_fixed", pools.direct_fixed, coef)
    direct_variable = _share("direct_variable", pools.direct_variable, kms)
    indirect_fixed = _share("indirect_fixed", pools.indirect_fixed, coef)
    indirect_variable = _share("indirect_variable", pools.indirect_variable, kms)
    amortization = _share(AMORTIZATION_POOL, indirect_amortization, coef)

    allocations: list[VehicleAllocation] = []
    claimed: set[str] = set()
    for i, (vehicle, activity) in enumerate(active):
        plate = normalize_plate(vehicle.license_plate)
        imputed = {} if plate in claimed else direct_imputed.get(plate, {})
        claimed.add(plate)
        imputed_fixed = imputed.get(Nature.FIXED, 0.0)
        imputed_variable = imputed.get(Nature.VARIABLE, 0.0)
        own_amortization = vehicle.annual_amortization * activity.time_coefficient

        shares = (
            float(direct_fixed[i]), float(direct_variable[i]),
            float(indirect_fixed[i]), float(indirect_variable[i]),
            float(amortization[i]),
        )
        total_cost = math.fsum(shares) + imputed_fixed + imputed_variable + own_amortization

        allocations.append(VehicleAllocation(
            license_plate=vehicle.license_plate,
            months_active=activity.months_active,
            time_coefficient=activity.time_coefficient,
            distance_coefficient=activity.kms / total_kms if total_kms > 0 else 0.0,
            kms=activity.kms,
            direct_fixed_share=shares[0],
            direct_variable_share=shares[1],
            indirect_fixed_share=shares[2],
            indirect_variable_share=shares[3],
            indirect_amortization_share=shares[4],
            own_amortization=own_amortization,
            direct_imputed_fixed=imputed_fixed,
            direct_imputed_variable=imputed_variable,
            total_cost=total_cost,
        ))

    return AllocationResult(
        allocations=allocations,
        total_coef_time=total_coef,
        total_kms=total_kms,
        unallocated=unallocated,
    )


# ═══════════════════════════════════════════════════════════════════════════
# Reconciliation
# ═══════════════════════════════════════════════════════════════════════════

def reconcile(
    build: PoolBuild,
    result: AllocationResult,
    indirect_amortization: float = 0.0,
    tolerance: float = 1e-9,
) -> Reconciliation:
    """Check that every classified cost is either allocated or reported."""
    allocated = math.fsum(
        a.direct_fixed_share + a.direct_variable_share
        + a.indirect_fixed_share + a.indirect_variable_share
        + a.direct_imputed
        for a in result.allocations
    )
    ledger_unallocated = {k: v for k, v in result.unallocated.items() if k != AMORTIZATION_POOL}
    gap = (
        build.classified_total - allocated
        - math.fsum(ledger_unallocated.values())
        - math.fsum(build.unmatched_imputed.values())
    )
    balanced = abs(gap) <= tolerance * max(1.0, abs(build.classified_total))
    if not balanced:
        logger.warning("Allocation does not reconcile: gap of %.6f", gap)

    return Reconciliation(
        classified_cost_total=build.classified_total,
        allocated_cost_total=allocated,
        unallocated=ledger_unallocated,
        unmatched_imputed=dict(build.unmatched_imputed),
        indirect_amortization=indirect_amortization,
        allocated_amortization=math.fsum(a.indirect_amortization_share for a in result.allocations),
        unallocated_amortization=result.unallocated.get(AMORTIZATION_POOL, 0.0),
        gap=gap,
        balanced=balanced,
    )
