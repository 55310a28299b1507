"""Engine — ledger normalization, classification, activity and allocation."""

from fleet_costing.engine.normalizer import (
    NormalizedLedger,
    deduplicate_periods,
    extract_account_code,
    normalize_ledger,
    parse_amount,
)
from fleet_costing.engine.classifier import ClassificationTable, classify, classify_costs
from fleet_costing.engine.activity import resolve_activity, resolve_fleet_activity
from fleet_costing.engine.allocation import (
    AllocationResult,
    PoolBuild,
    allocate,
    build_cost_pools,
    indirect_amortization_total,
    reconcile,
)
from fleet_costing.engine.orchestrator import available_years, run_analysis, run_multi_year

__all__ = [
    "parse_amount",
    "extract_account_code",
    "deduplicate_periods",
    "normalize_ledger",
    "NormalizedLedger",
    "ClassificationTable",
    "classify",
    "classify_costs",
    "resolve_activity",
    "resolve_fleet_activity",
    "PoolBuild",
    "AllocationResult",
    "build_cost_pools",
    "indirect_amortization_total",
    "allocate",
    "reconcile",
    # Pipeline
    "run_analysis",
    "run_multi_year",
    "available_years",
]
