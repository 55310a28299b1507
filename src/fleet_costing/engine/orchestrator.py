"""Orchestrator — full cost analysis pipeline for one or more fiscal years.

  raw snapshot
    → coerce rows (bad rows skipped + reported)
    → normalize ledger → classify expenses
    → resolve vehicle activity
    → build pools → allocate → profitability
    → cost/income summaries → reconciliation → diagnostics

Entry points:
  - ``run_analysis(snapshot, year)``      → ``YearAnalysis``
  - ``run_multi_year(snapshot, years)``   → ``MultiYearAnalysis``
  - ``available_years(snapshot)``         → years with income or PyG data

Everything here is a pure function of its inputs: no I/O, no module state.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Iterable

from fleet_costing.config.amortization import AmortizationAccount
from fleet_costing.config.classification import CostClassification
from fleet_costing.config.income import YearlyIncomeData
from fleet_costing.config.settings import AnalysisSettings
from fleet_costing.config.snapshot import FleetSnapshot
from fleet_costing.config.vehicle import Vehicle
from fleet_costing.engine.activity import resolve_fleet_activity
from fleet_costing.engine.allocation import (
    allocate,
    build_cost_pools,
    indirect_amortization_total,
    reconcile,
)
from fleet_costing.engine.classifier import ClassificationTable, classify_costs
from fleet_costing.engine.normalizer import NormalizedLedger, normalize_incomes, normalize_ledger
from fleet_costing.engine.rows import coerce_rows
from fleet_costing.finance.cost_summary import compare_years, summarize_year_costs
from fleet_costing.finance.income_summary import find_year, summarize_income
from fleet_costing.finance.profitability import compute_profitability
from fleet_costing.models.results import (
    AnalysisDiagnostics,
    ClassifiedCost,
    Issue,
    IssueKind,
    MultiYearAnalysis,
    Reconciliation,
    YearAnalysis,
)

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# Snapshot preparation (shared by every year)
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class PreparedSnapshot:
    """Validated, year-independent view of a snapshot.  Treated as read-only."""

    ledger: NormalizedLedger
    table: ClassificationTable
    vehicles: list[Vehicle]
    incomes: list[YearlyIncomeData]
    amortization: list[AmortizationAccount]
    issues: list[Issue] = field(default_factory=list)
    """Coercion and income-cell issues for the non-ledger collections."""


def _as_snapshot(snapshot: FleetSnapshot | dict[str, Any]) -> FleetSnapshot:
    if isinstance(snapshot, FleetSnapshot):
        return snapshot
    return FleetSnapshot.model_validate(snapshot)


def prepare_snapshot(
    snapshot: FleetSnapshot | dict[str, Any],
    settings: AnalysisSettings | None = None,
) -> PreparedSnapshot:
    """Validate every collection once."""
    settings = settings or AnalysisSettings()
    snapshot = _as_snapshot(snapshot)
    issues: list[Issue] = []

    classifications = [c for _, c in coerce_rows(
        snapshot.classifications, CostClassification, "classifications", issues)]
    vehicles = [v for _, v in coerce_rows(snapshot.vehicles, Vehicle, "vehicles", issues)]
    incomes = [d for _, d in coerce_rows(
        normalize_incomes(snapshot.incomes, issues), YearlyIncomeData, "incomes", issues)]
    amortization = [a for _, a in coerce_rows(
        snapshot.amortization, AmortizationAccount, "amortization", issues)]

    return PreparedSnapshot(
        ledger=normalize_ledger(snapshot.ledger, settings),
        table=ClassificationTable(classifications, settings.min_account_code_digits),
        vehicles=vehicles,
        incomes=incomes,
        amortization=amortization,
        issues=issues,
    )


def _check_year(year: Any) -> int:
    if isinstance(year, bool) or not isinstance(year, int):
        raise ValueError(f"year must be an integer, got {year!r}")
    return year


# ═══════════════════════════════════════════════════════════════════════════
# Public entry points
# ═══════════════════════════════════════════════════════════════════════════

def available_years(
    snapshot: FleetSnapshot | dict[str, Any] | PreparedSnapshot,
    settings: AnalysisSettings | None = None,
) -> list[int]:
    """Years with income data or PyG rows, newest first.

    Years at or below ``settings.min_year`` are ignored.
    """
    settings = settings or AnalysisSettings()
    prepared = snapshot if isinstance(snapshot, PreparedSnapshot) else prepare_snapshot(snapshot, settings)
    years = {d.year for d in prepared.incomes} | prepared.ledger.pyg_years
    return sorted((y for y in years if y > settings.min_year), reverse=True)


def run_analysis(
    snapshot: FleetSnapshot | dict[str, Any] | PreparedSnapshot,
    year: int,
    settings: AnalysisSettings | None = None,
) -> YearAnalysis:
    """Run the full pipeline for one fiscal year."""
    year = _check_year(year)
    settings = settings or AnalysisSettings()
    prepared = snapshot if isinstance(snapshot, PreparedSnapshot) else prepare_snapshot(snapshot, settings)
    return _analyze_year(prepared, year, settings)


def run_multi_year(
    snapshot: FleetSnapshot | dict[str, Any],
    years: Iterable[int] | None = None,
    settings: AnalysisSettings | None = None,
) -> MultiYearAnalysis:
    """Analyse several years from one snapshot.

    ``years`` defaults to ``available_years``.  Results are ordered newest
    first and each year is compared with the year before it when present.
    """
    settings = settings or AnalysisSettings()
    prepared = prepare_snapshot(snapshot, settings)
    if years is None:
        wanted = available_years(prepared, settings)
    else:
        wanted = sorted({_check_year(y) for y in years}, reverse=True)

    analyses = [_analyze_year(prepared, y, settings) for y in wanted]
    return MultiYearAnalysis(
        years=analyses,
        comparisons=compare_years(a.cost_summary for a in analyses),
    )


# ═══════════════════════════════════════════════════════════════════════════
# One year
# ═══════════════════════════════════════════════════════════════════════════

def _analyze_year(prepared: PreparedSnapshot, year: int, settings: AnalysisSettings) -> YearAnalysis:
    issues: list[Issue] = [
        i for i in (*prepared.issues, *prepared.ledger.issues) if i.year is None or i.year == year
    ]

    ledger = prepared.ledger.for_year(year)
    costs = classify_costs(ledger.expenses, prepared.table, issues)

    activities = resolve_fleet_activity(prepared.vehicles, year)
    active_vehicles = [v for v, a in zip(prepared.vehicles, activities) if a.active]

    build = build_cost_pools(costs, (v.license_plate for v in active_vehicles), settings, issues)
    amortization = indirect_amortization_total(prepared.amortization, year)
    allocation = allocate(
        build.pools, activities, prepared.vehicles,
        build.direct_imputed, amortization, issues,
    )

    yearly_income = find_year(prepared.incomes, year)
    metrics, fleet = compute_profitability(allocation.allocations, active_vehicles, yearly_income, issues)
    reconciliation = reconcile(build, allocation, amortization, settings.conservation_tolerance)

    logger.info(
        "Analysed %d: %d active vehicles, %.2f classified cost, %.2f fleet cost",
        year, len(active_vehicles), build.classified_total, fleet.total_cost,
    )

    return YearAnalysis(
        year=year,
        pools=build.pools,
        indirect_amortization=amortization,
        activities=activities,
        vehicles=metrics,
        fleet=fleet,
        cost_summary=summarize_year_costs(year, costs, ledger.revenues),
        income_summary=summarize_income(yearly_income, year),
        reconciliation=reconciliation,
        diagnostics=_build_diagnostics(ledger, costs, issues, reconciliation),
    )


def _build_diagnostics(
    ledger: NormalizedLedger,
    costs: list[ClassifiedCost],
    issues: list[Issue],
    reconciliation: Reconciliation,
) -> AnalysisDiagnostics:
    counts = Counter(i.kind for i in issues)
    unclassified = sorted({c.account_code for c in costs if c.match == "default"})
    substring = sorted({c.account_code for c in costs if c.match == "substring"})
    ambiguous = [i.key for i in issues if i.kind is IssueKind.AMBIGUOUS_MATCH]

    warnings: list[str] = []
    if counts[IssueKind.SKIPPED_ROW]:
        warnings.append(f"{counts[IssueKind.SKIPPED_ROW]} malformed rows skipped")
    if counts[IssueKind.MALFORMED_AMOUNT]:
        warnings.append(f"{counts[IssueKind.MALFORMED_AMOUNT]} unparseable amounts treated as 0")
    if unclassified:
        warnings.append(f"{len(unclassified)} unclassified accounts (default classification applied)")
    if substring:
        warnings.append(f"{len(substring)} accounts classified by partial text match")
    if ambiguous:
        warnings.append(f"{len(ambiguous)} vehicles matched more than one income record")
    for pool, amount in reconciliation.unallocated.items():
        warnings.append(f"{amount:.2f} in {pool} could not be allocated (zero denominator)")
    if reconciliation.unallocated_amortization:
        warnings.append(
            f"{reconciliation.unallocated_amortization:.2f} of indirect amortization could not be allocated"
        )
    for target, amount in reconciliation.unmatched_imputed.items():
        warnings.append(f"{amount:.2f} imputed to {target!r}, which is not an active vehicle")
    if not reconciliation.balanced:
        warnings.append(f"allocation does not reconcile (gap {reconciliation.gap:.6f})")

    return AnalysisDiagnostics(
        issues=issues,
        malformed_amounts=counts[IssueKind.MALFORMED_AMOUNT],
        skipped_rows=counts[IssueKind.SKIPPED_ROW],
        balance_rows=ledger.balance_rows,
        header_rows=ledger.header_rows,
        deduplicated_rows=ledger.deduplicated_rows,
        excluded_entries=counts[IssueKind.EXCLUDED_ENTRY],
        unclassified_accounts=unclassified,
        substring_matches=substring,
        ambiguous_matches=ambiguous,
        warnings=warnings,
    )
