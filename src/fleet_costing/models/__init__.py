"""Result models — analysis output contracts."""

from fleet_costing.models.results import (
    AnalysisDiagnostics,
    ClassifiedCost,
    CostPools,
    FleetTotals,
    Issue,
    IssueKind,
    MonthlyIncomeSummary,
    MultiYearAnalysis,
    Reconciliation,
    VehicleActivity,
    VehicleAllocation,
    VehicleMetrics,
    YearAnalysis,
    YearComparison,
    YearCostSummary,
)

__all__ = [
    "AnalysisDiagnostics",
    "ClassifiedCost",
    "CostPools",
    "FleetTotals",
    "Issue",
    "IssueKind",
    "MonthlyIncomeSummary",
    "MultiYearAnalysis",
    "Reconciliation",
    "VehicleActivity",
    "VehicleAllocation",
    "VehicleMetrics",
    "YearAnalysis",
    "YearComparison",
    "YearCostSummary",
]
