"""Tabular exports — pandas frames for the presentation layer."""

from __future__ import annotations

from typing import Iterable

import pandas as pd

from fleet_costing.finance.cost_summary import COMPARED_FIELDS
from fleet_costing.models.results import YearAnalysis, YearCostSummary

VEHICLE_COLUMNS = [
    "license_plate", "months_active", "time_coefficient", "distance_coefficient", "kms",
    "direct_fixed_share", "direct_variable_share", "direct_imputed_fixed", "direct_imputed_variable",
    "indirect_fixed_share", "indirect_variable_share",
    "own_amortization", "indirect_amortization_share",
    "total_fixed_cost", "total_variable_cost", "total_cost",
    "income", "profit", "contribution_ratio", "break_even_revenue",
    "cost_per_km", "cost_per_km_fixed", "cost_per_km_variable",
]


def vehicle_metrics_frame(analysis: YearAnalysis, include_totals: bool = True) -> pd.DataFrame:
    """One row per active vehicle, plus a ``TOTAL`` row for the fleet."""
    rows = [m.model_dump(include=set(VEHICLE_COLUMNS)) for m in analysis.vehicles]
    if include_totals and rows:
        totals = analysis.fleet.model_dump()
        totals["license_plate"] = "TOTAL"
        totals["months_active"] = None
        totals["distance_coefficient"] = 1.0 if analysis.fleet.kms > 0 else 0.0
        totals["cost_per_km_fixed"] = (
            analysis.fleet.total_fixed_cost / analysis.fleet.kms if analysis.fleet.kms > 0 else 0.0
        )
        totals["cost_per_km_variable"] = (
            analysis.fleet.total_variable_cost / analysis.fleet.kms if analysis.fleet.kms > 0 else 0.0
        )
        rows.append({col: totals.get(col) for col in VEHICLE_COLUMNS})
    frame = pd.DataFrame(rows, columns=VEHICLE_COLUMNS)
    frame.insert(0, "year", analysis.year)
    return frame


def cost_evolution_frame(summaries: Iterable[YearCostSummary]) -> pd.DataFrame:
    """Cost summary per year, oldest first, indexed by year."""
    records = [s.model_dump(include={"year", *COMPARED_FIELDS}) for s in summaries]
    frame = pd.DataFrame(records, columns=["year", *COMPARED_FIELDS])
    return frame.sort_values("year").set_index("year")
