"""Company cost summary per year and year-over-year comparison."""

from __future__ import annotations

import math
from typing import Iterable, Sequence

from fleet_costing.config.classification import CostCenter, Nature
from fleet_costing.config.ledger import LedgerLineItem
from fleet_costing.models.results import (
    ClassifiedCost,
    FieldChange,
    YearComparison,
    YearCostSummary,
)

COMPARED_FIELDS = (
    "direct_fixed", "direct_variable", "indirect_fixed", "indirect_variable",
    "total_direct", "total_indirect", "total_fixed", "total_variable",
    "total", "income", "profit",
)


def _bucket(costs: Sequence[ClassifiedCost], center: CostCenter, nature: Nature) -> float:
    return math.fsum(c.amount for c in costs if c.cost_center is center and c.nature is nature)


def summarize_year_costs(
    year: int,
    costs: Iterable[ClassifiedCost],
    revenues: Iterable[LedgerLineItem] = (),
) -> YearCostSummary:
    """Cost structure of *year* across all classified expenses.

    Unlike the allocation pools, vehicle-targeted costs are included here:
    this is the company view.  ``income`` is PyG revenue.
    """
    costs = [c for c in costs if c.year == year]
    income = math.fsum(r.amount for r in revenues if r.year == year)

    df = _bucket(costs, CostCenter.DIRECT, Nature.FIXED)
    dv = _bucket(costs, CostCenter.DIRECT, Nature.VARIABLE)
    inf = _bucket(costs, CostCenter.INDIRECT, Nature.FIXED)
    inv = _bucket(costs, CostCenter.INDIRECT, Nature.VARIABLE)
    total = df + dv + inf + inv

    return YearCostSummary(
        year=year,
        direct_fixed=df,
        direct_variable=dv,
        indirect_fixed=inf,
        indirect_variable=inv,
        total_direct=df + dv,
        total_indirect=inf + inv,
        total_fixed=df + inf,
        total_variable=dv + inv,
        total=total,
        income=income,
        profit=income - total,
        line_count=len(costs),
    )


def _change(current: float, previous: float) -> FieldChange:
    diff = current - previous
    return FieldChange(
        current=current,
        previous=previous,
        change=diff,
        change_pct=diff / abs(previous) * 100 if previous != 0 else 0.0,
    )


def compare_years(summaries: Iterable[YearCostSummary]) -> list[YearComparison]:
    """Compare each summary with the one for the year immediately before it.

    Years without a predecessor in *summaries* get no comparison.  Output is
    sorted by year, newest first.
    """
    by_year = {s.year: s for s in summaries}
    comparisons: list[YearComparison] = []
    for year in sorted(by_year, reverse=True):
        previous = by_year.get(year - 1)
        if previous is None:
            continue
        current = by_year[year]
        comparisons.append(YearComparison(
            year=year,
            previous_year=previous.year,
            changes={
                name: _change(getattr(current, name), getattr(previous, name))
                for name in COMPARED_FIELDS
            },
        ))
    return comparisons
