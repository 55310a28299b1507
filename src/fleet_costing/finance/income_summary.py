"""Monthly income summary — own fleet vs subcontracted."""

from __future__ import annotations

import math
from typing import Iterable

from fleet_costing.config.income import YearlyIncomeData
from fleet_costing.models.results import MonthlyIncomeRow, MonthlyIncomeSummary


def find_year(incomes: Iterable[YearlyIncomeData], year: int) -> YearlyIncomeData | None:
    """First income block for *year*, or None."""
    return next((d for d in incomes if d.year == year), None)


def summarize_income(data: YearlyIncomeData | None, year: int | None = None) -> MonthlyIncomeSummary:
    """Month-by-month income table for one year.

    Months with no data are reported as zeros so the table always has 12
    rows.  Vehicle totals are keyed by plate, falling back to vehicle id and
    then id.
    """
    if data is None:
        if year is None:
            raise ValueError("year is required when there is no income data")
        data = YearlyIncomeData(year=year)

    rows: list[MonthlyIncomeRow] = []
    for month in range(1, 13):
        own = math.fsum(v.income.get(month, 0.0) for v in data.own_fleet)
        sub = data.subcontracted.get(month, 0.0)
        rows.append(MonthlyIncomeRow(month=month, own_fleet=own, subcontracted=sub, total=own + sub))

    vehicle_totals: dict[str, float] = {}
    for v in data.own_fleet:
        key = v.license_plate or v.vehicle_id or v.id or ""
        vehicle_totals[key] = vehicle_totals.get(key, 0.0) + v.total

    own_total = math.fsum(v.total for v in data.own_fleet)
    sub_total = math.fsum(data.subcontracted.values())
    grand = own_total + sub_total

    return MonthlyIncomeSummary(
        year=data.year,
        months=rows,
        vehicle_totals=vehicle_totals,
        own_total=own_total,
        subcontracted_total=sub_total,
        grand_total=grand,
        own_share=own_total / grand if grand > 0 else 0.0,
    )
