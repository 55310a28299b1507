"""Vehicle activity resolver — ownership window, time coefficient and km per year."""

from __future__ import annotations

from datetime import date
from typing import Iterable

from fleet_costing.config.vehicle import Vehicle
from fleet_costing.models.results import VehicleActivity


def months_between(start: date, end: date) -> int:
    """Calendar months touched from *start* to *end*, both inclusive, clamped to 1–12."""
    months = (end.year - start.year) * 12 + (end.month - start.month) + 1
    return max(1, min(12, months))


def resolve_activity(vehicle: Vehicle, year: int) -> VehicleActivity:
    """Resolve how long *vehicle* was owned during *year*.

    A vehicle is inactive when bought after Dec 31 or sold before Jan 1.
    Otherwise the window is clipped to the year and counted in calendar
    months; a vehicle bought on 1 July and kept all year is active for 6
    months (coefficient 0.5).
    """
    year_start = date(year, 1, 1)
    year_end = date(year, 12, 31)
    kms = float(vehicle.annual_kms.get(year, 0.0) or 0.0)

    sale = vehicle.sale_date
    if vehicle.acquisition_date > year_end or (sale is not None and sale < year_start):
        return VehicleActivity(
            license_plate=vehicle.license_plate, year=year, active=False, kms=kms,
        )

    effective_start = max(vehicle.acquisition_date, year_start)
    effective_end = min(sale or year_end, year_end)
    months_active = months_between(effective_start, effective_end)

    return VehicleActivity(
        license_plate=vehicle.license_plate,
        year=year,
        active=True,
        months_active=months_active,
        time_coefficient=months_active / 12,
        kms=kms,
    )


def resolve_fleet_activity(vehicles: Iterable[Vehicle], year: int) -> list[VehicleActivity]:
    """Activity for every vehicle, in input order (inactive ones included)."""
    return [resolve_activity(v, year) for v in vehicles]
