"""Tests for engine/activity.py — ownership window and time coefficient."""

from __future__ import annotations

from datetime import date

import pytest

from fleet_costing.config import Vehicle
from fleet_costing.engine.activity import months_between, resolve_activity, resolve_fleet_activity


def _vehicle(acquired: str, sold: str | None = None, kms: dict | None = None) -> Vehicle:
    return Vehicle(
        license_plate="1234ABC",
        acquisition_date=acquired,
        sale_date=sold,
        annual_kms=kms or {},
    )


class TestMonthsBetween:

    def test_same_month(self):
        assert months_between(date(2024, 3, 1), date(2024, 3, 31)) == 1

    def test_full_year(self):
        assert months_between(date(2024, 1, 1), date(2024, 12, 31)) == 12

    def test_clamped(self):
        assert months_between(date(2022, 1, 1), date(2024, 12, 31)) == 12


class TestResolveActivity:

    def test_acquired_first_of_july(self):
        a = resolve_activity(_vehicle("2024-07-01"), 2024)
        assert a.active
        assert a.months_active == 6
        assert a.time_coefficient == pytest.approx(0.5)

    def test_owned_all_year(self):
        a = resolve_activity(_vehicle("2019-03-15"), 2024)
        assert a.months_active == 12
        assert a.time_coefficient == 1.0

    def test_sold_mid_year(self):
        a = resolve_activity(_vehicle("2016-02-01", "30-09-2024"), 2024)
        assert a.months_active == 9
        assert a.time_coefficient == pytest.approx(0.75)

    def test_bought_and_sold_same_year(self):
        a = resolve_activity(_vehicle("2024-03-10", "2024-05-20"), 2024)
        assert a.months_active == 3

    def test_acquired_last_day_of_year(self):
        a = resolve_activity(_vehicle("31-12-2024"), 2024)
        assert a.active
        assert a.months_active == 1

    def test_acquired_after_year_inactive(self):
        a = resolve_activity(_vehicle("2025-01-01", kms={2024: 500}), 2024)
        assert not a.active
        assert a.months_active == 0
        assert a.time_coefficient == 0.0
        assert a.kms == 500

    def test_sold_before_year_inactive(self):
        a = resolve_activity(_vehicle("2015-01-01", "2023-12-31"), 2024)
        assert not a.active
        assert a.time_coefficient == 0.0

    def test_missing_kms_is_zero(self):
        assert resolve_activity(_vehicle("2020-01-01", kms={2023: 100}), 2024).kms == 0.0

    @pytest.mark.parametrize("acquired, sold", [
        ("2024-01-01", None), ("2024-06-15", None), ("2010-01-01", "2024-01-01"),
        ("2024-12-01", "2024-12-02"), ("2030-01-01", None), ("2000-01-01", "2001-01-01"),
    ])
    def test_coefficient_bounds(self, acquired, sold):
        a = resolve_activity(_vehicle(acquired, sold), 2024)
        assert 0.0 <= a.time_coefficient <= 1.0
        assert 0 <= a.months_active <= 12
        assert a.active == (a.months_active >= 1)

    def test_fleet_keeps_order_and_inactive(self):
        vehicles = [
            Vehicle(license_plate="A", acquisition_date="2020-01-01"),
            Vehicle(license_plate="B", acquisition_date="2026-01-01"),
            Vehicle(license_plate="C", acquisition_date="2024-10-01"),
        ]
        activities = resolve_fleet_activity(vehicles, 2024)
        assert [a.license_plate for a in activities] == ["A", "B", "C"]
        assert [a.active for a in activities] == [True, False, True]
        assert activities[2].months_active == 3


class TestVehicleModel:

    def test_sale_before_acquisition_rejected(self):
        with pytest.raises(ValueError):
            _vehicle("2024-05-01", "2024-04-01")

    def test_id_defaults_to_plate(self):
        assert _vehicle("2020-01-01").id == "1234ABC"

    def test_unrecognised_date_rejected(self):
        with pytest.raises(ValueError):
            _vehicle("July 2024")

    def test_negative_kms_rejected(self):
        with pytest.raises(ValueError):
            _vehicle("2020-01-01", kms={2024: -1000})

    def test_zero_kms_allowed(self):
        assert _vehicle("2020-01-01", kms={2024: 0}).annual_kms == {2024: 0}
