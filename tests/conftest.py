"""Shared test fixtures — small fleet snapshots and the sample scenario."""

from __future__ import annotations

from pathlib import Path

import pytest

from fleet_costing.config import (
    AnalysisSettings,
    CostClassification,
    CostCenter,
    DistributionBasis,
    Nature,
    Vehicle,
)

SAMPLE_FLEET = Path(__file__).resolve().parent.parent / "scenarios" / "sample_fleet.yaml"


@pytest.fixture
def settings() -> AnalysisSettings:
    return AnalysisSettings()


@pytest.fixture
def sample_fleet_path() -> Path:
    return SAMPLE_FLEET


@pytest.fixture
def coach_a() -> Vehicle:
    return Vehicle(
        license_plate="1111AAA",
        acquisition_date="2020-01-01",
        annual_amortization=12_000,
        annual_kms={2024: 1_000},
    )


@pytest.fixture
def coach_b() -> Vehicle:
    return Vehicle(
        license_plate="2222BBB",
        acquisition_date="2020-01-01",
        annual_amortization=6_000,
        annual_kms={2024: 3_000},
    )


@pytest.fixture
def classifications() -> list[CostClassification]:
    return [
        CostClassification(
            cost_type="62900000003", cost_center=CostCenter.DIRECT, nature=Nature.VARIABLE,
            distribution="General", distribution_basis=DistributionBasis.DISTANCE,
        ),
        CostClassification(
            cost_type="64000000001", cost_center=CostCenter.DIRECT, nature=Nature.FIXED,
            distribution="General", distribution_basis=DistributionBasis.TIME,
        ),
        CostClassification(
            cost_type="62800000001", cost_center=CostCenter.INDIRECT, nature=Nature.FIXED,
            distribution="General", distribution_basis=DistributionBasis.TIME,
        ),
        CostClassification(
            cost_type="62900000007", cost_center=CostCenter.DIRECT, nature=Nature.VARIABLE,
            distribution="1111AAA", distribution_basis=DistributionBasis.DISTANCE,
        ),
    ]


@pytest.fixture
def two_coach_snapshot() -> dict:
    """Two coaches active all of 2024 with 1 000 and 3 000 km.

    Shared pools: direct variable 4 000 (fuel), direct fixed 24 000
    (wages), indirect fixed 1 200 (utilities).  500 of tyres are imputed
    to 1111AAA; 8 000 of revenue sits on a 7-account.
    """
    return {
        "ledger": [
            {"year": 2024, "month": 0, "documentType": "PyG",
             "concept": "70500000001 PRESTACION DE SERVICIOS", "amount": "8.000,00"},
            {"year": 2024, "month": 0, "documentType": "PyG",
             "concept": "62900000003 COMBUSTIBLE", "amount": "-4.000,00"},
            {"year": 2024, "month": 0, "documentType": "PyG",
             "concept": "64000000001 SUELDOS", "amount": -24_000},
            {"year": 2024, "month": 0, "documentType": "PyG",
             "concept": "62800000001 SUMINISTROS", "amount": "-1.200"},
            {"year": 2024, "month": 0, "documentType": "PyG",
             "concept": "62900000007 NEUMATICOS", "amount": "-500"},
            {"year": 2024, "month": 0, "documentType": "PyG",
             "concept": "TOTAL GASTOS", "amount": "-29.700,00"},
            {"year": 2024, "month": 0, "documentType": "Balance",
             "concept": "21800000001 ELEMENTOS DE TRANSPORTE", "amount": "300.000,00"},
        ],
        "classifications": [
            {"costType": "62900000003", "costCenter": "DIRECTO", "nature": "VARIABLE",
             "distribution": "General", "distributionBasis": "Kilómetros"},
            {"costType": "64000000001", "costCenter": "DIRECTO", "nature": "FIJO",
             "distribution": "General", "distributionBasis": "Meses"},
            {"costType": "62800000001", "costCenter": "INDIRECTO", "nature": "FIJO",
             "distribution": "General", "distributionBasis": "Meses"},
            {"costType": "62900000007", "costCenter": "DIRECTO", "nature": "VARIABLE",
             "distribution": "1111AAA", "distributionBasis": "Kilómetros"},
        ],
        "vehicles": [
            {"licensePlate": "1111AAA", "acquisitionDate": "01-01-2020",
             "annualAmortization": 12_000, "annualKms": {"2024": 1_000}},
            {"licensePlate": "2222BBB", "acquisitionDate": "01-01-2020",
             "annualAmortization": 6_000, "annualKms": {"2024": 3_000}},
        ],
        "incomes": [
            {"year": 2024, "ownFleet": [
                {"licensePlate": "1111AAA", "income": {"1": 10_000, "2": 5_000}},
                {"licensePlate": "2222BBB", "income": {"6": 30_000}},
            ], "subcontracted": {"3": 2_000}},
        ],
        "amortization": [
            {"id": "A1", "name": "Nave", "isFleetRelated": False, "annualAmount": 2_000},
            {"id": "A2", "name": "Autocares", "isFleetRelated": True, "annualAmount": 18_000},
        ],
    }
