"""Input models — ledger, classification, fleet, income, amortization, settings."""

from fleet_costing.config.ledger import DocumentType, LedgerLineItem, LedgerRow
from fleet_costing.config.classification import (
    DEFAULT_CLASSIFICATION,
    CostCenter,
    CostClassification,
    DistributionBasis,
    Nature,
)
from fleet_costing.config.vehicle import Vehicle
from fleet_costing.config.amortization import AmortizationAccount
from fleet_costing.config.income import VehicleIncome, YearlyIncomeData
from fleet_costing.config.settings import AnalysisSettings
from fleet_costing.config.snapshot import FleetSnapshot

__all__ = [
    "DocumentType",
    "LedgerRow",
    "LedgerLineItem",
    "CostCenter",
    "Nature",
    "DistributionBasis",
    "CostClassification",
    "DEFAULT_CLASSIFICATION",
    "Vehicle",
    "AmortizationAccount",
    "VehicleIncome",
    "YearlyIncomeData",
    "AnalysisSettings",
    "FleetSnapshot",
]
