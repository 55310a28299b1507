"""Top-level input bundle — everything one analysis run reads."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class FleetSnapshot(BaseModel):
    """Already-fetched collections from the store.

    Rows are kept loosely typed here (plain dicts or the matching config
    models) so that a single malformed row is reported and skipped by the
    orchestrator instead of rejecting the whole snapshot.
    """

    model_config = ConfigDict(populate_by_name=True)

    ledger: list[Any] = Field(default_factory=list, description="Ledger rows (see LedgerRow)")
    classifications: list[Any] = Field(
        default_factory=list, description="Classification rows (see CostClassification)",
    )
    vehicles: list[Any] = Field(default_factory=list, description="Vehicle rows (see Vehicle)")
    incomes: list[Any] = Field(
        default_factory=list, description="One YearlyIncomeData per year",
    )
    amortization: list[Any] = Field(
        default_factory=list, description="Amortization accounts (see AmortizationAccount)",
    )
