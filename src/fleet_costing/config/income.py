"""Monthly income — own-fleet revenue per vehicle plus a subcontracted bucket."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _clean_months(v):
    # Blank cells in the income sheet come through as None or "".
    if isinstance(v, dict):
        return {k: val for k, val in v.items() if val not in (None, "")}
    return v


def _check_months(v: dict[int, float]) -> dict[int, float]:
    bad = sorted(m for m in v if not 1 <= m <= 12)
    if bad:
        raise ValueError(f"month keys must be 1-12, got {bad}")
    return v


class VehicleIncome(BaseModel):
    """One own-fleet row of the monthly income sheet.

    Older rows identify the vehicle through ``vehicle_id`` or ``id`` instead
    of ``license_plate``; all three are kept so the matcher can try them in
    order.
    """

    model_config = ConfigDict(populate_by_name=True)

    license_plate: str | None = Field(default=None, alias="licensePlate")
    vehicle_id: str | None = Field(default=None, alias="vehicleId")
    id: str | None = None
    assigned_number: int | None = Field(default=None, alias="assignedNumber")
    income: dict[int, float] = Field(
        default_factory=dict,
        description="Month (1–12) → income amount",
    )

    @field_validator("license_plate", "vehicle_id", "id", mode="before")
    @classmethod
    def _as_text(cls, v):
        return None if v is None else str(v)

    @field_validator("income", mode="before")
    @classmethod
    def _blank_months(cls, v):
        return _clean_months(v)

    @field_validator("income")
    @classmethod
    def _valid_months(cls, v):
        return _check_months(v)

    @property
    def total(self) -> float:
        return sum(self.income.values())


class YearlyIncomeData(BaseModel):
    """All income recorded for one calendar year."""

    model_config = ConfigDict(populate_by_name=True)

    year: int
    own_fleet: list[VehicleIncome] = Field(default_factory=list, alias="ownFleet")
    subcontracted: dict[int, float] = Field(
        default_factory=dict,
        description="Month (1–12) → income from subcontracted services (not tied to a vehicle)",
    )

    @field_validator("subcontracted", mode="before")
    @classmethod
    def _blank_months(cls, v):
        return _clean_months(v)

    @field_validator("subcontracted")
    @classmethod
    def _valid_months(cls, v):
        return _check_months(v)
