"""Amortization accounts — non-vehicle depreciation shared across the fleet."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fleet_costing.config.vehicle import parse_date


class AmortizationAccount(BaseModel):
    """One amortization schedule from the fixed-asset register.

    ``is_fleet_related`` is supplied by the caller.  Fleet-related accounts
    are already carried by each vehicle's ``annual_amortization`` and are
    excluded from the shared (indirect) amortization pool.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = ""
    name: str = ""
    is_fleet_related: bool = Field(default=False, alias="isFleetRelated")
    total_value: float = Field(default=0.0, alias="totalValue")
    annual_amount: float = Field(default=0.0, alias="annualAmount")
    annual_values: dict[int, float] = Field(default_factory=dict, alias="annualValues")
    start_date: date | None = Field(default=None, alias="startDate")
    end_date: date | None = Field(default=None, alias="endDate")

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _parse_dates(cls, v):
        return parse_date(v)

    @field_validator("id", "name", mode="before")
    @classmethod
    def _as_text(cls, v):
        return "" if v is None else str(v)

    def runs_in(self, year: int) -> bool:
        """True when the optional start/end window overlaps *year*."""
        if self.start_date is not None and self.start_date > date(year, 12, 31):
            return False
        if self.end_date is not None and self.end_date < date(year, 1, 1):
            return False
        return True

    def amount_for(self, year: int) -> float:
        """Amortization charged in *year*.

        An explicit non-zero ``annual_values[year]`` wins; otherwise the flat
        ``annual_amount`` applies while the account is running.
        """
        explicit = self.annual_values.get(year)
        if explicit:
            return float(explicit)
        return float(self.annual_amount) if self.runs_in(year) else 0.0
