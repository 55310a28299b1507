"""Vehicle master data — one row per coach/bus owned by the operator."""

from __future__ import annotations

import re
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_EU_DATE = re.compile(r"^(\d{1,2})[-/](\d{1,2})[-/](\d{4})$")
_ISO_DATE = re.compile(r"^(\d{4})[-/](\d{1,2})[-/](\d{1,2})")


def parse_date(value) -> date | None:
    """Coerce a sheet date cell into a ``date``.

    Accepts ``date``/``datetime`` objects, ISO ``YYYY-MM-DD`` (also with
    ``/`` separators or a trailing time part) and European ``DD-MM-YYYY`` /
    ``DD/MM/YYYY``.  Blank values give ``None``; anything else raises
    ``ValueError``.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    m = _EU_DATE.match(text)
    if m:
        return date(int(m.group(3)), int(m.group(2)), int(m.group(1)))
    m = _ISO_DATE.match(text)
    if m:
        return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    raise ValueError(f"unrecognised date: {value!r}")


def normalize_plate(value) -> str:
    """Licence plate in comparable form: upper case, all whitespace removed."""
    if value is None:
        return ""
    return re.sub(r"\s+", "", str(value)).upper()


class Vehicle(BaseModel):
    """One fleet vehicle.  ``license_plate`` is the natural key."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default="", description="Store identifier; defaults to the licence plate")
    license_plate: str = Field(alias="licensePlate", min_length=1)
    assigned_number: int | None = Field(default=None, alias="assignedNumber")
    vehicle_type: str | None = Field(default=None, alias="type", description="Normal / Micro / Grande")
    seats: int | None = None
    acquisition_date: date = Field(alias="acquisitionDate")
    sale_date: date | None = Field(default=None, alias="saleDate")
    acquisition_value: float = Field(default=0.0, ge=0, alias="acquisitionValue")
    sale_value: float | None = Field(default=None, alias="saleValue")
    annual_amortization: float = Field(default=0.0, alias="annualAmortization")
    annual_kms: dict[int, float] = Field(
        default_factory=dict, alias="annualKms",
        description="Kilometres driven per calendar year, e.g. {2023: 120000}",
    )

    @field_validator("acquisition_date", "sale_date", mode="before")
    @classmethod
    def _parse_dates(cls, v):
        return parse_date(v)

    @field_validator("license_plate", "id", mode="before")
    @classmethod
    def _as_text(cls, v):
        return "" if v is None else str(v).strip()

    @field_validator("annual_kms", mode="before")
    @classmethod
    def _drop_blank_kms(cls, v):
        if isinstance(v, dict):
            return {k: val for k, val in v.items() if val not in (None, "")}
        return v

    @field_validator("annual_kms")
    @classmethod
    def _non_negative_kms(cls, v):
        for year, kms in v.items():
            if kms < 0:
                raise ValueError(f"negative kilometres for {year}: {kms}")
        return v

    @model_validator(mode="after")
    def _check_dates(self) -> "Vehicle":
        if self.sale_date is not None and self.sale_date < self.acquisition_date:
            raise ValueError(
                f"sale_date {self.sale_date} precedes acquisition_date {self.acquisition_date}"
            )
        if not self.id:
            self.id = self.license_plate
        return self
