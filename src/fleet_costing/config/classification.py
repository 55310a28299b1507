"""Cost classification — how an account is treated by the allocation engine.

Rows are maintained by hand in the classification sheet and are read-only
here.  Enum values accept both the English names and the Spanish labels
stored by the legacy dashboard (``DIRECTO``, ``FIJO``, ``Kilómetros``…).
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _LabelledEnum(str, Enum):
    """Enum that also resolves the legacy labels listed in ``_aliases``."""

    @classmethod
    def _missing_(cls, value):
        if not isinstance(value, str):
            return None
        folded = value.strip().casefold()
        for member in cls:
            if member.value.casefold() == folded:
                return member
        for label, name in cls._aliases().items():
            if label.casefold() == folded:
                return cls[name]
        return None

    @classmethod
    def _aliases(cls) -> dict[str, str]:
        return {}


class CostCenter(_LabelledEnum):
    DIRECT = "DIRECT"
    INDIRECT = "INDIRECT"

    @classmethod
    def _aliases(cls) -> dict[str, str]:
        return {"DIRECTO": "DIRECT", "INDIRECTO": "INDIRECT"}


class Nature(_LabelledEnum):
    FIXED = "FIXED"
    VARIABLE = "VARIABLE"

    @classmethod
    def _aliases(cls) -> dict[str, str]:
        return {"FIJO": "FIXED"}


class DistributionBasis(_LabelledEnum):
    DISTANCE = "DISTANCE"
    TIME = "TIME"

    @classmethod
    def _aliases(cls) -> dict[str, str]:
        return {"Kilómetros": "DISTANCE", "Kilometros": "DISTANCE", "Meses": "TIME"}


class CostClassification(BaseModel):
    """One row of the classification table."""

    model_config = ConfigDict(populate_by_name=True)

    cost_type: str = Field(
        alias="costType",
        description="Account code, or a legacy 'code + description' string",
    )
    cost_center: CostCenter = Field(default=CostCenter.INDIRECT, alias="costCenter")
    nature: Nature = Nature.FIXED
    distribution: str = Field(
        default="General",
        description="'General' (or another shared bucket) or a vehicle licence plate",
    )
    distribution_basis: DistributionBasis = Field(
        default=DistributionBasis.TIME, alias="distributionBasis",
    )

    @field_validator("cost_type", "distribution", mode="before")
    @classmethod
    def _as_text(cls, v):
        # Sheet cells holding bare account codes arrive as numbers.
        return "" if v is None else str(v).strip()


DEFAULT_CLASSIFICATION = CostClassification(
    cost_type="",
    cost_center=CostCenter.INDIRECT,
    nature=Nature.FIXED,
    distribution="General",
    distribution_basis=DistributionBasis.TIME,
)
"""Applied to any account without a row in the classification table."""
