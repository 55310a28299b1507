"""Ledger rows — raw accounting lines and their normalized form."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DocumentType(str, Enum):
    """Accounting document a ledger row was imported from."""

    BALANCE = "Balance"
    PYG = "PyG"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            for member in cls:
                if member.value.casefold() == value.strip().casefold():
                    return member
        return None


class LedgerRow(BaseModel):
    """One row as it arrives from the financial store.

    ``amount`` is left untyped: legacy sheets mix floats, plain numeric
    strings and Spanish-formatted strings such as ``"1.234,56"``.  The
    normalizer owns the parsing.
    """

    model_config = ConfigDict(populate_by_name=True)

    year: int
    month: int = Field(default=0, ge=0, le=12, description="0 = annual total, 1–12 = single month")
    document_type: DocumentType = Field(alias="documentType")
    concept: str = ""
    amount: Any = None

    @field_validator("month", mode="before")
    @classmethod
    def _blank_month_is_annual(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return 0
        return v

    @field_validator("concept", mode="before")
    @classmethod
    def _concept_as_text(cls, v):
        return "" if v is None else str(v)


class LedgerLineItem(BaseModel):
    """A typed ledger line.

    Only items with a non-empty ``account_code`` are real account entries;
    the rest are subtotal or header rows.
    """

    year: int
    month: int = Field(default=0, ge=0, le=12)
    document_type: DocumentType
    account_code: str = ""
    concept: str = ""
    amount: float = 0.0

    @property
    def is_account_entry(self) -> bool:
        return bool(self.account_code)
