"""Ledger normalizer — raw store rows → typed PyG line items.

Steps, in order:
  1. Coerce each raw row into ``LedgerRow`` (malformed rows are skipped)
  2. Drop Balance rows and PyG header/subtotal rows (no account code)
  3. Parse amounts (Spanish ``1.234,56`` or plain numeric)
  4. Annual-over-monthly deduplication per year
  5. Split by sign convention into revenues and expenses

The income sheet gets the same per-cell amount parsing through
``normalize_incomes``.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Iterable

from fleet_costing.config.ledger import DocumentType, LedgerLineItem, LedgerRow
from fleet_costing.config.settings import AnalysisSettings
from fleet_costing.engine.rows import coerce_rows
from fleet_costing.models.results import Issue, IssueKind

logger = logging.getLogger(__name__)

_SPANISH_NUMBER = re.compile(r"^-?\d{1,3}(\.\d{3})*(,\d+)?$")


# ═══════════════════════════════════════════════════════════════════════════
# Field-level helpers
# ═══════════════════════════════════════════════════════════════════════════

def parse_amount(
    raw: Any,
    issues: list[Issue] | None = None,
    *,
    source: str = "ledger",
    index: int | None = None,
    year: int | None = None,
) -> float:
    """Parse a ledger amount.

    Numbers pass through.  Strings in Spanish format (``"1.234,56"``,
    ``"-12.000"``) have their thousands dots stripped and the decimal comma
    turned into a point; other strings go through a plain numeric parse.
    Blank cells are 0.  Anything else is also 0, but it is logged and a
    ``MALFORMED_AMOUNT`` issue is appended to *issues*.
    """
    if raw is None:
        return 0.0
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        if math.isfinite(raw):
            return float(raw)
    elif isinstance(raw, str):
        cleaned = raw.strip()
        if not cleaned:
            return 0.0
        if _SPANISH_NUMBER.match(cleaned):
            return float(cleaned.replace(".", "").replace(",", "."))
        if "_" not in cleaned:
            try:
                value = float(cleaned)
            except ValueError:
                value = None
            if value is not None and math.isfinite(value):
                return value

    logger.warning("Malformed amount %r in %s row %s; treated as 0", raw, source, index)
    if issues is not None:
        issues.append(Issue(
            kind=IssueKind.MALFORMED_AMOUNT,
            source=source,
            index=index,
            year=year,
            key=str(raw),
            message=f"unparseable amount {raw!r} treated as 0",
        ))
    return 0.0


def extract_account_code(concept: Any, min_digits: int = 8) -> str:
    """Leading run of ``min_digits`` or more digits of *concept*, else ``""``.

    ``"62600000004 COMISIONES"`` → ``"62600000004"``.
    """
    if not isinstance(concept, str):
        return ""
    m = re.match(r"^(\d{%d,})" % min_digits, concept.strip())
    return m.group(1) if m else ""


def is_account_code(concept: Any, min_digits: int = 8) -> bool:
    """True iff *concept*, trimmed, starts with ``min_digits`` or more digits."""
    return bool(extract_account_code(concept, min_digits))


# ═══════════════════════════════════════════════════════════════════════════
# Row-level
# ═══════════════════════════════════════════════════════════════════════════

def normalize_row(
    row: LedgerRow,
    issues: list[Issue] | None = None,
    index: int | None = None,
    settings: AnalysisSettings | None = None,
) -> LedgerLineItem:
    """Turn a validated ``LedgerRow`` into a ``LedgerLineItem``."""
    settings = settings or AnalysisSettings()
    return LedgerLineItem(
        year=row.year,
        month=row.month,
        document_type=row.document_type,
        account_code=extract_account_code(row.concept, settings.min_account_code_digits),
        concept=row.concept.strip(),
        amount=parse_amount(row.amount, issues, index=index, year=row.year),
    )


def deduplicate_periods(items: Iterable[LedgerLineItem]) -> list[LedgerLineItem]:
    """Prefer annual totals over monthly rows.

    For each year that has at least one ``month == 0`` row, every row with
    ``month`` 1–12 in that year is dropped.  Years with only monthly rows
    keep them all.  Order is preserved.
    """
    items = list(items)
    annual_years = {item.year for item in items if item.month == 0}
    return [item for item in items if item.year not in annual_years or item.month == 0]


# ═══════════════════════════════════════════════════════════════════════════
# Whole-ledger normalization
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class NormalizedLedger:
    """Output of ``normalize_ledger``."""

    revenues: list[LedgerLineItem] = field(default_factory=list)
    """Income-account rows with a positive amount."""
    expenses: list[LedgerLineItem] = field(default_factory=list)
    """Rows with a negative amount (signed as in the ledger)."""
    issues: list[Issue] = field(default_factory=list)
    balance_rows: int = 0
    header_rows: int = 0
    skipped_rows: int = 0
    deduplicated_rows: int = 0
    excluded_entries: int = 0
    pyg_years: set[int] = field(default_factory=set)
    """Every year seen on a PyG row, header rows included."""

    def for_year(self, year: int) -> "NormalizedLedger":
        """Same ledger restricted to *year* (issue list and counters shared)."""
        return NormalizedLedger(
            revenues=[r for r in self.revenues if r.year == year],
            expenses=[e for e in self.expenses if e.year == year],
            issues=self.issues,
            balance_rows=self.balance_rows,
            header_rows=self.header_rows,
            skipped_rows=self.skipped_rows,
            deduplicated_rows=self.deduplicated_rows,
            excluded_entries=self.excluded_entries,
            pyg_years=self.pyg_years,
        )


def normalize_ledger(
    rows: Iterable[Any],
    settings: AnalysisSettings | None = None,
) -> NormalizedLedger:
    """Normalize raw ledger rows for the cost engine.

    Only PyG rows carrying an account code survive.  Deduplication runs
    before the sign split, so an annual row always shadows the monthly rows
    of its year.  Sign convention: income-account code with a positive
    amount → revenue; negative amount → expense; anything else is excluded
    and counted.
    """
    settings = settings or AnalysisSettings()
    out = NormalizedLedger()
    items: list[LedgerLineItem] = []

    valid = coerce_rows(rows, LedgerRow, "ledger", out.issues)
    out.skipped_rows = len(out.issues)

    for index, row in valid:
        if row.document_type is DocumentType.BALANCE:
            out.balance_rows += 1
            continue
        out.pyg_years.add(row.year)
        if not is_account_code(row.concept, settings.min_account_code_digits):
            out.header_rows += 1
            continue
        items.append(normalize_row(row, out.issues, index, settings))

    kept = deduplicate_periods(items)
    out.deduplicated_rows = len(items) - len(kept)
    if out.deduplicated_rows:
        logger.info("Dropped %d monthly ledger rows shadowed by annual totals", out.deduplicated_rows)

    for item in kept:
        if item.account_code.startswith(settings.income_account_prefix) and item.amount > 0:
            out.revenues.append(item)
        elif item.amount < 0:
            out.expenses.append(item)
        else:
            out.excluded_entries += 1
            out.issues.append(Issue(
                kind=IssueKind.EXCLUDED_ENTRY, source="ledger", year=item.year, key=item.account_code,
                message=f"{item.year}/{item.month}: amount {item.amount} is neither revenue nor expense",
            ))

    logger.debug(
        "Ledger normalized: %d revenues, %d expenses, %d excluded, %d skipped",
        len(out.revenues), len(out.expenses), out.excluded_entries, out.skipped_rows,
    )
    return out



# ═══════════════════════════════════════════════════════════════════════════
# Income sheet
# ═══════════════════════════════════════════════════════════════════════════

def _month_key(raw: Any) -> int | None:
    if isinstance(raw, bool):
        return None
    try:
        month = int(str(raw).strip())
    except ValueError:
        return None
    return month if 1 <= month <= 12 else None


def _clean_income_months(
    values: Any,
    issues: list[Issue],
    *,
    index: int,
    year: int | None,
    label: str,
) -> Any:
    if not isinstance(values, dict):
        return values
    cleaned: dict[int, float] = {}
    for raw_month, raw in values.items():
        month = _month_key(raw_month)
        if month is None:
            logger.warning("Ignoring %s income for month %r in incomes row %d", label, raw_month, index)
            issues.append(Issue(
                kind=IssueKind.SKIPPED_ROW, source="incomes", index=index, year=year, key=label,
                message=f"month {raw_month!r} is not 1-12; value {raw!r} ignored",
            ))
            continue
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            continue
        cleaned[month] = parse_amount(raw, issues, source="incomes", index=index, year=year)
    return cleaned


def normalize_incomes(rows: Iterable[Any], issues: list[Issue]) -> list[Any]:
    """Parse every monthly cell of raw income blocks before validation.

    A cell that does not parse counts as 0 and is reported as
    ``MALFORMED_AMOUNT``; a month outside 1–12 is dropped and reported as
    ``SKIPPED_ROW``.  Either way the rest of the block survives.  Blocks
    that are not plain mappings pass through unchanged for ``coerce_rows``
    to judge.  The input rows are not mutated.
    """
    out: list[Any] = []
    for index, raw in enumerate(rows):
        if not isinstance(raw, dict):
            out.append(raw)
            continue
        block = dict(raw)
        year = block.get("year")
        year = year if isinstance(year, int) and not isinstance(year, bool) else None

        for key in ("ownFleet", "own_fleet"):
            entries = block.get(key)
            if not isinstance(entries, list):
                continue
            cleaned_entries = []
            for entry in entries:
                if isinstance(entry, dict) and "income" in entry:
                    label = str(entry.get("licensePlate") or entry.get("license_plate")
                                or entry.get("vehicleId") or entry.get("vehicle_id")
                                or entry.get("id") or "")
                    entry = {**entry, "income": _clean_income_months(
                        entry["income"], issues, index=index, year=year, label=label)}
                cleaned_entries.append(entry)
            block[key] = cleaned_entries

        if "subcontracted" in block:
            block["subcontracted"] = _clean_income_months(
                block["subcontracted"], issues, index=index, year=year, label="subcontracted")
        out.append(block)
    return out
