"""Classifier — account code → cost classification.

Two-phase lookup:
  1. exact match on the account code stored at the start of ``cost_type``
     (dict lookup, first row per code wins)
  2. legacy fallback: first row, in table order, whose ``cost_type`` text
     contains the code.  Older sheets stored keys as "code + description"
     with the code not always leading.

No match → ``DEFAULT_CLASSIFICATION`` (INDIRECT / FIXED / General / TIME).
The substring phase can match more than one row; table order decides and
the hit is reported so the caller can surface it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Literal

from fleet_costing.config.classification import DEFAULT_CLASSIFICATION, CostClassification
from fleet_costing.config.ledger import LedgerLineItem
from fleet_costing.engine.normalizer import extract_account_code
from fleet_costing.models.results import ClassifiedCost, Issue, IssueKind

logger = logging.getLogger(__name__)

MatchKind = Literal["exact", "substring", "default"]


@dataclass(frozen=True)
class ClassificationResult:
    classification: CostClassification
    match: MatchKind


class ClassificationTable:
    """Immutable lookup structure over the classification rows."""

    def __init__(self, rows: Iterable[CostClassification], min_account_code_digits: int = 8) -> None:
        self._rows: tuple[CostClassification, ...] = tuple(rows)
        by_code: dict[str, CostClassification] = {}
        for row in self._rows:
            code = extract_account_code(row.cost_type, min_account_code_digits)
            if code and code not in by_code:
                by_code[code] = row
        self._by_code = by_code

    def __len__(self) -> int:
        return len(self._rows)

    def lookup(self, account_code: str) -> ClassificationResult:
        code = (account_code or "").strip()
        if not code:
            return ClassificationResult(DEFAULT_CLASSIFICATION, "default")

        exact = self._by_code.get(code)
        if exact is not None:
            return ClassificationResult(exact, "exact")

        for row in self._rows:
            if code in row.cost_type:
                return ClassificationResult(row, "substring")

        return ClassificationResult(DEFAULT_CLASSIFICATION, "default")

    def classify(self, item: LedgerLineItem) -> ClassificationResult:
        return self.lookup(item.account_code)


def classify(item: LedgerLineItem, table: ClassificationTable) -> CostClassification:
    """Classification for *item*; the default one when the table has no match."""
    return table.classify(item).classification


def classify_costs(
    expenses: Iterable[LedgerLineItem],
    table: ClassificationTable,
    issues: list[Issue] | None = None,
) -> list[ClassifiedCost]:
    """Join expense lines with their classification.

    Amounts become positive costs.  Each unclassified account code is
    reported once as ``MISSING_CLASSIFICATION``.
    """
    classified: list[ClassifiedCost] = []
    reported: set[str] = set()

    for item in expenses:
        result = table.classify(item)
        c = result.classification
        if result.match == "default" and item.account_code not in reported:
            reported.add(item.account_code)
            if issues is not None:
                issues.append(Issue(
                    kind=IssueKind.MISSING_CLASSIFICATION, source="classifications",
                    year=item.year, key=item.account_code,
                    message=f"no classification for {item.concept or item.account_code}; defaulted",
                ))
        classified.append(ClassifiedCost(
            year=item.year,
            month=item.month,
            account_code=item.account_code,
            concept=item.concept,
            amount=abs(item.amount),
            cost_center=c.cost_center,
            nature=c.nature,
            distribution=c.distribution,
            distribution_basis=c.distribution_basis,
            match=result.match,
        ))

    if reported:
        logger.info("%d account codes fell back to the default classification", len(reported))
    return classified
