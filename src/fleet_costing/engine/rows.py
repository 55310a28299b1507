"""Row coercion — turn loosely-typed store rows into validated models.

A row that fails validation is reported as a ``SKIPPED_ROW`` issue and the
rest of the collection is still processed.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, TypeVar

from pydantic import BaseModel, ValidationError

from fleet_costing.models.results import Issue, IssueKind

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def describe_error(exc: Exception) -> str:
    """One-line description of a coercion failure."""
    if isinstance(exc, ValidationError):
        errors = exc.errors()
        if errors:
            first = errors[0]
            loc = ".".join(str(part) for part in first.get("loc", ()))
            return f"{loc}: {first.get('msg', '')}" if loc else str(first.get("msg", ""))
    text = str(exc).strip().splitlines()
    return text[0] if text else type(exc).__name__


def coerce_row(raw: Any, model: type[M]) -> M:
    """Validate one row against *model*.  Model instances pass through."""
    if isinstance(raw, model):
        return raw
    if isinstance(raw, BaseModel):
        raw = raw.model_dump(by_alias=False)
    if not isinstance(raw, dict):
        raise TypeError(f"expected a mapping, got {type(raw).__name__}")
    return model.model_validate(raw)


def coerce_rows(
    rows: Iterable[Any],
    model: type[M],
    source: str,
    issues: list[Issue],
) -> list[tuple[int, M]]:
    """Validate every row, returning ``(index, model)`` pairs for the good ones."""
    good: list[tuple[int, M]] = []
    for index, raw in enumerate(rows):
        try:
            good.append((index, coerce_row(raw, model)))
        except (ValueError, TypeError, KeyError) as exc:
            reason = describe_error(exc)
            issues.append(Issue(
                kind=IssueKind.SKIPPED_ROW, source=source, index=index, message=reason,
            ))
            logger.warning("Skipping %s row %d: %s", source, index, reason)
    return good
