"""Tests for engine/classifier.py and the classification config model."""

from __future__ import annotations

import pytest

from fleet_costing.config import (
    DEFAULT_CLASSIFICATION,
    CostCenter,
    CostClassification,
    DistributionBasis,
    DocumentType,
    LedgerLineItem,
    Nature,
)
from fleet_costing.engine.classifier import ClassificationTable, classify, classify_costs
from fleet_costing.models.results import IssueKind


def _expense(code: str, amount: float = -100.0, year: int = 2024) -> LedgerLineItem:
    return LedgerLineItem(
        year=year, month=0, document_type=DocumentType.PYG,
        account_code=code, concept=f"{code} CONCEPT", amount=amount,
    )


# ═══════════════════════════════════════════════════════════════════════════
# Classification model
# ═══════════════════════════════════════════════════════════════════════════

class TestCostClassificationModel:

    def test_spanish_labels(self):
        c = CostClassification.model_validate({
            "costType": 62900000003, "costCenter": "DIRECTO", "nature": "FIJO",
            "distribution": "General", "distributionBasis": "Kilómetros",
        })
        assert c.cost_type == "62900000003"
        assert c.cost_center is CostCenter.DIRECT
        assert c.nature is Nature.FIXED
        assert c.distribution_basis is DistributionBasis.DISTANCE

    @pytest.mark.parametrize("label, expected", [
        ("indirecto", CostCenter.INDIRECT),
        ("INDIRECT", CostCenter.INDIRECT),
        (" direct ", CostCenter.DIRECT),
    ])
    def test_labels_case_insensitive(self, label, expected):
        assert CostCenter(label) is expected

    def test_unknown_label_rejected(self):
        with pytest.raises(ValueError):
            CostClassification.model_validate({"costType": "1", "nature": "SEMI"})

    def test_defaults(self):
        c = CostClassification(cost_type="62900000003")
        assert c.cost_center is CostCenter.INDIRECT
        assert c.nature is Nature.FIXED
        assert c.distribution == "General"
        assert c.distribution_basis is DistributionBasis.TIME


# ═══════════════════════════════════════════════════════════════════════════
# Lookup
# ═══════════════════════════════════════════════════════════════════════════

class TestClassificationTable:

    def test_exact_match(self, classifications):
        table = ClassificationTable(classifications)
        result = table.lookup("64000000001")
        assert result.match == "exact"
        assert result.classification.nature is Nature.FIXED

    def test_first_row_wins_on_duplicate_code(self):
        table = ClassificationTable([
            CostClassification(cost_type="62900000003", nature=Nature.VARIABLE),
            CostClassification(cost_type="62900000003", nature=Nature.FIXED),
        ])
        assert table.lookup("62900000003").classification.nature is Nature.VARIABLE

    def test_substring_fallback(self):
        table = ClassificationTable([
            CostClassification(cost_type="GASTO 62900000003 COMBUSTIBLE", nature=Nature.VARIABLE),
        ])
        result = table.lookup("62900000003")
        assert result.match == "substring"
        assert result.classification.nature is Nature.VARIABLE

    def test_exact_beats_earlier_substring(self):
        table = ClassificationTable([
            CostClassification(cost_type="LEGACY 62900000003", nature=Nature.FIXED),
            CostClassification(cost_type="62900000003", nature=Nature.VARIABLE),
        ])
        assert table.lookup("62900000003").match == "exact"
        assert table.lookup("62900000003").classification.nature is Nature.VARIABLE

    def test_substring_uses_table_order(self):
        table = ClassificationTable([
            CostClassification(cost_type="A 62900000003", cost_center=CostCenter.DIRECT),
            CostClassification(cost_type="B 62900000003", cost_center=CostCenter.INDIRECT),
        ])
        assert table.lookup("62900000003").classification.cost_center is CostCenter.DIRECT

    def test_default_when_missing(self, classifications):
        table = ClassificationTable(classifications)
        result = table.lookup("69999999999")
        assert result.match == "default"
        assert result.classification == DEFAULT_CLASSIFICATION

    def test_empty_code_is_default(self, classifications):
        assert ClassificationTable(classifications).lookup("").match == "default"

    def test_classify_returns_classification(self, classifications):
        table = ClassificationTable(classifications)
        assert classify(_expense("62900000003"), table).nature is Nature.VARIABLE
        assert len(table) == 4


# ═══════════════════════════════════════════════════════════════════════════
# classify_costs
# ═══════════════════════════════════════════════════════════════════════════

class TestClassifyCosts:

    def test_amounts_become_positive(self, classifications):
        costs = classify_costs([_expense("62900000003", -250.5)], ClassificationTable(classifications))
        assert costs[0].amount == pytest.approx(250.5)
        assert costs[0].cost_center is CostCenter.DIRECT
        assert costs[0].nature is Nature.VARIABLE
        assert costs[0].is_classified

    def test_missing_classification_reported_once_per_code(self, classifications):
        issues = []
        costs = classify_costs(
            [_expense("69999999999"), _expense("69999999999"), _expense("68888888888")],
            ClassificationTable(classifications),
            issues,
        )
        assert [c.match for c in costs] == ["default"] * 3
        assert sorted(i.key for i in issues) == ["68888888888", "69999999999"]
        assert all(i.kind is IssueKind.MISSING_CLASSIFICATION and i.year == 2024 for i in issues)

    def test_target_plate_carried(self, classifications):
        costs = classify_costs([_expense("62900000007")], ClassificationTable(classifications))
        assert costs[0].distribution == "1111AAA"
