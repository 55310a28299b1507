"""Tests for the HTTP API layer.

Covers:
  - Health / schema / defaults endpoints
  - /analyze (JSON + CSV), /analyze/years, /analyze/narrative, /years
  - /income/summary
  - Settings overrides laid over defaults
  - Invalid requests → 422
"""

from __future__ import annotations

import io

import pandas as pd
import pytest
from fastapi.testclient import TestClient

from fleet_costing.api.narrative import generate_narrative
from fleet_costing.api.server import _build_settings, app
from fleet_costing.config import AnalysisSettings
from fleet_costing.engine.orchestrator import run_analysis


client = TestClient(app)


# ═══════════════════════════════════════════════════════════════════════════
# Helpers
# ═══════════════════════════════════════════════════════════════════════════

class TestBuildSettings:

    def test_partial_override(self):
        settings = _build_settings({"income_account_prefix": "75"})
        assert settings.income_account_prefix == "75"
        assert settings.min_account_code_digits == 8

    def test_list_override_replaces_default(self):
        settings = _build_settings({"generic_distribution_targets": ["Taller"]})
        assert settings.generic_distribution_targets == ["Taller"]

    def test_empty_overrides_give_defaults(self):
        assert _build_settings({}) == AnalysisSettings()


# ═══════════════════════════════════════════════════════════════════════════
# Endpoints
# ═══════════════════════════════════════════════════════════════════════════

class TestEndpoints:

    def test_health(self):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}

    def test_schema(self):
        data = client.get("/schema").json()
        assert set(data) == {"snapshot", "ledger", "classifications", "vehicles", "incomes", "amortization"}
        assert "licensePlate" in data["vehicles"]["properties"]

    def test_settings_defaults(self):
        data = client.get("/settings/defaults").json()
        assert data["income_account_prefix"] == "7"
        assert data["min_account_code_digits"] == 8

    def test_analyze(self, two_coach_snapshot):
        resp = client.post("/analyze", json={"snapshot": two_coach_snapshot, "year": 2024})
        assert resp.status_code == 200
        data = resp.json()
        assert data["year"] == 2024
        assert [v["license_plate"] for v in data["vehicles"]] == ["1111AAA", "2222BBB"]
        assert data["vehicles"][1]["direct_variable_share"] == pytest.approx(3000)
        assert data["reconciliation"]["balanced"] is True

    def test_analyze_csv(self, two_coach_snapshot):
        resp = client.post("/analyze?format=csv", json={"snapshot": two_coach_snapshot, "year": 2024})
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        frame = pd.read_csv(io.StringIO(resp.text))
        assert frame["license_plate"].tolist() == ["1111AAA", "2222BBB", "TOTAL"]

    def test_analyze_with_settings_override(self, two_coach_snapshot):
        resp = client.post("/analyze", json={
            "snapshot": two_coach_snapshot, "year": 2024,
            "settings": {"generic_distribution_targets": ["General", "1111AAA"]},
        })
        data = resp.json()
        assert data["vehicles"][0]["direct_imputed_variable"] == 0
        assert data["pools"]["direct_variable"] == pytest.approx(4500)

    def test_analyze_years(self, two_coach_snapshot):
        resp = client.post("/analyze/years", json={"snapshot": two_coach_snapshot, "years": [2024, 2023]})
        assert resp.status_code == 200
        data = resp.json()
        assert [y["year"] for y in data["years"]] == [2024, 2023]
        assert data["comparisons"][0]["changes"]["total"]["change"] == pytest.approx(29_700)

    def test_analyze_years_csv(self, two_coach_snapshot):
        resp = client.post("/analyze/years?format=csv", json={"snapshot": two_coach_snapshot})
        frame = pd.read_csv(io.StringIO(resp.text))
        assert frame["year"].tolist() == [2024]

    def test_years(self, two_coach_snapshot):
        resp = client.post("/years", json={"snapshot": two_coach_snapshot})
        assert resp.json() == {"years": [2024]}

    def test_narrative(self, two_coach_snapshot):
        resp = client.post("/analyze/narrative", json={"snapshot": two_coach_snapshot, "year": 2024})
        data = resp.json()
        assert "FLEET SUMMARY 2024" in data["narrative"]
        assert data["headline_metrics"]["vehicles"] == 2
        assert data["headline_metrics"]["total_cost"] == pytest.approx(49_700)

    def test_income_summary(self, two_coach_snapshot):
        resp = client.post("/income/summary", json={"incomes": two_coach_snapshot["incomes"], "year": 2024})
        data = resp.json()
        assert data["own_total"] == 45_000
        assert data["subcontracted_total"] == 2000
        assert len(data["months"]) == 12

    def test_income_summary_missing_year(self):
        data = client.post("/income/summary", json={"incomes": [], "year": 2020}).json()
        assert data["year"] == 2020
        assert data["grand_total"] == 0


class TestErrors:

    def test_missing_year(self):
        assert client.post("/analyze", json={"snapshot": {}}).status_code == 422

    def test_invalid_settings(self):
        resp = client.post("/analyze", json={"snapshot": {}, "year": 2024, "settings": {"min_account_code_digits": 0}})
        assert resp.status_code == 422

    def test_invalid_snapshot(self):
        resp = client.post("/analyze", json={"snapshot": {"vehicles": "nope"}, "year": 2024})
        assert resp.status_code == 422

    def test_invalid_income_block(self):
        resp = client.post("/income/summary", json={"incomes": [{"ownFleet": []}], "year": 2024})
        assert resp.status_code == 422

    def test_income_month_out_of_range(self):
        resp = client.post("/income/summary", json={
            "incomes": [{"year": 2024, "subcontracted": {"13": 100}}], "year": 2024,
        })
        assert resp.status_code == 422


# ═══════════════════════════════════════════════════════════════════════════
# Narrative
# ═══════════════════════════════════════════════════════════════════════════

class TestNarrative:

    def test_sections(self, two_coach_snapshot):
        text = generate_narrative(run_analysis(two_coach_snapshot, 2024))
        for header in ("FLEET SUMMARY 2024", "COST STRUCTURE", "VEHICLES", "DATA QUALITY"):
            assert header in text
        assert "2222BBB: PROFITABLE" in text
        assert "No data issues found." in text

    def test_empty_fleet(self):
        text = generate_narrative(run_analysis({}, 2024))
        assert "Active vehicles: 0" in text
        assert "VEHICLES" not in text
