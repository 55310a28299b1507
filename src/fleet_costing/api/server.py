"""FastAPI server — HTTP access to the fleet cost engine.

Run with:
    uvicorn fleet_costing.api.server:app --reload --port 8000

Or:
    python -m fleet_costing.api.server

Endpoints:
    GET  /health              — liveness probe
    GET  /schema              — JSON Schema of every snapshot collection
    GET  /settings/defaults   — default AnalysisSettings as JSON
    POST /analyze             — one fiscal year (JSON, or ?format=csv per-vehicle table)
    POST /analyze/years       — several years + year-over-year comparison (JSON or CSV)
    POST /analyze/narrative   — one fiscal year as plain-English text
    POST /years               — years with income or PyG data, newest first
    POST /income/summary      — monthly own-fleet vs subcontracted income
"""

from __future__ import annotations

import logging
from typing import Any, Literal

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel, Field

from fleet_costing.config import (
    AmortizationAccount,
    AnalysisSettings,
    CostClassification,
    FleetSnapshot,
    LedgerRow,
    Vehicle,
    YearlyIncomeData,
)
from fleet_costing.engine.orchestrator import available_years, run_analysis, run_multi_year
from fleet_costing.finance.income_summary import find_year, summarize_income
from fleet_costing.finance.tables import cost_evolution_frame, vehicle_metrics_frame
from fleet_costing.api.narrative import generate_narrative

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# App setup
# ═══════════════════════════════════════════════════════════════════════════

app = FastAPI(
    title="Fleet Cost Allocation API",
    version="1.0",
    description=(
        "Apportions a transport company's ledger costs across its vehicles and "
        "computes per-vehicle profitability and break-even revenue. Send an "
        "already-fetched snapshot of the store (ledger, classifications, "
        "vehicles, incomes, amortization) and a fiscal year."
    ),
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# ═══════════════════════════════════════════════════════════════════════════
# Request models
# ═══════════════════════════════════════════════════════════════════════════

class AnalyzeRequest(BaseModel):
    """Request body for /analyze and /analyze/narrative."""
    snapshot: dict[str, Any] = Field(
        default_factory=dict,
        description="FleetSnapshot JSON: ledger, classifications, vehicles, incomes, amortization",
    )
    year: int = Field(description="Fiscal year to analyse")
    settings: dict[str, Any] = Field(
        default_factory=dict,
        description="Partial AnalysisSettings. Missing fields use defaults. "
                    "Example: {'generic_distribution_targets': ['General', 'Taller']}",
    )


class MultiYearRequest(BaseModel):
    """Request body for /analyze/years."""
    snapshot: dict[str, Any] = Field(default_factory=dict)
    years: list[int] | None = Field(
        default=None,
        description="Years to analyse. Omit to use every year with income or PyG data.",
    )
    settings: dict[str, Any] = Field(default_factory=dict)


class IncomeSummaryRequest(BaseModel):
    """Request body for /income/summary."""
    incomes: list[dict[str, Any]] = Field(
        default_factory=list,
        description="YearlyIncomeData blocks; the one matching ``year`` is summarized",
    )
    year: int


# ═══════════════════════════════════════════════════════════════════════════
# Helpers
# ═══════════════════════════════════════════════════════════════════════════

def _build_settings(overrides: dict[str, Any]) -> AnalysisSettings:
    """Build AnalysisSettings from partial overrides laid over the defaults.

    Every setting is a scalar or a list, so an override replaces the
    default value outright.
    """
    return AnalysisSettings(**{**AnalysisSettings().model_dump(), **overrides})


def _unprocessable(exc: ValueError) -> HTTPException:
    logger.info("Rejected request: %s", exc)
    return HTTPException(status_code=422, detail=str(exc))


def _csv_response(csv_text: str, filename: str) -> Response:
    return Response(
        content=csv_text,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ═══════════════════════════════════════════════════════════════════════════
# Endpoints
# ═══════════════════════════════════════════════════════════════════════════

@app.get("/health")
def health_check():
    """Health check for deployment platforms."""
    return {"status": "ok"}


@app.get("/schema")
def get_schema():
    """JSON Schema for each snapshot collection (one entry per row type)."""
    return {
        "snapshot": FleetSnapshot.model_json_schema(),
        "ledger": LedgerRow.model_json_schema(),
        "classifications": CostClassification.model_json_schema(),
        "vehicles": Vehicle.model_json_schema(),
        "incomes": YearlyIncomeData.model_json_schema(),
        "amortization": AmortizationAccount.model_json_schema(),
    }


@app.get("/settings/defaults")
def get_settings_defaults():
    """Default AnalysisSettings. Use as a starting point for overrides."""
    return AnalysisSettings().model_dump()


@app.post("/analyze")
def analyze(
    req: AnalyzeRequest,
    format: Literal["json", "csv"] = Query(
        default="json",
        description="'json' for the full YearAnalysis, 'csv' for the per-vehicle table",
    ),
):
    """Run the cost analysis for one fiscal year.

    Example minimal request:
    ```json
    {"year": 2024, "snapshot": {"vehicles": [{"licensePlate": "1234ABC", "acquisitionDate": "01-01-2020"}]}}
    ```
    """
    try:
        settings = _build_settings(req.settings)
        analysis = run_analysis(req.snapshot, req.year, settings)
    except ValueError as exc:
        raise _unprocessable(exc) from exc

    if format == "csv":
        frame = vehicle_metrics_frame(analysis)
        return _csv_response(frame.to_csv(index=False), f"fleet_costs_{analysis.year}.csv")
    return analysis.model_dump(mode="json")


@app.post("/analyze/years")
def analyze_years(
    req: MultiYearRequest,
    format: Literal["json", "csv"] = Query(
        default="json",
        description="'json' for every YearAnalysis + comparisons, 'csv' for the cost evolution table",
    ),
):
    """Analyse several fiscal years and compare each with the year before."""
    try:
        settings = _build_settings(req.settings)
        result = run_multi_year(req.snapshot, req.years, settings)
    except ValueError as exc:
        raise _unprocessable(exc) from exc

    if format == "csv":
        frame = cost_evolution_frame(a.cost_summary for a in result.years)
        return _csv_response(frame.to_csv(), "cost_evolution.csv")
    return result.model_dump(mode="json")


@app.post("/analyze/narrative")
def analyze_narrative(req: AnalyzeRequest):
    """Run the analysis for one year and return a plain-English summary."""
    try:
        settings = _build_settings(req.settings)
        analysis = run_analysis(req.snapshot, req.year, settings)
    except ValueError as exc:
        raise _unprocessable(exc) from exc

    return {
        "year": analysis.year,
        "narrative": generate_narrative(analysis),
        "headline_metrics": {
            "vehicles": analysis.fleet.vehicles,
            "income": round(analysis.fleet.income, 2),
            "total_cost": round(analysis.fleet.total_cost, 2),
            "profit": round(analysis.fleet.profit, 2),
            "break_even_revenue": round(analysis.fleet.break_even_revenue, 2),
            "cost_per_km": round(analysis.fleet.cost_per_km, 4),
        },
    }


@app.post("/years")
def list_years(req: MultiYearRequest):
    """Years with income or PyG data in the snapshot, newest first."""
    try:
        settings = _build_settings(req.settings)
        years = available_years(req.snapshot, settings)
    except ValueError as exc:
        raise _unprocessable(exc) from exc
    return {"years": years}


@app.post("/income/summary")
def income_summary(req: IncomeSummaryRequest):
    """Monthly income for one year, own fleet vs subcontracted."""
    try:
        incomes = [YearlyIncomeData.model_validate(d) for d in req.incomes]
    except ValueError as exc:
        raise _unprocessable(exc) from exc
    return summarize_income(find_year(incomes, req.year), req.year).model_dump(mode="json")


# ═══════════════════════════════════════════════════════════════════════════
# CLI entry point
# ═══════════════════════════════════════════════════════════════════════════

def main():
    """Run the API server."""
    import uvicorn
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run(
        "fleet_costing.api.server:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )


if __name__ == "__main__":
    main()
