"""Result types — the contract between the engine and the presentation layer.

Every model here is plain, JSON-serializable data.  Money is in the ledger's
currency (EUR for the source data), distances in km.
"""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

from fleet_costing.config.classification import CostCenter, DistributionBasis, Nature


# ═══════════════════════════════════════════════════════════════════════════
# Diagnostics
# ═══════════════════════════════════════════════════════════════════════════

class IssueKind(str, Enum):
    """Non-fatal conditions met while running an analysis."""

    MALFORMED_AMOUNT = "malformed_amount"
    MISSING_CLASSIFICATION = "missing_classification"
    ZERO_DENOMINATOR = "zero_denominator"
    AMBIGUOUS_MATCH = "ambiguous_match"
    UNMATCHED_IMPUTATION = "unmatched_imputation"
    SKIPPED_ROW = "skipped_row"
    EXCLUDED_ENTRY = "excluded_entry"


class Issue(BaseModel):
    """One recorded issue.  Issues never abort a run."""

    kind: IssueKind
    source: str = ""
    """Collection the issue came from: ledger, classifications, vehicles, incomes, amortization, allocation."""
    index: int | None = None
    """Position of the offending row in its collection, when there is one."""
    year: int | None = None
    """Fiscal year the issue belongs to; None when it applies to every year."""
    key: str = ""
    """Account code, licence plate or pool name the issue refers to."""
    message: str = ""


class AnalysisDiagnostics(BaseModel):
    """Counts and lists the caller turns into user-facing warnings.

    Row counters (skipped, balance, header, deduplicated) describe the whole
    ledger snapshot; issues, account lists and ``excluded_entries`` are
    specific to the analysed year.
    """

    issues: list[Issue] = Field(default_factory=list)
    malformed_amounts: int = 0
    skipped_rows: int = 0
    balance_rows: int = 0
    """Balance-sheet rows seen and left to external reporting."""
    header_rows: int = 0
    """PyG rows without an account code (subtotals, section headers)."""
    deduplicated_rows: int = 0
    """Monthly rows dropped because an annual row exists for the same year."""
    excluded_entries: int = 0
    """Account rows that are neither revenue nor expense (e.g. non-positive 7xx)."""
    unclassified_accounts: list[str] = Field(default_factory=list)
    substring_matches: list[str] = Field(default_factory=list)
    """Account codes classified through the legacy substring fallback."""
    ambiguous_matches: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


# ═══════════════════════════════════════════════════════════════════════════
# Classified ledger
# ═══════════════════════════════════════════════════════════════════════════

class ClassifiedCost(BaseModel):
    """An expense line joined with its classification."""

    year: int
    month: int = 0
    account_code: str
    concept: str = ""
    amount: float
    """Positive cost amount (absolute value of the ledger entry)."""
    cost_center: CostCenter
    nature: Nature
    distribution: str
    distribution_basis: DistributionBasis
    match: Literal["exact", "substring", "default"]

    @property
    def is_classified(self) -> bool:
        return self.match != "default"


# ═══════════════════════════════════════════════════════════════════════════
# Activity + allocation
# ═══════════════════════════════════════════════════════════════════════════

class VehicleActivity(BaseModel):
    """Ownership window of one vehicle inside one fiscal year."""

    license_plate: str
    year: int
    active: bool
    months_active: int = Field(default=0, ge=0, le=12)
    time_coefficient: float = Field(default=0.0, ge=0.0, le=1.0)
    """months_active / 12."""
    kms: float = 0.0


class CostPools(BaseModel):
    """Fleet-shared cost pools for one year (vehicle-targeted costs excluded)."""

    direct_fixed: float = 0.0
    direct_variable: float = 0.0
    indirect_fixed: float = 0.0
    indirect_variable: float = 0.0

    @property
    def total(self) -> float:
        return self.direct_fixed + self.direct_variable + self.indirect_fixed + self.indirect_variable


class VehicleAllocation(BaseModel):
    """Costs apportioned to one active vehicle."""

    license_plate: str
    months_active: int
    time_coefficient: float
    distance_coefficient: float
    """kms / fleet kms (0 when the fleet logged no km)."""
    kms: float

    direct_fixed_share: float = 0.0
    direct_variable_share: float = 0.0
    indirect_fixed_share: float = 0.0
    indirect_variable_share: float = 0.0
    indirect_amortization_share: float = 0.0
    own_amortization: float = 0.0
    """vehicle.annual_amortization × time_coefficient."""
    direct_imputed_fixed: float = 0.0
    direct_imputed_variable: float = 0.0
    """Costs whose classification names this vehicle's plate."""

    total_cost: float = 0.0

    @property
    def direct_imputed(self) -> float:
        return self.direct_imputed_fixed + self.direct_imputed_variable


class VehicleMetrics(VehicleAllocation):
    """Allocation plus profitability for one vehicle."""

    income: float = 0.0
    profit: float = 0.0
    total_fixed_cost: float = 0.0
    total_variable_cost: float = 0.0
    contribution_ratio: float = 0.0
    """(income − variable cost) / income; 0 when income ≤ 0."""
    break_even_revenue: float = 0.0
    """Fixed cost / contribution ratio.  0 is a sentinel for 'unreachable'
    (non-positive contribution ratio), not a computed break-even of zero."""
    cost_per_km: float = 0.0
    cost_per_km_fixed: float = 0.0
    cost_per_km_variable: float = 0.0


class FleetTotals(BaseModel):
    """Plain sums of the per-vehicle metrics; ratios recomputed from the sums."""

    vehicles: int = 0
    kms: float = 0.0
    time_coefficient: float = 0.0
    direct_fixed_share: float = 0.0
    direct_variable_share: float = 0.0
    indirect_fixed_share: float = 0.0
    indirect_variable_share: float = 0.0
    indirect_amortization_share: float = 0.0
    own_amortization: float = 0.0
    direct_imputed_fixed: float = 0.0
    direct_imputed_variable: float = 0.0
    total_cost: float = 0.0
    total_fixed_cost: float = 0.0
    total_variable_cost: float = 0.0
    income: float = 0.0
    profit: float = 0.0
    contribution_ratio: float = 0.0
    break_even_revenue: float = 0.0
    cost_per_km: float = 0.0


class Reconciliation(BaseModel):
    """Where every classified euro ended up.

    ``classified_cost_total`` = ``allocated_cost_total``
    + Σ ``unallocated`` + Σ ``unmatched_imputed`` (+ ``gap``, ≈ 0).
    Amortization is reconciled separately since it does not come from the
    ledger.
    """

    classified_cost_total: float = 0.0
    allocated_cost_total: float = 0.0
    unallocated: dict[str, float] = Field(default_factory=dict)
    """Pool name → amount that could not be apportioned (zero denominator)."""
    unmatched_imputed: dict[str, float] = Field(default_factory=dict)
    """Distribution target → cost aimed at a plate with no active vehicle."""
    indirect_amortization: float = 0.0
    allocated_amortization: float = 0.0
    unallocated_amortization: float = 0.0
    gap: float = 0.0
    balanced: bool = True


# ═══════════════════════════════════════════════════════════════════════════
# Summaries (company view)
# ═══════════════════════════════════════════════════════════════════════════

class YearCostSummary(BaseModel):
    """Company-level cost structure for one year, vehicle-targeted costs included."""

    year: int
    direct_fixed: float = 0.0
    direct_variable: float = 0.0
    indirect_fixed: float = 0.0
    indirect_variable: float = 0.0
    total_direct: float = 0.0
    total_indirect: float = 0.0
    total_fixed: float = 0.0
    total_variable: float = 0.0
    total: float = 0.0
    income: float = 0.0
    """Revenue booked on income accounts of the PyG ledger."""
    profit: float = 0.0
    line_count: int = 0


class FieldChange(BaseModel):
    current: float
    previous: float
    change: float
    change_pct: float
    """Relative change in percent; 0 when the previous value is 0."""


class YearComparison(BaseModel):
    """Year-over-year evolution of a YearCostSummary."""

    year: int
    previous_year: int
    changes: dict[str, FieldChange] = Field(default_factory=dict)


class MonthlyIncomeRow(BaseModel):
    month: int = Field(ge=1, le=12)
    own_fleet: float = 0.0
    subcontracted: float = 0.0
    total: float = 0.0


class MonthlyIncomeSummary(BaseModel):
    """Monthly split of own-fleet vs subcontracted income for one year."""

    year: int
    months: list[MonthlyIncomeRow] = Field(default_factory=list)
    vehicle_totals: dict[str, float] = Field(default_factory=dict)
    """Vehicle key (plate, else vehicle id, else id) → annual income."""
    own_total: float = 0.0
    subcontracted_total: float = 0.0
    grand_total: float = 0.0
    own_share: float = 0.0
    """own_total / grand_total (0 when there is no income)."""


# ═══════════════════════════════════════════════════════════════════════════
# Top-level results
# ═══════════════════════════════════════════════════════════════════════════

class YearAnalysis(BaseModel):
    """Complete output for one fiscal year."""

    year: int
    pools: CostPools
    indirect_amortization: float = 0.0
    activities: list[VehicleActivity] = Field(default_factory=list)
    """Every vehicle's activity for the year, inactive ones included."""
    vehicles: list[VehicleMetrics] = Field(default_factory=list)
    """Metrics for active vehicles only, in input order."""
    fleet: FleetTotals = Field(default_factory=FleetTotals)
    cost_summary: YearCostSummary
    income_summary: MonthlyIncomeSummary | None = None
    reconciliation: Reconciliation = Field(default_factory=Reconciliation)
    diagnostics: AnalysisDiagnostics = Field(default_factory=AnalysisDiagnostics)


class MultiYearAnalysis(BaseModel):
    """One YearAnalysis per requested year plus year-over-year comparisons."""

    years: list[YearAnalysis] = Field(default_factory=list)
    comparisons: list[YearComparison] = Field(default_factory=list)
