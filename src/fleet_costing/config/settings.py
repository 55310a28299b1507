"""Analysis settings — knobs shared by every stage of the pipeline."""

from pydantic import BaseModel, Field


class AnalysisSettings(BaseModel):
    """Tunable constants for one analysis run.

    Defaults reproduce the behaviour of the fleet dashboard the ledger data
    comes from, so a bare ``AnalysisSettings()`` is always a valid choice.
    """

    generic_distribution_targets: list[str] = Field(
        default_factory=lambda: ["General", "otras empresas", "amortización"],
        description="Distribution values that mean 'shared across the fleet'. "
                    "Any other value is read as a vehicle licence plate. "
                    "Compared case-insensitively.",
    )
    income_account_prefix: str = Field(
        default="7", min_length=1,
        description="Leading digit(s) of revenue accounts in the chart of accounts",
    )
    min_account_code_digits: int = Field(
        default=8, ge=1,
        description="Minimum leading digit run for a concept to count as a real account",
    )
    min_year: int = Field(
        default=2000, ge=0,
        description="Years at or below this value are ignored when listing available years",
    )
    conservation_tolerance: float = Field(
        default=1e-9, gt=0,
        description="Relative tolerance used when checking that allocation conserves cost",
    )

    def is_generic_target(self, target: str) -> bool:
        """True when *target* names a shared bucket rather than a vehicle."""
        folded = (target or "").strip().casefold()
        if not folded:
            return True
        return folded in {t.strip().casefold() for t in self.generic_distribution_targets}
