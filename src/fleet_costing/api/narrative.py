"""Narrative generator — plain-English reading of a year's cost analysis.

Turns a ``YearAnalysis`` into a short structured text block: fleet
summary, cost structure, per-vehicle verdicts and data-quality notes.
"""

from __future__ import annotations

from fleet_costing.models.results import VehicleMetrics, YearAnalysis


def _vehicle_verdict(m: VehicleMetrics) -> str:
    if m.income <= 0:
        return f"{m.license_plate}: no income recorded, cost €{m.total_cost:,.2f}"
    status = "PROFITABLE" if m.profit >= 0 else "LOSS-MAKING"
    if m.break_even_revenue > 0:
        be = f"break-even at €{m.break_even_revenue:,.2f}"
    else:
        be = "break-even unreachable (variable cost ≥ income)"
    return (
        f"{m.license_plate}: {status}, income €{m.income:,.2f}, "
        f"cost €{m.total_cost:,.2f}, profit €{m.profit:,.2f}, {be}"
    )


def generate_narrative(analysis: YearAnalysis) -> str:
    """Plain-English summary of *analysis*.

    Sections:
      1. Fleet summary
      2. Cost structure
      3. Vehicles (most profitable first)
      4. Data quality
    """
    f = analysis.fleet
    cs = analysis.cost_summary
    sections: list[str] = []

    # ── 1. Fleet summary ──
    sections.append("=" * 60)
    sections.append(f"FLEET SUMMARY {analysis.year}")
    sections.append("=" * 60)
    sections.append(
        f"Active vehicles: {f.vehicles}\n"
        f"Kilometres: {f.kms:,.0f}\n"
        f"Income: €{f.income:,.2f}\n"
        f"Allocated cost: €{f.total_cost:,.2f}\n"
        f"Profit: €{f.profit:,.2f}\n"
        f"Cost per km: €{f.cost_per_km:.3f}"
    )
    if f.break_even_revenue > 0:
        sections.append(f"Fleet break-even revenue: €{f.break_even_revenue:,.2f}")
    elif f.vehicles:
        sections.append("Fleet break-even is unreachable: variable costs absorb all income.")

    # ── 2. Cost structure ──
    sections.append("")
    sections.append("=" * 60)
    sections.append("COST STRUCTURE")
    sections.append("=" * 60)
    total = cs.total or 1.0
    sections.append(
        f"Direct fixed:      €{cs.direct_fixed:,.2f} ({cs.direct_fixed / total:.0%})\n"
        f"Direct variable:   €{cs.direct_variable:,.2f} ({cs.direct_variable / total:.0%})\n"
        f"Indirect fixed:    €{cs.indirect_fixed:,.2f} ({cs.indirect_fixed / total:.0%})\n"
        f"Indirect variable: €{cs.indirect_variable:,.2f} ({cs.indirect_variable / total:.0%})\n"
        f"Ledger revenue:    €{cs.income:,.2f}\n"
        f"Ledger profit:     €{cs.profit:,.2f}"
    )

    # ── 3. Vehicles ──
    if analysis.vehicles:
        sections.append("")
        sections.append("=" * 60)
        sections.append("VEHICLES")
        sections.append("=" * 60)
        ranked = sorted(analysis.vehicles, key=lambda m: m.profit, reverse=True)
        sections.extend(_vehicle_verdict(m) for m in ranked)

    # ── 4. Data quality ──
    warnings = analysis.diagnostics.warnings
    sections.append("")
    sections.append("=" * 60)
    sections.append("DATA QUALITY")
    sections.append("=" * 60)
    if warnings:
        sections.extend(f"- {w}" for w in warnings)
    else:
        sections.append("No data issues found.")

    return "\n".join(sections)
