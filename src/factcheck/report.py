"""Console report for a fact-check run.

Formatting is for humans; the values come straight from the
FactCheckResult and are never recomputed here.
"""

import pandas as pd

WIDTH = 60


def _section(title: str) -> None:
    print(f"\n=== {title} ===")


def _table(frame: pd.DataFrame, max_rows: int = None) -> None:
    if frame.empty:
        print("(no rows)")
        return
    print(frame.to_string(index=False, max_rows=max_rows, float_format=lambda v: f"{v:,.1f}"))


def _fmt(value: float) -> str:
    return "n/a" if pd.isna(value) else f"{value:.1f}"


def top_regions(per_capita: pd.DataFrame, country: str, level: str, year: int) -> pd.DataFrame:
    """Regions of one country at one level, richest first."""
    rows = per_capita[
        (per_capita["country"] == country)
        & (per_capita["level"] == level)
        & (per_capita["year"] == year)
    ]
    return rows.sort_values("gdp_pc", ascending=False).reset_index(drop=True)


def print_report(result) -> None:
    """Print every report section for a FactCheckResult."""
    settings = result.settings
    country = settings.country_of_interest
    label = settings.country_labels.get(country, country)
    reference_label = settings.reference_label

    print("\n" + "=" * WIDTH)
    print("FACT-CHECK: REGIONAL GDP PER CAPITA")
    print("=" * WIDTH)

    _section("Data Availability by Level and Year")
    _table(result.availability)

    if not result.invalid.empty:
        _section("Records Excluded for Missing GDP or Non-Positive Population")
        _table(result.invalid)

    for level in (settings.reference_fallback_level, settings.analysis_level):
        _section(f"{label} at {level} level ({settings.year})")
        _table(top_regions(result.per_capita, country, level, settings.year), settings.top_n)

    _section(f"National averages ({settings.analysis_level})")
    _table(result.national[["country", "gdp", "pop", "gdp_pc", "n_regions"]])

    _section(f"{label} capital regions ({settings.analysis_level})")
    _table(result.capital_records)

    _section(f"Averages excluding capital region ({settings.analysis_level})")
    _table(result.excluding_capital[["country", "gdp", "pop", "gdp_pc", "n_regions"]])

    group = result.interest_excluding_capital
    print(f"\n{label} excluding capital: {_fmt(group.gdp_pc)} thousand USD PPP")
    print(f"Number of regions: {group.n_regions}")

    reference = result.reference
    _section(f"{reference_label} ({reference.level})")
    if reference.fallback_used:
        print(
            f"No {settings.reference_preferred_level} rows; "
            f"using {reference.level} data:"
        )
    _table(reference.records)
    print(f"\n{reference_label} average: {_fmt(reference.value)}k")

    verdict = result.verdict
    print("\n" + "=" * WIDTH)
    print("FINAL VERDICT".center(WIDTH))
    print("=" * WIDTH)
    print(f"{label} excluding capital: {_fmt(verdict.aggregate)}k")
    print(f"{reference_label}: {_fmt(verdict.reference)}k")
    print(f"Difference: {_fmt(verdict.difference)}k")
    if verdict.claim_holds:
        print(f"\n✓ CLAIM VERIFIED: {label} without its capital is poorer than {reference_label}")
    else:
        print(f"\n✗ CLAIM NOT SUPPORTED with {settings.year} data")
        if not pd.isna(verdict.difference):
            print(
                f"  {label} without its capital is higher than {reference_label} "
                f"by {verdict.difference:+.1f}k"
            )

    _section(f"{label} {settings.analysis_level} regions below {reference_label}")
    print(
        f"{verdict.n_below} out of {verdict.n_compared} {label} regions "
        f"are below {reference_label} level"
    )
    _table(result.below_reference)

    _section("GDP per capita distribution")
    print(f"{label} {settings.analysis_level} regions:")
    print(result.distribution.to_frame("gdp_pc").T.to_string(float_format=lambda v: f"{v:.1f}"))

    _section("Chart summary")
    _table(result.chart_summary)
