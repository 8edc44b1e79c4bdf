"""Fact-check pipeline: filter, per capita, aggregate, compare.

``run_fact_check`` is a pure function of the observation frame and the
settings, so it can be called repeatedly and each stage can be tested on
its own. ``main`` wires it to the configured files, the console report,
the snapshot and the chart.
"""

import sys
import time
from dataclasses import dataclass

import pandas as pd

from factcheck.chart import build_chart_frame, render_chart, summarize_chart_frame
from factcheck.compare import (
    ReferenceValue,
    Verdict,
    compare_to_reference,
    describe_distribution,
    lookup_reference,
    regions_below,
)
from factcheck.config import (
    CHART_FILE,
    LOG_DIR,
    LOG_LEVEL,
    OUTPUT_DIR,
    SOURCE_CACHE_FILE,
    SOURCE_FILE,
    FactCheckSettings,
    settings_from_env,
    validate_config,
)
from factcheck.exceptions import FactCheckBaseError, NoDataError
from factcheck.ingest.run import SourceLoader, load_observations
from factcheck.logging_config import (
    configure_package_logging,
    create_logger,
    log_exception,
)
from factcheck.quality_metrics import QualityMetrics
from factcheck.report import print_report
from factcheck.snapshot import load_snapshot, write_snapshot
from factcheck.transform.aggregate import (
    AggregateGroup,
    capital_region_predicate,
    summarize_group,
    weighted_aggregate,
)
from factcheck.transform.normalize import filter_and_normalize
from factcheck.transform.per_capita import compute_per_capita

logger = create_logger(__name__)


@dataclass
class FactCheckResult:
    """Every derived product of one pipeline run."""

    settings: FactCheckSettings
    per_capita: pd.DataFrame
    invalid: pd.DataFrame
    availability: pd.DataFrame
    analysis_records: pd.DataFrame
    national: pd.DataFrame
    excluding_capital: pd.DataFrame
    capital_records: pd.DataFrame
    interest_excluding_capital: AggregateGroup
    reference: ReferenceValue
    verdict: Verdict
    below_reference: pd.DataFrame
    distribution: pd.Series
    chart_summary: pd.DataFrame


def data_availability(per_capita: pd.DataFrame) -> pd.DataFrame:
    """Record counts per country and level, one column per year."""
    return (
        per_capita.groupby(["country", "level", "year"])
        .size()
        .unstack("year", fill_value=0)
        .reset_index()
    )


def run_fact_check(observations: pd.DataFrame, settings: FactCheckSettings) -> FactCheckResult:
    """Run the full comparison on an observation frame.

    :param observations: Frame from the source loader
    :param settings: Explicit analysis settings
    :return: FactCheckResult with all intermediate and final products
    :raises NoDataError: If there are no observations or no record
        survives the GDP/population join
    :raises ReferenceLookupError: If the reference region is absent
    """
    if observations is None or observations.empty:
        raise NoDataError("No observations loaded; the upstream fetch produced nothing")

    units = settings.units
    gdp = filter_and_normalize(
        observations,
        settings.countries,
        settings.gdp_measure,
        unit_measure=settings.gdp_unit_measure,
        unit_multiplier=units.unit_multiplier,
    )
    population = filter_and_normalize(
        observations, settings.countries, settings.population_measure
    )

    table = compute_per_capita(gdp, population, units)
    per_capita = table.records
    if per_capita.empty:
        raise NoDataError(
            f"No region has both {settings.gdp_measure} and "
            f"{settings.population_measure} observations"
        )

    is_capital = capital_region_predicate(settings.capital_prefixes)

    analysis_records = per_capita[
        (per_capita["level"] == settings.analysis_level)
        & (per_capita["year"] == settings.year)
    ].reset_index(drop=True)
    if analysis_records.empty:
        logger.warning(
            f"No {settings.analysis_level} records for {settings.year}; "
            f"aggregates will be empty"
        )

    national = weighted_aggregate(analysis_records, "country", units)
    excluding_capital = weighted_aggregate(
        analysis_records, "country", units, exclude=is_capital
    )

    interest = analysis_records[analysis_records["country"] == settings.country_of_interest]
    interest_capital_mask = is_capital(interest)
    capital_records = interest[interest_capital_mask].sort_values(
        "gdp_pc", ascending=False
    ).reset_index(drop=True)
    interest_excluding_capital = summarize_group(interest[~interest_capital_mask], units)

    reference = lookup_reference(
        per_capita,
        settings.reference_region,
        settings.year,
        units,
        preferred_level=settings.reference_preferred_level,
        fallback_level=settings.reference_fallback_level,
    )

    verdict = compare_to_reference(
        interest_excluding_capital.gdp_pc, reference.value, records=interest
    )
    logger.info(
        f"{settings.country_of_interest} excluding capital "
        f"{verdict.aggregate:.1f} vs {settings.reference_label} "
        f"{verdict.reference:.1f} (difference {verdict.difference:+.1f})"
    )

    chart_frame = build_chart_frame(per_capita, settings)

    return FactCheckResult(
        settings=settings,
        per_capita=per_capita,
        invalid=table.invalid,
        availability=data_availability(per_capita),
        analysis_records=analysis_records,
        national=national,
        excluding_capital=excluding_capital,
        capital_records=capital_records,
        interest_excluding_capital=interest_excluding_capital,
        reference=reference,
        verdict=verdict,
        below_reference=regions_below(interest, reference.value),
        distribution=describe_distribution(interest),
        chart_summary=summarize_chart_frame(chart_frame, settings),
    )


def main() -> int:
    """Load the cached source, run the fact-check and write all outputs."""
    start_time = time.time()
    configure_package_logging(LOG_LEVEL, LOG_DIR or None)
    settings = settings_from_env()

    loader = None
    try:
        validate_config(settings)

        loader = SourceLoader()
        observations = load_observations(SOURCE_FILE, SOURCE_CACHE_FILE, loader)
        QualityMetrics(loader.con).calculate(observations)

        result = run_fact_check(observations, settings)
        print_report(result)

        write_snapshot(result, OUTPUT_DIR, loader.con)
        render_chart(load_snapshot(OUTPUT_DIR), settings, CHART_FILE)

    except FactCheckBaseError as e:
        log_exception(logger, e, {"context": "fact-check run", "source": SOURCE_FILE})
        return 1
    finally:
        if loader is not None:
            loader.close()

    logger.info(f"Fact-check completed in {time.time() - start_time:.2f}s")
    return 0


if __name__ == "__main__":
    sys.exit(main())
