"""Population-weighted GDP-per-capita aggregates.

A group's value is the ratio of summed GDP to summed population, never
the mean of member per-capita ratios. Capital regions are identified by
a country-specific code prefix taken from an explicit lookup table.
"""

from dataclasses import dataclass
from typing import Callable, List, Mapping, Optional, Sequence, Union

import pandas as pd

from factcheck.config import Units
from factcheck.logging_config import create_logger

logger = create_logger(__name__)

ExclusionPredicate = Callable[[pd.DataFrame], pd.Series]

STAT_COLUMNS = ["min", "q25", "median", "mean", "q75", "max"]
AGGREGATE_COLUMNS = ["gdp", "pop", "gdp_pc", "n_regions"] + STAT_COLUMNS


@dataclass(frozen=True)
class AggregateGroup:
    """Weighted summary of one group of per-capita records."""

    gdp: float
    pop: float
    gdp_pc: float
    n_regions: int
    min: float
    q25: float
    median: float
    mean: float
    q75: float
    max: float


def is_capital_region(country: str, region: str, prefixes: Mapping[str, str]) -> bool:
    """True when ``region`` falls under the capital prefix of ``country``."""
    prefix = prefixes.get(country)
    return prefix is not None and str(region).startswith(prefix)


def capital_region_predicate(prefixes: Mapping[str, str]) -> ExclusionPredicate:
    """Build a frame predicate flagging capital-region rows.

    Countries without an entry in ``prefixes`` have no capital region.
    The region codes of each country are matched with a vectorized
    ``str.startswith`` against that country's prefix.
    """
    lookup = dict(prefixes)

    def predicate(records: pd.DataFrame) -> pd.Series:
        flags = pd.Series(False, index=records.index, dtype=bool)
        row_prefixes = records["country"].map(lookup)
        regions = records["region"].astype(str)
        for prefix in row_prefixes.dropna().unique():
            rows = (row_prefixes == prefix).to_numpy()
            flags.iloc[rows] = regions[rows].str.startswith(prefix).to_numpy()
        return flags

    return predicate


def _quantile(q: float):
    def agg(series: pd.Series) -> float:
        return series.quantile(q)

    agg.__name__ = f"q{int(q * 100)}"
    return agg


def weighted_value(records: pd.DataFrame, units: Units) -> float:
    """Population-weighted GDP per capita of a whole frame.

    Returns NaN for an empty frame so missing data stays visible.
    """
    total_pop = float(records["pop"].sum()) if not records.empty else 0.0
    if total_pop <= 0:
        return float("nan")
    return float(units.per_capita(float(records["gdp"].sum()), total_pop))


def summarize_group(records: pd.DataFrame, units: Units) -> AggregateGroup:
    """Weighted value, count and unweighted distribution of one group."""
    values = records["gdp_pc"]
    return AggregateGroup(
        gdp=float(records["gdp"].sum()),
        pop=float(records["pop"].sum()),
        gdp_pc=weighted_value(records, units),
        n_regions=int(len(records)),
        min=float(values.min()),
        q25=float(values.quantile(0.25)),
        median=float(values.median()),
        mean=float(values.mean()),
        q75=float(values.quantile(0.75)),
        max=float(values.max()),
    )


def weighted_aggregate(
    records: pd.DataFrame,
    by: Union[str, Sequence[str]],
    units: Units,
    exclude: Optional[ExclusionPredicate] = None,
) -> pd.DataFrame:
    """One weighted aggregate row per distinct key.

    :param records: Per-capita records (country, region, level, year,
        gdp, pop, gdp_pc)
    :param by: Column name or names to group on
    :param units: Unit conversion used for the weighted value
    :param exclude: Optional predicate; rows where it is True are dropped
        before grouping
    :return: Frame with the key columns followed by gdp, pop, gdp_pc,
        n_regions and the distribution columns
    """
    keys: List[str] = [by] if isinstance(by, str) else list(by)

    if exclude is not None and not records.empty:
        excluded = exclude(records)
        logger.debug(f"Exclusion predicate removed {int(excluded.sum())} records")
        records = records[~excluded]

    if records.empty:
        return pd.DataFrame(columns=keys + AGGREGATE_COLUMNS)

    summary = (
        records.groupby(keys, sort=True)
        .agg(
            gdp=("gdp", "sum"),
            pop=("pop", "sum"),
            n_regions=("gdp_pc", "size"),
            min=("gdp_pc", "min"),
            q25=("gdp_pc", _quantile(0.25)),
            median=("gdp_pc", "median"),
            mean=("gdp_pc", "mean"),
            q75=("gdp_pc", _quantile(0.75)),
            max=("gdp_pc", "max"),
        )
        .reset_index()
    )
    summary["gdp_pc"] = units.per_capita(summary["gdp"], summary["pop"])
    return summary[keys + AGGREGATE_COLUMNS]
