"""Transformations from raw observations to weighted aggregates."""

from factcheck.transform.aggregate import (
    AggregateGroup,
    capital_region_predicate,
    is_capital_region,
    summarize_group,
    weighted_aggregate,
    weighted_value,
)
from factcheck.transform.normalize import (
    collapse_duplicates,
    filter_and_normalize,
    normalize,
)
from factcheck.transform.per_capita import PerCapitaTable, compute_per_capita

__all__ = [
    "AggregateGroup",
    "PerCapitaTable",
    "capital_region_predicate",
    "collapse_duplicates",
    "compute_per_capita",
    "filter_and_normalize",
    "is_capital_region",
    "normalize",
    "summarize_group",
    "weighted_aggregate",
    "weighted_value",
]
