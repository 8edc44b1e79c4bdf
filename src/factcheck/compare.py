"""Reference lookup and the claim verdict.

The verdict is a strict floating-point ``<`` with no tolerance band. The
signed difference is exposed alongside it so callers can apply their own
significance threshold.
"""

import math
from dataclasses import dataclass
from typing import Optional

import pandas as pd

from factcheck.config import Units
from factcheck.exceptions import ReferenceLookupError
from factcheck.logging_config import create_logger
from factcheck.transform.aggregate import STAT_COLUMNS, weighted_value

logger = create_logger(__name__)


@dataclass
class ReferenceValue:
    """Scalar reference and the records it was computed from."""

    region: str
    level: str
    year: int
    value: float
    records: pd.DataFrame
    fallback_used: bool

    @property
    def n_records(self) -> int:
        return len(self.records)


@dataclass
class Verdict:
    """Outcome of comparing an aggregate against a reference value."""

    aggregate: float
    reference: float
    difference: float
    claim_holds: bool
    n_below: int
    n_compared: int


def lookup_reference(
    records: pd.DataFrame,
    region: str,
    year: int,
    units: Units,
    preferred_level: str = "TL3",
    fallback_level: str = "TL2",
) -> ReferenceValue:
    """Find the per-capita value of a reference region.

    Rows at ``preferred_level`` whose code starts with ``region`` are
    combined with population weights. When there are none, the lookup is
    retried once at ``fallback_level`` with an exact code match.

    :raises ReferenceLookupError: If neither level has a matching row
    """
    in_year = records[records["year"] == year]

    fine = in_year[
        (in_year["level"] == preferred_level)
        & in_year["region"].astype(str).str.startswith(region)
    ]
    if not fine.empty:
        value = weighted_value(fine, units)
        logger.info(
            f"Reference {region} found at {preferred_level}: "
            f"{len(fine)} records, {value:.1f}"
        )
        return ReferenceValue(
            region=region,
            level=preferred_level,
            year=year,
            value=value,
            records=fine.reset_index(drop=True),
            fallback_used=False,
        )

    coarse = in_year[(in_year["level"] == fallback_level) & (in_year["region"] == region)]
    if coarse.empty:
        raise ReferenceLookupError(
            f"Reference region {region} has no data for {year} "
            f"at {preferred_level} or {fallback_level}"
        )

    value = weighted_value(coarse, units)
    logger.info(
        f"Reference {region} not found at {preferred_level}; "
        f"using {fallback_level} value {value:.1f}"
    )
    return ReferenceValue(
        region=region,
        level=fallback_level,
        year=year,
        value=value,
        records=coarse.reset_index(drop=True),
        fallback_used=True,
    )


def regions_below(records: pd.DataFrame, reference: float) -> pd.DataFrame:
    """Records whose per-capita value is strictly below ``reference``, ascending."""
    below = records[records["gdp_pc"] < reference]
    return below.sort_values("gdp_pc").reset_index(drop=True)


def compare_to_reference(
    aggregate: float,
    reference: float,
    records: Optional[pd.DataFrame] = None,
) -> Verdict:
    """Strictly compare an aggregate with a reference value.

    :param aggregate: Computed aggregate, e.g. a country without its capital
    :param reference: Reference per-capita value
    :param records: Optional region records to count against the reference
    :return: Verdict with the boolean outcome and the signed difference
    """
    if math.isnan(aggregate) or math.isnan(reference):
        logger.warning(
            f"Cannot establish verdict: aggregate={aggregate}, reference={reference}"
        )

    n_below = 0
    n_compared = 0
    if records is not None:
        n_below = len(regions_below(records, reference))
        n_compared = len(records)

    return Verdict(
        aggregate=aggregate,
        reference=reference,
        difference=aggregate - reference,
        claim_holds=bool(aggregate < reference),
        n_below=n_below,
        n_compared=n_compared,
    )


def describe_distribution(records: pd.DataFrame) -> pd.Series:
    """Unweighted min, quartiles, median, mean and max of ``gdp_pc``."""
    values = records["gdp_pc"]
    return pd.Series(
        [
            values.min(),
            values.quantile(0.25),
            values.median(),
            values.mean(),
            values.quantile(0.75),
            values.max(),
        ],
        index=STAT_COLUMNS,
        dtype=float,
    )
