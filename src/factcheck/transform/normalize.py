"""Row selection and column normalization for source observations."""

from typing import Iterable, Optional

import pandas as pd

from factcheck.logging_config import create_logger

logger = create_logger(__name__)

KEY_COLUMNS = ["country", "region", "level", "year"]
NORMALIZED_COLUMNS = KEY_COLUMNS + ["value"]

CANONICAL_NAMES = {
    "country_code": "country",
    "region_code": "region",
    "territorial_level": "level",
    "time_period": "year",
    "observed_value": "value",
}


def collapse_duplicates(frame: pd.DataFrame) -> pd.DataFrame:
    """Average rows that share (country, region, level, year).

    Revised releases leave several raw rows for the same key; they are
    collapsed by arithmetic mean. The result is sorted by key.
    """
    if frame.empty:
        return frame.reindex(columns=NORMALIZED_COLUMNS).reset_index(drop=True)

    collapsed = frame.groupby(KEY_COLUMNS, as_index=False, sort=True)["value"].mean()
    dropped = len(frame) - len(collapsed)
    if dropped:
        logger.debug(f"Collapsed {dropped} duplicate rows by mean")
    return collapsed[NORMALIZED_COLUMNS]


def normalize(frame: pd.DataFrame) -> pd.DataFrame:
    """Rename to canonical columns and collapse duplicates.

    Applying this to its own output returns an equal frame.
    """
    renamed = frame.rename(columns=CANONICAL_NAMES)
    return collapse_duplicates(renamed[NORMALIZED_COLUMNS])


def filter_and_normalize(
    observations: pd.DataFrame,
    countries: Iterable[str],
    measure: str,
    unit_measure: Optional[str] = None,
    unit_multiplier: Optional[float] = None,
    collapse: bool = True,
) -> pd.DataFrame:
    """Select observations for a measure and return the normalized subset.

    :param observations: Observation frame with canonical source columns
    :param countries: Country codes to keep
    :param measure: Measure type, e.g. ``"GDP"`` or ``"POP"``
    :param unit_measure: Unit of measure to require (GDP only)
    :param unit_multiplier: Unit multiplier to require (GDP only)
    :param collapse: Average duplicate rows per key
    :return: Frame with columns country, region, level, year, value;
        possibly empty
    """
    countries = list(countries)
    mask = observations["country_code"].isin(countries) & (
        observations["measure_type"] == measure
    )
    if unit_measure is not None:
        mask &= observations["unit_of_measure"] == unit_measure
    if unit_multiplier is not None:
        mask &= observations["unit_multiplier"] == unit_multiplier

    subset = observations.loc[mask, list(CANONICAL_NAMES)].rename(columns=CANONICAL_NAMES)
    if subset.empty:
        logger.warning(
            f"No {measure} observations for {sorted(countries)} "
            f"(unit={unit_measure}, multiplier={unit_multiplier})"
        )

    if collapse:
        return collapse_duplicates(subset)
    return subset.reset_index(drop=True)
