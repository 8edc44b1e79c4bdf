"""GDP per capita from normalized GDP and population frames."""

from dataclasses import dataclass

import pandas as pd

from factcheck.config import Units
from factcheck.logging_config import create_logger
from factcheck.transform.normalize import KEY_COLUMNS

logger = create_logger(__name__)

PER_CAPITA_COLUMNS = KEY_COLUMNS + ["gdp", "pop", "gdp_pc"]


@dataclass
class PerCapitaTable:
    """Joined per-capita records plus the rows excluded as unusable."""

    records: pd.DataFrame
    invalid: pd.DataFrame

    def __len__(self) -> int:
        return len(self.records)


def compute_per_capita(
    gdp: pd.DataFrame, population: pd.DataFrame, units: Units
) -> PerCapitaTable:
    """Inner-join GDP and population and compute GDP per capita.

    Regions present on only one side are dropped. Rows with missing GDP,
    or with missing or non-positive population, are excluded and returned
    in ``invalid``.

    :param gdp: Normalized GDP frame (value in ``units.unit_multiplier``)
    :param population: Normalized population frame
    :param units: Unit conversion for the per-capita value
    :return: PerCapitaTable with columns country, region, level, year,
        gdp, pop, gdp_pc
    """
    merged = gdp.rename(columns={"value": "gdp"}).merge(
        population.rename(columns={"value": "pop"}),
        on=KEY_COLUMNS,
        how="inner",
    )

    # NaN compares False, so missing population lands here too
    invalid_mask = ~(merged["pop"] > 0) | merged["gdp"].isna()
    invalid = merged.loc[invalid_mask, KEY_COLUMNS + ["gdp", "pop"]].reset_index(drop=True)
    if not invalid.empty:
        logger.warning(
            f"Excluding {len(invalid)} records with missing GDP or non-positive population: "
            f"{invalid['region'].tolist()}"
        )

    records = merged.loc[~invalid_mask, KEY_COLUMNS + ["gdp", "pop"]].copy()
    records["gdp"] = records["gdp"].astype(float)
    records["pop"] = records["pop"].astype(float)
    records["gdp_pc"] = units.per_capita(records["gdp"], records["pop"])
    records = records.sort_values(KEY_COLUMNS).reset_index(drop=True)

    logger.info(
        f"Computed GDP per capita for {len(records)} records "
        f"({len(gdp)} GDP rows, {len(population)} population rows)"
    )
    return PerCapitaTable(records=records[PER_CAPITA_COLUMNS], invalid=invalid)
