"""Pytest configuration and shared fixtures for the fact-check tests.

This module provides fixtures for:
- DuckDB database connections
- Synthetic OECD regional observations
- Normalized and per-capita frames
- Temporary file management
"""

import tempfile
from pathlib import Path
from types import SimpleNamespace
from typing import Generator

import duckdb
import pandas as pd
import pytest

from factcheck.config import FactCheckSettings, Units

SOURCE_COLUMNS = [
    "country_code",
    "region_code",
    "territorial_level",
    "measure_type",
    "unit_of_measure",
    "unit_multiplier",
    "time_period",
    "observed_value",
]


def gdp_row(country, region, level, value, year=2019, unit="USD_PPP", mult=6):
    return (country, region, level, "GDP", unit, mult, year, float(value))


def pop_row(country, region, level, value, year=2019):
    return (country, region, level, "POP", "PS", 0, year, float(value))


def make_observations(rows) -> pd.DataFrame:
    """Observation frame with the loader's canonical columns and dtypes."""
    frame = pd.DataFrame(rows, columns=SOURCE_COLUMNS)
    frame["unit_multiplier"] = frame["unit_multiplier"].astype(float)
    frame["time_period"] = frame["time_period"].astype("int64")
    frame["observed_value"] = frame["observed_value"].astype(float)
    return frame


@pytest.fixture(scope="function")
def observation_builder() -> SimpleNamespace:
    """Helpers for building custom observation frames inside a test."""
    return SimpleNamespace(gdp=gdp_row, pop=pop_row, frame=make_observations)


# ============================================================================
# Settings Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def units() -> Units:
    """GDP stored in millions, per capita reported in thousands."""
    return Units(unit_multiplier=6, display_scale=1000.0)


@pytest.fixture(scope="function")
def settings() -> FactCheckSettings:
    """Settings for the 2019 UK vs Mississippi comparison."""
    return FactCheckSettings(year=2019)


# ============================================================================
# Test Data Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def sample_observations() -> pd.DataFrame:
    """Synthetic regional accounts for four countries.

    GBR TL3 2019 per capita (thousands): UKI31 200, UKI32 100, UKC11 30,
    UKD12 40, UKJ11 56 (mean of two revisions). UK without London is 42.0.
    Mississippi only exists at TL2: 130,000 / 3,000,000 -> 43.33.
    UKE11 has no population, UKG11 has no GDP and UKF11 has zero population.
    """
    rows = [
        # United Kingdom, TL3
        gdp_row("GBR", "UKI31", "TL3", 200_000),
        pop_row("GBR", "UKI31", "TL3", 1_000_000),
        gdp_row("GBR", "UKI32", "TL3", 100_000),
        pop_row("GBR", "UKI32", "TL3", 1_000_000),
        gdp_row("GBR", "UKC11", "TL3", 30_000),
        gdp_row("GBR", "UKC11", "TL3", 99_999, unit="USD_EXC"),
        pop_row("GBR", "UKC11", "TL3", 1_000_000),
        gdp_row("GBR", "UKD12", "TL3", 40_000),
        pop_row("GBR", "UKD12", "TL3", 1_000_000),
        gdp_row("GBR", "UKJ11", "TL3", 55_000),
        gdp_row("GBR", "UKJ11", "TL3", 57_000),
        pop_row("GBR", "UKJ11", "TL3", 1_000_000),
        gdp_row("GBR", "UKE11", "TL3", 20_000),
        pop_row("GBR", "UKG11", "TL3", 500_000),
        gdp_row("GBR", "UKF11", "TL3", 10_000),
        pop_row("GBR", "UKF11", "TL3", 0),
        # United Kingdom, TL3, earlier year
        gdp_row("GBR", "UKC11", "TL3", 28_000, year=2018),
        pop_row("GBR", "UKC11", "TL3", 1_000_000, year=2018),
        # United Kingdom, TL2
        gdp_row("GBR", "UKI", "TL2", 300_000),
        pop_row("GBR", "UKI", "TL2", 2_000_000),
        gdp_row("GBR", "UKC", "TL2", 30_000),
        pop_row("GBR", "UKC", "TL2", 1_000_000),
        # United States, TL2 only
        gdp_row("USA", "US28", "TL2", 130_000),
        pop_row("USA", "US28", "TL2", 3_000_000),
        gdp_row("USA", "US11", "TL2", 150_000),
        pop_row("USA", "US11", "TL2", 700_000),
        gdp_row("USA", "US06", "TL2", 3_000_000),
        pop_row("USA", "US06", "TL2", 39_000_000),
        # Germany, TL3
        gdp_row("DEU", "DE300", "TL3", 170_000),
        pop_row("DEU", "DE300", "TL3", 3_600_000),
        gdp_row("DEU", "DE111", "TL3", 50_000),
        pop_row("DEU", "DE111", "TL3", 600_000),
        # Netherlands, TL3
        gdp_row("NLD", "NL329", "TL3", 60_000),
        pop_row("NLD", "NL329", "TL3", 800_000),
        gdp_row("NLD", "NL310", "TL3", 40_000),
        pop_row("NLD", "NL310", "TL3", 1_300_000),
        # Outside the country list
        gdp_row("FRA", "FR101", "TL3", 700_000),
        pop_row("FRA", "FR101", "TL3", 2_100_000),
    ]
    return make_observations(rows)


@pytest.fixture(scope="function")
def two_region_observations() -> pd.DataFrame:
    """Two regions with identical per capita of 100 thousand."""
    return make_observations(
        [
            gdp_row("GBR", "UKA1", "TL3", 1_000_000),
            pop_row("GBR", "UKA1", "TL3", 10_000_000),
            gdp_row("GBR", "UKB1", "TL3", 500_000),
            pop_row("GBR", "UKB1", "TL3", 5_000_000),
        ]
    )


@pytest.fixture(scope="function")
def per_capita_records() -> pd.DataFrame:
    """Per-capita records as produced by compute_per_capita."""
    records = pd.DataFrame(
        {
            "country": ["GBR", "GBR", "GBR", "GBR", "USA", "USA"],
            "region": ["UKI1", "UKI2", "UKX1", "UKX2", "US28", "US11"],
            "level": ["TL3", "TL3", "TL3", "TL3", "TL2", "TL2"],
            "year": [2019] * 6,
            "gdp": [200_000.0, 100_000.0, 30_000.0, 60_000.0, 130_000.0, 150_000.0],
            "pop": [1_000_000.0, 1_000_000.0, 1_000_000.0, 2_000_000.0, 3_000_000.0, 700_000.0],
        }
    )
    records["gdp_pc"] = (records["gdp"] * 1e6 / records["pop"]) / 1000
    return records


# ============================================================================
# DuckDB and Temporary File Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def duckdb_connection() -> Generator[duckdb.DuckDBPyConnection, None, None]:
    """Provide an in-memory DuckDB connection for testing.

    Yields:
        DuckDB connection object
    """
    con = duckdb.connect(":memory:")
    yield con
    con.close()


@pytest.fixture(scope="function")
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for testing.

    Yields:
        Path to temporary directory
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(scope="function")
def sdmx_csv_file(temp_dir: Path, sample_observations: pd.DataFrame) -> Path:
    """Write the sample observations as an OECD SDMX-style CSV extract.

    Args:
        temp_dir: Temporary directory path
        sample_observations: Sample observation frame

    Returns:
        Path to the CSV file
    """
    sdmx = sample_observations.rename(
        columns={
            "country_code": "COUNTRY",
            "region_code": "REF_AREA",
            "territorial_level": "TERRITORIAL_LEVEL",
            "measure_type": "MEASURE",
            "unit_of_measure": "UNIT_MEASURE",
            "unit_multiplier": "UNIT_MULT",
            "time_period": "TIME_PERIOD",
            "observed_value": "OBS_VALUE",
        }
    )
    sdmx["UNIT_MULT"] = sdmx["UNIT_MULT"].astype(int)
    sdmx["OBS_STATUS"] = "A"
    csv_path = temp_dir / "oecd_regional_gdp.csv"
    sdmx.to_csv(csv_path, index=False)
    return csv_path
