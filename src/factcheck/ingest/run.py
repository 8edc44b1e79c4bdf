"""Ingest module for the cached OECD regional accounts table.

This module reads the CSV or parquet extract left behind by the upstream
fetch step, standardizes the OECD SDMX column names, validates and types
the columns, and maintains a parquet cache of the cleaned table.
"""

import os
import time
from typing import Dict, Optional

import duckdb
import pandas as pd

from factcheck.exceptions import FileConversionError, IngestError, SchemaError
from factcheck.logging_config import create_logger
from factcheck.utils import quote_sql_path

logger = create_logger(__name__)

# OECD SDMX column name -> canonical observation column
SDMX_COLUMN_MAP: Dict[str, str] = {
    "COUNTRY": "country_code",
    "REF_AREA": "region_code",
    "TERRITORIAL_LEVEL": "territorial_level",
    "MEASURE": "measure_type",
    "UNIT_MEASURE": "unit_of_measure",
    "UNIT_MULT": "unit_multiplier",
    "TIME_PERIOD": "time_period",
    "OBS_VALUE": "observed_value",
}

REQUIRED_COLUMNS = list(SDMX_COLUMN_MAP.values())

STRING_COLUMNS = [
    "country_code",
    "region_code",
    "territorial_level",
    "measure_type",
    "unit_of_measure",
]


class SourceLoader:
    """Load observations from a cached source file through DuckDB.

    Handles both the raw CSV extract and the parquet cache. The returned
    frame always carries exactly the eight canonical observation columns.
    """

    def __init__(self, connection: Optional[duckdb.DuckDBPyConnection] = None) -> None:
        """Initialize the loader with a DuckDB connection.

        :param connection: DuckDB connection. If None, creates an in-memory one.
        """
        self.con = connection if connection else duckdb.connect()

    def read_source(self, path: str) -> pd.DataFrame:
        """Read a CSV or parquet source file into a typed observation frame.

        :param path: Path to the source file
        :return: Observation frame with canonical columns
        :raises IngestError: If the file does not exist
        :raises FileConversionError: If the file cannot be read
        :raises SchemaError: If required columns are missing
        """
        if not os.path.isfile(path):
            raise IngestError(f"Source file not found: {path}")

        extension = os.path.splitext(path)[1].lower()
        if extension == ".csv":
            query = (
                f"SELECT * FROM read_csv('{quote_sql_path(path)}', "
                f"header = true, all_varchar = true)"
            )
        elif extension == ".parquet":
            query = f"SELECT * FROM read_parquet('{quote_sql_path(path)}')"
        else:
            raise FileConversionError(f"Unsupported source format: {extension}")

        logger.info(f"Reading source file {path}")
        try:
            frame = self.con.sql(query).df()
        except duckdb.Error as e:
            raise FileConversionError(f"Failed to read {path}: {e}")

        observations = self.standardize(frame)
        logger.info(f"Loaded {len(observations)} observations from {path}")
        return observations

    def standardize(self, frame: pd.DataFrame) -> pd.DataFrame:
        """Rename SDMX columns, check the schema and coerce types.

        :param frame: Raw frame as read from disk
        :return: Observation frame with canonical columns only
        :raises SchemaError: If required columns are missing
        """
        frame = frame.rename(columns=SDMX_COLUMN_MAP)

        missing = [col for col in REQUIRED_COLUMNS if col not in frame.columns]
        if missing:
            raise SchemaError(f"Source table is missing required columns: {missing}")

        observations = frame[REQUIRED_COLUMNS].copy()
        for col in STRING_COLUMNS:
            observations[col] = observations[col].astype(object)
        observations["observed_value"] = pd.to_numeric(
            observations["observed_value"], errors="coerce"
        )
        observations["unit_multiplier"] = pd.to_numeric(
            observations["unit_multiplier"], errors="coerce"
        )
        observations["time_period"] = pd.to_numeric(
            observations["time_period"], errors="coerce"
        )

        bad_years = observations["time_period"].isna()
        if bad_years.any():
            logger.warning(f"Dropping {int(bad_years.sum())} rows without a usable time period")
            observations = observations[~bad_years]

        observations["time_period"] = observations["time_period"].astype("int64")
        return observations.reset_index(drop=True)

    def cache_as_parquet(self, observations: pd.DataFrame, parquet_path: str) -> None:
        """Write a cleaned observation frame to a parquet cache file.

        :param observations: Frame returned by ``read_source``
        :param parquet_path: Destination parquet file
        :raises FileConversionError: If the cache cannot be written
        """
        start_time = time.time()
        try:
            os.makedirs(os.path.dirname(os.path.abspath(parquet_path)), exist_ok=True)
            self.con.register("observations_to_cache", observations)
            self.con.sql(
                f"COPY observations_to_cache TO '{quote_sql_path(parquet_path)}' "
                f"(FORMAT PARQUET)"
            )
            self.con.unregister("observations_to_cache")
        except (duckdb.Error, OSError) as e:
            raise FileConversionError(f"Failed to write parquet cache {parquet_path}: {e}")

        logger.info(
            f"Cached {len(observations)} rows to {parquet_path} "
            f"in {time.time() - start_time:.2f}s"
        )

    def close(self) -> None:
        self.con.close()


def _cache_is_fresh(source_path: str, cache_path: str) -> bool:
    if not os.path.isfile(cache_path):
        return False
    if not os.path.isfile(source_path):
        return True
    return os.path.getmtime(cache_path) >= os.path.getmtime(source_path)


def load_observations(
    source_path: str,
    cache_path: Optional[str] = None,
    loader: Optional[SourceLoader] = None,
) -> pd.DataFrame:
    """Load observations, preferring a parquet cache that is up to date.

    :param source_path: Path to the upstream CSV or parquet extract
    :param cache_path: Optional parquet cache path, refreshed when stale
    :param loader: Optional loader to reuse an existing DuckDB connection
    :return: Observation frame with canonical columns
    """
    loader = loader or SourceLoader()

    if cache_path and _cache_is_fresh(source_path, cache_path):
        logger.info(f"Using cached observations at {cache_path}")
        return loader.read_source(cache_path)

    observations = loader.read_source(source_path)
    if cache_path and os.path.abspath(cache_path) != os.path.abspath(source_path):
        loader.cache_as_parquet(observations, cache_path)
    return observations
