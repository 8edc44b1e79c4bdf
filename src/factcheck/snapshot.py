"""Persisted snapshot of a fact-check run.

The snapshot is the only state kept between runs: the full per-capita
table as parquet and a JSON summary with the year, the capital-excluded
aggregate of the country of interest, the reference value and the
verdict. The chart renderer reads it back.
"""

import json
import math
import os
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

import duckdb
import pandas as pd
import pyarrow.parquet as pq

from factcheck.exceptions import ExportError
from factcheck.logging_config import create_logger
from factcheck.utils import quote_sql_path

logger = create_logger(__name__)

TABLE_FILE = "gdp_pc.parquet"
SUMMARY_FILE = "analysis_summary.json"


@dataclass
class Snapshot:
    """Per-capita table and summary values read back from disk."""

    per_capita: pd.DataFrame
    year: int
    country: str
    excluding_capital: Dict[str, Any]
    reference_region: str
    reference_level: str
    reference_value: float
    verdict: Dict[str, Any]


def _json_safe(values: Dict[str, Any]) -> Dict[str, Any]:
    """Replace NaN with None so the summary stays valid JSON."""
    return {
        key: None if isinstance(value, float) and math.isnan(value) else value
        for key, value in values.items()
    }


def _from_json(value: Optional[float]) -> float:
    return float("nan") if value is None else float(value)


def build_summary(result) -> Dict[str, Any]:
    """JSON-serializable summary of a FactCheckResult."""
    settings = result.settings
    return {
        "year": int(settings.year),
        "country": settings.country_of_interest,
        "analysis_level": settings.analysis_level,
        "excluding_capital": _json_safe(asdict(result.interest_excluding_capital)),
        "reference": _json_safe(
            {
                "region": result.reference.region,
                "label": settings.reference_label,
                "level": result.reference.level,
                "value": result.reference.value,
                "fallback_used": result.reference.fallback_used,
            }
        ),
        "verdict": _json_safe(asdict(result.verdict)),
    }


def write_snapshot(
    result, output_dir: str, connection: Optional[duckdb.DuckDBPyConnection] = None
) -> str:
    """Write the per-capita table and summary of a run.

    :param result: FactCheckResult from ``run_fact_check``
    :param output_dir: Directory to write into (created if needed)
    :param connection: Optional DuckDB connection used for the parquet write
    :return: The output directory
    :raises ExportError: If either file cannot be written
    """
    con = connection if connection else duckdb.connect()
    table_path = os.path.join(output_dir, TABLE_FILE)
    summary_path = os.path.join(output_dir, SUMMARY_FILE)

    try:
        os.makedirs(output_dir, exist_ok=True)
        con.register("per_capita_snapshot", result.per_capita)
        con.sql(
            f"COPY per_capita_snapshot TO '{quote_sql_path(table_path)}' "
            f"(FORMAT PARQUET)"
        )
        con.unregister("per_capita_snapshot")

        with open(summary_path, "w") as f:
            json.dump(build_summary(result), f, indent=2)
    except (duckdb.Error, OSError) as e:
        raise ExportError(f"Failed to write snapshot to {output_dir}: {e}")
    finally:
        if connection is None:
            con.close()

    logger.info(f"Snapshot written to {output_dir} ({len(result.per_capita)} records)")
    return output_dir


def load_snapshot(output_dir: str) -> Snapshot:
    """Read a snapshot written by ``write_snapshot``.

    :param output_dir: Directory holding the snapshot files
    :return: Snapshot
    :raises ExportError: If the files are missing or unreadable
    """
    table_path = os.path.join(output_dir, TABLE_FILE)
    summary_path = os.path.join(output_dir, SUMMARY_FILE)

    try:
        table = pq.read_table(table_path)
        with open(summary_path) as f:
            summary = json.load(f)
    except (OSError, ValueError) as e:
        raise ExportError(f"Failed to read snapshot from {output_dir}: {e}")

    logger.info(f"Loaded snapshot with {table.num_rows} records from {output_dir}")

    reference = summary["reference"]
    return Snapshot(
        per_capita=table.to_pandas(),
        year=int(summary["year"]),
        country=summary["country"],
        excluding_capital=summary["excluding_capital"],
        reference_region=reference["region"],
        reference_level=reference["level"],
        reference_value=_from_json(reference["value"]),
        verdict=summary["verdict"],
    )
