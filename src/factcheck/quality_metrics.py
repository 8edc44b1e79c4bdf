"""Data quality metrics for the cached source table.

This module reports completeness, revision duplicates and coverage of the
observation frame before it enters the pipeline, using DuckDB SQL over the
registered pandas frame.
"""

import json
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import List, Optional, Tuple

import duckdb
import pandas as pd

from factcheck.logging_config import create_logger

logger = create_logger(__name__)

# One raw row per (region, measure, unit, year); extra rows are revisions
GRAIN_COLUMNS = [
    "country_code",
    "region_code",
    "territorial_level",
    "measure_type",
    "unit_of_measure",
    "unit_multiplier",
    "time_period",
]


@dataclass
class SourceMetrics:
    """Data quality metrics for the observation frame."""

    timestamp: str
    total_records: int
    total_countries: int
    total_regions: int
    total_years: int
    null_rate_percentage: float
    duplicate_groups: int
    year_range_min: int
    year_range_max: int
    issues: List[str]


class QualityMetrics:
    """Calculate data quality metrics for an observation frame."""

    TABLE_NAME = "observations"

    def __init__(self, connection: Optional[duckdb.DuckDBPyConnection] = None):
        """Initialize quality metrics calculator.

        Args:
            connection: DuckDB connection. If None, creates a new connection.
        """
        self.con = connection if connection else duckdb.connect()

    def _register(self, observations: pd.DataFrame) -> None:
        self.con.register(self.TABLE_NAME, observations)

    def calculate_null_rate(self) -> float:
        """Percentage of rows with a missing observed value."""
        result = self.con.execute(
            f"""
            SELECT
                100.0 * SUM(CASE WHEN observed_value IS NULL THEN 1 ELSE 0 END) / COUNT(*)
            FROM {self.TABLE_NAME}
            """
        ).fetchone()
        return float(result[0]) if result and result[0] is not None else 0.0

    def count_duplicate_groups(self) -> int:
        """Number of grain keys with more than one raw row."""
        grain_str = ", ".join(GRAIN_COLUMNS)
        result = self.con.execute(
            f"""
            SELECT COUNT(*)
            FROM (
                SELECT {grain_str}, COUNT(*) AS cnt
                FROM {self.TABLE_NAME}
                GROUP BY {grain_str}
                HAVING COUNT(*) > 1
            )
            """
        ).fetchone()
        return int(result[0]) if result and result[0] is not None else 0

    def get_year_range(self) -> Tuple[int, int]:
        result = self.con.execute(
            f"SELECT MIN(time_period), MAX(time_period) FROM {self.TABLE_NAME}"
        ).fetchone()
        if result and result[0] is not None and result[1] is not None:
            return (int(result[0]), int(result[1]))
        return (0, 0)

    def calculate(self, observations: pd.DataFrame) -> SourceMetrics:
        """Calculate all metrics for an observation frame.

        Args:
            observations: Frame produced by the source loader

        Returns:
            SourceMetrics with counts, rates and detected issues
        """
        issues = []
        timestamp = datetime.now().isoformat()

        if observations.empty:
            logger.warning("Observation frame is empty; no metrics to compute")
            return SourceMetrics(
                timestamp=timestamp,
                total_records=0,
                total_countries=0,
                total_regions=0,
                total_years=0,
                null_rate_percentage=0.0,
                duplicate_groups=0,
                year_range_min=0,
                year_range_max=0,
                issues=["No observations loaded"],
            )

        self._register(observations)
        try:
            counts = self.con.execute(
                f"""
                SELECT
                    COUNT(*),
                    COUNT(DISTINCT country_code),
                    COUNT(DISTINCT region_code),
                    COUNT(DISTINCT time_period)
                FROM {self.TABLE_NAME}
                """
            ).fetchone()
            null_rate = self.calculate_null_rate()
            duplicate_groups = self.count_duplicate_groups()
            year_min, year_max = self.get_year_range()
        finally:
            self.con.unregister(self.TABLE_NAME)

        if null_rate > 0:
            issues.append(f"Missing observed values: {null_rate:.2f}%")
        if duplicate_groups > 0:
            issues.append(
                f"Found {duplicate_groups} keys with revision duplicates (averaged downstream)"
            )

        metrics = SourceMetrics(
            timestamp=timestamp,
            total_records=int(counts[0]),
            total_countries=int(counts[1]),
            total_regions=int(counts[2]),
            total_years=int(counts[3]),
            null_rate_percentage=round(null_rate, 2),
            duplicate_groups=duplicate_groups,
            year_range_min=year_min,
            year_range_max=year_max,
            issues=issues,
        )
        logger.info(
            f"Source metrics: {metrics.total_records} rows, "
            f"{metrics.total_regions} regions, years {year_min}-{year_max}"
        )
        for issue in issues:
            logger.warning(issue)
        return metrics

    def export_metrics_json(self, metrics: SourceMetrics, output_path: str) -> None:
        """Export metrics to a JSON file.

        Args:
            metrics: Metrics to export
            output_path: Path to output JSON file
        """
        with open(output_path, "w") as f:
            json.dump(asdict(metrics), f, indent=2)
        logger.info(f"Metrics exported to {output_path}")
