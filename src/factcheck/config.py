"""Configuration module for project settings and environment variables.

This module manages file locations, analysis parameters and the explicit
lookup tables (capital prefixes, plot levels, country labels) used by the
fact-check pipeline. Environment variables are read here and nowhere else;
the core functions receive a ``FactCheckSettings`` instance instead.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, Mapping, Tuple

from dotenv import load_dotenv

from factcheck.exceptions import ConfigurationError
from factcheck.logging_config import create_logger

# Load environment variables from .env file
load_dotenv()

logger = create_logger(__name__)

# get the local root directory
ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))

DATA_DIR = os.getenv("DATA_DIR", os.path.join(ROOT_DIR, "data"))
SOURCE_FILE = os.getenv(
    "SOURCE_FILE", os.path.join(DATA_DIR, "raw", "oecd_regional_gdp.csv")
)
SOURCE_CACHE_FILE = os.getenv(
    "SOURCE_CACHE_FILE", os.path.join(DATA_DIR, "cache", "oecd_regional_gdp.parquet")
)
OUTPUT_DIR = os.getenv("OUTPUT_DIR", os.path.join(DATA_DIR, "output"))
CHART_FILE = os.getenv("CHART_FILE", os.path.join(OUTPUT_DIR, "ft_chart_reproduction.png"))

# Pre-COVID year used by the published chart
ANALYSIS_YEAR = int(os.getenv("ANALYSIS_YEAR", "2019"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_DIR = os.getenv("LOG_DIR", "")

COUNTRIES: Tuple[str, ...] = ("GBR", "USA", "DEU", "NLD")

COUNTRY_LABELS: Dict[str, str] = {
    "GBR": "UK",
    "USA": "US",
    "DEU": "Germany",
    "NLD": "Netherlands",
}

# Every finer region of a capital shares the capital's code prefix.
# Bump the version whenever an entry changes; results depend on the
# OECD code conventions staying stable.
CAPITAL_PREFIXES_VERSION = "2024.1"
CAPITAL_PREFIXES: Dict[str, str] = {
    "GBR": "UKI",  # Greater London
    "DEU": "DE30",  # Berlin (DE300 at TL3)
    "NLD": "NL32",  # Noord-Holland (Amsterdam)
    "USA": "US11",  # District of Columbia
}

# Territorial level drawn per country on the comparison chart
PLOT_LEVELS: Dict[str, str] = {
    "GBR": "TL3",
    "DEU": "TL3",
    "NLD": "TL3",
    "USA": "TL2",
}


@dataclass(frozen=True)
class Units:
    """GDP unit conversion.

    ``unit_multiplier`` is the power of ten the stored GDP values are
    expressed in (6 means millions); ``display_scale`` is the denomination
    per-capita results are reported in (1000 means thousands).
    """

    unit_multiplier: int = 6
    display_scale: float = 1000.0

    @property
    def unit_scale(self) -> float:
        return 10.0 ** self.unit_multiplier

    def per_capita(self, gdp, pop):
        """Per-capita value in display units; works on scalars and Series."""
        return (gdp * self.unit_scale / pop) / self.display_scale


@dataclass(frozen=True)
class FactCheckSettings:
    """Everything the pipeline needs to know, passed in explicitly."""

    countries: Tuple[str, ...] = COUNTRIES
    year: int = ANALYSIS_YEAR
    analysis_level: str = "TL3"
    country_of_interest: str = "GBR"
    reference_region: str = "US28"  # Mississippi
    reference_label: str = "Mississippi"
    reference_preferred_level: str = "TL3"
    reference_fallback_level: str = "TL2"
    gdp_measure: str = "GDP"
    population_measure: str = "POP"
    gdp_unit_measure: str = "USD_PPP"
    units: Units = field(default_factory=Units)
    capital_prefixes: Mapping[str, str] = field(
        default_factory=lambda: dict(CAPITAL_PREFIXES)
    )
    plot_levels: Mapping[str, str] = field(default_factory=lambda: dict(PLOT_LEVELS))
    country_labels: Mapping[str, str] = field(
        default_factory=lambda: dict(COUNTRY_LABELS)
    )
    top_n: int = 30


def settings_from_env() -> FactCheckSettings:
    """Build pipeline settings from the module-level configuration."""
    return FactCheckSettings(countries=COUNTRIES, year=ANALYSIS_YEAR)


def validate_config(settings: FactCheckSettings = None) -> None:
    """
    Validate critical configuration parameters.
    Raises ConfigurationError if any required config is missing or invalid.

    :param settings: Settings to validate alongside the file locations
    :raises ConfigurationError: If configuration is invalid
    """
    required_dirs = [
        ("DATA_DIR", DATA_DIR),
        ("OUTPUT_DIR", OUTPUT_DIR),
        ("SOURCE_CACHE_DIR", os.path.dirname(SOURCE_CACHE_FILE)),
    ]

    for dir_name, dir_path in required_dirs:
        if not dir_path:
            raise ConfigurationError(
                f"Missing required directory configuration: {dir_name}"
            )

        try:
            os.makedirs(dir_path, exist_ok=True)
        except OSError as e:
            raise ConfigurationError(
                f"Unable to create directory {dir_name} at {dir_path}: {e}"
            )

    if not SOURCE_FILE:
        raise ConfigurationError("Source file path (SOURCE_FILE) is not configured")

    if settings is not None:
        if settings.year < 1900 or settings.year > 2100:
            raise ConfigurationError(f"Implausible analysis year: {settings.year}")

        if settings.country_of_interest not in settings.countries:
            raise ConfigurationError(
                f"Country of interest {settings.country_of_interest} "
                f"is not among {list(settings.countries)}"
            )

        if settings.country_of_interest not in settings.capital_prefixes:
            raise ConfigurationError(
                f"No capital prefix configured for {settings.country_of_interest}"
            )

        if settings.units.display_scale <= 0:
            raise ConfigurationError("display_scale must be positive")

    logger.info(
        f"Configuration validation successful "
        f"(capital prefixes v{CAPITAL_PREFIXES_VERSION})"
    )
