"""Fact-check package for regional GDP-per-capita comparisons.

This package contains modules for loading cached OECD regional accounts,
computing population-weighted GDP per capita and checking the claim that
the UK without London is poorer per head than Mississippi.
"""

import logging

logger = logging.getLogger(__name__)

__version__ = "1.0.0"


def init_factcheck_package() -> None:
    """Log package details at debug level."""
    logger.debug("Initializing regional fact-check package")
    logger.debug("   Modules: ingest, transform, compare, report, snapshot, chart")


init_factcheck_package()
