"""Ingest package for loading the cached regional accounts table.

Fetching from the OECD API happens upstream; this package only reads
the cached extract the fetch step leaves behind.
"""

from factcheck.ingest.run import SourceLoader, load_observations

__all__ = ["SourceLoader", "load_observations"]
