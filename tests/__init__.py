"""Test suite for the regional GDP fact-check pipeline.

This package contains tests for the pipeline including:
- Unit tests for individual modules
- Integration tests for complete runs
"""

__version__ = "1.0.0"
