"""
Custom exceptions for the fact-check pipeline.

This module defines a hierarchy of exceptions to provide more
precise error handling and debugging across the pipeline.
Missing data is never an exception: empty filter results propagate
as empty frames and surface as NaN aggregates.
"""


class FactCheckBaseError(Exception):
    """
    Base exception for all pipeline-related errors.

    All custom exceptions in the package should inherit from this class.
    """

    pass


class ConfigurationError(FactCheckBaseError):
    """
    Raised when there are configuration-related issues.

    This exception is used when:
    - Required configuration parameters are missing
    - Configuration values are invalid
    - Environment setup is incorrect
    """

    pass


class ReferenceLookupError(ConfigurationError):
    """
    Raised when a reference region has no row at either territorial level.

    The lookup retries once at the coarse level; if that also comes back
    empty the configured reference entity or year does not exist in the
    data, which is a fatal configuration problem.
    """

    pass


class IngestError(FactCheckBaseError):
    """
    Raised while loading the cached source table.

    Covers errors specific to data loading, including:
    - Missing source files
    - Source data validation failures
    """

    pass


class SchemaError(IngestError):
    """
    Raised when the source table lacks one of the required columns.
    """

    pass


class FileConversionError(IngestError):
    """
    Raised for errors while reading or converting a source file.

    Specific to issues such as:
    - Unsupported file formats
    - Unreadable CSV or parquet files
    - Failed parquet cache writes
    """

    pass


class NoDataError(FactCheckBaseError):
    """
    Raised when the pipeline receives no usable observations.

    The pipeline fails fast rather than producing a verdict from
    partial state.
    """

    pass


class ExportError(FactCheckBaseError):
    """
    Raised when writing or reading the derived snapshot or chart fails.
    """

    pass
