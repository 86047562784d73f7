"""
Pipeline package -- CSR sheet ingestion.

Re-exports key entry points so callers can do::

    from pipeline import CsvSource, parse_csv
"""

from pipeline.ingest import IngestResult, parse_csv
from pipeline.logging import IngestReport, SkipRecord
from pipeline.source import (
    CsvSource,
    PayloadTooSmallError,
    SourceError,
    SourceUnavailableError,
    StaticSource,
)

__all__ = [
    "CsvSource",
    "StaticSource",
    "IngestReport",
    "IngestResult",
    "SkipRecord",
    "SourceError",
    "SourceUnavailableError",
    "PayloadTooSmallError",
    "parse_csv",
]
