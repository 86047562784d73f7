"""Filter-and-aggregation engine for CSR spending records.

Everything here is pure, synchronous, in-memory computation over an
immutable RecordStore; I/O lives in pipeline/ and api/.
"""

from engine.records import FilterOptions, Record, RecordStore
from engine.filters import FilterPredicateSet, filter_records
from engine.aggregate import (
    DISPLAY_LIMIT,
    AggregateResult,
    DisplayRow,
    GroupTotal,
    SummaryMetrics,
    aggregate,
    display_rows,
    group_totals,
    project_display,
    region_intensities,
    region_totals,
)
from engine.session import DashboardSession, DashboardView, Debouncer

__all__ = [
    # Records
    "Record",
    "RecordStore",
    "FilterOptions",
    # Filters
    "FilterPredicateSet",
    "filter_records",
    # Aggregation
    "DISPLAY_LIMIT",
    "AggregateResult",
    "DisplayRow",
    "GroupTotal",
    "SummaryMetrics",
    "aggregate",
    "display_rows",
    "group_totals",
    "project_display",
    "region_intensities",
    "region_totals",
    # Session
    "DashboardSession",
    "DashboardView",
    "Debouncer",
]
