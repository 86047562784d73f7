"""
Request dependencies: the data source, the record store, and the filter
predicate set parsed from query parameters.

The CsvSource lives on ``app.state.source`` (set by create_app) rather
than in a module global, so each app instance and each test client carries
its own source and cache.
"""

from fastapi import Query, Request

from engine.filters import FilterPredicateSet
from engine.records import RecordStore
from pipeline.source import CsvSource


def get_source(request: Request) -> CsvSource:
    """Return the CsvSource configured for this app."""
    return request.app.state.source


def get_store(request: Request) -> RecordStore:
    """Load (or reuse) the record store.

    SourceError propagates to the app's exception handler, which turns it
    into a 503.
    """
    return get_source(request).load()


def get_predicates(
    state: list[str] | None = Query(None, description="Filter by state/UT (repeatable)"),
    sector: list[str] | None = Query(None, description="Filter by development sector (repeatable)"),
    ownership: list[str] | None = Query(None, description="Filter by PSU/Non-PSU (repeatable)"),
    q: str | None = Query(None, description="Company name contains (case-insensitive)"),
    require_company: bool = Query(False, description="Drop rows with no company name"),
) -> FilterPredicateSet:
    """Build the FilterPredicateSet shared by every filtered endpoint."""
    return FilterPredicateSet.build(
        states=state,
        sectors=sector,
        ownership_types=ownership,
        company_name_query=q,
        require_company_name=require_company,
    )
