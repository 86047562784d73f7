"""
GET /api/v1/records endpoint.

Pages through the full filtered set in source order. Unlike the dashboard's
display projection this is not capped; ``page`` past the end returns an
empty ``items`` list.
"""

import math

from fastapi import APIRouter, Depends, Query, Request

from api.datasource import get_predicates, get_store
from api.models import PaginatedRecords, RecordOut
from engine.filters import FilterPredicateSet, filter_records
from engine.records import RecordStore

router = APIRouter(prefix="/records", tags=["records"])


@router.get("", response_model=PaginatedRecords, summary="List filtered records")
def list_records(
    request: Request,
    page: int = Query(1, ge=1, description="1-based page number"),
    page_size: int | None = Query(None, ge=1, le=1000, description="Rows per page (default CSR_PAGE_SIZE)"),
    predicates: FilterPredicateSet = Depends(get_predicates),
    store: RecordStore = Depends(get_store),
) -> PaginatedRecords:
    """Return one page of filtered records with raw spending strings."""
    size = page_size or request.app.state.config.page_size
    filtered = filter_records(store, predicates)
    start = (page - 1) * size
    items = filtered[start:start + size]
    return PaginatedRecords(
        total=len(filtered),
        page=page,
        page_size=size,
        total_pages=math.ceil(len(filtered) / size),
        items=[RecordOut.from_record(r) for r in items],
    )
