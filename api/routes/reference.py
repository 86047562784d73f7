"""
Reference data endpoints.

GET /api/v1/reference/filters → distinct states, sectors and PSU/Non-PSU
values present in the loaded sheet, for populating filter controls.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.datasource import get_store
from api.models import FilterOptionsOut
from engine.records import RecordStore

router = APIRouter(prefix="/reference", tags=["reference"])

_CACHE_HEADER = {"Cache-Control": "max-age=300"}


@router.get(
    "/filters",
    response_model=FilterOptionsOut,
    summary="List filter values",
)
def list_filter_options(store: RecordStore = Depends(get_store)) -> JSONResponse:
    """Return the sorted distinct values for each filter dimension."""
    options = store.options()
    data = FilterOptionsOut(
        states=list(options.states),
        sectors=list(options.sectors),
        ownership_types=list(options.ownership_types),
        record_count=len(store),
    )
    return JSONResponse(content=data.model_dump(), headers=_CACHE_HEADER)
