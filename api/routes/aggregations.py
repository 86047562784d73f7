"""
GET /api/v1/aggregations endpoint.

Groups the filtered records by state/UT or development sector and sums
spending, for the bar charts. Accepts the same filters as /dashboard.
"""

from fastapi import APIRouter, Depends, HTTPException
from fastapi import Query as FQuery

from api.datasource import get_predicates, get_store
from api.models import AggregationResponse, GroupTotalOut
from engine.aggregate import group_totals
from engine.filters import FilterPredicateSet, filter_records
from engine.records import RecordStore
from utils.config import KnownValues

router = APIRouter(prefix="/aggregations", tags=["aggregations"])


@router.get(
    "",
    response_model=AggregationResponse,
    summary="Aggregate spending by state or sector",
    responses={
        400: {"description": "Invalid group_by parameter", "content": {"application/json": {"example": {"error": "Bad request", "detail": "group_by must be one of: ['sector', 'state']", "status_code": 400}}}},
    },
)
def aggregate_by(
    group_by: str = FQuery(..., description="Dimension to group by: state, sector"),
    top: int | None = FQuery(None, ge=1, le=500, description="Keep only the N largest groups"),
    predicates: FilterPredicateSet = Depends(get_predicates),
    store: RecordStore = Depends(get_store),
) -> AggregationResponse:
    """Chart series for the filtered set, largest amount first.

    Records with an empty group value are reported as "Unknown".
    """
    field_name = KnownValues.grouping_field(group_by)
    if field_name is None:
        raise HTTPException(
            status_code=400,
            detail=f"group_by must be one of: {sorted(KnownValues.GROUPINGS)}",
        )

    rows = group_totals(filter_records(store, predicates), field_name)
    if top is not None:
        rows = rows[:top]
    return AggregationResponse(
        group_by=group_by,
        rows=[GroupTotalOut(label=g.label, amount=g.amount, record_count=g.record_count)
              for g in rows],
    )
