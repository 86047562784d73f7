"""Dashboard endpoint: metrics, map regions and the table projection in one call."""

from fastapi import APIRouter, Depends, Request

from api.datasource import get_predicates, get_store
from api.models import (
    DashboardResponse,
    DisplayRowOut,
    FiltersOut,
    RegionTotalOut,
    SummaryMetricsOut,
)
from engine.aggregate import aggregate, display_rows, region_intensities
from engine.filters import FilterPredicateSet, filter_records
from engine.records import RecordStore
from utils.formatting import format_inr_crore, intensity_fill

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


def build_dashboard(store: RecordStore, predicates: FilterPredicateSet,
                    display_limit: int) -> DashboardResponse:
    """Run one filter + aggregate pass and shape it for the rendering client."""
    filtered = filter_records(store, predicates)
    result = aggregate(filtered, display_limit)
    intensities = region_intensities(result.region_totals)

    regions = [
        RegionTotalOut(
            region=region,
            total=total,
            intensity=intensities[region],
            fill=intensity_fill(intensities[region]),
            label=f"{region}: {format_inr_crore(total)}",
        )
        for region, total in result.region_totals.items()
    ]
    regions.sort(key=lambda r: (-r.total, r.region))

    m = result.metrics
    return DashboardResponse(
        filters=FiltersOut.from_predicates(predicates),
        metrics=SummaryMetricsOut(
            distinct_company_count=m.distinct_company_count,
            record_count=m.record_count,
            total_spending=m.total_spending,
            total_spending_display=format_inr_crore(m.total_spending),
        ),
        regions=regions,
        display=[DisplayRowOut.from_row(row) for row in display_rows(result.display)],
        display_limit=display_limit,
    )


@router.get("", response_model=DashboardResponse, summary="Dashboard summary for the current filters")
def dashboard(
    request: Request,
    predicates: FilterPredicateSet = Depends(get_predicates),
    store: RecordStore = Depends(get_store),
) -> DashboardResponse:
    """Return summary metrics, per-region totals with map intensity, and the
    first ``CSR_DISPLAY_LIMIT`` filtered rows.

    Results are cached per (record store, filter set) in the app's summary
    cache.
    """
    display_limit = request.app.state.config.display_limit
    summary_cache = request.app.state.summary_cache
    key = (id(store), store.loaded_at, predicates.cache_key(), display_limit)
    cached = summary_cache.get(key)
    if cached is not None:
        return cached

    result = build_dashboard(store, predicates, display_limit)
    summary_cache.set(key, result)
    return result
