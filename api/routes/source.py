"""
Upstream sheet passthrough.

GET  /api/v1/source.csv      → the cached raw CSV text, CORS-open so a
                               browser client can fetch it cross-origin.
POST /api/v1/source/refresh  → drop the cached payload and reload.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from api.datasource import get_source
from pipeline.source import CsvSource

router = APIRouter(tags=["source"])

_logger = logging.getLogger("csr_dashboard_api")


@router.get("/source.csv", summary="Raw CSV payload", response_class=PlainTextResponse)
def source_csv(source: CsvSource = Depends(get_source)) -> PlainTextResponse:
    """Serve the memoized upstream CSV unchanged."""
    text = source.fetch_text()
    return PlainTextResponse(
        content=text,
        media_type="text/csv; charset=utf-8",
        headers={
            "Access-Control-Allow-Origin": "*",
            "Cache-Control": f"max-age={int(min(source.cache.ttl_seconds, 86400))}",
        },
    )


@router.post("/source/refresh", summary="Invalidate the cached payload and reload")
def refresh_source(source: CsvSource = Depends(get_source)) -> dict:
    """Force a refetch. Returns the new record count and skip count."""
    source.invalidate()
    store = source.load()
    _logger.info("source refreshed records=%d skipped=%d", len(store), store.skipped_rows)
    return {
        "status": "refreshed",
        "records": len(store),
        "skipped_rows": store.skipped_rows,
    }
