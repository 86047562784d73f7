"""
FastAPI application factory.

Usage:
    python -m api.app                    # Dev server on port 8000
    CSR_SOURCE_URL=https://.../pub?output=csv python -m api.app

OpenAPI docs available at http://localhost:8000/docs after starting.

Every request-time dependency reads the data source from ``app.state``, so
tests build an app around a StaticSource and never touch the network.

APP_LOG_FORMAT=json switches to newline-delimited JSON logs.
APP_CORS_ORIGINS sets the CORS allow-list (comma-separated, default *).
"""

import json
import logging
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.models import ErrorResponse
from api.routes import aggregations, dashboard, download, records, reference, source
from pipeline.source import CsvSource, PayloadTooSmallError, SourceError
from utils.cache import TTLCache
from utils.config import AppConfig

# ── Configuration ─────────────────────────────────────────────────────────────
_cfg = AppConfig.from_env()

# ── Structured JSON logging ──────────────────────────────────────────────────


class _JsonFormatter(logging.Formatter):
    """Emit log records as newline-delimited JSON."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        # Merge extra fields added via logger.info("...", extra={...})
        for key in ("method", "path", "status", "duration_ms", "request_id"):
            if hasattr(record, key):
                data[key] = getattr(record, key)
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(data)


_logger = logging.getLogger("csr_dashboard_api")


def configure_logging(log_format: str) -> None:
    """Install a single stream handler, JSON or plain text."""
    handler = logging.StreamHandler()
    if log_format == "json":
        handler.setFormatter(_JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
        )
    logging.basicConfig(handlers=[handler], level=logging.INFO, force=True)


configure_logging(_cfg.log_format)

_app_start_time: float = time.time()


def build_source(cfg: AppConfig) -> CsvSource:
    """Build the CsvSource described by *cfg*."""
    return CsvSource(
        url=cfg.source_url,
        ttl_seconds=cfg.cache_ttl_seconds,
        timeout=cfg.fetch_timeout,
        min_records=cfg.min_records,
    )


def create_app(data_source: CsvSource | None = None,
               config: AppConfig | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        data_source: Override the data source (tests pass a StaticSource).
        config: Override the environment-derived settings.

    Returns:
        Configured FastAPI application instance.
    """
    cfg = config or _cfg
    src = data_source if data_source is not None else build_source(cfg)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        _logger.info("serving source=%s ttl=%ss", src.url, cfg.cache_ttl_seconds)
        _logger.debug("config %s", cfg.to_dict())
        yield
        src.close()

    app = FastAPI(
        title="CSR Spending Explorer API",
        summary="Filter and aggregate India CSR spending records from a published sheet.",
        description=(
            "## CSR Spending Explorer API\n\n"
            "Serves filtered views of a published Corporate Social Responsibility "
            "spending sheet.\n\n"
            "### Key concepts\n"
            "- **Amounts** are in **₹ crore**. Unparseable amounts count as 0.\n"
            "- **Filters** (`state`, `sector`, `ownership`) are repeatable; values within "
            "a dimension are OR-ed, dimensions are AND-ed. An empty dimension does not "
            "restrict. `q` is a case-insensitive substring match on company name.\n"
            "- **Display rows** on `/dashboard` are capped; metrics, region totals and "
            "exports always cover the full filtered set.\n\n"
            "### Data freshness\n"
            f"The upstream CSV is cached for {cfg.cache_ttl_seconds:g} seconds. "
            "`POST /api/v1/source/refresh` forces a refetch."
        ),
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_tags=[
            {
                "name": "dashboard",
                "description": "Summary metrics, region totals and the display projection.",
            },
            {
                "name": "records",
                "description": "Paginated filtered records with raw spending values.",
            },
            {
                "name": "aggregations",
                "description": "Spending totals grouped by state or sector for charts.",
            },
            {
                "name": "reference",
                "description": "Distinct filter values present in the sheet.",
            },
            {
                "name": "download",
                "description": "Export the filtered records as Excel or CSV.",
            },
            {
                "name": "source",
                "description": "Raw upstream CSV and cache refresh.",
            },
            {
                "name": "meta",
                "description": "Health check.",
            },
        ],
    )
    app.state.source = src
    app.state.config = cfg
    app.state.summary_cache = TTLCache(maxsize=64, ttl_seconds=cfg.cache_ttl_seconds)

    # ── CORS middleware ───────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "HEAD", "OPTIONS", "POST"],
        allow_headers=["*"],
    )

    # ── Request logging middleware ────────────────────────────────────────────

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log each request and tag the response with a request ID."""
        request_id = str(uuid.uuid4())[:8]
        start = time.monotonic()
        path = request.url.path

        response = await call_next(request)
        duration_ms = (time.monotonic() - start) * 1000
        response.headers["X-Request-ID"] = request_id

        if cfg.log_format == "json":
            _logger.info(
                "request",
                extra={
                    "method": request.method,
                    "path": path,
                    "status": response.status_code,
                    "duration_ms": round(duration_ms, 1),
                    "request_id": request_id,
                },
            )
        else:
            _logger.info(
                "method=%s path=%s status=%d duration_ms=%.1f rid=%s",
                request.method, path, response.status_code, duration_ms, request_id,
            )
        if duration_ms > 500:
            _logger.warning(
                "slow_request method=%s path=%s duration_ms=%.1f",
                request.method, path, duration_ms,
            )
        return response

    # ── Error handling ────────────────────────────────────────────────────────

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """Catch unhandled exceptions and return JSON instead of HTML traceback."""
        _logger.exception("unhandled error path=%s", request.url.path)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "detail": str(exc),
                "status_code": 500,
            },
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return JSONResponse(
            status_code=400,
            content={"error": "Bad request", "detail": str(exc), "status_code": 400},
        )

    @app.exception_handler(SourceError)
    async def source_error_handler(request: Request, exc: SourceError):
        """The sheet could not be loaded: one message, no partial data."""
        _logger.error("source load failed path=%s error=%s", request.url.path, exc)
        return JSONResponse(
            status_code=503,
            content={
                "error": "Data source unavailable",
                "detail": str(exc),
                "status_code": 503,
            },
        )

    # ── Health check ──────────────────────────────────────────────────────────

    @app.get("/health", tags=["meta"], summary="Health check")
    def health():
        """Return 200 OK if the sheet loads, with record count and cache age."""
        try:
            store = src.load()
        except PayloadTooSmallError as e:
            return JSONResponse(
                status_code=503,
                content={"status": "degraded", "error": str(e)},
            )
        except SourceError as e:
            return JSONResponse(
                status_code=503,
                content={"status": "unavailable", "error": str(e)},
            )
        age = src.age()
        return {
            "status": "ok",
            "source": src.url,
            "records": len(store),
            "skipped_rows": store.skipped_rows,
            "cache_age_seconds": round(age, 2) if age is not None else None,
            "uptime_seconds": round(time.time() - _app_start_time, 2),
        }

    # ── Register routers ──────────────────────────────────────────────────────

    prefix = "/api/v1"
    source_errors = {503: {"model": ErrorResponse, "description": "Data source unavailable"}}
    for router_module in (dashboard, records, aggregations, reference, download, source):
        app.include_router(router_module.router, prefix=prefix, responses=source_errors)

    return app


# Singleton instance for uvicorn
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.app:app",
        host=_cfg.api_host,
        port=_cfg.api_port,
        reload=True,
        log_level="info",
    )
