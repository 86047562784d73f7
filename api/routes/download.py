"""
GET /api/v1/download endpoint.

Exports the full filtered set (never the 50-row display projection) as
Excel or CSV. Spending is written as the raw source string, not reparsed,
so the export matches the sheet cell for cell.

Excel output uses openpyxl write_only mode; both formats carry an
X-Total-Count header.
"""

import csv
import io
import time
from datetime import datetime, timezone
from typing import Iterable

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import StreamingResponse

from api.datasource import get_predicates, get_store
from engine.filters import FilterPredicateSet, filter_records
from engine.records import Record, RecordStore
from utils.config import ColumnMapping, KnownValues

router = APIRouter(prefix="/download", tags=["download"])

_EXPORT_FIELDS = list(ColumnMapping.EXPORT_HEADERS)
_EXPORT_HEADERS = [ColumnMapping.EXPORT_HEADERS[f] for f in _EXPORT_FIELDS]

_XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def export_rows(records: Iterable[Record]) -> Iterable[list[str]]:
    """Yield one export row per record, in export column order."""
    for r in records:
        yield [getattr(r, f) for f in _EXPORT_FIELDS]


def _text_row(ws, values: Iterable) -> list:
    """Wrap *values* as write-only cells, keeping strings as literal text.

    openpyxl turns any string starting with "=" into a formula; sheet text
    such as "=1+1" must come back exactly as it was read.
    """
    from openpyxl.cell import WriteOnlyCell

    row = []
    for v in values:
        cell = WriteOnlyCell(ws, value=v)
        if isinstance(v, str):
            cell.data_type = "s"
        row.append(cell)
    return row


def build_xlsx(records: Iterable[Record], filter_summary: str = "none",
               export_date: str = "", total: int | None = None) -> bytes:
    """Serialize *records* to an XLSX workbook and return its bytes.

    The data sheet is named "CSR Data"; a "Metadata" sheet records the
    export date, filters and row count.
    """
    import openpyxl

    records = list(records)
    wb = openpyxl.Workbook(write_only=True)
    ws = wb.create_sheet(KnownValues.EXPORT_SHEET_NAME)
    ws.append(_EXPORT_HEADERS)
    for row in export_rows(records):
        ws.append(_text_row(ws, row))
    meta_ws = wb.create_sheet("Metadata")
    meta_ws.append(["Source", "CSR Spending Explorer"])
    meta_ws.append(_text_row(meta_ws, ["Export Date", export_date]))
    meta_ws.append(_text_row(meta_ws, ["Filters", filter_summary]))
    meta_ws.append(["Total Records", total if total is not None else len(records)])
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def export_filename(fmt: str, now_ms: int | None = None) -> str:
    """``csr-dashboard-export-<epoch ms>.<fmt>``"""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{KnownValues.EXPORT_FILE_PREFIX}-{now_ms}.{fmt}"


@router.get("", summary="Download the filtered records as Excel or CSV")
def download(
    request: Request,
    fmt: str = Query("xlsx", pattern="^(csv|xlsx)$", description="Output format"),
    predicates: FilterPredicateSet = Depends(get_predicates),
    store: RecordStore = Depends(get_store),
) -> StreamingResponse:
    """Export every filtered record: company, raw spending, state, sector, PSU/Non-PSU."""
    filtered = filter_records(store, predicates)
    if not filtered:
        raise HTTPException(status_code=404, detail="No data to export")

    total_count = len(filtered)
    export_date = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    filename = export_filename(fmt)
    extra_headers = {
        "X-Total-Count": str(total_count),
        "Content-Disposition": f"attachment; filename={filename}",
    }

    if fmt == "csv":
        def csv_stream():
            buf = io.StringIO()
            writer = csv.writer(buf)
            writer.writerow(_EXPORT_HEADERS)
            yield buf.getvalue()
            for row in export_rows(filtered):
                buf.seek(0)
                buf.truncate()
                writer.writerow(row)
                yield buf.getvalue()

        return StreamingResponse(
            csv_stream(),
            media_type="text/csv; charset=utf-8",
            headers=extra_headers,
        )

    content = build_xlsx(filtered, filter_summary=predicates.summary(),
                         export_date=export_date, total=total_count)
    return StreamingResponse(
        iter([content]),
        media_type=_XLSX_MEDIA_TYPE,
        headers={"Content-Length": str(len(content)), **extra_headers},
    )
