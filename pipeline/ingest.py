"""
CSV ingestion: raw source text -> typed Records.

Header-driven: the first non-blank row names the columns, and
ColumnMapping resolves those names to Record fields. Rows are handled
independently, so one malformed row is counted and skipped without aborting
the load; the skips are logged once when the parse finishes.

Row rules:
    blank (every cell empty)        -> ignored
    fewer cells than the header     -> missing cells become ""
    extra non-empty cells           -> skipped (too_many_fields)
    rejected by the csv module      -> skipped (csv_error)

Usage::

    from pipeline.ingest import parse_csv

    result = parse_csv(text, source="sheet")
    store = result.to_store()
"""

from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass, field

from engine.records import Record, RecordStore
from pipeline.logging import IngestReport, log_report
from utils.config import ColumnMapping

logger = logging.getLogger("csr_dashboard.ingest")

_RECORD_FIELDS = tuple(Record.__dataclass_fields__)


@dataclass
class IngestResult:
    records: tuple[Record, ...] = ()
    report: IngestReport = field(default_factory=IngestReport)

    def to_store(self) -> RecordStore:
        return RecordStore.from_records(self.records, skipped_rows=self.report.rows_skipped)


def _is_blank(row: list[str]) -> bool:
    return all(not cell.strip() for cell in row)


def parse_csv(text: str, mapping: type[ColumnMapping] = ColumnMapping,
              source: str = "") -> IngestResult:
    """Parse CSV *text* into Records.

    Args:
        text: Full CSV payload (UTF-8 decoded).
        mapping: Header alias table (default: ColumnMapping).
        source: Label used in the ingest log line.

    Returns:
        IngestResult with the accepted records, in source order, and the
        ingest report. Never raises for row-level problems.
    """
    report = IngestReport(source=source)
    if text.startswith("\ufeff"):
        text = text[1:]

    reader = csv.reader(io.StringIO(text, newline=""))
    positions: dict[int, str] | None = None
    width = 0
    records: list[Record] = []

    while True:
        try:
            row = next(reader)
        except StopIteration:
            break
        except csv.Error as e:
            report.add_skip("csv_error", str(e), line=reader.line_num)
            continue

        if _is_blank(row):
            if positions is not None:
                report.blank_rows += 1
            continue

        if positions is None:
            report.headers = [h.strip() for h in row]
            positions = mapping.resolve(row)
            width = len(row)
            report.unmapped_headers = [
                h for i, h in enumerate(report.headers) if i not in positions and h
            ]
            found = set(positions.values())
            report.missing_fields = [f for f in _RECORD_FIELDS if f not in found]
            continue

        if len(row) > width and not _is_blank(row[width:]):
            report.add_skip(
                "too_many_fields",
                f"expected {width} fields, got {len(row)}",
                line=reader.line_num,
            )
            continue

        values = {name: (row[pos].strip() if pos < len(row) else "")
                  for pos, name in positions.items()}
        records.append(Record.from_mapping(values))

    report.rows_accepted = len(records)
    log_report(report, logger)
    return IngestResult(records=tuple(records), report=report)
