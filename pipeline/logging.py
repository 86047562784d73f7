"""
Ingest logging: structured skip/error accounting for one CSV load.

Provides:
  - SkipRecord: single skipped row with a category and detail string.
  - IngestReport: what one load accepted, skipped, and why.
  - log_report(): emits the report once, in aggregate, instead of one log
    line per bad row.

Skip categories (for SkipRecord.category):
    blank_row       — every cell empty (not counted as a failure)
    too_many_fields — more cells than the header; column alignment unknown
    csv_error       — the csv module rejected the row
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

# Number of example skips written to the log
_LOG_EXAMPLES = 5


@dataclass
class SkipRecord:
    """One row that was skipped, with a machine-readable category."""

    category: str
    detail: str
    line: int = 0          # 1-based source line, 0 when unknown

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"category": self.category, "detail": self.detail}
        if self.line:
            d["line"] = self.line
        return d


@dataclass
class IngestReport:
    """Structured summary of one CSV parse."""

    source: str = ""
    rows_accepted: int = 0
    blank_rows: int = 0
    headers: list[str] = field(default_factory=list)
    unmapped_headers: list[str] = field(default_factory=list)
    missing_fields: list[str] = field(default_factory=list)
    skips: list[SkipRecord] = field(default_factory=list)

    @property
    def rows_skipped(self) -> int:
        return len(self.skips)

    def add_skip(self, category: str, detail: str, line: int = 0) -> None:
        self.skips.append(SkipRecord(category=category, detail=detail, line=line))

    def skip_counts_by_category(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for s in self.skips:
            counts[s.category] = counts.get(s.category, 0) + 1
        return counts

    def console_summary(self) -> str:
        """One-line summary suitable for a log message."""
        parts: list[str] = [f"{self.rows_accepted:,} rows accepted"]
        if self.skips:
            cats = self.skip_counts_by_category()
            skip_parts = [f"{v} {k.replace('_', ' ')}" for k, v in sorted(cats.items())]
            parts.append(f"{self.rows_skipped:,} skipped ({', '.join(skip_parts)})")
        if self.blank_rows:
            parts.append(f"{self.blank_rows:,} blank")
        if self.missing_fields:
            parts.append(f"missing columns: {', '.join(self.missing_fields)}")
        return " | ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "source": self.source,
            "rows_accepted": self.rows_accepted,
            "rows_skipped": self.rows_skipped,
            "blank_rows": self.blank_rows,
            "headers": self.headers,
        }
        if self.unmapped_headers:
            d["unmapped_headers"] = self.unmapped_headers
        if self.missing_fields:
            d["missing_fields"] = self.missing_fields
        if self.skips:
            d["skip_counts"] = self.skip_counts_by_category()
        return d


def log_report(report: IngestReport, logger: logging.Logger) -> None:
    """Log *report* once. Warns when rows were skipped or columns missing."""
    if not report.skips and not report.missing_fields:
        logger.info("ingest %s: %s", report.source or "<text>", report.console_summary())
        return
    logger.warning("ingest %s: %s", report.source or "<text>", report.console_summary())
    for skip in report.skips[:_LOG_EXAMPLES]:
        logger.warning("  line %d [%s] %s", skip.line, skip.category, skip.detail)
    if len(report.skips) > _LOG_EXAMPLES:
        logger.warning("  ... and %d more", len(report.skips) - _LOG_EXAMPLES)
