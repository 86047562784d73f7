"""
Aggregator: derives the dashboard views from a filtered record set.

aggregate() returns three views in one pass:
  - SummaryMetrics: distinct companies, record count, total spending
  - region totals: spending per state/UT (map coloring)
  - display projection: first N records for the table

Every amount goes through utils.strings.parse_amount(), so the same raw
string contributes the same number to every view. Unparsable amounts count
as 0; they are never dropped from record_count.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence

from engine.records import Record
from utils.config import KnownValues
from utils.formatting import format_amount
from utils.strings import parse_amount

DISPLAY_LIMIT = 50

# Region-intensity denominators never drop below this
MIN_INTENSITY_DENOMINATOR = 1.0


@dataclass(frozen=True)
class SummaryMetrics:
    distinct_company_count: int = 0
    record_count: int = 0
    total_spending: float = 0.0


@dataclass(frozen=True)
class DisplayRow:
    """Render-ready table row. ``spending`` is parsed, ``spending_display`` formatted."""

    company_name: str
    spending: float
    spending_display: str
    state_or_ut: str
    sector: str
    ownership_type: str

    @classmethod
    def from_record(cls, record: Record) -> "DisplayRow":
        amount = parse_amount(record.spending_amount)
        return cls(
            company_name=record.company_name,
            spending=amount,
            spending_display=format_amount(amount),
            state_or_ut=record.state_or_ut,
            sector=record.sector,
            ownership_type=record.ownership_type,
        )


@dataclass(frozen=True)
class AggregateResult:
    metrics: SummaryMetrics = field(default_factory=SummaryMetrics)
    region_totals: dict[str, float] = field(default_factory=dict)
    display: tuple[Record, ...] = ()


@dataclass(frozen=True)
class GroupTotal:
    """One bar of a chart series."""

    label: str
    amount: float
    record_count: int


def summarize(filtered: Sequence[Record]) -> SummaryMetrics:
    companies = {r.company_name for r in filtered if r.company_name}
    total = sum(parse_amount(r.spending_amount) for r in filtered)
    return SummaryMetrics(
        distinct_company_count=len(companies),
        record_count=len(filtered),
        total_spending=total,
    )


def region_totals(filtered: Iterable[Record]) -> dict[str, float]:
    """Sum spending per ``state_or_ut``.

    Records with an empty state land in the ``""`` bucket; renderers may
    ignore it. Keys appear in first-seen order.
    """
    totals: dict[str, float] = {}
    for r in filtered:
        totals[r.state_or_ut] = totals.get(r.state_or_ut, 0.0) + parse_amount(r.spending_amount)
    return totals


def region_intensities(totals: dict[str, float]) -> dict[str, float]:
    """Map each region total to a color intensity in [0, 1].

    intensity = min(1, total / max(largest_total, 1)). Negative totals
    (refund rows) clamp to 0.
    """
    if not totals:
        return {}
    denom = max(max(totals.values()), MIN_INTENSITY_DENOMINATOR)
    return {
        region: min(1.0, max(0.0, total / denom))
        for region, total in totals.items()
    }


def project_display(filtered: Sequence[Record], limit: int = DISPLAY_LIMIT) -> tuple[Record, ...]:
    """First *limit* records of the filtered set, order kept."""
    if limit < 0:
        raise ValueError("limit must be >= 0")
    return tuple(filtered[:limit])


def display_rows(records: Iterable[Record]) -> list[DisplayRow]:
    return [DisplayRow.from_record(r) for r in records]


def aggregate(filtered: Sequence[Record], display_limit: int = DISPLAY_LIMIT) -> AggregateResult:
    """Compute metrics, region totals and the display projection.

    Always returns a complete result; an empty input gives zero metrics,
    an empty mapping and an empty projection.
    """
    filtered = tuple(filtered)
    return AggregateResult(
        metrics=summarize(filtered),
        region_totals=region_totals(filtered),
        display=project_display(filtered, display_limit),
    )


def group_totals(filtered: Iterable[Record], field_name: str) -> list[GroupTotal]:
    """Chart series: spending and record count per value of *field_name*.

    Sorted by amount descending, then label. Empty values are reported
    under KnownValues.UNKNOWN_LABEL.
    """
    if field_name not in Record.__dataclass_fields__:
        raise ValueError(f"unknown record field: {field_name}")
    amounts: dict[str, float] = {}
    counts: dict[str, int] = {}
    for r in filtered:
        label = getattr(r, field_name) or KnownValues.UNKNOWN_LABEL
        amounts[label] = amounts.get(label, 0.0) + parse_amount(r.spending_amount)
        counts[label] = counts.get(label, 0) + 1
    rows = [GroupTotal(label=k, amount=amounts[k], record_count=counts[k]) for k in amounts]
    rows.sort(key=lambda g: (-g.amount, g.label))
    return rows
