"""
Pydantic response models for the API.

Amounts are in ₹ crore. Raw spending strings are passed through untouched
wherever a model has a ``spending_amount`` field; parsed numbers use
``spending`` / ``amount`` / ``total`` names.
"""

from __future__ import annotations

from dataclasses import asdict

from pydantic import BaseModel, Field

from engine.aggregate import DisplayRow
from engine.filters import FilterPredicateSet
from engine.records import Record


# ── Filters ───────────────────────────────────────────────────────────────────

class FiltersOut(BaseModel):
    """The predicate set a response was computed with."""
    states: list[str] = Field(default_factory=list, description="Selected states/UTs (empty = all)")
    sectors: list[str] = Field(default_factory=list, description="Selected development sectors (empty = all)")
    ownership_types: list[str] = Field(default_factory=list, description="Selected PSU/Non-PSU values (empty = all)")
    company_name_query: str = Field("", description="Case-insensitive company name substring")
    require_company_name: bool = Field(False, description="Drop rows without a company name")
    summary: str = Field("none", description="Human-readable filter summary", examples=["state=Maharashtra; q=tata"])

    @classmethod
    def from_predicates(cls, p: FilterPredicateSet) -> "FiltersOut":
        return cls(
            states=sorted(p.states),
            sectors=sorted(p.sectors),
            ownership_types=sorted(p.ownership_types),
            company_name_query=p.company_name_query,
            require_company_name=p.require_company_name,
            summary=p.summary(),
        )


class FilterOptionsOut(BaseModel):
    """Values for populating filter controls."""
    states: list[str] = Field(..., examples=[["Gujarat", "Maharashtra"]])
    sectors: list[str] = Field(..., examples=[["Education", "Health Care"]])
    ownership_types: list[str] = Field(..., examples=[["Non-PSU", "PSU"]])
    record_count: int = Field(..., description="Rows in the loaded record store")


# ── Records ───────────────────────────────────────────────────────────────────

class RecordOut(BaseModel):
    """A single CSR spending row as ingested."""
    company_name: str = Field("", examples=["Tata Steel Ltd"])
    state_or_ut: str = Field("", examples=["Maharashtra"])
    sector: str = Field("", examples=["Health Care"])
    ownership_type: str = Field("", examples=["Non-PSU"])
    spending_amount: str = Field("", description="Raw spending cell", examples=["1,234.50"])

    @classmethod
    def from_record(cls, record: Record) -> "RecordOut":
        return cls(**record.to_dict())


class DisplayRowOut(BaseModel):
    """A render-ready table row."""
    company_name: str
    spending: float = Field(..., description="Parsed spending in ₹ crore")
    spending_display: str = Field(..., examples=["1,234.5"])
    state_or_ut: str
    sector: str
    ownership_type: str

    @classmethod
    def from_row(cls, row: DisplayRow) -> "DisplayRowOut":
        return cls(**asdict(row))


class PaginatedRecords(BaseModel):
    total: int = Field(..., description="Rows in the filtered set")
    page: int = Field(..., ge=1)
    page_size: int = Field(..., ge=1)
    total_pages: int = Field(..., ge=0)
    items: list[RecordOut]


# ── Aggregates ────────────────────────────────────────────────────────────────

class SummaryMetricsOut(BaseModel):
    distinct_company_count: int = Field(..., examples=[26984])
    record_count: int = Field(..., examples=[178216])
    total_spending: float = Field(..., description="₹ crore", examples=[116919.05])
    total_spending_display: str = Field(..., examples=["₹116,919.05 Cr"])


class RegionTotalOut(BaseModel):
    """Spending for one state/UT, with the map color intensity."""
    region: str = Field(..., description="State/UT; empty string = no state recorded")
    total: float
    intensity: float = Field(..., ge=0.0, le=1.0)
    fill: str = Field(..., examples=["rgba(0, 123, 255, 0.5)"])
    label: str = Field(..., examples=["Maharashtra: ₹1,234.5 Cr"])


class DashboardResponse(BaseModel):
    """Response body for GET /api/v1/dashboard."""
    filters: FiltersOut
    metrics: SummaryMetricsOut
    regions: list[RegionTotalOut]
    display: list[DisplayRowOut] = Field(..., description="First N filtered rows")
    display_limit: int


class GroupTotalOut(BaseModel):
    label: str = Field(..., examples=["Maharashtra"])
    amount: float
    record_count: int


class AggregationResponse(BaseModel):
    """Response body for GET /api/v1/aggregations."""
    group_by: str = Field(..., examples=["state"])
    rows: list[GroupTotalOut]


# ── Error model ───────────────────────────────────────────────────────────────

class ErrorResponse(BaseModel):
    """Standard error response body."""
    error: str = Field(..., description="Short error category", examples=["Data source unavailable"])
    detail: str | None = Field(None, description="Extended error detail")
    status_code: int = Field(..., ge=400, le=599, examples=[503])
