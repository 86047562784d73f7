"""
Typed CSR spending records and the immutable record store.

Records are built once at ingestion (pipeline/ingest.py) from whatever
header scheme the source sheet uses; everything downstream reads these
fields instead of raw CSV column names.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator


@dataclass(frozen=True)
class Record:
    """One CSR spending entry. Every field is a string; empty means missing."""

    company_name: str = ""
    state_or_ut: str = ""
    sector: str = ""
    ownership_type: str = ""
    # Raw as ingested; interpreted with utils.strings.parse_amount()
    spending_amount: str = ""

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> "Record":
        """Build a Record from a field-name dict, defaulting missing keys to ""."""
        def _s(key: str) -> str:
            value = data.get(key)
            return "" if value is None else str(value)

        return cls(
            company_name=_s("company_name"),
            state_or_ut=_s("state_or_ut"),
            sector=_s("sector"),
            ownership_type=_s("ownership_type"),
            spending_amount=_s("spending_amount"),
        )

    def to_dict(self) -> dict[str, str]:
        return {
            "company_name": self.company_name,
            "state_or_ut": self.state_or_ut,
            "sector": self.sector,
            "ownership_type": self.ownership_type,
            "spending_amount": self.spending_amount,
        }


@dataclass(frozen=True)
class FilterOptions:
    """Distinct values offered by the filter controls, sorted."""

    states: tuple[str, ...] = ()
    sectors: tuple[str, ...] = ()
    ownership_types: tuple[str, ...] = ()


def _distinct_sorted(values: Iterable[str]) -> tuple[str, ...]:
    return tuple(sorted({v.strip() for v in values if v and v.strip()}))


@dataclass(frozen=True)
class RecordStore:
    """The full parsed record set. Immutable after load.

    Iterating or indexing yields Records in source order.
    """

    records: tuple[Record, ...] = ()
    loaded_at: float = field(default_factory=time.time)
    skipped_rows: int = 0

    @classmethod
    def from_records(cls, records: Iterable[Record], skipped_rows: int = 0) -> "RecordStore":
        return cls(records=tuple(records), skipped_rows=skipped_rows)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self.records)

    def __getitem__(self, index):
        return self.records[index]

    def options(self) -> FilterOptions:
        """Sorted distinct non-empty states, sectors and ownership types."""
        return FilterOptions(
            states=_distinct_sorted(r.state_or_ut for r in self.records),
            sectors=_distinct_sorted(r.sector for r in self.records),
            ownership_types=_distinct_sorted(r.ownership_type for r in self.records),
        )
