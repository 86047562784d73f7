"""
Filter predicate set and the filter engine.

A FilterPredicateSet is the user's current selection. Within a dimension the
selected values are OR-ed; across dimensions everything is AND-ed. An empty
selection means "unrestricted", never "matches nothing".

filter_records() is pure and order-preserving: the display projection takes
a prefix of its output, so relative order from the store must survive.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, replace
from typing import Iterable, Optional, Sequence

from engine.records import Record
from utils.formatting import summarize_filters


def _frozen(values: Optional[Iterable[str]]) -> frozenset[str]:
    if values is None:
        return frozenset()
    if isinstance(values, str):
        values = [values]
    return frozenset(v for v in values if v is not None)


@dataclass(frozen=True)
class FilterPredicateSet:
    """Canonical set of filters shared by the dashboard, charts and exports.

    ``require_company_name`` makes the company-name condition apply even
    when the query is empty, dropping records with no company name. The
    default keeps them unless a search query is active.

    Note: the published browser dashboard always dropped rows with no
    company name, so its unfiltered counts match ``require_company_name=True``,
    not the default. With the default, a state filter on its own also counts
    unnamed rows in ``record_count``.
    """

    states: frozenset[str] = frozenset()
    sectors: frozenset[str] = frozenset()
    ownership_types: frozenset[str] = frozenset()
    company_name_query: str = ""
    require_company_name: bool = False

    @classmethod
    def build(
        cls,
        states: Optional[Iterable[str]] = None,
        sectors: Optional[Iterable[str]] = None,
        ownership_types: Optional[Iterable[str]] = None,
        company_name_query: Optional[str] = None,
        require_company_name: bool = False,
    ) -> "FilterPredicateSet":
        """Build from loose user input (lists, None, untrimmed search text)."""
        return cls(
            states=_frozen(states),
            sectors=_frozen(sectors),
            ownership_types=_frozen(ownership_types),
            company_name_query=(company_name_query or "").strip(),
            require_company_name=require_company_name,
        )

    def replace(self, **changes) -> "FilterPredicateSet":
        """Return a copy with *changes* applied (list values are frozen)."""
        for key in ("states", "sectors", "ownership_types"):
            if key in changes:
                changes[key] = _frozen(changes[key])
        if "company_name_query" in changes:
            changes["company_name_query"] = (changes["company_name_query"] or "").strip()
        return replace(self, **changes)

    def is_unrestricted(self) -> bool:
        return not (self.states or self.sectors or self.ownership_types
                    or self.company_name_query or self.require_company_name)

    def summary(self) -> str:
        """Human-readable list of active filters, e.g. ``state=MH; q=tata``."""
        return summarize_filters([
            ("state", sorted(self.states)),
            ("sector", sorted(self.sectors)),
            ("ownership", sorted(self.ownership_types)),
            ("q", [self.company_name_query]),
        ])

    def cache_key(self) -> str:
        """Stable identifier for caching data derived from this filter set."""
        stem = "|".join([
            ",".join(sorted(self.states)),
            ",".join(sorted(self.sectors)),
            ",".join(sorted(self.ownership_types)),
            self.company_name_query.lower(),
            "1" if self.require_company_name else "0",
        ])
        return hashlib.sha256(stem.encode("utf-8")).hexdigest()[:16]

    def matches(self, record: Record) -> bool:
        """True when *record* satisfies every active predicate."""
        if self.states and record.state_or_ut not in self.states:
            return False
        if self.sectors and record.sector not in self.sectors:
            return False
        if self.ownership_types and record.ownership_type not in self.ownership_types:
            return False
        if self.company_name_query or self.require_company_name:
            # Records without a company name never match a company condition
            if not record.company_name:
                return False
            if self.company_name_query.lower() not in record.company_name.lower():
                return False
        return True


def filter_records(records: Sequence[Record] | Iterable[Record],
                   predicates: FilterPredicateSet) -> tuple[Record, ...]:
    """Return the records matching *predicates*, in input order."""
    return tuple(r for r in records if predicates.matches(r))
