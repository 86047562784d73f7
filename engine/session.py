"""
Recompute pipeline for interactive use.

DashboardSession holds the record store and the current predicate set as
explicit state. Changing the predicate set is the only trigger for a
recompute, and each recompute is a full synchronous filter + aggregate pass;
results are never patched incrementally.

Debouncer coalesces bursts of calls (keystroke-level search input) so only
the last one in a quiet window triggers a pass.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional

from engine.aggregate import DISPLAY_LIMIT, AggregateResult, aggregate
from engine.filters import FilterPredicateSet, filter_records
from engine.records import Record, RecordStore

logger = logging.getLogger("csr_dashboard.session")


@dataclass(frozen=True)
class DashboardView:
    """Everything the rendering sinks need from one recompute pass."""

    predicates: FilterPredicateSet
    filtered: tuple[Record, ...]
    result: AggregateResult
    generation: int


class DashboardSession:
    """Explicit dashboard state: one store, one predicate set, one latest view."""

    def __init__(self, store: RecordStore,
                 predicates: Optional[FilterPredicateSet] = None,
                 display_limit: int = DISPLAY_LIMIT,
                 on_change: Optional[Callable[[DashboardView], Any]] = None) -> None:
        self._store = store
        self._display_limit = display_limit
        self._on_change = on_change
        self._generation = 0
        self._view = self._compute(predicates or FilterPredicateSet())

    @property
    def store(self) -> RecordStore:
        return self._store

    @property
    def predicates(self) -> FilterPredicateSet:
        return self._view.predicates

    @property
    def view(self) -> DashboardView:
        return self._view

    def _compute(self, predicates: FilterPredicateSet) -> DashboardView:
        self._generation += 1
        filtered = filter_records(self._store, predicates)
        view = DashboardView(
            predicates=predicates,
            filtered=filtered,
            result=aggregate(filtered, self._display_limit),
            generation=self._generation,
        )
        logger.debug("recompute gen=%d filters=%s rows=%d",
                     view.generation, predicates.summary(), len(filtered))
        return view

    def set_predicates(self, predicates: FilterPredicateSet) -> DashboardView:
        """Replace the predicate set; recomputes only if it actually changed."""
        if predicates == self._view.predicates:
            return self._view
        self._view = self._compute(predicates)
        if self._on_change is not None:
            self._on_change(self._view)
        return self._view

    def update(self, **changes) -> DashboardView:
        """Apply field changes (``states=[...]``, ``company_name_query=...``)."""
        return self.set_predicates(self._view.predicates.replace(**changes))

    def clear(self) -> DashboardView:
        """Reset every filter, keeping ``require_company_name``."""
        current = self._view.predicates
        return self.set_predicates(
            FilterPredicateSet(require_company_name=current.require_company_name)
        )


class Debouncer:
    """Delay calls to *fn* until *delay* seconds pass without a new call.

    Only the arguments of the most recent call are used. Timers run on a
    background thread; ``flush()`` runs a pending call on the caller's
    thread instead.
    """

    def __init__(self, delay: float, fn: Callable[..., Any]) -> None:
        if delay < 0:
            raise ValueError("delay must be >= 0")
        self.delay = delay
        self._fn = fn
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._pending: Optional[tuple[tuple, dict]] = None
        # Bumped on every call; a timer only fires the call that started it
        self._generation = 0

    def __call__(self, *args, **kwargs) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            self._pending = (args, kwargs)
            self._timer = threading.Timer(self.delay, self._fire, args=(self._generation,))
            self._timer.daemon = True
            self._timer.start()

    def _take_pending(self, generation: Optional[int] = None) -> Optional[tuple[tuple, dict]]:
        with self._lock:
            if generation is not None and generation != self._generation:
                return None
            pending, self._pending = self._pending, None
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            return pending

    def _fire(self, generation: int) -> None:
        pending = self._take_pending(generation)
        if pending is not None:
            args, kwargs = pending
            self._fn(*args, **kwargs)

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._pending is not None

    def flush(self) -> bool:
        """Run the pending call now. Returns False if nothing was pending."""
        pending = self._take_pending()
        if pending is None:
            return False
        args, kwargs = pending
        self._fn(*args, **kwargs)
        return True

    def cancel(self) -> None:
        """Drop the pending call, if any."""
        self._take_pending()
