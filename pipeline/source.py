"""
Data source: fetch, cache, and parse the published CSR sheet.

CsvSource wraps one upstream URL. The raw CSV text is memoized in a
TTLCache (value + store time, configurable TTL, explicit invalidation), and
the parsed RecordStore is memoized alongside it so a cache hit also skips
re-parsing.

A load either fully succeeds or raises a SourceError: there is no partial
store and no retry. Callers show the error once and stop.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

import requests

from engine.records import RecordStore
from pipeline.ingest import IngestResult, parse_csv
from utils.cache import TTLCache
from utils.http import FetchError, SessionManager, fetch_text

logger = logging.getLogger("csr_dashboard.source")

_TEXT_KEY = "csv_text"
_STORE_KEY = "record_store"


class SourceError(Exception):
    """Whole-payload failure: nothing usable was loaded."""


class SourceUnavailableError(SourceError):
    """Upstream unreachable or answered with a non-success status."""


class PayloadTooSmallError(SourceError):
    """Upstream answered, but the payload parsed to too few records."""

    def __init__(self, rows: int, minimum: int):
        self.rows = rows
        self.minimum = minimum
        super().__init__(f"Dataset too small: {rows} rows parsed, need at least {minimum}")


class CsvSource:
    """Cached loader for one published CSV URL.

    Args:
        url: CSV endpoint.
        ttl_seconds: How long a fetched payload stays fresh.
        timeout: Upstream request timeout in seconds.
        min_records: Fewer parsed rows than this fails the load.
        session: Optional requests.Session (tests pass a mock). When omitted
            the source keeps its own pooled session; call close() to release it.
        clock: Monotonic clock for the cache.
    """

    def __init__(self, url: str, ttl_seconds: float = 300.0, timeout: float = 30.0,
                 min_records: int = 10, session: Optional[requests.Session] = None,
                 clock: Callable[[], float] = time.monotonic) -> None:
        self.url = url
        self.timeout = timeout
        self.min_records = min_records
        self._session = session
        self._sessions = SessionManager() if session is None else None
        self._cache = TTLCache(maxsize=2, ttl_seconds=ttl_seconds, clock=clock)
        self.last_report = None

    @property
    def cache(self) -> TTLCache:
        return self._cache

    def _fetch(self) -> str:
        try:
            session = self._session if self._session is not None else self._sessions.session
            text = fetch_text(self.url, session=session, timeout=self.timeout)
        except FetchError as e:
            raise SourceUnavailableError(f"Failed to fetch CSV: {e.reason}") from e
        if not text.strip():
            raise PayloadTooSmallError(0, self.min_records)
        return text

    def fetch_text(self) -> str:
        """Return the raw CSV, fetching upstream at most once per TTL window.

        Raises:
            SourceUnavailableError: transport failure or non-2xx status.
            PayloadTooSmallError: empty body.
        """
        return self._cache.get_or_set(_TEXT_KEY, self._fetch)

    def _parse(self, text: str) -> RecordStore:
        result: IngestResult = parse_csv(text, source=self.url)
        self.last_report = result.report
        if len(result.records) < self.min_records:
            raise PayloadTooSmallError(len(result.records), self.min_records)
        return result.to_store()

    def load(self) -> RecordStore:
        """Return the parsed RecordStore for the current payload.

        Raises:
            SourceError: see fetch_text(); also PayloadTooSmallError when
                fewer than ``min_records`` rows parse.
        """
        text = self.fetch_text()
        cached = self._cache.get(_STORE_KEY)
        # The store is only reused for the exact payload it was parsed from
        if cached is not None and cached[0] is text:
            return cached[1]
        try:
            store = self._parse(text)
        except PayloadTooSmallError:
            # Don't keep serving a payload that can't produce a dashboard
            self._cache.delete(_TEXT_KEY)
            raise
        self._cache.set(_STORE_KEY, (text, store))
        logger.info("record store loaded rows=%d skipped=%d",
                    len(store), store.skipped_rows)
        return store

    def age(self) -> Optional[float]:
        """Seconds since the payload was fetched, or None if nothing is cached."""
        return self._cache.age(_TEXT_KEY)

    def invalidate(self) -> None:
        """Drop the cached payload and store; the next call refetches."""
        self._cache.delete(_TEXT_KEY)
        self._cache.delete(_STORE_KEY)
        logger.info("source cache invalidated url=%s", self.url)

    def close(self) -> None:
        """Release the pooled HTTP session, if this source owns one."""
        if self._sessions is not None:
            self._sessions.close()


class StaticSource(CsvSource):
    """A CsvSource backed by fixed text instead of a URL (tests, offline runs)."""

    def __init__(self, text: str, min_records: int = 0, label: str = "static") -> None:
        super().__init__(url=label, ttl_seconds=float("inf"), min_records=min_records)
        self._text = text

    def _fetch(self) -> str:
        if not self._text.strip():
            raise PayloadTooSmallError(0, self.min_records)
        return self._text
