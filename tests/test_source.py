"""
Tests for pipeline/source.py — cached CSV loading and whole-payload failures.

The upstream session is a MagicMock; no network access.
"""
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import requests

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from conftest import SAMPLE_CSV
from pipeline.source import (
    CsvSource,
    PayloadTooSmallError,
    SourceError,
    SourceUnavailableError,
    StaticSource,
)

URL = "https://example.test/sheet.csv"


def _response(text: str = SAMPLE_CSV, status: int = 200):
    resp = MagicMock()
    resp.ok = 200 <= status < 300
    resp.status_code = status
    resp.text = text
    return resp


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


@pytest.fixture()
def session():
    s = MagicMock(spec=requests.Session)
    s.get.return_value = _response()
    return s


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def source(session, clock):
    return CsvSource(URL, ttl_seconds=300, timeout=5, min_records=10,
                     session=session, clock=clock)


class TestLoad:
    def test_parses_store(self, source):
        store = source.load()
        assert len(store) == 12
        assert source.last_report.rows_accepted == 12

    def test_passes_timeout(self, source, session):
        source.load()
        session.get.assert_called_once_with(URL, timeout=5)

    def test_memoized_within_ttl(self, source, session, clock):
        first = source.load()
        clock.now += 299
        second = source.load()
        assert first is second
        assert session.get.call_count == 1

    def test_refetch_after_ttl(self, source, session, clock):
        first = source.load()
        clock.now += 301
        second = source.load()
        assert session.get.call_count == 2
        assert first is not second
        assert len(second) == 12

    def test_invalidate_forces_refetch(self, source, session):
        source.load()
        source.invalidate()
        assert source.age() is None
        source.load()
        assert session.get.call_count == 2

    def test_age(self, source, clock):
        assert source.age() is None
        source.load()
        clock.now += 12
        assert source.age() == pytest.approx(12)


class TestFailures:
    def test_transport_error(self, source, session):
        session.get.side_effect = requests.ConnectionError("refused")
        with pytest.raises(SourceUnavailableError) as exc_info:
            source.load()
        assert "Failed to fetch CSV" in str(exc_info.value)

    def test_timeout(self, source, session):
        session.get.side_effect = requests.Timeout("slow")
        with pytest.raises(SourceUnavailableError):
            source.load()

    def test_non_success_status(self, source, session):
        session.get.return_value = _response("nope", status=404)
        with pytest.raises(SourceUnavailableError) as exc_info:
            source.load()
        assert "HTTP 404" in str(exc_info.value)

    def test_failure_not_cached(self, source, session):
        session.get.side_effect = [requests.ConnectionError("refused"), _response()]
        with pytest.raises(SourceError):
            source.load()
        assert len(source.load()) == 12

    def test_too_few_rows(self, source, session):
        session.get.return_value = _response("Company Name\nA\nB\n")
        with pytest.raises(PayloadTooSmallError) as exc_info:
            source.load()
        assert exc_info.value.rows == 2
        assert exc_info.value.minimum == 10
        assert "Dataset too small" in str(exc_info.value)

    def test_too_small_payload_not_kept(self, source, session):
        session.get.return_value = _response("Company Name\nA\n")
        with pytest.raises(PayloadTooSmallError):
            source.load()
        session.get.return_value = _response()
        assert len(source.load()) == 12
        assert session.get.call_count == 2

    def test_empty_body(self, source, session):
        session.get.return_value = _response("")
        with pytest.raises(PayloadTooSmallError):
            source.load()

    def test_errors_share_base_class(self):
        assert issubclass(SourceUnavailableError, SourceError)
        assert issubclass(PayloadTooSmallError, SourceError)


class TestStaticSource:
    def test_serves_text(self):
        src = StaticSource(SAMPLE_CSV)
        assert src.fetch_text() == SAMPLE_CSV
        assert len(src.load()) == 12

    def test_min_records_enforced(self):
        with pytest.raises(PayloadTooSmallError):
            StaticSource(SAMPLE_CSV, min_records=50).load()

    def test_blank_text(self):
        with pytest.raises(PayloadTooSmallError):
            StaticSource("  \n").load()


class TestSessionOwnership:
    def test_pooled_session_when_none_given(self):
        src = CsvSource(URL)
        fake = MagicMock()
        fake.get.return_value = _response()
        src._sessions._session = fake
        assert len(src.load()) == 12
        fake.get.assert_called_once_with(URL, timeout=30.0)
        src.close()
        fake.close.assert_called_once()
        assert src._sessions._session is None

    def test_close_leaves_injected_session_alone(self, source, session):
        source.close()
        session.close.assert_not_called()
