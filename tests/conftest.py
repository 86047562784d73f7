"""
Pytest fixtures for the CSR spending tests.

Provides a small published-sheet CSV (twelve rows across five states, one
row with no company name, one with no state, one with an unparseable
amount), the RecordStore parsed from it, and a FastAPI TestClient wired to
a StaticSource so no test touches the network.

Expected aggregates for the sample sheet:
    records                12
    distinct companies      9   (blank company name not counted)
    total spending    3256.25   ("abc" counts as 0)
    Maharashtra       1331.25
    Gujarat              1300
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from engine.records import Record, RecordStore  # noqa: E402
from pipeline.ingest import parse_csv  # noqa: E402
from pipeline.source import StaticSource  # noqa: E402

SAMPLE_HEADER = "Company Name,State/UT,Development Sector,PSU/Non-PSU,Spending (₹ Cr)"

SAMPLE_ROWS = [
    'Tata Steel Ltd,Maharashtra,Education,Non-PSU,"1,200.50"',
    "Infosys Ltd,Karnataka,Health Care,Non-PSU,350",
    "NTPC Ltd,Maharashtra,Health Care,PSU,80.25",
    "ONGC,Gujarat,Education,PSU,400",
    "Tata Steel Ltd,Jharkhand,Rural Development,Non-PSU,95",
    "Reliance Industries,Gujarat,Health Care,Non-PSU,900",
    "Wipro Ltd,Karnataka,Education,Non-PSU,abc",
    "Coal India,Jharkhand,Environment,PSU,150",
    "HDFC Bank,Maharashtra,Rural Development,Non-PSU,0.5",
    ",Delhi,Education,Non-PSU,10",
    "BHEL,,Education,PSU,20",
    "Infosys Ltd,Maharashtra,Education,Non-PSU,50",
]

SAMPLE_CSV = "\n".join([SAMPLE_HEADER] + SAMPLE_ROWS) + "\n"


def make_record(company="", state="", sector="", ownership="", amount="") -> Record:
    """Shorthand Record constructor for engine tests."""
    return Record(
        company_name=company,
        state_or_ut=state,
        sector=sector,
        ownership_type=ownership,
        spending_amount=amount,
    )


@pytest.fixture()
def sample_csv() -> str:
    return SAMPLE_CSV


@pytest.fixture()
def sample_store() -> RecordStore:
    """RecordStore parsed from SAMPLE_CSV."""
    return parse_csv(SAMPLE_CSV, source="fixture").to_store()


@pytest.fixture()
def scenario_records() -> list[Record]:
    """Three rows: two Maharashtra (one without company name), one Karnataka."""
    return [
        make_record("A Ltd", "Maharashtra", "Education", "PSU", "10"),
        make_record("B Ltd", "Karnataka", "Health", "Non-PSU", "5"),
        make_record("", "Maharashtra", "Health", "PSU", "3"),
    ]


@pytest.fixture()
def app_config(monkeypatch):
    """AppConfig with test-friendly limits, isolated from the real environment."""
    for name in ("CSR_SOURCE_URL", "CSR_CACHE_TTL", "CSR_MIN_RECORDS",
                 "CSR_DISPLAY_LIMIT", "CSR_PAGE_SIZE", "APP_CORS_ORIGINS"):
        monkeypatch.delenv(name, raising=False)
    from utils.config import AppConfig
    return AppConfig.from_dict({"display_limit": 5, "page_size": 4})


@pytest.fixture()
def client(app_config):
    """TestClient for an app serving SAMPLE_CSV from memory."""
    from fastapi.testclient import TestClient
    from api.app import create_app

    app = create_app(data_source=StaticSource(SAMPLE_CSV, min_records=10), config=app_config)
    with TestClient(app) as c:
        yield c
