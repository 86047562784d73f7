"""
Tests for the FastAPI application — api/app.py and api/routes/*

Every test runs against an app built around a StaticSource holding the
sample sheet from conftest.py (display limit 5, page size 4).
"""
import csv
import io
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import requests

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from fastapi.testclient import TestClient

from api.app import create_app
from conftest import SAMPLE_CSV
from pipeline.source import CsvSource, StaticSource


class TestCreateApp:
    def test_metadata(self, app_config):
        app = create_app(data_source=StaticSource(SAMPLE_CSV), config=app_config)
        assert app.title == "CSR Spending Explorer API"
        assert app.version == "1.0.0"

    def test_registers_api_routes(self, app_config):
        app = create_app(data_source=StaticSource(SAMPLE_CSV), config=app_config)
        paths = {route.path for route in app.routes}
        for expected in ("/health", "/api/v1/dashboard", "/api/v1/records",
                         "/api/v1/aggregations", "/api/v1/reference/filters",
                         "/api/v1/download", "/api/v1/source.csv",
                         "/api/v1/source/refresh"):
            assert expected in paths

    def test_request_id_header(self, client):
        resp = client.get("/health")
        assert len(resp.headers["X-Request-ID"]) == 8


class TestHealth:
    def test_ok(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "ok"
        assert body["records"] == 12
        assert body["cache_age_seconds"] is not None

    def test_degraded_when_too_small(self, app_config):
        app = create_app(data_source=StaticSource(SAMPLE_CSV, min_records=100), config=app_config)
        with TestClient(app) as c:
            resp = c.get("/health")
        assert resp.status_code == 503
        assert resp.json()["status"] == "degraded"


class TestDashboard:
    def test_unfiltered(self, client):
        resp = client.get("/api/v1/dashboard")
        assert resp.status_code == 200
        body = resp.json()
        assert body["metrics"]["record_count"] == 12
        assert body["metrics"]["distinct_company_count"] == 9
        assert body["metrics"]["total_spending"] == pytest.approx(3256.25)
        assert body["metrics"]["total_spending_display"] == "₹3,256.25 Cr"
        assert body["display_limit"] == 5
        assert len(body["display"]) == 5
        assert body["filters"]["summary"] == "none"

    def test_display_keeps_source_order(self, client):
        body = client.get("/api/v1/dashboard").json()
        assert [row["company_name"] for row in body["display"]] == [
            "Tata Steel Ltd", "Infosys Ltd", "NTPC Ltd", "ONGC", "Tata Steel Ltd",
        ]
        assert body["display"][0]["spending"] == 1200.5
        assert body["display"][0]["spending_display"] == "1,200.5"

    def test_regions(self, client):
        regions = client.get("/api/v1/dashboard").json()["regions"]
        assert regions[0]["region"] == "Maharashtra"
        assert regions[0]["intensity"] == 1.0
        assert regions[0]["fill"] == "rgba(0, 123, 255, 1)"
        assert regions[0]["label"] == "Maharashtra: ₹1,331.25 Cr"
        for r in regions:
            assert 0.0 <= r["intensity"] <= 1.0

    def test_repeatable_filters(self, client):
        resp = client.get("/api/v1/dashboard",
                          params=[("state", "Gujarat"), ("state", "Karnataka")])
        metrics = resp.json()["metrics"]
        assert metrics["record_count"] == 4
        assert metrics["total_spending"] == pytest.approx(1650.0)

    def test_company_query(self, client):
        body = client.get("/api/v1/dashboard", params={"q": "  TATA "}).json()
        assert body["metrics"]["record_count"] == 2
        assert body["filters"]["company_name_query"] == "TATA"

    def test_require_company(self, client):
        body = client.get("/api/v1/dashboard",
                          params={"state": "Delhi", "require_company": "true"}).json()
        assert body["metrics"]["record_count"] == 0
        assert body["regions"] == []
        assert body["display"] == []

    def test_no_match_is_complete_empty_result(self, client):
        body = client.get("/api/v1/dashboard", params={"sector": "Space"}).json()
        assert body["metrics"] == {
            "distinct_company_count": 0,
            "record_count": 0,
            "total_spending": 0.0,
            "total_spending_display": "₹0 Cr",
        }

    def test_cached_response_is_stable(self, client):
        first = client.get("/api/v1/dashboard", params={"state": "Goa"}).json()
        second = client.get("/api/v1/dashboard", params={"state": "Goa"}).json()
        assert first == second


class TestRecords:
    def test_default_page_size(self, client):
        body = client.get("/api/v1/records").json()
        assert body["total"] == 12
        assert body["page_size"] == 4
        assert body["total_pages"] == 3
        assert len(body["items"]) == 4

    def test_raw_spending(self, client):
        item = client.get("/api/v1/records").json()["items"][0]
        assert item["spending_amount"] == "1,200.50"

    def test_last_page(self, client):
        body = client.get("/api/v1/records", params={"page": 2, "page_size": 10}).json()
        assert len(body["items"]) == 2
        assert body["items"][-1]["company_name"] == "Infosys Ltd"

    def test_past_end(self, client):
        body = client.get("/api/v1/records", params={"page": 9}).json()
        assert body["items"] == []

    def test_filtered(self, client):
        body = client.get("/api/v1/records", params={"ownership": "PSU"}).json()
        assert body["total"] == 4
        assert {i["ownership_type"] for i in body["items"]} == {"PSU"}

    def test_invalid_page(self, client):
        assert client.get("/api/v1/records", params={"page": 0}).status_code == 422


class TestAggregations:
    def test_by_state(self, client):
        body = client.get("/api/v1/aggregations", params={"group_by": "state"}).json()
        assert body["group_by"] == "state"
        assert body["rows"][0] == {"label": "Maharashtra", "amount": 1331.25, "record_count": 4}
        assert "Unknown" in [r["label"] for r in body["rows"]]

    def test_by_sector_top(self, client):
        body = client.get("/api/v1/aggregations",
                          params={"group_by": "sector", "top": 2}).json()
        assert len(body["rows"]) == 2
        assert body["rows"][0]["label"] == "Education"

    def test_invalid_group_by(self, client):
        resp = client.get("/api/v1/aggregations", params={"group_by": "company"})
        assert resp.status_code == 400


class TestReference:
    def test_filter_options(self, client):
        resp = client.get("/api/v1/reference/filters")
        assert resp.status_code == 200
        body = resp.json()
        assert body["states"] == ["Delhi", "Gujarat", "Jharkhand", "Karnataka", "Maharashtra"]
        assert body["ownership_types"] == ["Non-PSU", "PSU"]
        assert body["record_count"] == 12
        assert resp.headers["Cache-Control"] == "max-age=300"


class TestDownload:
    def test_xlsx(self, client):
        import openpyxl

        resp = client.get("/api/v1/download", params={"state": "Maharashtra"})
        assert resp.status_code == 200
        assert resp.headers["X-Total-Count"] == "4"
        disposition = resp.headers["Content-Disposition"]
        assert "filename=csr-dashboard-export-" in disposition
        assert disposition.endswith(".xlsx")

        wb = openpyxl.load_workbook(io.BytesIO(resp.content))
        assert wb.sheetnames == ["CSR Data", "Metadata"]
        rows = list(wb["CSR Data"].iter_rows(values_only=True))
        assert rows[0] == ("Company Name", "Spending (₹ Cr)", "State/UT",
                           "Development Sector", "PSU/Non-PSU")
        assert rows[1] == ("Tata Steel Ltd", "1,200.50", "Maharashtra", "Education", "Non-PSU")
        assert len(rows) == 5

    def test_xlsx_keeps_equals_prefixed_text_literal(self):
        import openpyxl
        from api.routes.download import build_xlsx
        from conftest import make_record

        company = '=HYPERLINK("http://x","Acme")'
        data = build_xlsx([make_record(company, "MH", "Health", "PSU", "=1+1")],
                          filter_summary="=SUM(1,2)")
        wb = openpyxl.load_workbook(io.BytesIO(data))
        row = list(wb["CSR Data"].iter_rows(min_row=2, max_row=2))[0]
        assert [(c.value, c.data_type) for c in row] == [
            (company, "s"), ("=1+1", "s"), ("MH", "s"), ("Health", "s"), ("PSU", "s"),
        ]
        filters = wb["Metadata"]["B3"]
        assert filters.value == "=SUM(1,2)"
        assert filters.data_type == "s"

    def test_export_is_not_capped_by_display_limit(self, client):
        import openpyxl

        resp = client.get("/api/v1/download")
        wb = openpyxl.load_workbook(io.BytesIO(resp.content))
        assert wb["CSR Data"].max_row == 13

    def test_csv(self, client):
        resp = client.get("/api/v1/download", params={"fmt": "csv", "sector": "Environment"})
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        rows = list(csv.reader(io.StringIO(resp.text)))
        assert rows[0][0] == "Company Name"
        assert rows[1] == ["Coal India", "150", "Jharkhand", "Environment", "PSU"]

    def test_empty_selection(self, client):
        resp = client.get("/api/v1/download", params={"state": "Atlantis"})
        assert resp.status_code == 404
        assert resp.json()["detail"] == "No data to export"

    def test_bad_format(self, client):
        assert client.get("/api/v1/download", params={"fmt": "pdf"}).status_code == 422


class TestSource:
    def test_raw_csv(self, client):
        resp = client.get("/api/v1/source.csv")
        assert resp.status_code == 200
        assert resp.text == SAMPLE_CSV
        assert resp.headers["Access-Control-Allow-Origin"] == "*"
        assert resp.headers["content-type"].startswith("text/csv")

    def test_refresh(self, client):
        resp = client.post("/api/v1/source/refresh")
        assert resp.status_code == 200
        assert resp.json() == {"status": "refreshed", "records": 12, "skipped_rows": 0}


class TestSourceUnavailable:
    @pytest.fixture()
    def down_client(self, app_config):
        session = MagicMock(spec=requests.Session)
        session.get.side_effect = requests.ConnectionError("refused")
        src = CsvSource("https://example.test/sheet.csv", session=session)
        with TestClient(create_app(data_source=src, config=app_config)) as c:
            yield c

    @pytest.mark.parametrize("path", [
        "/api/v1/dashboard",
        "/api/v1/records",
        "/api/v1/reference/filters",
        "/api/v1/download",
        "/api/v1/source.csv",
    ])
    def test_503_everywhere(self, down_client, path):
        resp = down_client.get(path)
        assert resp.status_code == 503
        body = resp.json()
        assert body["error"] == "Data source unavailable"
        assert "Failed to fetch CSV" in body["detail"]

    def test_health_unavailable(self, down_client):
        resp = down_client.get("/health")
        assert resp.status_code == 503
        assert resp.json()["status"] == "unavailable"
