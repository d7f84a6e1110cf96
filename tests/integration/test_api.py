"""
HTTP API tests: grids, pricing and window summaries
"""

import pytest
from fastapi.testclient import TestClient

from api.main import app

pytestmark = pytest.mark.integration


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def uploaded_grid(client, auth_headers, sample_grid_csv):
    response = client.post(
        "/v1/grids",
        data={"name": "Roman blinds 2025", "csv_text": sample_grid_csv, "grid_code": "RB-25"},
        headers=auth_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestOps:
    def test_healthz(self, client):
        response = client.get("/healthz")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_readyz(self, client):
        response = client.get("/readyz")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert "pricing_grids" in data["tables"]
        assert "windows_summary" in data["tables"]

    def test_trace_id_echoed(self, client):
        response = client.get("/healthz", headers={"X-Trace-Id": "trace-123"})
        assert response.headers["X-Trace-Id"] == "trace-123"


class TestAuth:
    def test_missing_token(self, client):
        response = client.get("/v1/grids")
        assert response.status_code in (401, 403)

    def test_invalid_token(self, client):
        response = client.get("/v1/grids", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401
        body = response.json()
        assert body["code"] == "INVALID_TOKEN"
        assert body["traceId"]


class TestGrids:
    def test_upload_csv_text(self, uploaded_grid, sample_grid_data):
        assert uploaded_grid["name"] == "Roman blinds 2025"
        assert uploaded_grid["unit"] == "cm"
        assert uploaded_grid["active"] is True
        assert uploaded_grid["grid_data"] == sample_grid_data

    def test_upload_file(self, client, auth_headers):
        content = "\ufeffDrop/Width,600,900\n1000,45,52.5\n".encode("utf-8")
        response = client.post(
            "/v1/grids",
            data={"name": "Rollers"},
            files={"file": ("rollers.csv", content, "text/csv")},
            headers=auth_headers,
        )

        assert response.status_code == 201, response.text
        assert response.json()["unit"] == "mm"

    def test_upload_rejects_bad_row(self, client, auth_headers):
        response = client.post(
            "/v1/grids",
            data={"name": "Broken", "csv_text": "Drop/Width,60,90\n100,45,52.5\n150,50\n"},
            headers=auth_headers,
        )

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "GRID_IMPORT_ERROR"
        assert "Row 3" in body["message"]

    @pytest.mark.parametrize("cell", ["nan", "inf", "Infinity"])
    def test_upload_rejects_non_finite_price(self, client, auth_headers, cell):
        response = client.post(
            "/v1/grids",
            data={"name": "Broken", "csv_text": f"Drop/Width,60\n100,{cell}\n"},
            headers=auth_headers,
        )

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "GRID_IMPORT_ERROR"
        assert "Row 2" in body["message"]
        assert client.get("/v1/grids", headers=auth_headers).json() == []

    def test_upload_rejects_oversized_cell(self, client, auth_headers):
        content = ("Drop/Width,60\n100," + "1" * 200000).encode("utf-8")
        response = client.post(
            "/v1/grids",
            data={"name": "Huge"},
            files={"file": ("huge.csv", content, "text/csv")},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["code"] == "GRID_IMPORT_ERROR"

    def test_upload_requires_csv(self, client, auth_headers):
        response = client.post("/v1/grids", data={"name": "Empty"}, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["code"] == "GRID_IMPORT_ERROR"

    def test_price_lookup(self, client, auth_headers, uploaded_grid):
        response = client.post(
            f"/v1/grids/{uploaded_grid['id']}/price",
            json={"width_cm": 95, "drop_cm": 140},
            headers=auth_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["price"] == 58.0
        assert body["resolved"] is True
        assert body["matched_width"] == 90

    def test_negative_dimensions_rejected(self, client, auth_headers, uploaded_grid):
        response = client.post(
            f"/v1/grids/{uploaded_grid['id']}/price",
            json={"width_cm": -5, "drop_cm": 140},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_grid_hidden_from_other_account(self, client, other_auth_headers, uploaded_grid):
        response = client.get(f"/v1/grids/{uploaded_grid['id']}", headers=other_auth_headers)

        assert response.status_code == 404
        assert response.json()["code"] == "GRID_NOT_FOUND"

    def test_soft_then_hard_delete(self, client, auth_headers, uploaded_grid):
        grid_id = uploaded_grid["id"]

        assert client.delete(f"/v1/grids/{grid_id}", headers=auth_headers).status_code == 200
        assert client.get("/v1/grids", headers=auth_headers).json() == []
        inactive = client.get("/v1/grids", params={"include_inactive": True}, headers=auth_headers).json()
        assert [g["id"] for g in inactive] == [grid_id]

        response = client.delete(f"/v1/grids/{grid_id}", params={"hard": True}, headers=auth_headers)
        assert response.json() == {"id": grid_id, "deleted": True, "hard": True}
        assert client.get(f"/v1/grids/{grid_id}", headers=auth_headers).status_code == 404


class TestPricing:
    def test_resolve_inline_grid(self, client, auth_headers, sample_grid_data):
        response = client.post(
            "/v1/pricing/resolve",
            json={"grid_data": sample_grid_data, "width_cm": 75, "drop_cm": 125},
            headers=auth_headers,
        )

        assert response.json()["price"] == 45.0

    def test_resolve_reports_failure(self, client, auth_headers):
        response = client.post(
            "/v1/pricing/resolve",
            json={"grid_data": {"foo": [1]}, "width_cm": 75, "drop_cm": 125},
            headers=auth_headers,
        )

        body = response.json()
        assert body["price"] == 0.0
        assert body["resolved"] is False
        assert body["failure"] == "unrecognized_shape"

    def test_treatment_per_meter(self, client, auth_headers):
        response = client.post(
            "/v1/pricing/treatment",
            json={"method": "per-meter", "unit_price": 30, "width_cm": 200, "margin_percentage": 25},
            headers=auth_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["base_price"] == pytest.approx(60.0)
        assert body["final_price"] == pytest.approx(75.0)

    def test_treatment_from_stored_grid(self, client, auth_headers, uploaded_grid):
        response = client.post(
            "/v1/pricing/treatment",
            json={"method": "pricing-grid", "grid_id": uploaded_grid["id"], "width_cm": 90, "drop_cm": 150},
            headers=auth_headers,
        )

        assert response.json()["base_price"] == 58.0

    def test_unknown_method_rejected(self, client, auth_headers):
        response = client.post("/v1/pricing/treatment", json={"method": "per-pallet"}, headers=auth_headers)
        assert response.status_code == 400

    def test_enrich_preview(self, client, auth_headers, curtain_summary):
        response = client.post("/v1/pricing/enrich", json=curtain_summary, headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["measurements_details"]["widths_required"] == 3


class TestWindowSummaries:
    def test_save_enriches_and_persists(self, client, auth_headers, curtain_summary):
        response = client.put("/v1/windows/win-001/summary", json=curtain_summary, headers=auth_headers)

        assert response.status_code == 200, response.text
        saved = response.json()
        assert saved["measurements_details"]["widths_required"] == 3
        assert saved["measurements_details"]["total_drop_per_width_cm"] == 245
        assert saved["updated_at"]

        fetched = client.get("/v1/windows/win-001/summary", headers=auth_headers).json()
        assert fetched["measurements_details"] == saved["measurements_details"]
        assert fetched["total_cost"] == 430.5

    def test_path_window_id_wins(self, client, auth_headers, curtain_summary):
        client.put("/v1/windows/win-xyz/summary", json=curtain_summary, headers=auth_headers)

        fetched = client.get("/v1/windows/win-xyz/summary", headers=auth_headers)
        assert fetched.status_code == 200
        assert fetched.json()["window_id"] == "win-xyz"

    def test_last_writer_wins(self, client, auth_headers):
        client.put("/v1/windows/win-002/summary", json={"treatment_category": "wallpaper", "total_cost": 80}, headers=auth_headers)
        client.put("/v1/windows/win-002/summary", json={"treatment_category": "wallpaper", "total_cost": 95}, headers=auth_headers)

        assert client.get("/v1/windows/win-002/summary", headers=auth_headers).json()["total_cost"] == 95

    def test_hard_blind_costs_preserved(self, client, auth_headers):
        payload = {
            "treatment_category": "roller_blinds",
            "total_cost": 210.0,
            "options_cost": 35.0,
            "selected_options": [{"id": "motor", "price": 35.0}],
            "measurements_details": {"rail_width": 120, "drop": 160},
        }

        saved = client.put("/v1/windows/win-003/summary", json=payload, headers=auth_headers).json()
        assert saved["total_cost"] == 210.0
        assert saved["options_cost"] == 35.0
        assert "widths_required" not in saved["measurements_details"]

    def test_other_account_forbidden(self, client, auth_headers, other_auth_headers):
        client.put("/v1/windows/win-004/summary", json={"total_cost": 1}, headers=auth_headers)

        response = client.put("/v1/windows/win-004/summary", json={"total_cost": 2}, headers=other_auth_headers)
        assert response.status_code == 403
        assert response.json()["code"] == "WINDOW_FORBIDDEN"

    def test_missing_summary(self, client, auth_headers):
        response = client.get("/v1/windows/nope/summary", headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["code"] == "SUMMARY_NOT_FOUND"

    def test_partial_worksheet_with_unparseable_measurement(self, client, auth_headers, curtain_summary):
        curtain_summary["rail_width"] = "tbc"
        del curtain_summary["measurements_details"]["rail_width"]

        response = client.put("/v1/windows/win-005/summary", json=curtain_summary, headers=auth_headers)

        assert response.status_code == 200, response.text
        saved = response.json()
        assert saved["rail_width"] == "tbc"
        assert "widths_required" not in saved["measurements_details"]

    def test_non_curtain_costs_kept_as_sent(self, client, auth_headers):
        payload = {
            "treatment_category": "shutters",
            "total_cost": "501.62",
            "options_cost": "12.50",
            "selected_options": {"louvre": {"size": "89mm", "price": "12.50"}},
        }

        saved = client.put("/v1/windows/win-006/summary", json=payload, headers=auth_headers).json()
        assert saved["total_cost"] == "501.62"
        assert saved["options_cost"] == "12.50"
        assert saved["selected_options"] == {"louvre": {"size": "89mm", "price": "12.50"}}
