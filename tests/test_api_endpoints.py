"""
Integration tests for the public, prediction and admin endpoints
"""

from datetime import date, timedelta

import lotobonheur.api_admin_endpoints as admin_endpoints
import lotobonheur.database as db
from lotobonheur.loader import NetworkError, SyncReport


def _result_body(**overrides):
    body = {
        "draw_name": "Réveil",
        "draw_date": "2024-01-01",
        "winning_numbers": [5, 15, 25, 35, 45],
        "machine_numbers": [1, 2, 3, 4, 5],
    }
    body.update(overrides)
    return body


class TestSystemEndpoints:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_system_info(self, client, seeded_db):
        data = client.get("/api/v1/system/info").json()
        assert data["draw_results"] == 320
        assert data["latest_draw_date"] == "2024-06-03"
        assert "draw_name" in data["next_draw"]


class TestDrawEndpoints:

    def test_schedule(self, client):
        data = client.get("/api/v1/draws/schedule").json()
        assert data["total"] == 28
        assert data["draws"][0] == {"day_of_week": "Lundi", "draw_name": "Réveil", "time": "10:00"}

    def test_next_draw(self, client):
        data = client.get("/api/v1/draws/next").json()
        assert set(data) == {"draw_name", "day_of_week", "time", "draw_datetime"}

    def test_results_paginated(self, client, seeded_db):
        data = client.get("/api/v1/draws/reveil", params={"limit": 5, "offset": 1}).json()
        assert data["draw_name"] == "Réveil"
        assert data["total"] == 320
        assert len(data["results"]) == 5
        assert data["results"][0]["draw_date"] == seeded_db[1].draw_date.isoformat()

    def test_unknown_draw(self, client):
        assert client.get("/api/v1/draws/Nowhere").status_code == 404

    def test_invalid_limit(self, client):
        assert client.get("/api/v1/draws/Reveil", params={"limit": 0}).status_code == 422

    def test_statistics(self, client, seeded_db):
        data = client.get("/api/v1/draws/Reveil/statistics", params={"number": 7}).json()
        assert data["summary"]["draws_analyzed"] == 320
        assert len(data["frequencies"]) == 90
        assert all(a["associated_with"] == 7 for a in data["associations"])

    def test_statistics_number_out_of_range(self, client):
        assert client.get("/api/v1/draws/Reveil/statistics", params={"number": 91}).status_code == 422


class TestPredictionEndpoints:

    def test_ranked_predictions(self, client, seeded_db):
        response = client.get("/api/v1/predictions/Reveil")
        assert response.status_code == 200

        data = response.json()
        assert data["draw_name"] == "Réveil"
        assert data["history_size"] == 320
        assert len(data["predictions"]) == 5
        scores = [p["score"] for p in data["predictions"]]
        assert scores == sorted(scores, reverse=True)
        for prediction in data["predictions"]:
            assert len(set(prediction["numbers"])) == 5
            assert 0 <= prediction["confidence"] <= 0.95

    def test_diverse_and_color(self, client, seeded_db):
        data = client.get("/api/v1/predictions/Reveil",
                          params={"diversity": True, "include_color": True}).json()
        assert len(data["predictions"]) == 9
        for prediction in data["predictions"]:
            if prediction["category"] == "color":
                continue
            numbers = prediction["numbers"]
            assert all(b - a >= 3 for a, b in zip(numbers, numbers[1:]))

    def test_empty_history_gives_fallbacks(self, client):
        data = client.get("/api/v1/predictions/Akwaba").json()
        assert len(data["predictions"]) == 5
        assert all("fallback algorithm" in p["factors"] for p in data["predictions"])

    def test_unknown_draw(self, client):
        assert client.get("/api/v1/predictions/Nowhere").status_code == 404

    def test_comparison(self, client, seeded_db):
        data = client.get("/api/v1/predictions/Reveil/comparison").json()
        assert data["history_size"] == 300
        assert len(data["algorithms"]) == 10
        assert data["recommendations"]["best_consensus"] == "Consensus Algorithm"
        assert set(data["risk_assessment"]) == {"conservative", "moderate", "aggressive"}

    def test_colors(self, client, seeded_db):
        data = client.get("/api/v1/predictions/Reveil/colors").json()
        assert data["analysis"]["draws_analyzed"] == 200
        assert data["recommended_strategy"]["recommended"] in {"balanced", "momentum", "hybrid"}
        assert len(data["predictions"]) == 4

    def test_track_then_performance(self, client, seeded_db):
        response = client.post("/api/v1/predictions/Reveil/track", json={"target_date": "2024-06-03"})
        assert response.status_code == 200
        assert response.json()["tracked"] == 5

        summary = client.get("/api/v1/predictions/performance/summary").json()
        assert summary["newly_validated"] == 5
        assert summary["global"]["total_validated"] == 5
        assert len(summary["algorithms"]) == 5

    def test_track_without_body(self, client, seeded_db):
        data = client.post("/api/v1/predictions/Reveil/track").json()
        assert data["tracked"] == 5
        assert len(db.get_predictions(validated=False)) == 5

    def test_track_invalid_date(self, client):
        response = client.post("/api/v1/predictions/Reveil/track", json={"target_date": "03/06/2024"})
        assert response.status_code == 400


class TestAdminAuth:

    def test_missing_header(self, client):
        assert client.get("/api/v1/admin/audit-logs").status_code == 401

    def test_not_bearer(self, client):
        response = client.get("/api/v1/admin/audit-logs", headers={"Authorization": "Basic abc"})
        assert response.status_code == 401

    def test_wrong_key(self, client):
        response = client.get("/api/v1/admin/audit-logs", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 403

    def test_key_not_configured(self, client, admin_headers, monkeypatch):
        monkeypatch.delenv("LOTO_ADMIN_API_KEY")
        assert client.get("/api/v1/admin/audit-logs", headers=admin_headers).status_code == 401


class TestAdminResults:

    def test_create(self, client, admin_headers):
        response = client.post("/api/v1/admin/results", json=_result_body(), headers=admin_headers)

        assert response.status_code == 201
        data = response.json()
        assert data["draw_name"] == "Réveil"
        assert data["winning_numbers"] == [5, 15, 25, 35, 45]

        logs = client.get("/api/v1/admin/audit-logs", headers=admin_headers).json()["logs"]
        assert logs[0]["action"] == "create"
        assert logs[0]["actor"] == "admin"

    def test_duplicate(self, client, admin_headers):
        client.post("/api/v1/admin/results", json=_result_body(), headers=admin_headers)
        response = client.post("/api/v1/admin/results", json=_result_body(), headers=admin_headers)
        assert response.status_code == 409

    def test_rejections(self, client, admin_headers):
        tomorrow = (date.today() + timedelta(days=1)).isoformat()
        cases = [
            (_result_body(draw_name="Nowhere"), 400),
            (_result_body(draw_date=tomorrow), 400),
            (_result_body(winning_numbers=[1, 2, 3, 4, 91]), 400),
            (_result_body(winning_numbers=[1, 1, 2, 3, 4]), 400),
            (_result_body(winning_numbers=[1, 2, 3, 4]), 422),
        ]
        for body, status in cases:
            assert client.post("/api/v1/admin/results", json=body, headers=admin_headers).status_code == status
        assert db.count_draw_results() == 0

    def test_update(self, client, admin_headers):
        result_id = client.post("/api/v1/admin/results", json=_result_body(), headers=admin_headers).json()["id"]

        response = client.put(f"/api/v1/admin/results/{result_id}",
                              json=_result_body(winning_numbers=[6, 16, 26, 36, 46]), headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["winning_numbers"] == [6, 16, 26, 36, 46]
        log = db.get_audit_logs()[0]
        assert log["action"] == "update"
        assert log["old_data"]["winning_numbers"] == [5, 15, 25, 35, 45]

    def test_update_conflict_and_missing(self, client, admin_headers):
        client.post("/api/v1/admin/results", json=_result_body(), headers=admin_headers)
        other_id = client.post("/api/v1/admin/results", json=_result_body(draw_date="2024-01-08"),
                               headers=admin_headers).json()["id"]

        conflict = client.put(f"/api/v1/admin/results/{other_id}", json=_result_body(), headers=admin_headers)
        missing = client.put("/api/v1/admin/results/9999", json=_result_body(), headers=admin_headers)

        assert conflict.status_code == 409
        assert missing.status_code == 404

    def test_delete(self, client, admin_headers):
        result_id = client.post("/api/v1/admin/results", json=_result_body(), headers=admin_headers).json()["id"]

        assert client.delete(f"/api/v1/admin/results/{result_id}", headers=admin_headers).json() == {"success": True}
        assert client.delete(f"/api/v1/admin/results/{result_id}", headers=admin_headers).status_code == 404
        assert db.get_audit_logs()[0]["action"] == "delete"


class TestAdminTransfer:

    def test_export_import_round_trip(self, client, admin_headers, seeded_db):
        envelope = client.get("/api/v1/admin/export", params={"draw_name": "reveil"}, headers=admin_headers).json()
        assert envelope["codec"] == "zlib"

        first_id = db.get_draw_results("Reveil", limit=1)[0]["id"]
        db.delete_draw_result(first_id)
        assert db.count_draw_results("Reveil") == 319

        response = client.post("/api/v1/admin/import", json=envelope, headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["stored"] == 320
        assert response.json()["rejected"] == 0
        assert db.count_draw_results("Reveil") == 320

    def test_identity_export(self, client, admin_headers, seeded_db):
        envelope = client.get("/api/v1/admin/export", params={"codec": "identity"}, headers=admin_headers).json()
        assert envelope["original_size"] == envelope["compressed_size"]

    def test_export_bad_codec(self, client, admin_headers):
        response = client.get("/api/v1/admin/export", params={"codec": "brotli"}, headers=admin_headers)
        assert response.status_code == 400

    def test_tampered_import(self, client, admin_headers, seeded_db):
        envelope = client.get("/api/v1/admin/export", headers=admin_headers).json()
        envelope["checksum"] = "0" * 64
        assert client.post("/api/v1/admin/import", json=envelope, headers=admin_headers).status_code == 400

    def test_import_reports_bad_rows(self, client, admin_headers):
        from lotobonheur.codec import pack_json

        envelope = pack_json({"results": [
            {"draw_name": "Reveil", "draw_date": "2024-01-01", "winning_numbers": [1, 2, 3, 4, 5]},
            {"draw_name": "Nowhere", "draw_date": "2024-01-01", "winning_numbers": [1, 2, 3, 4, 5]},
            {"draw_name": "Etoile", "draw_date": "2024-01-01", "winning_numbers": [1, 2, 3]},
        ]})
        data = client.post("/api/v1/admin/import", json=envelope, headers=admin_headers).json()

        assert data["received"] == 3
        assert data["stored"] == 1
        assert [e["index"] for e in data["errors"]] == [1, 2]

    def test_fetch_network_error(self, client, admin_headers, monkeypatch):
        def unreachable(month=None):
            raise NetworkError("HTTP error 503 from results API", status=503)
        monkeypatch.setattr(admin_endpoints, "sync_results", unreachable)

        response = client.post("/api/v1/admin/fetch", json={"month": "2024-08"}, headers=admin_headers)
        assert response.status_code == 502

    def test_fetch_success(self, client, admin_headers, monkeypatch):
        calls = []

        def fake_sync(month=None):
            calls.append(month)
            return SyncReport(fetched=4, stored=4, skipped=0, month=month, draw_names=["Reveil"])
        monkeypatch.setattr(admin_endpoints, "sync_results", fake_sync)

        response = client.post("/api/v1/admin/fetch", json={"month": "2024-08"}, headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["stored"] == 4
        assert calls == ["2024-08"]
