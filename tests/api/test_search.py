"""Test search analytics and saved query endpoints"""

from fieldservice.models.saved_query import SavedQuery


def track(client, headers, query="pump pressure", results_count=2, execution_time_ms=150):
    response = client.post(
        "/api/search/analytics",
        json={
            "query": query,
            "results_count": results_count,
            "similarity_threshold": 0.78,
            "execution_time_ms": execution_time_ms
        },
        headers=headers
    )
    assert response.status_code == 200
    return response.json()["analytics_id"]


def test_track_and_history(client, auth_headers, other_headers):
    track(client, auth_headers, query="pump pressure")
    track(client, other_headers, query="someone else")

    response = client.get("/api/search/analytics", params={"type": "history"}, headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["type"] == "history"
    assert [r["query"] for r in data["data"]] == ["pump pressure"]


def test_track_rejects_blank_query(client, auth_headers):
    response = client.post("/api/search/analytics", json={"query": " "}, headers=auth_headers)
    assert response.status_code == 400


def test_summary_and_popular(client, auth_headers, other_headers):
    track(client, auth_headers, query="pump pressure", results_count=4)
    track(client, auth_headers, query="pump pressure", results_count=0)
    track(client, other_headers, query="pump pressure")

    summary = client.get("/api/search/analytics", params={"type": "summary"}, headers=auth_headers).json()
    assert summary["data"]["total_searches"] == 2
    assert summary["data"]["avg_results_per_search"] == 2.0
    assert summary["data"]["top_queries"] == [{"query": "pump pressure", "count": 2}]

    popular = client.get("/api/search/analytics", params={"type": "popular"}, headers=auth_headers).json()
    assert popular["data"][0]["query"] == "pump pressure"
    assert popular["data"][0]["count"] == 3


def test_performance_requires_manager(client, auth_headers, admin_headers):
    track(client, auth_headers, results_count=0)
    track(client, auth_headers, results_count=3)

    assert client.get(
        "/api/search/analytics", params={"type": "performance"}, headers=auth_headers
    ).status_code == 403

    response = client.get("/api/search/analytics", params={"type": "performance"}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["data"]["query_success_rate"] == 50.0


def test_unknown_analytics_type(client, auth_headers):
    response = client.get("/api/search/analytics", params={"type": "everything"}, headers=auth_headers)
    assert response.status_code == 422


def test_track_click(client, auth_headers, other_headers):
    analytics_id = track(client, auth_headers)

    response = client.post(
        f"/api/search/analytics/{analytics_id}/click",
        json={"result_id": "chunk-1"},
        headers=auth_headers
    )
    assert response.status_code == 200
    assert response.json()["success"] is True

    foreign = client.post(
        f"/api/search/analytics/{analytics_id}/click",
        json={"result_id": "chunk-2"},
        headers=other_headers
    )
    assert foreign.status_code == 404

    missing = client.post(
        "/api/search/analytics/missing/click",
        json={"result_id": "chunk-1"},
        headers=auth_headers
    )
    assert missing.status_code == 404

    history = client.get("/api/search/analytics", headers=auth_headers).json()
    assert history["data"][0]["clicked_result_ids"] == ["chunk-1"]


def test_saved_query_lifecycle(client, auth_headers, db):
    created = client.post(
        "/api/search/saved-queries",
        json={"name": "Pump checks", "query": "pump pressure", "filters": {"similarity_threshold": 0.8}},
        headers=auth_headers
    )
    assert created.status_code == 201
    saved = created.json()
    assert saved["use_count"] == 0
    assert saved["filters"]["similarity_threshold"] == 0.8

    used = client.post(f"/api/search/saved-queries/{saved['id']}/use", headers=auth_headers)
    assert used.status_code == 200

    listing = client.get("/api/search/saved-queries", headers=auth_headers).json()
    assert listing["count"] == 1
    assert listing["queries"][0]["use_count"] == 1

    deleted = client.delete(f"/api/search/saved-queries/{saved['id']}", headers=auth_headers)
    assert deleted.status_code == 200
    db.expire_all()
    assert db.get(SavedQuery, saved["id"]) is None


def test_saved_query_requires_name(client, auth_headers):
    response = client.post(
        "/api/search/saved-queries",
        json={"name": "  ", "query": "pump"},
        headers=auth_headers
    )
    assert response.status_code == 400


def test_saved_query_owned_by_creator(client, auth_headers, other_headers, db):
    saved = client.post(
        "/api/search/saved-queries",
        json={"name": "Pump checks", "query": "pump pressure"},
        headers=auth_headers
    ).json()

    assert client.delete(f"/api/search/saved-queries/{saved['id']}", headers=other_headers).status_code == 404
    assert client.post(f"/api/search/saved-queries/{saved['id']}/use", headers=other_headers).status_code == 404
    assert client.get("/api/search/saved-queries", headers=other_headers).json()["count"] == 0

    db.expire_all()
    record = db.get(SavedQuery, saved["id"])
    assert record is not None
    assert record.use_count == 0


def test_unknown_saved_query(client, auth_headers):
    assert client.delete("/api/search/saved-queries/missing", headers=auth_headers).status_code == 404
    assert client.post("/api/search/saved-queries/missing/use", headers=auth_headers).status_code == 404
