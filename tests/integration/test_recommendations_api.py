from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from apps.api.app.error_codes import ErrorCode
from apps.api.app.main import REQUEST_ID_HEADER, create_app


@pytest.fixture
def client(small_service):
    with TestClient(create_app(service=small_service)) as c:
        yield c


def test_recommendations_success(client):
    resp = client.get("/v1/recommendations/1", params={"limit": 2})

    assert resp.status_code == 200
    body = resp.json()
    assert body["user_id"] == 1
    assert [item["item_id"] for item in body["items"]] == [80, 70]
    assert body["items"][1]["title"] == "Twelve Monkeys (1995)"
    assert body["items"][0]["title"] is None
    assert REQUEST_ID_HEADER in resp.headers


def test_recommendations_query_overrides(client):
    resp = client.get("/v1/recommendations/1", params={"limit": 10, "neighbors_k": 2})

    assert [item["item_id"] for item in resp.json()["items"]] == [80, 50, 60]


def test_recommendations_user_without_neighbors_is_empty(client):
    resp = client.get("/v1/recommendations/5")

    assert resp.status_code == 200
    assert resp.json()["items"] == []


def test_unknown_user_returns_not_found_envelope(client):
    resp = client.get("/v1/recommendations/999999", headers={REQUEST_ID_HEADER: "abc123"})

    assert resp.status_code == 404
    err = resp.json()["error"]
    assert err["code"] == ErrorCode.NOT_FOUND.value
    assert err["request_id"] == "abc123"
    assert resp.headers[REQUEST_ID_HEADER] == "abc123"


def test_invalid_limit_returns_validation_envelope(client):
    resp = client.get("/v1/recommendations/1", params={"limit": -1})

    assert resp.status_code == 422
    err = resp.json()["error"]
    assert err["code"] == ErrorCode.VALIDATION_ERROR.value
    assert err["request_id"] == resp.headers[REQUEST_ID_HEADER]


def test_ready_reports_user_count(client):
    resp = client.get("/v1/ready")

    assert resp.status_code == 200
    assert resp.json() == {"status": "ready", "users": 5}


def test_openapi_documents_error_responses(client):
    op = client.app.openapi()["paths"]["/v1/recommendations/{user_id}"]["get"]
    allowed = {e.value for e in ErrorCode}

    for status_code in ("400", "404", "422", "500"):
        example = op["responses"][status_code]["content"]["application/json"]["example"]
        assert example["error"]["code"] in allowed
        assert "request_id" in example["error"]


def test_unmapped_http_status_uses_generic_code(client):
    resp = client.post("/v1/recommendations/1")

    assert resp.status_code == 405
    assert resp.json()["error"]["code"] == ErrorCode.HTTP_ERROR.value


def test_error_codes_cover_only_raised_statuses():
    assert {c.value for c in ErrorCode} == {
        "BAD_REQUEST",
        "NOT_FOUND",
        "VALIDATION_ERROR",
        "SERVICE_UNAVAILABLE",
        "HTTP_ERROR",
        "INTERNAL_ERROR",
    }
