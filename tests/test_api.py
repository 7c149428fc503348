from __future__ import annotations

import time

import pytest
from fastapi.testclient import TestClient

from app.main import app
from conftest import FakeGateway, fk_row, table_rows
from tablesync.errors.exceptions import DatabaseError


@pytest.fixture
def api_gateway():
    gw = FakeGateway()
    gw.on("information_schema.tables", table_rows("users", "orders"))
    gw.on("table_constraints", [fk_row("orders", "fk_orders_user")])
    gw.on('FROM "public"."users"', [{"id": 1, "email": "a@example.com"}])
    return gw


@pytest.fixture
def client(api_gateway):
    app.state.gateway = api_gateway
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.state.gateway = None


def _collect_updates(client, *until: str, timeout: float = 2.0) -> list[dict]:
    """Poll /updates until an update of every type in ``until`` shows up."""
    seen: list[dict] = []
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        resp = client.get("/api/v1/updates")
        assert resp.status_code == 200, resp.text
        seen.extend(resp.json())
        if set(until) <= {u["type"] for u in seen}:
            return seen
        time.sleep(0.01)
    raise AssertionError(f"no {until} update within {timeout}s, got {seen}")


def test_healthz_ok(client):
    r = client.get("/healthz")
    assert r.status_code == 200
    assert r.text == "ok"


def test_readyz_pings_gateway(client, api_gateway):
    assert client.get("/readyz").text == "ready"

    api_gateway.ping_error = DatabaseError.unavailable("connection refused")
    assert client.get("/readyz").status_code == 503


def test_fetch_tables_streams_updates(client):
    r = client.post("/api/v1/tables/fetch", json={"favorite_id": "fav-1"})
    assert r.status_code == 202

    updates = _collect_updates(client, "ConstraintSet")
    types = [u["type"] for u in updates]
    assert types[:4] == [
        "TablesLoaded",
        "TablesFetchedFlag",
        "FavoritesQuantityUpdated",
        "TableSelected",
    ]
    loaded = updates[0]["payload"]
    assert loaded["names"] == ["users", "orders"]
    assert set(loaded["map"]) == {"users", "orders"}

    snapshot = client.get("/api/v1/tables").json()
    assert snapshot["names"] == ["users", "orders"]
    assert snapshot["favorite_quantities"] == {"fav-1": 2}


def test_table_data_waits_for_the_page(client):
    client.post("/api/v1/tables/fetch", json={})
    _collect_updates(client, "ConstraintSet", "TableDataSet", "TableSchemaSet")

    r = client.post("/api/v1/tables/data", json={"table_name": "users", "start_index": 1})
    assert r.status_code == 200, r.text
    assert r.json() == {"ok": True}

    snapshot = client.get("/api/v1/tables").json()
    assert len(snapshot["tables"]["users"]["rows_ids"]) == 2


def test_drop_failure_uses_error_contract(client, api_gateway):
    api_gateway.on("DROP TABLE", error=DatabaseError("fk violation"))

    r = client.post(
        "/api/v1/tables/drop",
        json={
            "table_name": "users",
            "selected_table_id": "T1",
            "parameters": {"cascade": True},
            "current_table_name": "T1",
        },
    )

    assert r.status_code == 500, r.text
    body = r.json()
    assert body["error"]["code"] == "DB_ERROR"
    assert body["error"]["message"] == "fk violation"
    assert body["error"]["retryable"] is False
    assert "X-Request-ID" in r.headers

    updates = client.get("/api/v1/updates").json()
    assert updates[-1]["type"] == "ErrorNotification"
    assert updates[-1]["payload"]["component"] == "ErrorModal"


def test_truncate_succeeds(client, api_gateway):
    r = client.post(
        "/api/v1/tables/truncate",
        json={
            "table_name": "users",
            "selected_table_id": "T1",
            "parameters": {"restart_identity": True},
        },
    )
    assert r.status_code == 200
    assert api_gateway.queries("TRUNCATE") == ['TRUNCATE "public"."users" RESTART IDENTITY']


def test_invalid_start_index_is_rejected(client):
    r = client.post("/api/v1/tables/data", json={"table_name": "users", "start_index": -1})
    assert r.status_code == 422


def test_metrics_exposes_prometheus_format(client):
    client.get("/healthz")
    r = client.get("/metrics")
    assert r.status_code == 200
    assert "# HELP" in r.text or "# TYPE" in r.text
    assert "http_requests_total" in r.text


def test_requests_without_running_dispatcher_are_503():
    # No lifespan: the dispatcher never starts.
    c = TestClient(app)
    r = c.post("/api/v1/tables/data", json={"table_name": "users"})
    assert r.status_code == 503
    body = r.json()
    assert body["error"]["code"] == "dispatcher_not_running"
    assert body["error"]["retryable"] is True
    assert r.headers["Retry-After"] == "2"


def test_updates_encode_binary_values(client, api_gateway):
    api_gateway.on('FROM "public"."blobs"', [{"id": 1, "payload": b"\xff\x00"}])

    r = client.post("/api/v1/tables/data", json={"table_name": "blobs"})
    assert r.status_code == 200

    r = client.get("/api/v1/updates")
    assert r.status_code == 200
    page = next(u for u in r.json() if u["type"] == "TableDataSet")
    assert page["payload"]["data"]["rows"]["0"]["payload"] == "\\xff00"

    assert client.get("/api/v1/updates").json() == []
