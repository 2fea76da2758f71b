from __future__ import annotations

from pathlib import Path

from fastapi.testclient import TestClient

from bimigrate_core.app import create_app


def _create(client: TestClient, **overrides) -> dict:
    body = {
        "name": "Test Tableau Connection",
        "bi_tool": "tableau",
        "connection_url": "https://tableau.example.com",
        "credentials": "encrypted_creds_123",
    }
    body.update(overrides)
    r = client.post("/v1/connections", json=body)
    assert r.status_code == 200, r.text
    return r.json()["data"]


def test_connections_create_get_list_patch(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("BIMIGRATE_HOME", str(tmp_path))

    with TestClient(create_app()) as client:
        created = _create(client)
        assert created["status"] == "inactive"
        assert created["last_sync_at"] is None
        conn_id = created["id"]

        _create(
            client,
            name="Power BI",
            bi_tool="powerbi",
            connection_url="https://powerbi.example.com",
        )

        got = client.get(f"/v1/connections/{conn_id}")
        assert got.status_code == 200
        assert got.json()["data"]["name"] == "Test Tableau Connection"

        listing = client.get("/v1/connections", params={"bi_tool": "powerbi"})
        assert listing.status_code == 200
        assert [c["name"] for c in listing.json()["data"]] == ["Power BI"]

        patched = client.patch(f"/v1/connections/{conn_id}", json={"name": "Renamed"})
        assert patched.status_code == 200
        data = patched.json()["data"]
        assert data["name"] == "Renamed"
        assert data["connection_url"] == "https://tableau.example.com"


def test_connections_validation_and_not_found(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("BIMIGRATE_HOME", str(tmp_path))

    with TestClient(create_app()) as client:
        bad_tool = client.post(
            "/v1/connections",
            json={
                "name": "x",
                "bi_tool": "qlik",
                "connection_url": "https://qlik.example.com",
                "credentials": "c",
            },
        )
        assert bad_tool.status_code == 422
        assert bad_tool.json()["error"]["code"] == "validation_error"

        bad_url = client.post(
            "/v1/connections",
            json={
                "name": "x",
                "bi_tool": "looker",
                "connection_url": "not-a-valid-url",
                "credentials": "c",
            },
        )
        assert bad_url.status_code == 422
        body = bad_url.json()
        assert body["ok"] is False
        assert body["data"] is None
        assert body["error"]["code"] == "validation_error"

        missing = client.get("/v1/connections/999")
        assert missing.status_code == 404
        assert missing.json()["error"]["code"] == "not_found"

        missing_patch = client.patch("/v1/connections/999", json={"name": "y"})
        assert missing_patch.status_code == 404

        assert client.get("/v1/connections").json()["data"] == []


def test_connection_test_and_sync(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("BIMIGRATE_HOME", str(tmp_path))

    with TestClient(create_app()) as client:
        conn_id = _create(client)["id"]

        # Sync is refused until a successful test activates the connection.
        early = client.post(f"/v1/connections/{conn_id}/sync")
        assert early.status_code == 409
        assert early.json()["error"]["code"] == "invalid_state"
        assert "not active" in early.json()["error"]["message"]

        tested = client.post(f"/v1/connections/{conn_id}/test")
        assert tested.status_code == 200
        result = tested.json()["data"]
        assert result["success"] is True
        assert result["message"].startswith("Successfully connected to tableau")

        conn = client.get(f"/v1/connections/{conn_id}").json()["data"]
        assert conn["status"] == "active"
        assert conn["last_sync_at"] is not None

        synced = client.post(f"/v1/connections/{conn_id}/sync")
        assert synced.status_code == 200
        assets = synced.json()["data"]
        assert [a["asset_type"] for a in assets] == ["report", "dashboard"]
        assert all(a["connection_id"] == conn_id for a in assets)

        missing = client.post("/v1/connections/99999/sync")
        assert missing.status_code == 404


def test_connection_test_failure_is_a_result_not_an_error(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("BIMIGRATE_HOME", str(tmp_path))

    with TestClient(create_app()) as client:
        conn_id = _create(client, name="Timeout Connection")["id"]

        r = client.post(f"/v1/connections/{conn_id}/test")
        assert r.status_code == 200
        assert r.json()["data"] == {"success": False, "message": "Connection timeout"}

        conn = client.get(f"/v1/connections/{conn_id}").json()["data"]
        assert conn["status"] == "error"

        again = client.post(f"/v1/connections/{conn_id}/test")
        assert again.json()["data"]["message"] == "Connection is in error state"

        unknown = client.post("/v1/connections/424242/test")
        assert unknown.status_code == 200
        assert unknown.json()["data"] == {"success": False, "message": "Connection not found"}
