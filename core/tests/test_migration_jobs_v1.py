from __future__ import annotations

from pathlib import Path

from fastapi.testclient import TestClient

from bimigrate_core.app import create_app


def _synced_asset_ids(client: TestClient) -> list[int]:
    r = client.post(
        "/v1/connections",
        json={
            "name": "Power BI",
            "bi_tool": "powerbi",
            "connection_url": "https://powerbi.example.com",
            "credentials": "creds",
        },
    )
    conn_id = r.json()["data"]["id"]
    client.post(f"/v1/connections/{conn_id}/test")
    synced = client.post(f"/v1/connections/{conn_id}/sync")
    assert synced.status_code == 200
    return [a["id"] for a in synced.json()["data"]]


def _create_job(client: TestClient, asset_ids: list[int], **overrides) -> dict:
    body = {
        "name": "Migrate sales dashboards",
        "description": "Q3 reporting",
        "source_asset_ids": asset_ids,
        "target_databricks_asset_type": "ai_bi_dashboard",
        "transformation_config": {"theme": "dark"},
    }
    body.update(overrides)
    r = client.post("/v1/migration-jobs", json=body)
    assert r.status_code == 200, r.text
    return r.json()["data"]


def test_migration_job_lifecycle(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("BIMIGRATE_HOME", str(tmp_path))

    with TestClient(create_app()) as client:
        asset_ids = _synced_asset_ids(client)
        job = _create_job(client, asset_ids)
        job_id = job["id"]
        assert job["status"] == "pending"
        assert job["progress_percentage"] == 0
        assert job["source_asset_ids"] == asset_ids
        assert job["started_at"] is None

        running = client.patch(
            f"/v1/migration-jobs/{job_id}",
            json={"status": "in_progress", "progress_percentage": 25},
        )
        assert running.status_code == 200
        assert running.json()["data"]["started_at"] is not None

        done = client.patch(
            f"/v1/migration-jobs/{job_id}",
            json={"status": "completed", "progress_percentage": 100},
        )
        assert done.status_code == 200
        data = done.json()["data"]
        assert data["status"] == "completed"
        assert data["completed_at"] is not None

        reopen = client.patch(f"/v1/migration-jobs/{job_id}", json={"status": "in_progress"})
        assert reopen.status_code == 409
        assert reopen.json()["error"]["code"] == "invalid_state"

        cancel = client.post(f"/v1/migration-jobs/{job_id}/cancel")
        assert cancel.status_code == 409
        assert cancel.json()["error"]["message"] == (
            "Cannot cancel migration job with status 'completed'. "
            "Only pending or in_progress jobs can be cancelled."
        )

        history = client.get(f"/v1/migration-jobs/{job_id}/history")
        assert history.status_code == 200
        assert [h["status"] for h in history.json()["data"]] == ["in_progress", "completed"]

        got = client.get(f"/v1/migration-jobs/{job_id}")
        assert got.json()["data"]["status"] == "completed"


def test_migration_job_cancel_and_filters(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("BIMIGRATE_HOME", str(tmp_path))

    with TestClient(create_app()) as client:
        asset_ids = _synced_asset_ids(client)
        keep = _create_job(client, asset_ids, name="Keep")
        drop = _create_job(
            client,
            asset_ids[:1],
            name="Drop",
            target_databricks_asset_type="unity_catalog_metric_view",
        )

        cancelled = client.post(f"/v1/migration-jobs/{drop['id']}/cancel")
        assert cancelled.status_code == 200
        data = cancelled.json()["data"]
        assert data["status"] == "cancelled"
        assert data["error_message"] == "Job cancelled by user"
        assert data["completed_at"] is not None

        history = client.get(f"/v1/migration-jobs/{drop['id']}/history").json()["data"]
        assert [(h["status"], h["message"]) for h in history] == [
            ("cancelled", "Migration job cancelled by user")
        ]

        pending = client.get("/v1/migration-jobs", params={"status": "pending"}).json()["data"]
        assert [j["id"] for j in pending] == [keep["id"]]

        queries = client.get(
            "/v1/migration-jobs",
            params={"target_databricks_asset_type": "unity_catalog_metric_view"},
        ).json()["data"]
        assert [j["id"] for j in queries] == [drop["id"]]

        assert client.get("/v1/migration-jobs/99999/history").json()["data"] == []


def test_migration_job_validation_errors(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("BIMIGRATE_HOME", str(tmp_path))

    with TestClient(create_app()) as client:
        missing = client.post(
            "/v1/migration-jobs",
            json={
                "name": "Ghosts",
                "source_asset_ids": [999, 1000],
                "target_databricks_asset_type": "ai_bi_genie_space",
            },
        )
        assert missing.status_code == 422
        assert missing.json()["error"]["message"] == (
            "The following asset IDs do not exist: 999, 1000"
        )

        empty = client.post(
            "/v1/migration-jobs",
            json={
                "name": "Empty",
                "source_asset_ids": [],
                "target_databricks_asset_type": "unity_catalog_metric_view",
            },
        )
        assert empty.status_code == 422

        asset_ids = _synced_asset_ids(client)
        job_id = _create_job(client, asset_ids)["id"]

        too_much = client.patch(f"/v1/migration-jobs/{job_id}", json={"progress_percentage": 150})
        assert too_much.status_code == 422
        assert too_much.json()["error"]["code"] == "validation_error"

        unknown = client.patch("/v1/migration-jobs/99999", json={"status": "failed"})
        assert unknown.status_code == 404
        assert client.post("/v1/migration-jobs/99999/cancel").status_code == 404
        assert client.get("/v1/migration-jobs/99999").status_code == 404


def test_migration_job_patch_explicit_null_clears_config(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("BIMIGRATE_HOME", str(tmp_path))

    with TestClient(create_app()) as client:
        asset_ids = _synced_asset_ids(client)
        job = _create_job(client, asset_ids, mapping_config={"workspace": "prod"})

        r = client.patch(f"/v1/migration-jobs/{job['id']}", json={"transformation_config": None})
        assert r.status_code == 200
        data = r.json()["data"]
        assert data["transformation_config"] is None
        assert data["mapping_config"] == {"workspace": "prod"}

        # Omitted fields are left alone.
        r = client.patch(f"/v1/migration-jobs/{job['id']}", json={"error_message": "warn"})
        data = r.json()["data"]
        assert data["error_message"] == "warn"
        assert data["mapping_config"] == {"workspace": "prod"}
        assert data["status"] == "pending"
