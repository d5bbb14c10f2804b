import json

import pytest
from fastapi.testclient import TestClient

from conftest import BUSINESS, TOKEN, build_store, job_row, time_off_row, worker_row
from fieldservice.api.dependencies import create_store, get_store
from fieldservice.api.main import app
from fieldservice.domain.errors import StoreError
from fieldservice.infrastructure.settings import Settings

AUTH = {"Authorization": f"Bearer {TOKEN}"}


@pytest.fixture
def store():
    return build_store(
        workers=[worker_row("w1", max_daily_jobs=2), worker_row("w2", business_id="biz-other")],
        jobs=[job_row("j1", priority="low"), job_row("j2", priority="urgent"), job_row("j3")],
    )


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_root(client):
    assert client.get("/").json()["status"] == "ok"


def test_missing_authorization_header(client):
    response = client.post("/bulk-auto-assign", json={"jobIds": ["j1"]})
    assert response.status_code == 401
    assert response.json() == {"error": "Missing authorization header"}


def test_invalid_token(client):
    response = client.post("/bulk-auto-assign", json={"jobIds": ["j1"]},
                           headers={"Authorization": "Bearer nope"})
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}


def test_user_without_business(client, store):
    store.tables["profiles"][0]["business_id"] = None
    response = client.post("/bulk-auto-assign", json={"jobIds": ["j1"]}, headers=AUTH)
    assert response.status_code == 400
    assert response.json() == {"error": "No business found"}


@pytest.mark.parametrize("body", [{"jobIds": []}, {}])
def test_empty_job_ids(client, body):
    response = client.post("/bulk-auto-assign", json=body, headers=AUTH)
    assert response.status_code == 400
    assert response.json() == {"error": "No job IDs provided"}


def test_malformed_body_is_a_400(client):
    response = client.post("/bulk-auto-assign", json={"jobIds": "j1"}, headers=AUTH)
    assert response.status_code == 400
    assert "error" in response.json()


def test_bad_date_is_a_400(client):
    response = client.post("/bulk-auto-assign", headers=AUTH,
                           json={"jobIds": ["j1"], "dateRange": {"start": "soon", "end": "later"}})
    assert response.status_code == 400
    assert "Invalid start date" in response.json()["error"]


def test_bulk_assign_response_shape(client):
    response = client.post(
        "/bulk-auto-assign",
        headers=AUTH,
        json={
            "jobIds": ["j1", "j2", "j3"],
            "dateRange": {"start": "2024-06-10", "end": "2024-06-10"},
            "balanceWorkload": True,
        },
    )
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert [a["jobId"] for a in body["assignments"]] == ["j2", "j3"]
    first = body["assignments"][0]
    assert first == {
        "jobId": "j2",
        "userId": "w1",
        "userName": "W1 Tech",
        "scheduledStart": "2024-06-10T08:00:00",
        "scheduledEnd": "2024-06-10T09:00:00",
        "routePosition": 1,
        "reasoning": "Assigned based on availability and workload balance",
    }
    assert body["unassignedJobs"] == [
        {"jobId": "j1", "jobNumber": "J-j1", "reason": "No available workers with capacity in date range"}
    ]
    assert len(body["routePlansCreated"]) == 1
    assert body["summary"] == {"totalJobs": 3, "assigned": 2, "unassigned": 1, "workersUsed": 1}
    assert body["writeErrors"] == []


def test_constraints_override_max_jobs(client):
    response = client.post(
        "/bulk-auto-assign",
        headers=AUTH,
        json={"jobIds": ["j1", "j2", "j3"], "dateRange": {"start": "2024-06-10", "end": "2024-06-10"},
              "constraints": {"maxJobsPerWorker": 1}},
    )
    assert response.json()["summary"]["assigned"] == 1


def test_no_workers_returns_200(client, store):
    response = client.post(
        "/bulk-auto-assign",
        headers=AUTH,
        json={"jobIds": ["j1"], "constraints": {"preferredWorkerIds": ["nobody"]}},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is False
    assert body["unassignedJobs"][0]["reason"] == "No workers available"
    assert body["summary"]["workersUsed"] == 0


def test_store_failure_is_a_500(client, store):
    def boom(*args, **kwargs):
        raise StoreError("fetch jobs failed: connection reset")

    store.fetch_jobs = boom
    response = client.post("/bulk-auto-assign", json={"jobIds": ["j1"]}, headers=AUTH)
    assert response.status_code == 500
    assert response.json() == {"error": "fetch jobs failed: connection reset"}


def test_route_plans_can_be_read_back(client):
    client.post("/bulk-auto-assign", headers=AUTH,
                json={"jobIds": ["j1", "j2"], "dateRange": {"start": "2024-06-10", "end": "2024-06-11"}})
    response = client.get("/route-plans", params={"dateFrom": "2024-06-10", "dateTo": "2024-06-11"}, headers=AUTH)
    assert response.status_code == 200
    plans = response.json()["data"]
    assert [p["routeDate"] for p in plans] == ["2024-06-10", "2024-06-11"]
    assert all(p["userId"] == "w1" and p["status"] == "draft" for p in plans)

    one_day = client.get("/route-plans", params={"date": "2024-06-11"}, headers=AUTH).json()["data"]
    assert len(one_day) == 1


def test_route_plans_reject_reversed_range(client):
    response = client.get("/route-plans", params={"dateFrom": "2024-06-11", "dateTo": "2024-06-10"}, headers=AUTH)
    assert response.status_code == 400


def test_auto_assign_job_endpoint(client, store):
    response = client.post("/auto-assign-job", headers=AUTH,
                           json={"jobId": "j3", "preferredDate": "2024-06-10"})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["assignment"]["userId"] == "w1"
    assert body["assignment"]["scheduledStart"] == "2024-06-10T08:00:00"
    assert body["routePlanId"]


def test_auto_assign_job_unknown_job(client):
    response = client.post("/auto-assign-job", headers=AUTH, json={"jobId": "missing"})
    assert response.status_code == 404
    assert response.json() == {"error": "Job not found"}


def test_auto_assign_job_requires_job_id(client):
    response = client.post("/auto-assign-job", headers=AUTH, json={})
    assert response.status_code == 400
    assert response.json() == {"error": "jobId is required"}


def test_unhandled_dependency_error_is_json():
    def broken_store():
        raise RuntimeError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be configured")

    app.dependency_overrides[get_store] = broken_store
    try:
        response = TestClient(app, raise_server_exceptions=False).post(
            "/bulk-auto-assign", json={"jobIds": ["j1"]}, headers=AUTH
        )
    finally:
        app.dependency_overrides.clear()
    assert response.status_code == 500
    assert response.json() == {"error": "SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be configured"}


def test_malformed_store_row_is_a_500_not_a_400(client, store):
    store.tables["time_off_requests"].append(time_off_row("w1", "not-a-date", "2024-06-12"))
    response = client.post("/bulk-auto-assign", headers=AUTH,
                           json={"jobIds": ["j1"], "dateRange": {"start": "2024-06-10"}})
    assert response.status_code == 500
    assert "not-a-date" in response.json()["error"]


def test_memory_backend_is_seeded_from_file(tmp_path):
    seed = tmp_path / "seed.json"
    seed.write_text(json.dumps({
        "tables": {"profiles": [worker_row("w1")], "jobs": [job_row("j1")]},
        "tokens": {TOKEN: "w1"},
    }))
    store = create_store(Settings(store_backend="memory", memory_store_seed=str(seed)))
    assert store.get_business_id(store.resolve_user_id(TOKEN)) == BUSINESS

    app.dependency_overrides[get_store] = lambda: store
    try:
        response = TestClient(app).post("/bulk-auto-assign", headers=AUTH,
                                        json={"jobIds": ["j1"], "dateRange": {"start": "2024-06-10"}})
    finally:
        app.dependency_overrides.clear()
    assert response.status_code == 200
    assert response.json()["summary"]["assigned"] == 1


def test_memory_backend_requires_seed():
    with pytest.raises(RuntimeError, match="MEMORY_STORE_SEED"):
        create_store(Settings(store_backend="memory"))
