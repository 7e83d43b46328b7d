"""API tests through FastAPI's TestClient."""

import time

import httpx
import pytest
from fastapi.testclient import TestClient

from adlens.api.sync_routes import format_sse, progress_events
from adlens.main import create_app
from adlens.models.sync_models import SyncProgress, SyncStatus
from adlens.simulator import create_simulator_app
from adlens.sync.progress import SyncProgressTracker


def performance_body(**overrides):
    body = {
        "grouping": "campaign",
        "filters": {
            "dateRange": {"from": "2025-01-01", "to": "2025-01-31"},
            "campaignObjective": "SALES",
        },
        "pagination": {"page": 1, "pageSize": 25},
        "sorting": {"field": "spend", "direction": "desc"},
        "columns": ["campaign_name", "impressions", "spend", "roas", "cpa"],
    }
    body.update(overrides)
    return body


@pytest.fixture
def app(engine):
    return create_app(engine=engine)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"
    assert resp.json()["sync"] == "idle"


def test_columns_metadata(client):
    resp = client.get("/api/columns")
    assert resp.status_code == 200
    assert resp.headers["cache-control"] == "public, max-age=3600"

    columns = {c["id"]: c for c in resp.json()["columns"]}
    assert len(columns) == 24
    assert columns["roas"]["category"] == "kpi"
    assert columns["roas"]["objective"] == "SALES"
    assert columns["ad_name"]["availableFor"] == ["ad"]


def test_performance_report(client, seeded_store):
    resp = client.post("/api/performance", json=performance_body())
    assert resp.status_code == 200

    body = resp.json()
    assert body["meta"] == {"totalRows": 2, "page": 1, "pageSize": 25, "totalPages": 1}
    first = body["data"][0]
    assert first["campaign_name"] == "Summer Sale"
    assert first["spend"] == 65
    assert first["impressions"] == 2700


def test_performance_unknown_column_is_rejected(client):
    resp = client.post("/api/performance", json=performance_body(columns=["spend", "not_a_column"]))
    assert resp.status_code == 422


def test_performance_inverted_date_range_is_rejected(client):
    body = performance_body()
    body["filters"]["dateRange"] = {"from": "2025-02-01", "to": "2025-01-01"}
    assert client.post("/api/performance", json=body).status_code == 422


def test_performance_failure_returns_500(client, app, monkeypatch):
    def boom(request):
        raise RuntimeError("database is on fire")

    monkeypatch.setattr(app.state.performance_service, "get_performance", boom)
    resp = client.post("/api/performance", json=performance_body())

    assert resp.status_code == 500
    assert resp.json() == {
        "error": "Failed to fetch performance data",
        "message": "database is on fire",
    }


def test_sync_conflict(client, app):
    tracker = app.state.progress_tracker
    tracker.reset_for_run()
    tracker.set_entity("insights", 500, 1000)

    resp = client.post("/api/sync")
    assert resp.status_code == 409
    assert resp.json()["detail"] == "Sync already in progress"
    assert client.get("/api/sync/progress").json()["insights"] == {"fetched": 500, "total": 1000}


def test_sync_runs_in_background(engine, dataset):
    simulator = create_simulator_app(dataset, error_rate=0, rate_limit_rate=0, response_delay_ms=0)
    app = create_app(engine=engine, transport=httpx.ASGITransport(app=simulator))
    app.state.upstream_client.base_url = "http://upstream.test/api"

    with TestClient(app) as client:
        resp = client.post("/api/sync")
        assert resp.status_code == 200
        assert resp.json() == {"message": "Sync started"}

        deadline = time.monotonic() + 10
        progress = client.get("/api/sync/progress").json()
        while progress["status"] == "syncing" and time.monotonic() < deadline:
            time.sleep(0.05)
            progress = client.get("/api/sync/progress").json()

        assert progress["status"] == "completed"
        assert progress["campaigns"] == {"fetched": 3, "total": 3}

        campaigns = client.get("/api/campaigns", params={"objective": "SALES"}).json()
        assert campaigns["pagination"]["totalRows"] == 2

        ads = client.get("/api/ads", params={"campaignId": "c1"}).json()
        assert {a["ad_id"] for a in ads["data"]} == {"a1", "a2"}


def test_entity_listing_paginates(client, seeded_store):
    resp = client.get("/api/creatives", params={"page": 1, "pageSize": 1})
    body = resp.json()
    assert body["pagination"] == {"page": 1, "pageSize": 1, "totalRows": 2, "totalPages": 2}
    assert body["data"][0]["creative_id"] == "cr1"


def test_format_sse():
    event = format_sse(SyncProgress(status=SyncStatus.SYNCING))
    assert event.startswith("data: {")
    assert event.endswith("\n\n")
    assert '"status":"syncing"' in event


@pytest.mark.asyncio
async def test_progress_stream_sends_snapshot_then_updates():
    tracker = SyncProgressTracker()
    tracker.set_entity("ads", 7, 10)

    async def connected():
        return False

    stream = progress_events(tracker, connected, keepalive_seconds=0.05)
    first = await stream.__anext__()
    assert '"fetched":7' in first

    tracker.update(status=SyncStatus.COMPLETED)
    second = await stream.__anext__()
    assert '"status":"completed"' in second

    third = await stream.__anext__()
    assert third == ": keep-alive\n\n"

    await stream.aclose()
    assert tracker.subscriber_count == 0


@pytest.mark.asyncio
async def test_progress_stream_ends_on_disconnect():
    tracker = SyncProgressTracker()

    async def disconnected():
        return True

    events = []
    async for event in progress_events(tracker, disconnected, keepalive_seconds=0.01):
        events.append(event)

    assert len(events) == 1
    assert tracker.subscriber_count == 0
