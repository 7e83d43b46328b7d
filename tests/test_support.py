"""Tests for the cache, record transformer, column registry, log formatter and scheduler job."""

import json
import logging
import time

import pytest

from adlens.connectors.upstream.transformer import transform_records
from adlens.core.cache import TTLCache
from adlens.core.column_registry import (
    COLUMNS,
    ColumnCategory,
    ColumnId,
    Grouping,
)
from adlens.core.logging import JSONFormatter
from adlens.models.entity_models import Objective
from adlens.scheduler.jobs import daily_sync_job
from adlens.sync.orchestrator import SyncAlreadyRunningError


# ── Cache ──


def test_cache_expiry():
    cache = TTLCache(ttl_seconds=0.05)
    cache.set("k", 1)
    assert cache.get("k") == 1
    time.sleep(0.06)
    assert cache.get("k") is None


def test_cache_generation_guard():
    cache = TTLCache()
    generation = cache.generation
    cache.clear()
    assert cache.set("k", "stale", generation=generation) is False
    assert cache.get("k") is None
    assert cache.set("k", "fresh", generation=cache.generation) is True
    assert len(cache) == 1


# ── Transformer ──


def test_transform_insights_coerces_measures():
    rows = transform_records(
        "insights",
        [
            {"insight_id": "i1", "date": "2025-01-01", "ad_id": "a1", "campaign_id": "c1",
             "impressions": "100", "spend": -5, "clicks": None, "extra": "ignored"},
            {"date": "2025-01-01"},
            {"insight_id": "i1", "date": "2025-01-02", "ad_id": "a1", "campaign_id": "c1"},
        ],
    )
    assert len(rows) == 1
    row = rows[0]
    assert row["date"] == "2025-01-01"
    assert row["impressions"] == 100.0
    assert row["spend"] == 0.0
    assert row["clicks"] == 0.0
    assert "extra" not in row


def test_transform_unknown_collection():
    with pytest.raises(ValueError):
        transform_records("pixels", [])


# ── Column registry ──


def test_every_column_registered_in_display_order():
    assert list(COLUMNS) == list(ColumnId)


def test_kpi_columns_per_objective():
    kpis = [c for c in COLUMNS.values() if c.category == ColumnCategory.KPI]
    assert len(kpis) == 10
    assert [c.id for c in kpis if c.objective == Objective.SALES] == [ColumnId.ROAS, ColumnId.CPA]
    assert [c.id for c in kpis if c.objective == Objective.AWARENESS] == [ColumnId.CPM, ColumnId.CPR]


def test_ad_only_columns():
    ad_only = {c.id for c in COLUMNS.values() if not c.applies_to(Grouping.CAMPAIGN)}
    assert ad_only == {ColumnId.AD_NAME, ColumnId.CREATIVE_TYPE, ColumnId.THUMBNAIL_URL}


# ── Logging ──


def test_json_formatter_lifts_fetch_context():
    record = logging.LogRecord("adlens.upstream.client", logging.WARNING, __file__, 1, "Rate limited", None, None)
    record.collection = "insights"
    record.page = 4
    record.attempt = 2
    record.status_code = 429

    entry = json.loads(JSONFormatter().format(record))
    assert entry["level"] == "WARNING"
    assert (entry["collection"], entry["page"], entry["attempt"], entry["status_code"]) == ("insights", 4, 2, 429)


# ── Scheduler ──


class FakeSyncService:
    def __init__(self, running=False):
        self.running = running
        self.started = 0

    def start_sync(self):
        if self.running:
            raise SyncAlreadyRunningError("Sync already in progress")
        self.started += 1


@pytest.mark.asyncio
async def test_daily_job_starts_sync():
    service = FakeSyncService()
    assert await daily_sync_job(service) is True
    assert service.started == 1


@pytest.mark.asyncio
async def test_daily_job_skips_when_running():
    service = FakeSyncService(running=True)
    assert await daily_sync_job(service) is False
    assert service.started == 0
