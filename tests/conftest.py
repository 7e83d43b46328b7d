"""Shared fixtures: in-memory SQLite store and a small ads dataset."""

import os

# Must be set before anything imports adlens.config / adlens.database
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SCHEDULER_ENABLED"] = "false"

import copy

import pytest
from sqlmodel import SQLModel

from adlens.connectors.upstream.transformer import transform_records
from adlens.database import build_engine
from adlens.models.entity_models import model_for
from adlens.models.sync_models import SYNC_COLLECTIONS
from adlens.storage.entity_store import EntityStore


def _insight(insight_id, date, ad_id, campaign_id, **measures):
    row = {
        "insight_id": insight_id,
        "date": date,
        "ad_id": ad_id,
        "campaign_id": campaign_id,
        "impressions": 0,
        "clicks": 0,
        "spend": 0,
        "conversions": 0,
        "reach": 0,
        "video_views": 0,
        "leads": 0,
        "conversion_value": 0,
    }
    row.update(measures)
    return row


BASE_DATASET = {
    "campaigns": [
        {"campaign_id": "c1", "campaign_name": "Summer Sale", "status": "active", "campaign_objective": "SALES"},
        {"campaign_id": "c2", "campaign_name": "Winter Promo", "status": "inactive", "campaign_objective": "SALES"},
        {"campaign_id": "c3", "campaign_name": "Brand Lift", "status": "active", "campaign_objective": "AWARENESS"},
    ],
    "creatives": [
        {"creative_id": "cr1", "creative_type": "image", "thumbnail_url": "https://cdn.example.com/cr1.jpg"},
        {"creative_id": "cr2", "creative_type": "video", "thumbnail_url": "https://cdn.example.com/cr2.jpg"},
    ],
    "ads": [
        {"ad_id": "a1", "campaign_id": "c1", "creative_id": "cr1", "date_start": "2025-01-01",
         "date_end": "2025-01-31", "name": "Sale Banner", "description": "", "status": "active"},
        {"ad_id": "a2", "campaign_id": "c1", "creative_id": "cr2", "date_start": "2025-01-01",
         "date_end": "2025-01-31", "name": "Sale Video", "description": "", "status": "inactive"},
        {"ad_id": "a3", "campaign_id": "c2", "creative_id": "cr1", "date_start": "2025-01-01",
         "date_end": "2025-01-31", "name": "Promo Banner", "description": "", "status": "active"},
        {"ad_id": "a4", "campaign_id": "c3", "creative_id": "cr2", "date_start": "2025-01-01",
         "date_end": "2025-01-31", "name": "Summer Awareness Video", "description": "", "status": "active"},
    ],
    "insights": [
        _insight("i1", "2025-01-01", "a1", "c1", impressions=1000, clicks=50, spend=25, conversions=5,
                 reach=800, video_views=100, leads=2, conversion_value=45),
        _insight("i2", "2025-01-02", "a1", "c1", impressions=1200, clicks=60, spend=30, conversions=6,
                 reach=900, video_views=120, leads=3, conversion_value=55),
        _insight("i3", "2025-01-01", "a2", "c1", impressions=500, clicks=10, spend=10, conversions=1,
                 reach=400, conversion_value=20),
        _insight("i4", "2025-01-01", "a3", "c2", impressions=300, clicks=3, spend=6, conversions=2,
                 reach=250, conversion_value=12),
        _insight("i5", "2025-01-01", "a4", "c3", impressions=2000, clicks=20, spend=40,
                 reach=1500, video_views=600),
        _insight("i6", "2025-02-15", "a1", "c1", impressions=999, clicks=99, spend=99),
    ],
}


@pytest.fixture
def dataset():
    """A fresh deep copy of the base dataset, safe to mutate."""
    return copy.deepcopy(BASE_DATASET)


@pytest.fixture
def engine():
    eng = build_engine("sqlite://")
    SQLModel.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def store(engine):
    return EntityStore(engine)


def seed(store: EntityStore, data: dict) -> None:
    """Load a dataset straight into the store, parents first."""
    for collection in SYNC_COLLECTIONS:
        rows = transform_records(collection, data.get(collection, []))
        store.bulk_insert(model_for(collection), rows)


@pytest.fixture
def seeded_store(store, dataset):
    seed(store, dataset)
    return store
