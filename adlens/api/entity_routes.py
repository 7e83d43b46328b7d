"""AdLens — Synced Entity Listing Routes."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from adlens.deps import get_store
from adlens.models.entity_models import Ad, Campaign, Creative, EntityStatus, Objective
from adlens.storage.entity_store import EntityStore

router = APIRouter(prefix="/api", tags=["Entities"])


def _page(items, total: int, page: int, page_size: int) -> dict:
    return {
        "data": [item.model_dump() for item in items],
        "pagination": {
            "page": page,
            "pageSize": page_size,
            "totalRows": total,
            "totalPages": -(-total // page_size),
        },
    }


@router.get("/campaigns")
async def list_campaigns(
    page: int = Query(1, ge=1),
    page_size: int = Query(100, ge=1, le=1000, alias="pageSize"),
    objective: Optional[Objective] = None,
    status: Optional[EntityStatus] = None,
    store: EntityStore = Depends(get_store),
):
    """Stored campaigns, optionally filtered by objective and status."""
    where = []
    if objective is not None:
        where.append(Campaign.campaign_objective == objective.value)
    if status is not None:
        where.append(Campaign.status == status.value)
    items, total = store.list_entities(Campaign, page, page_size, where)
    return _page(items, total, page, page_size)


@router.get("/creatives")
async def list_creatives(
    page: int = Query(1, ge=1),
    page_size: int = Query(100, ge=1, le=1000, alias="pageSize"),
    store: EntityStore = Depends(get_store),
):
    """Stored creatives."""
    items, total = store.list_entities(Creative, page, page_size)
    return _page(items, total, page, page_size)


@router.get("/ads")
async def list_ads(
    page: int = Query(1, ge=1),
    page_size: int = Query(100, ge=1, le=1000, alias="pageSize"),
    campaign_id: Optional[str] = Query(None, alias="campaignId"),
    status: Optional[EntityStatus] = None,
    store: EntityStore = Depends(get_store),
):
    """Stored ads, optionally for one campaign."""
    where = []
    if campaign_id:
        where.append(Ad.campaign_id == campaign_id)
    if status is not None:
        where.append(Ad.status == status.value)
    items, total = store.list_entities(Ad, page, page_size, where)
    return _page(items, total, page, page_size)
