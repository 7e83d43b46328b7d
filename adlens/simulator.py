"""AdLens — Upstream Ads API Simulator.

Serves campaigns / creatives / ads / insights from JSON fixture files with
the upstream's pagination and filters, plus injected 500s, 429s and
response latency so the sync pipeline can be exercised locally.

    python -m adlens.simulator
"""

import asyncio
import json
import math
import random
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from adlens.config import settings
from adlens.core.logging import get_logger
from adlens.models.sync_models import SYNC_COLLECTIONS

logger = get_logger("simulator")

PAGE_SIZE = 100

Dataset = Dict[str, List[Dict[str, Any]]]

SERVER_ERROR_BODY = {
    "error": "Internal Server Error",
    "message": "An unexpected error occurred. Please retry your request.",
}


def load_dataset(data_dir: str | Path) -> Dataset:
    """Read <collection>.json for every collection in data_dir."""
    base = Path(data_dir)
    dataset: Dataset = {}
    for collection in SYNC_COLLECTIONS:
        with open(base / f"{collection}.json", encoding="utf-8") as fh:
            dataset[collection] = json.load(fh)
    logger.info(
        "Loaded data: "
        + ", ".join(f"{len(dataset[c])} {c}" for c in SYNC_COLLECTIONS)
    )
    return dataset


def paginate(items: List[Dict[str, Any]], page: int = 1) -> Dict[str, Any]:
    safe_page = max(1, page)
    total_pages = max(1, math.ceil(len(items) / PAGE_SIZE))
    start = (safe_page - 1) * PAGE_SIZE
    return {
        "data": items[start : start + PAGE_SIZE],
        "pagination": {
            "page": safe_page,
            "pageSize": PAGE_SIZE,
            "totalPages": total_pages,
        },
    }


def _id_set(raw: Optional[str]) -> set[str]:
    return {part for part in (raw or "").split(",") if part}


def create_simulator_app(
    dataset: Dataset,
    error_rate: float | None = None,
    rate_limit_rate: float | None = None,
    retry_after_ms: int | None = None,
    response_delay_ms: int | None = None,
    rng: random.Random | None = None,
) -> FastAPI:
    """Build the simulator app around an in-memory dataset."""
    error_rate = settings.simulator_error_rate if error_rate is None else error_rate
    rate_limit_rate = (
        settings.simulator_rate_limit_rate if rate_limit_rate is None else rate_limit_rate
    )
    retry_after_ms = (
        settings.simulator_retry_after_ms if retry_after_ms is None else retry_after_ms
    )
    response_delay_ms = (
        settings.simulator_response_delay_ms
        if response_delay_ms is None
        else response_delay_ms
    )
    rng = rng or random.Random()

    app = FastAPI(title="AdLens Upstream Simulator", version="1.0.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def inject_faults(request: Request, call_next):
        roll = rng.random()
        if roll < error_rate:
            return JSONResponse(status_code=500, content=SERVER_ERROR_BODY)
        if roll < error_rate + rate_limit_rate:
            return JSONResponse(
                status_code=429,
                content={
                    "error": "Rate Limit Exceeded",
                    "message": "Too many requests. Please wait before retrying.",
                    "retryAfterMs": retry_after_ms,
                },
            )

        response = await call_next(request)
        if 200 <= response.status_code < 300 and response_delay_ms > 0:
            await asyncio.sleep(response_delay_ms / 1000)
        return response

    @app.get("/api/campaigns")
    async def campaigns(page: int = 1):
        return paginate(dataset["campaigns"], page)

    @app.get("/api/creatives")
    async def creatives(page: int = 1):
        return paginate(dataset["creatives"], page)

    @app.get("/api/ads")
    async def ads(
        page: int = 1,
        campaign_ids: Optional[str] = Query(None, alias="campaignIds"),
        date_from: Optional[str] = Query(None, alias="dateFrom"),
        date_to: Optional[str] = Query(None, alias="dateTo"),
    ):
        items = dataset["ads"]
        wanted = _id_set(campaign_ids)
        if wanted:
            items = [a for a in items if a["campaign_id"] in wanted]
        if date_from:
            items = [a for a in items if a["date_end"] >= date_from]
        if date_to:
            items = [a for a in items if a["date_start"] <= date_to]
        return paginate(items, page)

    @app.get("/api/insights")
    async def insights(
        page: int = 1,
        campaign_ids: Optional[str] = Query(None, alias="campaignIds"),
        ad_ids: Optional[str] = Query(None, alias="adIds"),
        date_from: Optional[str] = Query(None, alias="dateFrom"),
        date_to: Optional[str] = Query(None, alias="dateTo"),
    ):
        items = dataset["insights"]
        campaigns_wanted = _id_set(campaign_ids)
        ads_wanted = _id_set(ad_ids)
        if campaigns_wanted:
            items = [i for i in items if i["campaign_id"] in campaigns_wanted]
        if ads_wanted:
            items = [i for i in items if i["ad_id"] in ads_wanted]
        if date_from:
            items = [i for i in items if i["date"] >= date_from]
        if date_to:
            items = [i for i in items if i["date"] <= date_to]
        return paginate(items, page)

    return app


if __name__ == "__main__":
    import uvicorn

    simulator = create_simulator_app(load_dataset(settings.simulator_data_dir))
    uvicorn.run(simulator, host="0.0.0.0", port=settings.simulator_port)
