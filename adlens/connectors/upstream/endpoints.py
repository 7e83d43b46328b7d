"""AdLens — Upstream Collection Endpoints.

Fetch functions for each upstream collection. Each returns the raw records
of the whole collection; storage is the sync orchestrator's job.
"""

from typing import Any, Dict, Iterable, List, Optional

from adlens.config import settings
from adlens.connectors.upstream.client import ProgressCallback, UpstreamClient
from adlens.core.logging import get_logger

logger = get_logger("upstream.endpoints")


def _id_filter(ids: Optional[Iterable[str]]) -> Optional[str]:
    """Comma-separated id list, or None when there is nothing to filter on."""
    if ids is None:
        return None
    joined = ",".join(i for i in ids if i)
    return joined or None


def _build_params(**kwargs: Optional[str]) -> Dict[str, str]:
    return {k: v for k, v in kwargs.items() if v}


class UpstreamEndpoints:
    """One method per upstream collection."""

    def __init__(
        self,
        client: UpstreamClient,
        concurrency: int | None = None,
        insights_concurrency: int | None = None,
    ):
        self.client = client
        self.concurrency = concurrency or settings.fetch_concurrency
        self.insights_concurrency = insights_concurrency or settings.insights_fetch_concurrency

    # ── Structure Endpoints (Campaigns, Creatives, Ads) ──

    async def fetch_campaigns(
        self, on_progress: ProgressCallback | None = None
    ) -> List[Dict[str, Any]]:
        """Fetch all campaigns."""
        return await self.client.fetch_all_pages(
            "campaigns", max_concurrent=self.concurrency, on_progress=on_progress
        )

    async def fetch_creatives(
        self, on_progress: ProgressCallback | None = None
    ) -> List[Dict[str, Any]]:
        """Fetch all creatives."""
        return await self.client.fetch_all_pages(
            "creatives", max_concurrent=self.concurrency, on_progress=on_progress
        )

    async def fetch_ads(
        self,
        campaign_ids: Optional[Iterable[str]] = None,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
        on_progress: ProgressCallback | None = None,
    ) -> List[Dict[str, Any]]:
        """Fetch ads, optionally only those overlapping [date_from, date_to]."""
        params = _build_params(
            campaignIds=_id_filter(campaign_ids), dateFrom=date_from, dateTo=date_to
        )
        return await self.client.fetch_all_pages(
            "ads", params, max_concurrent=self.concurrency, on_progress=on_progress
        )

    # ── Daily Insights ──

    async def fetch_insights(
        self,
        campaign_ids: Optional[Iterable[str]] = None,
        ad_ids: Optional[Iterable[str]] = None,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
        on_progress: ProgressCallback | None = None,
    ) -> List[Dict[str, Any]]:
        """Fetch daily insight rows at the higher insights concurrency."""
        params = _build_params(
            campaignIds=_id_filter(campaign_ids),
            adIds=_id_filter(ad_ids),
            dateFrom=date_from,
            dateTo=date_to,
        )
        data = await self.client.fetch_all_pages(
            "insights",
            params,
            max_concurrent=self.insights_concurrency,
            on_progress=on_progress,
        )
        logger.info(f"Fetched {len(data)} insight records")
        return data
