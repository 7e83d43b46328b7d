"""AdLens — Performance Report Service.

Read-through cache in front of store query + aggregation engine.
"""

from adlens.analyzer.performance_engine import build_performance_report
from adlens.core.cache import TTLCache
from adlens.core.logging import get_logger
from adlens.models.report_models import PerformanceRequest, PerformanceResponse
from adlens.storage.entity_store import EntityStore

logger = get_logger("analyzer.report")

CACHE_PREFIX = "performance"


class PerformanceService:
    def __init__(self, store: EntityStore, cache: TTLCache):
        self.store = store
        self.cache = cache

    def get_performance(self, request: PerformanceRequest) -> PerformanceResponse:
        key = TTLCache.make_key(CACHE_PREFIX, request.cache_fingerprint())
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        generation = self.cache.generation
        rows = self.store.query_insight_rows(request.filters, request.grouping)
        report = build_performance_report(rows, request)
        if not self.cache.set(key, report, generation=generation):
            logger.info("Report cache was invalidated mid-query; result not cached")

        logger.info(
            f"Built {request.grouping.value} report: {report.meta.total_rows} rows "
            f"from {len(rows)} insights"
        )
        return report
