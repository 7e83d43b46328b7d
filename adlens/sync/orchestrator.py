"""AdLens — Data Sync Orchestrator.

Runs a full refresh of the local store from the upstream API:
  truncate → fetch campaigns / creatives / ads concurrently → store
  → fetch insights → store in chunks → invalidate report cache

Progress is published through a SyncProgressTracker. A failed sync leaves
the store as far as it got; the only remedy is another sync.
"""

import asyncio
from typing import Any, Callable, Dict, List, Optional

from adlens.config import settings
from adlens.connectors.upstream.endpoints import UpstreamEndpoints
from adlens.connectors.upstream.transformer import transform_records
from adlens.core.aio import gather_or_cancel, run_blocking
from adlens.core.logging import get_logger
from adlens.models.entity_models import model_for
from adlens.models.sync_models import SyncStatus
from adlens.storage.entity_store import EntityStore
from adlens.sync.progress import SyncProgressTracker

logger = get_logger("sync.orchestrator")


class SyncAlreadyRunningError(Exception):
    """Raised when a sync is requested while another one is in progress."""


class DataSyncService:
    """Owns the sync state machine: idle → syncing → completed | error."""

    def __init__(
        self,
        endpoints: UpstreamEndpoints,
        store: EntityStore,
        tracker: SyncProgressTracker,
        on_success: Optional[List[Callable[[], None]]] = None,
        insert_chunk_size: int | None = None,
    ):
        self.endpoints = endpoints
        self.store = store
        self.tracker = tracker
        self.on_success = list(on_success or [])
        self.insert_chunk_size = insert_chunk_size or settings.insight_insert_chunk_size
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self.tracker.status == SyncStatus.SYNCING

    # ── Triggering ──

    def start_sync(self) -> asyncio.Task:
        """Begin a sync in the background. Must be called from the event loop."""
        if self.is_running:
            raise SyncAlreadyRunningError("Sync already in progress")

        # Flip to `syncing` before yielding so a second caller sees it.
        self.tracker.reset_for_run()
        self._task = asyncio.create_task(self._run_logged(), name="adlens-sync")
        return self._task

    async def _run_logged(self) -> None:
        try:
            await self.run_sync(already_started=True)
        except Exception as e:
            logger.error(f"Sync failed: {e}", exc_info=True)

    async def wait(self) -> None:
        """Wait for the background sync (if any) to finish. Used by tests and shutdown."""
        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)

    # ── Phases ──

    def _progress_for(self, collection: str) -> Callable[[int, int], None]:
        def report(fetched: int, total: int) -> None:
            self.tracker.set_entity(collection, fetched, total)

        return report

    async def _store(self, collection: str, records: List[Dict[str, Any]]) -> int:
        rows = transform_records(collection, records)
        stored = await run_blocking(self.store.bulk_insert, model_for(collection), rows)
        self.tracker.set_entity(collection, len(records), len(records))
        logger.info(f"Stored {stored} {collection}", extra={"collection": collection})
        return stored

    async def _sync_structure(self) -> None:
        """Campaigns, creatives and ads fetched concurrently; ads stored after their parents."""

        async def campaigns() -> None:
            data = await self.endpoints.fetch_campaigns(self._progress_for("campaigns"))
            await self._store("campaigns", data)

        async def creatives() -> None:
            data = await self.endpoints.fetch_creatives(self._progress_for("creatives"))
            await self._store("creatives", data)

        # A failed branch cancels its siblings so nothing writes after the error
        _, _, ads = await gather_or_cancel(
            campaigns(),
            creatives(),
            self.endpoints.fetch_ads(on_progress=self._progress_for("ads")),
        )
        await self._store("ads", ads)

    async def _sync_insights(self) -> None:
        records = await self.endpoints.fetch_insights(
            on_progress=self._progress_for("insights")
        )
        rows = transform_records("insights", records)
        model = model_for("insights")
        size = self.insert_chunk_size
        chunk_count = max(1, -(-len(rows) // size))

        for index in range(chunk_count):
            chunk = rows[index * size : (index + 1) * size]
            await run_blocking(self.store.bulk_insert, model, chunk)
            if index % 3 == 0 or index == chunk_count - 1:
                self.tracker.set_entity("insights", len(records), len(records))

        logger.info(f"Stored {len(rows)} insights in {chunk_count} chunk(s)")

    async def run_sync(self, already_started: bool = False) -> None:
        """Run a full sync in the caller's task. Re-raises any failure."""
        if not already_started:
            if self.is_running:
                raise SyncAlreadyRunningError("Sync already in progress")
            self.tracker.reset_for_run()

        logger.info("🔄 Sync started")
        try:
            await run_blocking(self.store.truncate_all)
            await self._sync_structure()
            await self._sync_insights()

            for hook in self.on_success:
                hook()
            self.tracker.update(status=SyncStatus.COMPLETED)
            logger.info("✅ Sync completed")
        except Exception as e:
            message = str(e) or e.__class__.__name__
            self.tracker.update(status=SyncStatus.ERROR, error=message)
            raise
