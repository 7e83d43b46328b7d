"""AdLens — Data Sync Routes.

POST /api/sync           start a full sync in the background
GET  /api/sync/status    Server-Sent Events stream of SyncProgress snapshots
GET  /api/sync/progress  current snapshot as plain JSON
"""

import asyncio
from typing import AsyncIterator, Awaitable, Callable

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse

from adlens.core.logging import get_logger
from adlens.deps import get_progress_tracker, get_sync_service
from adlens.models.sync_models import SyncProgress
from adlens.sync.orchestrator import DataSyncService, SyncAlreadyRunningError
from adlens.sync.progress import SyncProgressTracker

logger = get_logger("api.sync")

router = APIRouter(prefix="/api/sync", tags=["Sync"])

KEEPALIVE_SECONDS = 15.0

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def format_sse(progress: SyncProgress) -> str:
    return f"data: {progress.model_dump_json()}\n\n"


async def progress_events(
    tracker: SyncProgressTracker,
    is_disconnected: Callable[[], Awaitable[bool]],
    keepalive_seconds: float = KEEPALIVE_SECONDS,
) -> AsyncIterator[str]:
    """Current snapshot first, then one event per update until the client leaves.

    Each stream has its own queue, so delivery order per client matches the
    order updates were produced and a slow client never blocks the sync.
    """
    queue: asyncio.Queue[SyncProgress] = asyncio.Queue()
    unsubscribe = tracker.subscribe(queue.put_nowait)
    try:
        yield format_sse(tracker.snapshot())
        while True:
            try:
                progress = await asyncio.wait_for(queue.get(), timeout=keepalive_seconds)
            except asyncio.TimeoutError:
                if await is_disconnected():
                    break
                yield ": keep-alive\n\n"
                continue
            yield format_sse(progress)
    finally:
        unsubscribe()


@router.post("")
async def trigger_sync(sync_service: DataSyncService = Depends(get_sync_service)):
    """Start a full data sync. Returns immediately; follow /api/sync/status for progress."""
    try:
        sync_service.start_sync()
    except SyncAlreadyRunningError:
        raise HTTPException(status_code=409, detail="Sync already in progress")
    logger.info("Sync triggered via API")
    return {"message": "Sync started"}


@router.get("/status")
async def sync_status_stream(
    request: Request,
    tracker: SyncProgressTracker = Depends(get_progress_tracker),
):
    """Live sync progress as text/event-stream."""
    return StreamingResponse(
        progress_events(tracker, request.is_disconnected),
        media_type="text/event-stream",
        headers=STREAM_HEADERS,
    )


@router.get("/progress", response_model=SyncProgress)
async def get_sync_progress(tracker: SyncProgressTracker = Depends(get_progress_tracker)):
    """Current sync progress snapshot."""
    return tracker.snapshot()
