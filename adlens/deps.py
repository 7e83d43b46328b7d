"""AdLens — FastAPI Dependencies.

Services are built once in main.create_app() and hung off app.state;
routes reach them through these providers.
"""

from fastapi import Request

from adlens.analyzer.report_service import PerformanceService
from adlens.storage.entity_store import EntityStore
from adlens.sync.orchestrator import DataSyncService
from adlens.sync.progress import SyncProgressTracker


def get_store(request: Request) -> EntityStore:
    return request.app.state.store


def get_performance_service(request: Request) -> PerformanceService:
    return request.app.state.performance_service


def get_sync_service(request: Request) -> DataSyncService:
    return request.app.state.sync_service


def get_progress_tracker(request: Request) -> SyncProgressTracker:
    return request.app.state.progress_tracker
