"""AdLens — Sync Progress Models."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel


class SyncStatus(str, Enum):
    IDLE = "idle"
    SYNCING = "syncing"
    COMPLETED = "completed"
    ERROR = "error"


class EntityProgress(BaseModel):
    """Records fetched so far vs. the expected total for one collection."""

    fetched: int = 0
    total: int = 0


class SyncProgress(BaseModel):
    """Snapshot of the running (or last) sync. Never persisted."""

    campaigns: EntityProgress = EntityProgress()
    ads: EntityProgress = EntityProgress()
    creatives: EntityProgress = EntityProgress()
    insights: EntityProgress = EntityProgress()
    status: SyncStatus = SyncStatus.IDLE
    error: Optional[str] = None


SYNC_COLLECTIONS = ("campaigns", "creatives", "ads", "insights")
