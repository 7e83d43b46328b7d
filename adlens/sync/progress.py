"""AdLens — Observable Sync Progress.

Holds the one SyncProgress snapshot of the process and pushes every change
to its subscribers, synchronously and in registration order. Every
subscriber receives its own deep copy, so it may keep or mutate what it gets.
"""

from typing import Callable, Dict, List

from adlens.core.logging import get_logger
from adlens.models.sync_models import EntityProgress, SyncProgress, SyncStatus, SYNC_COLLECTIONS

logger = get_logger("sync.progress")

ProgressSubscriber = Callable[[SyncProgress], None]


class SyncProgressTracker:
    def __init__(self) -> None:
        self._progress = SyncProgress()
        self._subscribers: Dict[int, ProgressSubscriber] = {}
        self._next_token = 0

    @property
    def status(self) -> SyncStatus:
        return self._progress.status

    def snapshot(self) -> SyncProgress:
        """Deep copy of the current state."""
        return self._progress.model_copy(deep=True)

    def subscribe(self, callback: ProgressSubscriber) -> Callable[[], None]:
        """Register a callback; returns a function that unregisters it."""
        token = self._next_token
        self._next_token += 1
        self._subscribers[token] = callback

        def unsubscribe() -> None:
            self._subscribers.pop(token, None)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def update(self, **changes) -> SyncProgress:
        """Apply changes (status=..., error=..., campaigns=EntityProgress(...)) and notify."""
        self._progress = self._progress.model_copy(update=changes)
        self._notify()
        return self.snapshot()

    def set_entity(self, collection: str, fetched: int, total: int) -> SyncProgress:
        return self.update(**{collection: EntityProgress(fetched=fetched, total=total)})

    def reset_for_run(self) -> SyncProgress:
        """Enter `syncing` with cleared error and zeroed counters."""
        zeroed = {name: EntityProgress() for name in SYNC_COLLECTIONS}
        return self.update(status=SyncStatus.SYNCING, error=None, **zeroed)

    def _notify(self) -> None:
        failed: List[int] = []
        for token, callback in list(self._subscribers.items()):
            try:
                # Own copy per subscriber; mutating it cannot leak back
                callback(self.snapshot())
            except Exception as e:
                logger.warning(f"Progress subscriber failed, unsubscribing: {e}")
                failed.append(token)
        for token in failed:
            self._subscribers.pop(token, None)
