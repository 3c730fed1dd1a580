"""History Engine - linear, bounded snapshot history for undo/redo."""

import time

from pydantic import BaseModel, ConfigDict, Field

from core import get_logger
from models import TreeState
from monitoring import metrics_collector
from .store import NodeStore

logger = get_logger(__name__)

DEFAULT_HISTORY_LIMIT = 100


class HistorySnapshot(BaseModel):
    """Immutable copy of the whole store after one logical edit."""

    model_config = ConfigDict(frozen=True)

    tree_state: TreeState
    timestamp: float = Field(default_factory=time.time)
    label: str


class HistoryEngine:
    """
    Snapshot list plus cursor.

    ``checkpoint`` discards any redo branch, appends and moves the cursor to
    the tail; once the list exceeds ``limit`` the oldest snapshots are evicted.
    ``undo``/``redo`` only move the cursor and hand back a copy of the target
    state; the caller adopts it into the store.
    """

    def __init__(self, store: NodeStore, limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        if limit <= 0:
            raise ValueError("limit must be positive")
        self.store = store
        self.limit = limit
        self._snapshots: list[HistorySnapshot] = []
        self._cursor = -1

    def checkpoint(self, label: str) -> HistorySnapshot:
        """Record the store's current state as one undo step."""
        snapshot = HistorySnapshot(tree_state=self.store.snapshot(), label=label)

        del self._snapshots[self._cursor + 1:]
        self._snapshots.append(snapshot)

        evicted = len(self._snapshots) - self.limit
        if evicted > 0:
            del self._snapshots[:evicted]
        self._cursor = len(self._snapshots) - 1

        metrics_collector.record_checkpoint()
        logger.debug("checkpoint", label=label, size=len(self._snapshots), evicted=max(evicted, 0))
        return snapshot

    def undo(self) -> TreeState | None:
        """Step back one snapshot; None (no-op) at the oldest snapshot."""
        if not self.can_undo:
            return None
        undone = self._snapshots[self._cursor].label
        self._cursor -= 1
        metrics_collector.record_history_step("undo")
        logger.info("undo", label=undone, cursor=self._cursor)
        return self._snapshots[self._cursor].tree_state.model_copy(deep=True)

    def redo(self) -> TreeState | None:
        """Step forward one snapshot; None (no-op) at the newest snapshot."""
        if not self.can_redo:
            return None
        self._cursor += 1
        metrics_collector.record_history_step("redo")
        logger.info("redo", label=self._snapshots[self._cursor].label, cursor=self._cursor)
        return self._snapshots[self._cursor].tree_state.model_copy(deep=True)

    def clear(self) -> None:
        self._snapshots.clear()
        self._cursor = -1

    @property
    def can_undo(self) -> bool:
        return self._cursor > 0

    @property
    def can_redo(self) -> bool:
        return 0 <= self._cursor < len(self._snapshots) - 1

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def current(self) -> HistorySnapshot | None:
        return self._snapshots[self._cursor] if self._snapshots else None

    @property
    def snapshots(self) -> tuple[HistorySnapshot, ...]:
        return tuple(self._snapshots)

    def labels(self) -> list[str]:
        return [s.label for s in self._snapshots]

    def __len__(self) -> int:
        return len(self._snapshots)


__all__ = ["DEFAULT_HISTORY_LIMIT", "HistoryEngine", "HistorySnapshot"]
