"""Change notifications for the node store."""

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from core import get_logger

logger = get_logger(__name__)


class ChangeType(str, Enum):
    ADDED = "added"
    UPDATED = "updated"
    DELETED = "deleted"
    DUPLICATED = "duplicated"
    MOVED = "moved"
    RESTORED = "restored"


@dataclass(frozen=True)
class ChangeEvent:
    """One completed store mutation."""

    type: ChangeType
    node_ids: tuple[str, ...] = field(default_factory=tuple)


Listener = Callable[[ChangeEvent], None]


class ChangeNotifier:
    """Explicit observer list; listeners run synchronously after each mutation."""

    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener and return a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def emit(self, event: ChangeEvent) -> None:
        logger.debug("store_changed", change=event.type.value, node_ids=list(event.node_ids))
        for listener in list(self._listeners):
            listener(event)

    def __len__(self) -> int:
        return len(self._listeners)
