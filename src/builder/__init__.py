"""
Builder Core
Component tree, undo history and editor state for the visual builder
"""

from .events import ChangeEvent, ChangeNotifier, ChangeType
from .registry import (
    ComponentCategory,
    ComponentDefinition,
    ComponentKind,
    ComponentRegistry,
    PropSchema,
    STYLE_KEYS,
)
from .store import DeleteMode, NodeStore
from .history import DEFAULT_HISTORY_LIMIT, HistoryEngine, HistorySnapshot
from .selection import DeviceType, Panel, SelectionState, ViewState
from .session import EditorSession, ScreenDocument

__all__ = [
    "ChangeEvent",
    "ChangeNotifier",
    "ChangeType",
    "ComponentCategory",
    "ComponentDefinition",
    "ComponentKind",
    "ComponentRegistry",
    "PropSchema",
    "STYLE_KEYS",
    "DeleteMode",
    "NodeStore",
    "DEFAULT_HISTORY_LIMIT",
    "HistoryEngine",
    "HistorySnapshot",
    "DeviceType",
    "Panel",
    "SelectionState",
    "ViewState",
    "EditorSession",
    "ScreenDocument",
]
