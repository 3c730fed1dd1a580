"""Selection & View State - pure editor state with no structural invariants."""

from collections.abc import Callable, Iterable
from enum import Enum

from core import Settings, get_settings
from core.errors import NotFoundError


class DeviceType(str, Enum):
    DESKTOP = "desktop"
    TABLET = "tablet"
    MOBILE = "mobile"


class Panel(str, Enum):
    COMPONENT_LIBRARY = "componentLibrary"
    PROPERTIES = "properties"
    LAYERS = "layers"
    CODE_EDITOR = "codeEditor"


class SelectionState:
    """
    Selected and hovered node ids.

    ``contains`` answers whether an id is live; selecting anything else is a
    ``NotFoundError``. ``prune`` drops ids that stopped being live after a
    delete or undo.
    """

    def __init__(self, contains: Callable[[str], bool]) -> None:
        self._contains = contains
        self._selected: list[str] = []
        self.hovered_id: str | None = None

    @property
    def selected_ids(self) -> list[str]:
        return list(self._selected)

    def select(self, node_id: str, multi: bool = False) -> None:
        """Select a node; ``multi`` adds to the current selection."""
        self._require(node_id)
        if not multi:
            self._selected = [node_id]
        elif node_id not in self._selected:
            self._selected.append(node_id)

    def deselect(self, node_id: str) -> None:
        if node_id in self._selected:
            self._selected.remove(node_id)

    def deselect_all(self) -> None:
        self._selected = []

    def select_multiple(self, node_ids: Iterable[str]) -> None:
        """Replace the selection (order kept, duplicates dropped)."""
        ids = list(dict.fromkeys(node_ids))
        for node_id in ids:
            self._require(node_id)
        self._selected = ids

    def set_hovered(self, node_id: str | None) -> None:
        if node_id is not None:
            self._require(node_id)
        self.hovered_id = node_id

    def is_selected(self, node_id: str) -> bool:
        return node_id in self._selected

    def prune(self, live_ids: Iterable[str] | None = None) -> None:
        """Forget ids that are no longer live."""
        live = set(live_ids) if live_ids is not None else None
        is_live = (lambda i: i in live) if live is not None else self._contains
        self._selected = [i for i in self._selected if is_live(i)]
        if self.hovered_id is not None and not is_live(self.hovered_id):
            self.hovered_id = None

    def _require(self, node_id: str) -> None:
        if not self._contains(node_id):
            raise NotFoundError(f"Cannot select missing node {node_id}", node_id=node_id)


class ViewState:
    """Canvas transform, panel visibility and preview settings."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self.zoom = self.settings.zoom_default
        self.pan: tuple[float, float] = (0.0, 0.0)
        self.panels: dict[Panel, bool] = {
            Panel.COMPONENT_LIBRARY: True,
            Panel.PROPERTIES: True,
            Panel.LAYERS: True,
            Panel.CODE_EDITOR: False,
        }
        self.preview_mode = False
        self.preview_device = DeviceType.DESKTOP

    def set_zoom(self, zoom: int) -> None:
        self.zoom = max(self.settings.zoom_min, min(self.settings.zoom_max, zoom))

    def zoom_in(self) -> None:
        self.set_zoom(self.zoom + self.settings.zoom_step)

    def zoom_out(self) -> None:
        self.set_zoom(self.zoom - self.settings.zoom_step)

    def reset_zoom(self) -> None:
        self.zoom = self.settings.zoom_default

    def set_pan(self, x: float, y: float) -> None:
        self.pan = (x, y)

    def reset_canvas(self) -> None:
        self.reset_zoom()
        self.pan = (0.0, 0.0)

    def toggle_panel(self, panel: Panel | str) -> bool:
        """Flip a panel's visibility and return the new value."""
        panel = Panel(panel)
        self.panels[panel] = not self.panels[panel]
        return self.panels[panel]

    def set_preview_mode(self, enabled: bool) -> None:
        self.preview_mode = enabled

    def set_preview_device(self, device: DeviceType | str) -> None:
        self.preview_device = DeviceType(device)


__all__ = ["DeviceType", "Panel", "SelectionState", "ViewState"]
