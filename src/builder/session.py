"""Editor Session - one project open in the builder.

A session exclusively owns the in-memory document: one node store and one
history per screen, plus the selection and view state of the editor. Sessions
never share stores; reconciling two sessions over the same project is the
persistence layer's job.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator

from codegen.naming import page_path
from core import LogContext, Settings, get_logger, get_settings
from core.errors import NotFoundError, StudioError, ValidationError
from core.id import new_project_id, new_screen_id
from models import (
    NodeSpec,
    ProjectDefinition,
    ProjectMetadata,
    ProjectSettings,
    Screen,
    ScreenMetadata,
)
from .events import ChangeEvent, ChangeType
from .history import HistoryEngine
from .registry import ComponentRegistry
from .selection import SelectionState, ViewState
from .store import DeleteMode, NodeStore

logger = get_logger(__name__)

BASELINE_LABEL = "Load project"


@dataclass
class ScreenDocument:
    """Editable state of one screen."""

    id: str
    name: str
    path: str
    metadata: ScreenMetadata
    store: NodeStore
    history: HistoryEngine

    def to_screen(self) -> Screen:
        return Screen(
            id=self.id,
            name=self.name,
            path=self.path,
            components=self.store.to_component_trees(),
            metadata=self.metadata.model_copy(),
        )


class EditorSession:
    """Builder state for one open project."""

    def __init__(
        self,
        metadata: ProjectMetadata,
        project_settings: ProjectSettings | None = None,
        registry: ComponentRegistry | None = None,
        settings: Settings | None = None,
        global_state: dict[str, Any] | None = None,
    ) -> None:
        self.metadata = metadata
        self.project_settings = project_settings or ProjectSettings()
        self.registry = registry or ComponentRegistry()
        self.settings = settings or get_settings()
        self.global_state = dict(global_state or {})

        self._screens: list[ScreenDocument] = []
        self._active: ScreenDocument | None = None
        self.selection = SelectionState(lambda node_id: node_id in self.store)
        self.view = ViewState(self.settings)

    # ========================================================================
    # Construction
    # ========================================================================

    @classmethod
    def new(
        cls,
        name: str,
        description: str = "",
        registry: ComponentRegistry | None = None,
        settings: Settings | None = None,
    ) -> "EditorSession":
        """Start an empty project with a single home screen."""
        session = cls(
            ProjectMetadata(id=new_project_id(), name=name, description=description),
            registry=registry,
            settings=settings,
        )
        session.add_screen("Home", "/")
        return session

    @classmethod
    def from_project(
        cls,
        project: ProjectDefinition,
        registry: ComponentRegistry | None = None,
        settings: Settings | None = None,
    ) -> "EditorSession":
        """
        Open a project definition for editing.

        Raises:
            ValidationError: A screen holds duplicate ids or unknown kinds, is
                nested too deeply, or maps to the same page as another screen
        """
        session = cls(
            project.metadata.model_copy(),
            project.settings.model_copy(deep=True),
            registry=registry,
            settings=settings,
            global_state=project.global_state,
        )
        for screen in project.screens:
            session._check_path(screen.path)
            store = NodeStore.from_component_trees(
                screen.components, session.registry, session.settings.max_tree_depth
            )
            session._attach(ScreenDocument(
                id=screen.id,
                name=screen.name,
                path=screen.path,
                metadata=screen.metadata.model_copy(),
                store=store,
                history=HistoryEngine(store, session.settings.history_limit),
            ))
        if not session._screens:
            session.add_screen("Home", "/")

        logger.info("project_opened", project_id=project.metadata.id, screens=len(session._screens))
        return session

    def to_project(self) -> ProjectDefinition:
        """Current document as a project definition."""
        return ProjectDefinition(
            metadata=self.metadata.model_copy(),
            settings=self.project_settings.model_copy(deep=True),
            screens=[doc.to_screen() for doc in self._screens],
            global_state=dict(self.global_state),
        )

    # ========================================================================
    # Screens
    # ========================================================================

    @property
    def active_screen(self) -> ScreenDocument:
        if self._active is None:
            raise NotFoundError("Project has no screens")
        return self._active

    @property
    def store(self) -> NodeStore:
        return self.active_screen.store

    @property
    def history(self) -> HistoryEngine:
        return self.active_screen.history

    @property
    def screens(self) -> list[ScreenDocument]:
        return list(self._screens)

    def add_screen(self, name: str, path: str, title: str | None = None) -> str:
        """
        Add an empty screen and make it active.

        Raises:
            ValidationError: Another screen already maps to the same page
        """
        self._check_path(path)

        store = NodeStore(self.registry, self.settings.max_tree_depth)
        doc = ScreenDocument(
            id=new_screen_id(),
            name=name,
            path=path,
            metadata=ScreenMetadata(title=title),
            store=store,
            history=HistoryEngine(store, self.settings.history_limit),
        )
        self._attach(doc)
        self.switch_screen(doc.id)
        logger.info("screen_added", screen_id=doc.id, path=path)
        return doc.id

    def remove_screen(self, screen_id: str) -> None:
        """
        Remove a screen; the first remaining screen becomes active if needed.

        Raises:
            NotFoundError: Unknown screen
            ValidationError: It is the last screen
        """
        doc = self._screen(screen_id)
        if len(self._screens) == 1:
            raise ValidationError("Cannot remove the last screen", field="screen_id")
        self._screens.remove(doc)
        if self._active is doc:
            self.switch_screen(self._screens[0].id)
        logger.info("screen_removed", screen_id=screen_id)

    def switch_screen(self, screen_id: str) -> None:
        self._active = self._screen(screen_id)
        self.selection.deselect_all()
        self.selection.set_hovered(None)

    # ========================================================================
    # Edits on the active screen
    # ========================================================================

    def add_node(
        self, spec: NodeSpec | dict[str, Any], parent_id: str | None = None, index: int | None = None
    ) -> str:
        return self.store.add_node(spec, parent_id, index)

    def update_node(self, node_id: str, patch: dict[str, Any]) -> None:
        self.store.update_node(node_id, patch)

    def delete_node(self, node_id: str, mode: DeleteMode | str = DeleteMode.CASCADE) -> list[str]:
        return self.store.delete_node(node_id, mode)

    def duplicate_node(self, node_id: str) -> str:
        return self.store.duplicate_node(node_id)

    def move_node(self, node_id: str, new_parent_id: str | None, index: int) -> None:
        self.store.move_node(node_id, new_parent_id, index)

    @contextmanager
    def edit(self, label: str) -> Iterator["EditorSession"]:
        """
        Group several edits into one undo step.

        The block belongs to the screen that is active on entry, even if the
        block switches screens. On success that screen is checkpointed under
        ``label``. If any edit in the block is rejected, that screen's store is
        rolled back to its state at entry and the error propagates.
        """
        doc = self.active_screen
        before = doc.store.snapshot()
        with LogContext(project_id=self.metadata.id, screen_id=doc.id):
            try:
                yield self
            except StudioError:
                doc.store.restore(before)
                logger.warning("edit_rolled_back", label=label)
                raise
            doc.history.checkpoint(label)

    # ========================================================================
    # History
    # ========================================================================

    def checkpoint(self, label: str) -> None:
        self.history.checkpoint(label)

    def undo(self) -> bool:
        """Undo one step on the active screen; False when there is nothing to undo."""
        state = self.history.undo()
        if state is None:
            return False
        self.store.restore(state)
        return True

    def redo(self) -> bool:
        """Redo one step on the active screen; False when there is nothing to redo."""
        state = self.history.redo()
        if state is None:
            return False
        self.store.restore(state)
        return True

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo

    # ========================================================================
    # Internals
    # ========================================================================

    def _attach(self, doc: ScreenDocument) -> None:
        doc.history.checkpoint(BASELINE_LABEL)
        doc.store.subscribe(lambda event, doc=doc: self._on_store_change(doc, event))
        self._screens.append(doc)
        if self._active is None:
            self._active = doc

    def _on_store_change(self, doc: ScreenDocument, event: ChangeEvent) -> None:
        if doc is self._active and event.type in (ChangeType.DELETED, ChangeType.RESTORED):
            self.selection.prune()

    def _screen(self, screen_id: str) -> ScreenDocument:
        for doc in self._screens:
            if doc.id == screen_id:
                return doc
        raise NotFoundError(f"Screen not found: {screen_id}")

    def _check_path(self, path: str) -> None:
        entry = page_path(path)
        for doc in self._screens:
            if page_path(doc.path) == entry:
                raise ValidationError(
                    f"Screen path {path!r} maps to {entry}, already used by {doc.path!r}",
                    field="path",
                )


__all__ = ["BASELINE_LABEL", "EditorSession", "ScreenDocument"]
