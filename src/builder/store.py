"""Node Store - flat id -> node mapping with ordered child lists.

Child id lists are the single source of truth for structure. Parent links,
ancestors and the root set are derived from them on read; ``_root_ids`` is
simply the child list of the implicit document root, so a node is a root
exactly when no other node lists it as a child.
"""

import copy
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from enum import Enum
from typing import Any

import pydantic

from core import get_logger
from core.errors import CycleError, InternalInvariantError, NotFoundError, StudioError, ValidationError
from core.id import new_node_id
from core.validate import MAX_TREE_DEPTH, validate_tree_depth
from models import ComponentNode, NodeRecord, NodeSpec, Position, TreeState
from monitoring import metrics_collector
from .events import ChangeEvent, ChangeNotifier, ChangeType, Listener
from .registry import ComponentRegistry

logger = get_logger(__name__)

_UPDATABLE_FIELDS = {"properties", "props", "styles", "visible", "locked", "position"}
_IMMUTABLE_FIELDS = {"id", "kind", "type", "children"}


class DeleteMode(str, Enum):
    """What happens to the children of a deleted node."""

    CASCADE = "cascade"
    PROMOTE = "promote"


class NodeStore:
    """
    Mutable forest of component nodes.

    Every mutation validates fully before touching state, so a rejected call
    leaves the store unchanged. The store never checkpoints on its own; callers
    group edits and checkpoint through the history engine.
    """

    def __init__(self, registry: ComponentRegistry | None = None, max_depth: int = MAX_TREE_DEPTH) -> None:
        self.registry = registry or ComponentRegistry()
        self.max_depth = max_depth
        self._nodes: dict[str, NodeRecord] = {}
        self._root_ids: list[str] = []
        self._notifier = ChangeNotifier()

    # ========================================================================
    # Mutations
    # ========================================================================

    def add_node(
        self,
        spec: NodeSpec | dict[str, Any],
        parent_id: str | None = None,
        index: int | None = None,
    ) -> str:
        """
        Create a node and attach it under ``parent_id`` (or as a root).

        Args:
            spec: Kind, properties, styles and flags of the new node
            parent_id: Parent to append to; None makes the node a root
            index: Position among the siblings; None appends

        Returns:
            The newly minted node id

        Raises:
            ValidationError: Unknown kind, bad property/style, a parent
                that does not accept children, or a parent already at the
                maximum depth
            NotFoundError: ``parent_id`` is not in the store
        """
        with self._track("add"):
            spec = _coerce(NodeSpec, spec)
            self.registry.require(spec.kind)

            properties = self.registry.default_props(spec.kind)
            properties.update(copy.deepcopy(spec.properties))
            self.registry.validate_properties(spec.kind, properties)
            self.registry.validate_styles(spec.styles)

            if parent_id is not None:
                self._check_parent(parent_id)
                validate_tree_depth(self.depth_of(parent_id) + 1, self.max_depth, parent_id)

            node_id = self._mint_id(spec.kind)
            record = NodeRecord(
                id=node_id,
                kind=spec.kind,
                properties=properties,
                styles={k: v for k, v in copy.deepcopy(spec.styles).items() if v is not None},
                visible=spec.visible,
                locked=spec.locked,
                position=spec.position.model_copy() if spec.position else None,
            )
            self._nodes[node_id] = record
            _insert(self._siblings(parent_id), node_id, index)

        logger.info("node_added", node_id=node_id, kind=spec.kind, parent_id=parent_id)
        self._notifier.emit(ChangeEvent(ChangeType.ADDED, (node_id,)))
        return node_id

    def update_node(self, node_id: str, patch: dict[str, Any]) -> None:
        """
        Merge a partial update into a node.

        ``properties`` and ``styles`` are merged key by key (a ``None`` value
        removes the key); ``visible``, ``locked`` and ``position`` are replaced.

        Raises:
            NotFoundError: ``node_id`` is not in the store
            ValidationError: Patch touches id/kind/children, names an unknown
                field, or violates the property/style schema
        """
        with self._track("update"):
            record = self._require(node_id)

            immutable = _IMMUTABLE_FIELDS & patch.keys()
            if immutable:
                raise ValidationError(
                    f"Cannot update {sorted(immutable)} of node {node_id}", node_id=node_id
                )
            unknown = patch.keys() - _UPDATABLE_FIELDS
            if unknown:
                raise ValidationError(f"Unknown node fields: {sorted(unknown)}", node_id=node_id)
            if {"properties", "props"} <= patch.keys():
                raise ValidationError(
                    "Patch names both properties and props", node_id=node_id, field="properties"
                )

            changes: dict[str, Any] = {}

            props_patch = patch.get("properties", patch.get("props"))
            if props_patch is not None:
                if not isinstance(props_patch, dict):
                    raise ValidationError("properties must be a mapping", node_id=node_id, field="properties")
                self.registry.validate_properties(record.kind, props_patch, partial=True)
                changes["properties"] = _merge(record.properties, props_patch)

            styles_patch = patch.get("styles")
            if styles_patch is not None:
                if not isinstance(styles_patch, dict):
                    raise ValidationError("styles must be a mapping", node_id=node_id, field="styles")
                self.registry.validate_styles(styles_patch)
                changes["styles"] = _merge(record.styles, styles_patch)

            for flag in ("visible", "locked"):
                if flag in patch:
                    if not isinstance(patch[flag], bool):
                        raise ValidationError(f"{flag} must be a boolean", node_id=node_id, field=flag)
                    changes[flag] = patch[flag]

            if "position" in patch:
                position = patch["position"]
                changes["position"] = None if position is None else _coerce(Position, position)

            self._nodes[node_id] = record.model_copy(update=changes)

        logger.debug("node_updated", node_id=node_id, fields=sorted(changes))
        self._notifier.emit(ChangeEvent(ChangeType.UPDATED, (node_id,)))

    def delete_node(self, node_id: str, mode: DeleteMode | str = DeleteMode.CASCADE) -> list[str]:
        """
        Delete a node.

        ``CASCADE`` removes the whole subtree; ``PROMOTE`` removes only the
        node and splices its children, in order, into its former parent at the
        node's position. Deleting an absent id is a no-op.

        Returns:
            Ids removed from the store (empty when nothing was deleted)
        """
        with self._track("delete"):
            try:
                mode = DeleteMode(mode)
            except ValueError as e:
                raise ValidationError(f"Unknown delete mode: {mode!r}", field="mode") from e

            if node_id not in self._nodes:
                return []

            siblings = self._siblings(self.parent_of(node_id))
            position = siblings.index(node_id)
            record = self._nodes[node_id]

            if mode is DeleteMode.CASCADE:
                removed = [n.id for n in self._walk(node_id)]
                del siblings[position]
            else:
                removed = [node_id]
                siblings[position:position + 1] = record.children

            for rid in removed:
                del self._nodes[rid]

        logger.info("node_deleted", node_id=node_id, mode=mode.value, removed=len(removed))
        self._notifier.emit(ChangeEvent(ChangeType.DELETED, tuple(removed)))
        return removed

    def duplicate_node(self, node_id: str) -> str:
        """
        Deep-clone a node and its subtree with fresh ids.

        The clone is inserted as the next sibling of the original.

        Returns:
            Id of the cloned subtree's root

        Raises:
            NotFoundError: ``node_id`` is not in the store
        """
        with self._track("duplicate"):
            self._require(node_id)
            siblings = self._siblings(self.parent_of(node_id))

            originals = list(self._walk(node_id))
            id_map: dict[str, str] = {}
            for original in originals:
                id_map[original.id] = self._mint_id(original.kind, reserved=id_map.values())

            for original in originals:
                clone = original.model_copy(deep=True)
                clone.id = id_map[original.id]
                clone.children = [id_map[c] for c in original.children]
                self._nodes[clone.id] = clone

            new_id = id_map[node_id]
            siblings.insert(siblings.index(node_id) + 1, new_id)

        logger.info("node_duplicated", node_id=node_id, new_id=new_id, count=len(id_map))
        self._notifier.emit(ChangeEvent(ChangeType.DUPLICATED, tuple(id_map.values())))
        return new_id

    def move_node(self, node_id: str, new_parent_id: str | None, index: int) -> None:
        """
        Detach a node and insert it at ``index`` under ``new_parent_id``.

        ``new_parent_id=None`` makes the node a root. The index is taken in the
        sibling list after detaching and is clamped to its bounds.

        Raises:
            NotFoundError: Node or new parent is not in the store
            CycleError: New parent is the node itself or one of its descendants
            ValidationError: New parent does not accept children, or the moved
                subtree would end up deeper than ``max_depth``
        """
        with self._track("move"):
            self._require(node_id)
            base = 0
            if new_parent_id is not None:
                self._require(new_parent_id)
                if new_parent_id == node_id or node_id in self.ancestors_of(new_parent_id):
                    raise CycleError(
                        f"Cannot move {node_id} under its own descendant {new_parent_id}",
                        node_id=node_id,
                    )
                self._check_parent(new_parent_id)
                base = self.depth_of(new_parent_id)
            height = max(level for _, level in self._walk_with_depth(node_id))
            validate_tree_depth(base + height, self.max_depth, node_id)

            self._siblings(self.parent_of(node_id)).remove(node_id)
            _insert(self._siblings(new_parent_id), node_id, index)

        logger.info("node_moved", node_id=node_id, parent_id=new_parent_id, index=index)
        self._notifier.emit(ChangeEvent(ChangeType.MOVED, (node_id,)))

    # ========================================================================
    # Queries
    # ========================================================================

    def get_node(self, node_id: str) -> NodeRecord | None:
        """Copy of a node, or None if absent."""
        record = self._nodes.get(node_id)
        return record.model_copy(deep=True) if record else None

    def get_roots(self) -> list[NodeRecord]:
        """Nodes that no other node lists as a child, in document order."""
        return [self._nodes[rid].model_copy(deep=True) for rid in self._root_ids]

    @property
    def root_ids(self) -> list[str]:
        return list(self._root_ids)

    def get_subtree(self, node_id: str) -> list[NodeRecord]:
        """Pre-order traversal of the subtree rooted at ``node_id``."""
        self._require(node_id)
        return [n.model_copy(deep=True) for n in self._walk(node_id)]

    def children_of(self, node_id: str) -> list[NodeRecord]:
        record = self._require(node_id)
        return [self._nodes[c].model_copy(deep=True) for c in record.children]

    def parent_of(self, node_id: str) -> str | None:
        """Derived parent id (None for roots)."""
        self._require(node_id)
        for candidate in self._nodes.values():
            if node_id in candidate.children:
                return candidate.id
        return None

    def ancestors_of(self, node_id: str) -> list[str]:
        """Ancestor ids, nearest first."""
        self._require(node_id)
        parents = self._parent_map()
        ancestors: list[str] = []
        current = parents.get(node_id)
        while current is not None:
            ancestors.append(current)
            current = parents.get(current)
        return ancestors

    def depth_of(self, node_id: str) -> int:
        """Component level of a node; roots are level 1."""
        return len(self.ancestors_of(node_id)) + 1

    def node_ids(self) -> list[str]:
        return list(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def check_integrity(self) -> None:
        """
        Verify the forest invariants.

        Every listed child exists, every node has at most one parent, the root
        list matches the derived root set, and every node is reachable from a
        root (which rules out cycles).

        Raises:
            InternalInvariantError: On the first violation found
        """
        _check_state(self._nodes, self._root_ids)

    # ========================================================================
    # Snapshots and conversion
    # ========================================================================

    def snapshot(self) -> TreeState:
        """Deep copy of the whole store."""
        return TreeState(
            nodes={nid: n.model_copy(deep=True) for nid, n in self._nodes.items()},
            root_ids=list(self._root_ids),
        )

    def restore(self, state: TreeState) -> None:
        """
        Adopt a snapshot wholesale (used by undo/redo).

        Raises:
            InternalInvariantError: The snapshot is not a valid forest
        """
        _check_state(state.nodes, state.root_ids)
        self._nodes = {nid: n.model_copy(deep=True) for nid, n in state.nodes.items()}
        self._root_ids = list(state.root_ids)
        logger.debug("store_restored", nodes=len(self._nodes))
        self._notifier.emit(ChangeEvent(ChangeType.RESTORED, tuple(self._nodes)))

    def to_component_trees(self) -> list[ComponentNode]:
        """Roots as nested ``ComponentNode`` trees (persistence/generation shape)."""
        return [self._to_component(rid) for rid in self._root_ids]

    @classmethod
    def from_component_trees(
        cls,
        trees: list[ComponentNode],
        registry: ComponentRegistry | None = None,
        max_depth: int = MAX_TREE_DEPTH,
    ) -> "NodeStore":
        """
        Build a store from nested trees, keeping their ids.

        Raises:
            ValidationError: Duplicate id, unknown kind, children under a
                kind that does not accept them, a tree deeper than
                ``max_depth`` or an over-nested property value
        """
        store = cls(registry, max_depth)
        for tree in trees:
            store._load(tree)
            store._root_ids.append(tree.id)
        logger.info("store_loaded", nodes=len(store), roots=len(store._root_ids))
        return store

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns the unsubscribe function."""
        return self._notifier.subscribe(listener)

    # ========================================================================
    # Internals
    # ========================================================================

    def _require(self, node_id: str) -> NodeRecord:
        record = self._nodes.get(node_id)
        if record is None:
            raise NotFoundError(f"Node not found: {node_id}", node_id=node_id)
        return record

    def _check_parent(self, parent_id: str) -> None:
        parent = self._require(parent_id)
        if not self.registry.accepts_children(parent.kind):
            raise ValidationError(
                f"{parent.kind} does not accept children", node_id=parent_id, field="parent_id"
            )

    def _siblings(self, parent_id: str | None) -> list[str]:
        return self._root_ids if parent_id is None else self._nodes[parent_id].children

    def _parent_map(self) -> dict[str, str]:
        return {child: record.id for record in self._nodes.values() for child in record.children}

    def _walk(self, node_id: str) -> Iterator[NodeRecord]:
        for record, _ in self._walk_with_depth(node_id):
            yield record

    def _walk_with_depth(self, node_id: str) -> Iterator[tuple[NodeRecord, int]]:
        stack = [(node_id, 1)]
        while stack:
            current, level = stack.pop()
            record = self._nodes[current]
            yield record, level
            stack.extend((child, level + 1) for child in reversed(record.children))

    def _mint_id(self, kind: str, reserved: Any = ()) -> str:
        reserved = set(reserved)
        while True:
            node_id = new_node_id(kind)
            if node_id not in self._nodes and node_id not in reserved:
                return node_id

    def _to_component(self, root_id: str) -> ComponentNode:
        built: dict[str, ComponentNode] = {}
        # Reversed pre-order visits every child before its parent.
        for record in reversed(list(self._walk(root_id))):
            built[record.id] = ComponentNode(
                id=record.id,
                kind=record.kind,
                properties=copy.deepcopy(record.properties),
                styles=copy.deepcopy(record.styles),
                children=[built.pop(c) for c in record.children],
                visible=record.visible,
                locked=record.locked,
                position=record.position.model_copy() if record.position else None,
            )
        return built[root_id]

    def _load(self, tree: ComponentNode) -> None:
        for node, level in tree.walk_with_depth():
            if node.id in self._nodes:
                raise ValidationError(f"Duplicate node id: {node.id}", node_id=node.id)
            self.registry.require(node.kind)
            if node.children and not self.registry.accepts_children(node.kind):
                raise ValidationError(f"{node.kind} does not accept children", node_id=node.id)
            validate_tree_depth(level, self.max_depth, node.id)
            self.registry.validate_nesting(node.kind, node.properties)

            self._nodes[node.id] = NodeRecord(
                id=node.id,
                kind=node.kind,
                properties=copy.deepcopy(node.properties),
                styles=copy.deepcopy(node.styles),
                children=[child.id for child in node.children],
                visible=node.visible,
                locked=node.locked,
                position=node.position.model_copy() if node.position else None,
            )

    @contextmanager
    def _track(self, operation: str):
        try:
            yield
        except StudioError as e:
            metrics_collector.record_mutation(operation, "rejected")
            logger.warning("mutation_rejected", operation=operation, code=e.code, error=e.message)
            raise
        metrics_collector.record_mutation(operation, "ok")


# ============================================================================
# Helpers
# ============================================================================

def _coerce(model: type[pydantic.BaseModel], data: Any) -> Any:
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or None
        raise ValidationError(f"Invalid {model.__name__}: {first['msg']}", field=field) from e


def _insert(siblings: list[str], node_id: str, index: int | None) -> None:
    if index is None:
        siblings.append(node_id)
    else:
        siblings.insert(max(0, min(index, len(siblings))), node_id)


def _merge(current: dict[str, Any], patch: dict[str, Any]) -> dict[str, Any]:
    merged = copy.deepcopy(current)
    for key, value in patch.items():
        if value is None:
            merged.pop(key, None)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _check_state(nodes: dict[str, NodeRecord], root_ids: list[str]) -> None:
    seen: dict[str, str] = {}

    def claim(child: str, owner: str) -> None:
        if child not in nodes:
            raise InternalInvariantError(f"Orphaned child reference {child} in {owner}", node_id=child)
        if child in seen:
            raise InternalInvariantError(
                f"Node {child} listed under both {seen[child]} and {owner}", node_id=child
            )
        seen[child] = owner

    for rid in root_ids:
        claim(rid, "<root>")
    for record in nodes.values():
        for child in record.children:
            claim(child, record.id)

    unlisted = nodes.keys() - seen.keys()
    if unlisted:
        raise InternalInvariantError(f"Nodes missing from the tree: {sorted(unlisted)}")

    reachable: set[str] = set()
    stack = list(root_ids)
    while stack:
        current = stack.pop()
        reachable.add(current)
        stack.extend(nodes[current].children)
    if len(reachable) != len(nodes):
        raise InternalInvariantError(f"Cycle among nodes: {sorted(nodes.keys() - reachable)}")


__all__ = ["DeleteMode", "NodeStore"]
