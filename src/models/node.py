"""Component node models.

``ComponentNode`` is the boundary shape: children inlined, keys ``type`` and
``props`` as persisted by the builder. ``NodeRecord`` is the flat
shape held by the node store, where ``children`` is an ordered list of ids.
"""

from typing import Any
from pydantic import BaseModel, ConfigDict, Field


class Position(BaseModel):
    """Free-form placement for nodes on an absolute canvas."""

    x: float
    y: float
    width: float | None = None
    height: float | None = None


class ComponentNode(BaseModel):
    """Component node with inlined children (persistence/generation shape)."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1, description="Unique node identifier")
    kind: str = Field(..., alias="type", description="Component kind")
    properties: dict[str, Any] = Field(default_factory=dict, alias="props")
    styles: dict[str, Any] = Field(default_factory=dict)
    children: list["ComponentNode"] = Field(default_factory=list)
    visible: bool = True
    locked: bool = False
    position: Position | None = None

    def walk(self):
        """Yield this node and its descendants in pre-order."""
        for node, _ in self.walk_with_depth():
            yield node

    def walk_with_depth(self, depth: int = 1):
        """Yield ``(node, level)`` pairs in pre-order, this node at ``depth``."""
        stack = [(self, depth)]
        while stack:
            node, level = stack.pop()
            yield node, level
            stack.extend((child, level + 1) for child in reversed(node.children))


class NodeRecord(BaseModel):
    """Node as stored in the flat id -> node mapping."""

    id: str
    kind: str
    properties: dict[str, Any] = Field(default_factory=dict)
    styles: dict[str, Any] = Field(default_factory=dict)
    children: list[str] = Field(default_factory=list)
    visible: bool = True
    locked: bool = False
    position: Position | None = None


class NodeSpec(BaseModel):
    """Input to ``NodeStore.add_node``: everything but id and children."""

    kind: str
    properties: dict[str, Any] = Field(default_factory=dict)
    styles: dict[str, Any] = Field(default_factory=dict)
    visible: bool = True
    locked: bool = False
    position: Position | None = None


class TreeState(BaseModel):
    """Serializable snapshot of a whole node store."""

    nodes: dict[str, NodeRecord] = Field(default_factory=dict)
    root_ids: list[str] = Field(default_factory=list)


ComponentNode.model_rebuild()
