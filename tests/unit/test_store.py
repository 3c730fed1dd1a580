"""Node store tests."""

import pytest

from builder import ChangeType, DeleteMode, NodeStore
from core.errors import CycleError, InternalInvariantError, NotFoundError, ValidationError
from models import ComponentNode, NodeRecord, TreeState


def _container(store, parent_id=None, **props):
    return store.add_node({"kind": "Container", "properties": props}, parent_id)


def _button(store, parent_id=None, text="Button"):
    return store.add_node({"kind": "Button", "properties": {"text": text}}, parent_id)


# ============================================================================
# add_node
# ============================================================================

@pytest.mark.unit
def test_add_root_node(store):
    """Adding without a parent creates a root with default props."""
    node_id = store.add_node({"kind": "Button"})

    node = store.get_node(node_id)
    assert node.kind == "Button"
    assert node.properties == {"text": "Button", "variant": "default", "size": "default"}
    assert node.visible is True
    assert node.locked is False
    assert store.root_ids == [node_id]
    assert node_id.startswith("button_")


@pytest.mark.unit
def test_add_child_appends_in_order(store):
    """Children are appended in insertion order."""
    parent = _container(store)
    first = _button(store, parent, "One")
    second = _button(store, parent, "Two")

    assert [c.id for c in store.children_of(parent)] == [first, second]
    assert store.parent_of(first) == parent
    assert store.root_ids == [parent]


@pytest.mark.unit
def test_add_at_index(store):
    """An explicit index inserts among the siblings."""
    parent = _container(store)
    first = _button(store, parent)
    inserted = store.add_node({"kind": "Divider"}, parent, index=0)

    assert store.get_node(parent).children == [inserted, first]


@pytest.mark.unit
def test_add_unknown_kind_rejected(store):
    """Unknown kinds are a validation error and leave the store empty."""
    with pytest.raises(ValidationError) as exc_info:
        store.add_node({"kind": "Carousel"})

    assert exc_info.value.field == "kind"
    assert len(store) == 0


@pytest.mark.unit
def test_add_missing_parent(store):
    """A missing parent is NotFound and nothing is inserted."""
    with pytest.raises(NotFoundError):
        _button(store, "container_missing")
    assert len(store) == 0


@pytest.mark.unit
def test_add_under_leaf_rejected(store):
    """Leaf kinds do not accept children."""
    leaf = _button(store)
    with pytest.raises(ValidationError):
        _button(store, leaf)
    assert store.node_ids() == [leaf]


@pytest.mark.unit
def test_add_invalid_property_rejected(store):
    """Property values are checked against the kind's schema."""
    with pytest.raises(ValidationError):
        store.add_node({"kind": "Grid", "properties": {"columns": 40}})
    with pytest.raises(ValidationError):
        store.add_node({"kind": "Button", "properties": {"variant": "huge"}})
    with pytest.raises(ValidationError):
        store.add_node({"kind": "Button", "properties": {"text": ""}})
    assert len(store) == 0


@pytest.mark.unit
def test_add_invalid_style_rejected(store):
    """Unknown style keys and non-scalar values are rejected."""
    with pytest.raises(ValidationError):
        store.add_node({"kind": "Button", "styles": {"zIndex": 3}})
    with pytest.raises(ValidationError):
        store.add_node({"kind": "Button", "styles": {"color": ["red"]}})
    assert len(store) == 0


@pytest.mark.unit
def test_add_malformed_spec_rejected(store):
    """A spec that is not a NodeSpec shape is a validation error."""
    with pytest.raises(ValidationError):
        store.add_node({"properties": {}})


# ============================================================================
# update_node
# ============================================================================

@pytest.mark.unit
def test_update_merges_properties_and_styles(store):
    """Partial updates merge key-wise instead of replacing."""
    node_id = store.add_node({"kind": "Button", "styles": {"color": "red", "padding": "4px"}})

    store.update_node(node_id, {"properties": {"text": "Save"}, "styles": {"color": "blue"}})

    node = store.get_node(node_id)
    assert node.properties == {"text": "Save", "variant": "default", "size": "default"}
    assert node.styles == {"color": "blue", "padding": "4px"}


@pytest.mark.unit
def test_update_none_removes_key(store):
    """A None value in a patch removes that key."""
    node_id = store.add_node({"kind": "Button", "styles": {"color": "red", "padding": "4px"}})

    store.update_node(node_id, {"styles": {"padding": None}})

    assert store.get_node(node_id).styles == {"color": "red"}


@pytest.mark.unit
def test_update_flags_and_position(store):
    """Flags and position are replaced wholesale."""
    node_id = _button(store)

    store.update_node(node_id, {"visible": False, "locked": True, "position": {"x": 10, "y": 20}})

    node = store.get_node(node_id)
    assert node.visible is False
    assert node.locked is True
    assert node.position.x == 10
    assert node.position.width is None


@pytest.mark.unit
def test_update_missing_node(store):
    """Updating an absent id is NotFound."""
    with pytest.raises(NotFoundError):
        store.update_node("button_missing", {"properties": {"text": "x"}})


@pytest.mark.unit
@pytest.mark.parametrize("patch", [
    {"id": "other"},
    {"kind": "Text"},
    {"children": []},
    {"colour": "red"},
    {"visible": "yes"},
    {"properties": "text"},
])
def test_update_rejects_bad_patch(store, patch):
    """Immutable, unknown or mistyped fields are rejected without change."""
    node_id = _button(store)
    before = store.snapshot()

    with pytest.raises(ValidationError):
        store.update_node(node_id, patch)

    assert store.snapshot() == before


@pytest.mark.unit
def test_update_is_all_or_nothing(store):
    """A bad style in the same patch leaves the valid property change unapplied."""
    node_id = _button(store, text="Before")

    with pytest.raises(ValidationError):
        store.update_node(node_id, {"properties": {"text": "After"}, "styles": {"bogus": 1}})

    assert store.get_node(node_id).properties["text"] == "Before"


@pytest.mark.unit
def test_get_node_returns_copy(store):
    """Mutating a returned node does not touch the store."""
    node_id = _button(store, text="Original")
    node = store.get_node(node_id)
    node.properties["text"] = "Changed"

    assert store.get_node(node_id).properties["text"] == "Original"


# ============================================================================
# delete_node
# ============================================================================

@pytest.mark.unit
def test_delete_cascade(store):
    """Cascade removes the whole subtree and unlinks it from the parent."""
    outer = _container(store)
    inner = _container(store, outer)
    leaf = _button(store, inner)
    sibling = _button(store, outer)

    removed = store.delete_node(inner)

    assert removed == [inner, leaf]
    assert inner not in store
    assert leaf not in store
    assert store.get_node(outer).children == [sibling]
    store.check_integrity()


@pytest.mark.unit
def test_delete_promote_keeps_child_order(store):
    """Promote splices the children into the former parent at the node's position."""
    root = _container(store)
    before = _button(store, root, "before")
    middle = _container(store, root)
    first = _button(store, middle, "first")
    second = _button(store, middle, "second")
    after = _button(store, root, "after")

    removed = store.delete_node(middle, DeleteMode.PROMOTE)

    assert removed == [middle]
    assert store.get_node(root).children == [before, first, second, after]
    assert middle not in store
    for record in store.snapshot().nodes.values():
        assert middle not in record.children
    store.check_integrity()


@pytest.mark.unit
def test_delete_promote_root(store):
    """Promoting a root's children makes them roots in its place."""
    first_root = _container(store)
    a = _button(store, first_root, "a")
    b = _button(store, first_root, "b")
    other = _button(store)

    store.delete_node(first_root, "promote")

    assert store.root_ids == [a, b, other]


@pytest.mark.unit
def test_delete_absent_is_noop(store):
    """Deleting an absent id is an idempotent no-op."""
    node_id = _button(store)
    assert store.delete_node(node_id) == [node_id]
    assert store.delete_node(node_id) == []
    assert len(store) == 0


@pytest.mark.unit
def test_delete_unknown_mode(store):
    """An unknown delete mode is a validation error."""
    node_id = _button(store)
    with pytest.raises(ValidationError):
        store.delete_node(node_id, "orphan")
    assert node_id in store


# ============================================================================
# duplicate_node
# ============================================================================

@pytest.mark.unit
def test_duplicate_deep_clone(store):
    """Duplicate clones the subtree with fresh ids after the original."""
    root = _container(store)
    card = store.add_node({"kind": "Card", "properties": {"title": "Pricing"}, "styles": {"padding": "8px"}}, root)
    child = _button(store, card, "Buy")
    tail = _button(store, root, "tail")
    existing = set(store.node_ids())

    clone = store.duplicate_node(card)

    assert clone not in existing
    assert store.get_node(root).children == [card, clone, tail]

    original = store.get_node(card)
    copy = store.get_node(clone)
    assert copy.kind == original.kind
    assert copy.properties == original.properties
    assert copy.styles == original.styles

    clone_children = store.children_of(clone)
    assert len(clone_children) == 1
    assert clone_children[0].id != child
    assert clone_children[0].id not in existing
    assert clone_children[0].properties["text"] == "Buy"
    store.check_integrity()


@pytest.mark.unit
def test_duplicate_root(store):
    """Duplicating a root inserts a new root right after it."""
    a = _button(store, text="a")
    b = _button(store, text="b")

    clone = store.duplicate_node(a)

    assert store.root_ids == [a, clone, b]


@pytest.mark.unit
def test_duplicate_missing(store):
    with pytest.raises(NotFoundError):
        store.duplicate_node("card_missing")


# ============================================================================
# move_node
# ============================================================================

@pytest.mark.unit
def test_move_between_parents(store):
    """Move detaches from the old parent and inserts at the index."""
    left = _container(store)
    right = _container(store)
    moving = _button(store, left)
    existing = _button(store, right)

    store.move_node(moving, right, 0)

    assert store.get_node(left).children == []
    assert store.get_node(right).children == [moving, existing]
    assert store.parent_of(moving) == right


@pytest.mark.unit
def test_move_to_root_and_clamp(store):
    """Null parent makes a root; out-of-range indexes are clamped."""
    parent = _container(store)
    child = _button(store, parent)

    store.move_node(child, None, 99)

    assert store.root_ids == [parent, child]
    assert store.parent_of(child) is None


@pytest.mark.unit
def test_move_reorders_siblings(store):
    """Index is taken after detaching the node."""
    parent = _container(store)
    a = _button(store, parent, "a")
    b = _button(store, parent, "b")
    c = _button(store, parent, "c")

    store.move_node(a, parent, 2)

    assert store.get_node(parent).children == [b, c, a]


@pytest.mark.unit
def test_move_into_descendant_rejected(store):
    """Moving a node under its own descendant is a CycleError and changes nothing."""
    a = _container(store)
    b = _container(store, a)
    c = _container(store, b)
    before = store.snapshot()

    with pytest.raises(CycleError):
        store.move_node(a, c, 0)
    with pytest.raises(CycleError):
        store.move_node(a, a, 0)

    assert store.snapshot() == before


@pytest.mark.unit
def test_move_under_leaf_rejected(store):
    leaf = _button(store)
    other = _button(store)
    with pytest.raises(ValidationError):
        store.move_node(other, leaf, 0)


@pytest.mark.unit
def test_move_missing(store):
    parent = _container(store)
    with pytest.raises(NotFoundError):
        store.move_node("button_missing", parent, 0)
    with pytest.raises(NotFoundError):
        store.move_node(parent, "container_missing", 0)


# ============================================================================
# Queries
# ============================================================================

@pytest.mark.unit
def test_get_subtree_preorder(store):
    """Subtree is returned parent before children, in child order."""
    root = _container(store)
    a = _container(store, root)
    a1 = _button(store, a)
    b = _button(store, root)

    assert [n.id for n in store.get_subtree(root)] == [root, a, a1, b]


@pytest.mark.unit
def test_get_roots(store):
    """Roots are exactly the nodes no other node lists as a child."""
    r1 = _container(store)
    _button(store, r1)
    r2 = _button(store)

    assert [n.id for n in store.get_roots()] == [r1, r2]


@pytest.mark.unit
def test_ancestors_nearest_first(store):
    a = _container(store)
    b = _container(store, a)
    c = _button(store, b)

    assert store.ancestors_of(c) == [b, a]
    assert store.ancestors_of(a) == []


# ============================================================================
# Snapshots, conversion and notifications
# ============================================================================

@pytest.mark.unit
def test_snapshot_restore(store):
    """Restore adopts a snapshot wholesale."""
    parent = _container(store)
    _button(store, parent)
    state = store.snapshot()

    store.delete_node(parent)
    assert len(store) == 0

    store.restore(state)
    assert store.snapshot() == state


@pytest.mark.unit
def test_restore_rejects_corrupt_state(store):
    """Snapshots with orphaned references or cycles are refused."""
    orphan = TreeState(
        nodes={"a": NodeRecord(id="a", kind="Container", children=["ghost"])},
        root_ids=["a"],
    )
    with pytest.raises(InternalInvariantError):
        store.restore(orphan)

    cycle = TreeState(
        nodes={
            "a": NodeRecord(id="a", kind="Container", children=["b"]),
            "b": NodeRecord(id="b", kind="Container", children=["a"]),
        },
        root_ids=[],
    )
    with pytest.raises(InternalInvariantError):
        store.restore(cycle)
    assert len(store) == 0


@pytest.mark.unit
def test_component_tree_round_trip(store, registry):
    """Nested trees keep ids, order and fields through the store."""
    trees = [
        ComponentNode.model_validate({
            "id": "container_1",
            "type": "Container",
            "props": {"padding": "8px"},
            "children": [
                {"id": "text_1", "type": "Text", "props": {"content": "hi"}},
                {"id": "button_1", "type": "Button", "visible": False},
            ],
        }),
        ComponentNode(id="divider_1", kind="Divider"),
    ]

    loaded = NodeStore.from_component_trees(trees, registry)

    assert loaded.root_ids == ["container_1", "divider_1"]
    assert loaded.parent_of("button_1") == "container_1"
    assert loaded.to_component_trees() == trees


@pytest.mark.unit
def test_from_component_trees_rejects_duplicates(registry):
    tree = ComponentNode.model_validate({
        "id": "container_1",
        "type": "Container",
        "children": [{"id": "container_1", "type": "Container"}],
    })
    with pytest.raises(ValidationError):
        NodeStore.from_component_trees([tree], registry)


@pytest.mark.unit
def test_from_component_trees_rejects_unknown_kind(registry):
    with pytest.raises(ValidationError):
        NodeStore.from_component_trees([ComponentNode(id="x", kind="Marquee")], registry)


@pytest.mark.unit
def test_listeners_notified(store):
    """Listeners see each completed mutation; unsubscribe stops delivery."""
    events = []
    unsubscribe = store.subscribe(events.append)

    parent = _container(store)
    child = _button(store, parent)
    store.update_node(child, {"properties": {"text": "x"}})
    store.delete_node(parent)

    assert [e.type for e in events] == [
        ChangeType.ADDED, ChangeType.ADDED, ChangeType.UPDATED, ChangeType.DELETED,
    ]
    assert events[-1].node_ids == (parent, child)

    unsubscribe()
    _button(store)
    assert len(events) == 4


@pytest.mark.unit
def test_rejected_mutation_not_notified(store):
    events = []
    store.subscribe(events.append)

    with pytest.raises(ValidationError):
        store.add_node({"kind": "Nope"})

    assert events == []


# ============================================================================
# Depth limits and deep trees
# ============================================================================

def _chain(store, length):
    root = parent = _container(store)
    for _ in range(length - 1):
        parent = _container(store, parent)
    return root, parent


@pytest.mark.unit
def test_add_beyond_max_depth_rejected(registry):
    store = NodeStore(registry, max_depth=3)
    root, leaf = _chain(store, 3)
    before = store.snapshot()

    assert store.depth_of(leaf) == 3
    with pytest.raises(ValidationError) as exc_info:
        _button(store, leaf)

    assert exc_info.value.field == "children"
    assert store.snapshot() == before


@pytest.mark.unit
def test_move_beyond_max_depth_rejected(registry):
    """The whole moved subtree must fit under the new parent."""
    store = NodeStore(registry, max_depth=4)
    _, deep = _chain(store, 3)
    other, _ = _chain(store, 2)
    before = store.snapshot()

    with pytest.raises(ValidationError):
        store.move_node(other, deep, 0)
    assert store.snapshot() == before

    store.move_node(other, store.parent_of(deep), 0)
    assert store.depth_of(other) == 3


@pytest.mark.unit
def test_load_beyond_max_depth_rejected(registry):
    tree = ComponentNode.model_validate({
        "id": "a", "type": "Container", "children": [
            {"id": "b", "type": "Container", "children": [{"id": "c", "type": "Text"}]},
        ],
    })

    assert len(NodeStore.from_component_trees([tree], registry, max_depth=3)) == 3
    with pytest.raises(ValidationError):
        NodeStore.from_component_trees([tree], registry, max_depth=2)


@pytest.mark.unit
def test_overly_nested_property_rejected(store):
    nested = "leaf"
    for _ in range(20):
        nested = [nested]

    with pytest.raises(ValidationError) as exc_info:
        store.add_node({"kind": "Select", "properties": {"options": nested}})

    assert exc_info.value.field == "options"
    assert len(store) == 0


@pytest.mark.unit
def test_deep_tree_operations(registry):
    """Traversals handle trees deeper than the interpreter's recursion limit."""
    store = NodeStore(registry, max_depth=2000)
    root, leaf = _chain(store, 1200)

    assert store.depth_of(leaf) == 1200
    assert len(store.get_subtree(root)) == 1200

    clone = store.duplicate_node(root)
    assert len(store) == 2400
    store.check_integrity()

    trees = store.to_component_trees()
    assert sum(1 for _ in trees[1].walk()) == 1200

    assert len(store.delete_node(root)) == 1200
    assert store.root_ids == [clone]
    store.check_integrity()


@pytest.mark.unit
def test_update_with_both_property_keys_rejected(store):
    node_id = _button(store, text="Keep")
    before = store.snapshot()

    with pytest.raises(ValidationError):
        store.update_node(node_id, {"properties": {"text": "a"}, "props": {"text": "b"}})

    assert store.snapshot() == before
