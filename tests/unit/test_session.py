"""Editor session tests."""

import pytest

from builder import EditorSession
from builder.session import BASELINE_LABEL
from codegen import generate
from core.errors import NotFoundError, ValidationError
from models import Screen


@pytest.mark.unit
def test_new_session_has_home_screen(session):
    assert len(session.screens) == 1
    assert session.active_screen.path == "/"
    assert session.history.labels() == [BASELINE_LABEL]
    assert not session.can_undo


@pytest.mark.unit
def test_first_checkpoint_is_undoable(session):
    """The baseline taken on load makes the first user edit undoable."""
    session.add_node({"kind": "Button", "properties": {"text": "Click me"}})
    session.checkpoint("Add button")

    assert session.can_undo
    assert session.undo() is True
    assert len(session.store) == 0
    assert session.redo() is True
    assert len(session.store) == 1


@pytest.mark.unit
def test_undo_redo_noop_at_edges(session):
    assert session.undo() is False
    assert session.redo() is False


@pytest.mark.unit
def test_undo_prunes_selection(session):
    """Nodes that disappear on undo drop out of the selection."""
    node_id = session.add_node({"kind": "Button"})
    session.checkpoint("Add button")
    session.selection.select(node_id)

    session.undo()

    assert session.selection.selected_ids == []


@pytest.mark.unit
def test_delete_prunes_selection(session):
    parent = session.add_node({"kind": "Container"})
    child = session.add_node({"kind": "Button"}, parent)
    session.selection.select_multiple([parent, child])
    session.selection.set_hovered(child)

    session.delete_node(parent)

    assert session.selection.selected_ids == []
    assert session.selection.hovered_id is None


@pytest.mark.unit
def test_promote_keeps_children_selected(session):
    parent = session.add_node({"kind": "Container"})
    child = session.add_node({"kind": "Button"}, parent)
    session.selection.select_multiple([parent, child])

    session.delete_node(parent, "promote")

    assert session.selection.selected_ids == [child]


@pytest.mark.unit
def test_edit_groups_into_one_step(session):
    """An edit block becomes a single undo step."""
    with session.edit("Add hero"):
        hero = session.add_node({"kind": "Container"})
        session.add_node({"kind": "Heading"}, hero)
        session.add_node({"kind": "Button"}, hero)

    assert len(session.store) == 3
    assert session.history.labels() == [BASELINE_LABEL, "Add hero"]

    session.undo()
    assert len(session.store) == 0


@pytest.mark.unit
def test_edit_rolls_back_on_rejection(session):
    """A rejected edit inside a block rolls the whole block back."""
    keep = session.add_node({"kind": "Divider"})
    session.checkpoint("Add divider")

    with pytest.raises(ValidationError):
        with session.edit("Broken"):
            session.add_node({"kind": "Container"})
            session.add_node({"kind": "Unknown"})

    assert session.store.node_ids() == [keep]
    assert session.history.labels() == [BASELINE_LABEL, "Add divider"]


@pytest.mark.unit
def test_screens_have_independent_history(session):
    home = session.active_screen.id
    session.add_node({"kind": "Button"})
    session.checkpoint("Home button")

    about = session.add_screen("About", "/about", title="About us")
    assert session.active_screen.id == about
    assert len(session.store) == 0
    assert not session.can_undo

    session.switch_screen(home)
    assert len(session.store) == 1
    assert session.can_undo


@pytest.mark.unit
def test_switch_screen_clears_selection(session):
    node_id = session.add_node({"kind": "Button"})
    session.selection.select(node_id)
    other = session.add_screen("Other", "/other")

    assert session.selection.selected_ids == []
    with pytest.raises(NotFoundError):
        session.selection.select(node_id)

    session.switch_screen(other)
    with pytest.raises(NotFoundError):
        session.switch_screen("screen_missing")


@pytest.mark.unit
def test_duplicate_screen_path_rejected(session):
    with pytest.raises(ValidationError):
        session.add_screen("Home again", "")
    session.add_screen("Docs", "/docs")
    with pytest.raises(ValidationError):
        session.add_screen("Docs", "docs/")


@pytest.mark.unit
def test_remove_screen(session):
    home = session.active_screen.id
    docs = session.add_screen("Docs", "/docs")

    session.remove_screen(docs)

    assert [s.id for s in session.screens] == [home]
    assert session.active_screen.id == home
    with pytest.raises(ValidationError):
        session.remove_screen(home)
    with pytest.raises(NotFoundError):
        session.remove_screen(docs)


@pytest.mark.unit
def test_project_round_trip(sample_project, registry, settings):
    """Opening and re-exporting a project keeps its document intact."""
    session = EditorSession.from_project(sample_project, registry, settings)

    assert [s.id for s in session.screens] == ["screen_home", "screen_contact"]
    assert session.store.root_ids == ["container_hero"]
    assert session.to_project() == sample_project


@pytest.mark.unit
def test_project_edits_are_exported(sample_project, registry, settings):
    session = EditorSession.from_project(sample_project, registry, settings)
    session.update_node("button_cta", {"properties": {"text": "Sign up"}})
    session.move_node("button_cta", None, 0)

    project = session.to_project()
    home = project.screens[0]

    assert [c.id for c in home.components] == ["button_cta", "container_hero"]
    assert home.components[0].properties["text"] == "Sign up"
    assert sample_project.screens[0].components[0].id == "container_hero"


@pytest.mark.unit
def test_empty_project_gets_home_screen(registry, settings):
    from models import ProjectDefinition, ProjectMetadata

    project = ProjectDefinition(metadata=ProjectMetadata(id="proj_empty", name="Empty"))
    session = EditorSession.from_project(project, registry, settings)

    assert len(session.screens) == 1
    assert session.active_screen.path == "/"


@pytest.mark.unit
def test_history_limit_from_settings(registry, small_settings):
    session = EditorSession.new("Small", registry=registry, settings=small_settings)
    for i in range(5):
        session.add_node({"kind": "Divider"})
        session.checkpoint(f"edit {i}")

    assert session.history.labels() == ["edit 2", "edit 3", "edit 4"]


@pytest.mark.unit
def test_duplicate_through_session(session):
    node_id = session.add_node({"kind": "Card"})
    clone = session.duplicate_node(node_id)
    assert session.store.root_ids == [node_id, clone]


@pytest.mark.unit
@pytest.mark.parametrize("first,second", [
    ("/About", "/about"),
    ("/a b", "/a-b"),
    ("/Blog/Latest Posts", "blog/latest-posts/"),
])
def test_screen_paths_compared_by_generated_page(session, first, second):
    """Paths that generate the same page file are rejected up front."""
    session.add_screen("First", first)
    with pytest.raises(ValidationError) as exc_info:
        session.add_screen("Second", second)

    assert exc_info.value.field == "path"
    assert len(session.screens) == 2
    generate(session.to_project())


@pytest.mark.unit
def test_open_project_with_colliding_paths_rejected(sample_project, registry, settings):
    twin = Screen(id="screen_contact_twin", name="Contact twin", path="/Contact/")
    project = sample_project.model_copy(update={"screens": [*sample_project.screens, twin]})

    with pytest.raises(ValidationError):
        EditorSession.from_project(project, registry, settings)


@pytest.mark.unit
def test_edit_rollback_stays_on_entry_screen(session):
    """Switching screens inside a block cannot leak one screen's state into another."""
    home = session.active_screen
    keep = session.add_node({"kind": "Divider"})

    with pytest.raises(NotFoundError):
        with session.edit("Across screens"):
            session.add_node({"kind": "Container"})
            session.add_screen("About", "/about")
            about_node = session.add_node({"kind": "Button"})
            session.update_node("missing", {"visible": False})

    about = session.active_screen
    assert about is not home
    assert home.store.node_ids() == [keep]
    assert about.store.node_ids() == [about_node]
    assert home.history.labels() == [BASELINE_LABEL]


@pytest.mark.unit
def test_edit_checkpoints_entry_screen(session):
    home = session.active_screen

    with session.edit("Add and leave"):
        session.add_node({"kind": "Divider"})
        session.add_screen("About", "/about")

    assert home.history.labels() == [BASELINE_LABEL, "Add and leave"]
    assert session.history.labels() == [BASELINE_LABEL]
