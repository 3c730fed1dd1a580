"""Pytest configuration and fixtures."""

import os

import pytest

from builder import ComponentRegistry, EditorSession, HistoryEngine, NodeStore
from codegen import CodeGenerator, TemplateRenderer
from core import Settings, get_settings
from models import ComponentNode, ProjectDefinition, ProjectMetadata, Screen


# ============================================================================
# Pytest Hooks
# ============================================================================

def pytest_configure(config):
    """Configure pytest with environment variables."""
    os.environ["STUDIO_LOG_LEVEL"] = "DEBUG"
    os.environ["STUDIO_HISTORY_LIMIT"] = "100"


# ============================================================================
# Core Fixtures
# ============================================================================

@pytest.fixture
def settings():
    """Test settings."""
    return get_settings()


@pytest.fixture
def small_settings():
    """Settings with a short history, for retention tests."""
    return Settings(history_limit=3)


@pytest.fixture
def registry():
    """Built-in component registry."""
    return ComponentRegistry()


# ============================================================================
# Builder Fixtures
# ============================================================================

@pytest.fixture
def store(registry):
    """Empty node store."""
    return NodeStore(registry)


@pytest.fixture
def history(store):
    """History engine over the empty store."""
    return HistoryEngine(store)


@pytest.fixture
def session(registry, settings):
    """Fresh editor session with a single home screen."""
    return EditorSession.new("Test Project", registry=registry, settings=settings)


# ============================================================================
# Code Generation Fixtures
# ============================================================================

@pytest.fixture
def generator(registry):
    """Code generator with the built-in templates."""
    return CodeGenerator(renderer=TemplateRenderer(), registry=registry)


@pytest.fixture
def sample_project():
    """Two-screen project: a landing page with a container and a contact form."""
    hero = ComponentNode.model_validate({
        "id": "container_hero",
        "type": "Container",
        "props": {"maxWidth": "960px", "padding": "24px"},
        "children": [
            {"id": "heading_title", "type": "Heading", "props": {"content": "Welcome", "level": "h1"}},
            {"id": "button_cta", "type": "Button", "props": {"text": "Click me", "variant": "default", "size": "lg"}},
        ],
    })
    form = ComponentNode.model_validate({
        "id": "card_contact",
        "type": "Card",
        "props": {"title": "Contact", "description": "Say hello"},
        "children": [
            {"id": "input_email", "type": "Input",
             "props": {"label": "Email", "type": "email", "name": "email", "placeholder": "you@example.com"}},
        ],
    })
    return ProjectDefinition(
        metadata=ProjectMetadata(id="proj_test", name="Test Project", description="A test project"),
        screens=[
            Screen(id="screen_home", name="Home", path="/", components=[hero]),
            Screen(id="screen_contact", name="Contact", path="/contact", components=[form]),
        ],
    )
