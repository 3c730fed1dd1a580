"""Dependency Injection Container."""

from injector import Injector, Module, provider, singleton

from builder.registry import ComponentRegistry
from codegen.generator import CodeGenerator
from codegen.templates import TemplateRenderer
from .config import Settings, get_settings


class CoreModule(Module):
    """Core dependencies."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings

    @singleton
    @provider
    def provide_settings(self) -> Settings:
        """Provide settings (explicit override or environment)."""
        return self.settings or get_settings()

    @singleton
    @provider
    def provide_registry(self) -> ComponentRegistry:
        """Provide the built-in component registry."""
        return ComponentRegistry()

    @singleton
    @provider
    def provide_renderer(self, settings: Settings) -> TemplateRenderer:
        """Provide the codegen template renderer."""
        return TemplateRenderer(settings.template_dir)

    @singleton
    @provider
    def provide_generator(self, renderer: TemplateRenderer, registry: ComponentRegistry) -> CodeGenerator:
        """Provide the code generator with its collaborators."""
        return CodeGenerator(renderer=renderer, registry=registry)


def create_container(settings: Settings | None = None) -> Injector:
    """Create configured injector."""
    return Injector([CoreModule(settings)])
