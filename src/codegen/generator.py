"""
Code Generator
Turns a project definition into a Next.js source tree.

Generation is a pure, read-only traversal. A first pass indexes every node
reachable from any screen (component name and file path per id); the second
pass renders scaffold files, one entry file per screen and one component file
per node, resolving child imports through that index. Failures local to one
node are contained as placeholder files and reported in the result; only a
corrupted document (duplicate ids, name collisions, orphaned references)
aborts the run.
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any

from jinja2 import TemplateError
from pydantic import BaseModel, ConfigDict, Field

from builder.registry import ComponentRegistry
from core import LogContext, dumps_pretty, fingerprint_files, get_logger
from core.errors import InternalInvariantError
from models import ComponentNode, ProjectDefinition, Screen
from monitoring import metrics_collector
from .naming import component_name, component_path, component_stem, package_name, page_path, pascal_case
from .templates import TemplateRenderer

logger = get_logger(__name__)

HOME_PAGE = "app/page.tsx"

RUNTIME_DEPENDENCIES: dict[str, str] = {
    "next": "14.0.4",
    "react": "^18.2.0",
    "react-dom": "^18.2.0",
    "tailwindcss": "^3.3.6",
}

PACKAGE_DEPENDENCIES: dict[str, str] = {
    **RUNTIME_DEPENDENCIES,
    "@supabase/supabase-js": "^2.39.0",
    "typescript": "^5.3.3",
}

PACKAGE_DEV_DEPENDENCIES: dict[str, str] = {
    "@types/node": "^20",
    "@types/react": "^18",
    "@types/react-dom": "^18",
    "autoprefixer": "^10",
    "postcss": "^8",
}

TSCONFIG: dict[str, Any] = {
    "compilerOptions": {
        "target": "es5",
        "lib": ["dom", "dom.iterable", "esnext"],
        "allowJs": True,
        "skipLibCheck": True,
        "strict": True,
        "noEmit": True,
        "esModuleInterop": True,
        "module": "esnext",
        "moduleResolution": "bundler",
        "resolveJsonModule": True,
        "isolatedModules": True,
        "jsx": "preserve",
        "incremental": True,
        "plugins": [{"name": "next"}],
        "paths": {"@/*": ["./*"]},
    },
    "include": ["next-env.d.ts", "**/*.ts", "**/*.tsx", ".next/types/**/*.ts"],
    "exclude": ["node_modules"],
}

_SCAFFOLD_TEMPLATES = {
    "next.config.js": "scaffold/next.config.js.j2",
    "postcss.config.js": "scaffold/postcss.config.js.j2",
    "tailwind.config.ts": "scaffold/tailwind.config.ts.j2",
    "app/layout.tsx": "app/layout.tsx.j2",
    "app/globals.css": "app/globals.css.j2",
}

PLACEHOLDER_TEMPLATE = "components/_placeholder.tsx.j2"

# Template failures contained per node; anything else propagates.
_TEMPLATE_FAILURES = (TemplateError, TypeError, ValueError, KeyError, AttributeError)


class ErrorCode(str, Enum):
    UNKNOWN_COMPONENT = "UNKNOWN_COMPONENT"
    TEMPLATE_ERROR = "TEMPLATE_ERROR"
    IGNORED_CHILDREN = "IGNORED_CHILDREN"


class CodeGenerationError(BaseModel):
    """A contained, per-node generation problem."""

    model_config = ConfigDict(frozen=True)

    code: ErrorCode
    message: str
    component: str | None = None


class GenerationResult(BaseModel):
    """File map plus what went wrong along the way."""

    files: dict[str, str]
    dependencies: dict[str, str] = Field(default_factory=dict)
    errors: list[CodeGenerationError] = Field(default_factory=list)
    fingerprint: str

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class _Entry:
    """Index record for one node: who owns it and where its file goes."""

    name: str
    stem: str
    path: str


class CodeGenerator:
    """Next.js 14 (app router) + Tailwind generator."""

    def __init__(
        self,
        renderer: TemplateRenderer | None = None,
        registry: ComponentRegistry | None = None,
    ) -> None:
        self.renderer = renderer or TemplateRenderer()
        self.registry = registry or ComponentRegistry()

    def generate(self, project: ProjectDefinition) -> dict[str, str]:
        """
        Generate the project's source tree.

        Returns:
            Mapping of file path to file contents, ordered by path

        Raises:
            InternalInvariantError: The document is corrupted (duplicate node
                ids, colliding names or entry paths, orphaned children)
        """
        return self.generate_result(project).files

    def generate_result(self, project: ProjectDefinition) -> GenerationResult:
        """Like ``generate`` but also reports contained per-node errors."""
        with LogContext(project_id=project.metadata.id):
            start = time.perf_counter()
            try:
                result = self._run(project)
            except InternalInvariantError as e:
                metrics_collector.record_generation("aborted", time.perf_counter() - start)
                logger.error("generation_aborted", error=e.message, node_id=e.node_id)
                raise

            metrics_collector.record_generation("success", time.perf_counter() - start, len(result.files))
            logger.info(
                "generation_complete",
                files=len(result.files),
                errors=len(result.errors),
                fingerprint=result.fingerprint,
            )
            return result

    # ========================================================================
    # Passes
    # ========================================================================

    def _run(self, project: ProjectDefinition) -> GenerationResult:
        index = self._index(project)
        errors: list[CodeGenerationError] = []
        files = self._scaffold(project)

        pages: dict[str, str] = {}
        for screen in project.screens:
            entry = page_path(screen.path)
            if entry in pages:
                raise InternalInvariantError(
                    f"Screens {pages[entry]} and {screen.id} both generate {entry}"
                )
            pages[entry] = screen.id
            files[entry] = self._page(screen, entry, index)

            for node in screen.walk():
                files[index[node.id].path] = self._component(node, index, errors)

        if HOME_PAGE not in pages:
            files[HOME_PAGE] = self.renderer.render(
                "app/welcome.tsx.j2", {"project_name": project.metadata.name}
            )

        files = dict(sorted(files.items()))
        return GenerationResult(
            files=files,
            dependencies=dict(RUNTIME_DEPENDENCIES),
            errors=errors,
            fingerprint=fingerprint_files(files),
        )

    def _index(self, project: ProjectDefinition) -> dict[str, _Entry]:
        index: dict[str, _Entry] = {}
        names: dict[str, str] = {}
        stems: dict[str, str] = {}

        for screen in project.screens:
            for node in screen.walk():
                if node.id in index:
                    raise InternalInvariantError(f"Duplicate node id: {node.id}", node_id=node.id)

                entry = _Entry(
                    name=component_name(node.id),
                    stem=component_stem(node.id),
                    path=component_path(node.id),
                )
                for seen, key in ((names, entry.name), (stems, entry.stem)):
                    if key in seen:
                        raise InternalInvariantError(
                            f"Nodes {seen[key]} and {node.id} both map to {key}", node_id=node.id
                        )
                    seen[key] = node.id
                index[node.id] = entry

        logger.debug("generation_indexed", nodes=len(index))
        return index

    # ========================================================================
    # Files
    # ========================================================================

    def _scaffold(self, project: ProjectDefinition) -> dict[str, str]:
        theme = project.settings.theme
        context = {
            "project_name": project.metadata.name,
            "metadata": {
                "title": project.metadata.name,
                "description": project.metadata.description,
            },
            "colors": theme.colors.model_dump(),
            "fonts": theme.fonts.model_dump(),
            "radius": theme.radius,
        }

        files = {
            "package.json": dumps_pretty(self._manifest(project)),
            "tsconfig.json": dumps_pretty(TSCONFIG),
        }
        for path, template in _SCAFFOLD_TEMPLATES.items():
            files[path] = self.renderer.render(template, context)
        return files

    def _manifest(self, project: ProjectDefinition) -> dict[str, Any]:
        return {
            "name": package_name(project.metadata.name),
            "version": project.metadata.version,
            "private": True,
            "scripts": {
                "dev": "next dev",
                "build": "next build",
                "start": "next start",
                "lint": "next lint",
            },
            "dependencies": dict(PACKAGE_DEPENDENCIES),
            "devDependencies": dict(PACKAGE_DEV_DEPENDENCIES),
        }

    def _page(self, screen: Screen, entry: str, index: dict[str, _Entry]) -> str:
        prefix = "../" * entry.count("/")
        children = [
            {"name": ref.name, "module": f"{prefix}components/{ref.stem}"}
            for ref in (self._resolve(root, index) for root in screen.components)
        ]
        taken = {child["name"] for child in children}

        name = f"{pascal_case(screen.name)}Page"
        if not name[0].isalpha() or name in taken:
            name = f"Screen{name}"
        while name in taken:
            name = f"{name}_"

        metadata = screen.metadata.model_dump(exclude_none=True)
        return self.renderer.render(
            "app/page.tsx.j2",
            {"name": name, "children": children, "metadata": metadata or None},
        )

    def _component(
        self,
        node: ComponentNode,
        index: dict[str, _Entry],
        errors: list[CodeGenerationError],
    ) -> str:
        entry = index[node.id]
        children = [
            {"name": ref.name, "module": f"./{ref.stem}"}
            for ref in (self._resolve(child, index) for child in node.children)
        ]

        definition = self.registry.get(node.kind)
        if definition is None:
            errors.append(CodeGenerationError(
                code=ErrorCode.UNKNOWN_COMPONENT,
                message=f"No template for component kind {node.kind!r}",
                component=node.id,
            ))
            metrics_collector.record_fallback(ErrorCode.UNKNOWN_COMPONENT.value)
            logger.warning("unknown_component", node_id=node.id, kind=node.kind)
            return self._placeholder(node, entry, children)

        if children and not definition.accepts_children:
            errors.append(CodeGenerationError(
                code=ErrorCode.IGNORED_CHILDREN,
                message=f"{node.kind} does not render children; {len(children)} not imported",
                component=node.id,
            ))
            logger.warning("ignored_children", node_id=node.id, kind=node.kind, count=len(children))
            children = []

        props = self.registry.default_props(node.kind)
        props.update(node.properties)
        context = {
            "name": entry.name,
            "node_id": node.id,
            "kind": node.kind,
            "props": props,
            "style": node.styles,
            "children": children,
            "visible": node.visible,
        }
        try:
            return self.renderer.render(f"components/{node.kind.lower()}.tsx.j2", context)
        except _TEMPLATE_FAILURES as e:
            errors.append(CodeGenerationError(
                code=ErrorCode.TEMPLATE_ERROR,
                message=f"Template for {node.kind} failed: {e}",
                component=node.id,
            ))
            metrics_collector.record_fallback(ErrorCode.TEMPLATE_ERROR.value)
            logger.warning("template_failed", node_id=node.id, kind=node.kind, error=str(e))
            return self._placeholder(node, entry, children)

    def _placeholder(self, node: ComponentNode, entry: _Entry, children: list[dict[str, str]]) -> str:
        return self.renderer.render(
            PLACEHOLDER_TEMPLATE,
            {
                "name": entry.name,
                "node_id": node.id,
                "kind": node.kind,
                "children": children,
                "visible": node.visible,
            },
        )

    @staticmethod
    def _resolve(node: ComponentNode, index: dict[str, _Entry]) -> _Entry:
        entry = index.get(node.id)
        if entry is None:
            raise InternalInvariantError(f"Child {node.id} was not indexed", node_id=node.id)
        return entry


def generate(project: ProjectDefinition) -> dict[str, str]:
    """Generate with the built-in templates and component registry."""
    return CodeGenerator().generate(project)


__all__ = [
    "CodeGenerationError",
    "CodeGenerator",
    "ErrorCode",
    "GenerationResult",
    "RUNTIME_DEPENDENCIES",
    "generate",
]
