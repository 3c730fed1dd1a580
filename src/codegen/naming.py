"""Identifier and path derivation for generated files."""

import re

_WORD_SPLIT = re.compile(r"[^A-Za-z0-9]+")
_UNSAFE_FILE_CHARS = re.compile(r"[^A-Za-z0-9_\-]")


def slugify(value: str) -> str:
    """Convert a string to a URL/filename-safe slug."""
    slug = re.sub(r"[^a-z0-9]+", "-", str(value).lower().strip())
    return slug.strip("-")


def pascal_case(value: str) -> str:
    """
    ``hero_card-2`` -> ``HeroCard2``.

    Only the first letter of each word is raised; the rest keeps its case so
    ULID suffixes survive unchanged.
    """
    return "".join(word[:1].upper() + word[1:] for word in _WORD_SPLIT.split(str(value)) if word)


def camel_case(value: str) -> str:
    pascal = pascal_case(value)
    return pascal[:1].lower() + pascal[1:]


def component_name(node_id: str) -> str:
    """JSX component identifier for a node id (always starts with a capital letter)."""
    name = pascal_case(node_id)
    if not name or not name[0].isalpha():
        name = f"C{name}"
    return name


def component_stem(node_id: str) -> str:
    """File stem for a node's component file."""
    return _UNSAFE_FILE_CHARS.sub("-", node_id) or "component"


def component_path(node_id: str) -> str:
    return f"components/{component_stem(node_id)}.tsx"


def package_name(project_name: str) -> str:
    """npm package name for the project."""
    return slugify(project_name) or "app"


def route_segments(path: str) -> list[str]:
    """Slugified segments of a screen path; empty for the home route."""
    return [s for s in (slugify(part) for part in str(path).split("/")) if s]


def page_path(path: str) -> str:
    """App-router entry file for a screen path (``/`` -> ``app/page.tsx``)."""
    segments = route_segments(path)
    if not segments:
        return "app/page.tsx"
    return "app/" + "/".join(segments) + "/page.tsx"


__all__ = [
    "slugify",
    "pascal_case",
    "camel_case",
    "component_name",
    "component_stem",
    "component_path",
    "package_name",
    "route_segments",
    "page_path",
]
