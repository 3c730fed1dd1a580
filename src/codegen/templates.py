"""Jinja2 template rendering for generated source files.

Loads ``.j2`` templates from ``codegen/templates/`` (or an override directory)
and renders them with per-file context. Besides the naming filters, the
environment knows how to encode values for JSX: ``jsx`` escapes text content
and the ``attr`` global emits one attribute as a JS expression.
"""

import html
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from core.json import dumps_compact
from .naming import camel_case, pascal_case, slugify

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"


class TemplateRenderer:
    """Renders Jinja2 templates for generated projects."""

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([]),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["slugify"] = slugify
        self.env.filters["pascal_case"] = pascal_case
        self.env.filters["camel_case"] = camel_case
        self.env.filters["jsx"] = jsx_text
        self.env.filters["js"] = js_literal
        self.env.filters["merge"] = merge_style
        self.env.globals["attr"] = jsx_attr

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """
        Render a single template with the provided context.

        Args:
            template_path: Path relative to the template directory
                (e.g. ``"components/button.tsx.j2"``)
            context: Variables available inside the template

        Returns:
            Rendered file contents
        """
        template = self.env.get_template(template_path)
        return template.render(**context)

    def render_string(self, template_string: str, context: dict[str, Any]) -> str:
        template = self.env.from_string(template_string)
        return template.render(**context)

    def has_template(self, template_path: str) -> bool:
        return (self.template_dir / template_path).is_file()

    def list_templates(self, prefix: str = "") -> list[str]:
        """Sorted ``.j2`` template paths under ``prefix``, relative to the root."""
        search_dir = self.template_dir / prefix if prefix else self.template_dir
        if not search_dir.is_dir():
            return []
        return sorted(
            p.relative_to(self.template_dir).as_posix()
            for p in search_dir.rglob("*.j2")
        )


# ============================================================================
# JSX encoding
# ============================================================================

def jsx_text(value: Any) -> str:
    """Escape a value for use as JSX text content."""
    if value is None:
        return ""
    text = html.escape(str(value), quote=False)
    return text.replace("{", "&#123;").replace("}", "&#125;")


def js_literal(value: Any) -> str:
    """Encode a value as a JavaScript literal (JSON with sorted keys)."""
    return dumps_compact(value, sort_keys=True)


def jsx_attr(name: str, value: Any) -> str:
    """
    One JSX attribute with a leading space, or ``""`` when it should be omitted.

    ``None``/``False``/empty mappings are omitted, ``True`` is a bare flag and
    everything else becomes ``name={<literal>}``.
    """
    if value is None or value is False or value == {}:
        return ""
    if value is True:
        return f" {name}"
    return f" {name}={{{js_literal(value)}}}"


def merge_style(base: dict[str, Any] | None, overrides: dict[str, Any] | None) -> dict[str, Any]:
    """Style object from property-derived ``base`` overlaid with node styles."""
    merged = {k: v for k, v in (base or {}).items() if v is not None}
    merged.update({k: v for k, v in (overrides or {}).items() if v is not None})
    return merged


__all__ = ["TemplateRenderer", "jsx_text", "js_literal", "jsx_attr", "merge_style"]
