"""Document models shared by the builder and the code generator."""

from .node import ComponentNode, NodeRecord, NodeSpec, Position, TreeState
from .project import (
    ProjectDefinition,
    ProjectMetadata,
    ProjectSettings,
    Screen,
    ScreenMetadata,
    ThemeColors,
    ThemeConfig,
    ThemeFonts,
)

__all__ = [
    "ComponentNode",
    "NodeRecord",
    "NodeSpec",
    "Position",
    "TreeState",
    "ProjectDefinition",
    "ProjectMetadata",
    "ProjectSettings",
    "Screen",
    "ScreenMetadata",
    "ThemeColors",
    "ThemeConfig",
    "ThemeFonts",
]
