"""Project definition models (the document exchanged with persistence and codegen)."""

from typing import Any
from pydantic import BaseModel, ConfigDict, Field

from .node import ComponentNode


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ProjectMetadata(_CamelModel):
    id: str
    name: str = Field(..., min_length=1)
    description: str = ""
    version: str = "0.1.0"


class ThemeColors(_CamelModel):
    primary: str = "#0f172a"
    secondary: str = "#64748b"
    accent: str = "#6366f1"
    background: str = "#ffffff"
    foreground: str = "#020817"


class ThemeFonts(_CamelModel):
    sans: str = "Inter"
    mono: str = "JetBrains Mono"


class ThemeConfig(_CamelModel):
    colors: ThemeColors = Field(default_factory=ThemeColors)
    fonts: ThemeFonts = Field(default_factory=ThemeFonts)
    radius: float = Field(default=0.5, ge=0)


class ProjectSettings(_CamelModel):
    ui_kit: str = Field(default="shadcn", alias="uiKit")
    modules: list[str] = Field(default_factory=list)
    theme: ThemeConfig = Field(default_factory=ThemeConfig)


class ScreenMetadata(_CamelModel):
    title: str | None = None
    description: str | None = None


class Screen(_CamelModel):
    """One page of the project with its ordered root component trees."""

    id: str
    name: str
    path: str = "/"
    components: list[ComponentNode] = Field(default_factory=list)
    metadata: ScreenMetadata = Field(default_factory=ScreenMetadata)

    def walk(self):
        """Yield every node of the screen in pre-order, roots in order."""
        for root in self.components:
            yield from root.walk()


class ProjectDefinition(_CamelModel):
    """Complete project document."""

    metadata: ProjectMetadata
    settings: ProjectSettings = Field(default_factory=ProjectSettings)
    screens: list[Screen] = Field(default_factory=list)
    global_state: dict[str, Any] = Field(default_factory=dict, alias="globalState")

    def to_document(self) -> dict[str, Any]:
        """Dump with the persisted key names (``type``, ``props``, ``uiKit`` ...)."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")
