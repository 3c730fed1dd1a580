"""Component Registry - the fixed palette of component kinds and their schemas."""

import copy
import re
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field
from returns.result import Failure, Result, Success

from core import get_logger
from core.errors import ValidationError
from core.validate import MAX_VALUE_DEPTH, ValidationResult, validate_json_depth

logger = get_logger(__name__)


class ComponentKind(str, Enum):
    """Closed enumeration of component kinds."""

    BUTTON = "Button"
    TEXT = "Text"
    HEADING = "Heading"
    LINK = "Link"
    IMAGE = "Image"
    DIVIDER = "Divider"
    CONTAINER = "Container"
    CARD = "Card"
    GRID = "Grid"
    FLEX = "Flex"
    INPUT = "Input"
    TEXTAREA = "Textarea"
    SELECT = "Select"
    CHECKBOX = "Checkbox"
    ALERT = "Alert"


class ComponentCategory(str, Enum):
    BASIC = "basic"
    LAYOUT = "layout"
    FORM = "form"
    FEEDBACK = "feedback"


# Scalar keys of the builder's style panel.
STYLE_KEYS: frozenset[str] = frozenset({
    "display", "flexDirection", "justifyContent", "alignItems", "gap",
    "padding", "margin",
    "width", "height", "minWidth", "maxWidth",
    "fontSize", "fontWeight", "textAlign", "color",
    "backgroundColor", "backgroundImage",
    "border", "borderRadius",
    "boxShadow", "opacity",
})


# ============================================================================
# Schema
# ============================================================================

class PropOption(BaseModel):
    label: str
    value: Any


class PropValidation(BaseModel):
    required: bool = False
    min: float | None = None
    max: float | None = None
    pattern: str | None = None


class PropSchema(BaseModel):
    """Edit-time schema of one component property."""

    name: str
    type: Literal["string", "number", "boolean", "select", "color", "image"]
    label: str
    description: str | None = None
    default: Any = None
    options: list[PropOption] = Field(default_factory=list)
    validation: PropValidation = Field(default_factory=PropValidation)


class ComponentDefinition(BaseModel):
    """Palette entry for one component kind."""

    kind: ComponentKind
    category: ComponentCategory
    name: str
    description: str
    icon: str
    default_props: dict[str, Any] = Field(default_factory=dict)
    prop_schema: list[PropSchema] = Field(default_factory=list)
    accepts_children: bool = False

    def schema_for(self, prop_name: str) -> PropSchema | None:
        for schema in self.prop_schema:
            if schema.name == prop_name:
                return schema
        return None


def _select(*values: str) -> list[PropOption]:
    return [PropOption(label=v.capitalize(), value=v) for v in values]


_DEFINITIONS: list[ComponentDefinition] = [
    # Basic
    ComponentDefinition(
        kind=ComponentKind.BUTTON,
        category=ComponentCategory.BASIC,
        name="Button",
        description="Clickable button element",
        icon="square",
        default_props={"text": "Button", "variant": "default", "size": "default"},
        prop_schema=[
            PropSchema(name="text", type="string", label="Button Text", default="Button",
                       description="Text displayed on the button",
                       validation=PropValidation(required=True)),
            PropSchema(name="variant", type="select", label="Variant", default="default",
                       options=_select("default", "destructive", "outline", "secondary", "ghost", "link")),
            PropSchema(name="size", type="select", label="Size", default="default",
                       options=_select("sm", "default", "lg")),
        ],
    ),
    ComponentDefinition(
        kind=ComponentKind.TEXT,
        category=ComponentCategory.BASIC,
        name="Text",
        description="Plain text element",
        icon="type",
        default_props={"content": "Text content", "as": "p"},
        prop_schema=[
            PropSchema(name="content", type="string", label="Content", default="Text content",
                       validation=PropValidation(required=True)),
            PropSchema(name="as", type="select", label="Element Type", default="p",
                       options=_select("p", "span", "div")),
        ],
    ),
    ComponentDefinition(
        kind=ComponentKind.HEADING,
        category=ComponentCategory.BASIC,
        name="Heading",
        description="Heading text",
        icon="heading",
        default_props={"content": "Heading", "level": "h2"},
        prop_schema=[
            PropSchema(name="content", type="string", label="Content", default="Heading",
                       validation=PropValidation(required=True)),
            PropSchema(name="level", type="select", label="Level", default="h2",
                       options=_select("h1", "h2", "h3", "h4", "h5", "h6")),
        ],
    ),
    ComponentDefinition(
        kind=ComponentKind.LINK,
        category=ComponentCategory.BASIC,
        name="Link",
        description="Hyperlink element",
        icon="link",
        default_props={"text": "Link", "href": "#", "target": "_self"},
        prop_schema=[
            PropSchema(name="text", type="string", label="Link Text", default="Link",
                       validation=PropValidation(required=True)),
            PropSchema(name="href", type="string", label="URL", default="#",
                       validation=PropValidation(required=True)),
            PropSchema(name="target", type="select", label="Target", default="_self",
                       options=[PropOption(label="Same Window", value="_self"),
                                PropOption(label="New Window", value="_blank")]),
        ],
    ),
    ComponentDefinition(
        kind=ComponentKind.IMAGE,
        category=ComponentCategory.BASIC,
        name="Image",
        description="Image element",
        icon="image",
        default_props={
            "src": "https://via.placeholder.com/400x300",
            "alt": "Image",
            "width": "400",
            "height": "300",
        },
        prop_schema=[
            PropSchema(name="src", type="image", label="Image URL",
                       default="https://via.placeholder.com/400x300",
                       validation=PropValidation(required=True)),
            PropSchema(name="alt", type="string", label="Alt Text", default="Image",
                       validation=PropValidation(required=True)),
            PropSchema(name="width", type="string", label="Width", default="400"),
            PropSchema(name="height", type="string", label="Height", default="300"),
        ],
    ),
    ComponentDefinition(
        kind=ComponentKind.DIVIDER,
        category=ComponentCategory.BASIC,
        name="Divider",
        description="Horizontal divider line",
        icon="minus",
    ),
    # Layout
    ComponentDefinition(
        kind=ComponentKind.CONTAINER,
        category=ComponentCategory.LAYOUT,
        name="Container",
        description="Container for grouping elements",
        icon="box",
        default_props={"maxWidth": "1200px", "padding": "16px"},
        prop_schema=[
            PropSchema(name="maxWidth", type="string", label="Max Width", default="1200px"),
            PropSchema(name="padding", type="string", label="Padding", default="16px"),
        ],
        accepts_children=True,
    ),
    ComponentDefinition(
        kind=ComponentKind.CARD,
        category=ComponentCategory.LAYOUT,
        name="Card",
        description="Card container with shadow",
        icon="square",
        default_props={"title": "Card Title", "description": "Card description"},
        prop_schema=[
            PropSchema(name="title", type="string", label="Title", default="Card Title"),
            PropSchema(name="description", type="string", label="Description", default="Card description"),
        ],
        accepts_children=True,
    ),
    ComponentDefinition(
        kind=ComponentKind.GRID,
        category=ComponentCategory.LAYOUT,
        name="Grid",
        description="Grid layout container",
        icon="grid",
        default_props={"columns": 3, "gap": "16px"},
        prop_schema=[
            PropSchema(name="columns", type="number", label="Columns", default=3,
                       validation=PropValidation(min=1, max=12)),
            PropSchema(name="gap", type="string", label="Gap", default="16px"),
        ],
        accepts_children=True,
    ),
    ComponentDefinition(
        kind=ComponentKind.FLEX,
        category=ComponentCategory.LAYOUT,
        name="Flex",
        description="Flexbox layout container",
        icon="align-left",
        default_props={"direction": "row", "justify": "start", "align": "start", "gap": "16px"},
        prop_schema=[
            PropSchema(name="direction", type="select", label="Direction", default="row",
                       options=_select("row", "column")),
            PropSchema(name="justify", type="select", label="Justify", default="start",
                       options=_select("start", "center", "end", "between", "around")),
            PropSchema(name="align", type="select", label="Align", default="start",
                       options=_select("start", "center", "end", "stretch")),
            PropSchema(name="gap", type="string", label="Gap", default="16px"),
        ],
        accepts_children=True,
    ),
    # Form
    ComponentDefinition(
        kind=ComponentKind.INPUT,
        category=ComponentCategory.FORM,
        name="Input",
        description="Text input field",
        icon="text-cursor",
        default_props={"label": "Label", "placeholder": "Enter text...", "type": "text", "name": "input"},
        prop_schema=[
            PropSchema(name="label", type="string", label="Label", default="Label"),
            PropSchema(name="placeholder", type="string", label="Placeholder", default="Enter text..."),
            PropSchema(name="type", type="select", label="Type", default="text",
                       options=_select("text", "email", "password", "number")),
            PropSchema(name="name", type="string", label="Name", default="input",
                       validation=PropValidation(required=True, pattern=r"[A-Za-z_][A-Za-z0-9_\-]*")),
        ],
    ),
    ComponentDefinition(
        kind=ComponentKind.TEXTAREA,
        category=ComponentCategory.FORM,
        name="Textarea",
        description="Multi-line text input",
        icon="align-left",
        default_props={"label": "Label", "placeholder": "Enter text...", "name": "textarea", "rows": 4},
        prop_schema=[
            PropSchema(name="label", type="string", label="Label", default="Label"),
            PropSchema(name="placeholder", type="string", label="Placeholder", default="Enter text..."),
            PropSchema(name="name", type="string", label="Name", default="textarea",
                       validation=PropValidation(required=True, pattern=r"[A-Za-z_][A-Za-z0-9_\-]*")),
            PropSchema(name="rows", type="number", label="Rows", default=4,
                       validation=PropValidation(min=1, max=20)),
        ],
    ),
    ComponentDefinition(
        kind=ComponentKind.SELECT,
        category=ComponentCategory.FORM,
        name="Select",
        description="Dropdown select",
        icon="chevron-down",
        default_props={
            "label": "Label",
            "name": "select",
            "options": [
                {"label": "Option 1", "value": "option1"},
                {"label": "Option 2", "value": "option2"},
            ],
        },
        prop_schema=[
            PropSchema(name="label", type="string", label="Label", default="Label"),
            PropSchema(name="name", type="string", label="Name", default="select",
                       validation=PropValidation(required=True, pattern=r"[A-Za-z_][A-Za-z0-9_\-]*")),
        ],
    ),
    ComponentDefinition(
        kind=ComponentKind.CHECKBOX,
        category=ComponentCategory.FORM,
        name="Checkbox",
        description="Checkbox input",
        icon="check-square",
        default_props={"label": "Checkbox Label", "name": "checkbox", "checked": False},
        prop_schema=[
            PropSchema(name="label", type="string", label="Label", default="Checkbox Label"),
            PropSchema(name="name", type="string", label="Name", default="checkbox",
                       validation=PropValidation(required=True, pattern=r"[A-Za-z_][A-Za-z0-9_\-]*")),
        ],
    ),
    # Feedback
    ComponentDefinition(
        kind=ComponentKind.ALERT,
        category=ComponentCategory.FEEDBACK,
        name="Alert",
        description="Alert message",
        icon="alert-circle",
        default_props={"variant": "default", "title": "Alert Title", "description": "Alert description"},
        prop_schema=[
            PropSchema(name="variant", type="select", label="Variant", default="default",
                       options=_select("default", "destructive")),
            PropSchema(name="title", type="string", label="Title", default="Alert Title"),
            PropSchema(name="description", type="string", label="Description", default="Alert description"),
        ],
    ),
]


# ============================================================================
# Registry
# ============================================================================

class ComponentRegistry:
    """
    Lookup and edit-time validation for component kinds.

    Properties are stored untyped on nodes; this registry is what enforces the
    per-kind schema when the builder edits them.
    """

    def __init__(self, definitions: list[ComponentDefinition] | None = None) -> None:
        self._definitions: dict[str, ComponentDefinition] = {}
        for definition in definitions if definitions is not None else _DEFINITIONS:
            self._definitions[definition.kind.value] = definition

    def get(self, kind: str) -> ComponentDefinition | None:
        """Get definition by kind name."""
        return self._definitions.get(kind)

    def require(self, kind: str) -> ComponentDefinition:
        """Get definition by kind name, rejecting unknown kinds."""
        definition = self._definitions.get(kind)
        if definition is None:
            raise ValidationError(f"Unknown component kind: {kind!r}", field="kind")
        return definition

    def __contains__(self, kind: object) -> bool:
        return kind in self._definitions

    def list_all(self) -> list[ComponentDefinition]:
        return list(self._definitions.values())

    def by_category(self, category: ComponentCategory | str) -> list[ComponentDefinition]:
        category = ComponentCategory(category)
        return [d for d in self._definitions.values() if d.category == category]

    def categories(self) -> list[ComponentCategory]:
        seen: list[ComponentCategory] = []
        for definition in self._definitions.values():
            if definition.category not in seen:
                seen.append(definition.category)
        return seen

    def search(self, query: str) -> list[ComponentDefinition]:
        """Search definitions by name or description."""
        query_lower = query.lower()
        return [
            d for d in self._definitions.values()
            if query_lower in d.name.lower() or query_lower in d.description.lower()
        ]

    def accepts_children(self, kind: str) -> bool:
        definition = self._definitions.get(kind)
        return definition is not None and definition.accepts_children

    def default_props(self, kind: str) -> dict[str, Any]:
        """Fresh copy of the kind's default properties."""
        return copy.deepcopy(self.require(kind).default_props)

    # -- Validation --------------------------------------------------------

    def validate_properties(self, kind: str, props: dict[str, Any], partial: bool = False) -> None:
        """
        Validate properties against the kind's schema.

        Args:
            kind: Component kind
            props: Property values (a patch when ``partial``)
            partial: Only check the keys present; ``None`` means removal

        Raises:
            ValidationError: On unknown kind or the first violating property
        """
        definition = self.require(kind)
        self.validate_nesting(kind, props)

        for schema in definition.prop_schema:
            if schema.name not in props:
                if not partial and schema.validation.required:
                    raise ValidationError(
                        f"{kind}.{schema.name} is required", field=schema.name
                    )
                continue
            _check_value(kind, schema, props[schema.name])

    def check_properties(
        self, kind: str, props: dict[str, Any], partial: bool = False
    ) -> Result[None, ValidationResult]:
        """Validate properties (Result pattern version)."""
        try:
            self.validate_properties(kind, props, partial=partial)
            return Success(None)
        except ValidationError as e:
            return Failure(ValidationResult.from_error(e))

    @staticmethod
    def validate_nesting(kind: str, props: dict[str, Any]) -> None:
        """
        Reject property values nested deeper than a persisted document allows.

        Raises:
            ValidationError: Naming the first property that is too deep
        """
        for name, value in props.items():
            if not isinstance(value, (dict, list)):
                continue
            try:
                validate_json_depth(value, MAX_VALUE_DEPTH)
            except ValidationError as e:
                raise ValidationError(f"{kind}.{name}: {e.message}", field=name) from e

    @staticmethod
    def validate_styles(styles: dict[str, Any]) -> None:
        """
        Validate a style mapping (or patch; ``None`` values mean removal).

        Raises:
            ValidationError: On an unknown key or a non-scalar value
        """
        for key, value in styles.items():
            if key not in STYLE_KEYS:
                raise ValidationError(f"Unknown style key: {key!r}", field=key)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, (str, int, float)):
                raise ValidationError(
                    f"Style {key!r} must be a string or number, got {type(value).__name__}",
                    field=key,
                )


def _check_value(kind: str, schema: PropSchema, value: Any) -> None:
    field = schema.name
    label = f"{kind}.{field}"
    rules = schema.validation

    if value is None or value == "":
        if rules.required:
            raise ValidationError(f"{label} is required", field=field)
        return

    if schema.type in ("string", "color", "image"):
        if not isinstance(value, str):
            raise ValidationError(f"{label} must be a string", field=field)
        if rules.pattern and not re.fullmatch(rules.pattern, value):
            raise ValidationError(f"{label} does not match {rules.pattern!r}", field=field)
    elif schema.type == "number":
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValidationError(f"{label} must be a number", field=field)
        if rules.min is not None and value < rules.min:
            raise ValidationError(f"{label} must be >= {rules.min:g}", field=field)
        if rules.max is not None and value > rules.max:
            raise ValidationError(f"{label} must be <= {rules.max:g}", field=field)
    elif schema.type == "boolean":
        if not isinstance(value, bool):
            raise ValidationError(f"{label} must be a boolean", field=field)
    elif schema.type == "select":
        allowed = [option.value for option in schema.options]
        if value not in allowed:
            raise ValidationError(f"{label} must be one of {allowed}", field=field)


__all__ = [
    "ComponentKind",
    "ComponentCategory",
    "STYLE_KEYS",
    "PropOption",
    "PropValidation",
    "PropSchema",
    "ComponentDefinition",
    "ComponentRegistry",
]
