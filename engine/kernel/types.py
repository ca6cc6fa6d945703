"""
Tweak Kernel — Shared Types

Data classes used across the extractor, mutator, preview renderer, sandbox
and session. These are the contracts that bind the kernel together.

Every structure is produced fresh by a pure function of source text and is
never mutated in place by the kernel. `to_dict()` emits the JSON shape the
property panel and the external store exchange (camelCase keys).
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

# ---------------------------------------------------------------------------
# Vocabularies
# ---------------------------------------------------------------------------

PROPERTY_TYPES: set[str] = {
    "string",
    "number",
    "boolean",
    "select",
    "color",
    "textarea",
}

MAPPING_CLASS_GROUP = "class-group"
MAPPING_ATTRIBUTE = "attribute"
MAPPING_CONTENT = "content"

MAPPINGS: set[str] = {MAPPING_CLASS_GROUP, MAPPING_ATTRIBUTE, MAPPING_CONTENT}

# Category order used by the property panel; unknown categories sort after these.
CATEGORY_ORDER: tuple[str, ...] = (
    "Content",
    "Appearance",
    "Typography",
    "Spacing",
    "Border",
    "Layout",
    "Behavior",
)

UNCATEGORIZED = "Uncategorized"


# ---------------------------------------------------------------------------
# Component structure
# ---------------------------------------------------------------------------


@dataclass
class PropertyOption:
    """One choice of a select property."""

    label: str
    value: Any

    def to_dict(self) -> dict[str, Any]:
        return {"label": self.label, "value": self.value}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> PropertyOption:
        return cls(label=d["label"], value=d["value"])


@dataclass
class PropertyDefinition:
    """
    One editable property of one element.

    `mapping` says where edits are written: a class-group token in the class
    list, a tag attribute, or the inline text. `class_group` names the catalog
    group for class-group properties; `attribute` names the JSX attribute for
    attribute properties.
    """

    name: str
    label: str
    type: str
    mapping: str
    category: str | None = None
    default_value: Any = None
    options: list[PropertyOption] | None = None
    min: float | None = None
    max: float | None = None
    step: float | None = None
    description: str | None = None
    class_group: str | None = None
    attribute: str | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "name": self.name,
            "label": self.label,
            "type": self.type,
            "mapping": self.mapping,
        }
        if self.category is not None:
            d["category"] = self.category
        if self.default_value is not None:
            d["defaultValue"] = self.default_value
        if self.options is not None:
            d["options"] = [o.to_dict() for o in self.options]
        for key in ("min", "max", "step", "description"):
            value = getattr(self, key)
            if value is not None:
                d[key] = value
        if self.class_group is not None:
            d["classGroup"] = self.class_group
        if self.attribute is not None:
            d["attribute"] = self.attribute
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> PropertyDefinition:
        options = d.get("options")
        return cls(
            name=d["name"],
            label=d.get("label", d["name"]),
            type=d.get("type", "string"),
            mapping=d["mapping"],
            category=d.get("category"),
            default_value=d.get("defaultValue"),
            options=[PropertyOption.from_dict(o) for o in options] if options is not None else None,
            min=d.get("min"),
            max=d.get("max"),
            step=d.get("step"),
            description=d.get("description"),
            class_group=d.get("classGroup"),
            attribute=d.get("attribute"),
        )


@dataclass
class ComponentElement:
    """
    One markup node of a component.

    `id` is derived from the node's structural position and is unique within
    one extraction pass. `tag` is the raw tag as written in the source; `type`
    is the normalized primitive or markup name used for rendering.
    """

    id: str
    type: str
    name: str
    tag: str
    properties: list[PropertyDefinition] = field(default_factory=list)
    children: list[ComponentElement] = field(default_factory=list)

    def get_property(self, name: str) -> PropertyDefinition | None:
        for prop in self.properties:
            if prop.name == name:
                return prop
        return None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "type": self.type,
            "name": self.name,
            "tag": self.tag,
            "properties": [p.to_dict() for p in self.properties],
        }
        if self.children:
            d["children"] = [c.to_dict() for c in self.children]
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> ComponentElement:
        return cls(
            id=d["id"],
            type=d["type"],
            name=d.get("name", d["type"]),
            tag=d.get("tag", d["type"]),
            properties=[PropertyDefinition.from_dict(p) for p in d.get("properties", [])],
            children=[ComponentElement.from_dict(c) for c in d.get("children", [])],
        )


@dataclass
class VariantOption:
    """One value of a class-variance prop, with the classes it applies."""

    value: str
    label: str
    classes: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"value": self.value, "label": self.label, "classes": list(self.classes)}


@dataclass
class VariantDefinition:
    """A prop discovered from a `cva(base, { variants: { ... } })` table."""

    name: str
    options: list[VariantOption] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "options": [o.to_dict() for o in self.options]}


@dataclass
class ComponentStructure:
    """The extracted, editable model of one component's markup."""

    name: str
    elements: list[ComponentElement] = field(default_factory=list)
    variants: list[VariantDefinition] = field(default_factory=list)

    def iter_elements(self) -> Iterator[ComponentElement]:
        """Depth-first, source order."""
        stack = list(reversed(self.elements))
        while stack:
            element = stack.pop()
            yield element
            stack.extend(reversed(element.children))

    def find_element(self, element_id: str) -> ComponentElement | None:
        for element in self.iter_elements():
            if element.id == element_id:
                return element
        return None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "name": self.name,
            "elements": [e.to_dict() for e in self.elements],
        }
        if self.variants:
            d["variants"] = [v.to_dict() for v in self.variants]
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> ComponentStructure:
        return cls(
            name=d["name"],
            elements=[ComponentElement.from_dict(e) for e in d.get("elements", [])],
            variants=[
                VariantDefinition(
                    name=v["name"],
                    options=[VariantOption(o["value"], o.get("label", o["value"]), o.get("classes", [])) for o in v.get("options", [])],
                )
                for v in d.get("variants", [])
            ],
        )


# ---------------------------------------------------------------------------
# Preview
# ---------------------------------------------------------------------------


@dataclass
class RenderNode:
    """
    One node of the simulated preview: a concrete UI primitive or markup tag.

    `style` is the inline style (camelCase keys); children are nodes or text.
    """

    component: str
    props: dict[str, Any] = field(default_factory=dict)
    style: dict[str, str] = field(default_factory=dict)
    children: list[RenderNode | str] = field(default_factory=list)
    element_id: str | None = None

    def find(self, element_id: str) -> RenderNode | None:
        """Return the wrapper node rendered for `element_id`, if any."""
        if self.element_id == element_id:
            return self
        for child in self.children:
            if isinstance(child, RenderNode):
                found = child.find(element_id)
                if found is not None:
                    return found
        return None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"component": self.component}
        if self.props:
            d["props"] = self.props
        if self.style:
            d["style"] = self.style
        if self.children:
            d["children"] = [c.to_dict() if isinstance(c, RenderNode) else c for c in self.children]
        if self.element_id is not None:
            d["elementId"] = self.element_id
        return d


# ---------------------------------------------------------------------------
# Sandbox
# ---------------------------------------------------------------------------


@dataclass
class CompiledComponent:
    """A successfully compiled and executed preview component."""

    name: str
    code: str
    scope: tuple[str, ...]
    markup: str
    ok: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {"ok": True, "name": self.name, "code": self.code, "markup": self.markup}


@dataclass
class SandboxError:
    """
    Structured failure returned from the sandbox boundary.

    kind: "parse" | "transpile" | "execution" | "compiler_unavailable"
    """

    kind: str
    message: str
    ok: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"ok": False, "kind": self.kind, "message": self.message}


SandboxResult = CompiledComponent | SandboxError


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


@dataclass
class Changeset:
    """
    Minimal descriptor of one applied edit, handed to the external
    append-only store next to the new source text. The store assigns the
    version number.
    """

    element_id: str
    property: str
    mapping: str
    previous: Any
    value: Any

    def to_dict(self) -> dict[str, Any]:
        return {
            "elementId": self.element_id,
            "property": self.property,
            "mapping": self.mapping,
            "previous": self.previous,
            "value": self.value,
        }


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def property_key(element_id: str, property_name: str) -> str:
    """Key of one value in the property-value map: "{elementId}.{propertyName}"."""
    return f"{element_id}.{property_name}"


def split_property_key(key: str) -> tuple[str | None, str]:
    """
    Split a property-value key into (element_id, property_name).

    Keys without a dot are canvas-level and return (None, key).
    """
    if "." not in key:
        return None, key
    element_id, _, name = key.rpartition(".")
    return element_id, name
