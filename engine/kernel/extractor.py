"""
Tweak Kernel — Structure Extractor

Parses component source into a ComponentStructure: a tree of elements, each
annotated with the editable properties its existing markup implies.

Properties come from three disjoint sources:
  content      — leaf elements with inline text get one `text` property
  attribute    — recognised tag attributes with static values
  class-group  — class tokens matched against the catalog's class groups

Pure function of the source text. Ids are "{type}-{path}" and only
guaranteed stable within one extraction pass.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Any

from engine.kernel import jsx_parser
from engine.kernel.catalog import DEFAULT_CATALOG, StyleCatalog
from engine.kernel.errors import MutationError
from engine.kernel.jsx_parser import MarkupNode, SourceTree
from engine.kernel.types import (
    CATEGORY_ORDER,
    MAPPING_ATTRIBUTE,
    MAPPING_CLASS_GROUP,
    MAPPING_CONTENT,
    ComponentElement,
    ComponentStructure,
    PropertyDefinition,
    PropertyOption,
    VariantDefinition,
    VariantOption,
    property_key,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Element types
# ---------------------------------------------------------------------------

PRIMITIVES: dict[str, str] = {
    "Button": "button",
    "Input": "input",
    "Card": "card",
    "Dialog": "dialog",
    "Badge": "badge",
    "Label": "label",
    "NavigationMenu": "navigation-menu",
}

# Substring of the lower-cased component name → primitive
_NAME_HINTS: tuple[tuple[str, str], ...] = (
    ("button", "button"),
    ("modal", "dialog"),
    ("input", "input"),
)

_DISPLAY_NAMES: dict[str, str] = {
    "div": "Container",
    "section": "Section",
    "header": "Header",
    "footer": "Footer",
    "main": "Main",
    "nav": "Navigation",
    "form": "Form",
    "ul": "List",
    "ol": "List",
    "li": "List Item",
    "h1": "Heading 1",
    "h2": "Heading 2",
    "h3": "Heading 3",
    "h4": "Heading 4",
    "h5": "Heading 5",
    "h6": "Heading 6",
    "p": "Paragraph",
    "span": "Text",
    "a": "Link",
    "img": "Image",
    "button": "Button",
    "input": "Input",
    "card": "Card",
    "dialog": "Dialog",
    "badge": "Badge",
    "label": "Label",
    "navigation-menu": "Navigation Menu",
}


def element_type(tag: str) -> str:
    """Normalize a raw tag to a primitive or markup type."""
    if tag in PRIMITIVES:
        return PRIMITIVES[tag]
    if tag[:1].islower():
        return tag
    lowered = tag.rsplit(".", 1)[-1].lower()
    for hint, primitive in _NAME_HINTS:
        if hint in lowered:
            return primitive
    return "div"


def display_name(type_: str, occurrence: int) -> str:
    base = _DISPLAY_NAMES.get(type_) or type_.replace("-", " ").title()
    return base if occurrence <= 1 else f"{base} {occurrence}"


def element_id(type_: str, path: tuple[int, ...]) -> str:
    return f"{type_}-{'_'.join(str(i) for i in path)}"


def element_path(eid: str) -> tuple[int, ...]:
    """Structural path encoded in an element id."""
    _, sep, tail = eid.rpartition("-")
    try:
        if not sep:
            raise ValueError(eid)
        return tuple(int(part) for part in tail.split("_"))
    except ValueError:
        raise MutationError(f"malformed element id: {eid!r}") from None


# ---------------------------------------------------------------------------
# Attribute table
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AttributeSpec:
    label: str
    type: str
    category: str
    options: tuple[str, ...] = ()


_INPUT_TYPES = ("text", "email", "password", "number", "search", "tel", "url", "date", "checkbox", "radio", "file")
_BUTTON_TYPES = ("button", "submit", "reset")

ATTRIBUTES: dict[str, AttributeSpec] = {
    "placeholder": AttributeSpec("Placeholder", "string", "Content"),
    "href": AttributeSpec("Link URL", "string", "Behavior"),
    "src": AttributeSpec("Image URL", "string", "Content"),
    "alt": AttributeSpec("Alt Text", "string", "Content"),
    "title": AttributeSpec("Title", "string", "Content"),
    "name": AttributeSpec("Name", "string", "Behavior"),
    "value": AttributeSpec("Value", "string", "Content"),
    "htmlFor": AttributeSpec("For", "string", "Behavior"),
    "type": AttributeSpec("Type", "select", "Behavior", _INPUT_TYPES),
    "target": AttributeSpec("Target", "select", "Behavior", ("_self", "_blank", "_parent", "_top")),
    "variant": AttributeSpec(
        "Variant", "select", "Appearance", ("default", "destructive", "outline", "secondary", "ghost", "link")
    ),
    "size": AttributeSpec("Size", "select", "Appearance", ("default", "sm", "lg", "icon")),
    "orientation": AttributeSpec("Orientation", "select", "Layout", ("horizontal", "vertical")),
    "disabled": AttributeSpec("Disabled", "boolean", "Behavior"),
    "checked": AttributeSpec("Checked", "boolean", "Behavior"),
    "required": AttributeSpec("Required", "boolean", "Behavior"),
    "readOnly": AttributeSpec("Read Only", "boolean", "Behavior"),
    "min": AttributeSpec("Min", "number", "Behavior"),
    "max": AttributeSpec("Max", "number", "Behavior"),
    "step": AttributeSpec("Step", "number", "Behavior"),
    "rows": AttributeSpec("Rows", "number", "Behavior"),
}

_BADGE_VARIANTS = ("default", "secondary", "destructive", "outline")

# Attributes offered even when absent, keyed by raw tag
_SUGGESTED: dict[str, tuple[str, ...]] = {
    "img": ("src", "alt"),
    "a": ("href",),
    "input": ("placeholder", "type"),
    "Input": ("placeholder", "type"),
    "Button": ("variant", "size"),
    "Badge": ("variant",),
}


def _attribute_options(name: str, tag: str, type_: str) -> tuple[str, ...]:
    if name == "type" and type_ == "button":
        return _BUTTON_TYPES
    if name == "variant" and type_ == "badge":
        return _BADGE_VARIANTS
    return ATTRIBUTES[name].options


def _coerce_attribute(spec: AttributeSpec, value: Any) -> Any:
    if spec.type == "boolean":
        return value if isinstance(value, bool) else None
    if spec.type == "number":
        if isinstance(value, bool):
            return None
        if isinstance(value, int | float):
            return value
        try:
            number = float(value)
        except ValueError:
            return None
        return int(number) if number.is_integer() else number
    if isinstance(value, bool):
        return None
    return str(value) if not isinstance(value, str) else value


def _attribute_property(name: str, value: Any, tag: str, type_: str) -> PropertyDefinition:
    spec = ATTRIBUTES[name]
    options = _attribute_options(name, tag, type_)
    return PropertyDefinition(
        name=name,
        label=spec.label,
        type=spec.type,
        mapping=MAPPING_ATTRIBUTE,
        category=spec.category,
        default_value=value,
        options=[PropertyOption(label=o, value=o) for o in options] if spec.type == "select" else None,
        attribute=name,
    )


def _attribute_properties(markup: MarkupNode, type_: str, tree: SourceTree) -> list[PropertyDefinition]:
    props: list[PropertyDefinition] = []
    present: set[str] = set()
    for attribute in jsx_parser.attributes(markup.opening):
        name = jsx_parser.attribute_name(attribute, tree)
        if name not in ATTRIBUTES or name in present:
            continue
        present.add(name)
        value = jsx_parser.literal(attribute, tree)
        if value is None:
            continue
        coerced = _coerce_attribute(ATTRIBUTES[name], value.value)
        if coerced is None:
            continue
        props.append(_attribute_property(name, coerced, markup.tag, type_))

    for name in _SUGGESTED.get(markup.tag, ()):
        if name not in present:
            default = False if ATTRIBUTES[name].type == "boolean" else ""
            props.append(_attribute_property(name, default, markup.tag, type_))
    return props


# ---------------------------------------------------------------------------
# Class groups and content
# ---------------------------------------------------------------------------


def _class_properties(tokens: list[str], catalog: StyleCatalog) -> list[PropertyDefinition]:
    matched: dict[str, str] = {}
    for token in tokens:
        group = catalog.group_for_token(token)
        if group is not None and group.property not in matched:
            matched[group.property] = token

    props: list[PropertyDefinition] = []
    for group in catalog.class_groups:
        if group.property in matched:
            default = matched[group.property]
        elif group.common:
            default = ""
        else:
            continue
        props.append(
            PropertyDefinition(
                name=group.property,
                label=group.label,
                type=group.type,
                mapping=MAPPING_CLASS_GROUP,
                category=group.category,
                default_value=default,
                options=[PropertyOption(label=label, value=token) for label, token in group.options] or None,
                class_group=group.name,
            )
        )
    return props


def _content_property(markup: MarkupNode, tree: SourceTree) -> PropertyDefinition | None:
    text = jsx_parser.inline_text(markup, tree)
    if text is None:
        return None
    return PropertyDefinition(
        name="text",
        label="Text",
        type="textarea" if "\n" in text.text or len(text.text) > 80 else "string",
        mapping=MAPPING_CONTENT,
        category="Content",
        default_value=text.text,
    )


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


def _element(markup: MarkupNode, tree: SourceTree, catalog: StyleCatalog, seen: Counter[str]) -> ComponentElement:
    type_ = element_type(markup.tag)
    seen[type_] += 1

    properties: list[PropertyDefinition] = []
    content = _content_property(markup, tree)
    if content is not None:
        properties.append(content)
    properties.extend(_attribute_properties(markup, type_, tree))
    tokens = jsx_parser.class_tokens(markup.opening, tree)
    if tokens is not None:
        properties.extend(_class_properties(tokens, catalog))

    element = ComponentElement(
        id=element_id(type_, markup.path),
        type=type_,
        name=display_name(type_, seen[type_]),
        tag=markup.tag,
        properties=properties,
    )
    element.children = [_element(child, tree, catalog, seen) for child in markup.children]
    return element


def _variants(tree: SourceTree) -> list[VariantDefinition]:
    return [
        VariantDefinition(
            name=name,
            options=[VariantOption(value=value, label=value.replace("-", " ").title(), classes=classes.split()) for value, classes in options],
        )
        for name, options in jsx_parser.variant_tables(tree)
    ]


def extract(source: str, root_name: str | None = None, catalog: StyleCatalog = DEFAULT_CATALOG) -> ComponentStructure:
    """
    Extract the editable structure of one component.

    Raises ParseError when no component definition or markup can be located.
    """
    tree = jsx_parser.parse(source)
    name, roots = jsx_parser.locate_component(tree, root_name)
    seen: Counter[str] = Counter()
    structure = ComponentStructure(
        name=name,
        elements=[_element(root, tree, catalog, seen) for root in roots],
        variants=_variants(tree),
    )
    logger.debug("extract: %s with %d element(s)", name, sum(seen.values()))
    return structure


# ---------------------------------------------------------------------------
# Panel helpers
# ---------------------------------------------------------------------------


def group_by_category(
    properties: list[PropertyDefinition],
) -> tuple[dict[str, list[PropertyDefinition]], list[PropertyDefinition]]:
    """
    Group properties by category for the property panel.

    Returns (categories, uncategorized). Known categories come first in panel
    order, unknown ones follow in first-seen order.
    """
    grouped: dict[str, list[PropertyDefinition]] = {}
    uncategorized: list[PropertyDefinition] = []
    for prop in properties:
        if not prop.category:
            uncategorized.append(prop)
            continue
        grouped.setdefault(prop.category, []).append(prop)

    ordered: dict[str, list[PropertyDefinition]] = {c: grouped[c] for c in CATEGORY_ORDER if c in grouped}
    for category, props in grouped.items():
        ordered.setdefault(category, props)
    return ordered, uncategorized


def default_property_values(structure: ComponentStructure) -> dict[str, Any]:
    """The "{elementId}.{propertyName}" → default value map for a fresh session."""
    return {
        property_key(element.id, prop.name): prop.default_value
        for element in structure.iter_elements()
        for prop in element.properties
        if prop.default_value is not None
    }
