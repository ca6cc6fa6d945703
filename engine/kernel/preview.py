"""
Tweak Kernel — Preview Renderer

Pure function: (structure, values, catalog?) → RenderNode tree.
No IO. Deterministic: same input → same output.

Each element renders as a wrapper node (margin-family values only) around a
concrete UI primitive or basic tag (everything else). Modeled properties read
their current value from the value map, falling back to the default; keys in
the map that name a style property the element does not model are applied as
free-form overrides.

Class-group values are rendered as classes. Arbitrary-value tokens and
free-form values are also applied as inline style so the override wins over
the primitive's own variant styling.

render_html() turns the tree into markup; render_preview_page() wraps markup
(or a sandbox result) into a standalone page.
"""

from __future__ import annotations

import re
from html import escape as _html_escape
from typing import Any

import chevron

from engine.kernel.catalog import DEFAULT_CATALOG, StyleCatalog, normalize_style_value
from engine.kernel.types import (
    MAPPING_ATTRIBUTE,
    MAPPING_CLASS_GROUP,
    MAPPING_CONTENT,
    CompiledComponent,
    ComponentElement,
    ComponentStructure,
    RenderNode,
    SandboxError,
    split_property_key,
)

# ---------------------------------------------------------------------------
# Component tables
# ---------------------------------------------------------------------------

PRIMITIVES: frozenset[str] = frozenset({"button", "input", "card", "dialog", "navigation-menu", "badge", "label"})

CONTAINER_TAGS: frozenset[str] = frozenset(
    {"div", "section", "header", "footer", "main", "nav", "article", "aside", "form", "ul", "ol", "li"}
)
BASIC_TAGS: frozenset[str] = CONTAINER_TAGS | {"h1", "h2", "h3", "h4", "h5", "h6", "p", "span", "a", "img"}

WRAPPER_CLASS = "relative inline-block"
ROOT_CLASS = "tweak-preview"
UNKNOWN_CLASS = "text-muted-foreground text-sm"
CANVAS_KEYS: tuple[str, ...] = ("width", "height", "maxWidth")

_BASE_CLASSES: dict[str, str] = {
    "Button": "inline-flex items-center justify-center rounded-md text-sm font-medium h-10 px-4 py-2",
    "Input": "flex h-10 w-full max-w-sm rounded-md border border-input bg-background px-3 py-2 text-sm",
    "Card": "w-full max-w-md rounded-lg border bg-card text-card-foreground shadow-sm",
    "CardHeader": "flex flex-col space-y-1.5 p-6",
    "CardTitle": "text-2xl font-semibold leading-none tracking-tight",
    "Dialog": "inline-block",
    "DialogTrigger": "inline-block",
    "DialogContent": "grid gap-4 border bg-background p-6 shadow-lg sm:max-w-[425px]",
    "NavigationMenu": "relative flex max-w-max flex-1 items-center justify-center mx-auto",
    "NavigationMenuList": "flex flex-1 list-none items-center justify-center space-x-1",
    "NavigationMenuItem": "inline-flex h-10 items-center rounded-md px-4 py-2 text-sm font-medium",
    "Badge": "inline-flex items-center rounded-full border px-2.5 py-0.5 text-xs font-semibold",
    "Label": "text-sm font-medium leading-none",
}

# Component → HTML tag for render_html()
_HTML_TAGS: dict[str, str] = {
    "Button": "button",
    "Input": "input",
    "Card": "div",
    "CardHeader": "div",
    "CardTitle": "h3",
    "Dialog": "div",
    "DialogTrigger": "div",
    "DialogContent": "div",
    "NavigationMenu": "nav",
    "NavigationMenuList": "ul",
    "NavigationMenuItem": "li",
    "Badge": "span",
    "Label": "label",
}

_VOID_TAGS = frozenset({"input", "img", "br", "hr"})
_DATA_PROPS = frozenset({"variant", "size", "orientation"})
_BARE_NUMBER = re.compile(r"^-?\d*\.?\d+$")
_ZERO_WIDTH = re.compile(r"^(?:border-0|border-\[0(?:px)?\]|0(?:\.0+)?(?:px|rem|em)?)$")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def render(
    structure: ComponentStructure,
    values: dict[str, Any] | None = None,
    catalog: StyleCatalog = DEFAULT_CATALOG,
) -> RenderNode:
    """
    Render the structure with the current property values.
    Pure function. No side effects. No IO.
    """
    values = values or {}
    overrides = _group_overrides(values)
    root = RenderNode(
        component="div",
        props={"className": ROOT_CLASS},
        style=_canvas_style(values),
        children=[_render_element(e, overrides, catalog) for e in structure.elements],
    )
    return root


def render_html(node: RenderNode | str) -> str:
    """Serialize a RenderNode tree to HTML."""
    if isinstance(node, str):
        return escape(node)

    tag = _HTML_TAGS.get(node.component, node.component)
    attrs = _html_attributes(node)
    if tag in _VOID_TAGS:
        return f"<{tag}{attrs} />"
    inner = "".join(render_html(child) for child in node.children)
    return f"<{tag}{attrs}>{inner}</{tag}>"


def escape(text: str) -> str:
    """HTML-escape user content."""
    return _html_escape(str(text), quote=True)


# ---------------------------------------------------------------------------
# Elements
# ---------------------------------------------------------------------------


class _Buckets:
    """Classes and inline styles collected for one element."""

    def __init__(self) -> None:
        self.classes: list[str] = []
        self.style: dict[str, str] = {}
        self.wrapper_classes: list[str] = []
        self.wrapper_style: dict[str, str] = {}

    def add(self, name: str, value: Any, catalog: StyleCatalog) -> None:
        if value is None or (isinstance(value, str) and not value.strip()):
            return
        margin = catalog.is_margin(name)
        classes = self.wrapper_classes if margin else self.classes
        style = self.wrapper_style if margin else self.style
        key = catalog.style_key(name)
        group = catalog.group_for_property(name)
        text = str(value).strip()

        if group is None:
            if key is not None:
                style[key] = normalize_style_value(key, text, catalog)
            return

        token = catalog.to_token(group, text)
        classes.append(token)
        inner = group.arbitrary_value(token)
        if inner is not None and key is not None:
            style[key] = normalize_style_value(key, inner, catalog)


def _group_overrides(values: dict[str, Any]) -> dict[str, dict[str, Any]]:
    grouped: dict[str, dict[str, Any]] = {}
    for key, value in values.items():
        element_id, name = split_property_key(key)
        if element_id is not None:
            grouped.setdefault(element_id, {})[name] = value
    return grouped


def _canvas_style(values: dict[str, Any]) -> dict[str, str]:
    style: dict[str, str] = {}
    for key in CANVAS_KEYS:
        value = values.get(key)
        if value is None or str(value).strip() == "":
            continue
        text = str(value).strip()
        style[key] = f"{text}px" if _BARE_NUMBER.match(text) else text
    return style


def _apply_border_rule(buckets: _Buckets, width: Any, has_color: bool) -> None:
    """A non-zero border width without a color renders solid in currentColor."""
    if width is None or not str(width).strip() or has_color:
        return
    if _ZERO_WIDTH.match(str(width).strip()):
        return
    buckets.style["borderColor"] = "currentColor"
    buckets.style["borderStyle"] = "solid"


def _render_element(
    element: ComponentElement,
    overrides: dict[str, dict[str, Any]],
    catalog: StyleCatalog,
) -> RenderNode:
    own = overrides.get(element.id, {})
    buckets = _Buckets()
    attrs: dict[str, Any] = {}
    text: str | None = None
    modeled: set[str] = set()
    style_values: dict[str, Any] = {}

    for prop in element.properties:
        modeled.add(prop.name)
        value = own.get(prop.name, prop.default_value)
        if prop.mapping == MAPPING_CONTENT:
            text = None if value is None else str(value)
        elif prop.mapping == MAPPING_ATTRIBUTE:
            if value not in (None, "", False):
                attrs[prop.attribute or prop.name] = value
        elif prop.mapping == MAPPING_CLASS_GROUP:
            style_values[prop.name] = value

    for name, value in own.items():
        if name not in modeled and catalog.style_key(name) is not None:
            style_values[name] = value

    for name, value in style_values.items():
        buckets.add(name, value, catalog)
    _apply_border_rule(
        buckets,
        style_values.get("borderWidth"),
        bool(str(style_values.get("borderColor") or "").strip()),
    )

    children: list[RenderNode | str] = [_render_element(c, overrides, catalog) for c in element.children]
    if text:
        children.insert(0, text)

    primitive = _render_primitive(element, attrs, children, buckets)
    wrapper_class = " ".join([WRAPPER_CLASS, *buckets.wrapper_classes])
    return RenderNode(
        component="div",
        props={"className": wrapper_class, "data-element-id": element.id},
        style=buckets.wrapper_style,
        children=[primitive],
        element_id=element.id,
    )


def _class_name(component: str, classes: list[str]) -> str:
    return " ".join(c for c in [_BASE_CLASSES.get(component, ""), *classes] if c)


def _node(component: str, children: list[RenderNode | str] | None = None, **props: Any) -> RenderNode:
    return RenderNode(component=component, props={"className": _BASE_CLASSES[component], **props}, children=children or [])


def _render_primitive(
    element: ComponentElement,
    attrs: dict[str, Any],
    children: list[RenderNode | str],
    buckets: _Buckets,
) -> RenderNode:
    type_ = element.type
    if type_ in PRIMITIVES:
        component, props, children = _primitive(type_, attrs, children)
    elif type_ in BASIC_TAGS:
        component, props = type_, dict(attrs)
        if type_ == "img":
            children = []
    else:
        return RenderNode(
            component="div",
            props={"className": UNKNOWN_CLASS},
            children=[f"Unknown element: {element.type}"],
        )

    props["className"] = _class_name(component, buckets.classes)
    if not props["className"]:
        del props["className"]
    return RenderNode(component=component, props=props, style=dict(buckets.style), children=children)


def _primitive(
    type_: str, attrs: dict[str, Any], children: list[RenderNode | str]
) -> tuple[str, dict[str, Any], list[RenderNode | str]]:
    props = dict(attrs)
    if type_ == "button":
        props.setdefault("variant", "default")
        props.setdefault("size", "default")
        return "Button", props, children or ["Click me"]
    if type_ == "input":
        props.setdefault("type", "text")
        props.setdefault("placeholder", "Enter text...")
        return "Input", props, []
    if type_ == "card":
        return "Card", props, children or [_node("CardHeader", [_node("CardTitle", ["Card Title"])])]
    if type_ == "dialog":
        trigger = _node("DialogTrigger", [_node("Button", ["Open Dialog"], variant="outline")])
        body = [trigger]
        if children:
            body.append(_node("DialogContent", children))
        return "Dialog", props, body
    if type_ == "navigation-menu":
        items = children or [_node("NavigationMenuItem", ["Getting started"]), _node("NavigationMenuItem", ["Components"])]
        return "NavigationMenu", props, [_node("NavigationMenuList", items)]
    if type_ == "badge":
        props.setdefault("variant", "default")
        return "Badge", props, children or ["Badge"]
    return "Label", props, children or ["Label"]


# ---------------------------------------------------------------------------
# HTML
# ---------------------------------------------------------------------------


def _kebab(key: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "-", key).lower()


def _style_attribute(style: dict[str, str]) -> str:
    return "; ".join(f"{_kebab(k)}: {v}" for k, v in style.items())


def _html_attributes(node: RenderNode) -> str:
    parts: list[str] = []
    for key, value in node.props.items():
        if value is None or value is False:
            continue
        if key in _DATA_PROPS and node.component in _BASE_CLASSES:
            key = f"data-{key}"
        name = {"className": "class", "htmlFor": "for"}.get(key, key)
        if value is True:
            parts.append(f" {name}")
        else:
            parts.append(f' {name}="{escape(value)}"')
    if node.style:
        parts.append(f' style="{escape(_style_attribute(node.style))}"')
    return "".join(parts)


# ---------------------------------------------------------------------------
# Page
# ---------------------------------------------------------------------------

PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>{{title}}</title>
  <script src="https://cdn.tailwindcss.com"></script>
  <style>
    body { margin: 0; padding: 2rem; font-family: ui-sans-serif, system-ui, sans-serif; }
    .tweak-error { color: #b91c1c; border: 1px solid #fecaca; background: #fef2f2; padding: 1rem; border-radius: 0.5rem; }
    .tweak-error pre { white-space: pre-wrap; margin: 0.5rem 0 0; }
  </style>
</head>
<body>
{{#error}}
  <div class="tweak-error" data-error-kind="{{kind}}">
    <strong>{{heading}}</strong>
    <pre>{{message}}</pre>
  </div>
{{/error}}
{{^error}}
  {{{body}}}
{{/error}}
</body>
</html>
"""

_ERROR_HEADINGS: dict[str, str] = {
    "parse": "Component not found",
    "transpile": "Syntax error",
    "execution": "Runtime error",
    "compiler_unavailable": "Compiler unavailable",
}


def render_preview_page(
    content: RenderNode | CompiledComponent | SandboxError,
    title: str = "Preview",
) -> str:
    """
    Render a standalone HTML page for a simulated preview tree or a sandbox
    result. Sandbox errors render a dedicated error state, never partial markup.
    """
    context: dict[str, Any] = {"title": title, "error": False, "body": ""}
    if isinstance(content, SandboxError):
        context["error"] = {
            "kind": content.kind,
            "heading": _ERROR_HEADINGS.get(content.kind, "Preview error"),
            "message": content.message,
        }
    elif isinstance(content, CompiledComponent):
        context["body"] = content.markup
    else:
        context["body"] = render_html(content)
    return chevron.render(PAGE_TEMPLATE, context)
