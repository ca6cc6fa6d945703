"""
Tweak Kernel — Code Mutator

apply_change(source, element, prop, value) → new source.

Every change is a single splice over the byte span that belongs to the
targeted element and property; all other text is preserved byte for byte.
The element is relocated by the structural path in its id, and its tag is
checked against the one recorded at extraction time.

Values are assumed validated (see engine.kernel.validation). A MutationError
means the caller passed a stale element or a property the source cannot hold.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from tree_sitter import Node

from engine.kernel import jsx_parser
from engine.kernel.catalog import DEFAULT_CATALOG, StyleCatalog
from engine.kernel.errors import MutationError
from engine.kernel.extractor import element_path
from engine.kernel.jsx_parser import Literal, MarkupNode, SourceTree
from engine.kernel.types import (
    MAPPING_ATTRIBUTE,
    MAPPING_CLASS_GROUP,
    MAPPING_CONTENT,
    ComponentElement,
    PropertyDefinition,
)

logger = logging.getLogger(__name__)

_CONTENT_SPECIALS = frozenset("{}<>")
_NUMBER_RE = re.compile(r"^-?\d+(?:\.\d+)?$")
DOUBLE_QUOTE = '"'


def apply_change(
    source: str,
    element: ComponentElement,
    prop: PropertyDefinition,
    value: Any,
    catalog: StyleCatalog = DEFAULT_CATALOG,
) -> str:
    """Write one property value into the source. Returns the new source."""
    tree = jsx_parser.parse(source)
    markup = _locate(tree, element)

    if prop.mapping == MAPPING_CLASS_GROUP:
        result = _apply_class_group(tree, markup, prop, value, catalog)
    elif prop.mapping == MAPPING_ATTRIBUTE:
        result = _apply_attribute(tree, markup, prop, value)
    elif prop.mapping == MAPPING_CONTENT:
        result = _apply_content(tree, markup, value)
    else:
        raise MutationError(f"unknown mapping {prop.mapping!r} for {element.id}.{prop.name}")

    logger.debug("mutate: %s.%s (%s)", element.id, prop.name, prop.mapping)
    return result


def _locate(tree: SourceTree, element: ComponentElement) -> MarkupNode:
    markup = jsx_parser.find_by_path(jsx_parser.markup_roots(tree), element_path(element.id))
    if markup is None or markup.tag != element.tag:
        raise MutationError(f"element {element.id} ({element.tag}) not found in source")
    return markup


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


# ---------------------------------------------------------------------------
# Literal writing
# ---------------------------------------------------------------------------


def _js_string(text: str, quote: str) -> str:
    """A JS string literal using `quote` where possible."""
    if quote == "`":
        escaped = text.replace("\\", "\\\\").replace("`", "\\`").replace("${", "\\${")
        return f"`{escaped}`"
    if quote == "'" and "\n" not in text:
        escaped = text.replace("\\", "\\\\").replace("'", "\\'")
        return f"'{escaped}'"
    return json.dumps(text, ensure_ascii=False)


def _write_string(text: str, style: str, quote: str) -> str:
    """An attribute value holding `text`, in the style the source used."""
    if style in ("expression", "template"):
        return "{" + _js_string(text, quote) + "}"
    if quote in ("'", '"') and quote not in text and "\n" not in text:
        return f"{quote}{text}{quote}"
    return "{" + json.dumps(text, ensure_ascii=False) + "}"


# ---------------------------------------------------------------------------
# class-group
# ---------------------------------------------------------------------------


def _apply_class_group(
    tree: SourceTree,
    markup: MarkupNode,
    prop: PropertyDefinition,
    value: Any,
    catalog: StyleCatalog,
) -> str:
    group = catalog.group(prop.class_group) if prop.class_group else catalog.group_for_property(prop.name)
    if group is None:
        raise MutationError(f"no class group for property {prop.name!r}")

    opening = markup.opening
    attribute = jsx_parser.class_attribute(opening, tree)
    current: Literal | None = None
    if attribute is not None:
        current = jsx_parser.literal(attribute, tree)
        if current is None or not isinstance(current.value, str):
            raise MutationError(f"class list of {markup.tag} is not a static string")

    tokens = current.value.split() if current is not None else []
    kept: list[str] = []
    insert_at: int | None = None
    for token in tokens:
        if group.matches(token):
            if insert_at is None:
                insert_at = len(kept)
            continue
        kept.append(token)

    if not _is_empty(value):
        token = catalog.to_token(group, str(value))
        kept.insert(len(kept) if insert_at is None else insert_at, token)

    if kept == tokens:
        return tree.text
    classes = " ".join(kept)

    if attribute is None:
        return _insert_attribute(tree, markup, f'className="{classes}"')

    value_node = jsx_parser.attribute_value(attribute)
    written = _write_string(classes, current.style, current.quote)
    return tree.splice(value_node.start_byte, value_node.end_byte, written)


# ---------------------------------------------------------------------------
# attribute
# ---------------------------------------------------------------------------


def _format_attribute(name: str, value: Any, prop: PropertyDefinition, previous: Literal | None) -> str:
    if value is True:
        return name
    if prop.type == "number" or isinstance(value, int | float):
        return f"{name}={{{value}}}"
    text = str(value)
    if previous is not None and previous.style in ("string", "expression", "template"):
        return f"{name}={_write_string(text, previous.style, previous.quote)}"
    return f"{name}={_write_string(text, 'string', DOUBLE_QUOTE)}"


def _apply_attribute(tree: SourceTree, markup: MarkupNode, prop: PropertyDefinition, value: Any) -> str:
    name = prop.attribute or prop.name
    attribute = jsx_parser.find_attribute(markup.opening, name, tree)

    if _is_empty(value) or value is False:
        if attribute is None:
            return tree.text
        return _remove_attribute(tree, attribute)

    if prop.type == "number" and isinstance(value, str):
        number = float(value)
        value = int(number) if number.is_integer() else number

    if attribute is None:
        return _insert_attribute(tree, markup, _format_attribute(name, value, prop, None))

    previous = jsx_parser.literal(attribute, tree)
    if previous is not None and previous.style == "number" and isinstance(value, str):
        # a numeric literal stays one while the new text still reads as a number
        number = _as_number(value)
        if number is not None:
            value = number
    if previous is not None and previous.value == value and type(previous.value) is type(value):
        return tree.text
    written = _format_attribute(name, value, prop, previous)
    return tree.splice(attribute.start_byte, attribute.end_byte, written)


def _as_number(text: str) -> int | float | None:
    text = text.strip()
    if not _NUMBER_RE.match(text):
        return None
    return float(text) if "." in text else int(text)


def _insert_attribute(tree: SourceTree, markup: MarkupNode, text: str) -> str:
    """Append an attribute at the end of the opening tag, before `>` or `/>`."""
    opening = markup.opening
    raw = tree.data[opening.start_byte : opening.end_byte]
    end = len(raw) - (2 if markup.self_closing else 1)
    # step back over whitespace before the closing token
    while end > 0 and raw[end - 1 : end].isspace():
        end -= 1
    at = opening.start_byte + end
    return tree.splice(at, at, f" {text}")


def _remove_attribute(tree: SourceTree, attribute: Node) -> str:
    start = attribute.start_byte
    # take the whitespace separating it from the previous token
    while start > 0 and tree.data[start - 1 : start] in (b" ", b"\t", b"\n", b"\r"):
        start -= 1
    return tree.splice(start, attribute.end_byte, "")


# ---------------------------------------------------------------------------
# content
# ---------------------------------------------------------------------------


def _apply_content(tree: SourceTree, markup: MarkupNode, value: Any) -> str:
    text = jsx_parser.inline_text(markup, tree)
    if text is None:
        raise MutationError(f"{markup.tag} has no inline text to replace")
    new = "" if value is None else str(value)
    if new == text.text:
        return tree.text
    # empty text is written as {""} so the element keeps an editable text slot
    if not new or any(c in _CONTENT_SPECIALS for c in new):
        written = "{" + json.dumps(new, ensure_ascii=False) + "}"
    else:
        written = new
    return tree.splice(text.start, text.end, written)
