"""
Tweak Kernel — Validation

Checks proposed property values before they reach the mutator, and checks an
extracted structure against its source.

Validation is structural (well-formed CSS value? right Python type?), not
semantic. Every validator returns a list of error strings. Empty list = valid.
"""

from __future__ import annotations

import re
from collections import Counter
from typing import Any

from engine.kernel import jsx_parser
from engine.kernel.catalog import DEFAULT_CATALOG, StyleCatalog
from engine.kernel.errors import MutationError, ValidationError
from engine.kernel.extractor import element_path
from engine.kernel.types import (
    MAPPING_ATTRIBUTE,
    MAPPING_CLASS_GROUP,
    MAPPING_CONTENT,
    ComponentStructure,
    PropertyDefinition,
)

# ---------------------------------------------------------------------------
# CSS value grammar
# ---------------------------------------------------------------------------

_UNITS = r"(?:px|rem|em|%|vh|vw|svh|dvh|vmin|vmax|pt|ch|ex)"
_NUMBER = r"-?(?:\d+\.?\d*|\.\d+)"
_CSS_FUNCTION = r"(?:calc|clamp|min|max|var|rgb|rgba|hsl|hsla|oklch|oklab|lab|lch|color-mix)\([^;{}<>]*\)"

_LENGTH_RE = re.compile(rf"^(?:{_NUMBER}{_UNITS}?|auto|{_CSS_FUNCTION})$")
_COLOR_RE = re.compile(
    rf"^(?:#(?:[0-9a-fA-F]{{3,4}}|[0-9a-fA-F]{{6}}|[0-9a-fA-F]{{8}})|{_CSS_FUNCTION}|[a-zA-Z]+)$"
)
_FREE_RE = re.compile(r"^[\w\s.#%(),/+\-]+$")
_FORBIDDEN = re.compile(r"[;{}<>\"'`\[\]]")


def is_css_length(value: str) -> bool:
    return _LENGTH_RE.match(value.strip()) is not None


def is_css_color(value: str) -> bool:
    return _COLOR_RE.match(value.strip()) is not None


# ---------------------------------------------------------------------------
# Property values
# ---------------------------------------------------------------------------


def validate_value(prop: PropertyDefinition, value: Any, catalog: StyleCatalog = DEFAULT_CATALOG) -> list[str]:
    """
    Validate one proposed value for `prop`.
    Returns a list of error strings. Empty list = valid.

    None and the empty string always pass: they clear the property.
    """
    if value is None or (isinstance(value, str) and value.strip() == ""):
        return []
    validator = _VALIDATORS.get(prop.mapping)
    if validator is None:
        return [f"{prop.name}: unknown mapping '{prop.mapping}'"]
    return validator(prop, value, catalog)


def require_valid(prop: PropertyDefinition, value: Any, catalog: StyleCatalog = DEFAULT_CATALOG) -> None:
    """Raise ValidationError when `value` is not acceptable for `prop`."""
    errors = validate_value(prop, value, catalog)
    if errors:
        raise ValidationError(errors[0], errors)


def _validate_class_group(prop: PropertyDefinition, value: Any, catalog: StyleCatalog) -> list[str]:
    if not isinstance(value, str | int | float) or isinstance(value, bool):
        return [f"{prop.name}: expected a string, got {type(value).__name__}"]
    text = str(value).strip()
    group = catalog.group(prop.class_group) if prop.class_group else catalog.group_for_property(prop.name)
    if group is None:
        return [f"{prop.name}: no class group"]

    if group.matches(text) or group.matches(group.prefix + text):
        return []
    if _FORBIDDEN.search(text):
        return [f"{prop.name}: invalid characters in '{text}'"]
    if catalog.requires_unit(group.property):
        if not is_css_length(text):
            return [f"{prop.name}: invalid CSS length '{text}'"]
        if text.startswith("-") and not catalog.is_margin(group.property):
            return [f"{prop.name}: negative values are not allowed"]
    elif group.type == "color":
        if not is_css_color(text):
            return [f"{prop.name}: invalid CSS color '{text}'"]
    elif not _FREE_RE.match(text):
        return [f"{prop.name}: invalid CSS value '{text}'"]

    # The written token must read back as this group, or the next edit cannot find it.
    token = catalog.to_token(group, text)
    if catalog.group_for_token(token) != group:
        return [f"{prop.name}: '{text}' has no {group.label.lower()} utility"]
    return []


def _validate_attribute(prop: PropertyDefinition, value: Any, catalog: StyleCatalog) -> list[str]:
    if prop.type == "boolean":
        if not isinstance(value, bool):
            return [f"{prop.name}: expected a boolean, got {type(value).__name__}"]
        return []

    if prop.type == "number":
        if isinstance(value, bool):
            return [f"{prop.name}: expected a number, got bool"]
        try:
            number = float(value)
        except (TypeError, ValueError):
            return [f"{prop.name}: expected a number, got '{value}'"]
        errors: list[str] = []
        if prop.min is not None and number < prop.min:
            errors.append(f"{prop.name}: {number:g} is below the minimum {prop.min:g}")
        if prop.max is not None and number > prop.max:
            errors.append(f"{prop.name}: {number:g} is above the maximum {prop.max:g}")
        return errors

    if isinstance(value, bool) or not isinstance(value, str | int | float):
        return [f"{prop.name}: expected a string, got {type(value).__name__}"]
    if "\n" in str(value) and prop.type != "textarea":
        return [f"{prop.name}: line breaks are not allowed"]
    return []


def _validate_content(prop: PropertyDefinition, value: Any, catalog: StyleCatalog) -> list[str]:
    if not isinstance(value, str):
        return [f"{prop.name}: expected text, got {type(value).__name__}"]
    return []


_VALIDATORS = {
    MAPPING_CLASS_GROUP: _validate_class_group,
    MAPPING_ATTRIBUTE: _validate_attribute,
    MAPPING_CONTENT: _validate_content,
}


# ---------------------------------------------------------------------------
# Structures
# ---------------------------------------------------------------------------


def validate_structure(
    structure: ComponentStructure,
    source: str,
    catalog: StyleCatalog = DEFAULT_CATALOG,
) -> tuple[list[str], list[str]]:
    """
    Check a structure against the source it claims to describe.
    Returns (errors, warnings).

    Errors: missing names, duplicate ids, duplicate property names, source
    that does not parse. Warnings: elements without properties, elements that
    can no longer be located, class lists holding more than one token of a
    class group.
    """
    errors: list[str] = []
    warnings: list[str] = []

    if not structure.name:
        errors.append("Component must have a name")
    if not source.strip():
        errors.append("Component code is required")
        return errors, warnings

    tree = jsx_parser.parse(source)
    if jsx_parser.has_errors(tree):
        errors.append("Code is not valid JSX/TSX")
    roots = jsx_parser.markup_roots(tree)

    elements = list(structure.iter_elements())
    duplicates = sorted(eid for eid, n in Counter(e.id for e in elements).items() if n > 1)
    if duplicates:
        errors.append(f"Duplicate element IDs found: {', '.join(duplicates)}")

    for element in elements:
        if not element.name.strip():
            errors.append(f"Element {element.id} must have a name")
        if not element.properties:
            warnings.append(f"Element {element.id} has no properties defined")

        names = Counter(p.name for p in element.properties)
        repeated = sorted(n for n, count in names.items() if count > 1)
        if repeated:
            errors.append(f"Element {element.id} has duplicate property names: {', '.join(repeated)}")

        try:
            markup = jsx_parser.find_by_path(roots, element_path(element.id))
        except MutationError as e:
            errors.append(f"Element {element.id}: {e.message}")
            continue
        if markup is None or markup.tag != element.tag:
            warnings.append(f"Element {element.id} may not be found in code")
            continue

        tokens = jsx_parser.class_tokens(markup.opening, tree) or []
        for group in catalog.class_groups:
            matched = [t for t in tokens if group.matches(t)]
            if len(matched) > 1:
                warnings.append(f"Element {element.id} has conflicting {group.label} classes: {' '.join(matched)}")

    return errors, warnings
