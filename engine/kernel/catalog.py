"""
Tweak Kernel — Styling Catalog

Lookup tables that tie utility classes to semantic properties:
  class groups      — mutually exclusive token families (one per property)
  unit properties   — style keys whose bare numbers need a `px` suffix
  margin family     — style keys that belong on the preview wrapper
  style keys        — property name → inline style key

The catalog is data: the extractor, mutator and preview renderer take a
StyleCatalog argument and default to DEFAULT_CATALOG, so the tables can be
extended without touching the algorithms.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

# ---------------------------------------------------------------------------
# Token grammar
# ---------------------------------------------------------------------------

_PALETTE = (
    "slate|gray|zinc|neutral|stone|red|orange|amber|yellow|lime|green|emerald|"
    "teal|cyan|sky|blue|indigo|violet|purple|fuchsia|pink|rose"
)
_THEME = "primary|secondary|accent|muted|destructive|popover|card|background|foreground|border|input|ring|sidebar"

_COLOR = (
    rf"(?:inherit|current|transparent|black|white|(?:{_PALETTE})-(?:50|[1-9]00|950)"
    rf"|(?:{_THEME})(?:-foreground)?)(?:/\d{{1,3}})?"
)
_ARBITRARY_COLOR = (
    r"\[(?:color:)?(?:#[0-9a-fA-F]{3,8}|(?:rgba?|hsla?|oklch|oklab|lab|lch|color-mix)\([^\]]*\)"
    r"|var\(--[^\]]*\)|[a-zA-Z]+)\]"
)
_LENGTH = r"-?\d*\.?\d+(?:px|rem|em|%|vh|vw|svh|dvh|pt|ch|ex)?"
_ARBITRARY_LENGTH = rf"\[(?:length:)?(?:{_LENGTH}|(?:calc|clamp|min|max)\([^\]]*\))\]"
_SPACE = r"(?:px|\d+(?:\.5)?|\[[^\]\s]+\])"
_SIZE = rf"(?:{_SPACE}|auto|full|screen|fit|min|max|\d+/\d+)"

_BARE_NUMBER = re.compile(r"^-?\d*\.?\d+$")


def _options(*pairs: str) -> tuple[tuple[str, str], ...]:
    """Build (label, token) pairs from alternating arguments."""
    return tuple(zip(pairs[0::2], pairs[1::2], strict=True))


# ---------------------------------------------------------------------------
# Class groups
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ClassGroup:
    """
    A named set of mutually exclusive utility tokens representing one
    semantic property (e.g. every background-color utility).

    Tokens with a variant prefix (`hover:bg-red-500`) never belong to a group;
    they are preserved as-is by the mutator.
    """

    name: str
    property: str
    label: str
    category: str
    prefix: str
    pattern: str
    type: str = "string"
    options: tuple[tuple[str, str], ...] = ()
    common: bool = False
    description: str | None = None
    _regex: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_regex", re.compile(self.pattern))

    def matches(self, token: str) -> bool:
        base = token[1:] if token.startswith("!") else token
        if not base or ":" in base:
            return False
        return self._regex.fullmatch(base) is not None

    def arbitrary_token(self, value: str) -> str:
        """Wrap a free-form value as an arbitrary-value token: p-[16px]."""
        return f"{self.prefix}[{value.strip().replace(' ', '_')}]"

    def arbitrary_value(self, token: str) -> str | None:
        """Inner CSS value of an arbitrary-value token, or None for scale tokens."""
        base = token[1:] if token.startswith("!") else token
        if not base.startswith(self.prefix + "[") or not base.endswith("]"):
            return None
        inner = base[len(self.prefix) + 1 : -1]
        for hint in ("length:", "color:"):
            if inner.startswith(hint):
                inner = inner[len(hint) :]
        return inner.replace("_", " ")


def _spacing_group(name: str, prop: str, label: str, category: str = "Spacing", common: bool = False) -> ClassGroup:
    negative = "-?" if name.startswith("m") else ""
    extra = "|auto" if name.startswith("m") else ""
    return ClassGroup(
        name=name,
        property=prop,
        label=label,
        category=category,
        prefix=f"{name}-",
        pattern=rf"{negative}{name}-(?:{_SPACE}{extra})",
        common=common,
    )


CLASS_GROUPS: tuple[ClassGroup, ...] = (
    # Appearance
    ClassGroup(
        name="bg",
        property="backgroundColor",
        label="Background Color",
        category="Appearance",
        prefix="bg-",
        pattern=rf"bg-(?:{_COLOR}|{_ARBITRARY_COLOR})",
        type="color",
        common=True,
    ),
    ClassGroup(
        name="shadow",
        property="shadow",
        label="Shadow",
        category="Appearance",
        prefix="shadow-",
        pattern=r"shadow(?:-(?:2xs|xs|sm|md|lg|xl|2xl|inner|none|\[[^\]\s]+\]))?",
        type="select",
        options=_options("None", "shadow-none", "Small", "shadow-sm", "Default", "shadow", "Medium", "shadow-md", "Large", "shadow-lg", "XL", "shadow-xl"),
    ),
    ClassGroup(
        name="opacity",
        property="opacity",
        label="Opacity",
        category="Appearance",
        prefix="opacity-",
        pattern=r"opacity-(?:\d{1,3}|\[[^\]\s]+\])",
    ),
    # Typography
    ClassGroup(
        name="text-color",
        property="color",
        label="Text Color",
        category="Typography",
        prefix="text-",
        pattern=rf"text-(?:{_COLOR}|{_ARBITRARY_COLOR})",
        type="color",
        common=True,
    ),
    ClassGroup(
        name="text-size",
        property="fontSize",
        label="Font Size",
        category="Typography",
        prefix="text-",
        pattern=rf"text-(?:(?:xs|sm|base|lg|[2-9]?xl)(?:/\S+)?|{_ARBITRARY_LENGTH})",
        type="select",
        options=_options(
            "Extra Small", "text-xs", "Small", "text-sm", "Base", "text-base", "Large", "text-lg",
            "XL", "text-xl", "2XL", "text-2xl", "3XL", "text-3xl", "4XL", "text-4xl",
        ),
        common=True,
    ),
    ClassGroup(
        name="font-weight",
        property="fontWeight",
        label="Font Weight",
        category="Typography",
        prefix="font-",
        pattern=r"font-(?:thin|extralight|light|normal|medium|semibold|bold|extrabold|black|\[\d{3}\])",
        type="select",
        options=_options(
            "Thin", "font-thin", "Extra Light", "font-extralight", "Light", "font-light",
            "Normal", "font-normal", "Medium", "font-medium", "Semibold", "font-semibold",
            "Bold", "font-bold", "Extra Bold", "font-extrabold", "Black", "font-black",
        ),
        common=True,
    ),
    ClassGroup(
        name="font-family",
        property="fontFamily",
        label="Font Family",
        category="Typography",
        prefix="font-",
        pattern=r"font-(?:sans|serif|mono|\[[a-zA-Z][^\]\s]*\])",
        type="select",
        options=_options("Sans", "font-sans", "Serif", "font-serif", "Mono", "font-mono"),
    ),
    ClassGroup(
        name="text-align",
        property="textAlign",
        label="Text Align",
        category="Typography",
        prefix="text-",
        pattern=r"text-(?:left|center|right|justify|start|end)",
        type="select",
        options=_options("Left", "text-left", "Center", "text-center", "Right", "text-right", "Justify", "text-justify"),
    ),
    # Spacing
    _spacing_group("p", "padding", "Padding", common=True),
    _spacing_group("px", "paddingX", "Padding X"),
    _spacing_group("py", "paddingY", "Padding Y"),
    _spacing_group("pt", "paddingTop", "Padding Top"),
    _spacing_group("pr", "paddingRight", "Padding Right"),
    _spacing_group("pb", "paddingBottom", "Padding Bottom"),
    _spacing_group("pl", "paddingLeft", "Padding Left"),
    _spacing_group("m", "margin", "Margin", common=True),
    _spacing_group("mx", "marginX", "Margin X"),
    _spacing_group("my", "marginY", "Margin Y"),
    _spacing_group("mt", "marginTop", "Margin Top"),
    _spacing_group("mr", "marginRight", "Margin Right"),
    _spacing_group("mb", "marginBottom", "Margin Bottom"),
    _spacing_group("ml", "marginLeft", "Margin Left"),
    _spacing_group("gap", "gap", "Gap", category="Layout"),
    # Border
    ClassGroup(
        name="rounded",
        property="borderRadius",
        label="Border Radius",
        category="Border",
        prefix="rounded-",
        pattern=r"rounded(?:-(?:none|xs|sm|md|lg|xl|2xl|3xl|full|\[[^\]\s]+\]))?",
        type="select",
        options=_options(
            "None", "rounded-none", "Small", "rounded-sm", "Default", "rounded", "Medium", "rounded-md",
            "Large", "rounded-lg", "XL", "rounded-xl", "Full", "rounded-full",
        ),
        common=True,
    ),
    ClassGroup(
        name="border-width",
        property="borderWidth",
        label="Border Width",
        category="Border",
        prefix="border-",
        pattern=rf"border(?:-(?:0|2|4|8|{_ARBITRARY_LENGTH}))?",
        common=True,
    ),
    ClassGroup(
        name="border-color",
        property="borderColor",
        label="Border Color",
        category="Border",
        prefix="border-",
        pattern=rf"border-(?:{_COLOR}|{_ARBITRARY_COLOR})",
        type="color",
        common=True,
    ),
    ClassGroup(
        name="border-style",
        property="borderStyle",
        label="Border Style",
        category="Border",
        prefix="border-",
        pattern=r"border-(?:solid|dashed|dotted|double|hidden|none)",
        type="select",
        options=_options("Solid", "border-solid", "Dashed", "border-dashed", "Dotted", "border-dotted", "None", "border-none"),
    ),
    # Layout
    ClassGroup(
        name="w",
        property="width",
        label="Width",
        category="Layout",
        prefix="w-",
        pattern=rf"w-{_SIZE}",
    ),
    ClassGroup(
        name="h",
        property="height",
        label="Height",
        category="Layout",
        prefix="h-",
        pattern=rf"h-{_SIZE}",
    ),
)


# ---------------------------------------------------------------------------
# Style tables
# ---------------------------------------------------------------------------

MARGIN_PROPERTIES: frozenset[str] = frozenset(
    {
        "margin",
        "marginTop",
        "marginRight",
        "marginBottom",
        "marginLeft",
        "marginX",
        "marginY",
        "marginInline",
        "marginBlock",
    }
)

UNIT_PROPERTIES: frozenset[str] = frozenset(
    {
        "padding",
        "paddingTop",
        "paddingRight",
        "paddingBottom",
        "paddingLeft",
        "paddingX",
        "paddingY",
        "paddingInline",
        "paddingBlock",
        "fontSize",
        "borderWidth",
        "borderRadius",
        "gap",
    }
    | MARGIN_PROPERTIES
)

# Property name → inline style key. Properties absent here never become styles.
STYLE_KEYS: dict[str, str] = {
    "backgroundColor": "backgroundColor",
    "color": "color",
    "shadow": "boxShadow",
    "opacity": "opacity",
    "fontSize": "fontSize",
    "fontWeight": "fontWeight",
    "fontFamily": "fontFamily",
    "textAlign": "textAlign",
    "padding": "padding",
    "paddingX": "paddingInline",
    "paddingY": "paddingBlock",
    "paddingTop": "paddingTop",
    "paddingRight": "paddingRight",
    "paddingBottom": "paddingBottom",
    "paddingLeft": "paddingLeft",
    "margin": "margin",
    "marginX": "marginInline",
    "marginY": "marginBlock",
    "marginTop": "marginTop",
    "marginRight": "marginRight",
    "marginBottom": "marginBottom",
    "marginLeft": "marginLeft",
    "gap": "gap",
    "borderRadius": "borderRadius",
    "borderWidth": "borderWidth",
    "borderColor": "borderColor",
    "borderStyle": "borderStyle",
    "width": "width",
    "height": "height",
}


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StyleCatalog:
    """All styling lookup tables, bundled so callers can inject their own."""

    class_groups: tuple[ClassGroup, ...] = CLASS_GROUPS
    unit_properties: frozenset[str] = UNIT_PROPERTIES
    margin_properties: frozenset[str] = MARGIN_PROPERTIES
    style_keys: dict[str, str] = field(default_factory=lambda: dict(STYLE_KEYS))

    def group(self, name: str) -> ClassGroup | None:
        for group in self.class_groups:
            if group.name == name:
                return group
        return None

    def group_for_property(self, property_name: str) -> ClassGroup | None:
        for group in self.class_groups:
            if group.property == property_name:
                return group
        return None

    def group_for_token(self, token: str) -> ClassGroup | None:
        """The first group whose grammar accepts `token`; groups are disjoint."""
        for group in self.class_groups:
            if group.matches(token):
                return group
        return None

    def requires_unit(self, key: str) -> bool:
        return key in self.unit_properties

    def is_margin(self, key: str) -> bool:
        return key in self.margin_properties

    def style_key(self, property_name: str) -> str | None:
        return self.style_keys.get(property_name)

    def to_token(self, group: ClassGroup, value: str) -> str:
        """
        Coerce an editor value into one token of `group`.

        Order: a token of the group as is; a bare number on a unit-bearing
        group as a px arbitrary value; prefix + value when that forms a token;
        otherwise an arbitrary-value token.
        """
        text = value.strip()
        if group.matches(text):
            return text
        if _BARE_NUMBER.match(text) and self.requires_unit(group.property):
            return group.arbitrary_token(f"{text}px")
        prefixed = f"{group.prefix}{text}"
        if group.matches(prefixed):
            return prefixed
        return group.arbitrary_token(text)


DEFAULT_CATALOG = StyleCatalog()


def normalize_style_value(key: str, value: object, catalog: StyleCatalog = DEFAULT_CATALOG) -> str:
    """
    Normalize a free-form style value for an inline style destination.

    Bare integers/decimals on unit-bearing keys get `px`; values that already
    carry units, colors and keywords pass through unchanged.
    """
    text = str(value).strip()
    if catalog.requires_unit(key) and _BARE_NUMBER.match(text):
        return f"{text}px"
    return text
