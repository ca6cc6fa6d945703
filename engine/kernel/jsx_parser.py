"""
Tweak Kernel — TSX Front End

Uses tree-sitter to parse component source (JSX/TSX) into a markup tree with
structural paths. Parse once per call; every helper here is a read-only view
over the syntax tree.

Paths are tuples of sibling indices from a file-level markup root down to a
node, computed over all markup in the file. Fragments are transparent: their
children take their place. Markup nested in attribute values is not part of
the tree.

All offsets are byte offsets into the UTF-8 encoding of the source.
"""

from __future__ import annotations

import html
import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

import tree_sitter_typescript as _ts_mod
from tree_sitter import Language, Node, Parser

from engine.kernel.errors import ParseError

_LANG = Language(_ts_mod.language_tsx())
_PARSER = Parser(_LANG)

MARKUP_TYPES = frozenset({"jsx_element", "jsx_self_closing_element"})
FRAGMENT_TAGS = frozenset({"Fragment", "React.Fragment"})
TEXT_TYPES = frozenset({"jsx_text", "html_character_reference"})

_FUNCTION_TYPES = frozenset({"arrow_function", "function_expression", "function"})
_JS_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v", "0": "\0"}
_ESCAPE_RE = re.compile(r"\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|.)", re.DOTALL)


# ---------------------------------------------------------------------------
# Public types
# ---------------------------------------------------------------------------


@dataclass
class SourceTree:
    """A parsed source file: the text, its UTF-8 bytes and the syntax tree."""

    text: str
    data: bytes
    root: Node

    def node_text(self, node: Node) -> str:
        return self.data[node.start_byte : node.end_byte].decode("utf-8")

    def splice(self, start: int, end: int, replacement: str) -> str:
        """Replace bytes [start, end) and return the new source text."""
        return (self.data[:start] + replacement.encode("utf-8") + self.data[end:]).decode("utf-8")


@dataclass
class MarkupNode:
    """One element of the markup tree (never a fragment)."""

    node: Node
    tag: str
    path: tuple[int, ...]
    children: list[MarkupNode] = field(default_factory=list)

    @property
    def opening(self) -> Node:
        """The node holding the tag name and attributes."""
        if self.node.type == "jsx_self_closing_element":
            return self.node
        return _opening_element(self.node)

    @property
    def self_closing(self) -> bool:
        return self.node.type == "jsx_self_closing_element"

    def walk(self) -> Iterator[MarkupNode]:
        yield self
        for child in self.children:
            yield from child.walk()


@dataclass
class Literal:
    """
    A statically known attribute value.

    style: "string"     className="a b"
           "expression" className={"a b"}
           "template"   className={`a b`}
           "bare"       disabled
           "number"     rows={4}
           "boolean"    disabled={true}
    """

    value: str | float | bool
    style: str
    quote: str = '"'


@dataclass
class InlineText:
    """The inline text of a leaf element and the byte span that holds it."""

    text: str
    start: int
    end: int
    expression: bool = False


@dataclass
class ComponentDefinition:
    """A top-level declaration that renders markup."""

    name: str
    node: Node
    default_export: bool = False

    def contains(self, markup: MarkupNode) -> bool:
        return self.node.start_byte <= markup.node.start_byte and markup.node.end_byte <= self.node.end_byte


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def parse(source: str) -> SourceTree:
    data = source.encode("utf-8")
    tree = _PARSER.parse(data)
    return SourceTree(text=source, data=data, root=tree.root_node)


def has_errors(tree: SourceTree) -> bool:
    return tree.root.has_error


# ---------------------------------------------------------------------------
# Markup tree
# ---------------------------------------------------------------------------


def _opening_element(element: Node) -> Node:
    for child in element.children:
        if child.type == "jsx_opening_element":
            return child
    raise ParseError("jsx element without an opening tag")


def tag_name(node: Node, tree: SourceTree) -> str | None:
    """Tag name of a markup node, None for `<>...</>`."""
    opening = node if node.type == "jsx_self_closing_element" else _opening_element(node)
    name = opening.child_by_field_name("name")
    if name is None:
        return None
    return tree.node_text(name)


def _is_fragment(node: Node, tree: SourceTree) -> bool:
    name = tag_name(node, tree)
    return name is None or name in FRAGMENT_TAGS


def _content_nodes(element: Node) -> list[Node]:
    if element.type == "jsx_self_closing_element":
        return []
    return [c for c in element.children if c.type not in ("jsx_opening_element", "jsx_closing_element")]


def _nearest_markup(nodes: Iterable[Node], tree: SourceTree) -> Iterator[Node]:
    for node in nodes:
        if node.type in MARKUP_TYPES:
            if _is_fragment(node, tree):
                yield from _nearest_markup(_content_nodes(node), tree)
            else:
                yield node
        else:
            yield from _nearest_markup(node.children, tree)


def _build(nodes: Iterable[Node], prefix: tuple[int, ...], tree: SourceTree) -> list[MarkupNode]:
    out: list[MarkupNode] = []
    for index, node in enumerate(_nearest_markup(nodes, tree)):
        path = prefix + (index,)
        out.append(
            MarkupNode(
                node=node,
                tag=tag_name(node, tree) or "",
                path=path,
                children=_build(_content_nodes(node), path, tree),
            )
        )
    return out


def markup_roots(tree: SourceTree) -> list[MarkupNode]:
    """Every file-level markup root, in source order."""
    return _build([tree.root], (), tree)


def find_by_path(roots: list[MarkupNode], path: tuple[int, ...]) -> MarkupNode | None:
    level = roots
    found: MarkupNode | None = None
    for index in path:
        if index < 0 or index >= len(level):
            return None
        found = level[index]
        level = found.children
    return found


# ---------------------------------------------------------------------------
# Component location
# ---------------------------------------------------------------------------


def _unwrap_parens(node: Node | None) -> Node | None:
    while node is not None and node.type == "parenthesized_expression":
        inner = [c for c in node.named_children if c.type != "comment"]
        node = inner[0] if inner else None
    return node


def _renders_component(value: Node | None) -> bool:
    """Function values, or wrappers like forwardRef(...) / memo(...) around one."""
    value = _unwrap_parens(value)
    if value is None:
        return False
    if value.type in _FUNCTION_TYPES:
        return True
    if value.type == "call_expression":
        args = value.child_by_field_name("arguments")
        if args is not None:
            return any(_renders_component(a) for a in args.named_children)
    return False


def _declared_components(statement: Node, tree: SourceTree) -> Iterator[tuple[str, Node]]:
    if statement.type == "function_declaration":
        name = statement.child_by_field_name("name")
        if name is not None:
            yield tree.node_text(name), statement
    elif statement.type in ("lexical_declaration", "variable_declaration"):
        for declarator in statement.named_children:
            if declarator.type != "variable_declarator":
                continue
            name = declarator.child_by_field_name("name")
            if name is not None and name.type == "identifier" and _renders_component(declarator.child_by_field_name("value")):
                yield tree.node_text(name), statement


def find_components(tree: SourceTree) -> list[ComponentDefinition]:
    """
    Top-level declarations with a capitalised name, in source order.

    Recognised: function declarations, const/let arrow or function
    expressions (optionally wrapped in a call such as forwardRef), each
    optionally exported. `export default X` marks a previously declared X.
    """
    found: list[ComponentDefinition] = []
    default_name: str | None = None

    for statement in tree.root.named_children:
        exported_default = False
        target = statement
        if statement.type == "export_statement":
            exported_default = any(c.type == "default" for c in statement.children)
            declaration = statement.child_by_field_name("declaration")
            if declaration is None:
                value = statement.child_by_field_name("value")
                if exported_default and value is not None:
                    if value.type == "identifier":
                        default_name = tree.node_text(value)
                    elif _renders_component(value):
                        found.append(ComponentDefinition("Component", statement, default_export=True))
                    continue
                # export default function Name() {} parses without a field name
                declaration = next(
                    (c for c in statement.named_children if c.type in ("function_declaration", "lexical_declaration")),
                    None,
                )
                if declaration is None:
                    continue
            target = declaration
        for name, _ in _declared_components(target, tree):
            if name[:1].isupper():
                found.append(ComponentDefinition(name, statement, default_export=exported_default))

    if default_name is not None:
        for component in found:
            if component.name == default_name:
                component.default_export = True
    return found


def locate_component(tree: SourceTree, root_name: str | None = None) -> tuple[str, list[MarkupNode]]:
    """
    Pick the component to edit and return (name, its markup roots).

    Order: the declaration named `root_name`, the default export, the first
    declaration that renders markup, then bare top-level markup statements.
    """
    roots = markup_roots(tree)
    candidates = []
    for component in find_components(tree):
        owned = [r for r in roots if component.contains(r)]
        if owned:
            candidates.append((component, owned))

    chosen = None
    if root_name:
        chosen = next((c for c in candidates if c[0].name == root_name), None)
    if chosen is None:
        chosen = next((c for c in candidates if c[0].default_export), None)
    if chosen is None and candidates:
        chosen = candidates[0]
    if chosen is not None:
        return chosen[0].name, chosen[1]

    bare = [r for r in roots if _is_bare_statement(r)]
    if bare:
        return root_name or "Component", bare
    raise ParseError("component not found: no top-level component definition or markup in source")


def _is_bare_statement(markup: MarkupNode) -> bool:
    parent = markup.node.parent
    while parent is not None and parent.type == "parenthesized_expression":
        parent = parent.parent
    return parent is not None and parent.type == "expression_statement" and parent.parent is not None and parent.parent.type == "program"


def find_function_name(tree: SourceTree) -> str | None:
    """
    Name of the function that renders the preview.

    Order: the named default export, the first capitalised component, then
    the first top-level function declaration of any name.
    """
    declared = declared_names(tree)
    components = [c for c in find_components(tree) if c.name in declared]
    chosen = next((c for c in components if c.default_export), None)
    if chosen is None and components:
        chosen = components[0]
    if chosen is not None:
        return chosen.name

    for statement in tree.root.named_children:
        target = statement
        if statement.type == "export_statement":
            target = next((c for c in statement.named_children if c.type == "function_declaration"), statement)
        name = target.child_by_field_name("name") if target.type == "function_declaration" else None
        if name is not None:
            return tree.node_text(name)
    return None


def _pattern_names(pattern: Node, tree: SourceTree) -> Iterator[str]:
    if pattern.type in ("identifier", "shorthand_property_identifier_pattern"):
        yield tree.node_text(pattern)
        return
    for child in pattern.named_children:
        if child.type == "pair_pattern":
            child = child.child_by_field_name("value")
        elif child.type in ("assignment_pattern", "object_assignment_pattern"):
            child = child.child_by_field_name("left")
        if child is not None and child.type != "property_identifier":
            yield from _pattern_names(child, tree)


def declared_names(tree: SourceTree) -> set[str]:
    """Every binding a top-level declaration introduces, exported or not."""
    names: set[str] = set()
    for statement in tree.root.named_children:
        target = statement
        if statement.type == "export_statement":
            target = statement.child_by_field_name("declaration")
            if target is None:
                target = next((c for c in statement.named_children if c.type.endswith("declaration")), statement)
        if target.type in ("function_declaration", "generator_function_declaration", "class_declaration"):
            name = target.child_by_field_name("name")
            if name is not None:
                names.add(tree.node_text(name))
        elif target.type in ("lexical_declaration", "variable_declaration"):
            for declarator in target.named_children:
                name = declarator.child_by_field_name("name") if declarator.type == "variable_declarator" else None
                if name is not None:
                    names.update(_pattern_names(name, tree))
    return names


# ---------------------------------------------------------------------------
# Attributes
# ---------------------------------------------------------------------------


def attributes(opening: Node) -> list[Node]:
    return [c for c in opening.named_children if c.type == "jsx_attribute"]


def attribute_name(attribute: Node, tree: SourceTree) -> str:
    return tree.node_text(attribute.named_children[0])


def attribute_value(attribute: Node) -> Node | None:
    named = attribute.named_children
    if len(named) < 2:
        return None
    return named[-1]


def find_attribute(opening: Node, name: str, tree: SourceTree) -> Node | None:
    for attribute in attributes(opening):
        if attribute_name(attribute, tree) == name:
            return attribute
    return None


def unescape_js(text: str) -> str:
    def replace(match: re.Match[str]) -> str:
        esc = match.group(1)
        if esc.startswith("u{"):
            return chr(int(esc[2:-1], 16))
        if esc[0] in "ux" and len(esc) > 1:
            return chr(int(esc[1:], 16))
        if esc == "\n":
            return ""
        return _JS_ESCAPES.get(esc, esc)

    return _ESCAPE_RE.sub(replace, text)


def _string_literal(node: Node, tree: SourceTree) -> tuple[str, str] | None:
    """Decoded value and quote character of a string or plain template."""
    raw = tree.node_text(node)
    if node.type == "string":
        return unescape_js(raw[1:-1]), raw[0]
    if node.type == "template_string":
        if any(c.type == "template_substitution" for c in node.named_children):
            return None
        return unescape_js(raw[1:-1]), "`"
    return None


def literal(attribute: Node, tree: SourceTree) -> Literal | None:
    """The static value of an attribute, or None when it is computed."""
    value = attribute_value(attribute)
    if value is None:
        return Literal(True, "bare")
    if value.type == "string":
        raw = tree.node_text(value)
        # JSX attribute strings have no escapes
        return Literal(raw[1:-1], "string", raw[0])
    if value.type != "jsx_expression":
        return None
    inner = [c for c in value.named_children if c.type != "comment"]
    if len(inner) != 1:
        return None
    expr = inner[0]
    string = _string_literal(expr, tree)
    if string is not None:
        return Literal(string[0], "template" if expr.type == "template_string" else "expression", string[1])
    if expr.type == "number":
        raw = tree.node_text(expr)
        try:
            return Literal(int(raw) if raw.isdigit() else float(raw), "number")
        except ValueError:
            return None
    if expr.type in ("true", "false"):
        return Literal(expr.type == "true", "boolean")
    return None


# ---------------------------------------------------------------------------
# Inline text
# ---------------------------------------------------------------------------


def inline_text(markup: MarkupNode, tree: SourceTree) -> InlineText | None:
    """
    Inline text of a leaf element: only text children, or exactly one
    `{"string"}` expression. Returns None for anything else.
    """
    if markup.self_closing:
        return None
    content = [c for c in _content_nodes(markup.node) if c.type != "comment"]
    significant = [c for c in content if not (c.type == "jsx_text" and not tree.node_text(c).strip())]
    if not significant:
        return None

    if all(c.type in TEXT_TYPES for c in significant):
        start, end = significant[0].start_byte, significant[-1].end_byte
        raw = tree.data[start:end]
        stripped = raw.strip()
        start += len(raw) - len(raw.lstrip())
        end = start + len(stripped)
        text = html.unescape(stripped.decode("utf-8"))
        return InlineText(text=text, start=start, end=end)

    if len(significant) == 1 and significant[0].type == "jsx_expression":
        inner = [c for c in significant[0].named_children if c.type != "comment"]
        if len(inner) == 1:
            string = _string_literal(inner[0], tree)
            if string is not None:
                node = significant[0]
                return InlineText(text=string[0], start=node.start_byte, end=node.end_byte, expression=True)
    return None


# ---------------------------------------------------------------------------
# Class-variance tables
# ---------------------------------------------------------------------------


def _key_name(key: Node, tree: SourceTree) -> str:
    if key.type == "string":
        return tree.node_text(key)[1:-1]
    return tree.node_text(key)


def _object_pairs(obj: Node, tree: SourceTree) -> Iterator[tuple[str, Node]]:
    for pair in obj.named_children:
        if pair.type != "pair":
            continue
        key = pair.child_by_field_name("key")
        value = pair.child_by_field_name("value")
        if key is not None and value is not None:
            yield _key_name(key, tree), value


def _descendants(node: Node) -> Iterator[Node]:
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def variant_tables(tree: SourceTree) -> list[tuple[str, list[tuple[str, str]]]]:
    """
    Variant tables from every `cva(base, { variants: { ... } })` call:
    [(variant_name, [(option_value, classes), ...]), ...] in source order.
    Options whose classes are not a static string are skipped.
    """
    tables: list[tuple[str, list[tuple[str, str]]]] = []
    for node in _descendants(tree.root):
        if node.type != "call_expression":
            continue
        function = node.child_by_field_name("function")
        if function is None or tree.node_text(function) != "cva":
            continue
        args = node.child_by_field_name("arguments")
        config = [a for a in args.named_children if a.type == "object"] if args is not None else []
        if not config:
            continue
        for key, value in _object_pairs(config[0], tree):
            if key != "variants" or value.type != "object":
                continue
            for variant_name, table in _object_pairs(value, tree):
                if table.type != "object":
                    continue
                options = []
                for option, classes in _object_pairs(table, tree):
                    string = _string_literal(classes, tree)
                    if string is not None:
                        options.append((option, string[0]))
                tables.append((variant_name, options))
    return tables


# ---------------------------------------------------------------------------
# Class lists
# ---------------------------------------------------------------------------

CLASS_ATTRIBUTES = ("className", "class")


def class_attribute(opening: Node, tree: SourceTree) -> Node | None:
    for name in CLASS_ATTRIBUTES:
        attribute = find_attribute(opening, name, tree)
        if attribute is not None:
            return attribute
    return None


def class_tokens(opening: Node, tree: SourceTree) -> list[str] | None:
    """
    Tokens of the element's static class list: [] when there is no class
    attribute, None when the class list is computed.
    """
    attribute = class_attribute(opening, tree)
    if attribute is None:
        return []
    value = literal(attribute, tree)
    if value is None or not isinstance(value.value, str):
        return None
    return value.value.split()
