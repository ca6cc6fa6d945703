"""
Tweak Kernel — Live Sandbox

compile(preview_source, component_source?) → CompiledComponent | SandboxError

Pipeline:
  1. strip module syntax from both sources (syntax-tree pass)
  2. concatenate the edited component ahead of the preview
  3. transpile through the shared JSX compiler
  4. locate the preview function (default export first)
  5. evaluate against the SandboxScope, minus names the unit declares itself,
     and render to markup

Nothing raises past compile(): every failure comes back as a SandboxError.
This is failure containment, not a security boundary.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from tree_sitter import Node

from engine.kernel import jsx_parser
from engine.kernel.compiler import Compiler, CompilerResource, shared_compiler
from engine.kernel.errors import EditorError, ParseError
from engine.kernel.types import CompiledComponent, SandboxError, SandboxResult

logger = logging.getLogger(__name__)

DIRECTIVES = frozenset({"use client", "use server"})

# ---------------------------------------------------------------------------
# Scope
# ---------------------------------------------------------------------------

RUNTIME_NAMES: tuple[str, ...] = (
    "React",
    "Children",
    "Component",
    "Fragment",
    "PureComponent",
    "StrictMode",
    "Suspense",
    "cloneElement",
    "createContext",
    "createElement",
    "createRef",
    "forwardRef",
    "isValidElement",
    "lazy",
    "memo",
    "startTransition",
    "use",
    "useActionState",
    "useCallback",
    "useContext",
    "useDebugValue",
    "useDeferredValue",
    "useEffect",
    "useId",
    "useImperativeHandle",
    "useInsertionEffect",
    "useLayoutEffect",
    "useMemo",
    "useOptimistic",
    "useReducer",
    "useRef",
    "useState",
    "useSyncExternalStore",
    "useTransition",
)

UI_NAMES: tuple[str, ...] = (
    "Button",
    "Badge",
    "Card",
    "CardContent",
    "CardDescription",
    "CardFooter",
    "CardHeader",
    "CardTitle",
    "Input",
    "Label",
    "Tabs",
    "TabsContent",
    "TabsList",
    "TabsTrigger",
    "Switch",
    "Select",
    "SelectContent",
    "SelectItem",
    "SelectTrigger",
    "SelectValue",
    "Accordion",
    "AccordionContent",
    "AccordionItem",
    "AccordionTrigger",
    "Separator",
    "ScrollArea",
    "NavigationMenu",
    "NavigationMenuContent",
    "NavigationMenuItem",
    "NavigationMenuLink",
    "NavigationMenuList",
    "NavigationMenuTrigger",
    "Dialog",
    "DialogContent",
    "DialogDescription",
    "DialogHeader",
    "DialogTitle",
    "DialogTrigger",
    "Avatar",
    "AvatarImage",
    "AvatarFallback",
)

UTILITY_NAMES: tuple[str, ...] = ("cn", "cva")


@dataclass(frozen=True)
class SandboxScope:
    """
    The identifiers compiled preview code may resolve, grouped by capability.
    Anything not listed here is unresolvable inside the sandbox.

    `icons=None` admits every icon the compiler's icon library exports.
    Runtime names the installed React does not export are left out.
    """

    runtime: tuple[str, ...] = RUNTIME_NAMES
    icons: tuple[str, ...] | None = None
    components: tuple[str, ...] = UI_NAMES
    utilities: tuple[str, ...] = UTILITY_NAMES

    def names(self, available: Mapping[str, Iterable[str]] | None = None) -> tuple[str, ...]:
        available = available or {}
        runtime = self.runtime
        if "runtime" in available:
            exported = set(available["runtime"])
            runtime = tuple(name for name in runtime if name in exported)
        icons = self.icons if self.icons is not None else tuple(available.get("icons", ()))

        seen: dict[str, None] = {}
        for group in (runtime, icons, self.components, self.utilities):
            for name in group:
                seen.setdefault(name, None)
        return tuple(seen)


DEFAULT_SCOPE = SandboxScope()


# ---------------------------------------------------------------------------
# Module syntax
# ---------------------------------------------------------------------------


def _directive(statement: Node, tree: jsx_parser.SourceTree) -> bool:
    if statement.type != "expression_statement":
        return False
    inner = statement.named_children
    if len(inner) != 1 or inner[0].type != "string":
        return False
    return tree.node_text(inner[0])[1:-1] in DIRECTIVES


def _export_edit(statement: Node) -> tuple[int, int]:
    """Byte span to delete for one export statement."""
    declaration = statement.child_by_field_name("declaration")
    if declaration is None:
        declaration = next(
            (c for c in statement.named_children if c.type in ("function_declaration", "class_declaration", "lexical_declaration")),
            None,
        )
    if declaration is not None:
        return statement.start_byte, declaration.start_byte

    value = statement.child_by_field_name("value")
    if value is not None:
        if value.type == "identifier":
            return statement.start_byte, statement.end_byte
        return statement.start_byte, value.start_byte

    # export { a, b }; export * from "x"; export { a } from "x"
    return statement.start_byte, statement.end_byte


def strip_module_syntax(source: str) -> str:
    """
    Remove module-boundary syntax so two fragments can share one scope:
    imports, re-exports, "use client"/"use server" directives, and the
    export keywords in front of declarations. String and template contents
    are never touched.
    """
    tree = jsx_parser.parse(source)
    edits: list[tuple[int, int, bool]] = []
    for statement in tree.root.named_children:
        if statement.type == "import_statement" or _directive(statement, tree):
            edits.append((statement.start_byte, statement.end_byte, True))
        elif statement.type == "export_statement":
            start, end = _export_edit(statement)
            edits.append((start, end, end == statement.end_byte))

    data = tree.data
    for start, end, whole in reversed(edits):
        if whole:
            # take the rest of the line with the statement
            while data[end : end + 1] in (b" ", b"\t"):
                end += 1
            if data[end : end + 1] == b"\n":
                end += 1
        data = data[:start] + data[end:]
    return data.decode("utf-8").strip()


# ---------------------------------------------------------------------------
# Sandbox
# ---------------------------------------------------------------------------


class Sandbox:
    """
    Compile-and-run pipeline over a shared compiler resource.

    compile() is safe to call concurrently; a later call simply supersedes an
    earlier one's displayed result.
    """

    def __init__(
        self,
        resource: CompilerResource | None = None,
        scope: SandboxScope = DEFAULT_SCOPE,
        load_timeout: float | None = 60.0,
    ) -> None:
        self.resource = resource or shared_compiler()
        self.scope = scope
        self.load_timeout = load_timeout

    async def compile(self, preview_source: str, component_source: str | None = None) -> SandboxResult:
        try:
            compiler = await self.resource.acquire()
            return await asyncio.to_thread(self._run, compiler, preview_source, component_source)
        except Exception as e:
            return self._contain(e)

    def compile_sync(self, preview_source: str, component_source: str | None = None) -> SandboxResult:
        try:
            compiler = self.resource.acquire_sync(timeout=self.load_timeout)
            return self._run(compiler, preview_source, component_source)
        except Exception as e:
            return self._contain(e)

    def _run(self, compiler: Compiler, preview_source: str, component_source: str | None) -> CompiledComponent:
        preview = strip_module_syntax(preview_source)
        component = strip_module_syntax(component_source) if component_source else ""
        combined = f"{component}\n\n{preview}" if component else preview
        code = compiler.transform(combined, "preview.tsx")

        # located on the unstripped preview so `export default` still ranks first
        name = jsx_parser.find_function_name(jsx_parser.parse(preview_source))
        if name is None:
            raise ParseError("Could not find component function in preview code")

        # top-level declarations in the unit shadow scope names
        declared = jsx_parser.declared_names(jsx_parser.parse(combined))
        scope = tuple(n for n in self.scope.names(compiler.available_names()) if n not in declared)
        markup = compiler.execute(code, name, list(scope))
        logger.info("sandbox: rendered %s (%d bytes)", name, len(markup))
        return CompiledComponent(name=name, code=code, scope=scope, markup=markup)

    def _contain(self, exc: Exception) -> SandboxError:
        kind = exc.kind if isinstance(exc, EditorError) else "execution"
        message = exc.message if isinstance(exc, EditorError) else str(exc) or type(exc).__name__
        logger.warning("sandbox: %s error: %s", kind, message)
        return SandboxError(kind=kind, message=message)
