"""
Tweak Kernel — the editing core.

Four components:
  extractor  — source → ComponentStructure (pure)
  mutator    — (source, element, property, value) → source (pure, surgical)
  preview    — (structure, values) → RenderNode tree (pure)
  sandbox    — source → compiled, rendered preview or a structured error

Around them:
  catalog     — class-group and unit tables injected into the three pure components
  validation  — value and structure checks (error lists, never raises)
  compiler    — load-once JSX compiler resource shared by every sandbox
  session     — value map + source of truth for one editing session
"""

from engine.kernel.catalog import DEFAULT_CATALOG, ClassGroup, StyleCatalog, normalize_style_value
from engine.kernel.compiler import CompilerResource, shared_compiler
from engine.kernel.errors import (
    CompilerUnavailableError,
    EditorError,
    ExecutionError,
    MutationError,
    ParseError,
    TranspileError,
    ValidationError,
)
from engine.kernel.extractor import default_property_values, extract, group_by_category
from engine.kernel.mutator import apply_change
from engine.kernel.preview import render, render_html, render_preview_page
from engine.kernel.sandbox import Sandbox, SandboxScope, strip_module_syntax
from engine.kernel.session import EditorSession
from engine.kernel.validation import validate_structure, validate_value

__all__ = [
    "extract",
    "group_by_category",
    "default_property_values",
    "apply_change",
    "render",
    "render_html",
    "render_preview_page",
    "Sandbox",
    "SandboxScope",
    "strip_module_syntax",
    "CompilerResource",
    "shared_compiler",
    "EditorSession",
    "validate_value",
    "validate_structure",
    "ClassGroup",
    "StyleCatalog",
    "DEFAULT_CATALOG",
    "normalize_style_value",
    "EditorError",
    "ParseError",
    "TranspileError",
    "ExecutionError",
    "ValidationError",
    "MutationError",
    "CompilerUnavailableError",
]
