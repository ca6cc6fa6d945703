"""
Tweak Kernel — Error Taxonomy

ParseError, TranspileError and ExecutionError are fail-stop for one render
cycle. ValidationError is raised only by callers that prefer exceptions over
the error lists returned by engine.kernel.validation; the mutator never sees
an unvalidated value. MutationError signals a programming error (stale id,
non-literal class list), never bad user input.
"""

from __future__ import annotations


class EditorError(Exception):
    """Base class for every error raised by the kernel."""

    kind = "editor"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ParseError(EditorError):
    """No locatable component or function definition in the source."""

    kind = "parse"


class TranspileError(EditorError):
    """The JSX compiler rejected the combined source."""

    kind = "transpile"


class ExecutionError(EditorError):
    """The compiled code threw while being evaluated or rendered."""

    kind = "execution"


class CompilerUnavailableError(EditorError):
    """The shared JSX compiler resource failed to load."""

    kind = "compiler_unavailable"


class ValidationError(EditorError):
    """A proposed property value failed its format check."""

    kind = "validation"

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or [message]


class MutationError(EditorError):
    """The targeted element or attribute cannot be rewritten in this source."""

    kind = "mutation"
