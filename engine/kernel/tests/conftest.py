"""
Engine kernel test configuration.

Sample component sources and a fake JSX compiler, so the suite runs without
Node. The fake mimics the real bridge's contract: transform rejects source
that does not parse, execute resolves names only from the given scope.
"""

from __future__ import annotations

import pytest

from engine.kernel import jsx_parser
from engine.kernel.compiler import CompilerResource
from engine.kernel.errors import ExecutionError, TranspileError

HERO_SOURCE = """import { Button } from "@/components/ui/button"

export default function Hero() {
  return (
    <section className="bg-white p-8">
      <h1 className="text-4xl font-bold">Welcome</h1>
      <p>Build faster.</p>
      <Button variant="outline" size="lg">Get started</Button>
    </section>
  )
}
"""

PREVIEW_SOURCE = """"use client"
import { Hero } from "./hero"

export default function HeroPreview() {
  return <Hero />
}
"""


FAKE_EXPORTS = {
    "runtime": ["React", "Fragment", "forwardRef", "memo", "useState", "useEffect"],
    "icons": ["Badge", "Github", "Moon", "Search", "Star"],
}


class FakeCompiler:
    """Stands in for the Node bridge."""

    def __init__(self, markup: str = "<section>ok</section>", execute_error: Exception | None = None) -> None:
        self.markup = markup
        self.execute_error = execute_error
        self.available = FAKE_EXPORTS
        self.transformed: list[str] = []
        self.executed: list[tuple[str, list[str]]] = []
        self.stopped = False

    def transform(self, code: str, filename: str = "preview.tsx") -> str:
        self.transformed.append(code)
        if jsx_parser.has_errors(jsx_parser.parse(code)):
            raise TranspileError(f"{filename}: Unexpected token")
        return f"/* compiled */\n{code}"

    def execute(self, code: str, name: str, scope: list[str]) -> str:
        self.executed.append((name, list(scope)))
        if self.execute_error is not None:
            raise self.execute_error
        if name not in code:
            raise ExecutionError(f"{name} is not defined")
        return self.markup

    def available_names(self) -> dict[str, list[str]]:
        return self.available

    def stop(self) -> None:
        self.stopped = True


@pytest.fixture
def hero_source() -> str:
    return HERO_SOURCE


@pytest.fixture
def preview_source() -> str:
    return PREVIEW_SOURCE


@pytest.fixture
def fake_compiler() -> FakeCompiler:
    return FakeCompiler()


@pytest.fixture
def resource(fake_compiler: FakeCompiler) -> CompilerResource:
    """A private (non-shared) resource that loads the fake compiler."""
    return CompilerResource(lambda: fake_compiler)


@pytest.fixture
def make_resource():
    """Build a resource around a FakeCompiler configured with the given options."""

    def factory(**options) -> CompilerResource:
        compiler = FakeCompiler(**options)
        return CompilerResource(lambda: compiler)

    return factory
