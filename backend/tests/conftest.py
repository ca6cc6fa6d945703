"""
Pytest configuration and fixtures for Tweak backend tests.
"""

from __future__ import annotations

import os

# Set test environment variables before importing config
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SANDBOX_PRELOAD", "false")

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from backend.main import app  # noqa: E402
from backend.services.sandbox_service import get_sandbox  # noqa: E402
from engine.kernel.compiler import CompilerResource  # noqa: E402
from engine.kernel.errors import ExecutionError  # noqa: E402
from engine.kernel.sandbox import Sandbox  # noqa: E402

HERO_SOURCE = """export default function Hero() {
  return (
    <section className="bg-white p-8">
      <h1 className="text-4xl font-bold">Welcome</h1>
      <Button variant="outline">Get started</Button>
    </section>
  )
}
"""


class StubCompiler:
    """Echoes the function name instead of running Node."""

    def transform(self, code: str, filename: str = "preview.tsx") -> str:
        return code

    def execute(self, code: str, name: str, scope: list[str]) -> str:
        if "throw" in code:
            raise ExecutionError("Boom")
        return f"<div>{name}</div>"

    def available_names(self) -> dict[str, list[str]]:
        return {"runtime": ["React", "useState"], "icons": ["Search"]}

    def stop(self) -> None:
        pass


@pytest.fixture
def hero_source() -> str:
    return HERO_SOURCE


@pytest.fixture
def stub_sandbox():
    """Route /sandbox through a stub compiler for the duration of a test."""
    sandbox = Sandbox(resource=CompilerResource(StubCompiler))
    app.dependency_overrides[get_sandbox] = lambda: sandbox
    yield sandbox
    app.dependency_overrides.pop(get_sandbox, None)


@pytest_asyncio.fixture
async def async_client():
    """HTTP client bound to the app (no network, no lifespan)."""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
