"""Sandbox service: the process-wide Sandbox built from settings."""

from __future__ import annotations

import logging
from functools import partial

from backend.config import settings
from engine.kernel.compiler import close_shared_compiler, load_node_compiler, shared_compiler
from engine.kernel.sandbox import Sandbox

logger = logging.getLogger(__name__)

_sandbox: Sandbox | None = None


def get_sandbox() -> Sandbox:
    """FastAPI dependency: the shared Sandbox, created on first use."""
    global _sandbox
    if _sandbox is None:
        loader = partial(
            load_node_compiler,
            node_binary=settings.NODE_BINARY,
            bridge_path=settings.SANDBOX_BRIDGE_PATH or None,
            timeout=settings.SANDBOX_CALL_TIMEOUT_SECONDS,
        )
        _sandbox = Sandbox(resource=shared_compiler(loader), load_timeout=settings.SANDBOX_LOAD_TIMEOUT_SECONDS)
    return _sandbox


def preload() -> None:
    """Start loading the compiler in the background."""
    get_sandbox().resource.start()
    logger.info("sandbox: compiler preload started")


def shutdown() -> None:
    global _sandbox
    _sandbox = None
    close_shared_compiler()
