"""
Tweak Kernel — JSX Compiler Resource

The JSX compiler is loaded once per process and shared by every sandbox.

    uninitialized ──acquire/start──▶ loading ──▶ ready
                                         └─────▶ failed

Exactly one load is attempted. Every caller that arrives while the load is in
flight waits on the same future; a failed load stays failed for the life of
the process and every later acquire raises CompilerUnavailableError.

The load runs on a daemon thread and completes a concurrent.futures.Future,
so sync callers (acquire_sync) and async callers (acquire, any event loop)
wait on the same object.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable
from concurrent.futures import Future
from typing import Protocol

from engine.kernel.errors import CompilerUnavailableError
from engine.kernel.node_bridge import NodeBridge

logger = logging.getLogger(__name__)

UNINITIALIZED = "uninitialized"
LOADING = "loading"
READY = "ready"
FAILED = "failed"


class Compiler(Protocol):
    """What the sandbox needs from a loaded compiler."""

    def transform(self, code: str, filename: str = "preview.tsx") -> str: ...

    def execute(self, code: str, name: str, scope: list[str]) -> str: ...

    def available_names(self) -> dict[str, list[str]]: ...

    def stop(self) -> None: ...


class CompilerResource:
    """Load-once holder for a Compiler."""

    def __init__(self, loader: Callable[[], Compiler], name: str = "jsx") -> None:
        self._loader = loader
        self._name = name
        self._lock = threading.Lock()
        self._state = UNINITIALIZED
        self._future: Future[Compiler] | None = None

    @property
    def state(self) -> str:
        with self._lock:
            return self._state

    def start(self) -> None:
        """Begin loading in the background without waiting (preload)."""
        self._ensure_loading()

    def _ensure_loading(self) -> Future[Compiler]:
        with self._lock:
            if self._future is None:
                future: Future[Compiler] = Future()
                # RUNNING futures cannot be cancelled by a waiter giving up
                future.set_running_or_notify_cancel()
                self._future = future
                self._state = LOADING
                threading.Thread(target=self._load, args=(future,), name=f"{self._name}-compiler-load", daemon=True).start()
            return self._future

    def _load(self, future: Future[Compiler]) -> None:
        logger.info("compiler: loading %s compiler", self._name)
        try:
            compiler = self._loader()
        except Exception as e:
            logger.error("compiler: %s compiler failed to load: %s", self._name, e)
            with self._lock:
                self._state = FAILED
            future.set_exception(CompilerUnavailableError(f"JSX compiler failed to load: {e}"))
            return
        with self._lock:
            self._state = READY
        logger.info("compiler: %s compiler ready", self._name)
        future.set_result(compiler)

    async def acquire(self) -> Compiler:
        """Wait until the compiler is ready. Raises CompilerUnavailableError."""
        return await asyncio.wrap_future(self._ensure_loading())

    def acquire_sync(self, timeout: float | None = None) -> Compiler:
        """Blocking variant of acquire()."""
        try:
            return self._ensure_loading().result(timeout=timeout)
        except TimeoutError as e:
            raise CompilerUnavailableError(f"JSX compiler not ready after {timeout}s") from e

    def close(self) -> None:
        """Stop a loaded compiler. The resource does not load again."""
        with self._lock:
            future = self._future
        if future is None or not future.done() or future.exception() is not None:
            return
        future.result().stop()
        logger.info("compiler: %s compiler stopped", self._name)


# ---------------------------------------------------------------------------
# Process-wide instance
# ---------------------------------------------------------------------------

_shared: CompilerResource | None = None
_shared_lock = threading.Lock()


def load_node_compiler(
    node_binary: str = "node",
    bridge_path: str | None = None,
    timeout: float = 10.0,
) -> Compiler:
    """Start the Node bridge; used as the default loader."""
    return NodeBridge(node_binary=node_binary, bridge_path=bridge_path, timeout=timeout).start()


def shared_compiler(loader: Callable[[], Compiler] | None = None) -> CompilerResource:
    """
    The process-wide CompilerResource, created on first use.

    `loader` only takes effect on the call that creates the instance.
    """
    global _shared
    with _shared_lock:
        if _shared is None:
            _shared = CompilerResource(loader or load_node_compiler)
        return _shared


def close_shared_compiler() -> None:
    """Stop and forget the process-wide instance (shutdown)."""
    global _shared
    with _shared_lock:
        resource, _shared = _shared, None
    if resource is not None:
        resource.close()
