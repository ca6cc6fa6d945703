"""Node bridge for compiling and running preview components."""

from __future__ import annotations

import json
import logging
import select
import subprocess
import threading
from pathlib import Path
from typing import Any

from engine.kernel.errors import CompilerUnavailableError, ExecutionError, TranspileError

logger = logging.getLogger(__name__)

BRIDGE_PATH = Path(__file__).parent / "jsx_bridge.js"

_ERRORS = {
    "transpile": TranspileError,
    "execution": ExecutionError,
}


class NodeBridge:
    """
    Manages a long-lived Node child process running jsx_bridge.js.

    One JSON request per line on stdin, one JSON response per line on stdout.
    Calls are serialized; a call that exceeds `timeout` kills the process and
    the next call spawns a fresh one.
    """

    def __init__(
        self,
        node_binary: str = "node",
        bridge_path: Path | str | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.node_binary = node_binary
        self.bridge_path = Path(bridge_path) if bridge_path else BRIDGE_PATH
        self.timeout = timeout
        self.process: subprocess.Popen[str] | None = None
        self._id = 0
        self._lock = threading.Lock()
        self._started = False
        self._available: dict[str, list[str]] | None = None

    def start(self) -> NodeBridge:
        """Spawn the Node process and wait for its ready line."""
        with self._lock:
            self._spawn_locked()
            self._started = True
        return self

    def _spawn_locked(self) -> None:
        if not self.bridge_path.exists():
            raise RuntimeError(f"Bridge script not found at: {self.bridge_path}")

        try:
            version = subprocess.run(
                [self.node_binary, "--version"],
                capture_output=True,
                check=True,
                text=True,
                timeout=5,
            )
        except (FileNotFoundError, subprocess.SubprocessError) as e:
            raise RuntimeError("Node.js not found. Please install Node.js 18+ from https://nodejs.org") from e

        try:
            self.process = subprocess.Popen(
                [self.node_binary, str(self.bridge_path)],
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                bufsize=1,  # Line buffered
            )

            line = self._readline(timeout=max(self.timeout, 30.0))
            if not line:
                stderr = self.process.stderr.read() if self.process.stderr else ""
                raise RuntimeError(f"Node bridge failed to start. stderr: {stderr}")

            msg = json.loads(line)
            if not msg.get("ready"):
                raise RuntimeError("Node bridge failed to send ready signal")

        except Exception as e:
            if self.process:
                self.process.kill()
                self.process = None
            raise RuntimeError(f"Failed to start Node bridge: {e}") from e

        logger.info("bridge: node %s ready (%s)", version.stdout.strip(), self.bridge_path.name)

    def _readline(self, timeout: float) -> str:
        assert self.process is not None and self.process.stdout is not None
        ready, _, _ = select.select([self.process.stdout], [], [], timeout)
        if not ready:
            return ""
        return self.process.stdout.readline()

    def call(self, method: str, params: dict[str, Any]) -> Any:
        """Send one request and return its result."""
        with self._lock:
            if not self._started:
                raise RuntimeError("Node bridge not started")
            if not self.process:
                logger.warning("bridge: restarting node process before %s", method)
                try:
                    self._spawn_locked()
                except RuntimeError as e:
                    raise CompilerUnavailableError(f"Node bridge restart failed: {e}") from e

            self._id += 1
            request = json.dumps({"id": self._id, "method": method, "params": params})

            try:
                self.process.stdin.write(request + "\n")
                self.process.stdin.flush()

                line = self._readline(self.timeout)
                if not line:
                    alive = self.process.poll() is None
                    self._stop_locked()
                    if alive:
                        raise ExecutionError(f"{method} timed out after {self.timeout:g}s")
                    raise RuntimeError("Node bridge died")

                response = json.loads(line)
            except (BrokenPipeError, OSError) as e:
                self._stop_locked()
                raise RuntimeError(f"Node bridge communication failed: {e}") from e

        error = response.get("error")
        if error is not None:
            if isinstance(error, dict):
                exc = _ERRORS.get(error.get("kind", ""), ExecutionError)
                raise exc(error.get("message", "unknown error"))
            raise RuntimeError(f"Node bridge error: {error}")
        return response["result"]

    def transform(self, code: str, filename: str = "preview.tsx") -> str:
        """Compile JSX/TSX to plain JavaScript."""
        return self.call("transform", {"code": code, "filename": filename})

    def execute(self, code: str, name: str, scope: list[str]) -> str:
        """Evaluate compiled code against the named scope and render `name` to markup."""
        return self.call("execute", {"code": code, "name": name, "scope": scope})

    def available_names(self) -> dict[str, list[str]]:
        """Runtime exports and icon names the bridge can resolve, by capability."""
        if self._available is None:
            self._available = self.call("scope", {})
        return self._available

    def ping(self) -> str:
        return self.call("ping", {})

    def _stop_locked(self) -> None:
        if self.process:
            try:
                self.process.terminate()
                self.process.wait(timeout=5)
            except subprocess.TimeoutExpired:
                self.process.kill()
                self.process.wait()
            finally:
                self.process = None

    def stop(self) -> None:
        """Kill the Node process."""
        with self._lock:
            self._started = False
            self._stop_locked()
