"""
Tweak configuration — all environment variables in one place.

Read from environment at import time. Nothing is required; the kernel itself
never reads the environment and takes every knob as an argument.
"""

from __future__ import annotations

import os


class Settings:
    """Application settings from environment variables."""

    # Application
    ENVIRONMENT: str = os.environ.get("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")

    # Sandbox (Node bridge)
    NODE_BINARY: str = os.environ.get("NODE_BINARY", "node")
    SANDBOX_BRIDGE_PATH: str = os.environ.get("SANDBOX_BRIDGE_PATH", "")
    SANDBOX_CALL_TIMEOUT_SECONDS: float = float(os.environ.get("SANDBOX_CALL_TIMEOUT_SECONDS", "10"))
    SANDBOX_LOAD_TIMEOUT_SECONDS: float = float(os.environ.get("SANDBOX_LOAD_TIMEOUT_SECONDS", "60"))

    # Start loading the compiler at startup instead of on the first request
    SANDBOX_PRELOAD: bool = os.environ.get("SANDBOX_PRELOAD", "true").lower() == "true"


# Singleton instance
settings = Settings()
