"""
Pydantic models for Tweak.

All HTTP data shapes defined here. No imports from routes or services.
"""

from backend.models.editor import (
    ApplyChangeRequest,
    ApplyChangeResponse,
    CatalogResponse,
    ExtractRequest,
    ExtractResponse,
    PreviewRequest,
    PreviewResponse,
    SandboxRequest,
    SandboxResponse,
)

__all__ = [
    # Structure
    "ExtractRequest",
    "ExtractResponse",
    # Edits
    "ApplyChangeRequest",
    "ApplyChangeResponse",
    # Previews
    "PreviewRequest",
    "PreviewResponse",
    "SandboxRequest",
    "SandboxResponse",
    # Catalog
    "CatalogResponse",
]
