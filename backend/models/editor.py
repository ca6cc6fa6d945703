"""Editor models: request/response shapes for the editing core's HTTP surface."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

MAX_SOURCE_LENGTH = 200_000


class ExtractRequest(BaseModel):
    """What the client sends to POST /api/editor/extract."""

    model_config = {"extra": "forbid"}

    code: str = Field(min_length=1, max_length=MAX_SOURCE_LENGTH)
    root_name: str | None = None


class ExtractResponse(BaseModel):
    """Extracted structure plus the default value map for a fresh session."""

    structure: dict[str, Any]
    defaults: dict[str, Any]
    warnings: list[str] = Field(default_factory=list)


class ApplyChangeRequest(BaseModel):
    """One property change: (elementId, propertyName, newValue) over the given source."""

    model_config = {"extra": "forbid"}

    code: str = Field(min_length=1, max_length=MAX_SOURCE_LENGTH)
    root_name: str | None = None
    element_id: str = Field(min_length=1)
    property: str = Field(min_length=1)
    value: Any = None


class ApplyChangeResponse(BaseModel):
    """New source, re-extracted structure and the changeset for the store."""

    code: str
    structure: dict[str, Any]
    changeset: dict[str, Any]


class PreviewRequest(BaseModel):
    """What the client sends to POST /api/editor/preview."""

    model_config = {"extra": "forbid"}

    code: str = Field(min_length=1, max_length=MAX_SOURCE_LENGTH)
    root_name: str | None = None
    values: dict[str, Any] = Field(default_factory=dict)
    format: Literal["tree", "html", "page"] = "tree"


class PreviewResponse(BaseModel):
    """Simulated preview as a node tree, an HTML fragment or a full page."""

    tree: dict[str, Any] | None = None
    html: str | None = None


class SandboxRequest(BaseModel):
    """What the client sends to POST /api/editor/sandbox."""

    model_config = {"extra": "forbid"}

    preview_code: str = Field(min_length=1, max_length=MAX_SOURCE_LENGTH)
    component_code: str | None = Field(default=None, max_length=MAX_SOURCE_LENGTH)
    page: bool = False


class SandboxResponse(BaseModel):
    """Sandbox outcome. Failures are data (ok=false), not HTTP errors."""

    ok: bool
    name: str | None = None
    markup: str | None = None
    kind: str | None = None
    message: str | None = None
    html: str | None = None


class CatalogResponse(BaseModel):
    """The styling catalog the extractor, mutator and renderer use."""

    class_groups: list[dict[str, Any]]
    unit_properties: list[str]
    margin_properties: list[str]
