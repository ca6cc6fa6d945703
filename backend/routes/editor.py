"""Editor routes — extract, apply, preview, sandbox, catalog."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import HTMLResponse

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
from backend.services.sandbox_service import get_sandbox
from engine.kernel.catalog import DEFAULT_CATALOG
from engine.kernel.errors import MutationError, ParseError
from engine.kernel.extractor import default_property_values, extract
from engine.kernel.mutator import apply_change
from engine.kernel.preview import render, render_html, render_preview_page
from engine.kernel.sandbox import Sandbox
from engine.kernel.types import Changeset, ComponentStructure, SandboxError
from engine.kernel.validation import validate_structure, validate_value

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/editor", tags=["editor"])


def _extract(code: str, root_name: str | None) -> ComponentStructure:
    try:
        return extract(code, root_name)
    except ParseError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=e.message) from e


@router.post("/extract", status_code=200)
async def extract_structure(req: ExtractRequest) -> ExtractResponse:
    """Extract the editable structure of a component."""
    structure = _extract(req.code, req.root_name)
    _, warnings = validate_structure(structure, req.code)
    return ExtractResponse(
        structure=structure.to_dict(),
        defaults=default_property_values(structure),
        warnings=warnings,
    )


@router.post("/apply", status_code=200)
async def apply_property_change(req: ApplyChangeRequest) -> ApplyChangeResponse:
    """
    Write one property change into the source.

    422: the source has no component, or the value failed validation
         (the previous value stands; nothing was written).
    409: the element or property does not exist in this source.
    """
    structure = _extract(req.code, req.root_name)
    element = structure.find_element(req.element_id)
    prop = element.get_property(req.property) if element else None
    if element is None or prop is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Unknown element or property: {req.element_id}.{req.property}",
        )

    errors = validate_value(prop, req.value)
    if errors:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=errors)

    try:
        code = apply_change(req.code, element, prop, req.value)
    except MutationError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message) from e

    changeset = Changeset(
        element_id=element.id,
        property=prop.name,
        mapping=prop.mapping,
        previous=prop.default_value,
        value=req.value,
    )
    logger.info("editor: applied %s.%s", element.id, prop.name)
    return ApplyChangeResponse(
        code=code,
        structure=_extract(code, structure.name).to_dict(),
        changeset=changeset.to_dict(),
    )


@router.post("/preview", status_code=200, response_model=None)
async def preview(req: PreviewRequest) -> PreviewResponse | HTMLResponse:
    """Render the simulated preview (no compilation)."""
    structure = _extract(req.code, req.root_name)
    tree = render(structure, req.values)
    if req.format == "page":
        return HTMLResponse(render_preview_page(tree, title=structure.name))
    if req.format == "html":
        return PreviewResponse(html=render_html(tree))
    return PreviewResponse(tree=tree.to_dict())


@router.post("/sandbox", status_code=200)
async def run_sandbox(req: SandboxRequest, sandbox: Sandbox = Depends(get_sandbox)) -> SandboxResponse:
    """Compile and render the preview for real. Errors come back with ok=false."""
    result = await sandbox.compile(req.preview_code, req.component_code)
    html = render_preview_page(result) if req.page else None
    if isinstance(result, SandboxError):
        return SandboxResponse(ok=False, kind=result.kind, message=result.message, html=html)
    return SandboxResponse(ok=True, name=result.name, markup=result.markup, html=html)


@router.get("/catalog", status_code=200)
async def get_catalog() -> CatalogResponse:
    """The class groups and unit tables in use."""
    return CatalogResponse(
        class_groups=[
            {
                "name": g.name,
                "property": g.property,
                "label": g.label,
                "category": g.category,
                "type": g.type,
                "prefix": g.prefix,
                "common": g.common,
                "options": [{"label": label, "value": value} for label, value in g.options],
            }
            for g in DEFAULT_CATALOG.class_groups
        ],
        unit_properties=sorted(DEFAULT_CATALOG.unit_properties),
        margin_properties=sorted(DEFAULT_CATALOG.margin_properties),
    )
