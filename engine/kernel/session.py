"""
Tweak Kernel — Editing Session

One editing session: the current source text (single source of truth), the
structure extracted from it and the property-value map keyed by
"{elementId}.{propertyName}".

set_value() is the only write path:

  validate → (rejected: keep previous value, return errors)
           → apply_change → re-extract → drop stale keys → Changeset

Ids are only trusted within one extraction pass, so every write re-extracts
and revalidates the keys of the value map against the new structure.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from engine.kernel.catalog import DEFAULT_CATALOG, StyleCatalog
from engine.kernel.errors import MutationError
from engine.kernel.extractor import default_property_values, extract
from engine.kernel.mutator import apply_change
from engine.kernel.preview import render
from engine.kernel.types import (
    Changeset,
    ComponentStructure,
    RenderNode,
    property_key,
    split_property_key,
)
from engine.kernel.validation import validate_value

logger = logging.getLogger(__name__)


@dataclass
class SetValueResult:
    """Outcome of one set_value() call. `changeset` is None when rejected."""

    changeset: Changeset | None = None
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class EditorSession:
    """
    Mutable state of one editing session. Not shared across sessions; the
    surrounding event layer orders writes (last write wins).
    """

    def __init__(
        self,
        source: str,
        root_name: str | None = None,
        catalog: StyleCatalog = DEFAULT_CATALOG,
    ) -> None:
        self.catalog = catalog
        self.root_name = root_name
        self.source = source
        self.structure: ComponentStructure = extract(source, root_name, catalog)
        self.values: dict[str, Any] = {}
        self.history: list[Changeset] = []

    # -- reads ---------------------------------------------------------------

    def get_value(self, element_id: str, name: str) -> Any:
        """Current value: the override if set, else the property's default."""
        key = property_key(element_id, name)
        if key in self.values:
            return self.values[key]
        element = self.structure.find_element(element_id)
        prop = element.get_property(name) if element else None
        return prop.default_value if prop else None

    def effective_values(self) -> dict[str, Any]:
        """Defaults overlaid with the overrides."""
        merged = default_property_values(self.structure)
        merged.update(self.values)
        return merged

    def preview(self) -> RenderNode:
        return render(self.structure, self.values, self.catalog)

    # -- writes --------------------------------------------------------------

    def set_value(self, element_id: str, name: str, value: Any) -> SetValueResult:
        """
        Validate and write one property value into the source.

        Validation failures are returned, not raised, and leave the session
        untouched. MutationError propagates: it means the id or property is
        stale, which is a caller bug.
        """
        element = self.structure.find_element(element_id)
        if element is None:
            raise MutationError(f"unknown element {element_id!r}")
        prop = element.get_property(name)
        if prop is None:
            raise MutationError(f"element {element_id!r} has no property {name!r}")

        errors = validate_value(prop, value, self.catalog)
        if errors:
            logger.debug("session: rejected %s.%s: %s", element_id, name, "; ".join(errors))
            return SetValueResult(errors=errors)

        previous = self.get_value(element_id, name)
        self.source = apply_change(self.source, element, prop, value, self.catalog)
        self.values[property_key(element_id, name)] = value
        self._reextract()

        changeset = Changeset(
            element_id=element_id,
            property=name,
            mapping=prop.mapping,
            previous=previous,
            value=value,
        )
        self.history.append(changeset)
        return SetValueResult(changeset=changeset)

    def set_style_override(self, element_id: str, name: str, value: Any) -> None:
        """Free-form preview-only override; never written into the source."""
        if self.catalog.style_key(name) is None:
            raise MutationError(f"{name!r} is not a style property")
        key = property_key(element_id, name)
        if value is None or value == "":
            self.values.pop(key, None)
        else:
            self.values[key] = value

    def set_canvas(self, name: str, value: Any) -> None:
        """Canvas-level value (width, height, maxWidth) keyed without an element id."""
        if value is None or value == "":
            self.values.pop(name, None)
        else:
            self.values[name] = value

    def reset_element(self, element_id: str) -> None:
        """Clear every override held for one element. The source is unchanged."""
        prefix = f"{element_id}."
        for key in [k for k in self.values if k.startswith(prefix)]:
            del self.values[key]

    def replace_source(self, source: str) -> None:
        """Load new source text (e.g. from the code editor) and revalidate keys."""
        self.source = source
        self._reextract()

    def _reextract(self) -> None:
        self.structure = extract(self.source, self.root_name, self.catalog)
        self.root_name = self.structure.name
        valid: dict[str, set[str]] = {e.id: {p.name for p in e.properties} for e in self.structure.iter_elements()}
        stale = []
        for key in self.values:
            element_id, name = split_property_key(key)
            if element_id is None:
                continue
            if element_id not in valid:
                stale.append(key)
            elif name not in valid[element_id] and self.catalog.style_key(name) is None:
                stale.append(key)
        for key in stale:
            del self.values[key]
        if stale:
            logger.debug("session: dropped %d stale value(s)", len(stale))
