"""Binding between the admin editor form and the content document.

Each form field maps to a dotted path in the document. On save only the
fields whose submitted value differs from the stored draft are written, and
the touched top-level keys become a shallow patch for the draft store.
"""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass
from typing import Any, Mapping

from .content import get_path, set_path


class FormError(ValueError):
    """A submitted field could not be parsed."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field


@dataclass(frozen=True)
class FieldBinding:
    name: str
    path: str
    label: str
    kind: str = "text"  # text | textarea | list | json | color

    @property
    def top_key(self) -> str:
        return self.path.split(".", 1)[0]


FIELD_BINDINGS: tuple[FieldBinding, ...] = (
    FieldBinding("site-title", "site.title", "Site title"),
    FieldBinding("seo-description", "site.seo.description", "SEO description", "textarea"),
    FieldBinding("seo-keywords", "site.seo.keywords", "SEO keywords", "list"),
    FieldBinding("seo-og-image", "site.seo.ogImage", "Social preview image URL"),
    FieldBinding("nav", "nav", "Navigation links", "json"),
    FieldBinding("hero-headline", "hero.headline", "Headline"),
    FieldBinding("hero-subheadline", "hero.subheadline", "Subheadline"),
    FieldBinding("hero-description", "hero.description", "Description", "textarea"),
    FieldBinding("hero-cta-text", "hero.ctaText", "Button text"),
    FieldBinding("hero-cta-href", "hero.ctaHref", "Button link"),
    FieldBinding("hero-image", "hero.image", "Hero image URL"),
    FieldBinding("hero-focus-list", "hero.focusList", "Focus list", "list"),
    FieldBinding("about-title", "sections.about.title", "About title"),
    FieldBinding("about-p1", "sections.about.p1", "About paragraph 1", "textarea"),
    FieldBinding("about-p2", "sections.about.p2", "About paragraph 2", "textarea"),
    FieldBinding("about-enjoy", "sections.about.enjoyList", "Things I enjoy", "list"),
    FieldBinding("about-apart", "sections.about.apartList", "What sets me apart", "list"),
    FieldBinding("projects", "sections.projects", "Projects", "json"),
    FieldBinding("skills", "sections.skills", "Skills", "json"),
    FieldBinding("experience", "sections.experience", "Experience", "json"),
    FieldBinding("achievements", "sections.achievements", "Achievements", "json"),
    FieldBinding("blog", "sections.blog", "Blog cards", "json"),
    FieldBinding("footer-email", "footer.email", "Contact email"),
    FieldBinding("footer-phone", "footer.phone", "Phone"),
    FieldBinding("footer-address", "footer.address", "Address"),
    FieldBinding("footer-copyright", "footer.copyright", "Copyright line"),
    FieldBinding("footer-socials", "footer.socials", "Social links", "json"),
    FieldBinding("theme-primary", "theme.primary", "Primary colour", "color"),
    FieldBinding("theme-secondary", "theme.secondary", "Secondary colour", "color"),
    FieldBinding("theme-bg", "theme.bg", "Background colour", "color"),
    FieldBinding("custom-sections", "customSections", "Custom sections", "json"),
    FieldBinding("section-order", "sectionOrder", "Section order", "list"),
)

BINDINGS_BY_NAME = {binding.name: binding for binding in FIELD_BINDINGS}


def format_value(binding: FieldBinding, value: Any) -> str:
    """Render a stored value as the string shown in the form control."""
    if binding.kind == "list":
        return "\n".join(str(item) for item in value) if isinstance(value, list) else ""
    if binding.kind == "json":
        return json.dumps(value if value is not None else [], indent=2, ensure_ascii=False)
    return "" if value is None else str(value)


def parse_value(binding: FieldBinding, raw: str | None) -> Any:
    """
    Parse a submitted form string into the value stored in the document.

    Raises:
        FormError: When a JSON field does not hold valid JSON
    """
    raw = raw or ""
    if binding.kind == "list":
        # One item per line; items may contain commas
        return [item.strip() for item in raw.splitlines() if item.strip()]
    if binding.kind == "json":
        if not raw.strip():
            return []
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise FormError(binding.name, f"{binding.label}: invalid JSON ({e.msg} at line {e.lineno})")
    return raw.strip()


def content_to_form(content: dict[str, Any]) -> dict[str, str]:
    return {binding.name: format_value(binding, get_path(content, binding.path)) for binding in FIELD_BINDINGS}


def dirty_fields(content: dict[str, Any], form: Mapping[str, str]) -> dict[str, Any]:
    """
    Fields whose submitted value differs from the stored one.

    Values are compared after parsing, so reformatting JSON or list
    whitespace does not mark a field dirty. Fields absent from the form are
    left alone.

    Returns:
        Mapping of field name to parsed value

    Raises:
        FormError: From the first field that fails to parse
    """
    dirty: dict[str, Any] = {}
    for binding in FIELD_BINDINGS:
        if binding.name not in form:
            continue
        value = parse_value(binding, form[binding.name])
        current = get_path(content, binding.path)
        if binding.kind in ("text", "textarea", "color") and current is None:
            current = ""
        if value != current:
            dirty[binding.name] = value
    return dirty


def build_patch(content: dict[str, Any], dirty: Mapping[str, Any]) -> dict[str, Any]:
    """Top-level patch carrying the dirty values, each key copied whole from ``content``."""
    patch: dict[str, Any] = {}
    for name, value in dirty.items():
        binding = BINDINGS_BY_NAME[name]
        top = binding.top_key
        if top not in patch:
            patch[top] = copy.deepcopy(content.get(top))
        if "." in binding.path:
            if not isinstance(patch[top], dict):
                patch[top] = {}
            set_path(patch, binding.path, value)
        else:
            patch[top] = value
    return patch
