"""Turns a normalized content document into the view model of the public page."""

from __future__ import annotations

from typing import Any

from .content import BUILTIN_SECTIONS, normalize_content

_EMBED_REWRITES = (
    ("youtube.com/watch?v=", "youtube.com/embed/"),
    ("youtu.be/", "youtube.com/embed/"),
    ("vimeo.com/", "player.vimeo.com/video/"),
)


def embed_video_url(url: str | None) -> str | None:
    """Rewrite YouTube/Vimeo page links to their embeddable player URLs."""
    if not url or not url.strip():
        return None
    url = url.strip()
    if "player.vimeo.com/" in url or "youtube.com/embed/" in url:
        return url
    for needle, replacement in _EMBED_REWRITES:
        if needle in url:
            return url.replace(needle, replacement, 1)
    return url


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _blog_cards(items: list) -> list[dict[str, Any]]:
    cards = []
    for item in items:
        if not isinstance(item, dict):
            continue
        cards.append(
            {
                "title": item.get("title") or "",
                "summary": item.get("summary") or "",
                "content": item.get("content") or "Content coming soon...",
                "image": item.get("image") or item.get("imageUrl") or "",
                "video_embed": embed_video_url(item.get("video") or item.get("videoUrl")),
            }
        )
    return cards


def ordered_sections(content: dict[str, Any]) -> list[dict[str, Any]]:
    """
    Sections to render after the hero, in ``sectionOrder``.

    Custom sections missing from the order are placed before ``contact``.
    Unknown ids are skipped.
    """
    sections = content.get("sections") or {}
    custom = {
        str(section.get("id")): section
        for section in _as_list(content.get("customSections"))
        if isinstance(section, dict) and section.get("id")
    }

    order = [str(item) for item in _as_list(content.get("sectionOrder"))]
    if "contact" not in order:
        order.append("contact")
    unplaced = [section_id for section_id in custom if section_id not in order]
    contact_at = order.index("contact")
    order[contact_at:contact_at] = unplaced

    rendered: list[dict[str, Any]] = []
    seen: set[str] = set()
    for section_id in order:
        if section_id in seen or section_id == "home":
            continue
        seen.add(section_id)
        if section_id in custom:
            section = custom[section_id]
            rendered.append(
                {
                    "id": section_id,
                    "kind": "custom",
                    "title": section.get("title") or "",
                    "content": section.get("content") or "",
                    "style": section.get("style") or "card",
                }
            )
        elif section_id == "contact":
            rendered.append({"id": "contact", "kind": "contact", "data": content.get("contact") or {}})
        elif section_id == "blog":
            rendered.append({"id": "blog", "kind": "blog", "items": _blog_cards(_as_list(sections.get("blog")))})
        elif section_id == "about":
            rendered.append({"id": "about", "kind": "about", "data": sections.get("about") or {}})
        elif section_id in BUILTIN_SECTIONS:
            rendered.append({"id": section_id, "kind": section_id, "items": _as_list(sections.get(section_id))})
    return rendered


def build_page(raw: dict[str, Any] | None, preview: bool = False) -> dict[str, Any]:
    """Template context for the public page."""
    content = normalize_content(raw)
    return {
        "site": content["site"],
        "nav": _as_list(content.get("nav")),
        "hero": content["hero"],
        "buttons": _as_list((content.get("hero") or {}).get("buttons")),
        "sections": ordered_sections(content),
        "footer": content["footer"],
        "theme": content["theme"],
        "preview": preview,
    }
