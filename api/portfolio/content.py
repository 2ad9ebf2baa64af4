"""Site content document: default shape, legacy normalization and patch helpers.

The content document is a free-form JSON object. Two shapes exist:

- the legacy shape seeded on first boot (``hero.titlePrefix``, ``about``,
  ``contact`` ... at the top level), and
- the normalized shape rendered by the public page (``site``, ``hero.headline``,
  ``sections.*``, ``footer``).

``normalize_content`` maps the former onto the latter without dropping any key
the stored document carries.
"""

from __future__ import annotations

import copy
from typing import Any

CONTENT_KEY = "site_content"

# Keys never sent to anonymous readers.
SECRET_KEYS = ("sitePassword",)

BUILTIN_SECTIONS = ("home", "about", "projects", "skills", "experience", "achievements", "blog", "contact")


# ============================================================================
# DOCUMENT SHAPES
# ============================================================================


SEED_CONTENT: dict[str, Any] = {
    "hero": {
        "titlePrefix": "Hi, I'm Arya ",
        "titleSuffix": "",
        "subtitle": "Builder. Tech nerd. Systems enjoyer.",
        "description": (
            "I design and build high performance software systems, games, "
            "AI powered tools, and experimental tech projects."
        ),
        "focusList": ["Game engines", "AI-driven tools", "Software architecture"],
        "buttons": [
            {"text": "View Projects", "link": "#projects"},
            {"text": "Contact Me", "link": "#contact"},
        ],
    },
    "about": {"title": "About Me", "p1": "", "p2": "", "enjoyList": [], "apartList": []},
    "projects": [],
    "skills": [],
    "experience": [],
    "achievements": [],
    "blog": [],
    "contact": {"title": "Let's Talk", "subtitle": "", "email": "", "phone": "", "socials": []},
    "customSections": [],
    "sectionOrder": ["home", "about", "projects", "skills", "experience", "blog", "contact"],
    "theme": {"primary": "#00f3ff", "secondary": "#bd00ff", "bg": "#050505"},
    "analytics": {"totalViews": 0},
    "sitePassword": "",
}

DEFAULT_CONTENT: dict[str, Any] = {
    "site": {
        "title": "ARYA | Builder. Tech Nerd. Systems Enjoyer.",
        "seo": {
            "description": "Portfolio and experiments by Arya.",
            "keywords": ["portfolio", "developer", "systems"],
            "ogImage": "",
        },
    },
    "nav": [
        {"label": "Home", "href": "#home"},
        {"label": "About", "href": "#about"},
        {"label": "Projects", "href": "#projects"},
        {"label": "Skills", "href": "#skills"},
        {"label": "Blog", "href": "#blog"},
    ],
    "hero": {
        "headline": "Arya",
        "subheadline": "Builder. Tech Nerd. Systems Enjoyer.",
        "description": "Building useful systems with clean UX.",
        "ctaText": "View Projects",
        "ctaHref": "#projects",
        "image": "",
        "focusList": ["Product systems", "Performance", "Automation"],
    },
    "sections": {
        "about": {"title": "About Me", "p1": "", "p2": "", "enjoyList": [], "apartList": []},
        "projects": [],
        "skills": [],
        "experience": [],
        "achievements": [],
        "blog": [],
    },
    "footer": {
        "email": "",
        "phone": "",
        "address": "",
        "copyright": "Built with curiosity and too much caffeine.",
        "socials": [],
    },
    "theme": {"primary": "#00f3ff", "secondary": "#bd00ff", "bg": "#050505"},
    "customSections": [],
    "sectionOrder": ["home", "about", "projects", "skills", "experience", "blog", "contact"],
    "analytics": {"totalViews": 0},
}


# ============================================================================
# MERGING AND NORMALIZATION
# ============================================================================


def deep_merge(base: Any, incoming: Any) -> Any:
    """
    Merge ``incoming`` over ``base`` and return a new value.

    - ``None`` keeps ``base``
    - lists replace wholesale
    - dicts merge key by key, recursively
    - anything else replaces

    Neither argument is mutated.
    """
    if incoming is None:
        return copy.deepcopy(base)
    if isinstance(incoming, list):
        return copy.deepcopy(incoming)
    if isinstance(incoming, dict):
        result = copy.deepcopy(base) if isinstance(base, dict) else {}
        for key, value in incoming.items():
            result[key] = deep_merge(result.get(key), value)
        return result
    return incoming


def _legacy_headline(hero: dict[str, Any]) -> str | None:
    joined = f"{hero.get('titlePrefix') or ''}{hero.get('titleSuffix') or ''}".strip()
    return joined or hero.get("headline")


def normalize_content(raw: dict[str, Any] | None) -> dict[str, Any]:
    """
    Map a stored document (legacy or normalized) onto the rendered shape.

    Legacy top-level keys are kept alongside the normalized ones so a
    round trip through the editor never loses data.
    """
    legacy = raw or {}
    hero = legacy.get("hero")
    contact = legacy.get("contact")

    from_legacy: dict[str, Any] = {
        "site": legacy.get("site"),
        "nav": legacy.get("nav"),
        "hero": (
            {
                "headline": _legacy_headline(hero),
                "subheadline": hero.get("subtitle"),
                "description": hero.get("description"),
                "ctaText": hero.get("ctaText"),
                "ctaHref": hero.get("ctaHref"),
                "image": hero.get("image"),
                "focusList": hero.get("focusList"),
            }
            if isinstance(hero, dict)
            else None
        ),
        "sections": {
            "about": legacy.get("about"),
            "projects": legacy.get("projects"),
            "skills": legacy.get("skills"),
            "experience": legacy.get("experience"),
            "achievements": legacy.get("achievements"),
            "blog": legacy.get("blog"),
        },
        "footer": legacy.get("footer")
        or (
            {
                "email": contact.get("email"),
                "phone": contact.get("phone"),
                "address": contact.get("address"),
                "socials": contact.get("socials"),
            }
            if isinstance(contact, dict)
            else None
        ),
        "theme": legacy.get("theme"),
        "analytics": legacy.get("analytics"),
    }

    return deep_merge(DEFAULT_CONTENT, deep_merge(from_legacy, legacy))


# ============================================================================
# SHALLOW DIFF / PATCH
# ============================================================================


def diff_top_level(old: dict[str, Any], new: dict[str, Any]) -> list[str]:
    """Top-level keys of ``new`` whose value differs from ``old`` (added keys included)."""
    return [key for key, value in new.items() if key not in old or old[key] != value]


def apply_patch(doc: dict[str, Any], patch: dict[str, Any]) -> tuple[dict[str, Any], list[str]]:
    """
    Shallow-merge ``patch`` into a copy of ``doc``.

    Returns:
        Tuple of (patched document, keys whose value actually changed)
    """
    changed = diff_top_level(doc, patch)
    patched = copy.deepcopy(doc)
    for key in changed:
        patched[key] = copy.deepcopy(patch[key])
    return patched, changed


def public_view(doc: dict[str, Any]) -> dict[str, Any]:
    """Copy of ``doc`` without secret keys."""
    return {key: value for key, value in doc.items() if key not in SECRET_KEYS}


def get_path(doc: dict[str, Any], path: str, default: Any = None) -> Any:
    """Read a dotted path (``hero.headline``) from a nested dict."""
    node: Any = doc
    for part in path.split("."):
        if not isinstance(node, dict) or part not in node:
            return default
        node = node[part]
    return node


def set_path(doc: dict[str, Any], path: str, value: Any) -> None:
    """Write a dotted path into a nested dict in place, creating parents."""
    parts = path.split(".")
    node = doc
    for part in parts[:-1]:
        child = node.get(part)
        if not isinstance(child, dict):
            child = {}
            node[part] = child
        node = child
    node[parts[-1]] = value
