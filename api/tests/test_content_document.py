"""Unit tests for content merging, normalization and shallow patches."""

from __future__ import annotations

import copy

from portfolio.content import (
    DEFAULT_CONTENT,
    SEED_CONTENT,
    apply_patch,
    deep_merge,
    get_path,
    normalize_content,
    public_view,
    set_path,
)


def test_deep_merge_rules():
    base = {"a": {"x": 1, "y": [1, 2]}, "b": "keep"}
    incoming = {"a": {"y": [3], "z": 2}, "b": None, "c": 5}
    merged = deep_merge(base, incoming)

    assert merged == {"a": {"x": 1, "y": [3], "z": 2}, "b": "keep", "c": 5}
    # Inputs are untouched
    assert base == {"a": {"x": 1, "y": [1, 2]}, "b": "keep"}


def test_normalize_legacy_seed():
    content = normalize_content(copy.deepcopy(SEED_CONTENT))

    assert content["hero"]["headline"] == "Hi, I'm Arya"
    assert content["hero"]["subheadline"] == SEED_CONTENT["hero"]["subtitle"]
    assert content["sections"]["about"]["title"] == "About Me"
    assert content["footer"]["copyright"] == DEFAULT_CONTENT["footer"]["copyright"]
    assert content["site"]["title"] == DEFAULT_CONTENT["site"]["title"]
    # Legacy keys survive next to the normalized ones
    assert content["hero"]["titlePrefix"] == "Hi, I'm Arya "
    assert "about" in content


def test_normalize_contact_feeds_footer():
    content = normalize_content({"contact": {"email": "me@example.com", "socials": [{"name": "GitHub"}]}})
    assert content["footer"]["email"] == "me@example.com"
    assert content["footer"]["socials"] == [{"name": "GitHub"}]


def test_normalize_empty_document_is_default():
    assert normalize_content(None) == DEFAULT_CONTENT
    assert normalize_content({}) == DEFAULT_CONTENT


def test_normalize_is_idempotent():
    once = normalize_content(copy.deepcopy(SEED_CONTENT))
    assert normalize_content(once) == once


def test_apply_patch_reports_changed_keys():
    doc = {"hero": {"headline": "A"}, "theme": {"primary": "#fff"}}
    patched, changed = apply_patch(doc, {"hero": {"headline": "A"}, "theme": {"primary": "#000"}, "new": 1})

    assert changed == ["theme", "new"]
    assert patched["theme"] == {"primary": "#000"}
    assert patched["new"] == 1
    assert doc["theme"] == {"primary": "#fff"}


def test_public_view_strips_site_password():
    assert public_view({"sitePassword": "secret", "hero": {}}) == {"hero": {}}


def test_dotted_paths():
    doc: dict = {}
    set_path(doc, "site.seo.description", "hello")
    assert doc == {"site": {"seo": {"description": "hello"}}}
    assert get_path(doc, "site.seo.description") == "hello"
    assert get_path(doc, "site.missing.deeper", "fallback") == "fallback"
