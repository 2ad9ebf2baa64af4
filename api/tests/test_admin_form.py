"""Unit tests for the admin editor form binding."""

from __future__ import annotations

import pytest

from portfolio.admin_form import (
    BINDINGS_BY_NAME,
    FormError,
    build_patch,
    content_to_form,
    dirty_fields,
    parse_value,
)
from portfolio.content import DEFAULT_CONTENT, normalize_content


@pytest.fixture()
def content() -> dict:
    return normalize_content(DEFAULT_CONTENT)


def test_unchanged_form_is_clean(content):
    assert dirty_fields(content, content_to_form(content)) == {}


def test_reformatted_values_are_not_dirty(content):
    form = content_to_form(content)
    form["section-order"] = "\r\n".join(f" {item} " for item in content["sectionOrder"]) + "\r\n\r\n"
    form["nav"] = form["nav"].replace("\n", "").replace("  ", "")
    assert dirty_fields(content, form) == {}


def test_dirty_fields_and_patch(content):
    form = content_to_form(content)
    form["hero-headline"] = "  New headline "
    form["seo-keywords"] = "a\nb"

    dirty = dirty_fields(content, form)
    assert dirty == {"hero-headline": "New headline", "seo-keywords": ["a", "b"]}

    patch = build_patch(content, dirty)
    assert set(patch) == {"hero", "site"}
    assert patch["hero"]["headline"] == "New headline"
    # Untouched siblings are carried along
    assert patch["hero"]["subheadline"] == content["hero"]["subheadline"]
    assert patch["site"]["seo"]["keywords"] == ["a", "b"]
    assert patch["site"]["title"] == content["site"]["title"]
    # The source document is not modified
    assert content["hero"]["headline"] == DEFAULT_CONTENT["hero"]["headline"]


def test_absent_fields_are_ignored(content):
    assert dirty_fields(content, {"hero-headline": content["hero"]["headline"]}) == {}


def test_invalid_json_raises(content):
    with pytest.raises(FormError) as excinfo:
        dirty_fields(content, {"projects": "[{"})
    assert excinfo.value.field == "projects"
    assert "invalid JSON" in str(excinfo.value)


def test_parse_value_kinds():
    assert parse_value(BINDINGS_BY_NAME["projects"], "") == []
    assert parse_value(BINDINGS_BY_NAME["hero-focus-list"], "a\n\nb ") == ["a", "b"]
    assert parse_value(BINDINGS_BY_NAME["theme-bg"], " #000 ") == "#000"


def test_list_items_with_commas_survive_an_unchanged_save():
    content = normalize_content({"hero": {"focusList": ["Games, engines", "AI"]}})
    form = content_to_form(content)
    assert form["hero-focus-list"] == "Games, engines\nAI"
    assert dirty_fields(content, form) == {}
