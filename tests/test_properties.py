"""Tests for mapping front matter to Notion properties."""

import pytest

from notion_wiki_sync.converter import MAX_TEXT_LENGTH
from notion_wiki_sync.properties import (
    RichTextProperty,
    TitleProperty,
    UrlProperty,
    clear_missing,
    comparable,
    map_properties,
    properties_from_notion,
    properties_to_notion,
    property_label,
)

BASE_URL = "https://github.com/acme/wiki/blob/main"


@pytest.mark.parametrize("key, label", [
    ("title", "Title"),
    ("path", "Path"),
    ("last_modified", "Last Modified"),
    ("reviewed-by", "Reviewed By"),
    ("reviewedBy", "Reviewed By"),
    ("  owner  team ", "Owner Team"),
    ("TITLE", "Title"),
])
def test_property_label(key, label):
    assert property_label(key) == label


def test_map_properties_scenario():
    properties = map_properties({"title": "Hello", "path": "a.md"}, BASE_URL)

    assert properties == {
        "Title": TitleProperty("Hello"),
        "URL": UrlProperty(f"{BASE_URL}/a.md"),
    }


def test_map_properties_synthesizes_title_from_path():
    properties = map_properties({"path": "docs/guide.md", "owner": "ops"}, BASE_URL)

    assert properties["Title"] == TitleProperty("docs/guide.md")
    assert properties["Owner"] == RichTextProperty("ops")
    assert list(properties.values()).count(TitleProperty("docs/guide.md")) == 1


def test_map_properties_does_not_double_slash():
    properties = map_properties({"path": "a.md"}, BASE_URL + "/")

    assert properties["URL"] == UrlProperty(f"{BASE_URL}/a.md")


def test_map_properties_is_deterministic():
    front_matter = {"title": "T", "status_code": "ok", "path": "x.md"}

    assert map_properties(front_matter, BASE_URL) == map_properties(dict(front_matter), BASE_URL)


def test_properties_to_notion():
    payload = properties_to_notion({
        "Title": TitleProperty("Hello"),
        "URL": UrlProperty("https://x.example/a.md"),
        "Owner": RichTextProperty("ops"),
    })

    assert payload == {
        "Title": {"title": [{"type": "text", "text": {"content": "Hello"}}]},
        "URL": {"url": "https://x.example/a.md"},
        "Owner": {"rich_text": [{"type": "text", "text": {"content": "ops"}}]},
    }


def test_properties_from_notion_reads_api_response():
    payload = {
        "Title": {"id": "title", "type": "title", "title": [
            {"type": "text", "text": {"content": "Hel"}, "plain_text": "Hel"},
            {"type": "text", "text": {"content": "lo"}, "plain_text": "lo"},
        ]},
        "URL": {"id": "a", "type": "url", "url": "https://x.example/a.md"},
        "Owner": {"id": "b", "type": "rich_text", "rich_text": [{"plain_text": "ops"}]},
        "Empty": {"id": "c", "type": "rich_text", "rich_text": []},
        "Blank URL": {"id": "d", "type": "url", "url": None},
        "Tags": {"id": "e", "type": "multi_select", "multi_select": []},
    }

    assert properties_from_notion(payload) == {
        "Title": TitleProperty("Hello"),
        "URL": UrlProperty("https://x.example/a.md"),
        "Owner": RichTextProperty("ops"),
    }


def test_comparable_drops_empty_values():
    properties = {"Title": TitleProperty("T"), "Notes": RichTextProperty("")}

    assert comparable(properties) == {"Title": TitleProperty("T")}


def test_long_values_are_split_into_runs():
    text = "x" * (MAX_TEXT_LENGTH + 5)
    payload = properties_to_notion({"Title": TitleProperty(text), "Notes": RichTextProperty(text)})

    for label, kind in [("Title", "title"), ("Notes", "rich_text")]:
        lengths = [len(run["text"]["content"]) for run in payload[label][kind]]
        assert lengths == [MAX_TEXT_LENGTH, 5]
    assert comparable({"Notes": RichTextProperty(text)}) == {"Notes": RichTextProperty(text)}


def test_empty_values_serialize_as_cleared():
    payload = properties_to_notion({"Notes": RichTextProperty(""), "Link": UrlProperty("")})

    assert payload == {"Notes": {"rich_text": []}, "Link": {"url": None}}


def test_clear_missing_blanks_removed_columns():
    previous = {
        "Title": TitleProperty("Old"),
        "URL": UrlProperty("https://x.example/a.md"),
        "Author": RichTextProperty("Ann"),
        "Homepage": UrlProperty("https://ann.example"),
    }
    current = {"Title": TitleProperty("New"), "URL": UrlProperty("https://x.example/a.md")}

    assert clear_missing(current, previous) == {
        "Title": TitleProperty("New"),
        "URL": UrlProperty("https://x.example/a.md"),
        "Author": RichTextProperty(""),
        "Homepage": UrlProperty(""),
    }
    assert current == {"Title": TitleProperty("New"), "URL": UrlProperty("https://x.example/a.md")}
