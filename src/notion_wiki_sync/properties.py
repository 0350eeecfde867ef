"""
Map document front matter to Notion database properties.

A property map is a plain dict from property label to one of three value
types. The same labels are produced when creating and when diffing pages, so
``property_label`` must stay a pure function of the key.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Union

from .converter import MAX_TEXT_LENGTH

TITLE_LABEL = "Title"
PATH_LABEL = "Path"
URL_LABEL = "URL"


@dataclass(frozen=True)
class TitleProperty:
    text: str

    def to_notion(self) -> Dict[str, Any]:
        return {"title": _text_runs(self.text)}


@dataclass(frozen=True)
class UrlProperty:
    url: str

    def to_notion(self) -> Dict[str, Any]:
        return {"url": self.url or None}


@dataclass(frozen=True)
class RichTextProperty:
    text: str

    def to_notion(self) -> Dict[str, Any]:
        return {"rich_text": _text_runs(self.text)}


PropertyValue = Union[TitleProperty, UrlProperty, RichTextProperty]
PropertyMap = Dict[str, PropertyValue]

CAMEL_BOUNDARY_RE = re.compile(r'(?<=[a-z0-9])(?=[A-Z])')
WORD_SEPARATOR_RE = re.compile(r'[\s_\-]+')


def _text_runs(content: str) -> List[Dict[str, Any]]:
    """Split property text into runs that fit the API text length limit."""
    return [
        {"type": "text", "text": {"content": content[i:i + MAX_TEXT_LENGTH]}}
        for i in range(0, len(content), MAX_TEXT_LENGTH)
    ]


def property_label(key: str) -> str:
    """
    Convert a front matter key to a property label.

    Words are split on whitespace, underscores, hyphens and camelCase
    boundaries, capitalized and joined with spaces::

        title          -> Title
        last_modified  -> Last Modified
        reviewedBy     -> Reviewed By
    """
    words = WORD_SEPARATOR_RE.split(CAMEL_BOUNDARY_RE.sub(' ', key))
    return " ".join(word[:1].upper() + word[1:].lower() for word in words if word)


def join_url(base_url: str, path: str) -> str:
    return f"{base_url.rstrip('/')}/{path}"


def map_properties(front_matter: Dict[str, str], base_url: str) -> PropertyMap:
    """
    Convert front matter to a property map.

    Args:
        front_matter: Document front matter, including the injected ``path``
        base_url: Prefix for the link back to the source file

    Returns:
        Property map with exactly one ``Title`` entry
    """
    properties: PropertyMap = {}

    for key, value in front_matter.items():
        label = property_label(key)
        if label == PATH_LABEL:
            properties[URL_LABEL] = UrlProperty(join_url(base_url, value))
        elif label == TITLE_LABEL:
            properties[TITLE_LABEL] = TitleProperty(value)
        else:
            properties[label] = RichTextProperty(value)

    if TITLE_LABEL not in properties:
        properties[TITLE_LABEL] = TitleProperty(front_matter.get("path", ""))

    return properties


def clear_missing(properties: PropertyMap, previous: PropertyMap) -> PropertyMap:
    """
    Add empty values for labels ``previous`` has and ``properties`` lacks.

    Page updates merge into the existing properties, so a front matter key
    that was removed must be sent as an empty value to clear its column.
    """
    cleared = dict(properties)
    for label, value in previous.items():
        if label in cleared:
            continue
        if isinstance(value, RichTextProperty):
            cleared[label] = RichTextProperty("")
        elif isinstance(value, UrlProperty):
            cleared[label] = UrlProperty("")
    return cleared


def properties_to_notion(properties: PropertyMap) -> Dict[str, Any]:
    """Serialize a property map for a pages create/update request."""
    return {label: value.to_notion() for label, value in properties.items()}


def _plain_text(runs: List[Dict[str, Any]]) -> str:
    parts = []
    for run in runs:
        if "plain_text" in run:
            parts.append(run["plain_text"])
        else:
            parts.append(run.get("text", {}).get("content", ""))
    return "".join(parts)


def properties_from_notion(payload: Dict[str, Any]) -> PropertyMap:
    """
    Parse a page's remote properties into a property map.

    Only title, url and rich_text properties are read. Empty values are
    dropped, so a database column the document never sets compares equal to
    the column being absent from the document's map.
    """
    properties: PropertyMap = {}

    for label, prop in payload.items():
        if not isinstance(prop, dict):
            continue
        kind = prop.get("type") or next(
            (k for k in ("title", "url", "rich_text") if k in prop), None
        )
        if kind == "title":
            text = _plain_text(prop.get("title") or [])
            if text:
                properties[label] = TitleProperty(text)
        elif kind == "url":
            if prop.get("url"):
                properties[label] = UrlProperty(prop["url"])
        elif kind == "rich_text":
            text = _plain_text(prop.get("rich_text") or [])
            if text:
                properties[label] = RichTextProperty(text)

    return properties


def comparable(properties: PropertyMap) -> PropertyMap:
    """Drop empty values the same way a remote snapshot drops them."""
    return properties_from_notion(properties_to_notion(properties))
