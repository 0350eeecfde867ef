"""Shared fixtures for notion-wiki-sync tests."""

import itertools
from typing import Any, Dict, List, Optional

import pytest

from notion_wiki_sync.blocks import to_notion
from notion_wiki_sync.config import Config
from notion_wiki_sync.properties import properties_to_notion
from notion_wiki_sync.store import ChildrenPage, PageStore, SearchHit

DATABASE_ID = "2bfc95e7-d72e-8164-86a5-cfb9a97fa8c9"
BASE_URL = "https://github.com/acme/wiki/blob/main"


class FakePageStore(PageStore):
    """In-memory page store that records every call."""

    def __init__(self, children_page_size: int = 2):
        self.pages: Dict[str, Dict[str, Any]] = {}
        self.blocks: Dict[str, List[Dict[str, Any]]] = {}
        self.calls: List[tuple] = []
        self.children_page_size = children_page_size
        self._ids = itertools.count(1)

    def add_page(self, properties: Dict[str, Any], parent_id: Optional[str] = DATABASE_ID,
                 children: Optional[List[Dict[str, Any]]] = None, page_id: Optional[str] = None) -> str:
        page_id = page_id or f"page-{next(self._ids)}"
        self.pages[page_id] = {"properties": properties, "parent_id": parent_id, "archived": False}
        self.blocks[page_id] = [dict(block, id=f"{page_id}-b{i}") for i, block in enumerate(children or [])]
        return page_id

    def calls_to(self, name: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == name]

    def search(self) -> List[SearchHit]:
        self.calls.append(("search",))
        return [
            SearchHit(id=page_id, kind="page", properties=page["properties"], parent_id=page["parent_id"])
            for page_id, page in self.pages.items()
            if not page["archived"]
        ]

    def create_page(self, container_id, properties, children):
        self.calls.append(("create_page", container_id, properties, children))
        return self.add_page(properties_to_notion(properties), container_id, to_notion(children))

    def update_page_properties(self, page_id, properties):
        self.calls.append(("update_page_properties", page_id, properties))
        self.pages[page_id]["properties"].update(properties_to_notion(properties))
        return self.pages[page_id]["properties"]

    def archive_page(self, page_id):
        self.calls.append(("archive_page", page_id))
        self.pages[page_id]["archived"] = True

    def list_children(self, page_id, cursor=None):
        self.calls.append(("list_children", page_id, cursor))
        children = self.blocks[page_id]
        start = int(cursor) if cursor else 0
        end = start + self.children_page_size
        has_more = end < len(children)
        return ChildrenPage(items=children[start:end], has_more=has_more,
                            next_cursor=str(end) if has_more else None)

    def delete_block(self, block_id):
        self.calls.append(("delete_block", block_id))
        for page_id, children in self.blocks.items():
            self.blocks[page_id] = [child for child in children if child["id"] != block_id]

    def append_children(self, page_id, children):
        self.calls.append(("append_children", page_id, children))
        existing = self.blocks[page_id]
        for block in to_notion(children):
            existing.append(dict(block, id=f"{page_id}-b{len(existing)}-new"))


@pytest.fixture
def store():
    return FakePageStore()


@pytest.fixture
def config(tmp_path, monkeypatch):
    """Config pointing at tmp_path with no config file or env leaking in."""
    for name in Config.ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    return Config(overrides={
        "notion": {"token": "secret_test"},
        "sync": {"markdown_root": ".", "database_id": DATABASE_ID, "base_url": BASE_URL},
        "api": {"rate_limit_delay": 0, "retry_delay": 0},
    })
