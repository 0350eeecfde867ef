"""Tests for remote indexing and reconciliation planning."""

import pytest

from notion_wiki_sync.errors import IdentityCollisionError
from notion_wiki_sync.indexer import RemotePage, build_remote_index, identity_key
from notion_wiki_sync.loader import Document
from notion_wiki_sync.planner import index_documents, normalize_id, plan_reconciliation
from notion_wiki_sync.properties import UrlProperty

from conftest import BASE_URL, DATABASE_ID

OTHER_DATABASE = "99999999-0000-0000-0000-000000000000"


def _doc(path):
    return Document(path=path, front_matter={"path": path})


def _page(page_id, key, parent=DATABASE_ID):
    return RemotePage(id=page_id, identity_key=key, parent_id=parent)


def _url(path):
    return {"URL": {"type": "url", "url": f"{BASE_URL}/{path}"}}


def test_identity_key_strips_base_url():
    properties = {"URL": UrlProperty(f"{BASE_URL}/docs/a.md")}

    assert identity_key(properties, "page-1", BASE_URL) == "docs/a.md"


def test_identity_key_falls_back_to_page_id():
    assert identity_key({}, "page-1", BASE_URL) == "page-1"


def test_build_remote_index(store):
    a = store.add_page(_url("a.md"))
    loose = store.add_page({}, parent_id=None)

    index = build_remote_index(store, BASE_URL)

    assert set(index) == {"a.md", loose}
    assert index["a.md"].id == a
    assert index["a.md"].parent_id == DATABASE_ID
    assert store.calls_to("search") == [("search",)]


def test_build_remote_index_skips_databases(store, monkeypatch):
    from notion_wiki_sync.store import SearchHit

    monkeypatch.setattr(store, "search", lambda: [
        SearchHit(id="db-1", kind="database", properties={}),
        SearchHit(id="p-1", kind="page", properties=_url("a.md"), parent_id=DATABASE_ID),
    ])

    index = build_remote_index(store, BASE_URL)

    assert list(index) == ["a.md"]


def test_build_remote_index_duplicates_last_wins(store, caplog):
    store.add_page(_url("a.md"), page_id="first")
    store.add_page(_url("a.md"), page_id="second")

    index = build_remote_index(store, BASE_URL)

    assert index["a.md"].id == "second"
    assert "share identity" in caplog.text


def test_index_documents_rejects_collisions():
    with pytest.raises(IdentityCollisionError):
        index_documents([_doc("a.md"), _doc("a.md")])


def test_plan_partitions_keys():
    documents = index_documents([_doc("new.md"), _doc("kept.md")])
    remote = {
        "kept.md": _page("p-kept", "kept.md"),
        "old.md": _page("p-old", "old.md"),
    }

    plan = plan_reconciliation(documents, remote, DATABASE_ID)

    assert list(plan.creates) == ["new.md"]
    assert plan.updates == {"kept.md": (documents["kept.md"], remote["kept.md"])}
    assert plan.deletes == {"p-old": "old.md"}


def test_plan_never_deletes_outside_sync_root():
    remote = {
        "elsewhere.md": _page("p-1", "elsewhere.md", parent=OTHER_DATABASE),
        "p-2": _page("p-2", "p-2", parent=None),
    }

    plan = plan_reconciliation({}, remote, DATABASE_ID)

    assert plan.deletes == {}
    assert plan.is_empty


def test_plan_matches_sync_root_without_dashes():
    remote = {"old.md": _page("p-old", "old.md", parent=DATABASE_ID)}

    plan = plan_reconciliation({}, remote, normalize_id(DATABASE_ID).upper())

    assert plan.deletes == {"p-old": "old.md"}


def test_plan_every_document_in_exactly_one_set():
    documents = index_documents([_doc(f"{n}.md") for n in "abcde"])
    remote = {k: _page(f"p-{k}", k) for k in ["b.md", "d.md", "z.md"]}

    plan = plan_reconciliation(documents, remote, DATABASE_ID)

    assert set(plan.creates) | set(plan.updates) == set(documents)
    assert not set(plan.creates) & set(plan.updates)
    assert list(plan.deletes.values()) == ["z.md"]
