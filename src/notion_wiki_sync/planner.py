"""Compute the create, update and delete sets for a sync run."""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Tuple

from .errors import IdentityCollisionError
from .indexer import RemotePage
from .loader import Document


@dataclass(frozen=True)
class ReconciliationPlan:
    """
    Changes needed to make the database mirror the local documents.

    Attributes:
        creates: identity key -> document with no page yet
        updates: identity key -> (document, existing page)
        deletes: page ID -> identity key of a page with no document
    """

    creates: Dict[str, Document] = field(default_factory=dict)
    updates: Dict[str, Tuple[Document, RemotePage]] = field(default_factory=dict)
    deletes: Dict[str, str] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not (self.creates or self.updates or self.deletes)


def normalize_id(notion_id: Optional[str]) -> str:
    """Notion IDs are accepted with or without dashes; compare them without."""
    return (notion_id or "").replace("-", "").lower()


def index_documents(documents: Iterable[Document]) -> Dict[str, Document]:
    """
    Key documents by path.

    Raises:
        IdentityCollisionError: If two documents have the same path
    """
    index: Dict[str, Document] = {}
    for document in documents:
        if document.path in index:
            raise IdentityCollisionError(document.path, index[document.path].path, document.path)
        index[document.path] = document
    return index


def plan_reconciliation(
    documents: Dict[str, Document],
    remote: Dict[str, RemotePage],
    sync_root: str,
) -> ReconciliationPlan:
    """
    Diff local documents against existing pages.

    Pages with no matching document are only deleted when they live directly
    in the ``sync_root`` database.
    """
    creates: Dict[str, Document] = {}
    updates: Dict[str, Tuple[Document, RemotePage]] = {}
    deletes: Dict[str, str] = {}
    root = normalize_id(sync_root)

    for key in sorted(set(documents) | set(remote)):
        document = documents.get(key)
        page = remote.get(key)

        if document is not None and page is not None:
            updates[key] = (document, page)
        elif document is not None:
            creates[key] = document
        elif page.parent_id and normalize_id(page.parent_id) == root:
            deletes[page.id] = key

    return ReconciliationPlan(creates=creates, updates=updates, deletes=deletes)
