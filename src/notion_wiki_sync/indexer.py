"""Index existing Notion pages by the identity key of their source document."""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

from .properties import URL_LABEL, PropertyMap, UrlProperty, properties_from_notion
from .store import PageStore, SearchHit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RemotePage:
    """A page that already exists in Notion."""

    id: str
    identity_key: str
    properties: PropertyMap = field(default_factory=dict)
    parent_id: Optional[str] = None


def identity_key(properties: PropertyMap, page_id: str, base_url: str) -> str:
    """
    Derive a page's identity key.

    The key is the page's URL property with ``<base_url>/`` stripped, or the
    page ID when the property is missing.
    """
    url_property = properties.get(URL_LABEL)
    if not isinstance(url_property, UrlProperty):
        return page_id

    prefix = f"{base_url.rstrip('/')}/"
    url = url_property.url
    return url[len(prefix):] if url.startswith(prefix) else url


def remote_page(hit: SearchHit, base_url: str) -> RemotePage:
    properties = properties_from_notion(hit.properties)
    return RemotePage(
        id=hit.id,
        identity_key=identity_key(properties, hit.id, base_url),
        properties=properties,
        parent_id=hit.parent_id,
    )


def build_remote_index(store: PageStore, base_url: str) -> Dict[str, RemotePage]:
    """
    Search the workspace once and index every page by identity key.

    Args:
        store: Page store to search
        base_url: Prefix stripped from URL properties

    Returns:
        Dict of identity key to remote page
    """
    index: Dict[str, RemotePage] = {}

    for hit in store.search():
        if hit.kind != "page":
            continue

        page = remote_page(hit, base_url)
        if page.identity_key in index:
            logger.warning(
                f"Pages {index[page.identity_key].id} and {page.id} share identity "
                f"{page.identity_key!r}; using {page.id}"
            )
        index[page.identity_key] = page

    logger.info(f"Found {len(index)} existing pages")
    return index
