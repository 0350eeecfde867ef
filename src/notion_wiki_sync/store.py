"""
Page store capability and its Notion API implementation.

The sync engine only talks to a ``PageStore``. ``NotionPageStore`` implements
it against the Notion REST API; tests substitute an in-memory store.
"""

import json
import logging
import time
import urllib.error
import urllib.parse
import urllib.request
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

from .blocks import Block, to_notion
from .config import Config
from .errors import RemoteStoreError
from .properties import PropertyMap, properties_to_notion

logger = logging.getLogger(__name__)

NOTION_API_URL = "https://api.notion.com/v1"

# Largest page_size the Notion API accepts for list endpoints
PAGE_SIZE = 100


@dataclass
class SearchHit:
    """One object returned by a workspace search."""

    id: str
    kind: str
    properties: Dict[str, Any] = field(default_factory=dict)
    parent_id: Optional[str] = None


@dataclass
class ChildrenPage:
    """One page of a block's children."""

    items: List[Dict[str, Any]]
    has_more: bool = False
    next_cursor: Optional[str] = None


class PageStore(ABC):
    """Operations the sync engine needs from the remote store."""

    @abstractmethod
    def search(self) -> List[SearchHit]:
        """Return every object visible to the integration."""

    @abstractmethod
    def create_page(self, container_id: str, properties: PropertyMap, children: List[Block]) -> str:
        """Create a page in a database and return its ID."""

    @abstractmethod
    def update_page_properties(self, page_id: str, properties: PropertyMap) -> Dict[str, Any]:
        """Set page properties and return the resulting property snapshot."""

    @abstractmethod
    def archive_page(self, page_id: str) -> None:
        """Move a page to the trash."""

    @abstractmethod
    def list_children(self, page_id: str, cursor: Optional[str] = None) -> ChildrenPage:
        """Return one page of a block's children starting at ``cursor``."""

    @abstractmethod
    def delete_block(self, block_id: str) -> None:
        """Delete a block."""

    @abstractmethod
    def append_children(self, page_id: str, children: List[Block]) -> None:
        """Append blocks to the end of a page."""


def iter_children(store: PageStore, page_id: str) -> Iterator[List[Dict[str, Any]]]:
    """
    Yield batches of a page's children until the cursor is exhausted.

    Each call starts over from the first child.
    """
    cursor = None
    while True:
        page = store.list_children(page_id, cursor)
        yield page.items
        if not page.has_more or not page.next_cursor:
            break
        cursor = page.next_cursor


def _parent_id(parent: Optional[Dict[str, Any]]) -> Optional[str]:
    if not parent:
        return None
    for key in ("database_id", "data_source_id", "page_id", "block_id"):
        if parent.get(key):
            return parent[key]
    return None


class NotionPageStore(PageStore):
    """Page store backed by the Notion REST API."""

    def __init__(self, config: Config, base_url: str = NOTION_API_URL):
        self.token = config.notion_token
        self.api_version = config.api_version
        self.retry_attempts = max(1, config.retry_attempts)
        self.retry_delay = config.retry_delay
        self.rate_limit_delay = config.rate_limit_delay
        self.max_blocks = config.max_blocks_per_request
        self.timeout = config.timeout
        self.base_url = base_url.rstrip("/")

    def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Make an API request with retries and error handling.

        Args:
            method: HTTP method
            path: Endpoint path below the API root, including any query string
            payload: JSON request body

        Returns:
            API response as dict

        Raises:
            RemoteStoreError: On API or connection errors after retries
        """
        url = f"{self.base_url}{path}"
        headers = {
            "Authorization": f"Bearer {self.token}",
            "Notion-Version": self.api_version,
        }
        data = None
        if payload is not None:
            headers["Content-Type"] = "application/json"
            data = json.dumps(payload).encode("utf-8")

        last_error: Optional[RemoteStoreError] = None

        for attempt in range(self.retry_attempts):
            try:
                req = urllib.request.Request(url, data=data, headers=headers, method=method)
                with urllib.request.urlopen(req, timeout=self.timeout) as response:
                    body = response.read()
                    return json.loads(body) if body else {}

            except urllib.error.HTTPError as e:
                error_body = e.read().decode("utf-8", errors="replace")
                try:
                    details = json.loads(error_body)
                except ValueError:
                    details = {}
                last_error = RemoteStoreError(
                    details.get("message") or error_body or str(e.reason),
                    status=e.code,
                    code=details.get("code"),
                    method=method,
                    url=url,
                )

                # Only rate limits and server errors are worth retrying
                if e.code == 429 or e.code >= 500:
                    wait_time = self.retry_delay * (attempt + 1)
                    retry_after = e.headers.get("Retry-After") if e.headers else None
                    if e.code == 429 and retry_after:
                        try:
                            wait_time = max(wait_time, float(retry_after))
                        except ValueError:
                            pass
                    if attempt < self.retry_attempts - 1:
                        logger.warning(
                            f"Request failed with {e.code}. Waiting {wait_time}s before retry "
                            f"{attempt + 1}/{self.retry_attempts}"
                        )
                        time.sleep(wait_time)
                        continue
                raise last_error from e

            except urllib.error.URLError as e:
                last_error = RemoteStoreError(f"{method} {url} failed: {e.reason}", method=method, url=url)
                logger.warning(f"Request failed (attempt {attempt + 1}/{self.retry_attempts}): {e.reason}")

                if attempt < self.retry_attempts - 1:
                    time.sleep(self.retry_delay)
                    continue
                raise last_error from e

        raise last_error or RemoteStoreError(f"{method} {url} failed after all retries")

    def search(self) -> List[SearchHit]:
        hits = []
        cursor = None

        while True:
            payload: Dict[str, Any] = {"page_size": PAGE_SIZE}
            if cursor:
                payload["start_cursor"] = cursor
            result = self._request("POST", "/search", payload)

            for item in result.get("results", []):
                hits.append(SearchHit(
                    id=item["id"],
                    kind=item.get("object", ""),
                    properties=item.get("properties") or {},
                    parent_id=_parent_id(item.get("parent")),
                ))

            if result.get("has_more") and result.get("next_cursor"):
                cursor = result["next_cursor"]
                time.sleep(self.rate_limit_delay)
            else:
                break

        logger.debug(f"Search returned {len(hits)} objects")
        return hits

    def create_page(self, container_id: str, properties: PropertyMap, children: List[Block]) -> str:
        first, rest = children[:self.max_blocks], children[self.max_blocks:]
        result = self._request("POST", "/pages", {
            "parent": {"database_id": container_id},
            "properties": properties_to_notion(properties),
            "children": to_notion(first),
        })
        page_id = result["id"]
        if rest:
            self.append_children(page_id, rest)
        return page_id

    def update_page_properties(self, page_id: str, properties: PropertyMap) -> Dict[str, Any]:
        result = self._request("PATCH", f"/pages/{page_id}", {
            "properties": properties_to_notion(properties),
        })
        return result.get("properties", {})

    def archive_page(self, page_id: str) -> None:
        self._request("PATCH", f"/pages/{page_id}", {"archived": True})

    def list_children(self, page_id: str, cursor: Optional[str] = None) -> ChildrenPage:
        query = {"page_size": PAGE_SIZE}
        if cursor:
            query["start_cursor"] = cursor
        result = self._request("GET", f"/blocks/{page_id}/children?{urllib.parse.urlencode(query)}")
        return ChildrenPage(
            items=result.get("results", []),
            has_more=bool(result.get("has_more")),
            next_cursor=result.get("next_cursor"),
        )

    def delete_block(self, block_id: str) -> None:
        self._request("DELETE", f"/blocks/{block_id}")
        time.sleep(self.rate_limit_delay)

    def append_children(self, page_id: str, children: List[Block]) -> None:
        for i in range(0, len(children), self.max_blocks):
            batch = children[i:i + self.max_blocks]
            self._request("PATCH", f"/blocks/{page_id}/children", {"children": to_notion(batch)})
            logger.debug(f"Batch {i // self.max_blocks + 1}: {len(batch)} blocks appended to {page_id}")

            # Rate limiting between batches
            if i + self.max_blocks < len(children):
                time.sleep(self.rate_limit_delay)
