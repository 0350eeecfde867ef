"""Apply a reconciliation plan to the page store."""

import logging
from dataclasses import dataclass
from typing import List

from .blocks import Block
from .indexer import RemotePage
from .loader import Document
from .planner import ReconciliationPlan
from .properties import clear_missing, comparable, map_properties, properties_from_notion
from .store import PageStore, iter_children

logger = logging.getLogger(__name__)


@dataclass
class SyncReport:
    """Counts of what a run changed."""

    archived: int = 0
    created: int = 0
    updated: int = 0
    content_replaced: int = 0


class SyncExecutor:
    """
    Applies a plan: deletes first, then creates, then updates.

    Every store call is made one at a time. Errors are not caught, so the
    first failure stops the run.
    """

    def __init__(self, store: PageStore, sync_root: str, base_url: str, dry_run: bool = False):
        self.store = store
        self.sync_root = sync_root
        self.base_url = base_url
        self.dry_run = dry_run

    def execute(self, plan: ReconciliationPlan) -> SyncReport:
        report = SyncReport()
        logger.info(f"db root: {self.sync_root}")

        logger.info("deleting extra pages")
        self.delete_pages(plan, report)

        logger.info("creating new pages")
        self.create_pages(plan, report)

        logger.info("updating existing pages")
        self.update_pages(plan, report)

        return report

    def delete_pages(self, plan: ReconciliationPlan, report: SyncReport) -> None:
        for page_id, key in plan.deletes.items():
            logger.info(f"deleting unknown page: {key}")
            if not self.dry_run:
                self.store.archive_page(page_id)
            report.archived += 1

    def create_pages(self, plan: ReconciliationPlan, report: SyncReport) -> None:
        for key, document in plan.creates.items():
            logger.info(f"creating new page: {key}")
            properties = map_properties(document.front_matter, self.base_url)
            if not self.dry_run:
                page_id = self.store.create_page(self.sync_root, properties, document.blocks)
                logger.debug(f"created {page_id} with {len(document.blocks)} blocks")
            report.created += 1

    def update_pages(self, plan: ReconciliationPlan, report: SyncReport) -> None:
        for key, (document, page) in plan.updates.items():
            logger.info(f"updating existing page: {key}")
            if self.update_page(document, page):
                report.content_replaced += 1
            report.updated += 1

    def update_page(self, document: Document, page: RemotePage) -> bool:
        """
        Push properties, then replace content if the properties changed.

        Returns:
            True if the page content was replaced
        """
        properties = clear_missing(map_properties(document.front_matter, self.base_url), page.properties)

        logger.debug("setting properties")
        if self.dry_run:
            resulting = comparable(properties)
        else:
            resulting = properties_from_notion(self.store.update_page_properties(page.id, properties))

        if resulting == page.properties:
            logger.debug(f"{page.id}: properties unchanged, keeping content")
            return False

        logger.info("updating page content")
        if not self.dry_run:
            self.replace_content(page.id, document.blocks)
        return True

    def replace_content(self, page_id: str, blocks: List[Block]) -> None:
        """Delete every child block of a page and append ``blocks``."""
        current = []
        for batch in iter_children(self.store, page_id):
            current.extend(batch)

        for child in current:
            self.store.delete_block(child["id"])
        logger.debug(f"{page_id}: deleted {len(current)} blocks")

        self.store.append_children(page_id, blocks)
