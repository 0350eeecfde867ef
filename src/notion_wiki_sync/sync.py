#!/usr/bin/env python3
"""
Mirror a directory of markdown documents into a Notion database.

Usage:
    notion-wiki-sync [--root DIR] [--dry-run] [--config CONFIG]

Features:
    - Creates a page for every markdown file that has none yet
    - Updates properties of existing pages from YAML front matter
    - Replaces page content when the front matter changed
    - Archives pages in the database whose source file is gone
    - Links every page back to its source via the URL property

Options:
    --root      Directory to scan (default: sync.markdown_root or MD_ROOT)
    --dry-run   Log the planned changes without calling Notion
    --config    Path to config file (default: config.yaml or env vars)

Environment:
    NOTION_TOKEN   Integration token
    NOTION_ROOT    ID or URL of the database pages are synced into
    GITHUB_URL     Prefix for links back to the source files
    MD_ROOT        Directory to scan

Example:
    NOTION_ROOT=2bfc95e7d72e816486a5cfb9a97fa8c9 \\
    GITHUB_URL=https://github.com/acme/wiki/blob/main \\
        notion-wiki-sync --root docs
"""

import sys
import logging
from pathlib import Path
from typing import Optional

from .config import load_config, Config
from .executor import SyncExecutor, SyncReport
from .indexer import build_remote_index
from .loader import load_documents
from .planner import index_documents, plan_reconciliation
from .store import NotionPageStore, PageStore

logger = logging.getLogger(__name__)


def run_sync(
    config: Config,
    store: Optional[PageStore] = None,
    dry_run: bool = False,
) -> SyncReport:
    """
    Run one sync from the markdown root to the configured database.

    Args:
        config: Configuration object
        store: Page store to use (defaults to the Notion API)
        dry_run: Plan and log without changing anything

    Returns:
        Report of the changes made

    Raises:
        MalformedFrontMatter: Before any remote call, if a document is broken
        IdentityCollisionError: If two documents share an identity
        RemoteStoreError: On the first failed store call
    """
    if store is None:
        store = NotionPageStore(config)

    logger.info("parsing markdown documents")
    documents = index_documents(load_documents(config.markdown_root))
    logger.info(f"Loaded {len(documents)} documents from {config.markdown_root}")

    logger.info("looking up existing pages")
    remote = build_remote_index(store, config.base_url)

    plan = plan_reconciliation(documents, remote, config.database_id)
    logger.info(
        f"Plan: {len(plan.creates)} to create, {len(plan.updates)} to update, "
        f"{len(plan.deletes)} to delete"
    )

    executor = SyncExecutor(store, config.database_id, config.base_url, dry_run=dry_run)
    return executor.execute(plan)


def setup_logging(config: Config) -> None:
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format=config.log_format
    )
    if config.log_file:
        handler = logging.FileHandler(config.log_file, encoding="utf-8")
        handler.setFormatter(logging.Formatter(config.log_format))
        logging.getLogger().addHandler(handler)


def main(argv=None):
    """Main entry point for command-line usage."""
    args = sys.argv[1:] if argv is None else argv

    if '-h' in args or '--help' in args:
        print(__doc__)
        return 0

    # Parse arguments
    config_file = None
    root = None
    dry_run = False

    i = 0
    while i < len(args):
        arg = args[i]

        if arg == '--dry-run':
            dry_run = True
        elif arg in ('--config', '--root'):
            if i + 1 >= len(args):
                print(f"Error: {arg} requires a path", file=sys.stderr)
                return 1
            if arg == '--config':
                config_file = Path(args[i + 1])
            else:
                root = args[i + 1]
            i += 1
        else:
            print(f"Error: Unexpected argument: {arg}", file=sys.stderr)
            return 1

        i += 1

    # Load configuration
    overrides = {"sync": {"markdown_root": root}} if root else None
    try:
        config = load_config(config_file, overrides)
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    setup_logging(config)

    try:
        report = run_sync(config, dry_run=dry_run)
    except Exception as e:
        logger.error(f"Sync failed: {e}", exc_info=True)
        print(f"\nError: {e}", file=sys.stderr)
        return 1

    print(f"\n{'='*40}")
    print("Summary" + (" (dry run)" if dry_run else ""))
    print(f"{'='*40}")
    print(f"Archived:  {report.archived}")
    print(f"Created:   {report.created}")
    print(f"Updated:   {report.updated}")
    print(f"Rewritten: {report.content_replaced}")
    print(f"{'='*40}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
