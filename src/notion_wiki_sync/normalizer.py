"""Post-processing passes applied to converted block trees."""

from typing import List

from .blocks import Block, TextRun, map_text_runs, walk_blocks


def fold_paragraph_newlines(blocks: List[Block]) -> List[Block]:
    """Replace line breaks inside paragraph text with spaces, like GitHub renders them."""
    for block in walk_blocks(blocks):
        if block.type != "paragraph":
            continue
        for run in block.rich_text:
            run.content = run.content.replace('\r\n', ' ').replace('\n', ' ')
    return blocks


def literalize_link(run: TextRun) -> None:
    """Rewrite a linked run as literal ``[text](url)`` code text."""
    if not run.link:
        return
    run.content = f"[{run.content}]({run.link})"
    run.annotations["code"] = True
    run.link = None


def literalize_links(blocks: List[Block]) -> List[Block]:
    """Replace every hyperlink in the tree with its literal markdown form."""
    return map_text_runs(blocks, literalize_link)


def normalize_blocks(blocks: List[Block]) -> List[Block]:
    return literalize_links(fold_paragraph_newlines(blocks))
