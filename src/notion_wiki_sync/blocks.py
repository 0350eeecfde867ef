"""
Block tree model for converted markdown documents.

A document body is a list of ``Block`` objects. Every block kind shares the
same fields: inline text lives in ``rich_text``, table rows keep one run list
per cell in ``cells``, nested blocks live in ``children`` and any remaining
type-specific scalars (code language, to-do state, table width) go in
``attrs``. Because of that, ``walk_blocks`` and ``walk_text_runs`` reach every
node of any block kind without knowing about it.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional


@dataclass
class TextRun:
    """Smallest styled unit of text inside a block."""

    content: str
    link: Optional[str] = None
    annotations: Dict[str, bool] = field(default_factory=dict)

    def to_notion(self) -> Dict[str, Any]:
        text: Dict[str, Any] = {"content": self.content}
        if self.link:
            text["link"] = {"url": self.link}
        result: Dict[str, Any] = {"type": "text", "text": text}
        if self.annotations:
            result["annotations"] = dict(self.annotations)
        return result


@dataclass
class Block:
    """A single Notion block and its nested structure."""

    type: str
    rich_text: List[TextRun] = field(default_factory=list)
    cells: List[List[TextRun]] = field(default_factory=list)
    children: List["Block"] = field(default_factory=list)
    attrs: Dict[str, Any] = field(default_factory=dict)

    def to_notion(self) -> Dict[str, Any]:
        """Serialize to the block object accepted by the Notion API."""
        body: Dict[str, Any] = dict(self.attrs)
        if self.rich_text or self.type in TEXT_BLOCK_TYPES:
            body["rich_text"] = [run.to_notion() for run in self.rich_text]
        if self.cells:
            body["cells"] = [[run.to_notion() for run in cell] for cell in self.cells]
        if self.children:
            body["children"] = [child.to_notion() for child in self.children]
        return {"object": "block", "type": self.type, self.type: body}


# Block types whose payload always carries a rich_text array, even when empty
TEXT_BLOCK_TYPES = frozenset({
    "paragraph",
    "heading_1",
    "heading_2",
    "heading_3",
    "bulleted_list_item",
    "numbered_list_item",
    "to_do",
    "quote",
    "code",
})


def walk_blocks(blocks: List[Block]) -> Iterator[Block]:
    """Yield every block in the tree, depth first, parents before children."""
    for block in blocks:
        yield block
        yield from walk_blocks(block.children)


def walk_text_runs(blocks: List[Block]) -> Iterator[TextRun]:
    """Yield every text run reachable from the given blocks."""
    for block in walk_blocks(blocks):
        yield from block.rich_text
        for cell in block.cells:
            yield from cell


def map_text_runs(blocks: List[Block], func: Callable[[TextRun], None]) -> List[Block]:
    """Apply ``func`` to every text run in place and return the blocks."""
    for run in walk_text_runs(blocks):
        func(run)
    return blocks


def to_notion(blocks: List[Block]) -> List[Dict[str, Any]]:
    """Serialize a block list for a Notion API request."""
    return [block.to_notion() for block in blocks]
