"""
Convert markdown text to Notion blocks.

Supports:
    - Headings (deeper than ### collapse to heading_3)
    - Paragraphs spanning several source lines
    - Bulleted, numbered and to-do lists, nested by indentation
    - Fenced code blocks with language
    - Block quotes, dividers and pipe tables
    - Inline bold, italic, strikethrough, code spans and links
"""

import re
import logging
from typing import List, Optional, Tuple

from .blocks import Block, TextRun

logger = logging.getLogger(__name__)

# Notion rejects text objects longer than this
MAX_TEXT_LENGTH = 2000

# Notion rejects tables with more rows than this
MAX_TABLE_ROWS = 100

LANGUAGE_ALIASES = {
    "": "plain text",
    "text": "plain text",
    "txt": "plain text",
    "plaintext": "plain text",
    "sh": "shell",
    "zsh": "shell",
    "console": "shell",
    "js": "javascript",
    "ts": "typescript",
    "py": "python",
    "rb": "ruby",
    "yml": "yaml",
    "md": "markdown",
    "golang": "go",
    "rs": "rust",
    "c++": "c++",
    "cpp": "c++",
    "cs": "c#",
    "csharp": "c#",
}

HEADING_RE = re.compile(r'^(#{1,6})\s+(.*?)(?:\s+#+)?\s*$')
LIST_ITEM_RE = re.compile(r'^(\s*)([-*+]|\d+[.)])\s+(.*)$')
TODO_RE = re.compile(r'^\[([ xX])\]\s+(.*)$')
FENCE_RE = re.compile(r'^\s*(```|~~~)\s*([^`\s]*)')
DIVIDER_RE = re.compile(r'^\s*([-*_])(\s*\1){2,}\s*$')
TABLE_SEPARATOR_RE = re.compile(r'^\s*\|?\s*:?-+:?\s*(\|\s*:?-+:?\s*)*\|?\s*$')

LINK_RE = re.compile(r'\[([^\]]+)\]\(([^)\s]+)(?:\s+"[^"]*")?\)')
BOLD_RE = re.compile(r'(\*\*|__)(.+?)\1')
ITALIC_RE = re.compile(r'(\*|_)([^*_]+?)\1')
STRIKE_RE = re.compile(r'~~(.+?)~~')


def _split_long(content: str, link: Optional[str], annotations: dict) -> List[TextRun]:
    """Split content into runs that fit the API text length limit."""
    if len(content) <= MAX_TEXT_LENGTH:
        return [TextRun(content, link, dict(annotations))]
    return [
        TextRun(content[i:i + MAX_TEXT_LENGTH], link, dict(annotations))
        for i in range(0, len(content), MAX_TEXT_LENGTH)
    ]


def _append(runs: List[TextRun], content: str, link: Optional[str] = None, annotations: Optional[dict] = None) -> None:
    annotations = annotations or {}
    if not content:
        return
    # Merge plain text with a preceding plain run
    if runs and not link and not annotations and not runs[-1].link and not runs[-1].annotations:
        merged = runs.pop().content + content
        runs.extend(_split_long(merged, None, {}))
        return
    runs.extend(_split_long(content, link, annotations))


def _intraword(text: str, start: int, end: int) -> bool:
    """Underscore emphasis does not apply inside words like snake_case_name."""
    if text[start] != '_':
        return False
    before = text[start - 1] if start > 0 else ' '
    after = text[end] if end < len(text) else ' '
    return before.isalnum() or after.isalnum()


def parse_inline(text: str, annotations: Optional[dict] = None) -> List[TextRun]:
    """Parse inline markdown formatting into text runs."""
    annotations = annotations or {}
    runs: List[TextRun] = []

    # Code spans are literal, split them out first
    parts = re.split(r'(`[^`]+`)', text)

    for part in parts:
        if not part:
            continue

        if part.startswith('`') and part.endswith('`') and len(part) > 1:
            _append(runs, part[1:-1], annotations=dict(annotations, code=True))
            continue

        pos = 0
        plain_start = 0
        while pos < len(part):
            rest = part[pos:]
            match = None
            link = None

            link_match = LINK_RE.match(rest)
            if link_match:
                match, link = link_match, link_match.group(2)
                inner, inner_annotations = link_match.group(1), annotations
            else:
                for regex, flag in ((BOLD_RE, "bold"), (STRIKE_RE, "strikethrough"), (ITALIC_RE, "italic")):
                    candidate = regex.match(rest)
                    if candidate and not _intraword(part, pos, pos + len(candidate.group(0))):
                        match = candidate
                        inner = candidate.group(candidate.lastindex)
                        inner_annotations = dict(annotations, **{flag: True})
                        break

            if match is None:
                pos += 1
                continue

            _append(runs, part[plain_start:pos], annotations=annotations)
            nested = parse_inline(inner, inner_annotations)
            for run in nested:
                _append(runs, run.content, link or run.link, run.annotations)
            pos += len(match.group(0))
            plain_start = pos

        _append(runs, part[plain_start:], annotations=annotations)

    return runs


def _heading(line: str) -> Optional[Block]:
    match = HEADING_RE.match(line)
    if not match:
        return None
    level = min(len(match.group(1)), 3)
    return Block(f"heading_{level}", rich_text=parse_inline(match.group(2)))


def _language(name: str) -> str:
    name = name.lower()
    return LANGUAGE_ALIASES.get(name, name)


def _split_row(line: str) -> List[str]:
    line = line.strip()
    if line.startswith('|'):
        line = line[1:]
    if line.endswith('|'):
        line = line[:-1]
    return [cell.strip() for cell in line.split('|')]


def _is_table_start(lines: List[str], i: int) -> bool:
    return (
        '|' in lines[i]
        and i + 1 < len(lines)
        and TABLE_SEPARATOR_RE.match(lines[i + 1]) is not None
        and '-' in lines[i + 1]
    )


def _starts_block(lines: List[str], i: int) -> bool:
    """Check whether line ``i`` begins something other than paragraph text."""
    line = lines[i]
    return bool(
        HEADING_RE.match(line)
        or FENCE_RE.match(line)
        or DIVIDER_RE.match(line)
        or line.lstrip().startswith('>')
        or LIST_ITEM_RE.match(line)
        or _is_table_start(lines, i)
    )


def _table_blocks(rows: List[List[str]]) -> List[Block]:
    """Build one or more table blocks, repeating the header when split."""
    width = max(len(row) for row in rows)
    table_rows = []
    for row in rows:
        row = row + [""] * (width - len(row))
        table_rows.append(Block("table_row", cells=[parse_inline(cell) for cell in row]))

    attrs = {"table_width": width, "has_column_header": True, "has_row_header": False}
    if len(table_rows) <= MAX_TABLE_ROWS:
        return [Block("table", children=table_rows, attrs=dict(attrs))]

    header, data = table_rows[0], table_rows[1:]
    chunk_size = MAX_TABLE_ROWS - 1
    blocks = []
    for start in range(0, len(data), chunk_size):
        blocks.append(Block("table", children=[header] + data[start:start + chunk_size], attrs=dict(attrs)))
    logger.debug(f"Split table of {len(table_rows)} rows into {len(blocks)} tables")
    return blocks


def _list_item(marker: str, text: str) -> Block:
    if marker[0].isdigit():
        return Block("numbered_list_item", rich_text=parse_inline(text))
    todo = TODO_RE.match(text)
    if todo:
        return Block(
            "to_do",
            rich_text=parse_inline(todo.group(2)),
            attrs={"checked": todo.group(1).lower() == 'x'},
        )
    return Block("bulleted_list_item", rich_text=parse_inline(text))


def _parse_list(lines: List[str], i: int) -> Tuple[List[Block], int]:
    """Parse consecutive list lines into items nested by indentation."""
    top: List[Block] = []
    # Stack of (indent, block) for the current nesting path
    stack: List[Tuple[int, Block]] = []

    while i < len(lines):
        match = LIST_ITEM_RE.match(lines[i])
        if not match:
            # Indented continuation of the previous item
            if stack and lines[i].startswith(' ') and lines[i].strip():
                last = stack[-1][1]
                last.rich_text.extend(parse_inline(' ' + lines[i].strip()))
                i += 1
                continue
            break

        indent = len(match.group(1).expandtabs(4))
        item = _list_item(match.group(2), match.group(3))

        while stack and stack[-1][0] >= indent:
            stack.pop()
        if stack:
            stack[-1][1].children.append(item)
        else:
            top.append(item)
        stack.append((indent, item))
        i += 1

    return top, i


def markdown_to_blocks(md_content: str) -> List[Block]:
    """Convert markdown to a list of blocks."""
    blocks: List[Block] = []
    lines = md_content.replace('\r\n', '\n').split('\n')
    i = 0

    while i < len(lines):
        line = lines[i].rstrip()

        if not line.strip():
            i += 1
            continue

        heading = _heading(line)
        fence = FENCE_RE.match(line)

        if heading:
            blocks.append(heading)
            i += 1
        elif fence:
            delimiter = fence.group(1)
            code_lines = []
            i += 1
            while i < len(lines) and not lines[i].strip().startswith(delimiter):
                code_lines.append(lines[i].rstrip())
                i += 1
            i += 1  # closing fence
            code_text = '\n'.join(code_lines)
            blocks.append(Block(
                "code",
                rich_text=_split_long(code_text, None, {}) if code_text else [],
                attrs={"language": _language(fence.group(2))},
            ))
        elif _is_table_start(lines, i):
            rows = [_split_row(line)]
            i += 2
            while i < len(lines) and '|' in lines[i] and lines[i].strip():
                rows.append(_split_row(lines[i]))
                i += 1
            blocks.extend(_table_blocks(rows))
        elif DIVIDER_RE.match(line):
            blocks.append(Block("divider"))
            i += 1
        elif line.lstrip().startswith('>'):
            quoted = []
            while i < len(lines) and lines[i].lstrip().startswith('>'):
                quoted.append(re.sub(r'^\s*>\s?', '', lines[i]).rstrip())
                i += 1
            blocks.append(Block("quote", rich_text=parse_inline('\n'.join(quoted))))
        elif LIST_ITEM_RE.match(line):
            items, i = _parse_list(lines, i)
            blocks.extend(items)
        else:
            paragraph = [line.strip()]
            i += 1
            while i < len(lines) and lines[i].strip() and not _starts_block(lines, i):
                paragraph.append(lines[i].strip())
                i += 1
            blocks.append(Block("paragraph", rich_text=parse_inline('\n'.join(paragraph))))

    return blocks
