"""Load markdown documents and their front matter from a directory tree."""

import os
import logging
import posixpath
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Tuple, Union

import yaml

from .blocks import Block
from .converter import markdown_to_blocks
from .errors import MalformedFrontMatter
from .normalizer import normalize_blocks

logger = logging.getLogger(__name__)

FRONT_MATTER_DELIMITER = '---'
MARKDOWN_SUFFIX = '.md'
PATH_KEY = 'path'


@dataclass(frozen=True)
class Document:
    """A markdown file ready to be synced."""

    path: str
    front_matter: Dict[str, str]
    blocks: List[Block] = field(default_factory=list)


def find_markdown_files(directory: Union[str, Path]) -> List[Path]:
    """
    Find all markdown files under a directory.

    Args:
        directory: Directory to search

    Returns:
        Markdown file paths, sorted so repeated runs see the same order
    """
    directory = Path(directory)
    markdown_files = []

    for entry in sorted(directory.iterdir(), key=lambda p: p.name):
        if entry.is_dir():
            markdown_files.extend(find_markdown_files(entry))
        elif entry.name.endswith(MARKDOWN_SUFFIX):
            markdown_files.append(entry)

    return markdown_files


def _render_value(value: Any) -> str:
    """Render a parsed YAML value as property text."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ", ".join(_render_value(item) for item in value)
    return str(value)


def split_front_matter(text: str, path: str = "<string>") -> Tuple[Dict[str, str], str]:
    """
    Split YAML front matter from a markdown document.

    Args:
        text: Full document text
        path: Used in error messages

    Returns:
        Tuple of (front matter, body)

    Raises:
        MalformedFrontMatter: If the closing delimiter is missing or the
            front matter is not a YAML mapping
    """
    lines = text.split('\n')
    if not lines or lines[0].rstrip('\r') != FRONT_MATTER_DELIMITER:
        return {}, text

    end = None
    for i, line in enumerate(lines[1:], 1):
        if line.rstrip('\r') == FRONT_MATTER_DELIMITER:
            end = i
            break

    if end is None:
        raise MalformedFrontMatter(path, "failed to find front matter end")

    try:
        parsed = yaml.safe_load('\n'.join(lines[1:end]))
    except yaml.YAMLError as e:
        raise MalformedFrontMatter(path, f"invalid YAML: {e}") from e

    if parsed is None:
        parsed = {}
    if not isinstance(parsed, dict):
        raise MalformedFrontMatter(path, "front matter must be a mapping")

    front_matter = {str(key): _render_value(value) for key, value in parsed.items()}
    body = '\n'.join(lines[end + 1:])
    return front_matter, body


def document_path(file_path: Path, root: Union[str, Path]) -> str:
    """Build a document's identity path: the root as given joined with the relative path."""
    relative = file_path.relative_to(root).as_posix()
    root_str = Path(root).as_posix()
    return posixpath.normpath(posixpath.join(root_str, relative))


def load_document(file_path: Path, root: Union[str, Path]) -> Document:
    """Read a markdown file, split its front matter and convert its body."""
    path = document_path(file_path, root)
    text = file_path.read_text(encoding='utf-8')

    front_matter, body = split_front_matter(text, path)
    if PATH_KEY in front_matter and front_matter[PATH_KEY] != path:
        logger.debug(f"{path}: replacing declared path {front_matter[PATH_KEY]!r}")
    front_matter[PATH_KEY] = path

    blocks = normalize_blocks(markdown_to_blocks(body))
    logger.debug(f"{path}: {len(blocks)} blocks, {len(front_matter)} front matter keys")

    return Document(path=path, front_matter=front_matter, blocks=blocks)


def load_documents(root: Union[str, Path]) -> List[Document]:
    """
    Load every markdown document under ``root``.

    Raises:
        ValueError: If root is not a directory
        MalformedFrontMatter: On the first document with broken front matter
    """
    if not os.path.isdir(root):
        raise ValueError(f"Directory not found: {root}")

    return [load_document(file_path, root) for file_path in find_markdown_files(root)]
