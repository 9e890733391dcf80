"""
The item source: loading ContentItems and their front matter from disk.
"""
from __future__ import annotations

import typing as t
from pathlib import Path

from .core import ContentItem, ConfigurationError
from .frontmatter import FrontMatterParser, get_frontmatter_parser, split_frontmatter

if t.TYPE_CHECKING:
    from collections.abc import Iterator
    from .core import FrontMatterName


def to_identifier(path: Path, input_dir: Path) -> str:
    """
    Convert a file path under @input_dir into a `/`-rooted identifier.
    """
    return '/' + path.relative_to(input_dir).as_posix()


def parse_item(identifier: str,
               data: bytes,
               parser: FrontMatterName | FrontMatterParser = 'yaml') -> ContentItem:
    """
    Build a ContentItem from raw file bytes. Data without front matter is kept
    byte-for-byte.
    """
    header, body = split_frontmatter(data)
    meta: dict[str, t.Any] = {}
    if header:
        kind, text = header
        parse = get_frontmatter_parser('toml' if kind == 'toml' else parser)
        parsed = parse(text)
        if not isinstance(parsed, dict):
            raise ConfigurationError(f'front matter of {identifier} is not a mapping')
        meta = parsed
    return ContentItem.create(identifier, body, meta)


def load_item(path: Path,
              input_dir: Path,
              parser: FrontMatterName | FrontMatterParser = 'yaml') -> ContentItem:
    return parse_item(to_identifier(path, input_dir), path.read_bytes(), parser)


def _walk(path: Path) -> Iterator[Path]:
    for candidate in sorted(path.iterdir()):
        if candidate.is_dir():
            yield from _walk(candidate)
        else:
            yield candidate


def find_items(input_dir: Path,
               parser: FrontMatterName | FrontMatterParser = 'yaml') -> list[ContentItem]:
    """
    Recursively load every file under @input_dir, in a stable order.
    """
    return [load_item(p, input_dir, parser) for p in _walk(input_dir)]
