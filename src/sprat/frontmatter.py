"""
Front matter detection and parsing.
"""
from __future__ import annotations

import re
import sys
import typing as t

from .core import FrontMatterName


FrontMatterParser = t.Callable[[str], dict]

_FENCES = {
    b'---': 'yaml',
    b'+++': 'toml',
}
_FENCE_RE = re.compile(rb'\A(---|\+\+\+)[ \t]*\r?\n')


def simple_frontmatter_parser(content: str) -> dict:
    """
    Read metadata in a very simple YAML-like `key: value` format, without
    value parsing.
    """
    meta = {}
    for line in content.splitlines():
        if not line.strip() or line.lstrip().startswith('#'):
            continue
        if ':' not in line:
            break
        key, value = line.split(':', 1)
        if not key.strip().isidentifier():
            break
        meta[key.strip()] = value.strip().strip('"\'')
    return meta


def get_toml_frontmatter_parser() -> FrontMatterParser:
    if sys.version_info < (3, 11):
        import tomli as tomllib
    else:
        import tomllib
    return tomllib.loads


def get_yaml_frontmatter_parser() -> FrontMatterParser:
    from ruamel.yaml import YAML
    yaml = YAML(typ='safe')

    def parse(content: str) -> dict:
        return yaml.load(content) or {}

    return parse


FRONTMATTER_PARSER_FACTORIES: dict[FrontMatterName, t.Callable[[], FrontMatterParser]] = {
    'simple': lambda: simple_frontmatter_parser,
    'toml': get_toml_frontmatter_parser,
    'yaml': get_yaml_frontmatter_parser,
}


def get_frontmatter_parser(parser: FrontMatterName | FrontMatterParser) -> FrontMatterParser:
    if callable(parser):
        return parser
    return FRONTMATTER_PARSER_FACTORIES[parser]()


def split_frontmatter(data: bytes) -> tuple[tuple[str, str] | None, bytes]:
    """
    Split a leading front matter block from @data. Returns the kind of fence
    ('yaml' for `---`, 'toml' for `+++`) and the header text, or None if
    there is no complete block, along with the remaining body bytes.
    """
    original = data
    data = data.removeprefix(b'\xef\xbb\xbf')
    opening = _FENCE_RE.match(data)
    if not opening:
        return None, original

    fence = opening.group(1)
    closing = re.compile(rb'^' + re.escape(fence) + rb'[ \t]*(?:\r?\n|\Z)', re.MULTILINE)
    end = closing.search(data, opening.end())
    if not end:
        return None, original

    header = data[opening.end():end.start()].decode('utf-8')
    return (_FENCES[fence], header), data[end.end():]
