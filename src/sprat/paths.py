"""
Output routing: practical implementations of PathCalcs.
"""
from __future__ import annotations

import typing as t
from pathlib import PurePosixPath

from .core import PathCalc


T = t.TypeVar('T')


def _strip_ext(path: PurePosixPath) -> PurePosixPath:
    return path.with_suffix('') if path.suffix else path


def route(identifier: str, index_base: str = 'index', ext: str = '.html') -> str:
    """
    Compute a clean-URL output path for @identifier: a/b.md becomes
    a/b/index.html, while a/index.md becomes a/index.html.
    """
    path = PurePosixPath(identifier)
    stem = _strip_ext(path)
    if stem.name == index_base:
        routed = stem.with_name(index_base + ext)
    else:
        routed = stem / (index_base + ext)
    return str(routed)


class WebIndexPathCalc(PathCalc[T]):
    """
    PathCalc which nests identifiers into an index structure so that file
    extensions can be omitted in URLs.
    """
    index_base = 'index'

    def __init__(self, index_base: str | None = None, ext: str = '.html'):
        self.index_base = index_base or self.index_base
        self.ext = ext

    def __repr__(self):
        return f'WebIndexPathCalc({self.index_base!r}, {self.ext!r})'

    def __call__(self, identifier: str, match: T) -> str:
        return route(identifier, self.index_base, self.ext)


class FixedPathCalc(PathCalc[T]):
    """
    PathCalc which always produces the same output path, for single-file
    rules.
    """
    def __init__(self, path: str):
        self.path = path

    def __repr__(self):
        return f'FixedPathCalc({self.path!r})'

    def __call__(self, identifier: str, match: T) -> str:
        return self.path


class IdentityPathCalc(PathCalc[T]):
    """
    PathCalc which writes items back to their own identifier.
    """
    def __repr__(self):
        return 'IdentityPathCalc()'

    def __call__(self, identifier: str, match: T) -> str:
        return identifier


class ExtPathCalc(PathCalc[T]):
    """
    PathCalc which replaces the extension of identifiers with @ext.
    """
    def __init__(self, ext: str):
        self.ext = ext

    def __repr__(self):
        return f'ExtPathCalc({self.ext!r})'

    def __call__(self, identifier: str, match: T) -> str:
        return str(PurePosixPath(identifier).with_suffix(self.ext))
