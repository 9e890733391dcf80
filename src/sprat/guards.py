"""
Predicates over item metadata, for use as Rule guards.

Missing fields are treated as absent, never as errors: an item without a
`status` is published.
"""
from __future__ import annotations

import typing as t

if t.TYPE_CHECKING:
    from .core import Guard, Metadata, MetaValue


def field(meta: Metadata, key: str, default: MetaValue | None = None) -> MetaValue | None:
    """
    Look up @key in @meta, returning @default if it is absent.
    """
    return meta.get(key, default)


def field_equals(key: str, value: MetaValue) -> Guard:
    """
    Guard factory matching items whose @key equals @value.
    """
    def guard(meta: Metadata) -> bool:
        return key in meta and meta[key] == value

    guard.__name__ = f'{key}_equals_{value}'
    return guard


def field_true(key: str) -> Guard:
    """
    Guard factory matching items whose @key is truthy. The strings "true",
    "yes" and "1" count as true, for front matter read without value parsing.
    """
    def guard(meta: Metadata) -> bool:
        value = meta.get(key)
        if isinstance(value, str):
            return value.strip().lower() in {'true', 'yes', '1'}
        return bool(value)

    guard.__name__ = f'{key}_is_true'
    return guard


def any_of(*guards: Guard) -> Guard:
    def guard(meta: Metadata) -> bool:
        return any(g(meta) for g in guards)
    return guard


def all_of(*guards: Guard) -> Guard:
    def guard(meta: Metadata) -> bool:
        return all(g(meta) for g in guards)
    return guard


is_draft = field_equals('status', 'draft')
