"""
Helpers for listing articles from templates, such as feeds and index pages.
"""
from __future__ import annotations

import typing as t
from datetime import date, datetime

from .guards import is_draft
from .paths import route

if t.TYPE_CHECKING:
    from collections.abc import Iterable
    from .core import ContentItem


def _sort_key(item: ContentItem):
    created = item.meta.get('created_at')
    if isinstance(created, datetime):
        return created.replace(tzinfo=None)
    if isinstance(created, date):
        return datetime(created.year, created.month, created.day)
    if isinstance(created, str):
        try:
            return datetime.fromisoformat(created).replace(tzinfo=None)
        except ValueError:
            pass
    return datetime.min


def sorted_articles(items: Iterable[ContentItem]) -> list[ContentItem]:
    """
    Return the items whose `kind` is "article", newest `created_at` first.
    Articles without a usable `created_at` sort last.
    """
    articles = [i for i in items if i.meta.get('kind') == 'article']
    return sorted(articles, key=_sort_key, reverse=True)


def published_articles(items: Iterable[ContentItem]) -> list[ContentItem]:
    """
    Like `sorted_articles()`, but without drafts.
    """
    return [a for a in sorted_articles(items) if not is_draft(a.meta)]


def url_for(item: ContentItem | str) -> str:
    """
    Return the clean URL an article is published at, e.g. `/articles/foo/`.
    """
    identifier = item if isinstance(item, str) else item.identifier
    routed = route(identifier)
    if routed.endswith('/index.html'):
        return routed[:-len('index.html')]
    return routed


def template_globals(items: list[ContentItem]) -> dict[str, t.Any]:
    """
    The helpers made available to every template and layout.
    """
    return {
        'items': items,
        'sorted_articles': lambda: sorted_articles(items),
        'published_articles': lambda: published_articles(items),
        'url_for': url_for,
    }
