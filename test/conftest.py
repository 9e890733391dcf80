import typing as t
from pathlib import Path

import pytest
from jinja2 import DictLoader, Environment

from sprat.core import BuildSettings, ContentItem, Filter
from sprat.layouts import JinjaLayouts
from sprat.pipeline import Renderer


class UpperFilter(Filter):
    def __call__(self, content: str, meta, **options: t.Any) -> str:
        return content.upper()


class AppendFilter(Filter):
    accepted_options = frozenset({'suffix'})

    def __init__(self):
        self.calls = 0

    def __call__(self, content: str, meta, **options: t.Any) -> str:
        self.calls += 1
        return content + options.get('suffix', '!')


class TitleTemplateFilter(Filter):
    def __call__(self, content: str, meta, **options: t.Any) -> str:
        return f'[{meta.get("title", "untitled")}] {content}'


@pytest.fixture
def renderer():
    return Renderer({
        'upper': UpperFilter(),
        'append': AppendFilter(),
        'template': TitleTemplateFilter(),
    })


@pytest.fixture
def layouts():
    env = Environment(loader=DictLoader({
        'default.html': '<html>{{ content }}</html>',
        'article.html': '<article title="{{ meta.title }}">{{ content }}</article>',
    }), autoescape=True)
    return JinjaLayouts(env=env)


@pytest.fixture
def build_settings(tmp_path: Path):
    return BuildSettings(
        input_dir=tmp_path / 'content',
        output_dir=tmp_path / 'output',
        layouts_dir=None,
        frontmatter='yaml',
        purge_dirs=False,
    )


def make_item(identifier: str, body: str = 'body', **meta):
    return ContentItem.create(identifier, body, meta)
