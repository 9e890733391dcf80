"""
Filters for turning marked-up article text into HTML: Markdown rendering,
note and hidden-block containers, and Jinja templating.
"""
from __future__ import annotations

import abc
import html
import re
import typing as t

from markdown_it.renderer import RendererHTML

from .core import Filter, RenderError
from .dependencies import PipDependency
from .helpers import template_globals

if t.TYPE_CHECKING:
    from collections.abc import Sequence
    from jinja2 import Environment
    from markdown_it import MarkdownIt
    from markdown_it.token import Token
    from markdown_it.utils import EnvType, OptionsDict
    from .core import Metadata


class SpratRendererHTML(RendererHTML):
    """
    A markdown-it-py HTML renderer that lets highlighted code blocks supply
    their own wrapping markup.
    """
    # https://github.com/executablebooks/markdown-it-py/issues/256
    def fence(self, tokens: Sequence[Token], idx: int, options: OptionsDict, env: EnvType):
        token = tokens[idx]
        info = token.info.strip() if token.info else ''
        lang_name = info.split(maxsplit=1)[0] if info else ''
        highlighted = options.highlight and options.highlight(token.content, lang_name, '')
        return highlighted or super().fence(tokens, idx, options, env)


class MarkdownFilter(Filter):
    """
    Render CommonMark (plus tables and strikethrough) to HTML.

    With `parse_block_html`, raw HTML blocks are passed through, and Markdown
    separated from the surrounding tags by blank lines is still rendered;
    otherwise raw HTML is escaped.
    """
    accepted_options = frozenset({'parse_block_html'})

    @classmethod
    def get_dependencies(cls):
        return {
            PipDependency('markdown-it-py', check_name='markdown_it'),
            PipDependency('mdit-py-plugins', check_name='mdit_py_plugins'),
            PipDependency('Pygments', check_name='pygments'),
        }

    def __init__(self,
                 parse_block_html: bool = False,
                 auto_anchors: bool = False,
                 auto_typography: bool = False,
                 code_highlighting: bool = True,
                 pygments_params: dict[str, t.Any] | None = None):
        """
        :param parse_block_html: The default for the `parse_block_html`
            option, when a Rule step does not give one.
        :param auto_anchors: Whether to enable the `mdit_py_plugins.anchors`
            plugin.
        :param auto_typography: Whether to enable smartquotes and replacement
            functionalities in markdown-it-py.
        :param code_highlighting: Whether to highlight fenced code with
            pygments.
        :param pygments_params: Parameters to supply to
            `pygments.formatters.html.HtmlFormatter`.
        """
        self.parse_block_html = parse_block_html
        self.auto_anchors = auto_anchors
        self.auto_typography = auto_typography
        self.code_highlighting = code_highlighting
        self.pygments_params = pygments_params or {}
        self._processors: dict[bool, MarkdownIt] = {}

    def highlight_code(self, code: str, lang: str, _lang_attrs: str):
        """
        Apply pygments syntax highlighting to the provided code, returning as
        HTML markup. Unknown or missing languages are left to the default
        renderer.
        """
        from pygments import highlight
        from pygments.formatters.html import HtmlFormatter
        from pygments.lexers import get_lexer_by_name
        from pygments.util import ClassNotFound
        if not lang:
            return ''
        try:
            lexer = get_lexer_by_name(lang)
        except ClassNotFound:
            return ''
        return highlight(code, lexer, HtmlFormatter(**self.pygments_params))

    def get_processor(self, parse_block_html: bool) -> MarkdownIt:
        """
        Return a markdown-it-py processor, creating and caching it if
        necessary.
        """
        if parse_block_html in self._processors:
            return self._processors[parse_block_html]

        import markdown_it
        from mdit_py_plugins.anchors import anchors_plugin

        processor = markdown_it.MarkdownIt(
            'commonmark',
            {
                'html': parse_block_html,
                'typographer': self.auto_typography,
                'highlight': self.highlight_code if self.code_highlighting else None,
            },
            renderer_cls=SpratRendererHTML
        )
        processor.enable(['strikethrough', 'table'])
        if self.auto_typography:
            processor.enable(['smartquotes', 'replacements'])
        if self.auto_anchors:
            anchors_plugin(processor)

        self._processors[parse_block_html] = processor
        return processor

    def __call__(self, content: str, meta: Metadata, **options: t.Any) -> str:
        parse_block_html = options.get('parse_block_html', self.parse_block_html)
        return self.get_processor(bool(parse_block_html)).render(content)


class BaseContainerFilter(Filter):
    """
    A base class for filters which expand `::: name [title]` ... `:::` blocks
    into raw HTML wrappers, leaving their bodies as Markdown. Containers of
    other names are passed through untouched, and nothing inside fenced code
    is considered. Unclosed containers run to the end of the document.

    The output relies on a later Markdown step with `parse_block_html`.
    """
    container_names: tuple[str, ...] = ()

    _open_re = re.compile(r'^ {0,3}:{3,}[ \t]*(?P<name>[\w-]+)[ \t]*(?P<title>.*?)[ \t]*$')
    _close_re = re.compile(r'^ {0,3}:{3,}[ \t]*$')
    _fence_re = re.compile(r'^ {0,3}(?P<fence>`{3,}|~{3,})')

    def __init__(self, container_names: Sequence[str] | None = None):
        if container_names is not None:
            self.container_names = tuple(container_names)

    @abc.abstractmethod
    def open_markup(self, name: str, title: str) -> str:
        ...

    @abc.abstractmethod
    def close_markup(self, name: str) -> str:
        ...

    def __call__(self, content: str, meta: Metadata, **options: t.Any) -> str:
        output: list[str] = []
        # None marks a container handled by some other filter.
        stack: list[str | None] = []
        fence: str | None = None

        for line in content.splitlines():
            if fence:
                stripped = line.strip()
                if stripped.startswith(fence) and not stripped.strip(fence[0]):
                    fence = None
                output.append(line)
                continue
            if fence_match := self._fence_re.match(line):
                fence = fence_match.group('fence')
                output.append(line)
            elif open_match := self._open_re.match(line):
                name = open_match.group('name')
                if name in self.container_names:
                    stack.append(name)
                    output.extend(['', self.open_markup(name, open_match.group('title')), ''])
                else:
                    stack.append(None)
                    output.append(line)
            elif stack and self._close_re.match(line):
                name = stack.pop()
                if name is None:
                    output.append(line)
                else:
                    output.extend(['', self.close_markup(name), ''])
            else:
                output.append(line)

        while stack:
            name = stack.pop()
            if name is not None:
                output.extend(['', self.close_markup(name), ''])

        result = '\n'.join(output)
        return result + '\n' if content.endswith('\n') and not result.endswith('\n') else result


class NotesFilter(BaseContainerFilter):
    """
    Expand `::: note [title]` blocks (and `aside`, `warning` and `tip`) into
    `<aside>` elements classed by the container name.
    """
    container_names = ('note', 'aside', 'warning', 'tip')

    def open_markup(self, name: str, title: str) -> str:
        markup = f'<aside class="{name}">'
        if title:
            markup += f'\n<p class="{name}-title">{html.escape(title)}</p>'
        return markup

    def close_markup(self, name: str) -> str:
        return '</aside>'


class HiddenBlockFilter(BaseContainerFilter):
    """
    Mark `::: hidden [summary]` blocks as collapsed progressive-disclosure
    blocks, which readers can expand and collapse again.
    """
    container_names = ('hidden',)
    default_summary = 'Click to show hidden content'

    def __init__(self, container_names: Sequence[str] | None = None, default_summary: str | None = None):
        super().__init__(container_names)
        self.default_summary = default_summary or self.default_summary

    def open_markup(self, name: str, title: str) -> str:
        summary = html.escape(title or self.default_summary)
        return f'<details class="{name}">\n<summary>{summary}</summary>'

    def close_markup(self, name: str) -> str:
        return '</details>'


class TemplateFilter(Filter):
    """
    Render content as a Jinja template. Templates see their own front matter
    as `meta`, plus `items`, `published_articles()`, `sorted_articles()`,
    `url_for()` and any extra globals. Layouts are available for `include`
    and `extends`.
    """
    @classmethod
    def get_dependencies(cls):
        return {
            PipDependency('jinja2'),
        }

    def __init__(self,
                 jinja_env: Environment | None = None,
                 jinja_globals: dict[str, t.Any] | None = None):
        self._env = jinja_env
        self._extra_globals = jinja_globals or {}

    @property
    def env(self):
        """
        Returns the Jinja `Environment` for this Filter, creating and caching
        it if necessary.
        """
        if self._env:
            return self._env

        from jinja2 import Environment, FileSystemLoader
        layouts_dir = self.context['layouts_dir'] if hasattr(self, 'context') else None
        self._env = Environment(
            loader=FileSystemLoader(layouts_dir) if layouts_dir else None,
            keep_trailing_newline=True,
        )
        return self._env

    def __call__(self, content: str, meta: Metadata, **options: t.Any) -> str:
        from jinja2 import TemplateError
        items = self.context.items if hasattr(self, 'context') else []
        try:
            return self.env.from_string(content).render(
                template_globals(items),
                **self._extra_globals,
                meta=dict(meta),
            )
        except TemplateError as e:
            raise RenderError(f'template: {e}') from e


def default_filters() -> dict[str, Filter]:
    """
    A fresh table of the standard filters, keyed by the names Rules use.
    """
    return {
        'markdown': MarkdownFilter(),
        'notes': NotesFilter(),
        'hidden': HiddenBlockFilter(),
        'template': TemplateFilter(),
    }
