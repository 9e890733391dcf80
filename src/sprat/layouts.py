"""
The layout capability, wrapping compiled content in Jinja templates.
"""
from __future__ import annotations

import typing as t
from pathlib import Path

from .core import ConfigurationError, RenderError, UnknownLayoutError
from .helpers import template_globals

if t.TYPE_CHECKING:
    from collections.abc import Sequence
    from jinja2 import Environment, Template
    from .context import Context
    from .core import Metadata


class JinjaLayouts:
    """
    Resolves layout names to Jinja templates and renders content into them.

    Templates receive the wrapped content as `content` (already marked safe),
    the item's front matter as `meta`, and the full item list as `items`.
    Layouts are looked up by exact name first, then with each of @suffixes.
    """
    def __init__(self,
                 layouts_dir: Path | None = None,
                 env: Environment | None = None,
                 suffixes: Sequence[str] = ('.html', '.j2', '.jinja'),
                 extra_globals: dict[str, t.Any] | None = None):
        self.layouts_dir = layouts_dir
        self.suffixes = tuple(suffixes)
        self._env = env
        self._extra_globals = extra_globals or {}
        self._resolved: dict[str, Template] = {}
        self.context: Context | None = None

    def bind(self, context: Context):
        self.context = context

    @property
    def env(self):
        """
        Returns the Jinja `Environment` for these layouts, creating and caching
        it if necessary.
        """
        if self._env:
            return self._env

        from jinja2 import Environment, FileSystemLoader, select_autoescape
        layouts_dir = self.layouts_dir
        if layouts_dir is None and self.context:
            layouts_dir = self.context['layouts_dir']
        if layouts_dir is None:
            raise ConfigurationError('no layouts directory is configured')
        self._env = Environment(
            loader=FileSystemLoader(layouts_dir),
            autoescape=select_autoescape(['html', 'htm', 'xml', 'j2', 'jinja']),
        )
        return self._env

    def resolve(self, name: str) -> Template:
        """
        Return the template for layout @name.
        """
        if name in self._resolved:
            return self._resolved[name]

        from jinja2 import TemplateNotFound
        for candidate in (name, *(name + suffix for suffix in self.suffixes)):
            try:
                template = self.env.get_template(candidate)
            except TemplateNotFound:
                continue
            self._resolved[name] = template
            return template
        raise UnknownLayoutError(name)

    def wrap(self, content: str, layout_name: str, meta: Metadata | None = None) -> str:
        """
        Render @content into the layout named @layout_name.
        """
        from jinja2 import TemplateError
        from markupsafe import Markup
        items = self.context.items if self.context else []
        try:
            return self.resolve(layout_name).render(
                template_globals(items),
                **self._extra_globals,
                content=Markup(content),
                meta=dict(meta or {}),
            )
        except TemplateError as e:
            raise RenderError(f'layout {layout_name!r}: {e}') from e
