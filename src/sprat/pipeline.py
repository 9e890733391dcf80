"""
Rule execution: running filters and layouts over a single item.
"""
from __future__ import annotations

import typing as t

from .core import (
    SUPPRESSED, CompiledArtifact, ConfigurationError, FilterUnavailableException,
    RenderError, Suppressed, UnknownFilterError,
)

if t.TYPE_CHECKING:
    from collections.abc import Mapping
    from .context import Context
    from .core import ContentItem, Filter, FilterOptions, Metadata, Rule
    from .layouts import JinjaLayouts


class Renderer:
    """
    The render capability: a fixed table of named Filters, plus the name of
    the filter used when a Rule declares no steps of its own.
    """
    def __init__(self, filters: Mapping[str, Filter], default_filter: str | None = 'template'):
        self.filters = dict(filters)
        self.default_filter = default_filter

    def bind(self, context: Context):
        """
        Bind every Filter to @context.
        """
        for filter_obj in self.filters.values():
            filter_obj.bind(context)

    def resolve(self, name: str) -> Filter:
        """
        Return the Filter registered as @name.
        """
        try:
            return self.filters[name]
        except KeyError:
            raise UnknownFilterError(name) from None

    def steps_for(self, rule: Rule) -> list[tuple[str, FilterOptions]]:
        """
        Return the steps to run for @rule, substituting the default templating
        step when the Rule declares none.
        """
        if rule.steps is not None:
            return rule.steps
        if self.default_filter is None:
            return []
        return [(self.default_filter, {})]

    def check(self, rule: Rule):
        """
        Ensure every step of @rule can run, without running anything.
        """
        for name, options in self.steps_for(rule):
            filter_obj = self.resolve(name)
            if not filter_obj.is_available():
                raise FilterUnavailableException(name, filter_obj)
            unknown = set(options) - filter_obj.accepted_options
            if unknown:
                raise ConfigurationError(
                    f'filter {name!r} does not accept options: {", ".join(sorted(unknown))}'
                )

    def render(self,
               content: str,
               filter_name: str,
               options: FilterOptions | None = None,
               meta: Metadata | None = None) -> str:
        """
        Run the filter @filter_name over @content.
        """
        return self.resolve(filter_name)(content, meta or {}, **(options or {}))


def execute(item: ContentItem,
            rule: Rule,
            renderer: Renderer,
            layouts: JinjaLayouts | None = None,
            match: t.Any = None) -> CompiledArtifact | Suppressed:
    """
    Compile @item according to @rule. Guarded items and items the Rule does
    not write are suppressed before any filter runs.
    """
    if rule.guard and rule.guard(item.meta):
        return SUPPRESSED
    if rule.path_calc is None:
        return SUPPRESSED

    try:
        content = item.text
    except UnicodeDecodeError as e:
        raise RenderError(f'not valid UTF-8 at byte {e.start}', item.identifier) from e

    if rule.layouts and layouts is None:
        raise ConfigurationError(f'{rule!r} uses layouts, but no layouts are configured')
    try:
        for name, options in renderer.steps_for(rule):
            content = renderer.render(content, name, options, item.meta)
        for layout_name in rule.layouts:
            content = layouts.wrap(content, layout_name, item.meta)
    except RenderError as e:
        if e.identifier is not None:
            raise
        raise RenderError(e.reason, item.identifier) from e

    output_path = rule.output_path(item.identifier, match)
    if output_path is None:
        return SUPPRESSED
    return CompiledArtifact(output_path, content.encode('utf-8'), item.identifier)


def passthrough(item: ContentItem) -> CompiledArtifact:
    """
    Emit @item unchanged at its own identifier.
    """
    return CompiledArtifact(item.identifier, item.body, item.identifier)
