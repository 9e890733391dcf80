"""
The build context, tying items, rules, filters and layouts into a full build.
"""
from __future__ import annotations

import typing as t

from .core import SUPPRESSED, CompiledArtifact, Matched, OutputConflictError
from .filters import default_filters
from .layouts import JinjaLayouts
from .matching import match_rule
from .output import FileSystemWriter, normalize_output_path, purge
from .pipeline import Renderer, execute, passthrough
from .pretty_utils import print_with_style, track_progress
from .source import find_items

if t.TYPE_CHECKING:
    from pathlib import Path
    from .core import BuildSettings, ContentItem, MatchResult, Rule, Suppressed


class Context:
    """
    A context and configuration class for building Sprat projects.

    Rules are evaluated in order for every item, and the first match wins.
    Items no Rule matches are copied through unchanged when @passthrough is
    set, and dropped otherwise.
    """
    def __init__(self,
                 settings: BuildSettings,
                 rules: list[Rule],
                 renderer: Renderer | None = None,
                 layouts: JinjaLayouts | None = None,
                 passthrough: bool = True):
        self.settings = settings
        self.rules = list(rules)
        self.renderer = renderer or Renderer(default_filters())
        self.layouts = layouts or JinjaLayouts()
        self.passthrough = passthrough
        self.items: list[ContentItem] = []
        self.renderer.bind(self)
        self.layouts.bind(self)

    def __getitem__(self, key: str) -> t.Any:
        return self.settings[key]

    def validate(self):
        """
        Check every Rule's filters and layouts, raising a `ConfigurationError`
        for the first one that cannot be used.
        """
        for rule in self.rules:
            self.renderer.check(rule)
            for layout in rule.layouts:
                self.layouts.resolve(layout)

    def find_items(self) -> list[ContentItem]:
        """
        Overridable function to load the items to build. Default behavior is to
        load every file under the input directory.
        """
        return find_items(self['input_dir'], self['frontmatter'])

    def match(self, identifier: str) -> MatchResult:
        return match_rule(identifier, self.rules)

    def compile_item(self, item: ContentItem) -> CompiledArtifact | Suppressed:
        """
        Compile a single item through its matching Rule, or pass it through if
        none matches.
        """
        result = self.match(item.identifier)
        if isinstance(result, Matched):
            return execute(item, result.rule, self.renderer, self.layouts, result.match)
        if self.passthrough:
            return passthrough(item)
        return SUPPRESSED

    def compile(self, items: list[ContentItem]) -> list[CompiledArtifact]:
        """
        Compile @items into artifacts, refusing to let two items share an
        output path, or one item's file sit where another needs a directory.
        """
        self.items = list(items)
        artifacts: list[CompiledArtifact] = []
        claimed: dict[str, str] = {}
        # directory prefix -> first item writing beneath it
        directories: dict[str, str] = {}

        for item in track_progress(self.items, 'Compiling...'):
            artifact = self.compile_item(item)
            if artifact is SUPPRESSED:
                continue
            key = normalize_output_path(artifact.output_path)
            if key in claimed:
                raise OutputConflictError(artifact.output_path, claimed[key], item.identifier)
            if key in directories:
                raise OutputConflictError(artifact.output_path, directories[key], item.identifier)
            parts = key.split('/')
            parents = ['/'.join(parts[:i]) for i in range(1, len(parts))]
            for parent in parents:
                if parent in claimed:
                    raise OutputConflictError(parent, claimed[parent], item.identifier)
            claimed[key] = item.identifier
            for parent in parents:
                directories.setdefault(parent, item.identifier)
            artifacts.append(artifact)

        return artifacts

    def run(self, items: list[ContentItem] | None = None) -> list[Path]:
        """
        Validate the configuration, compile every item, and only then write
        the results. Any error aborts the build before the first write.
        """
        self.validate()
        if items is None:
            items = self.find_items()
        artifacts = self.compile(items)

        if self['purge_dirs']:
            purge(self['output_dir'])
        writer = FileSystemWriter(self['output_dir'])
        written = [writer.write(a) for a in track_progress(artifacts, 'Writing...')]

        print_with_style(
            f'Built {len(written)} of {len(items)} items into {self["output_dir"]}',
            style='green'
        )
        return written
