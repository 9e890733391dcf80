"""
This is the toolkit for Sprat's own CLI, but offers an accessible API for
building project-specific CLIs.
"""
from __future__ import annotations

import argparse
import importlib
import runpy
import sys
import typing as t
from pathlib import Path

from .context import Context
from .core import BuildSettings, ConfigurationError, Filter, InputBuildSettings, OutputConflictError, Rule
from .frontmatter import FRONTMATTER_PARSER_FACTORIES
from .pretty_utils import print_with_style


class BuildNamespace:
    """
    Internal used to preserve typing between InputBuildSettings, argparse, and
    BuildSettings.
    """
    input_dir: Path
    output_dir: Path
    layouts_dir: Path | None
    frontmatter: t.Literal['simple', 'toml', 'yaml']
    purge_dirs: bool

    def __init__(self, settings: InputBuildSettings | None = None):
        if settings:
            self.__dict__.update(settings)

    def to_build_settings(self):
        """
        Convert this argparse-oriented namespace into a Context-ready
        BuildSettings.
        """
        return BuildSettings(
            input_dir=self.input_dir,
            output_dir=self.output_dir,
            layouts_dir=self.layouts_dir,
            frontmatter=self.frontmatter,
            purge_dirs=self.purge_dirs,
        )


def parse_settings_args(settings: InputBuildSettings | None = None, argv: list[str] | None = None, **kw):
    """
    Internal function used by `run_from_rules()` to combine an instance of
    InputBuildSettings with CLI arguments to produce a BuildNamespace, which
    can be easily turned into BuildSettings.
    """
    settings = settings or InputBuildSettings()
    namespace = BuildNamespace(settings)

    parser = argparse.ArgumentParser(**kw)
    parser.add_argument('-i', '--input',
                        help='input directory with content items to build',
                        type=Path,
                        dest='input_dir',
                        default=settings.get('input_dir', Path('content')))
    parser.add_argument('-o', '--output',
                        help='output directory for final built files',
                        type=Path,
                        dest='output_dir',
                        default=settings.get('output_dir', Path('output')))
    parser.add_argument('-l', '--layouts',
                        help='directory of layout templates',
                        type=Path,
                        dest='layouts_dir',
                        default=settings.get('layouts_dir'))
    parser.add_argument('--frontmatter',
                        help='parser for front matter fenced with ---',
                        choices=list(FRONTMATTER_PARSER_FACTORIES),
                        default=settings.get('frontmatter', 'yaml'))
    parser.add_argument('--purge',
                        help='purge the output directory before writing',
                        action=argparse.BooleanOptionalAction,
                        dest='purge_dirs',
                        default=settings.get('purge_dirs', True))

    return parser.parse_args(argv, namespace=namespace)


def run_from_rules(settings: InputBuildSettings | None,
                   rules: list[Rule],
                   context_cls: t.Type[Context] = Context,
                   dry_run: bool = False,
                   **kw):
    """
    Build a new Context from Settings, Rules, and command line arguments. Then,
    execute a build using the new Context, or only plan it if @dry_run is set.
    """
    final_settings = parse_settings_args(settings, **kw)
    context = context_cls(final_settings.to_build_settings(), rules)
    if dry_run:
        plan(context)
    else:
        context.run()
    return context


def plan(context: Context):
    """
    Print the output path of every item a build would write, without writing
    anything.
    """
    context.validate()
    for artifact in context.compile(context.find_items()):
        print_with_style(f'{artifact.identifier} -> {artifact.output_path}')


def pprint_filter(filter_cls: t.Type[Filter]):
    """
    Prettily display dependency information for the given Filter class.
    """
    missing = [str(d) for d in filter_cls.get_dependencies() if not d.satisfied]
    if missing:
        text = ', '.join(missing)
        print_with_style(f'✗ {filter_cls.__name__} (missing: {text})', style='red')
    else:
        print_with_style(f'✓ {filter_cls.__name__}', style='green')


def audit_filters(context: Context):
    """
    Show information about available, unavailable, and used filters.
    """
    renderer = context.renderer
    used: set[t.Type[Filter]] = set()
    for rule in context.rules:
        for name, _options in renderer.steps_for(rule):
            if name in renderer.filters:
                used.add(renderer.filters[name].__class__)

    all_filters = set(Filter.get_all_filters())
    available = set(Filter.get_available_filters())
    groups = {
        'Available filters': available,
        'Unavailable filters': all_filters - available,
        'Used filters': used,
    }
    for group_label, filter_group in groups.items():
        print(f'{group_label} ({len(filter_group)})')
        for filter_cls in sorted(filter_group, key=lambda f: f.__name__):
            pprint_filter(filter_cls)


def main(arguments: list[str] | None = None):
    """
    Sprat main function. Finds or creates a Context using a Sprat config file
    and command line arguments, then executes a build using it.
    """
    parser = argparse.ArgumentParser(description='Build a sprat site.')
    parser.add_argument('--audit-filters',
                        help=('show information about available, unavailable, '
                              'and used filters, instead of building the site'),
                        action='store_true')
    parser.add_argument('--dry-run',
                        help='print planned output paths instead of writing them',
                        action='store_true')
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument('-m',
                       help='import path of a config file to build',
                       type=importlib.import_module,
                       dest='module',
                       default=None)
    group.add_argument('config_file',
                       nargs='?',
                       help='file path to a config file to build',
                       type=Path,
                       default=None)

    args, remaining = parser.parse_known_args(arguments)

    if args.config_file:
        label = str(args.config_file)
        namespace = runpy.run_path(label)
    else:
        label = f'-m {args.module.__name__}'
        namespace = vars(args.module)

    settings: InputBuildSettings | None = namespace.get('SETTINGS')
    rules: list[Rule] | None = namespace.get('RULES')
    context: Context | None = namespace.get('CONTEXT')

    if not (context or rules):
        print_with_style(
            'Sprat config files must have a RULES or CONTEXT attribute!',
            file='stderr',
            style='red'
        )
        sys.exit(1)

    try:
        if args.audit_filters:
            if not context:
                parsed = parse_settings_args(settings, argv=remaining, prog=f'sprat {label}')
                context = Context(parsed.to_build_settings(), rules or [])
            audit_filters(context)
        elif context:
            if args.dry_run:
                plan(context)
            else:
                context.run()
        else:
            run_from_rules(settings, rules or [], dry_run=args.dry_run, argv=remaining, prog=f'sprat {label}')
    except (ConfigurationError, OutputConflictError) as e:
        print_with_style(f'Build failed: {e}', file='stderr', style='red')
        sys.exit(1)
