from pathlib import Path

import pytest

from conftest import make_item
from sprat.context import Context
from sprat.core import (
    BuildSettings, ConfigurationError, OutputConflictError, RenderError, Rule, UnknownLayoutError,
)
from sprat.guards import is_draft
from sprat.paths import WebIndexPathCalc
from sprat.pipeline import Renderer


def blog_rules():
    return [
        Rule('/feed.erb', '/feed.xml'),
        Rule('/**/*.html', WebIndexPathCalc(), steps=[]),
        Rule('/articles/**/*.md', WebIndexPathCalc(), steps=['upper'], guard=is_draft),
    ]


def test_compile_end_to_end(build_settings: BuildSettings, renderer: Renderer):
    context = Context(build_settings, blog_rules(), renderer)
    items = [
        make_item('/feed.erb', 'feed'),
        make_item('/articles/post-1.md', 'one', status='published'),
        make_item('/articles/post-2.md', 'two', status='draft'),
        make_item('/about.html', 'about'),
    ]
    artifacts = context.compile(items)
    assert {a.output_path: a.data for a in artifacts} == {
        '/feed.xml': b'[untitled] feed',
        '/articles/post-1/index.html': b'ONE',
        '/about/index.html': b'about',
    }


def test_compile_passthrough(build_settings: BuildSettings, renderer: Renderer):
    context = Context(build_settings, blog_rules(), renderer)
    item = make_item('/static/logo.png')._replace(body=b'\x89PNG\x00')
    [artifact] = context.compile([item])
    assert artifact.output_path == '/static/logo.png'
    assert artifact.data == b'\x89PNG\x00'


def test_compile_without_passthrough(build_settings: BuildSettings, renderer: Renderer):
    context = Context(build_settings, blog_rules(), renderer, passthrough=False)
    assert context.compile([make_item('/static/logo.png')]) == []


def test_compile_rule_order(build_settings: BuildSettings, renderer: Renderer):
    rules = [
        Rule('/articles/**/*.md', WebIndexPathCalc(), steps=['upper']),
        Rule('/**/*.md', WebIndexPathCalc(), steps=['append']),
    ]
    context = Context(build_settings, rules, renderer)
    artifacts = context.compile([make_item('/articles/foo.md', 'a'), make_item('/foo.md', 'b')])
    assert [a.data for a in artifacts] == [b'A', b'b!']


def test_compile_output_conflict(build_settings: BuildSettings, renderer: Renderer):
    rules = [Rule('/**/*.md', WebIndexPathCalc(), steps=[])]
    context = Context(build_settings, rules, renderer)
    items = [make_item('/foo.md'), make_item('/foo/index.md')]
    with pytest.raises(OutputConflictError) as info:
        context.compile(items)
    assert info.value.identifiers == ('/foo.md', '/foo/index.md')
    assert info.value.output_path == '/foo/index.html'


def test_compile_conflict_with_passthrough(build_settings: BuildSettings, renderer: Renderer):
    rules = [Rule('/feed.erb', '/feed.xml')]
    context = Context(build_settings, rules, renderer)
    with pytest.raises(OutputConflictError):
        context.compile([make_item('/feed.erb'), make_item('/feed.xml')])


@pytest.mark.parametrize('order', [
    ['/about', '/about.html'],
    ['/about.html', '/about'],
])
def test_compile_file_directory_conflict(build_settings: BuildSettings, renderer: Renderer, order: list[str]):
    rules = [Rule('/**/*.html', WebIndexPathCalc(), steps=[])]
    context = Context(build_settings, rules, renderer)
    with pytest.raises(OutputConflictError) as info:
        context.compile([make_item(identifier) for identifier in order])
    assert info.value.identifiers == tuple(order)


def test_compile_nested_outputs_do_not_conflict(build_settings: BuildSettings, renderer: Renderer):
    rules = [Rule('/**/*.html', WebIndexPathCalc(), steps=[])]
    context = Context(build_settings, rules, renderer)
    artifacts = context.compile([make_item('/about.html'), make_item('/about/team.html')])
    assert [a.output_path for a in artifacts] == ['/about/index.html', '/about/team/index.html']


def test_compile_names_item_on_template_error(build_settings: BuildSettings):
    context = Context(build_settings, [Rule('/**/*.html', WebIndexPathCalc())])
    with pytest.raises(RenderError) as info:
        context.compile([make_item('/ok.html', 'fine'), make_item('/broken.html', '{% if %}')])
    assert info.value.identifier == '/broken.html'
    assert isinstance(info.value, ConfigurationError)


def test_validate(build_settings: BuildSettings, renderer: Renderer, layouts):
    Context(build_settings, blog_rules(), renderer, layouts).validate()

    bad_filter = [Rule('/**', None, steps=['kramdown'])]
    with pytest.raises(ConfigurationError):
        Context(build_settings, bad_filter, renderer, layouts).validate()

    bad_layout = [Rule('/**', None, steps=[], layout='nope')]
    with pytest.raises(UnknownLayoutError):
        Context(build_settings, bad_layout, renderer, layouts).validate()


def test_validate_layouts_without_directory(build_settings: BuildSettings, renderer: Renderer):
    rules = [Rule('/**', None, steps=[], layout='default')]
    with pytest.raises(ConfigurationError):
        Context(build_settings, rules, renderer).validate()


def test_run_writes_outputs(build_settings: BuildSettings, renderer: Renderer):
    context = Context(build_settings, blog_rules(), renderer)
    written = context.run([
        make_item('/articles/post-1.md', 'one'),
        make_item('/articles/post-2.md', 'two', status='draft'),
        make_item('/static/style.css', 'body {}'),
    ])
    output_dir: Path = build_settings['output_dir']
    assert sorted(p.relative_to(output_dir).as_posix() for p in written) == [
        'articles/post-1/index.html',
        'static/style.css',
    ]
    assert (output_dir / 'articles/post-1/index.html').read_text() == 'ONE'
    assert not (output_dir / 'articles/post-2').exists()


def test_run_reads_input_dir(build_settings: BuildSettings, renderer: Renderer):
    input_dir: Path = build_settings['input_dir']
    (input_dir / 'articles').mkdir(parents=True)
    (input_dir / 'articles' / 'a.md').write_text('---\nstatus: draft\n---\nA\n')
    (input_dir / 'articles' / 'b.md').write_text('---\ntitle: B\n---\nB\n')
    context = Context(build_settings, blog_rules(), renderer)
    context.run()
    output_dir: Path = build_settings['output_dir']
    assert (output_dir / 'articles/b/index.html').read_text() == 'B\n'
    assert not (output_dir / 'articles/a').exists()


def test_run_fails_closed(build_settings: BuildSettings, renderer: Renderer):
    rules = [Rule('/**/*.md', WebIndexPathCalc(), steps=[])]
    context = Context(build_settings, rules, renderer)
    with pytest.raises(OutputConflictError):
        context.run([make_item('/a.md'), make_item('/b.md'), make_item('/b/index.md')])
    assert not build_settings['output_dir'].exists()


def test_run_fails_closed_on_file_directory_conflict(build_settings: BuildSettings, renderer: Renderer):
    rules = [Rule('/**/*.html', WebIndexPathCalc(), steps=[])]
    context = Context(build_settings, rules, renderer)
    with pytest.raises(OutputConflictError):
        context.run([make_item('/a.txt'), make_item('/about', 'file'), make_item('/about.html', 'page')])
    assert not build_settings['output_dir'].exists()


def test_run_purges(build_settings: BuildSettings, renderer: Renderer):
    output_dir: Path = build_settings['output_dir']
    output_dir.mkdir()
    (output_dir / 'stale.html').write_text('old')
    settings = BuildSettings(**{**build_settings, 'purge_dirs': True})
    Context(settings, blog_rules(), renderer).run([make_item('/about.html', 'about')])
    assert not (output_dir / 'stale.html').exists()
    assert (output_dir / 'about/index.html').exists()
