import pytest

from sprat.core import UNMATCHED, Matched, MalformedPatternError, Rule
from sprat.matching import GlobMatcher, REMatcher, compile_glob, match_rule


@pytest.mark.parametrize('pattern,identifier,expected', [
    ('/**/*.md', '/foo.md', True),
    ('/**/*.md', '/a/b/foo.md', True),
    ('/**/*.md', '/foo.html', False),
    ('/*.md', '/foo.md', True),
    ('/*.md', '/a/foo.md', False),
    ('/articles/**/*.md', '/articles/foo.md', True),
    ('/articles/**/*.md', '/articles/2023/foo.md', True),
    ('/articles/**/*.md', '/about.md', False),
    ('/articles/**', '/articles/a/b.png', True),
    ('/feed.erb', '/feed.erb', True),
    ('/feed.erb', '/feedXerb', False),
    ('/post-?.md', '/post-1.md', True),
    ('/post-?.md', '/post-10.md', False),
    ('/post-[0-9].md', '/post-7.md', True),
    ('/post-[!0-9].md', '/post-a.md', True),
    ('/post-[!0-9].md', '/post-7.md', False),
    ('/a[!x]b', '/a/b', False),
    ('/*.{md,html}', '/about.html', True),
    ('/*.{md,html}', '/about.md', True),
    ('/*.{md,html}', '/about.css', False),
    ('{/**/.*,/**/.*/**}', '/.htaccess', True),
    ('{/**/.*,/**/.*/**}', '/.git/config', True),
    ('{/**/.*,/**/.*/**}', '/static/style.css', False),
])
def test_compile_glob(pattern: str, identifier: str, expected: bool):
    assert bool(compile_glob(pattern).match(identifier)) is expected


@pytest.mark.parametrize('pattern', [
    '/post-[0-9.md',
    '/*.{md,html',
    '/foo}.md',
    '/[]',
    '/[!]',
    '/[z-a].md',
])
def test_compile_glob_malformed(pattern: str):
    with pytest.raises(MalformedPatternError):
        compile_glob(pattern)


def test_rule_with_malformed_pattern():
    with pytest.raises(MalformedPatternError):
        Rule('/articles/[.md', None)


def test_re_matcher():
    matcher = REMatcher(r'/articles/(?P<slug>[^/]+)\.md')
    match = matcher('/articles/foo.md')
    assert match and match.group('slug') == 'foo'
    assert matcher('/about.md') is None


def test_re_matcher_malformed():
    with pytest.raises(MalformedPatternError):
        REMatcher(r'/articles/(')


def test_matcher_combinations():
    md = GlobMatcher('/**/*.md')
    articles = GlobMatcher('/articles/**')
    assert (md & articles)('/articles/foo.md')
    assert not (md & articles)('/foo.md')
    assert (md | articles)('/foo.md')
    assert (md | articles)('/articles/foo.png')
    assert not (md | articles)('/foo.png')


def test_match_rule_first_match_wins():
    r1 = Rule('/articles/**/*.md', None)
    r2 = Rule('/**/*.md', None)
    result = match_rule('/articles/foo.md', [r1, r2])
    assert isinstance(result, Matched)
    assert result.rule is r1

    result = match_rule('/about.md', [r1, r2])
    assert isinstance(result, Matched)
    assert result.rule is r2


def test_match_rule_short_circuits():
    calls = []

    class RecordingMatcher(GlobMatcher):
        def __call__(self, identifier: str):
            calls.append(self.pattern)
            return super().__call__(identifier)

    rules = [
        Rule(RecordingMatcher('/**/*.md'), None),
        Rule(RecordingMatcher('/**'), None),
    ]
    match_rule('/foo.md', rules)
    assert calls == ['/**/*.md']


def test_match_rule_unmatched():
    result = match_rule('/static/style.css', [Rule('/**/*.md', None)])
    assert result is UNMATCHED
    assert not result
