"""
Practical implementations of Matchers, and first-match rule dispatch.
"""
from __future__ import annotations

import re
import typing as t

from .core import UNMATCHED, Matched, Matcher, MalformedPatternError

if t.TYPE_CHECKING:
    from collections.abc import Iterable
    from .core import MatchResult, Rule


def _translate_class(pattern: str, start: int) -> tuple[str, int]:
    end = pattern.find(']', start + 2 if pattern[start + 1:start + 2] in ('!', '^') else start + 1)
    if end == -1:
        raise MalformedPatternError(pattern, f'unclosed "[" at offset {start}')
    body = pattern[start + 1:end]
    if body.startswith('!'):
        body = '^' + body[1:]
    body = body.replace('\\', '\\\\')
    # Character classes never cross segment boundaries.
    return f'(?!/)[{body}]', end + 1


def _translate(pattern: str, start: int = 0, in_braces: bool = False) -> tuple[str, int]:
    out: list[str] = []
    i = start
    n = len(pattern)
    while i < n:
        char = pattern[i]
        if char == '*':
            if pattern.startswith('**', i):
                i += 2
                if pattern.startswith('/', i):
                    i += 1
                    out.append('(?:.*/)?')
                else:
                    out.append('.*')
                continue
            out.append('[^/]*')
        elif char == '?':
            out.append('[^/]')
        elif char == '[':
            part, i = _translate_class(pattern, i)
            out.append(part)
            continue
        elif char == '{':
            alternatives: list[str] = []
            i += 1
            while True:
                part, i = _translate(pattern, i, in_braces=True)
                alternatives.append(part)
                if i >= n:
                    raise MalformedPatternError(pattern, 'unclosed "{"')
                i += 1
                if pattern[i - 1] == '}':
                    break
            out.append('(?:' + '|'.join(alternatives) + ')')
            continue
        elif in_braces and char in ',}':
            return ''.join(out), i
        elif char == '}':
            raise MalformedPatternError(pattern, f'unbalanced "}}" at offset {i}')
        else:
            out.append(re.escape(char))
        i += 1
    return ''.join(out), i


def compile_glob(pattern: str) -> re.Pattern[str]:
    """
    Compile a glob pattern into a regular expression matching whole
    identifiers. `**` matches across path segments (and `/**/` matches a
    single `/`), while `*`, `?` and `[...]` stay inside one segment. `{a,b}`
    matches either alternative.
    """
    translated, _ = _translate(pattern)
    try:
        return re.compile(translated + r'\Z', re.DOTALL)
    except re.error as e:
        raise MalformedPatternError(pattern, str(e)) from e


class GlobMatcher(Matcher['re.Match[str] | None']):
    """
    Identifier Matcher using glob patterns.
    """
    def __init__(self, pattern: str):
        self.pattern = pattern
        self.regex = compile_glob(pattern)

    def __repr__(self):
        return f'GlobMatcher({self.pattern!r})'

    def __call__(self, identifier: str):
        return self.regex.match(identifier)


class REMatcher(Matcher['re.Match[str] | None']):
    """
    Identifier Matcher using regular expressions. @re_flags will be passed to
    `re.compile()`.
    """
    def __init__(self, re_string: str, re_flags: int = 0):
        try:
            self.regex = re.compile(re_string, re_flags)
        except re.error as e:
            raise MalformedPatternError(re_string, str(e)) from e

    def __repr__(self):
        return f'REMatcher({self.regex.pattern!r})'

    def __call__(self, identifier: str):
        return self.regex.match(identifier)


def match_rule(identifier: str, rules: Iterable[Rule]) -> MatchResult:
    """
    Find the first Rule in @rules matching @identifier. Later rules are never
    evaluated once one matches.
    """
    for rule in rules:
        match = rule.matcher(identifier)
        if match:
            return Matched(rule, match)
    return UNMATCHED
