"""
Core classes and types for the Sprat build pipeline.
"""
from __future__ import annotations

import abc
import enum
import inspect
import typing as t
from datetime import date, datetime
from types import MappingProxyType

from .dependencies import Dependency

if t.TYPE_CHECKING:
    from collections.abc import Mapping, Sequence, Set
    from pathlib import Path
    from .context import Context


T = t.TypeVar('T')
T2 = t.TypeVar('T2')

MetaValue = t.Union[str, bool, date, datetime]
Metadata = t.Mapping[str, MetaValue]
Guard = t.Callable[[Metadata], bool]
FilterOptions = dict[str, t.Any]
StepSpec = t.Union[str, tuple[str, FilterOptions]]
FrontMatterName = t.Literal['simple', 'toml', 'yaml']


def normalize_meta(raw: Mapping[str, t.Any]) -> dict[str, MetaValue]:
    """
    Coerce parsed front matter into the closed set of metadata value types.
    None values are dropped so that they read as absent.
    """
    meta: dict[str, MetaValue] = {}
    for key, value in raw.items():
        if value is None:
            continue
        if isinstance(value, (str, bool, date)):
            meta[str(key)] = value
        elif isinstance(value, (list, tuple, set)):
            meta[str(key)] = ', '.join(str(v) for v in value)
        else:
            meta[str(key)] = str(value)
    return meta


class InputBuildSettings(t.TypedDict, total=False):
    """
    TypedDict for defining build settings in a Sprat config file.
    """
    input_dir: Path
    output_dir: Path
    layouts_dir: Path | None
    frontmatter: FrontMatterName
    purge_dirs: bool


class BuildSettings(t.TypedDict):
    """
    TypedDict for processed build settings ready for passing to Context.
    """
    input_dir: Path
    output_dir: Path
    layouts_dir: Path | None
    frontmatter: FrontMatterName
    purge_dirs: bool


class ContentItem(t.NamedTuple):
    """
    A single unit of source content, with its logical identifier, raw body,
    and the metadata read from its front matter.
    """
    identifier: str
    body: bytes
    meta: Metadata = MappingProxyType({})

    @classmethod
    def create(cls, identifier: str, body: bytes | str, meta: Mapping[str, t.Any] | None = None):
        """
        Build a ContentItem, encoding @body if necessary and freezing @meta.
        """
        if isinstance(body, str):
            body = body.encode('utf-8')
        return cls(identifier, body, MappingProxyType(normalize_meta(meta or {})))

    @property
    def text(self) -> str:
        return self.body.decode('utf-8')


class CompiledArtifact(t.NamedTuple):
    """
    The result of compiling one item: the bytes to write and where to write
    them.
    """
    output_path: str
    data: bytes
    identifier: str


class Suppressed(enum.Enum):
    """
    Sentinel for items which matched a rule but must not be written.
    """
    SUPPRESSED = 'suppressed'

    def __repr__(self):
        return 'SUPPRESSED'


SUPPRESSED = Suppressed.SUPPRESSED


class Matcher(t.Generic[T], abc.ABC):
    """
    Abstract base class for identifier Matchers. Provides pre-baked ability to
    combine Matchers with | and &.
    """
    @abc.abstractmethod
    def __call__(self, identifier: str) -> T:
        ...

    def __or__(self, other: Matcher[T2]):
        return _OrMatcher(self, other)

    def __and__(self, other: Matcher[T2]):
        return _AndMatcher(self, other)


class _OrMatcher(Matcher[T | T2]):
    def __init__(self, left: Matcher[T], right: Matcher[T2]):
        self.left = left
        self.right = right

    def __call__(self, identifier: str):
        return self.left(identifier) or self.right(identifier)


class _AndMatcher(Matcher[T | T2]):
    def __init__(self, left: Matcher[T], right: Matcher[T2]):
        self.left = left
        self.right = right

    def __call__(self, identifier: str):
        return self.left(identifier) and self.right(identifier)


class PathCalc(t.Generic[T], abc.ABC):
    """
    Abstract base class for output policies, which use `Matcher` match data to
    determine output paths from identifiers. Returning None vetoes writing.
    """
    @abc.abstractmethod
    def __call__(self, identifier: str, match: T) -> str | None:
        ...


class Rule(t.Generic[T]):
    """
    A single compilation rule, with a matcher, an output policy, an ordered
    list of filter steps, optional layouts, and an optional guard.

    :param matcher: A `Matcher`, or a glob string to compile into one.
    :param path_calc: A `PathCalc`, a fixed output path, or None to consume
        matching items without writing anything.
    :param steps: Filter names or `(name, options)` pairs, run in order.
        None selects the renderer's default templating step; an empty
        sequence runs no filters at all.
    :param layout: A layout name, or a sequence of them applied innermost
        first.
    :param guard: A predicate over item metadata. When it holds, the item is
        suppressed.
    """
    def __init__(self,
                 matcher: Matcher[T] | str,
                 path_calc: PathCalc[T] | str | None,
                 steps: Sequence[StepSpec] | None = None,
                 layout: str | Sequence[str] | None = None,
                 guard: Guard | None = None):
        if isinstance(matcher, str):
            from .matching import GlobMatcher
            matcher = GlobMatcher(matcher)
        self.matcher = matcher
        if isinstance(path_calc, str):
            from .paths import FixedPathCalc
            path_calc = FixedPathCalc(path_calc)
        self.path_calc = path_calc
        self.steps = None if steps is None else [self._normalize_step(s) for s in steps]
        if isinstance(layout, str):
            layout = [layout]
        self.layouts: list[str] = list(layout or [])
        self.guard = guard

    def __repr__(self):
        return f'Rule({self.matcher!r}, {self.path_calc!r})'

    @staticmethod
    def _normalize_step(step: StepSpec) -> tuple[str, FilterOptions]:
        if isinstance(step, str):
            return step, {}
        name, options = step
        return name, dict(options)

    def output_path(self, identifier: str, match: T) -> str | None:
        """
        Apply this Rule's output policy to @identifier.
        """
        if self.path_calc is None:
            return None
        return self.path_calc(identifier, match)


class Matched(t.NamedTuple):
    rule: Rule
    match: t.Any


class _Unmatched:
    def __bool__(self):
        return False

    def __repr__(self):
        return 'UNMATCHED'


UNMATCHED = _Unmatched()
MatchResult = t.Union[Matched, _Unmatched]


class Filter(abc.ABC):
    """
    Abstract base class for Filters, the named content transforms that make up
    a Rule's steps.
    """
    context: Context
    accepted_options: frozenset[str] = frozenset()
    _filter_registry: list[t.Type[Filter]] = []

    def __init_subclass__(cls, **kw):
        super().__init_subclass__(**kw)
        cls._filter_registry.append(cls)

    @classmethod
    def get_all_filters(cls):
        """
        Return a list of all currently known concrete Filters.
        """
        return [f for f in cls._filter_registry if not inspect.isabstract(f)]

    @classmethod
    def get_available_filters(cls):
        """
        Return a list of all currently known Filters whose requirements are
        met.
        """
        return [f for f in cls.get_all_filters() if f.is_available()]

    @classmethod
    def is_available(cls) -> bool:
        """
        Return whether this Filter's requirements are installed, making it
        available for use.
        """
        return all(d.satisfied for d in cls.get_dependencies())

    @classmethod
    def get_dependencies(cls) -> Set[Dependency]:
        """
        Return the requirements for this Filter.
        """
        return set()

    def bind(self, context: Context):
        """
        Bind this Filter to a Context.
        """
        self.context = context

    @abc.abstractmethod
    def __call__(self, content: str, meta: Metadata, **options: t.Any) -> str:
        ...


class ConfigurationError(Exception):
    """
    Base class for errors in the build configuration. These are always fatal
    to the whole build.
    """


class MalformedPatternError(ConfigurationError):
    """
    Exception raised when a glob pattern cannot be compiled.
    """
    def __init__(self, pattern: str, reason: str):
        self.pattern = pattern
        super().__init__(f'malformed pattern {pattern!r}: {reason}')


class UnknownFilterError(ConfigurationError):
    """
    Exception raised when a Rule names a filter the Renderer does not know.
    """
    def __init__(self, name: str):
        self.name = name
        super().__init__(f'unknown filter {name!r}')


class UnknownLayoutError(ConfigurationError):
    """
    Exception raised when a Rule names a layout that cannot be resolved.
    """
    def __init__(self, name: str):
        self.name = name
        super().__init__(f'unknown layout {name!r}')


class FilterUnavailableException(ConfigurationError):
    """
    Exception raised when a filter to be used is unavailable due to missing
    dependencies.
    """
    def __init__(self, name: str, filter_obj: Filter):
        self.name = name
        self.filter = filter_obj
        super().__init__(f'filter {name!r} is unavailable due to missing dependencies')


class RenderError(ConfigurationError):
    """
    Exception raised when an item cannot be rendered, such as a template
    error or a body that is not valid UTF-8. Filters and layouts raise it
    without an identifier; the pipeline fills in the item it was compiling.
    """
    def __init__(self, reason: str, identifier: str | None = None):
        self.reason = reason
        self.identifier = identifier
        super().__init__(f'{identifier}: {reason}' if identifier else reason)


class OutputConflictError(Exception):
    """
    Exception raised when two items would be written to the same output path,
    or when one item's output would have to be both a file and a directory.
    """
    def __init__(self, output_path: str, first: str, second: str):
        self.output_path = output_path
        self.identifiers = (first, second)
        super().__init__(f'{first!r} and {second!r} both write to {output_path!r}')
