"""
Sprat is a small rule-based static site compiler for blogs: ordered glob
rules decide which filters and layouts each content item goes through, and
where it is written.
"""
from .context import Context
from .core import (
    SUPPRESSED, UNMATCHED, BuildSettings, CompiledArtifact, ConfigurationError, ContentItem, Filter,
    InputBuildSettings, Matched, Matcher, OutputConflictError, PathCalc, RenderError, Rule,
    UnknownFilterError, UnknownLayoutError,
)
from .filters import HiddenBlockFilter, MarkdownFilter, NotesFilter, TemplateFilter, default_filters
from .guards import all_of, any_of, field_equals, field_true, is_draft
from .helpers import published_articles, sorted_articles, url_for
from .layouts import JinjaLayouts
from .matching import GlobMatcher, REMatcher, match_rule
from .paths import ExtPathCalc, FixedPathCalc, IdentityPathCalc, WebIndexPathCalc, route
from .pipeline import Renderer, execute, passthrough
