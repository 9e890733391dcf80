from pathlib import Path

from sprat import InputBuildSettings, Rule, WebIndexPathCalc, is_draft


HERE = Path(__file__).parent / 'blog'

# Optional, and can be overridden with CLI arguments.
SETTINGS = InputBuildSettings(
    input_dir=HERE / 'content',
    output_dir=Path('output/blog'),
    layouts_dir=HERE / 'layouts',
    frontmatter='yaml',
)

ARTICLE_STEPS = ['notes', 'hidden', ('markdown', {'parse_block_html': True})]


def build_rules():
    return [
        # Ignore dotfiles and anything inside dot-directories.
        Rule('{/**/.*,/**/.*/**}', None),
        # The feed is a single template, rendered by the default step.
        Rule('/feed.jinja', '/feed.xml'),
        # Articles: drafts are never written.
        Rule(
            '/articles/**/*.md',
            WebIndexPathCalc(),
            steps=ARTICLE_STEPS,
            layout=['article', 'default'],
            guard=is_draft,
        ),
        Rule('/**/*.md', WebIndexPathCalc(), steps=ARTICLE_STEPS, layout='default'),
        Rule('/**/*.html', WebIndexPathCalc(), layout='default'),
        # Everything else, like static/, is copied through unchanged.
    ]


RULES = build_rules()
