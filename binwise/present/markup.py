"""
Markup rendering - Markdown to HTML.

The rendered output is trusted and shown as raw HTML, so the
renderer must be the only source of HTML: raw HTML in model text
is escaped, not passed through.
"""

from markdown_it import MarkdownIt

_md = MarkdownIt("commonmark", {"html": False})


def render_markup(text: str) -> str:
    """Render markdown text to HTML. Pure function of its input."""
    return _md.render(text)
