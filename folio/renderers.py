"""Markdown rendering for Folio.

Converts a post's markdown body to HTML with Pygments syntax highlighting
for fenced code blocks.

Key classes:
- MarkdownRenderer: Renders Markdown to HTML.
"""

from __future__ import annotations

import html

import mistune
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

HIGHLIGHT_CSS_CLASS = "highlight"


class _HighlightRenderer(mistune.HTMLRenderer):
    """HTML renderer that highlights fenced code with Pygments."""

    def __init__(self):
        super().__init__(escape=False)

    def block_code(self, code: str, info: str | None = None) -> str:
        """Render a code block with Pygments syntax highlighting.

        Unknown or missing languages render as plain escaped text.

        Args:
            code: The code content.
            info: Info string of the fence (language first).

        Returns:
            HTML string with highlighted code.
        """
        lang = info.strip().split(None, 1)[0] if info and info.strip() else ""
        if lang:
            try:
                lexer = get_lexer_by_name(lang, stripall=True)
            except ClassNotFound:
                lexer = None
            if lexer is not None:
                formatter = HtmlFormatter(nowrap=False, cssclass=HIGHLIGHT_CSS_CLASS)
                return highlight(code, lexer, formatter)
        escaped = html.escape(code, quote=False)
        lang_class = f' class="language-{html.escape(lang)}"' if lang else ""
        return f"<pre><code{lang_class}>{escaped}</code></pre>\n"


class MarkdownRenderer:
    """Renders Markdown content to HTML.

    Raw HTML in the source is passed through. Malformed markdown never
    raises; mistune renders it best-effort.
    """

    plugins = ["strikethrough", "footnotes", "table", "url"]

    def render(self, content: str) -> str:
        """Render Markdown content to HTML.

        Args:
            content: Markdown source content.

        Returns:
            Rendered HTML.
        """
        markdown = mistune.create_markdown(
            renderer=_HighlightRenderer(), plugins=self.plugins
        )
        return markdown(content)


def pygments_css(style: str = "default", scope: str = f".{HIGHLIGHT_CSS_CLASS}") -> str:
    """Return Pygments CSS rules for highlighted code blocks.

    Args:
        style: Pygments style name.
        scope: CSS selector the rules are scoped to.

    Returns:
        CSS string.
    """
    return HtmlFormatter(style=style).get_style_defs(scope)


default_renderer = MarkdownRenderer()
