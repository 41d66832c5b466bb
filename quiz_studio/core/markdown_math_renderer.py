"""Markdown + LaTeX rendering helpers for quiz text shown in the web page.

Question text, hints and rationales are authored as markdown. The server
converts them to HTML fragments and the page runs MathJax over the result,
so math is typeset in the browser rather than at save time. Raw HTML in the
source is escaped because every quiz is readable by every user.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from markdown_it import MarkdownIt

MATHJAX_SCRIPT = "https://cdn.jsdelivr.net/npm/mathjax@3/es5/tex-mml-chtml.js"


@dataclass(slots=True)
class MarkdownMathRenderer:
    """Converts markdown-with-math into HTML fragments."""

    enable_html: bool = False
    _markdown: MarkdownIt = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._markdown = (
            MarkdownIt("commonmark", {"html": self.enable_html})
            .enable("table")
            .enable("strikethrough")
        )

    def render_fragment(self, markdown_text: str) -> str:
        """Render a markdown string into an HTML fragment."""

        sanitized = markdown_text.strip()
        if not sanitized:
            return "<p><em>No content provided.</em></p>"
        return self._markdown.render(sanitized)

    def render_optional(self, markdown_text: str | None) -> str | None:
        """Like ``render_fragment`` but blank input renders to ``None``."""

        if markdown_text is None or not markdown_text.strip():
            return None
        return self._markdown.render(markdown_text.strip())


# Shared by the API server worker threads.
renderer = MarkdownMathRenderer()
