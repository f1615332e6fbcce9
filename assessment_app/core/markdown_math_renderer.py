"""Markdown + LaTeX rendering of question prompts.

Architecture note:
    Prompts are authored as markdown with ``$...$`` math. The portal renders
    them to HTML fragments once per request and leaves the math delimiters
    untouched, so whichever page embeds the fragment can typeset them with
    MathJax. Raw HTML in prompts is disabled.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from markdown_it import MarkdownIt


@dataclass(slots=True)
class MarkdownMathRenderer:
    """Converts markdown-with-math prompts into HTML fragments."""

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


renderer = MarkdownMathRenderer()
# MarkdownIt is safe for concurrent read-only renders, so the API worker
# threads share this instance.
