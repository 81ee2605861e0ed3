"""Markdown rendering for Strata.

Markdown is converted with mistune using GitHub-flavoured plugins. Fenced
code blocks are highlighted with Pygments when a highlight style or line
numbering is configured.

Key classes:
- MarkdownRenderer: Converts Markdown text to HTML.
"""

from __future__ import annotations

from pathlib import Path

import mistune
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.styles import get_style_by_name
from pygments.util import ClassNotFound

from .config import CONFIG_FILENAME, MarkdownOptions
from .errors import ConfigError

RAW_HTML_OMITTED = "<!-- raw HTML omitted -->"

PLUGINS = ["strikethrough", "footnotes", "table", "url", "task_lists"]


class _HighlightRenderer(mistune.HTMLRenderer):
    """HTML renderer with optional Pygments highlighting and raw HTML filtering.

    Attributes:
        options: Markdown options from the site config.
        formatter: Pygments formatter, or None when highlighting is off.
    """

    def __init__(self, options: MarkdownOptions, formatter: HtmlFormatter | None):
        super().__init__(escape=False)
        self.options = options
        self.formatter = formatter

    def block_code(self, code: str, info: str | None = None) -> str:
        """Render a code block, highlighted when a lexer for ``info`` exists."""
        if self.formatter is not None and info:
            lang = info.split(None, 1)[0]
            try:
                lexer = get_lexer_by_name(lang, stripall=True)
            except ClassNotFound:
                lexer = None
            if lexer is not None:
                return highlight(code, lexer, self.formatter)
        return super().block_code(code, info)

    def block_html(self, html: str) -> str:
        if self.options.unsafe:
            return super().block_html(html)
        return RAW_HTML_OMITTED + "\n"

    def inline_html(self, html: str) -> str:
        if self.options.unsafe:
            return super().inline_html(html)
        return RAW_HTML_OMITTED


class MarkdownRenderer:
    """Renders Markdown content to HTML.

    A new mistune parser and Pygments formatter are created per call, so one
    instance can be shared by all rendering threads.
    """

    def __init__(self, options: MarkdownOptions | None = None):
        """Initialize the renderer.

        Args:
            options: Markdown options; defaults to no highlighting and raw
                HTML omitted.

        Raises:
            ConfigError: If the highlight style is not a known Pygments style.
        """
        self.options = options or MarkdownOptions()
        self._formatter_options = self._formatter_options_for(self.options)

    @staticmethod
    def _formatter_options_for(options: MarkdownOptions) -> dict | None:
        if not options.highlight:
            return None
        style = options.highlight_style or "default"
        try:
            get_style_by_name(style)
        except ClassNotFound as exc:
            raise ConfigError(
                Path(CONFIG_FILENAME), f"Unknown highlight style: {style}"
            ) from exc
        return {
            "style": style,
            "noclasses": True,
            "linenos": "inline" if options.line_numbers else False,
        }

    def convert(self, text: str) -> str:
        """Convert Markdown text to HTML.

        Args:
            text: Markdown source.

        Returns:
            Rendered HTML.
        """
        formatter = (
            HtmlFormatter(**self._formatter_options)
            if self._formatter_options is not None
            else None
        )
        renderer = _HighlightRenderer(self.options, formatter)
        markdown = mistune.create_markdown(renderer=renderer, plugins=PLUGINS)
        return markdown(text)
