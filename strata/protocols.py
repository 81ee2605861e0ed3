"""Protocol definitions for Strata.

The build pipeline treats Markdown conversion, emoji rasterizing and template
rendering as capabilities it calls but does not implement itself. These
protocols describe those seams, so tests and alternative engines can stand in
for the defaults.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Any, BinaryIO, Protocol, runtime_checkable


@runtime_checkable
class MarkdownConverter(Protocol):
    """Protocol for converting Markdown text to HTML."""

    @abstractmethod
    def convert(self, text: str) -> str:
        """Convert Markdown to HTML.

        Args:
            text: Markdown source without front matter.

        Returns:
            Rendered HTML.
        """
        ...


@runtime_checkable
class EmojiRasterizer(Protocol):
    """Protocol for drawing an emoji into a PNG image."""

    @abstractmethod
    def render(self, emoji: str, fp: BinaryIO) -> None:
        """Write a PNG showing ``emoji`` to ``fp``."""
        ...


@runtime_checkable
class Template(Protocol):
    """Protocol for a parsed, reusable layout template.

    Jinja2 templates satisfy it. Implementations must be safe to render
    from several threads at once.
    """

    @abstractmethod
    def render(self, *args: Any, **kwargs: Any) -> str:
        """Render the template with the given context."""
        ...
