"""Content extraction for Strata.

This module turns one Markdown source file into a SourceDocument: it splits
off the front matter, renders the body to HTML and fills in the defaults for
the page slug and social-share image.

Key classes:
- FrontMatter: Page-level metadata.
- SourceDocument: A rendered source file plus its metadata.
- ContentExtractor: Builds SourceDocument instances from files.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any

from .errors import (
    FilesystemError,
    FrontMatterError,
    ImageRenderError,
    MarkdownRenderError,
)
from .extractors import extract_frontmatter
from .protocols import EmojiRasterizer, MarkdownConverter
from .utils import replace_ext

logger = logging.getLogger(__name__)


@dataclass
class FrontMatter:
    """Page metadata read from the front matter block.

    ``FrontMatter()`` is the value of a page without front matter.

    Attributes:
        post_slug: Canonical page identifier; derived from the output path
            when not given.
        og_image: Dist-relative path of the social-share image.
        emoji: Emoji used to generate ``og_image`` when that is not given.
        extra: Every other key, passed verbatim to the template.
    """

    post_slug: str = ""
    og_image: str = ""
    emoji: str = ""
    extra: dict[str, Any] = field(default_factory=dict)

    RECOGNIZED_KEYS = ("post_slug", "og_image", "emoji")

    @classmethod
    def from_mapping(cls, data: dict[str, Any], path: Path) -> FrontMatter:
        """Build FrontMatter from a parsed YAML mapping.

        Scalars in recognized keys are read as their text, so ``post_slug: 2024``
        gives the slug ``"2024"``.

        Raises:
            FrontMatterError: If a recognized key holds a mapping or a list.
        """
        values: dict[str, str] = {}
        for key in cls.RECOGNIZED_KEYS:
            value = data.get(key)
            if value is None:
                values[key] = ""
            elif isinstance(value, str):
                values[key] = value
            elif isinstance(value, bool):
                values[key] = "true" if value else "false"
            elif isinstance(value, date):
                values[key] = value.isoformat()
            elif isinstance(value, (int, float)):
                values[key] = str(value)
            else:
                raise FrontMatterError(
                    path, f"'{key}' must be a string, got {type(value).__name__}"
                )
        extra = {k: v for k, v in data.items() if k not in cls.RECOGNIZED_KEYS}
        return cls(extra=extra, **values)

    def as_map(self) -> dict[str, Any]:
        """Return all metadata as one mapping; unset recognized keys are left out."""
        data = dict(self.extra)
        for key in self.RECOGNIZED_KEYS:
            value = getattr(self, key)
            if value:
                data[key] = value
        return data


@dataclass(frozen=True)
class SourceDocument:
    """One extracted source file.

    Attributes:
        path: Source path relative to the project root.
        raw: File contents as read from disk.
        front_matter: Parsed (and defaulted) metadata.
        content: Rendered HTML of the Markdown body.
        has_front_matter: Whether the file carried a front matter block.
    """

    path: Path
    raw: bytes
    front_matter: FrontMatter
    content: str
    has_front_matter: bool = False


def apply_slug_default(front_matter: FrontMatter, html_path: Path) -> None:
    """Derive ``post_slug`` from the output path when it is not set.

    ``blog/hello.html`` becomes ``blog/hello`` on every platform.
    """
    if not front_matter.post_slug:
        front_matter.post_slug = replace_ext(html_path, ".html", "").as_posix()


class ContentExtractor:
    """Extracts SourceDocument instances from Markdown files.

    Attributes:
        project_root: Directory source paths are relative to.
        dist_dir: Output directory; generated images are written below it.
        converter: Markdown to HTML converter.
        rasterizer: Emoji to PNG renderer for social-share images.
    """

    def __init__(
        self,
        project_root: Path,
        dist_dir: Path,
        converter: MarkdownConverter,
        rasterizer: EmojiRasterizer,
    ):
        self.project_root = project_root
        self.dist_dir = dist_dir
        self.converter = converter
        self.rasterizer = rasterizer

    def extract(self, path: Path, html_path: Path) -> SourceDocument:
        """Read, split and render one source file.

        Args:
            path: Source path relative to the project root.
            html_path: Output path relative to the dist directory.

        Returns:
            The extracted document, with slug and og image defaults applied.

        Raises:
            FilesystemError: If the file cannot be read.
            FrontMatterError: If the file is not UTF-8 or its front matter
                is malformed.
            MarkdownRenderError: If the Markdown converter fails.
            ImageRenderError: If the social-share image cannot be drawn.
        """
        try:
            raw = (self.project_root / path).read_bytes()
        except OSError as exc:
            raise FilesystemError(path, f"Cannot read file: {exc}", exc) from exc
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise FrontMatterError(path, f"File is not valid UTF-8: {exc}", exc) from exc

        split = extract_frontmatter(text, path)
        if split.found:
            front_matter = FrontMatter.from_mapping(split.data, path)
        else:
            front_matter = FrontMatter()

        try:
            content = self.converter.convert(split.body)
        except Exception as exc:
            raise MarkdownRenderError(
                path, f"{type(exc).__name__}: {exc}", exc
            ) from exc

        apply_slug_default(front_matter, html_path)
        self._apply_og_image(front_matter, path)
        return SourceDocument(
            path=path,
            raw=raw,
            front_matter=front_matter,
            content=content,
            has_front_matter=split.found,
        )

    def _apply_og_image(self, front_matter: FrontMatter, path: Path) -> None:
        """Generate a share image from the emoji when no og_image is set.

        The PNG is written next to where the page's HTML goes, with the same
        base name.
        """
        if front_matter.og_image or not front_matter.emoji:
            return
        image_path = replace_ext(path, ".md", ".png")
        dest = self.dist_dir / image_path
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            fp = open(dest, "wb")
        except OSError as exc:
            raise FilesystemError(dest, f"Cannot create image file: {exc}", exc) from exc
        with fp:
            try:
                self.rasterizer.render(front_matter.emoji, fp)
            except Exception as exc:
                raise ImageRenderError(
                    path, f"Cannot render og image: {type(exc).__name__}: {exc}", exc
                ) from exc
        logger.debug("generated og image %s", dest)
        front_matter.og_image = image_path.as_posix()
