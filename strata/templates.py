"""Layout templates for Strata.

Every ``.html`` file under the layouts directory is parsed once with Jinja2
and kept in a read-only registry keyed by its layouts-relative path. A page
picks its layout with a three-tier lookup, most specific first:

1. ``<page path>.html``: a layout made for exactly this page.
2. ``<page dir>/default.html``: the default for the page's directory.
3. ``default.html``: the site-wide default.

Key class:
- TemplateRegistry: Loads and resolves layout templates.
"""

from __future__ import annotations

import logging
import posixpath
from collections.abc import Mapping
from pathlib import Path, PurePath
from types import MappingProxyType

from jinja2 import (
    Environment,
    FileSystemLoader,
    TemplateError,
    TemplateSyntaxError,
    select_autoescape,
)

from .errors import FilesystemError, TemplateNotFoundError, TemplateParseError
from .protocols import Template
from .utils import discover

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE = "default.html"
TEMPLATE_EXTENSION = ".html"


def _normalize(path: PurePath | str) -> str:
    """Return ``path`` as a normalized POSIX key such as ``blog/default.html``."""
    if isinstance(path, PurePath):
        path = path.as_posix()
    return posixpath.normpath(path.replace("\\", "/"))


class TemplateRegistry:
    """Parsed layout templates, addressable by layouts-relative path.

    The registry never changes after ``load`` returns, so worker threads can
    resolve and render templates without locking.

    Attributes:
        layouts_dir: Directory holding the layouts.
        templates: Read-only mapping of normalized path to template.
    """

    def __init__(self, layouts_dir: Path, templates: Mapping[str, Template]):
        self.layouts_dir = layouts_dir
        self.templates: Mapping[str, Template] = MappingProxyType(dict(templates))

    @classmethod
    def load(cls, layouts_dir: Path) -> TemplateRegistry:
        """Parse every layout under ``layouts_dir``.

        Args:
            layouts_dir: Directory holding the layouts.

        Returns:
            The populated registry.

        Raises:
            FilesystemError: If the directory is missing or unreadable.
            TemplateParseError: If any layout fails to parse.
        """
        env = Environment(
            loader=FileSystemLoader(str(layouts_dir)),
            autoescape=select_autoescape(["html", "xml"]),
        )
        templates: dict[str, Template] = {}
        for path in discover(layouts_dir, TEMPLATE_EXTENSION):
            key = _normalize(path.relative_to(layouts_dir))
            try:
                templates[key] = env.get_template(key)
            except TemplateSyntaxError as exc:
                raise TemplateParseError(
                    path,
                    f"Template syntax error on line {exc.lineno}: {exc.message}",
                    exc,
                ) from exc
            except TemplateError as exc:
                raise TemplateParseError(path, str(exc), exc) from exc
            except (OSError, UnicodeDecodeError) as exc:
                raise FilesystemError(path, f"Cannot read template: {exc}", exc) from exc
        logger.debug("loaded %d templates from %s", len(templates), layouts_dir)
        return cls(layouts_dir, templates)

    def candidates(self, output_path: PurePath | str) -> list[str]:
        """Return the lookup keys for ``output_path``, most specific first."""
        key = _normalize(output_path)
        return [
            key,
            _normalize(posixpath.join(posixpath.dirname(key), DEFAULT_TEMPLATE)),
            DEFAULT_TEMPLATE,
        ]

    def resolve(self, output_path: PurePath | str) -> Template:
        """Pick the layout for a page.

        Args:
            output_path: Page output path relative to the dist directory,
                e.g. ``blog/post.html``.

        Returns:
            The most specific matching template.

        Raises:
            TemplateNotFoundError: If none of the three tiers exists.
        """
        for key in self.candidates(output_path):
            template = self.templates.get(key)
            if template is not None:
                return template
        raise TemplateNotFoundError(
            Path(output_path),
            f"No template found in {self.layouts_dir} "
            f"(tried {', '.join(self.candidates(output_path))})",
        )

    def __contains__(self, key: object) -> bool:
        return isinstance(key, (str, PurePath)) and _normalize(key) in self.templates

    def __len__(self) -> int:
        return len(self.templates)
