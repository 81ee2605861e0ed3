"""Site building functionality for Strata.

This module contains the core logic for building a static site: it recreates
the output directory, copies static files, discovers Markdown sources and
renders every page through its layout on a pool of worker threads.

Key functions and classes:
- build_site: Load configuration and build the site in one call.
- Builder: Runs a build for a given configuration.
- PageRenderer: Renders one source file to its output file.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, replace
from pathlib import Path

from jinja2 import TemplateError

from .config import CONFIG_FILENAME, Config, load_config
from .content import ContentExtractor
from .context import ContextValue, build_context, freeze_context
from .errors import BuildError, ConfigError, FilesystemError, TemplateRenderError
from .images import EmojiImageRenderer
from .protocols import EmojiRasterizer, MarkdownConverter
from .renderers import MarkdownRenderer
from .templates import TemplateRegistry
from .utils import copy_static, discover, ensure_clean_dir, purge_ignored, replace_ext

logger = logging.getLogger(__name__)

MARKDOWN_EXTENSION = ".md"
HTML_EXTENSION = ".html"


@dataclass
class BuildResult:
    """Result of a site build operation.

    Attributes:
        pages: Written HTML files, relative to the output directory.
        output_dir: Directory where the site was built.
        static_files: Number of static files copied.
    """

    pages: list[Path]
    output_dir: Path
    static_files: int


class PageRenderer:
    """Renders one Markdown source file into the output tree.

    Instances hold only read-only state and are shared by all worker threads.

    Attributes:
        registry: Loaded layout templates.
        base_context: Site-wide template values.
        extractor: Content extractor for source files.
        dist_dir: Output directory.
    """

    def __init__(
        self,
        registry: TemplateRegistry,
        base_context: Mapping[str, ContextValue],
        extractor: ContentExtractor,
        dist_dir: Path,
    ):
        self.registry = registry
        self.base_context = base_context
        self.extractor = extractor
        self.dist_dir = dist_dir

    def render(self, path: Path) -> Path:
        """Render ``path`` and write the page.

        Args:
            path: Source path relative to the project root.

        Returns:
            The written HTML path, relative to the output directory.

        Raises:
            BuildError: Any subclass, carrying the offending path.
        """
        html_path = replace_ext(path, MARKDOWN_EXTENSION, HTML_EXTENSION)
        template = self.registry.resolve(html_path)
        document = self.extractor.extract(path, html_path)
        context = build_context(self.base_context, document)

        try:
            rendered = template.render(context)
        except TemplateError as exc:
            raise TemplateRenderError(
                path, f"{type(exc).__name__}: {exc}", exc
            ) from exc

        dest = self.dist_dir / html_path
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            dest.write_text(rendered, encoding="utf-8")
        except OSError as exc:
            raise FilesystemError(dest, f"Cannot write page: {exc}", exc) from exc
        logger.debug("wrote %s", dest)
        return html_path


class Builder:
    """Builds a static site from a configuration.

    Attributes:
        config: Site configuration.
        project_root: Directory that config paths are relative to.
        converter: Markdown converter; built from the config when not given.
        rasterizer: Emoji renderer; built from the config when not given.
    """

    def __init__(
        self,
        config: Config,
        project_root: Path,
        converter: MarkdownConverter | None = None,
        rasterizer: EmojiRasterizer | None = None,
    ):
        self.config = config
        self.project_root = project_root
        self.converter = converter
        self.rasterizer = rasterizer

    @property
    def dist_dir(self) -> Path:
        return self.project_root / self.config.dist

    def reload_config(self) -> None:
        """Reload strata.yaml from the project root, e.g. after it changed on disk."""
        self.config = load_config(self.project_root)

    def set_base_url(self, base_url: str) -> None:
        """Override the configured base URL for subsequent builds."""
        self.config = replace(self.config, base_url=base_url)

    def run(self) -> BuildResult:
        """Build the whole site.

        The output directory is removed first, so a failed build leaves
        whatever was written before the failure and nothing of the previous
        build.

        Returns:
            BuildResult describing the written pages.

        Raises:
            BuildError: The first page failure observed, or a failure in any
                of the preparation steps. Which page failure is reported
                depends on thread scheduling when several pages fail.
            ConfigError: If a site value cannot be passed to templates.
        """
        config = self.config
        root = self.project_root
        dist_dir = self.dist_dir

        ensure_clean_dir(dist_dir)
        static_files = copy_static(root / config.static, dist_dir)

        sources = discover(
            root,
            MARKDOWN_EXTENSION,
            exclude=(root / config.static, root / config.layouts, dist_dir),
        )
        sources = purge_ignored(sources, config.build.ignore_files)
        paths = [path.relative_to(root) for path in sources]
        logger.info("found %d markdown files", len(paths))

        registry = TemplateRegistry.load(root / config.layouts)

        converter = self.converter or MarkdownRenderer(config.build.markdown)
        rasterizer = self.rasterizer or EmojiImageRenderer(config.build.og_image)
        extractor = ContentExtractor(root, dist_dir, converter, rasterizer)
        try:
            base_context = freeze_context(config.as_map())
        except TypeError as exc:
            raise ConfigError(
                root / CONFIG_FILENAME, f"Unsupported site value: {exc}"
            ) from exc
        renderer = PageRenderer(registry, base_context, extractor, dist_dir)

        logger.info("rendering markdown files")
        pages = self._render_all(renderer, paths)
        return BuildResult(pages=pages, output_dir=dist_dir, static_files=static_files)

    def _render_all(self, renderer: PageRenderer, paths: list[Path]) -> list[Path]:
        """Render every path on a bounded thread pool.

        On the first failure every task that has not started yet is
        cancelled; tasks already running are allowed to finish before the
        failure is raised.
        """

        def task(path: Path) -> Path:
            logger.info("rendering %s", path)
            return renderer.render(path)

        pages: list[Path] = []
        with ThreadPoolExecutor(max_workers=self.config.build.workers) as executor:
            futures: dict[Future[Path], Path] = {
                executor.submit(task, path): path for path in paths
            }
            for future in as_completed(futures):
                exc = future.exception()
                if exc is None:
                    pages.append(future.result())
                    continue
                for pending in futures:
                    pending.cancel()
                if isinstance(exc, BuildError):
                    raise exc
                path = futures[future]
                raise BuildError(path, f"{type(exc).__name__}: {exc}", exc) from exc
        return sorted(pages)


def build_site(
    project_root: Path,
    base_url: str | None = None,
    workers: int | None = None,
) -> BuildResult:
    """Load strata.yaml from ``project_root`` and build the site.

    Args:
        project_root: Root directory of the project.
        base_url: Optional override for the configured base URL.
        workers: Optional override for the number of rendering threads.

    Returns:
        BuildResult describing the written pages.

    Raises:
        ConfigError: If the configuration is invalid.
        BuildError: If any step of the build fails.
    """
    config = load_config(project_root)
    if workers is not None:
        if workers < 1:
            raise ConfigError(project_root, "workers must be a positive integer")
        config = replace(config, build=replace(config.build, workers=workers))
    builder = Builder(config, project_root)
    if base_url is not None:
        builder.set_base_url(base_url)
    return builder.run()
