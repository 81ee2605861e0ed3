"""Site configuration for Strata.

Configuration lives in ``strata.yaml`` at the project root. Missing keys fall
back to ``DEFAULT_CONFIG``; the loaded values are turned into frozen
dataclasses so a build can share them across worker threads without copying.

Key functions:
- load_config: Loads and validates strata.yaml.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError

CONFIG_FILENAME = "strata.yaml"

DEFAULT_CONFIG: dict[str, Any] = {
    "title": "",
    "description": "",
    "base_url": "",
    "static": "static",
    "layouts": "layouts",
    "dist": "dist",
    "build": {
        "ignore_files": [],
        "workers": None,
        "markdown": {
            "highlight": {},
            "renderer": {"unsafe": False},
        },
        "og_image": {
            "width": 1200,
            "height": 630,
            "background": "#ffffff",
            "font": None,
            "font_size": 109,
        },
    },
}

_RESERVED_KEYS = ("title", "description", "base_url", "static", "layouts", "dist", "build")


@dataclass(frozen=True)
class MarkdownOptions:
    """Options handed to the Markdown converter.

    Attributes:
        highlight_style: Pygments style name; enables highlighting when set.
        line_numbers: Whether highlighted code gets line numbers; enables
            highlighting when set.
        unsafe: Whether raw HTML in Markdown is passed through unescaped.
    """

    highlight_style: str | None = None
    line_numbers: bool | None = None
    unsafe: bool = False

    @property
    def highlight(self) -> bool:
        return self.highlight_style is not None or self.line_numbers is not None


@dataclass(frozen=True)
class OgImageOptions:
    """Canvas settings for generated social-share images."""

    width: int = 1200
    height: int = 630
    background: str = "#ffffff"
    font: Path | None = None
    font_size: int = 109


@dataclass(frozen=True)
class BuildConfig:
    ignore_files: tuple[str, ...] = ()
    workers: int | None = None
    markdown: MarkdownOptions = field(default_factory=MarkdownOptions)
    og_image: OgImageOptions = field(default_factory=OgImageOptions)


@dataclass(frozen=True)
class Config:
    """Site configuration.

    Directory attributes are relative to the project root unless absolute.

    Attributes:
        title: Site title.
        description: Site description.
        base_url: Public base URL of the site.
        static: Directory copied verbatim into the output.
        layouts: Directory holding the layout templates.
        dist: Output directory.
        params: Any other top-level keys, passed to every template.
        build: Build options.
    """

    title: str = ""
    description: str = ""
    base_url: str = ""
    static: Path = Path("static")
    layouts: Path = Path("layouts")
    dist: Path = Path("dist")
    params: dict[str, Any] = field(default_factory=dict)
    build: BuildConfig = field(default_factory=BuildConfig)

    def as_map(self) -> dict[str, Any]:
        """Return the site-wide values every template can see."""
        data = dict(self.params)
        data.update(
            {
                "title": self.title,
                "description": self.description,
                "base_url": self.base_url,
            }
        )
        return data


def load_config(project_root: Path) -> Config:
    """Load site configuration from strata.yaml.

    Args:
        project_root: Root directory of the project.

    Returns:
        Config with defaults applied for anything the file leaves out.

    Raises:
        ConfigError: If the file is unreadable, not valid YAML, or holds
            values of the wrong type.
    """
    config_path = project_root / CONFIG_FILENAME
    raw = copy.deepcopy(DEFAULT_CONFIG)
    if config_path.exists():
        try:
            with open(config_path, encoding="utf-8") as f:
                loaded = yaml.safe_load(f) or {}
        except OSError as exc:
            raise ConfigError(config_path, f"Cannot read config: {exc}") from exc
        except yaml.YAMLError as exc:
            raise ConfigError(config_path, f"Invalid YAML: {exc}") from exc
        if not isinstance(loaded, dict):
            raise ConfigError(config_path, "Config must be a mapping")
        _merge(raw, loaded)
    return _to_config(raw, config_path)


def _merge(base: dict[str, Any], override: dict[str, Any]) -> None:
    """Recursively merge ``override`` into ``base`` in place."""
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value


def _to_config(raw: dict[str, Any], config_path: Path) -> Config:
    build = _section(raw, "build", config_path)
    markdown = _section(build, "markdown", config_path)
    highlight = _section(markdown, "highlight", config_path)
    renderer = _section(markdown, "renderer", config_path)
    og_image = _section(build, "og_image", config_path)

    ignore_files = build.get("ignore_files") or []
    if not isinstance(ignore_files, list) or not all(
        isinstance(name, str) for name in ignore_files
    ):
        raise ConfigError(config_path, "build.ignore_files must be a list of names")

    workers = build.get("workers")
    if workers is not None and (
        isinstance(workers, bool) or not isinstance(workers, int) or workers < 1
    ):
        raise ConfigError(config_path, "build.workers must be a positive integer")

    style = highlight.get("style")
    if style is not None and not isinstance(style, str):
        raise ConfigError(config_path, "build.markdown.highlight.style must be a string")
    line_numbers = highlight.get("line_numbers")
    if line_numbers is not None and not isinstance(line_numbers, bool):
        raise ConfigError(
            config_path, "build.markdown.highlight.line_numbers must be a boolean"
        )
    unsafe = renderer.get("unsafe", False)
    if not isinstance(unsafe, bool):
        raise ConfigError(
            config_path, "build.markdown.renderer.unsafe must be a boolean"
        )

    font = og_image.get("font")
    try:
        og_options = OgImageOptions(
            width=int(og_image.get("width", 1200)),
            height=int(og_image.get("height", 630)),
            background=str(og_image.get("background", "#ffffff")),
            font=Path(font) if font else None,
            font_size=int(og_image.get("font_size", 109)),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigError(config_path, f"Invalid og_image option: {exc}") from exc

    return Config(
        title=str(raw.get("title") or ""),
        description=str(raw.get("description") or ""),
        base_url=str(raw.get("base_url") or ""),
        static=Path(raw.get("static") or "static"),
        layouts=Path(raw.get("layouts") or "layouts"),
        dist=Path(raw.get("dist") or "dist"),
        params={k: v for k, v in raw.items() if k not in _RESERVED_KEYS},
        build=BuildConfig(
            ignore_files=tuple(ignore_files),
            workers=workers,
            markdown=MarkdownOptions(
                highlight_style=style,
                line_numbers=line_numbers,
                unsafe=unsafe,
            ),
            og_image=og_options,
        ),
    )


def _section(data: dict[str, Any], key: str, config_path: Path) -> dict[str, Any]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(config_path, f"'{key}' must be a mapping")
    return value
