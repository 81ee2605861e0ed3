"""Command-line interface for Strata.

This module defines the CLI commands using Click framework.

Commands:
- build: Build the site into the dist directory.
"""

from __future__ import annotations

import logging
from pathlib import Path

import click

from . import __version__

LOG_FORMAT = "[%(levelname)s] %(message)s"


@click.group()
@click.version_option(version=__version__, prog_name="strata")
def cli():
    """Strata static site generator."""


@cli.command()
@click.option("--base-url", help="Override base_url from strata.yaml")
@click.option(
    "--workers",
    type=click.IntRange(min=1),
    required=False,
    help="Number of rendering threads (overrides build.workers)",
)
@click.option("-v", "--verbose", is_flag=True, help="Show debug output")
def build(base_url: str | None, workers: int | None, verbose: bool):
    """Build the site into the dist directory."""
    _configure_logging(verbose)
    project_root = Path.cwd()
    from .build import build_site
    from .errors import BuildError, ConfigError

    try:
        result = build_site(project_root, base_url=base_url, workers=workers)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from None
    except BuildError as exc:
        # Display user-friendly error message
        click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
        rel_path = _display_path(exc.source_path, project_root)
        click.echo(click.style(f"  File: {rel_path}", fg="yellow"), err=True)
        click.echo(click.style(f"  Error: {exc.message}", fg="white"), err=True)
        raise SystemExit(1) from None
    click.echo(f"Built {len(result.pages)} pages into {result.output_dir}")


def _display_path(path: Path, project_root: Path) -> Path:
    """Return ``path`` relative to the project root when it lies inside it."""
    if not path.is_absolute():
        return path
    try:
        return path.relative_to(project_root)
    except ValueError:
        return path


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        force=True,
    )


def main():
    """Entry point for the CLI application."""
    cli()
