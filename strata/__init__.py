"""Strata static site generator.

Strata converts a tree of Markdown files, each optionally carrying YAML front
matter, into HTML pages rendered through Jinja2 layouts. The layout for a page
is the most specific of: a layout with the page's own path, the default layout
of the page's directory, or the site-wide default layout.

The main entry point is the CLI module; ``strata.build.build_site`` runs a
build programmatically.
"""

__all__ = ["__version__"]
__version__ = "0.11.0"
