"""Front matter extraction for Strata.

A front matter block is YAML between two ``---`` lines at the very start of a
file. The parser reports explicitly whether a block was found instead of
leaving callers to guess from the returned body.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, NamedTuple

import yaml

from .errors import FrontMatterError

FRONTMATTER_RE = re.compile(
    r"\A---[ \t]*\r?\n(.*?)^---[ \t]*(?:\r?\n|\Z)", re.DOTALL | re.MULTILINE
)


class FrontMatterSplit(NamedTuple):
    """Result of splitting a source file.

    Attributes:
        data: Parsed front matter mapping (empty when no block was found).
        body: Content following the block, or the whole text.
        found: Whether a delimited block was present.
    """

    data: dict[str, Any]
    body: str
    found: bool


def extract_frontmatter(text: str, path: Path) -> FrontMatterSplit:
    """Split YAML front matter from content.

    Args:
        text: Raw file content.
        path: Source path, used for error reporting.

    Returns:
        FrontMatterSplit with the parsed data and the remaining content.

    Raises:
        FrontMatterError: If the block is not valid YAML or not a mapping.
    """
    match = FRONTMATTER_RE.match(text)
    if not match:
        return FrontMatterSplit({}, text, False)
    try:
        data = yaml.safe_load(match.group(1))
    except yaml.YAMLError as exc:
        raise FrontMatterError(path, f"Invalid front matter: {exc}", exc) from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise FrontMatterError(
            path, f"Front matter must be a mapping, got {type(data).__name__}"
        )
    return FrontMatterSplit(data, text[match.end() :], True)
