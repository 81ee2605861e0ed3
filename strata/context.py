"""Render context construction for Strata.

Templates receive one flat mapping built from three layers: the rendered page
content, the site-wide values from the config, and the page's front matter.
Values are restricted to a closed set of types (strings, numbers, booleans,
None, lists and string-keyed mappings of those) so every template sees data of
a predictable shape.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime, time
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Dict, List, Union

from markupsafe import Markup

from .errors import FrontMatterError

if TYPE_CHECKING:
    from .content import SourceDocument

ContextValue = Union[
    str, int, float, bool, None, List["ContextValue"], Dict[str, "ContextValue"]
]

CONTENTS_KEY = "contents"


def to_context_value(value: Any) -> ContextValue:
    """Normalize a YAML-loaded value into a ContextValue.

    Dates and times become ISO-8601 strings, tuples become lists and mapping
    keys become strings.

    Raises:
        TypeError: If the value (or anything nested in it) has another type.
    """
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {str(k): to_context_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_context_value(v) for v in value]
    raise TypeError(f"unsupported value of type {type(value).__name__}")


def freeze_context(data: Mapping[str, Any]) -> Mapping[str, ContextValue]:
    """Normalize ``data`` and wrap it in a read-only mapping.

    The result is built once per build and shared by every rendering thread.
    """
    return MappingProxyType({str(k): to_context_value(v) for k, v in data.items()})


def build_context(
    base: Mapping[str, ContextValue], document: SourceDocument
) -> dict[str, ContextValue]:
    """Merge site values, front matter and content for one page.

    ``contents`` is set first, then every base key, then every front matter
    key, so front matter wins over site values with the same name.

    Args:
        base: Site-wide values (see ``freeze_context``).
        document: The extracted page.

    Returns:
        A new mapping owned by the caller.

    Raises:
        FrontMatterError: If a front matter value has an unsupported type.
    """
    context: dict[str, ContextValue] = {CONTENTS_KEY: Markup(document.content)}
    context.update(base)
    for key, value in document.front_matter.as_map().items():
        try:
            context[str(key)] = to_context_value(value)
        except TypeError as exc:
            raise FrontMatterError(
                document.path, f"Front matter key '{key}': {exc}", exc
            ) from exc
    return context
