"""Error taxonomy for Strata.

Every error raised while building carries the path of the file that caused it,
so a failure deep inside a worker thread can still be reported against the
right source file.
"""

from __future__ import annotations

from pathlib import Path


class StrataError(Exception):
    """Base class for all Strata errors."""


class ConfigError(StrataError):
    """Invalid or unreadable site configuration.

    Attributes:
        path: Path to the configuration file.
        message: Human-readable error message.
    """

    def __init__(self, path: Path, message: str):
        self.path = path
        self.message = message
        super().__init__(f"{path}: {message}")


class BuildError(StrataError):
    """Error during site build with file context.

    Attributes:
        source_path: Path to the source file that caused the error.
        message: Human-readable error message.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        source_path: Path,
        message: str,
        original_error: Exception | None = None,
    ):
        self.source_path = source_path
        self.message = message
        self.original_error = original_error
        super().__init__(f"{source_path}: {message}")


class FilesystemError(BuildError):
    """A path was missing, unreadable or could not be written."""


class TemplateParseError(BuildError):
    """A layout template failed to parse."""


class TemplateNotFoundError(BuildError):
    """No layout template matched an output path."""


class TemplateRenderError(BuildError):
    """A layout template failed while rendering a page."""


class FrontMatterError(BuildError):
    """Front matter was malformed or held unsupported values."""


class MarkdownRenderError(BuildError):
    """The Markdown converter failed."""


class ImageRenderError(BuildError):
    """The social-share image could not be generated."""
