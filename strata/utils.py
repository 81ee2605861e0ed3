"""Filesystem helpers for Strata.

Key functions:
    discover: Recursively collect files ending with an extension.
    purge_ignored: Drop paths whose filename is in the ignore list.
    replace_ext: Swap a file extension.
    ensure_clean_dir: Recreate a directory from scratch.
    copy_static: Copy the static tree into the output directory.
"""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Iterable
from pathlib import Path

from .errors import FilesystemError

logger = logging.getLogger(__name__)


def discover(root: Path, extension: str, exclude: Iterable[Path] = ()) -> list[Path]:
    """Collect every file under ``root`` whose name ends with ``extension``.

    Dot-directories and the directories in ``exclude`` are not descended
    into. Directory entries are visited in sorted order so the result is
    stable between runs.

    Args:
        root: Directory to walk.
        extension: Filename suffix to match, e.g. ``".md"``.
        exclude: Directories to skip entirely.

    Returns:
        Matching file paths, each prefixed with ``root``.

    Raises:
        FilesystemError: If ``root`` is missing or a directory is unreadable.
            Nothing is returned in that case.
    """
    if not root.is_dir():
        raise FilesystemError(root, "Directory not found")
    skipped = {os.path.normcase(os.path.abspath(p)) for p in exclude}

    def onerror(exc: OSError) -> None:
        raise FilesystemError(
            Path(exc.filename or root), f"Cannot read directory: {exc.strerror}", exc
        ) from exc

    found: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root, onerror=onerror):
        dirnames[:] = sorted(
            name
            for name in dirnames
            if not name.startswith(".")
            and os.path.normcase(os.path.abspath(os.path.join(dirpath, name)))
            not in skipped
        )
        for name in sorted(filenames):
            path = Path(dirpath) / name
            if name.endswith(extension) and path.is_file():
                found.append(path)
    return found


def purge_ignored(paths: Iterable[Path], ignore_files: Iterable[str]) -> list[Path]:
    """Remove paths whose base filename appears in ``ignore_files``."""
    ignored = set(ignore_files)
    return [path for path in paths if path.name not in ignored]


def replace_ext(path: Path, old: str, new: str) -> Path:
    """Replace the extension of ``path`` when it matches ``old``.

    The comparison is case-insensitive and works on the whole file name, so a
    file called ``.md`` counts as having the extension. Paths with another
    extension are returned unchanged.

    Examples:
        >>> replace_ext(Path("blog/post.md"), ".md", ".html")
        PosixPath('blog/post.html')
        >>> replace_ext(Path("blog/.md"), ".md", ".html")
        PosixPath('blog/.html')
    """
    name = path.name
    if not name.lower().endswith(old.lower()):
        return path
    return path.parent / (name[: len(name) - len(old)] + new)


def ensure_clean_dir(path: Path) -> None:
    """Ensure a directory exists and is empty.

    If the directory exists it is removed with everything in it, then
    created again.

    Args:
        path: Directory path to clean or create.

    Raises:
        FilesystemError: If the directory cannot be removed or created.
    """
    if path.exists():
        logger.info("re-creating dist directory: %s", path)
        try:
            shutil.rmtree(path)
        except OSError as exc:
            raise FilesystemError(path, f"Cannot remove directory: {exc}", exc) from exc
    else:
        logger.info("creating dist directory: %s", path)
    try:
        path.mkdir(parents=True)
    except OSError as exc:
        raise FilesystemError(path, f"Cannot create directory: {exc}", exc) from exc


def copy_static(src: Path, dest: Path) -> int:
    """Copy every file under ``src`` into ``dest``, preserving structure.

    A missing ``src`` is not an error; the copy is skipped with a notice.

    Args:
        src: Static assets directory.
        dest: Output directory.

    Returns:
        Number of files copied.

    Raises:
        FilesystemError: If a file cannot be read or written.
    """
    if not src.is_dir():
        logger.info("static directory not found. skip copying static files.")
        return 0
    logger.info("copying static files from %s to %s", src, dest)
    copied = 0
    for src_path in sorted(src.rglob("*")):
        if src_path.is_dir():
            continue
        dest_path = dest / src_path.relative_to(src)
        try:
            dest_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(src_path, dest_path)
        except OSError as exc:
            raise FilesystemError(src_path, f"Cannot copy static file: {exc}", exc) from exc
        copied += 1
    return copied
