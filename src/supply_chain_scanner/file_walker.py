"""Utility for walking a scan root and sorting files into scan categories."""

import logging
import os
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Callable, Iterable, Iterator, Optional

from .config import LOCKFILE_NAMES, MANIFEST_NAMES
from .models import CATEGORY_ORDER, FileCategory, ScanTarget

logger = logging.getLogger(__name__)

ErrorCallback = Callable[[OSError], None]


def iter_files(target: ScanTarget, on_error: Optional[ErrorCallback] = None) -> Iterator[Path]:
    """
    Yield every file under the root, skipping excluded directories.

    Entries are visited in sorted order so repeated walks of an unchanged tree
    yield the same sequence. Directory symlinks are not followed. Directories
    that cannot be listed are reported through ``on_error`` and skipped.
    """

    def _onerror(err: OSError) -> None:
        logger.warning(f"Cannot list directory {err.filename}: {err.strerror}")
        if on_error:
            on_error(err)

    for root, dirs, files in os.walk(target.root_path, onerror=_onerror, followlinks=False):
        dirs[:] = sorted(d for d in dirs if d not in target.excluded_dirs)
        for name in sorted(files):
            yield Path(root) / name


def is_excluded_file(path: Path, target: ScanTarget) -> bool:
    """Check a file's name and root-relative path against the excluded glob patterns."""
    try:
        relative = path.relative_to(target.root_path).as_posix()
    except ValueError:
        relative = path.as_posix()
    return any(
        fnmatchcase(path.name, pattern) or fnmatchcase(relative, pattern)
        for pattern in target.excluded_file_patterns
    )


def categorize(path: Path, target: ScanTarget) -> Optional[FileCategory]:
    """
    Decide which walk category a file belongs to, if any.

    Manifests and lockfiles are recognised by exact name. Everything else is an
    "other" candidate only when its extension is allowlisted and it matches no
    excluded pattern, so each file is scanned at most once.
    """
    name = path.name
    if name in MANIFEST_NAMES:
        return FileCategory.manifest
    if name in LOCKFILE_NAMES:
        return FileCategory.lockfile
    if path.suffix.lower() not in target.other_extensions:
        return None
    if is_excluded_file(path, target):
        return None
    return FileCategory.other


def group_by_category(
    paths: Iterable[Path], target: ScanTarget
) -> list[tuple[FileCategory, Path]]:
    """Order candidate files by category, keeping discovery order within each."""
    buckets: dict[FileCategory, list[Path]] = {c: [] for c in CATEGORY_ORDER}
    for path in paths:
        category = categorize(path, target)
        if category is not None:
            buckets[category].append(path)
    return [(category, path) for category in CATEGORY_ORDER for path in buckets[category]]


def walk(
    target: ScanTarget, on_error: Optional[ErrorCallback] = None
) -> Iterator[tuple[FileCategory, Path]]:
    """
    Yield (category, path) for every candidate: manifests, then lockfiles, then other files.

    Category order needs one full directory pass before the first yield, so
    candidate paths are buffered; the generator is restartable and each call
    walks the tree afresh. Use walk_category for a single-category stream
    that yields as the tree is walked.
    """
    yield from group_by_category(iter_files(target, on_error), target)


def walk_category(
    target: ScanTarget, category: FileCategory, on_error: Optional[ErrorCallback] = None
) -> Iterator[Path]:
    """Yield only the candidates of one category, in discovery order."""
    for path in iter_files(target, on_error):
        if categorize(path, target) == category:
            yield path
