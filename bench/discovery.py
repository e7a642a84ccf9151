"""Image discovery over files and directory trees"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Set

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".bmp", ".tiff")


def is_image_file(path: Path, extensions: Sequence[str] = IMAGE_EXTENSIONS) -> bool:
    """Check the extension against the whitelist (case-insensitive)"""
    return path.suffix.lower() in extensions


def _collect_from_directory(
    directory: Path,
    extensions: Sequence[str],
    images: List[Path],
    visited: Set[Path],
    depth: int,
    max_depth: Optional[int],
):
    real = directory.resolve()
    if real in visited:
        logger.warning("Skipping already visited directory (symlink cycle?): %s", directory)
        return
    visited.add(real)

    try:
        entries = sorted(directory.iterdir(), key=lambda p: p.name)
    except OSError as e:
        logger.warning("Cannot read directory %s: %s", directory, e)
        return

    for entry in entries:
        if entry.is_dir():
            if max_depth is not None and depth >= max_depth:
                logger.debug("Depth limit %d reached, not descending into %s", max_depth, entry)
                continue
            _collect_from_directory(entry, extensions, images, visited, depth + 1, max_depth)
        elif entry.is_file() and is_image_file(entry, extensions):
            images.append(entry)


def discover_images(
    paths: Iterable,
    extensions: Sequence[str] = IMAGE_EXTENSIONS,
    max_depth: Optional[int] = None,
) -> List[Path]:
    """
    Collect image files from a mix of file and directory arguments

    Directories are walked recursively. Files are kept when their extension
    is whitelisted. Anything else is skipped with a warning. Paths reached
    through more than one argument are not deduplicated.

    Args:
        paths: File or directory paths, in command-line order
        extensions: Lower-case extensions including the leading dot
        max_depth: Maximum number of directory levels below each argument

    Returns:
        Image paths in discovery order
    """
    extensions = tuple(ext.lower() for ext in extensions)
    images: List[Path] = []

    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            _collect_from_directory(path, extensions, images, set(), 0, max_depth)
        elif path.is_file() and is_image_file(path, extensions):
            images.append(path)
        else:
            logger.warning("Skipping invalid path: %s", path)

    return images
