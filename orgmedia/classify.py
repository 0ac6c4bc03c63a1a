"""Extension-based routing of source files."""

import enum
from pathlib import Path
from typing import Union

from .config import (
    EXIF_PICTURE_EXTENSIONS,
    IGNORED_EXTENSIONS,
    IGNORED_NAMES,
    MOVIE_EXTENSIONS,
    PICTURE_EXTENSIONS,
    Category,
)


class Route(enum.Enum):
    """How a file is handled: its category and whether EXIF is consulted."""

    EXIF_PICTURE = (Category.PICTURES, True)
    PICTURE = (Category.PICTURES, False)
    MOVIE = (Category.MOVIES, False)
    OTHER = (Category.OTHERS, False)

    def __init__(self, category, uses_exif):
        self.category = category
        self.uses_exif = uses_exif


def normalize_extension(path: Union[str, Path]) -> str:
    """Return the lowercased extension of path, including the leading dot."""
    return Path(path).suffix.lower()


def is_ignored(name: str) -> bool:
    """
    Check whether a file name belongs to a sidecar or metadata file.

    Args:
        name (str): File name or path; only the last component is checked

    Returns:
        bool: True for names like .DS_Store, Thumbs.db, ZbThumbnail.info and *.thm
    """
    basename = Path(name).name.lower()
    if basename in IGNORED_NAMES:
        return True
    return normalize_extension(basename) in IGNORED_EXTENSIONS


def classify(extension: str) -> Route:
    """
    Map a file extension to its route.

    Args:
        extension (str): Extension including the dot, any case

    Returns:
        Route: EXIF_PICTURE, PICTURE, MOVIE, or OTHER for everything else
    """
    ext = extension.lower()
    if ext in EXIF_PICTURE_EXTENSIONS:
        return Route.EXIF_PICTURE
    if ext in PICTURE_EXTENSIONS:
        return Route.PICTURE
    if ext in MOVIE_EXTENSIONS:
        return Route.MOVIE
    return Route.OTHER
