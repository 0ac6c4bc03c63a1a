"""
Configuration types and constants for orgmedia.

A run is described by one RunConfig holding an optional CategoryConfig per
category. A category that was not configured is None and its files are
never placed.
"""

import enum
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

# Extensions whose capture time is read from EXIF metadata
EXIF_PICTURE_EXTENSIONS = frozenset({".jpg", ".jpeg"})

# Picture-like extensions placed by filesystem time only
PICTURE_EXTENSIONS = frozenset({".gif", ".png", ".bmp", ".mpo", ".pdf"})

MOVIE_EXTENSIONS = frozenset({".mov", ".avi", ".3gp", ".mp4", ".mpg"})

# Sidecar and metadata files that are never classified or copied
IGNORED_NAMES = frozenset({".ds_store", "thumbs.db", "zbthumbnail.info"})
IGNORED_EXTENSIONS = frozenset({".thm"})

DEFAULT_PICTURE_TEMPLATE = "YYYY/YYYY-MM/YYYY-MM-DD/YYYY-MM-DD-HH-mm-ss"
DEFAULT_MOVIE_TEMPLATE = "YYYY-MM-DD-HH-mm-ss"
DEFAULT_OTHER_TEMPLATE = "YYYY-MM-DD-HH-mm-ss"

# At most this many EXIF reads may be in flight at once
MAX_EXIF_READS = 10

DEFAULT_WORKERS = 16

# Highest numeric suffix tried before a placement gives up
MAX_DEDUPE_SUFFIX = 9999


class Category(enum.Enum):
    PICTURES = "pictures"
    MOVIES = "movies"
    OTHERS = "others"


@dataclass(frozen=True)
class CategoryConfig:
    """
    Destination settings for one category.

    Attributes:
        root (Path): Destination root directory
        template (str): Naming template, see orgmedia.naming
        label (str): Literal text inserted before the extension
        dedupe (bool): Number colliding files instead of skipping them
        move (bool): Move files instead of copying them
    """

    root: Path
    template: str
    label: str = ""
    dedupe: bool = False
    move: bool = False

    @property
    def action(self) -> str:
        return "move" if self.move else "copy"


@dataclass(frozen=True)
class RunConfig:
    """Everything a single organizer run needs."""

    source: Path
    recursive: bool = False
    noop: bool = False
    pictures: Optional[CategoryConfig] = None
    movies: Optional[CategoryConfig] = None
    others: Optional[CategoryConfig] = None
    workers: int = DEFAULT_WORKERS

    def for_category(self, category: Category) -> Optional[CategoryConfig]:
        """Return the configuration of a category, or None when it is not set."""
        if category is Category.PICTURES:
            return self.pictures
        if category is Category.MOVIES:
            return self.movies
        return self.others

    def configured(self):
        """Yield (category, config) pairs for every configured category."""
        for category in Category:
            category_config = self.for_category(category)
            if category_config is not None:
                yield category, category_config
