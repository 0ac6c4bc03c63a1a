"""
orgmedia - Organize pictures, movies and other files by date.

Files are classified by extension, dated by their EXIF capture time or
filesystem creation time, and copied or moved into a destination tree built
from a naming template.
"""

__version__ = "1.0.0"

from .classify import Route, classify, is_ignored
from .config import Category, CategoryConfig, RunConfig
from .naming import build_destination, format_timestamp
from .placement import Outcome, PlacementEngine, PlacementResult
from .progress import ProgressTracker
from .timestamps import TimestampResolver
from .walker import Organizer

__all__ = [
    "Category",
    "CategoryConfig",
    "Organizer",
    "Outcome",
    "PlacementEngine",
    "PlacementResult",
    "ProgressTracker",
    "Route",
    "RunConfig",
    "TimestampResolver",
    "build_destination",
    "classify",
    "format_timestamp",
    "is_ignored",
]
