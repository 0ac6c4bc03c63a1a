"""
Timestamp resolution for source files.

JPEG files are dated by their EXIF capture time, read with hachoir. Every
other file, and every JPEG whose metadata cannot be read, is dated by the
filesystem birth time.
"""

import datetime
import logging
import threading
from pathlib import Path
from typing import Callable, NamedTuple, Optional

# Third-party library imports for metadata extraction
from hachoir.core import config as hachoir_config
from hachoir.metadata import extractMetadata
from hachoir.parser import createParser

from .classify import Route
from .config import MAX_EXIF_READS

# Suppress hachoir warnings to keep console output clean
hachoir_config.quiet = True

logger = logging.getLogger(__name__)

# hachoir metadata keys, most authoritative first
CAPTURE_DATE_KEYS = ("date_time_original", "creation_date")

SOURCE_EXIF = "exif"
SOURCE_FILESYSTEM = "filesystem"


class ResolvedTimestamp(NamedTuple):
    moment: datetime.datetime
    source: str


def _as_datetime(value) -> Optional[datetime.datetime]:
    if isinstance(value, datetime.datetime):
        return value.replace(microsecond=0)
    if isinstance(value, datetime.date):
        return datetime.datetime.combine(value, datetime.time())
    return None


def get_capture_date(filename: Path) -> Optional[datetime.datetime]:
    """
    Attempt to extract the capture date from the file's EXIF metadata.

    Args:
        filename (Path): Path to the file to extract metadata from

    Returns:
        datetime.datetime or None: Capture date if found, otherwise None

    The EXIF DateTimeOriginal value is preferred; hachoir's generic
    creation_date is used when the original timestamp is absent. Any
    parser or extraction error is logged at DEBUG and yields None.
    """
    try:
        parser = createParser(str(filename))
    except Exception as e:
        logger.debug(f"Failed to create parser for {filename}: {e}")
        return None

    if not parser:
        logger.debug(f"Unable to parse file for capture date: {filename}")
        return None

    try:
        with parser:
            metadata = extractMetadata(parser)
    except Exception as e:
        logger.debug(f"Metadata extraction error for {filename}: {e}")
        return None

    if not metadata:
        logger.debug(f"Unable to extract metadata for {filename}")
        return None

    for key in CAPTURE_DATE_KEYS:
        try:
            values = metadata.getValues(key)
        except (KeyError, ValueError):
            continue
        for value in values:
            captured = _as_datetime(value)
            if captured is not None:
                return captured

    logger.debug(f"No capture date in metadata for {filename}")
    return None


def get_birth_time(filename: Path) -> datetime.datetime:
    """
    Return the filesystem creation time of a file.

    Platforms that do not report a birth time (most Linux filesystems
    through os.stat) fall back to the modification time.

    Raises:
        OSError: If the file cannot be stat-ed
    """
    stats = filename.stat()
    timestamp = getattr(stats, "st_birthtime", None)
    if timestamp is None:
        timestamp = stats.st_mtime
    return datetime.datetime.fromtimestamp(timestamp).replace(microsecond=0)


class TimestampResolver:
    """
    Resolve the naming timestamp of source files.

    EXIF reads are throttled by a bounded semaphore so that no more than
    max_exif_reads metadata parsers run at the same time. A caller that has
    to wait for a slot is reported through on_wait(path, True) before it
    blocks and on_wait(path, False) once it resumes.
    """

    def __init__(
        self,
        max_exif_reads: int = MAX_EXIF_READS,
        on_wait: Optional[Callable[[Path, bool], None]] = None,
    ):
        self.max_exif_reads = max_exif_reads
        self._exif_slots = threading.BoundedSemaphore(max_exif_reads)
        self._on_wait = on_wait

    def read_capture_date(self, path: Path) -> Optional[datetime.datetime]:
        if not self._exif_slots.acquire(blocking=False):
            if self._on_wait:
                self._on_wait(path, True)
            self._exif_slots.acquire()
            if self._on_wait:
                self._on_wait(path, False)
        try:
            return get_capture_date(path)
        finally:
            self._exif_slots.release()

    def resolve(self, path: Path, route: Route) -> Optional[ResolvedTimestamp]:
        """
        Determine the timestamp used to name a file.

        Args:
            path (Path): Source file
            route (Route): Classification of the file

        Returns:
            ResolvedTimestamp or None: None only when the file cannot even be
            stat-ed, in which case the problem has already been logged
        """
        if route.uses_exif:
            captured = self.read_capture_date(path)
            if captured is not None:
                return ResolvedTimestamp(captured, SOURCE_EXIF)
            logger.debug(f"No EXIF data for {path}, using file creation date")

        try:
            return ResolvedTimestamp(get_birth_time(path), SOURCE_FILESYSTEM)
        except OSError as e:
            logger.warning(f"Error reading file date for {path}: {e}")
            return None
