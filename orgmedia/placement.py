"""
Collision-safe placement of files into the destination tree.

A destination is never overwritten. When the computed path is taken the
file is either skipped or, with dedupe enabled, renamed with the next free
numeric suffix ("-2", "-3", ...).
"""

import enum
import logging
import os
import shutil
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Set, Tuple

from .config import MAX_DEDUPE_SUFFIX
from .errors import DedupeExhaustedError

logger = logging.getLogger(__name__)

# Builds the destination for a given dedupe suffix (None for the first try)
CandidateFactory = Callable[[Optional[int]], Path]


class Outcome(enum.Enum):
    CREATED = "created"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class PlacementResult:
    """Result of placing a single file."""

    outcome: Outcome
    source: Path
    destination: Optional[Path] = None
    dedupe_suffix: Optional[int] = None
    error: Optional[BaseException] = None


def transfer_file(source: Path, destination: Path, move: bool) -> None:
    """
    Copy or move source to destination.

    A move is first tried as an atomic rename. If the rename fails (for
    example across filesystems) the file is copied and the source removed
    once the copy is complete. A source that cannot be removed after a
    complete copy is logged as a warning and left in place; the copy stands.

    Raises:
        OSError: If the copy or the move fails
    """
    if not move:
        shutil.copy2(str(source), str(destination))
        return

    try:
        os.rename(source, destination)
        return
    except OSError as e:
        logger.debug(f"Rename of {source} failed ({e}), copying instead")

    shutil.copy2(str(source), str(destination))
    try:
        os.remove(source)
    except OSError as e:
        logger.warning(f"Copied {source} to {destination} but could not remove the source: {e}")


class PlacementEngine:
    """
    Place files at their destination without ever overwriting one.

    Destinations are claimed under a lock before any file is touched. A
    path is free only if it neither exists on disk nor was claimed earlier
    in this run, so parallel workers never pick the same suffix and a dry
    run reports the same names a real run would produce.

    Args:
        noop (bool): Dry run, log every decision but change nothing
        max_dedupe_suffix (int): Highest suffix tried before giving up
    """

    def __init__(self, noop: bool = False, max_dedupe_suffix: int = MAX_DEDUPE_SUFFIX):
        self.noop = noop
        self.max_dedupe_suffix = max_dedupe_suffix
        self._lock = threading.Lock()
        self._claimed: Set[Path] = set()

    def _is_taken(self, path: Path) -> bool:
        return path in self._claimed or os.path.lexists(path)

    def claim(self, make_candidate: CandidateFactory, dedupe: bool) -> Tuple[Path, Optional[int], bool]:
        """
        Find and reserve a destination.

        Returns:
            tuple: (path, dedupe_suffix, claimed). claimed is False when the
            first candidate is taken and dedupe is disabled; path is then the
            taken candidate.

        Raises:
            DedupeExhaustedError: If every suffix up to the limit is taken
        """
        with self._lock:
            candidate = make_candidate(None)
            if not self._is_taken(candidate):
                self._claimed.add(candidate)
                return candidate, None, True
            if not dedupe:
                return candidate, None, False

            first = candidate
            for suffix in range(2, self.max_dedupe_suffix + 1):
                candidate = make_candidate(suffix)
                if not self._is_taken(candidate):
                    self._claimed.add(candidate)
                    return candidate, suffix, True
            raise DedupeExhaustedError(first, self.max_dedupe_suffix)

    def release(self, path: Path) -> None:
        with self._lock:
            self._claimed.discard(path)

    def _discard_partial(self, destination: Path) -> None:
        # The claim guaranteed nothing was at destination before the transfer
        if not os.path.lexists(destination):
            return
        try:
            destination.unlink()
        except OSError as e:
            logger.error(f"Could not remove incomplete {destination}: {e}")
            return
        logger.info(f"  Removed incomplete {destination}")

    def place(
        self,
        source: Path,
        make_candidate: CandidateFactory,
        move: bool = False,
        dedupe: bool = False,
    ) -> PlacementResult:
        """
        Copy or move source to the first free destination candidate.

        Args:
            source (Path): File to place
            make_candidate (CandidateFactory): Destination builder, called
                with None first and then with suffixes 2, 3, ... on collision
            move (bool): Remove the source once placed
            dedupe (bool): Number colliding files instead of skipping them

        Returns:
            PlacementResult: CREATED, SKIPPED or FAILED. Failures are logged
            here and never raised.
        """
        action = "move" if move else "copy"
        flag = "moved" if move else "copied"

        try:
            destination, suffix, claimed = self.claim(make_candidate, dedupe)
        except DedupeExhaustedError as e:
            logger.error(f"Failed to place {source}: {e}")
            return PlacementResult(Outcome.FAILED, source, e.destination, error=e)

        if not claimed:
            logger.info(f"  {destination} exists. Skipping {source}")
            return PlacementResult(Outcome.SKIPPED, source, destination)

        note = f" [DEDUPED -{suffix}]" if suffix else ""

        if not self.noop:
            try:
                destination.parent.mkdir(parents=True, exist_ok=True)
                transfer_file(source, destination, move)
            except OSError as e:
                self._discard_partial(destination)
                self.release(destination)
                logger.error(f"Failed to {action} {source} to {destination}: {e}")
                return PlacementResult(Outcome.FAILED, source, destination, suffix, e)

        logger.info(f"  {source}  {flag} {destination}{note}")
        return PlacementResult(Outcome.CREATED, source, destination, suffix)
