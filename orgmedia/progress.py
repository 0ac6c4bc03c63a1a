"""
Progress accounting.

Workers never touch the counters directly. They emit immutable
ProgressEvent values into a queue, and the thread that owns the tracker
applies them with drain().
"""

import enum
import logging
import queue
from dataclasses import dataclass
from typing import Dict, List, Optional

from .config import Category

logger = logging.getLogger(__name__)

# Log a progress line every this many finished files
REPORT_EVERY = 100


class EventKind(enum.Enum):
    FOUND = "found"
    WAITING = "waiting"
    RESUMED = "resumed"
    CREATED = "created"
    SKIPPED = "skipped"
    FAILED = "failed"
    DIRECTORY_FOUND = "directory_found"
    DIRECTORY_LISTED = "directory_listed"


FINISHED_KINDS = frozenset({EventKind.CREATED, EventKind.SKIPPED, EventKind.FAILED})


@dataclass(frozen=True)
class ProgressEvent:
    kind: EventKind
    category: Optional[Category] = None


@dataclass
class CategoryCounters:
    total: int = 0
    done: int = 0
    waiting: int = 0
    created: int = 0
    skipped: int = 0
    failed: int = 0


class ProgressTracker:
    """
    Single owner of the run's progress counters.

    directories_listed counts directories whose immediate children have all
    been dispatched; it does not mean their files have been placed.
    """

    def __init__(self, report_every: int = REPORT_EVERY):
        self.report_every = report_every
        self.counters: Dict[Category, CategoryCounters] = {c: CategoryCounters() for c in Category}
        self.directories_found = 0
        self.directories_listed = 0
        self._events: "queue.Queue[ProgressEvent]" = queue.Queue()

    def emit(self, event: ProgressEvent) -> None:
        """Queue an event. Safe to call from any thread."""
        self._events.put(event)

    def drain(self) -> int:
        """Apply every queued event and return how many were applied."""
        applied = 0
        while True:
            try:
                event = self._events.get_nowait()
            except queue.Empty:
                return applied
            self._apply(event)
            applied += 1

    def _apply(self, event: ProgressEvent) -> None:
        if event.kind is EventKind.DIRECTORY_FOUND:
            self.directories_found += 1
            return
        if event.kind is EventKind.DIRECTORY_LISTED:
            self.directories_listed += 1
            return

        counters = self.counters[event.category]
        if event.kind is EventKind.FOUND:
            counters.total += 1
        elif event.kind is EventKind.WAITING:
            counters.waiting += 1
        elif event.kind is EventKind.RESUMED:
            counters.waiting -= 1
        elif event.kind in FINISHED_KINDS:
            counters.done += 1
            if event.kind is EventKind.CREATED:
                counters.created += 1
            elif event.kind is EventKind.SKIPPED:
                counters.skipped += 1
            else:
                counters.failed += 1
            if self.done % self.report_every == 0:
                logger.info(f"Processed {self.done} files so far...")

    @property
    def total(self) -> int:
        return sum(c.total for c in self.counters.values())

    @property
    def done(self) -> int:
        return sum(c.done for c in self.counters.values())

    def summary(self) -> List[str]:
        """Return one line per category that saw any file, plus a directory line."""
        lines = []
        for category, c in self.counters.items():
            if c.total:
                lines.append(
                    f"{category.value}: {c.done}/{c.total} done "
                    f"({c.created} created, {c.skipped} skipped, {c.failed} failed)"
                )
        lines.append(f"directories: {self.directories_listed}/{self.directories_found} listed")
        return lines
