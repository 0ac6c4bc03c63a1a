"""
Directory walking and per-file dispatch.

The walk runs on the calling thread. Every file that has a configured
destination is handed to a thread pool, where its timestamp is resolved
and it is placed. Results are collected back on the calling thread, which
is the only thread that updates the progress counters.
"""

import functools
import logging
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple

from .classify import Route, classify, is_ignored, normalize_extension
from .config import Category, CategoryConfig, RunConfig
from .naming import build_destination
from .placement import Outcome, PlacementEngine, PlacementResult
from .progress import EventKind, ProgressEvent, ProgressTracker
from .timestamps import TimestampResolver

logger = logging.getLogger(__name__)

ResultCallback = Callable[[Category, PlacementResult], None]


class Organizer:
    """
    Walk a source tree and place every recognized file.

    Args:
        config (RunConfig): Source, flags and per-category destinations
        tracker (ProgressTracker, optional): Receives progress events
        on_result (callable, optional): Called as on_result(category, result)
            on the thread running run() once each file is finished
        resolver (TimestampResolver, optional): Timestamp source
        engine (PlacementEngine, optional): Placement engine
    """

    def __init__(
        self,
        config: RunConfig,
        tracker: Optional[ProgressTracker] = None,
        on_result: Optional[ResultCallback] = None,
        resolver: Optional[TimestampResolver] = None,
        engine: Optional[PlacementEngine] = None,
    ):
        self.config = config
        self.tracker = tracker or ProgressTracker()
        self.on_result = on_result
        self.resolver = resolver or TimestampResolver(on_wait=self._exif_wait)
        self.engine = engine or PlacementEngine(noop=config.noop)
        self._destination_roots = {
            c.root.resolve() for _, c in config.configured()
        }
        self._executor: Optional[ThreadPoolExecutor] = None
        self._futures: Dict[object, Tuple[Path, Category]] = {}

    def run(self) -> ProgressTracker:
        """
        Process the whole source tree and wait for every file to finish.

        Returns:
            ProgressTracker: The tracker holding the final counters
        """
        source = self.config.source
        logger.info(f"Processing {source}{', recursively' if self.config.recursive else ''}")

        with ThreadPoolExecutor(max_workers=self.config.workers, thread_name_prefix="orgmedia") as executor:
            self._executor = executor
            try:
                self.walk(source)
                self._collect()
            except KeyboardInterrupt:
                pending = sum(1 for f in self._futures if not f.done())
                logger.warning(f"Interrupted by user, cancelling {pending} pending files")
                for future in self._futures:
                    future.cancel()
                raise
            finally:
                self._executor = None

        self.tracker.drain()
        for line in self.tracker.summary():
            logger.info(line)
        return self.tracker

    def walk(self, directory: Path) -> None:
        """
        Dispatch every entry of directory, descending into subdirectories
        when the run is recursive.

        Returns once all entries have been dispatched. Inside run() the files
        themselves are processed by the pool and may still be in flight.
        Errors reading the directory or an entry are logged and skipped.
        """
        self.tracker.emit(ProgressEvent(EventKind.DIRECTORY_FOUND))
        logger.info(f"Source Folder: {directory}")

        try:
            with os.scandir(directory) as it:
                entries = list(it)
        except OSError as e:
            logger.warning(f"Error reading directory {directory}: {e}")
            return

        for entry in entries:
            if is_ignored(entry.name):
                continue

            path = Path(entry.path)
            try:
                is_dir = entry.is_dir(follow_symlinks=False)
                is_file = not is_dir and entry.is_file()
            except OSError as e:
                logger.warning(f"Error processing {path}\n{e}")
                continue

            if is_dir:
                if not self.config.recursive:
                    continue
                if path.resolve() in self._destination_roots:
                    logger.debug(f"Skipping destination directory {path}")
                    continue
                self.walk(path)
            elif is_file:
                self.dispatch(path)

        self.tracker.emit(ProgressEvent(EventKind.DIRECTORY_LISTED))
        self.tracker.drain()

    def dispatch(self, path: Path) -> None:
        """Route one file and submit it, or drop it if its category is not configured."""
        route = classify(normalize_extension(path))
        category_config = self.config.for_category(route.category)

        if category_config is None:
            if route is Route.OTHER:
                logger.warning(f"Unrecognized file type for {path}")
            return

        self.tracker.emit(ProgressEvent(EventKind.FOUND, route.category))

        if self._executor is None:
            self._finish(route.category, self.process_file(path, route, category_config))
            return

        future = self._executor.submit(self.process_file, path, route, category_config)
        self._futures[future] = (path, route.category)

    def process_file(self, path: Path, route: Route, category_config: CategoryConfig) -> PlacementResult:
        """Resolve the timestamp of one file and place it. Runs on a worker thread."""
        logger.debug(f"Processing {route.category.value} file {path}")

        resolved = self.resolver.resolve(path, route)
        if resolved is None:
            result = PlacementResult(Outcome.FAILED, path)
        else:
            make_candidate = functools.partial(
                build_destination, resolved.moment, category_config, normalize_extension(path)
            )
            result = self.engine.place(
                path,
                make_candidate,
                move=category_config.move,
                dedupe=category_config.dedupe,
            )

        self.tracker.emit(ProgressEvent(EventKind(result.outcome.value), route.category))
        return result

    def _collect(self) -> None:
        for future in as_completed(list(self._futures)):
            path, category = self._futures.pop(future)
            try:
                result = future.result()
            except Exception as e:
                logger.error(f"Unexpected error processing {path}: {e}")
                self.tracker.emit(ProgressEvent(EventKind.FAILED, category))
                result = PlacementResult(Outcome.FAILED, path, error=e)
            self._finish(category, result)

    def _finish(self, category: Category, result: PlacementResult) -> None:
        self.tracker.drain()
        if self.on_result:
            self.on_result(category, result)

    def _exif_wait(self, path: Path, waiting: bool) -> None:
        kind = EventKind.WAITING if waiting else EventKind.RESUMED
        self.tracker.emit(ProgressEvent(kind, Category.PICTURES))
