"""
Batch processor: sorts the regular files directly inside one directory.

A run lists the directory once, classifies every file against a rule index
snapshot, moves matched files into their folders and reports each outcome
to a ProgressSink. A failure on one file never stops the rest of the run.
"""

import logging
import threading
from pathlib import Path, PurePath
from typing import Iterable, Optional, Union

from .classifier import classify
from .errors import ConflictResolutionError
from .events import (
    BatchSummary,
    Failed,
    FileEvent,
    NoFiles,
    ProgressSink,
    Routed,
    Skipped,
)
from .fileops import FileSystem, LocalFileSystem, resolve_conflict
from .rules import RuleIndex, SortingRule

logger = logging.getLogger(__name__)

RuleSource = Union[RuleIndex, Iterable[SortingRule]]


class BatchProcessor:
    """Sorts a directory's immediate files into rule-defined subfolders."""

    def __init__(
        self,
        filesystem: Optional[FileSystem] = None,
        sort_by_name: bool = True,
        max_attempts: Optional[int] = None,
    ):
        self.fs = filesystem or LocalFileSystem()
        self.sort_by_name = sort_by_name
        self.max_attempts = max_attempts
        self._move_lock = threading.Lock()

    @staticmethod
    def snapshot(rules: RuleSource) -> RuleIndex:
        """Freeze the rules into an index. Later rule edits do not reach it."""
        if isinstance(rules, RuleIndex):
            return rules
        return RuleIndex.from_rules(list(rules))

    def run(
        self,
        directory: Path,
        rules: RuleSource,
        sink: Optional[ProgressSink] = None,
        cancel: Optional[threading.Event] = None,
    ) -> BatchSummary:
        """Process every regular file in ``directory`` and return the summary."""
        return self._run(Path(directory), self.snapshot(rules), sink or ProgressSink(), cancel)

    def start(
        self,
        directory: Path,
        rules: RuleSource,
        sink: Optional[ProgressSink] = None,
    ) -> "SortJob":
        """Run in a background thread. The rule index is taken before returning."""
        job = SortJob(self, Path(directory), self.snapshot(rules), sink or ProgressSink())
        job.start()
        return job

    def _run(
        self,
        directory: Path,
        index: RuleIndex,
        sink: ProgressSink,
        cancel: Optional[threading.Event],
    ) -> BatchSummary:
        logger.info(f"Sorting '{directory}' with {len(index)} extension rules")

        # Init
        try:
            files = self.fs.list_regular_files(directory)
        except OSError as e:
            message = str(e)
            sink.on_event(Failed(str(directory), message, fatal=True))
            summary = BatchSummary(error=message)
            sink.on_summary(summary)
            return summary

        # Empty
        total = len(files)
        if total == 0:
            sink.on_event(NoFiles(directory))
            summary = BatchSummary()
            sink.on_summary(summary)
            return summary

        if self.sort_by_name:
            files = sorted(files, key=lambda item: item[0])

        # Iterating
        counts = {Routed: 0, Skipped: 0, Failed: 0}
        cancelled = False
        for processed, (file_name, source) in enumerate(files, start=1):
            if cancel is not None and cancel.is_set():
                logger.info(f"Cancellation requested, stopping before '{file_name}'")
                cancelled = True
                break

            event = self.process_file(directory, file_name, source, index)
            counts[type(event)] += 1
            sink.on_event(event)
            sink.on_progress(processed / total)

        # Done
        summary = BatchSummary(
            total_files=total,
            routed_count=counts[Routed],
            skipped_count=counts[Skipped],
            failed_count=counts[Failed],
            cancelled=cancelled,
        )
        sink.on_summary(summary)
        return summary

    def process_file(
        self,
        directory: Path,
        file_name: str,
        source: Path,
        index: RuleIndex,
    ) -> FileEvent:
        """
        Classify and move a single file. Filesystem errors become a Failed event.

        A source that is already gone (sorted by an overlapping watcher, or
        removed by the user) is reported as Skipped.
        """
        route = classify(file_name, index)
        if not route.is_matched:
            logger.debug(f"No matching rule for '{file_name}'")
            return Skipped(file_name)

        dest_folder = route.dest_folder
        folder = PurePath(dest_folder)
        if folder.is_absolute() or '..' in folder.parts or not folder.parts:
            return Failed(file_name, f"Target folder '{dest_folder}' is not a subfolder of '{directory}'")

        target_dir = Path(directory) / dest_folder
        # One resolve-and-move at a time per processor
        with self._move_lock:
            if not self.fs.exists(source):
                logger.debug(f"'{file_name}' is no longer in '{directory}'")
                return Skipped(file_name)

            try:
                if not self.fs.exists(target_dir):
                    self.fs.create_directories(target_dir)
            except OSError as e:
                logger.debug(f"Cannot create '{target_dir}': {e}")
                return Failed(file_name, str(e))

            try:
                destination = resolve_conflict(
                    target_dir / file_name, self.fs.exists, self.max_attempts
                )
                self.fs.move(source, destination, overwrite=False)
            except FileNotFoundError as e:
                if self.fs.exists(source):
                    return Failed(file_name, str(e))
                logger.debug(f"'{file_name}' vanished before it could be moved")
                return Skipped(file_name)
            except (OSError, ConflictResolutionError) as e:
                logger.debug(f"Cannot move '{file_name}' to '{target_dir}': {e}")
                return Failed(file_name, str(e))

        return Routed(file_name, dest_folder, destination)


class SortJob:
    """Handle on a batch run executing in a background thread."""

    def __init__(self, processor: BatchProcessor, directory: Path, index: RuleIndex, sink: ProgressSink):
        self.directory = directory
        self.summary: Optional[BatchSummary] = None
        self.error: Optional[BaseException] = None
        self._cancel = threading.Event()
        self._processor = processor
        self._index = index
        self._sink = sink
        self._thread = threading.Thread(
            target=self._work, name=f"sort-{directory.name}", daemon=True
        )

    def _work(self) -> None:
        try:
            self.summary = self._processor._run(self.directory, self._index, self._sink, self._cancel)
        except Exception as e:
            logger.error(f"Unexpected error sorting '{self.directory}': {e}", exc_info=True)
            self.error = e

    def start(self) -> None:
        self._thread.start()

    def cancel(self) -> None:
        """Stop before the next file. A move in progress is completed."""
        self._cancel.set()

    def join(self, timeout: Optional[float] = None) -> Optional[BatchSummary]:
        self._thread.join(timeout)
        return self.summary

    @property
    def done(self) -> bool:
        return not self._thread.is_alive()
