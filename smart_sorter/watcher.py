"""Watch mode: sort files as they arrive in a directory."""

import logging
from pathlib import Path
from typing import Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .events import ProgressSink
from .fileops import FILE_STABILITY_DELAY, wait_for_file_stability
from .processor import BatchProcessor, RuleSource

logger = logging.getLogger(__name__)

IGNORED_PREFIXES = ('.', '~')
IGNORED_EXTENSIONS = ('.tmp', '.crdownload', '.part', '.download', '.swp')


def should_ignore_file(file_path: Path) -> bool:
    """Hidden files and in-progress downloads are left alone."""
    name = file_path.name.lower()

    if name.startswith(IGNORED_PREFIXES):
        logger.debug(f"Ignoring hidden file: {file_path.name}")
        return True

    if file_path.suffix.lower() in IGNORED_EXTENSIONS:
        logger.debug(f"Ignoring temp file: {file_path.name}")
        return True

    return False


class SortingEventHandler(FileSystemEventHandler):
    """Monitors filesystem events and sorts new files with a fixed rule snapshot."""

    def __init__(
        self,
        processor: BatchProcessor,
        directory: Path,
        rules: RuleSource,
        sink: Optional[ProgressSink] = None,
        settle_delay: float = FILE_STABILITY_DELAY,
    ):
        super().__init__()
        self.processor = processor
        self.directory = Path(directory)
        self.index = processor.snapshot(rules)
        self.sink = sink or ProgressSink()
        self.settle_delay = settle_delay

    def on_created(self, event: FileSystemEvent):
        """Handles file creation events."""
        if event.is_directory:
            return
        self.sort_path(Path(event.src_path))

    def on_moved(self, event: FileSystemEvent):
        """Handles files renamed into the watched directory."""
        if event.is_directory:
            return
        self.sort_path(Path(event.dest_path))

    def sort_path(self, file_path: Path):
        # Files moved into rule folders also show up here; only direct children count
        if file_path.parent != self.directory:
            return

        if should_ignore_file(file_path):
            return

        if not wait_for_file_stability(file_path, self.settle_delay):
            logger.debug(f"File disappeared or is unstable: '{file_path.name}'")
            return

        if not file_path.is_file():
            return

        event = self.processor.process_file(self.directory, file_path.name, file_path, self.index)
        self.sink.on_event(event)
        return event


def start_watching(
    processor: BatchProcessor,
    directory: Path,
    rules: RuleSource,
    sink: Optional[ProgressSink] = None,
    settle_delay: float = FILE_STABILITY_DELAY,
) -> Observer:
    """Start a non-recursive observer on ``directory``. Caller stops and joins it."""
    handler = SortingEventHandler(processor, directory, rules, sink, settle_delay)
    observer = Observer()
    observer.schedule(handler, str(handler.directory), recursive=False)
    observer.start()
    logger.info(f"Watching folder: {handler.directory}")
    return observer
