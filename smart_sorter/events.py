"""Events emitted by a batch run and the sinks that receive them."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Union

logger = logging.getLogger(__name__)


# --- Event Types ---

@dataclass(frozen=True)
class Routed:
    """File moved into its destination folder."""
    file_name: str
    dest_folder: str
    destination: Optional[Path] = None


@dataclass(frozen=True)
class Skipped:
    """No rule for the file's extension; left in place."""
    file_name: str


@dataclass(frozen=True)
class Failed:
    """
    A file could not be sorted. ``fatal`` is set when the directory itself
    could not be listed, in which case ``file_name`` names the directory.
    """
    file_name: str
    error_message: str
    fatal: bool = False


@dataclass(frozen=True)
class NoFiles:
    """The directory held no regular files."""
    directory: Path


FileEvent = Union[Routed, Skipped, Failed, NoFiles]


@dataclass(frozen=True)
class BatchSummary:
    total_files: int = 0
    routed_count: int = 0
    skipped_count: int = 0
    failed_count: int = 0
    cancelled: bool = False
    error: Optional[str] = None

    @property
    def processed(self) -> int:
        return self.routed_count + self.skipped_count + self.failed_count

    @property
    def ok(self) -> bool:
        return self.error is None and self.failed_count == 0


# --- Sinks ---

class ProgressSink:
    """
    Receives run events. Methods are called on the processor's thread;
    implementations marshal to other threads themselves and must not block.
    """

    def on_event(self, event: FileEvent) -> None:
        pass

    def on_progress(self, fraction: float) -> None:
        pass

    def on_summary(self, summary: BatchSummary) -> None:
        pass


class LoggingSink(ProgressSink):
    """Writes run events to a logger."""

    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or logger

    def on_event(self, event: FileEvent) -> None:
        if isinstance(event, Routed):
            self.log.info(f"✓ '{event.file_name}' → {event.dest_folder}")
        elif isinstance(event, Skipped):
            self.log.info(f"Skipped '{event.file_name}' - no matching rule")
        elif isinstance(event, Failed):
            if event.fatal:
                self.log.error(f"Cannot read directory '{event.file_name}': {event.error_message}")
            else:
                self.log.error(f"Failed to sort '{event.file_name}': {event.error_message}")
        elif isinstance(event, NoFiles):
            self.log.info(f"No files to sort in '{event.directory}'")

    def on_progress(self, fraction: float) -> None:
        self.log.debug(f"Progress: {fraction:.0%}")

    def on_summary(self, summary: BatchSummary) -> None:
        self.log.info("=" * 40)
        self.log.info("SORTING SUMMARY")
        self.log.info("=" * 40)
        self.log.info(f"Files found: {summary.total_files}")
        self.log.info(f"Files sorted: {summary.routed_count}")
        self.log.info(f"Files skipped: {summary.skipped_count}")
        self.log.info(f"Errors encountered: {summary.failed_count}")
        if summary.cancelled:
            self.log.warning(f"Run cancelled after {summary.processed} files")
        self.log.info("=" * 40)


class CompositeSink(ProgressSink):
    """Forwards every call to each wrapped sink in order."""

    def __init__(self, *sinks: ProgressSink):
        self.sinks = list(sinks)

    def on_event(self, event: FileEvent) -> None:
        for sink in self.sinks:
            sink.on_event(event)

    def on_progress(self, fraction: float) -> None:
        for sink in self.sinks:
            sink.on_progress(fraction)

    def on_summary(self, summary: BatchSummary) -> None:
        for sink in self.sinks:
            sink.on_summary(summary)


class CallbackSink(ProgressSink):
    """Adapts plain callables to the sink interface. Missing callbacks are ignored."""

    def __init__(
        self,
        on_event: Optional[Callable[[FileEvent], None]] = None,
        on_progress: Optional[Callable[[float], None]] = None,
        on_summary: Optional[Callable[[BatchSummary], None]] = None,
    ):
        self._on_event = on_event
        self._on_progress = on_progress
        self._on_summary = on_summary

    def on_event(self, event: FileEvent) -> None:
        if self._on_event:
            self._on_event(event)

    def on_progress(self, fraction: float) -> None:
        if self._on_progress:
            self._on_progress(fraction)

    def on_summary(self, summary: BatchSummary) -> None:
        if self._on_summary:
            self._on_summary(summary)
