from pathlib import Path

import pytest

from smart_sorter.events import Failed, NoFiles, ProgressSink, Routed, Skipped
from smart_sorter.fileops import LocalFileSystem


class RecordingSink(ProgressSink):
    """Collects everything a run reports."""

    def __init__(self):
        self.events = []
        self.progress = []
        self.summaries = []

    def on_event(self, event):
        self.events.append(event)

    def on_progress(self, fraction):
        self.progress.append(fraction)

    def on_summary(self, summary):
        self.summaries.append(summary)

    def of_type(self, kind):
        return [e for e in self.events if isinstance(e, kind)]

    @property
    def routed(self):
        return self.of_type(Routed)

    @property
    def skipped(self):
        return self.of_type(Skipped)

    @property
    def failed(self):
        return self.of_type(Failed)

    @property
    def no_files(self):
        return self.of_type(NoFiles)


class FailingFileSystem(LocalFileSystem):
    """Local filesystem that raises for chosen file names or folders."""

    def __init__(self, fail_moves=(), fail_folders=()):
        self.fail_moves = set(fail_moves)
        self.fail_folders = set(fail_folders)
        self.moves = []

    def create_directories(self, path):
        if Path(path).name in self.fail_folders:
            raise PermissionError(13, "Permission denied", str(path))
        super().create_directories(path)

    def move(self, source, destination, overwrite=False):
        if Path(source).name in self.fail_moves:
            raise OSError(5, "Input/output error", str(source))
        super().move(source, destination, overwrite)
        self.moves.append((Path(source).name, Path(destination)))


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def make_files(tmp_path):
    def _make(*names, directory=None):
        base = directory or tmp_path
        for name in names:
            path = base / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(f"content of {name}", encoding="utf-8")
        return base
    return _make


@pytest.fixture
def failing_fs():
    return FailingFileSystem
