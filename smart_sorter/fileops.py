"""Filesystem primitives used by the batch processor, and conflict resolution."""

import errno
import logging
import os
import shutil
import time
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from .errors import ConflictResolutionError

logger = logging.getLogger(__name__)

FILE_STABILITY_DELAY = 1.5  # Wait for file to finish writing


# --- Filesystem Contract ---

class FileSystem:
    """The only filesystem operations the sorting engine relies on."""

    def list_regular_files(self, directory: Path) -> List[Tuple[str, Path]]:
        raise NotImplementedError

    def exists(self, path: Path) -> bool:
        raise NotImplementedError

    def create_directories(self, path: Path) -> None:
        raise NotImplementedError

    def move(self, source: Path, destination: Path, overwrite: bool = False) -> None:
        raise NotImplementedError


class LocalFileSystem(FileSystem):
    """FileSystem backed by the local disk."""

    def list_regular_files(self, directory: Path) -> List[Tuple[str, Path]]:
        """
        Returns (name, path) for each regular file directly inside ``directory``.
        Raises OSError if the directory cannot be read.
        """
        files = []
        with os.scandir(directory) as entries:
            for entry in entries:
                try:
                    if entry.is_file():
                        files.append((entry.name, Path(entry.path)))
                except OSError as e:
                    logger.debug(f"Cannot stat '{entry.name}', ignoring: {e}")
        return files

    def exists(self, path: Path) -> bool:
        return os.path.lexists(path)

    def create_directories(self, path: Path) -> None:
        Path(path).mkdir(parents=True, exist_ok=True)

    def move(self, source: Path, destination: Path, overwrite: bool = False) -> None:
        """
        Moves ``source`` to ``destination`` using an atomic rename when possible.
        Falls back to copy and delete across devices.
        """
        source, destination = Path(source), Path(destination)
        if not overwrite and self.exists(destination):
            raise FileExistsError(errno.EEXIST, "Destination already exists", str(destination))

        try:
            if overwrite:
                os.replace(source, destination)
            else:
                os.rename(source, destination)
        except OSError as e:
            if e.errno != errno.EXDEV:
                raise
            logger.debug(f"Cross-device move for '{source.name}', copying instead")
            shutil.move(str(source), str(destination))

        logger.debug(f"Successfully moved {source.name} to {destination}")


# --- Conflict Resolution ---

def split_name(file_name: str) -> Tuple[str, str]:
    """Split into (base, extension-with-dot). Dotfiles are all base."""
    dot_index = file_name.rfind('.')
    if dot_index > 0:
        return file_name[:dot_index], file_name[dot_index:]
    return file_name, ""


def resolve_conflict(
    desired_path: Path,
    exists: Callable[[Path], bool] = os.path.lexists,
    max_attempts: Optional[int] = None,
) -> Path:
    """
    Returns ``desired_path`` if free, otherwise the first free sibling
    named "base (N).ext" counting N up from 1.

    Raises ConflictResolutionError if ``max_attempts`` candidates are taken.
    """
    desired_path = Path(desired_path)
    if not exists(desired_path):
        return desired_path

    base, extension = split_name(desired_path.name)
    counter = 1
    while max_attempts is None or counter <= max_attempts:
        candidate = desired_path.with_name(f"{base} ({counter}){extension}")
        if not exists(candidate):
            return candidate
        counter += 1

    raise ConflictResolutionError(
        f"Could not generate unique path after {max_attempts} attempts for: {desired_path}"
    )


# --- Watch Helpers ---

def wait_for_file_stability(file_path: Path, delay: float = FILE_STABILITY_DELAY) -> bool:
    """
    Waits for file to finish writing by checking size stability.
    Returns True if file is stable, False if it disappeared.
    """
    try:
        initial = file_path.stat()
        if delay > 0:
            time.sleep(delay)

        current = file_path.stat()
        if (initial.st_size, initial.st_mtime) == (current.st_size, current.st_mtime):
            return True

        # File is still changing, wait one more round
        time.sleep(delay)
        return file_path.exists()

    except (OSError, FileNotFoundError):
        return False
