"""Extension extraction and rule lookup for single file names."""

from dataclasses import dataclass
from typing import Mapping, Optional


@dataclass(frozen=True)
class Route:
    """Classification outcome: a destination folder, or ``None`` when unmatched."""
    dest_folder: Optional[str] = None

    @classmethod
    def matched(cls, dest_folder: str) -> "Route":
        return cls(dest_folder)

    @classmethod
    def unmatched(cls) -> "Route":
        return cls(None)

    @property
    def is_matched(self) -> bool:
        return self.dest_folder is not None


def extension_of(file_name: str) -> str:
    """
    Returns the lowercased text after the last dot.

    Dotfiles (".bashrc") and names ending in a dot have no extension,
    so an empty string is returned for them.
    """
    i = file_name.rfind('.')
    if 0 < i < len(file_name) - 1:
        return file_name[i + 1:].lower()
    return ""


def classify(file_name: str, rule_index: Mapping[str, str]) -> Route:
    """Look up the file's extension in the rule index."""
    extension = extension_of(file_name)
    if extension and extension in rule_index:
        return Route.matched(rule_index[extension])
    return Route.unmatched()
