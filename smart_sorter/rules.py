"""Sorting rules, the ordered rule store and the per-run rule index."""

import logging
from collections import Counter
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import PurePosixPath, PureWindowsPath
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from .errors import RuleValidationError

logger = logging.getLogger(__name__)


# --- Rule Value ---

@dataclass(frozen=True)
class SortingRule:
    """Maps a file extension to a destination folder name."""
    extension: str
    target_folder: str
    description: str = ""

    def __post_init__(self):
        """Validate and normalize rule data."""
        extension = (self.extension or "").strip()
        if extension.startswith('.'):
            extension = extension[1:]
        extension = extension.lower()

        if not extension:
            raise RuleValidationError("Rule extension cannot be empty")

        if '/' in extension or '\\' in extension:
            raise RuleValidationError(f"Rule extension '{extension}' cannot contain path separators")

        target_folder = (self.target_folder or "").strip()
        if not target_folder:
            raise RuleValidationError(f"Rule '.{extension}' must have a target folder")

        _check_relative_folder(extension, target_folder)

        object.__setattr__(self, 'extension', extension)
        object.__setattr__(self, 'target_folder', target_folder)
        object.__setattr__(self, 'description', (self.description or "").strip())


def _check_relative_folder(extension: str, target_folder: str) -> None:
    """Reject folders that would land outside the sorted directory."""
    for flavour in (PurePosixPath, PureWindowsPath):
        path = flavour(target_folder)
        if path.is_absolute() or path.drive or path.root:
            raise RuleValidationError(
                f"Rule '.{extension}': target folder must be relative, got '{target_folder}'"
            )
        if '..' in path.parts:
            raise RuleValidationError(
                f"Rule '.{extension}': target folder cannot leave the sorted directory: '{target_folder}'"
            )
        if not path.parts:
            raise RuleValidationError(
                f"Rule '.{extension}': target folder cannot be the sorted directory itself: '{target_folder}'"
            )


# --- Rule Store ---

class RuleStore:
    """
    Ordered collection of sorting rules.

    Rules are immutable; the store changes by appending, replacing or
    removing by position. Batch runs work off ``snapshot()``.
    """

    def __init__(self, rules: Optional[Iterable[SortingRule]] = None):
        self._rules: List[SortingRule] = list(rules or [])

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[SortingRule]:
        return iter(self.snapshot())

    def __getitem__(self, index: int) -> SortingRule:
        return self._rules[index]

    def add(self, extension: str, target_folder: str, description: str = "") -> SortingRule:
        """Validate and append a new rule. Returns the stored rule."""
        rule = SortingRule(extension, target_folder, description)
        self._rules.append(rule)
        logger.debug(f"Added rule: .{rule.extension} → {rule.target_folder}")
        return rule

    def append(self, rule: SortingRule) -> None:
        """Append an already built rule."""
        if not isinstance(rule, SortingRule):
            raise RuleValidationError(f"Expected a SortingRule, got {type(rule).__name__}")
        self._rules.append(rule)

    def replace(self, index: int, **changes) -> SortingRule:
        """Replace the rule at ``index`` with a copy carrying ``changes``."""
        rule = replace(self._rules[index], **changes)
        self._rules[index] = rule
        return rule

    def remove(self, index: int) -> SortingRule:
        """Remove and return the rule at ``index``."""
        rule = self._rules.pop(index)
        logger.debug(f"Removed rule: .{rule.extension} → {rule.target_folder}")
        return rule

    def snapshot(self) -> Tuple[SortingRule, ...]:
        return tuple(self._rules)

    def filter(self, text: str) -> List[Tuple[int, SortingRule]]:
        """
        Returns (position, rule) pairs whose extension contains ``text``.
        An empty filter matches every rule.
        """
        needle = (text or "").strip().lower()
        return [
            (i, rule) for i, rule in enumerate(self._rules)
            if not needle or needle in rule.extension
        ]

    def folder_counts(self) -> Dict[str, int]:
        """Number of rules pointing at each target folder."""
        return dict(Counter(rule.target_folder for rule in self._rules))


# --- Rule Index ---

class RuleIndex(Mapping):
    """Read-only, case-insensitive extension → target folder lookup."""

    def __init__(self, mapping: Optional[Dict[str, str]] = None):
        self._map: Dict[str, str] = {
            ext.lower(): folder for ext, folder in (mapping or {}).items()
        }

    @classmethod
    def from_rules(cls, rules: Iterable[SortingRule]) -> "RuleIndex":
        """Build an index; later rules override earlier ones for the same extension."""
        index = cls()
        for rule in rules:
            extension = rule.extension.lower()
            if extension in index._map and index._map[extension] != rule.target_folder:
                logger.debug(
                    f"Rule for .{extension} overrides '{index._map[extension]}' "
                    f"with '{rule.target_folder}'"
                )
            index._map[extension] = rule.target_folder
        return index

    def __getitem__(self, extension: str) -> str:
        return self._map[extension.lower()]

    def __contains__(self, extension) -> bool:
        return isinstance(extension, str) and extension.lower() in self._map

    def __iter__(self) -> Iterator[str]:
        return iter(self._map)

    def __len__(self) -> int:
        return len(self._map)

    def __repr__(self) -> str:
        return f"RuleIndex({self._map!r})"


def build_rule_index(rules: Iterable[SortingRule]) -> RuleIndex:
    """Build a fresh index from an ordered sequence of rules."""
    return RuleIndex.from_rules(rules)
