"""
Import and export of the old ``extension;folder;description`` rule files.

The format has no escaping, so a ``;`` inside any field cannot be stored.
Export refuses such rules instead of writing a line that reads back wrong.
"""

import logging
from pathlib import Path
from typing import Iterable, List, Union

from .errors import ConfigurationError, RuleFormatError, RuleValidationError
from .rules import SortingRule

logger = logging.getLogger(__name__)

SEPARATOR = ";"


def parse_line(line: str) -> SortingRule:
    """
    Parse one line into a rule.

    Raises RuleFormatError for lines with fewer than three fields and
    RuleValidationError for fields the rule store would reject.
    """
    parts = line.rstrip("\r\n").split(SEPARATOR)
    if len(parts) < 3:
        raise RuleFormatError(f"Expected 3 fields, got {len(parts)}")
    return SortingRule(parts[0], parts[1], parts[2])


def format_rule(rule: SortingRule) -> str:
    for value in (rule.extension, rule.target_folder, rule.description):
        if SEPARATOR in value or "\n" in value or "\r" in value:
            raise RuleFormatError(
                f"Rule '.{rule.extension}' cannot be exported: field {value!r} "
                f"contains '{SEPARATOR}' or a line break"
            )
    return SEPARATOR.join((rule.extension, rule.target_folder, rule.description))


def load_legacy_rules(path: Union[str, Path]) -> List[SortingRule]:
    """Read rules from a legacy file. Unusable lines are skipped."""
    rules = []
    try:
        with open(path, 'r', encoding='utf-8') as f:
            for line_number, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                try:
                    rules.append(parse_line(line))
                except RuleFormatError:
                    logger.debug(f"{path}:{line_number}: too few fields, ignoring")
                except RuleValidationError as e:
                    logger.warning(f"{path}:{line_number}: invalid rule ignored: {e}")
    except (IOError, OSError) as e:
        raise ConfigurationError(f"Error reading rule file '{path}': {e}")

    logger.info(f"Imported {len(rules)} rules from '{path}'")
    return rules


def save_legacy_rules(rules: Iterable[SortingRule], path: Union[str, Path]) -> int:
    """Write rules in the legacy format. Returns the number of rules written."""
    lines = [format_rule(rule) for rule in rules]
    try:
        with open(path, 'w', encoding='utf-8', newline='\n') as f:
            for line in lines:
                f.write(line + "\n")
    except (IOError, OSError) as e:
        raise ConfigurationError(f"Error writing rule file '{path}': {e}")
    return len(lines)
