"""Smart File Sorter - moves files into subfolders by extension rules."""

from .errors import (
    SorterError,
    ConfigurationError,
    RuleValidationError,
    RuleFormatError,
    ConflictResolutionError,
)
from .rules import SortingRule, RuleStore, RuleIndex, build_rule_index
from .classifier import Route, extension_of, classify
from .fileops import FileSystem, LocalFileSystem, resolve_conflict
from .events import (
    Routed,
    Skipped,
    Failed,
    NoFiles,
    BatchSummary,
    ProgressSink,
    LoggingSink,
    CompositeSink,
    CallbackSink,
)
from .processor import BatchProcessor, SortJob
from .config import Config, load_config, save_config

__version__ = "1.0.0"

__all__ = [
    "SorterError",
    "ConfigurationError",
    "RuleValidationError",
    "RuleFormatError",
    "ConflictResolutionError",
    "SortingRule",
    "RuleStore",
    "RuleIndex",
    "build_rule_index",
    "Route",
    "extension_of",
    "classify",
    "FileSystem",
    "LocalFileSystem",
    "resolve_conflict",
    "Routed",
    "Skipped",
    "Failed",
    "NoFiles",
    "BatchSummary",
    "ProgressSink",
    "LoggingSink",
    "CompositeSink",
    "CallbackSink",
    "BatchProcessor",
    "SortJob",
    "Config",
    "load_config",
    "save_config",
]
