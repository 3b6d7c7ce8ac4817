"""Exception types raised by the sorter."""


class SorterError(Exception):
    """Base exception for Smart File Sorter errors."""
    pass


class ConfigurationError(SorterError):
    """Raised when there's an issue with configuration."""
    pass


class RuleValidationError(SorterError):
    """Raised when a sorting rule is rejected at the rule store boundary."""
    pass


class RuleFormatError(SorterError):
    """Raised when a rule cannot be written in the legacy text format."""
    pass


class ConflictResolutionError(SorterError):
    """Raised when no free destination name could be found."""
    pass
