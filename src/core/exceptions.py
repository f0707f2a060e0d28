"""
Custom exception hierarchy for the rule graph explorer.

All application exceptions inherit from RuleGraphError.
"""


class RuleGraphError(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(RuleGraphError):
    """Invalid or missing configuration."""

    pass


# =============================================================================
# Data Loading Errors
# =============================================================================


class DataLoadError(RuleGraphError):
    """Raw input could not be read or fetched.

    Fatal for the load operation that raised it: no partial result is
    returned to the caller.
    """

    pass


class DatasetNotFoundError(DataLoadError):
    """Dataset directory or record file does not exist."""

    pass


# =============================================================================
# Query Errors
# =============================================================================


class QueryNotFoundError(RuleGraphError):
    """Requested query index is outside the loaded record list."""

    pass


class ValidationError(RuleGraphError):
    """Input validation failed."""

    pass
