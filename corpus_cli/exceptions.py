"""
Defines custom exceptions for the application to allow for more specific error handling.
"""


class CorpusCliError(Exception):
    """Base exception for all application-specific errors."""


class ConfigurationError(CorpusCliError):
    """Raised for issues related to configuration loading or validation."""


class FetchError(CorpusCliError):
    """Raised when an HTTP resource could not be fetched after all retries."""


class InvariantError(CorpusCliError):
    """
    Raised when the download pool's internal bookkeeping is used incorrectly.

    These are programming errors, not recoverable task failures.
    """


class SlotExhaustedError(InvariantError):
    """Raised when a task asks for a progress slot and every slot is taken."""


class TaskStateError(InvariantError):
    """Raised when a task logger's methods are called out of order."""
