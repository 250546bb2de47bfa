"""Exceptions raised while synchronizing merger runs."""


class SynchronizerError(Exception):
    """Base exception for synchronizer errors."""
    pass


class ConfigError(SynchronizerError):
    """Raised when a configuration file is missing or malformed."""
    pass


class RunNotFoundError(SynchronizerError, FileNotFoundError):
    """Raised when the merger container for a run does not exist."""
    pass


class UnrecognizedFormatError(SynchronizerError):
    """Raised when a container matches no known merger schema."""
    pass


class MissingFieldError(SynchronizerError):
    """Raised when a dataset or attribute required by the schema is absent."""
    pass


class EventNotFoundError(SynchronizerError):
    """Raised when a channel has no data for a requested event."""
    pass
