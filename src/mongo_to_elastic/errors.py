"""
Exception hierarchy for the observer.
"""


class ObserverError(Exception):
    """Base exception for observer errors."""
    pass


class ConfigurationError(ObserverError):
    """A required name or connection string is missing or empty."""
    pass


class ObserverStateError(ObserverError):
    """Lifecycle call made in the wrong state (e.g. start while running)."""
    pass


class IndexBootstrapError(ObserverError):
    """The target index could not be checked or created."""
    pass
