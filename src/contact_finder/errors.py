"""Custom exceptions for the contact finder domain."""


class ContactFinderError(Exception):
    """Base exception for this project."""


class ConfigError(ContactFinderError):
    """Raised when runtime configuration is invalid."""


class InvalidSearchError(ContactFinderError):
    """Raised when search parameters cannot be understood."""


class FetchError(ContactFinderError):
    """Raised when fetching a URL fails unexpectedly."""


class StoreError(ContactFinderError):
    """Raised when the persistence collaborator fails."""


class SearchError(ContactFinderError):
    """Raised when a search cannot be completed for the caller."""


class MonitoringError(ContactFinderError):
    """Raised when a monitoring run cannot read or update alerts."""


class SessionStateError(ContactFinderError):
    """Raised when a streaming session is driven out of order."""
