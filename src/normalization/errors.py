"""Exceptions raised by the normalization pipeline."""

from typing import Optional


class NormalizationError(Exception):
    """Base exception for the textile normalization pipeline."""

    pass


class FeedError(NormalizationError):
    """Raised when a source product feed cannot be fetched or read."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class DictionaryUnavailableError(NormalizationError):
    """Raised when the dictionary store cannot be loaded."""

    pass


class RepositoryError(NormalizationError):
    """Raised when a backing store read or write fails."""

    pass


class UnknownTermNotFoundError(NormalizationError):
    """Raised when a curation action targets a missing unknown term."""

    pass


class InvalidTransitionError(NormalizationError):
    """Raised when an unknown term cannot move to the requested status."""

    pass
