"""Domain-level exception types."""

from __future__ import annotations


class StorageError(RuntimeError):
    """Raised by persistence adapters when the backing store fails."""


class InvalidSubmissionError(ValueError):
    """Raised when a manually submitted claim cannot be accepted."""


class SourceFetchError(RuntimeError):
    """Raised by a source adapter when it cannot produce any result."""

    def __init__(self, source: str, message: str) -> None:
        super().__init__(f"{source}: {message}")
        self.source = source
