"""Error taxonomy for the release pipeline.

Fatal errors derive from ``BinrelayError`` and stop the run. Parse failures
and not-found lookups are recovered inside the stores. A failed verification is
emitted as an ``IntegrityWarning`` and never raised.
"""

from __future__ import annotations


class BinrelayError(RuntimeError):
    """Base class for fatal pipeline errors."""


class ConfigurationError(BinrelayError):
    """Raised when required store credentials or location are absent."""


class PreconditionError(BinrelayError):
    """Raised when the store state does not allow the requested release."""


class TransferError(BinrelayError):
    """Raised when an object store operation fails for any reason other than a missing key."""


class BuildError(BinrelayError):
    """Raised when a platform that needs a fresh upload has no built artifact."""


class ObjectNotFoundError(LookupError):
    """Raised by object stores when a key does not exist."""

    def __init__(self, key: str) -> None:
        super().__init__(key)
        self.key = key


class ParseError(ValueError):
    """Raised when a stored JSON record is malformed. Always handled locally."""


class IntegrityWarning(UserWarning):
    """A claimed authoritative version failed verification."""


class InvalidVersionError(BinrelayError):
    """Raised when a version string cannot name a release folder."""
