"""Exception classes shared by the archive decoder and the gateway."""

from typing import Optional


class RetrievalError(Exception):
    """
    Base exception class for all retrieval errors.
    """
    pass


class ConfigurationError(RetrievalError):
    """
    Raised at startup when required configuration is missing or invalid.
    """
    pass


class MissingIdentifierError(RetrievalError):
    """
    Raised when a request carries no content identifier.
    """
    pass


class InvalidIdentifierError(RetrievalError):
    """
    Raised when a block identifier cannot be parsed as a CID.
    """
    pass


class NotFoundError(RetrievalError):
    """
    Raised when no archive is mapped to an identifier, or the requested
    block is absent from the archive.
    """
    pass


class LookupFailureError(RetrievalError):
    """
    Raised when the mapping store is unreachable or errors.
    """
    pass


class ArchiveUnavailableError(RetrievalError):
    """
    Raised when the archive file is missing or unreadable.
    """
    pass


class MalformedArchiveError(RetrievalError):
    """
    Raised when an archive violates the CAR framing rules.
    """
    pass


class IOFailureError(RetrievalError):
    """
    Raised when reading an already opened archive fails.
    """
    pass


class RangeError(RetrievalError):
    """
    Base class for range errors; total_length is the size of the resource
    the range was resolved against, when known.
    """

    def __init__(self, message: str, total_length: Optional[int] = None):
        super().__init__(message)
        self.total_length = total_length


class InvalidRangeError(RangeError):
    """
    Raised when a range expression is malformed or unsatisfiable.
    """
    pass


class UnsupportedRangeError(RangeError):
    """
    Raised for multi-range expressions.
    """
    pass
