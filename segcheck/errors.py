"""
Error types raised by the checker.
"""


class SegcheckError(RuntimeError):
    """Base class for every error the checker raises."""


class ConfigError(SegcheckError):
    """Raised on missing or invalid command-line input."""


class NetworkError(SegcheckError):
    """Raised when a manifest, key or segment cannot be fetched."""


class ParseError(SegcheckError):
    """Raised when fetched bytes are not a well-formed HLS playlist."""


class TypeMismatchError(SegcheckError):
    """Raised when a master playlist was expected and a media one arrived, or the reverse."""


class InvalidKeyError(SegcheckError):
    """Raised when key material cannot build an AES-128 cipher."""


class InvalidIVError(SegcheckError):
    """Raised when the playlist IV is missing, not hex, or not one block long."""


class AlignmentError(SegcheckError):
    """Raised when a segment length is not a multiple of the AES block size."""


class EmptyBodyError(SegcheckError):
    """Raised when a segment response has no body."""


class FilesystemError(SegcheckError):
    """Raised when an output folder or file cannot be written."""


class PipelineCancelled(SegcheckError):
    """Raised by tasks that start after a sibling task has already failed."""
