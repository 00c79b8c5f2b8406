"""
Error taxonomy for fieldmerge.

Every failure the library raises on purpose derives from FieldMergeError,
so callers can catch one type for "the merge did not happen".

    CorruptArchiveError   - the archive container cannot be read
    MalformedMarkupError  - the target markup entry cannot be processed
    ResourceCloseError    - releasing a stream failed during cleanup
    ConfigurationError    - a value table or vocabulary document is invalid

All of them are fatal for the current transform. Nothing is retried.
"""


class FieldMergeError(Exception):
    """Base class for all fieldmerge failures."""
    pass


class CorruptArchiveError(FieldMergeError):
    """Raised when the archive structure is unreadable."""
    pass


class MalformedMarkupError(FieldMergeError):
    """
    Raised when the markup entry cannot be transformed.

    Covers parse failures, a recognized element missing its required
    attribute, and a document that ends inside a reference element.
    """

    def __init__(self, message: str, line: int = None, column: int = None):
        if line is not None:
            message = f"{message} (line {line}, column {column})"
        super().__init__(message)
        self.line = line
        self.column = column


class ResourceCloseError(FieldMergeError):
    """
    Raised when a stream fails to close.

    During cleanup after another error this is only logged; it never
    replaces the error that is already propagating.
    """
    pass


class ConfigurationError(FieldMergeError):
    """Raised when a value table or vocabulary document is invalid."""
    pass


__all__ = [
    "FieldMergeError",
    "CorruptArchiveError",
    "MalformedMarkupError",
    "ResourceCloseError",
    "ConfigurationError",
]
