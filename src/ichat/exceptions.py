"""
Exceptions for iChat archive decoding.
"""

from typing import List, Sequence


class IChatError(Exception):
    """Base exception for iChat archive errors."""
    pass


class ArchiveFormatError(IChatError):
    """Raised when the input is not a keyed archive of the expected outer shape."""
    pass


class ArchiveStructureError(IChatError):
    """Raised when the object graph violates a structural invariant."""
    pass


class UIDOutOfRangeError(ArchiveStructureError):
    """Raised when a UID reference points outside the object table."""

    def __init__(self, index: int, size: int):
        self.index = index
        self.size = size
        super().__init__(f"UID {index} is out of range for an object table of {size} entries")


class CircularReferenceError(ArchiveStructureError):
    """Raised when resolving an object leads back to one of its ancestors."""

    def __init__(self, index: int, chain: Sequence[int] = ()):
        self.index = index
        self.chain = list(chain)
        message = f"Circular reference detected at UID {index}"
        if self.chain:
            message += " (chain: " + " -> ".join(str(i) for i in [*self.chain, index]) + ")"
        super().__init__(message)


class DictionaryLengthMismatchError(ArchiveStructureError):
    """Raised when an NSDictionary has different numbers of keys and values."""

    def __init__(self, key_count: int, value_count: int):
        self.key_count = key_count
        self.value_count = value_count
        super().__init__(
            f"NSDictionary has {key_count} keys but {value_count} values"
        )


class MessageShapeError(IChatError):
    """Raised when a resolved message does not have the expected fields."""

    def __init__(self, index: int, errors: List[str]):
        self.index = index
        self.errors = list(errors)
        super().__init__(f"Message {index} is malformed: " + "; ".join(self.errors))


class AttachmentExtractionError(IChatError):
    """Raised when an attachment blob is too short to hold its size header."""

    def __init__(self, blob_size: int, required: int):
        self.blob_size = blob_size
        self.required = required
        super().__init__(
            f"Attachment blob of {blob_size} bytes is too short; "
            f"at least {required} bytes are needed for the file header"
        )


class ExportValidationError(IChatError):
    """Raised when the JSON export document fails schema validation."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__(" | ".join(self.errors))


class ExportWriteError(IChatError):
    """Raised when an export file or saved attachment cannot be written."""

    def __init__(self, path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot write {path}: {reason}")
