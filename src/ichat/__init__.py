"""
Decoder for macOS iChat / Messages.app ``*.ichat`` transcripts.

The archive is an NSKeyedArchiver binary property list. Parsing resolves its
object graph, materializes the archived Foundation classes and projects each
archived InstantMessage into a ``Message`` record.
"""

from .exceptions import (  # noqa: F401
    ArchiveFormatError,
    ArchiveStructureError,
    AttachmentExtractionError,
    CircularReferenceError,
    DictionaryLengthMismatchError,
    ExportValidationError,
    ExportWriteError,
    IChatError,
    MessageShapeError,
    UIDOutOfRangeError,
)
from .models import Attachment, Message, MessageMeta  # noqa: F401
from .parser import parse, parse_bytes, parse_file, to_message  # noqa: F401
from ._attachments import extract_file  # noqa: F401
from ._nska import ArchiveResolver, resolve_archive  # noqa: F401
