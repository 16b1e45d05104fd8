"""
File extraction from serialized NSFileWrapper blobs.

A text attachment in an iChat transcript carries the serialized
representation of its file wrapper (the RTFD "serializedRepresentation"
layout). For a single-file attachment the layout starts with a header in
which an 8-byte marker ``01 00 00 00 00 00 00 80`` is followed by two
little-endian uint32 values: the file size and the size of the zero padding
that precedes the file contents. A directory listing for the bundle follows
the file and is ignored.

The marker sits at offset 93 for the attachments seen in practice, which
puts the size fields at 101 and 105 and the padding at 109. Those offsets
are used directly rather than searching for the marker; other layouts
(multi-file bundles, other Messages.app versions) can produce truncated or
corrupt output. See
http://blog.simonrodriguez.fr/articles/2015/09/nsfilewrapper_serializedrepresentation.html
"""

from __future__ import annotations

import struct

from core.logging import get_logger
from .exceptions import AttachmentExtractionError

LOGGER = get_logger("ichat.attachments")

FILE_MARKER = b"\x01\x00\x00\x00\x00\x00\x00\x80"
MARKER_OFFSET = 93
FILE_SIZE_OFFSET = 101
PADDING_SIZE_OFFSET = 105
FILE_DATA_OFFSET = 109

_UINT32_LE = struct.Struct("<I")


def extract_file(blob: bytes) -> bytes:
    """
    Return the embedded file's bytes from a serialized file-wrapper blob.

    Raises:
        AttachmentExtractionError: the blob is too short to hold the size fields
    """
    blob = bytes(blob)
    if len(blob) < FILE_DATA_OFFSET:
        raise AttachmentExtractionError(len(blob), FILE_DATA_OFFSET)

    if blob[MARKER_OFFSET:FILE_SIZE_OFFSET] != FILE_MARKER:
        LOGGER.warning(
            "Attachment blob (%d bytes) lacks the file marker at offset %d; "
            "extracted data may be corrupt",
            len(blob),
            MARKER_OFFSET,
        )

    (file_size,) = _UINT32_LE.unpack_from(blob, FILE_SIZE_OFFSET)
    (padding_size,) = _UINT32_LE.unpack_from(blob, PADDING_SIZE_OFFSET)
    begin = FILE_DATA_OFFSET + padding_size
    data = blob[begin:begin + file_size]

    if len(data) != file_size:
        LOGGER.warning(
            "Attachment declares %d bytes but only %d are present after offset %d",
            file_size,
            len(data),
            begin,
        )
    return data
