"""
iChat transcript parsing.

Turns a Messages.app / iChat ``*.ichat`` keyed archive into ``Message``
records. The archive root resolves to an array whose third element is the
list of archived InstantMessages; everything else in the root is ignored.
"""

from __future__ import annotations

import plistlib
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from core.logging import get_logger
from ._attachments import extract_file
from ._classes import MaterializerRegistry
from ._nska import resolve_archive
from ._schemas import check_message, normalize_attributes
from .exceptions import ArchiveFormatError, MessageShapeError
from .models import (
    DEFAULT_ATTACHMENT_FILENAME,
    Attachment,
    Message,
    MessageMeta,
    format_party,
)

LOGGER = get_logger("ichat.parser")

MESSAGES_ROOT_INDEX = 2


def _messages_from_root(root: Any) -> List[Any]:
    if not isinstance(root, list) or len(root) <= MESSAGES_ROOT_INDEX:
        raise ArchiveFormatError(
            f"Archive root must be an array with at least {MESSAGES_ROOT_INDEX + 1} elements"
        )
    messages = root[MESSAGES_ROOT_INDEX]
    if not isinstance(messages, list):
        raise ArchiveFormatError(
            f"Archive root element {MESSAGES_ROOT_INDEX} must be the messages array, "
            f"got {type(messages).__name__}"
        )
    return messages


def _attachments_from(attribute_sets: List[Dict[str, Any]]) -> List[Attachment]:
    attachments: List[Attachment] = []
    for attributes in attribute_sets:
        blob = attributes.get("NSAttachment")
        if blob is None:
            continue
        attachments.append(
            Attachment(
                filename=attributes.get("__kIMFilenameAttributeName") or DEFAULT_ATTACHMENT_FILENAME,
                data=extract_file(blob),
                transfer_guid=attributes.get("__kIMFileTransferGUIDAttributeName"),
            )
        )
    return attachments


def to_message(value: Any, index: int = 0) -> Message:
    """
    Validate one resolved InstantMessage and project it into a ``Message``.

    Raises:
        MessageShapeError: required fields are missing or have the wrong type
        AttachmentExtractionError: an attachment blob is too short
    """
    result = check_message(value, f"messages[{index}]")
    if not result.ok:
        raise MessageShapeError(index, result.errors)

    attribute_sets = normalize_attributes(value["MessageText"]["NSAttributes"])

    return Message(
        uuid=value["GUID"],
        time=value["Time"],
        sender=format_party(value["Sender"]),
        subject=format_party(value["Subject"]),
        message=value.get("OriginalMessage") or None,
        attachments=_attachments_from(attribute_sets),
        meta=MessageMeta(
            is_invitation=value["IsInvitation"],
            is_read=value["IsRead"],
            flags=value["Flags"],
            base_writing_direction=value["BaseWritingDirection"],
            error=value.get("Error"),
        ),
    )


def parse(archive: Any, registry: Optional[MaterializerRegistry] = None) -> List[Message]:
    """Parse a ``plistlib``-decoded keyed archive into messages."""
    root = resolve_archive(archive, registry)
    raw_messages = _messages_from_root(root)
    messages = [to_message(raw, index) for index, raw in enumerate(raw_messages)]

    attachment_count = sum(len(m.attachments) for m in messages)
    LOGGER.debug("Parsed %d messages with %d attachments", len(messages), attachment_count)
    return messages


def load_archive(buf: bytes) -> Any:
    """Decode binary plist bytes, mapping decoder failures to ``ArchiveFormatError``."""
    try:
        return plistlib.loads(buf)
    except (plistlib.InvalidFileException, ValueError, TypeError, IndexError, OverflowError) as exc:
        raise ArchiveFormatError(f"Not a readable property list: {exc}") from exc


def parse_bytes(buf: bytes) -> List[Message]:
    """Parse the raw bytes of a ``*.ichat`` file."""
    return parse(load_archive(buf))


def parse_file(path: Union[str, Path]) -> List[Message]:
    """Parse a ``*.ichat`` file from disk."""
    path = Path(path)
    LOGGER.info("Parsing %s", path)
    return parse_bytes(path.read_bytes())
