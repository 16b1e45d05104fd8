"""Public record types produced by the iChat parser."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional

DEFAULT_ATTACHMENT_FILENAME = "unknown"
PARTY_DELIMITER = "|"


@dataclass
class Attachment:
    """Image or file attachment sent with a message."""

    filename: str
    data: bytes
    transfer_guid: Optional[str] = None


@dataclass
class MessageMeta:
    """Auxiliary flags carried by every archived InstantMessage."""

    is_invitation: bool
    is_read: bool
    flags: int
    base_writing_direction: int
    error: Any = None


@dataclass
class Message:
    """Parsed iChat message."""

    uuid: str
    time: datetime
    sender: str
    subject: str
    message: Optional[str]
    attachments: List[Attachment] = field(default_factory=list)
    meta: Optional[MessageMeta] = None


def format_party(party: dict) -> str:
    """Compose ``ServiceName|ServiceLoginID|ID`` for a resolved Presentity."""
    return PARTY_DELIMITER.join(
        (party["ServiceName"], party["ServiceLoginID"], party["ID"])
    )
