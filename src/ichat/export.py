"""
JSON export of parsed iChat messages.

Messages are written as a JSON array. When an attachments directory is
given, each attachment's bytes are saved there and the attachment's ``data``
field holds the saved file's name; otherwise the ``attachments`` key is
dropped from every message.
"""

from __future__ import annotations

import json
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from core.logging import get_logger
from core.manifest import collect_validation_errors
from core.timestamps import compact_stamp, to_js_iso
from .exceptions import ExportValidationError, ExportWriteError
from .models import Attachment, Message, MessageMeta

LOGGER = get_logger("ichat.export")

EXPORT_SCHEMA_PATH = Path(__file__).resolve().parent / "schemas" / "ichat_export.schema.json"


def to_jsonable(value: Any) -> Any:
    """Convert a resolved archive value into something ``json.dumps`` accepts."""
    if isinstance(value, dict):
        return {str(key): to_jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    if isinstance(value, (bytes, bytearray)):
        return f"<{len(value)} bytes>"
    if isinstance(value, datetime):
        return to_js_iso(value)
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


def _flatten_path_text(text: str) -> str:
    # Archive text must never name a subdirectory or leave the target folder
    for separator in {"/", os.sep, "\x00"}:
        text = text.replace(separator, "-")
    return text


def attachment_filename(message: Message, attachment: Attachment) -> str:
    """Name an attachment after its message time, sender and original filename."""
    sender = _flatten_path_text(message.sender.replace(":", "-"))
    filename = _flatten_path_text(attachment.filename)
    return f"{compact_stamp(message.time)}_{sender}_{filename}"


def _meta_to_json(meta: MessageMeta) -> Dict[str, Any]:
    return {
        "isInvitation": meta.is_invitation,
        "isRead": meta.is_read,
        "flags": meta.flags,
        "baseWritingDirection": meta.base_writing_direction,
        "error": to_jsonable(meta.error),
    }


def message_to_json(
    message: Message,
    attachment_names: Optional[Sequence[str]] = None,
    include_meta: bool = False,
) -> Dict[str, Any]:
    """
    Build the JSON object for one message.

    ``attachment_names`` are the saved filenames, parallel to
    ``message.attachments``; when None the ``attachments`` key is omitted.
    """
    document: Dict[str, Any] = {
        "uuid": message.uuid,
        "time": to_js_iso(message.time),
        "sender": message.sender,
        "subject": message.subject,
        "message": message.message,
    }
    if attachment_names is not None:
        document["attachments"] = [
            {"filename": attachment.filename, "data": name}
            for attachment, name in zip(message.attachments, attachment_names)
        ]
    if include_meta and message.meta is not None:
        document["meta"] = _meta_to_json(message.meta)
    return document


def save_attachments(message: Message, attachments_dir: Path) -> List[str]:
    """Write a message's attachments into ``attachments_dir`` and return their names."""
    names: List[str] = []
    for attachment in message.attachments:
        name = attachment_filename(message, attachment)
        target = attachments_dir / name
        if target.exists():
            LOGGER.warning("Overwriting existing attachment file %s", target)
        try:
            target.write_bytes(attachment.data)
        except OSError as exc:
            raise ExportWriteError(target, exc.strerror or str(exc)) from exc
        names.append(name)
    return names


def export_messages(
    messages: Sequence[Message],
    attachments_dir: Optional[Path] = None,
    include_meta: bool = False,
) -> List[Dict[str, Any]]:
    """Build the export document, saving attachments when a directory is given."""
    if attachments_dir is not None:
        try:
            attachments_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ExportWriteError(attachments_dir, exc.strerror or str(exc)) from exc

    document: List[Dict[str, Any]] = []
    saved = 0
    for message in messages:
        names = None
        if attachments_dir is not None:
            names = save_attachments(message, attachments_dir)
            saved += len(names)
        document.append(message_to_json(message, names, include_meta))

    if attachments_dir is not None:
        LOGGER.info("Saved %d attachments to %s", saved, attachments_dir)
    return document


def validate_export(document: List[Dict[str, Any]], schema_path: Path = EXPORT_SCHEMA_PATH) -> None:
    """
    Validate an export document against the bundled JSON schema.

    Raises ExportValidationError with formatted errors if validation fails.
    """
    errors = collect_validation_errors(schema_path, document)
    if errors:
        raise ExportValidationError(errors)


def write_export(
    document: Any,
    output: Optional[Path] = None,
    indent: int = 2,
) -> None:
    """Write the export document to ``output``, or to stdout when it is None."""
    text = json.dumps(document, indent=indent, ensure_ascii=False)
    if output is None:
        sys.stdout.write(text + "\n")
        return
    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(text, encoding="utf-8")
    except OSError as exc:
        raise ExportWriteError(output, exc.strerror or str(exc)) from exc
    LOGGER.info("Wrote export to %s", output)
