"""
Shape checks for resolved iChat message structures.

Each ``check_*`` function inspects one entity of a resolved archive and
returns a ``ShapeResult`` instead of raising, so every problem in a message
can be reported at once. Error strings are prefixed with the dotted path of
the offending field.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, List, Optional, Tuple


@dataclass
class ShapeResult:
    """Outcome of a shape check: the checked value plus any errors found."""

    value: Any
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def extend(self, other: "ShapeResult") -> "ShapeResult":
        self.errors.extend(other.errors)
        return self


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    return type(value).__name__


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_str(value: Any) -> bool:
    return isinstance(value, str)


def is_bool(value: Any) -> bool:
    return isinstance(value, bool)


def is_bytes(value: Any) -> bool:
    return isinstance(value, bytes)


def is_datetime(value: Any) -> bool:
    return isinstance(value, datetime)


Field = Tuple[str, Callable[[Any], bool], str]

PARTY_FIELDS: Tuple[Field, ...] = (
    ("ID", is_str, "string"),
    ("ServiceName", is_str, "string"),
    ("AccountID", is_str, "string"),
    ("AnonymousKey", is_bool, "boolean"),
    ("ServiceLoginID", is_str, "string"),
)

PARAGRAPH_STYLE_FIELDS: Tuple[Field, ...] = (
    ("NSAlignment", is_number, "number"),
    ("NSAllowsTighteningForTruncation", is_number, "number"),
)

FONT_FIELDS: Tuple[Field, ...] = (
    ("NSSize", is_number, "number"),
    ("NSfFlags", is_number, "number"),
    ("NSName", is_str, "string"),
)

MESSAGE_FIELDS: Tuple[Field, ...] = (
    ("GUID", is_str, "string"),
    ("Time", is_datetime, "date"),
    ("BaseWritingDirection", is_number, "number"),
    ("Flags", is_number, "number"),
    ("IsInvitation", is_bool, "boolean"),
    ("IsRead", is_bool, "boolean"),
)


def _check_mapping(value: Any, path: str) -> Optional[str]:
    if not isinstance(value, dict):
        return f"{path}: expected object, got {_type_name(value)}"
    return None


def _check_fields(value: dict, fields: Tuple[Field, ...], path: str) -> List[str]:
    errors: List[str] = []
    for key, predicate, expected in fields:
        if key not in value:
            errors.append(f"{path}.{key}: required field is missing")
        elif not predicate(value[key]):
            errors.append(f"{path}.{key}: expected {expected}, got {_type_name(value[key])}")
    return errors


def _check_optional(value: dict, key: str, predicate: Callable[[Any], bool], expected: str, path: str) -> List[str]:
    if key in value and value[key] is not None and not predicate(value[key]):
        return [f"{path}.{key}: expected {expected}, got {_type_name(value[key])}"]
    return []


def check_party(value: Any, path: str = "party") -> ShapeResult:
    """Check a resolved Presentity (conversation participant)."""
    problem = _check_mapping(value, path)
    if problem:
        return ShapeResult(value, [problem])
    return ShapeResult(value, _check_fields(value, PARTY_FIELDS, path))


def check_attribute_set(value: Any, path: str = "attributes") -> ShapeResult:
    """Check one NSAttributes entry of a message's attributed text."""
    problem = _check_mapping(value, path)
    if problem:
        return ShapeResult(value, [problem])

    errors: List[str] = []
    errors += _check_optional(value, "__kIMFileTransferGUIDAttributeName", is_str, "string", path)
    errors += _check_optional(value, "__kIMFilenameAttributeName", is_str, "string", path)
    errors += _check_optional(value, "NSAttachment", is_bytes, "bytes", path)

    style = value.get("NSParagraphStyle")
    if style is not None:
        style_path = f"{path}.NSParagraphStyle"
        problem = _check_mapping(style, style_path)
        errors += [problem] if problem else _check_fields(style, PARAGRAPH_STYLE_FIELDS, style_path)

    font = value.get("NSFont")
    if font is not None:
        font_path = f"{path}.NSFont"
        problem = _check_mapping(font, font_path)
        errors += [problem] if problem else _check_fields(font, FONT_FIELDS, font_path)

    return ShapeResult(value, errors)


def normalize_attributes(value: Any) -> List[Any]:
    """NSAttributes may be archived as one object or as an array of them."""
    if isinstance(value, list):
        return value
    return [value]


def check_message_text(value: Any, path: str = "MessageText") -> ShapeResult:
    """Check a message's attributed text and normalize its attribute sets to a list."""
    problem = _check_mapping(value, path)
    if problem:
        return ShapeResult(value, [problem])

    errors = _check_fields(value, (("NSString", is_str, "string"),), path)
    if "NSAttributes" not in value:
        errors.append(f"{path}.NSAttributes: required field is missing")
        return ShapeResult([], errors)

    attributes = normalize_attributes(value["NSAttributes"])
    result = ShapeResult(attributes, errors)
    many = isinstance(value["NSAttributes"], list)
    for position, entry in enumerate(attributes):
        entry_path = f"{path}.NSAttributes[{position}]" if many else f"{path}.NSAttributes"
        result.extend(check_attribute_set(entry, entry_path))
    return result


def check_message(value: Any, path: str = "message") -> ShapeResult:
    """Check a resolved InstantMessage and everything nested in it."""
    problem = _check_mapping(value, path)
    if problem:
        return ShapeResult(value, [problem])

    result = ShapeResult(value, _check_fields(value, MESSAGE_FIELDS, path))
    result.errors += _check_optional(value, "OriginalMessage", is_str, "string", path)

    for party_key in ("Subject", "Sender"):
        if party_key not in value:
            result.errors.append(f"{path}.{party_key}: required field is missing")
        else:
            result.extend(check_party(value[party_key], f"{path}.{party_key}"))

    if "MessageText" not in value:
        result.errors.append(f"{path}.MessageText: required field is missing")
    else:
        result.extend(check_message_text(value["MessageText"], f"{path}.MessageText"))

    return result
