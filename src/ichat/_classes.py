"""
Archived-class materializers.

Each entry recognizes one NSKeyedArchiver class shape (class name, exact
ancestry chain and payload field types) and turns it into a plain Python
value. Entries are tried in order and the first match wins; objects that no
entry recognizes are returned untouched, ``$class`` included.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Set, Tuple

from core.logging import get_logger
from core.timestamps import cocoa_to_datetime
from .exceptions import ArchiveStructureError, DictionaryLengthMismatchError

LOGGER = get_logger("ichat.classes")

CLASS_KEY = "$class"

# Class name -> ancestry chain as written by NSKeyedArchiver
CLASS_CHAINS: Dict[str, Tuple[str, ...]] = {
    "NSArray": ("NSArray", "NSObject"),
    "NSMutableArray": ("NSMutableArray", "NSArray", "NSObject"),
    "NSDictionary": ("NSDictionary", "NSObject"),
    "NSString": ("NSString", "NSObject"),
    "NSMutableString": ("NSMutableString", "NSString", "NSObject"),
    "NSDate": ("NSDate", "NSObject"),
    "NSData": ("NSData", "NSObject"),
    "NSMutableData": ("NSMutableData", "NSData", "NSObject"),
    "NSFileWrapper": ("NSFileWrapper", "NSObject"),
    "NSTextAttachment": ("NSTextAttachment", "NSObject"),
    "NSAttributedString": ("NSAttributedString", "NSObject"),
    "NSMutableAttributedString": ("NSMutableAttributedString", "NSAttributedString", "NSObject"),
    "NSParagraphStyle": ("NSParagraphStyle", "NSObject"),
    "NSMutableParagraphStyle": ("NSMutableParagraphStyle", "NSParagraphStyle", "NSObject"),
    "Presentity": ("Presentity", "IMHandle", "IMDirectlyObservableObject", "NSObject"),
    "InstantMessage": ("InstantMessage", "IMMessage", "NSObject"),
    "NSFont": ("NSFont", "NSObject"),
}

# Classes whose payload is already usable; only the class tag is dropped
PASSTHROUGH_CLASSES: Tuple[str, ...] = (
    "NSAttributedString",
    "NSMutableAttributedString",
    "NSParagraphStyle",
    "NSMutableParagraphStyle",
    "Presentity",
    "InstantMessage",
    "NSFont",
)


def class_name_of(value: Any) -> Optional[str]:
    """Return the archived class name of a class-tagged mapping, if it has one."""
    if not isinstance(value, dict):
        return None
    tag = value.get(CLASS_KEY)
    if not isinstance(tag, dict):
        return None
    name = tag.get("$classname")
    return name if isinstance(name, str) else None


def has_class(value: Any, *names: str) -> bool:
    """True when ``value`` is tagged with one of ``names`` and its exact ancestry chain."""
    name = class_name_of(value)
    if name is None or name not in names:
        return False
    chain = value[CLASS_KEY].get("$classes")
    if not isinstance(chain, (list, tuple)):
        return False
    return tuple(chain) == CLASS_CHAINS[name]


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_str_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(item, str) for item in value)


def _zip_dictionary(value: Dict[str, Any]) -> Dict[str, Any]:
    keys = value["NS.keys"]
    objects = value["NS.objects"]
    if len(keys) != len(objects):
        raise DictionaryLengthMismatchError(len(keys), len(objects))
    return dict(zip(keys, objects))


def _to_date(value: Dict[str, Any]) -> datetime:
    seconds = value["NS.time"]
    try:
        return cocoa_to_datetime(seconds)
    except (OverflowError, ValueError) as exc:
        raise ArchiveStructureError(f"NSDate time {seconds!r} is not a representable date") from exc


def _strip_class(value: Dict[str, Any]) -> Dict[str, Any]:
    return {key: item for key, item in value.items() if key != CLASS_KEY}


@dataclass(frozen=True)
class ClassMaterializer:
    """One recognized class shape and the transform applied to it."""

    name: str
    matches: Callable[[Any], bool]
    transform: Callable[[Dict[str, Any]], Any]


MATERIALIZERS: Tuple[ClassMaterializer, ...] = (
    ClassMaterializer(
        name="NSArray",
        matches=lambda v: has_class(v, "NSArray", "NSMutableArray")
        and isinstance(v.get("NS.objects"), list),
        transform=lambda v: v["NS.objects"],
    ),
    ClassMaterializer(
        name="NSDictionary",
        matches=lambda v: has_class(v, "NSDictionary")
        and _is_str_list(v.get("NS.keys"))
        and isinstance(v.get("NS.objects"), list),
        transform=_zip_dictionary,
    ),
    ClassMaterializer(
        name="NSString",
        matches=lambda v: has_class(v, "NSString", "NSMutableString")
        and isinstance(v.get("NS.string"), str),
        transform=lambda v: v["NS.string"],
    ),
    ClassMaterializer(
        name="NSDate",
        matches=lambda v: has_class(v, "NSDate") and _is_number(v.get("NS.time")),
        transform=_to_date,
    ),
    ClassMaterializer(
        name="NSData",
        matches=lambda v: has_class(v, "NSData", "NSMutableData")
        and isinstance(v.get("NS.data"), bytes),
        transform=lambda v: v["NS.data"],
    ),
    ClassMaterializer(
        name="NSFileWrapper",
        matches=lambda v: has_class(v, "NSFileWrapper")
        and isinstance(v.get("NSFileWrapperData"), bytes),
        transform=lambda v: v["NSFileWrapperData"],
    ),
    ClassMaterializer(
        name="NSTextAttachment",
        matches=lambda v: has_class(v, "NSTextAttachment")
        and isinstance(v.get("NSFileWrapper"), bytes),
        transform=lambda v: v["NSFileWrapper"],
    ),
    ClassMaterializer(
        name="passthrough",
        matches=lambda v: has_class(v, *PASSTHROUGH_CLASSES),
        transform=_strip_class,
    ),
)


class MaterializerRegistry:
    """Applies the first matching materializer to resolved archive objects."""

    def __init__(self, materializers: Tuple[ClassMaterializer, ...] = MATERIALIZERS):
        self.materializers = materializers
        self._unmatched: Set[str] = set()

    def materialize(self, value: Any) -> Any:
        for materializer in self.materializers:
            if materializer.matches(value):
                return materializer.transform(value)

        name = class_name_of(value)
        if name is not None and name not in self._unmatched:
            self._unmatched.add(name)
            LOGGER.debug("No materializer for archived class %s; keeping it as-is", name)
        return value

    @property
    def unmatched_classes(self) -> Set[str]:
        """Class names seen so far that no materializer recognized."""
        return set(self._unmatched)


def materialize(value: Any) -> Any:
    """Materialize a single resolved object with the default registry."""
    return MaterializerRegistry().materialize(value)
