"""
NSKeyedArchiver object-graph resolution.

An archive decoded by ``plistlib`` is a flat ``$objects`` table whose entries
point at each other through ``plistlib.UID`` markers. This module turns that
table back into a nested tree: every UID is replaced by the (materialized)
object it names, each index is resolved at most once and shared by every
reference to it, and cycles are rejected.
"""

from __future__ import annotations

import plistlib
from typing import Any, Dict, List, Optional, Tuple

from core.logging import get_logger
from ._classes import MaterializerRegistry
from .exceptions import (
    ArchiveFormatError,
    ArchiveStructureError,
    CircularReferenceError,
    UIDOutOfRangeError,
)

LOGGER = get_logger("ichat.nska")

NULL_MARKER = "$null"


def uid_index(value: Any) -> Optional[int]:
    """Return the object-table index named by a UID marker, or None for anything else."""
    if isinstance(value, plistlib.UID):
        return int(value.data)
    return None


class ArchiveResolver:
    """
    Resolve UID references against an archive's object table.

    The input table is never modified; resolved values are kept in a cache
    keyed by index. ``in_progress`` holds the indices currently being resolved
    further up the call chain and is what detects cycles.
    """

    def __init__(self, objects: List[Any], registry: Optional[MaterializerRegistry] = None):
        self.objects = objects
        self.registry = registry or MaterializerRegistry()
        self._resolved: Dict[int, Any] = {}
        self._in_progress: Dict[int, None] = {}  # insertion-ordered for error chains

    @property
    def resolved_count(self) -> int:
        return len(self._resolved)

    def is_resolved(self, index: int) -> bool:
        return index in self._resolved

    def resolve(self, value: Any) -> Any:
        if isinstance(value, str) and value == NULL_MARKER:
            return None

        index = uid_index(value)
        if index is not None:
            return self._resolve_index(index)

        if isinstance(value, list):
            return [self.resolve(item) for item in value]

        if isinstance(value, dict):
            return {key: self.resolve(item) for key, item in value.items()}

        # str, int, float, bool, bytes, datetime and other plist leaves
        return value

    def _resolve_index(self, index: int) -> Any:
        if index in self._resolved:
            return self._resolved[index]
        if index in self._in_progress:
            raise CircularReferenceError(index, list(self._in_progress))
        if not 0 <= index < len(self.objects):
            raise UIDOutOfRangeError(index, len(self.objects))

        self._in_progress[index] = None
        try:
            resolved = self.resolve(self.objects[index])
        finally:
            del self._in_progress[index]

        resolved = self.registry.materialize(resolved)
        self._resolved[index] = resolved
        return resolved


def check_archive(archive: Any) -> Tuple[plistlib.UID, List[Any]]:
    """Validate the outer ``$top``/``$objects`` shape and return the root UID and table."""
    if not isinstance(archive, dict):
        raise ArchiveFormatError(
            f"Expected a keyed archive mapping, got {type(archive).__name__}"
        )

    top = archive.get("$top")
    if not isinstance(top, dict) or uid_index(top.get("root")) is None:
        raise ArchiveFormatError("Keyed archive has no $top.root UID")

    objects = archive.get("$objects")
    if not isinstance(objects, list):
        raise ArchiveFormatError("Keyed archive has no $objects table")

    return top["root"], objects


def resolve_archive(archive: Any, registry: Optional[MaterializerRegistry] = None) -> Any:
    """
    Resolve a ``plistlib``-decoded keyed archive starting at ``$top.root``.

    Raises:
        ArchiveFormatError: the outer archive shape is wrong
        ArchiveStructureError: a UID is out of range, a cycle exists, an
            NSDictionary is malformed, or the graph is too deep to recurse
    """
    root, objects = check_archive(archive)
    resolver = ArchiveResolver(objects, registry)
    try:
        tree = resolver.resolve(root)
    except RecursionError as exc:
        raise ArchiveStructureError(
            f"Object graph is too deeply nested to resolve ({len(objects)} objects)"
        ) from exc

    LOGGER.debug(
        "Resolved %d of %d archive objects", resolver.resolved_count, len(objects)
    )
    if resolver.registry.unmatched_classes:
        LOGGER.debug(
            "Unmaterialized classes: %s", ", ".join(sorted(resolver.registry.unmatched_classes))
        )
    return tree
