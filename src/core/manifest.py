"""JSON schema helpers (schema loading + validation)."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Union

from jsonschema import Draft202012Validator

from .logging import get_logger

LOGGER = get_logger("core.manifest")


def load_schema(schema_path: Path) -> Draft202012Validator:
    """Load a JSON schema file and return a compiled validator."""
    schema = json.loads(schema_path.read_text(encoding="utf-8"))
    Draft202012Validator.check_schema(schema)
    return Draft202012Validator(schema)


def iter_validation_errors(
    validator: Draft202012Validator,
    document: Union[Dict[str, Any], List[Any]],
) -> Iterable[str]:
    """Yield human-readable error strings for a document."""
    for error in sorted(validator.iter_errors(document), key=lambda e: [str(p) for p in e.path]):
        path = "/".join(str(p) for p in error.path)
        pointer = f"{path}: " if path else ""
        yield f"{pointer}{error.message}"


def collect_validation_errors(
    schema_path: Path,
    document: Union[Dict[str, Any], List[Any]],
) -> List[str]:
    """
    Validate a document against the schema at ``schema_path``.

    Returns a list of formatted errors; empty when the document is valid.
    """
    if not schema_path.exists():
        raise FileNotFoundError(f"Schema not found: {schema_path}")

    validator = load_schema(schema_path)
    errors = list(iter_validation_errors(validator, document))
    if errors:
        LOGGER.error("Schema validation failed against %s: %s", schema_path.name, " | ".join(errors))
    return errors
