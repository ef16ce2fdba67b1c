"""
Preference payloads and type coercion.

A preference value always travels as text; its TypeTag tells the backend how
to store it. Type names arrive from callers as free text and are resolved
case-insensitively against the closed TypeTag enumeration.
"""

from __future__ import annotations

import dataclasses
import json
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel

from pref_editor_mcp.errors import TypeCoercionError


class TypeTag(str, Enum):
    """Storage type of a preference value."""

    INTEGER = "INTEGER"
    BOOLEAN = "BOOLEAN"
    FLOAT = "FLOAT"
    DOUBLE = "DOUBLE"
    LONG = "LONG"
    STRING = "STRING"


# Canonical (upper-case) name -> tag. The rejection message is built from the
# same table so it always lists exactly what is accepted.
_TAGS_BY_NAME: dict[str, TypeTag] = {tag.name: tag for tag in TypeTag}

ACCEPTED_TYPE_NAMES: tuple[str, ...] = tuple(name.lower() for name in _TAGS_BY_NAME)


def parse_type(text: Any) -> TypeTag:
    """
    Resolve a free-text type name to a TypeTag.

    Matching is case-insensitive over ASCII letters. The text is not trimmed,
    so empty and whitespace-only names are rejected.

    Args:
        text: Type name supplied by the caller (e.g., "string", "Boolean").

    Returns:
        The matching TypeTag.

    Raises:
        TypeCoercionError: If the text does not name a TypeTag.

    Example:
        >>> parse_type("bOoLeAn")
        <TypeTag.BOOLEAN: 'BOOLEAN'>
    """
    tag = None
    if isinstance(text, str) and text.isascii():
        tag = _TAGS_BY_NAME.get(text.upper())
    if tag is None:
        raise TypeCoercionError(text, ACCEPTED_TYPE_NAMES)
    return tag


@dataclass(frozen=True)
class PreferenceKey:
    """Identifies one preference within a file."""

    key: str


@dataclass(frozen=True)
class PartialPreference(PreferenceKey):
    """A new value for an existing preference; the stored type is kept."""

    value: str


@dataclass(frozen=True)
class Preference(PartialPreference):
    """A complete preference entry."""

    type: TypeTag


def to_jsonable(record: Any) -> Any:
    """
    Convert a preference record returned by a backend to plain JSON data.

    Dataclasses and pydantic models are converted field by field; mappings,
    lists and scalars pass through.

    Args:
        record: A backend record (dict, dataclass, or pydantic model).

    Returns:
        Data accepted by json.dumps.
    """
    if dataclasses.is_dataclass(record) and not isinstance(record, type):
        return dataclasses.asdict(record)
    if isinstance(record, BaseModel):
        return record.model_dump(mode="json")
    return record


def to_json(record: Any) -> str:
    """
    Render one preference record as pretty-printed JSON (2-space indent).

    Args:
        record: A backend record.

    Returns:
        JSON text.
    """
    return json.dumps(to_jsonable(record), indent=2, ensure_ascii=False, default=str)
