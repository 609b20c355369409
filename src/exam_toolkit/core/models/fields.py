"""
Field lookup helpers for exam documents.

Exam files are written by several tools: the original PascalCase keys
("ExaminationMetadata", "QuestionId") and a camelCase spelling
("examinationMetadata", "questionId") are both accepted on read.
Serialization always writes PascalCase.
"""

from __future__ import annotations

from typing import Any, Mapping


def alternate_key(name: str) -> str:
    """Return the camelCase spelling of a PascalCase key."""
    return name[:1].lower() + name[1:]


def has_field(data: Mapping[str, Any], name: str) -> bool:
    return name in data or alternate_key(name) in data


def get_field(data: Mapping[str, Any], name: str, default: Any = None) -> Any:
    """
    Read a document field by its PascalCase name.

    Args:
        data: Raw mapping from JSON
        name: PascalCase key, e.g. "QuestionId"
        default: Returned when neither spelling is present or the value is null

    Returns:
        Field value or default
    """
    if name in data:
        value = data[name]
    else:
        value = data.get(alternate_key(name))
    return default if value is None else value


def get_strings(data: Mapping[str, Any], name: str) -> tuple[str, ...] | None:
    """Read an optional list of strings as a tuple (None when absent)."""
    value = get_field(data, name)
    if value is None:
        return None
    if isinstance(value, str):
        return (value,)
    return tuple("" if item is None else str(item) for item in value)
