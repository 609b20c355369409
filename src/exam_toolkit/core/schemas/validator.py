"""
Schema Validation Utilities

Validates raw exam documents before they are turned into models.

Two levels:
- Basic (default): the structural check shared by load and migrate.
  Fails only when the metadata or sections container is missing or has
  the wrong type; every other field is optional.
- Strict: additionally validates against examination.schema.json with
  jsonschema (field types, question type range, option shapes).
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema

from exam_toolkit.errors import InvalidFormat
from exam_toolkit.core.models.examination import CURRENT_PROTOCOL_VERSION
from exam_toolkit.core.models.fields import alternate_key, get_field


# Document protocol the bundled schema describes
EXAMINATION_SCHEMA_VERSION = str(CURRENT_PROTOCOL_VERSION)

# Load schemas lazily
_SCHEMAS: dict[str, dict] = {}


def _load_schema(name: str) -> dict:
    """Load a schema from the schemas directory."""
    if name not in _SCHEMAS:
        schema_path = Path(__file__).parent / f"{name}.schema.json"
        if not schema_path.exists():
            raise FileNotFoundError(f"Schema not found: {schema_path}")
        with open(schema_path, "r", encoding="utf-8") as f:
            _SCHEMAS[name] = json.load(f)
    return _SCHEMAS[name]


def validate_examination(data: Any, *, strict: bool = False) -> None:
    """
    Validate an exam document.

    Args:
        data: Parsed JSON payload
        strict: If True, also run full JSON Schema validation

    Raises:
        InvalidFormat: If data is invalid
    """
    if not isinstance(data, dict):
        raise InvalidFormat(
            "Invalid examination format: document must be a JSON object",
            errors=[f"Expected object, got {type(data).__name__}"],
        )

    required = ["ExaminationMetadata", "ExaminationSections"]
    missing = [f for f in required if get_field(data, f) is None]
    if missing:
        raise InvalidFormat(
            f"Invalid examination format: missing {missing}",
            path="",
            errors=[f"Missing field: {f}" for f in missing],
        )

    if not isinstance(get_field(data, "ExaminationMetadata"), dict):
        raise InvalidFormat(
            "Invalid examination format: ExaminationMetadata must be an object",
            path="ExaminationMetadata",
        )

    sections = get_field(data, "ExaminationSections")
    if not isinstance(sections, list):
        raise InvalidFormat(
            "Invalid examination format: ExaminationSections must be a list",
            path="ExaminationSections",
        )

    for i, section in enumerate(sections):
        if not isinstance(section, dict):
            raise InvalidFormat(
                f"Section {i} must be an object",
                path=f"ExaminationSections[{i}]",
            )
        questions = get_field(section, "Questions")
        if questions is not None and not isinstance(questions, list):
            raise InvalidFormat(
                "Questions must be a list",
                path=f"ExaminationSections[{i}].Questions",
            )

    if strict:
        _validate_schema(data)


def _validate_schema(data: dict[str, Any]) -> None:
    schema = _load_schema("examination")
    try:
        jsonschema.validate(_pascal_case(data), schema)
    except jsonschema.ValidationError as e:
        raise InvalidFormat(
            f"Schema validation failed: {e.message}",
            path=".".join(str(p) for p in e.absolute_path),
            errors=[e.message],
        )


def _pascal_case(value: Any) -> Any:
    """Normalise camelCase document keys so one schema covers both spellings."""
    if isinstance(value, dict):
        return {
            (k[:1].upper() + k[1:] if isinstance(k, str) and alternate_key(k) == k else k): _pascal_case(v)
            for k, v in value.items()
        }
    if isinstance(value, list):
        return [_pascal_case(v) for v in value]
    return value
