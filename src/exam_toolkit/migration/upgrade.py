"""
Module: migration.upgrade

Purpose:
    Upgrade exam documents written against an older protocol (1.x) to the
    current one. The only structural difference is the option encoding:
    {"Item1", "Item2"} pairs become {"Id", "Text"} objects.

Key Classes:
    - MigrationResult: Upgraded document plus the human-readable log

Key Functions:
    - migrate(): Upgrade a raw document (input is never modified)
    - migrate_file(): Read, upgrade and write a document on disk

Works on raw JSON dictionaries rather than models so fields this package
does not know about survive the upgrade untouched.
"""

from __future__ import annotations

import copy
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from exam_toolkit.core.models import CURRENT_PROTOCOL_VERSION, OptionEncoding
from exam_toolkit.core.models.fields import alternate_key, get_field
from exam_toolkit.core.models.questions import detect_option_encoding
from exam_toolkit.core.schemas import validate_examination
from exam_toolkit.core.utils.serialization import read_json_document

logger = logging.getLogger(__name__)

DEFAULT_SOURCE_VERSION = (1, 0, 0)


@dataclass
class MigrationResult:
    """
    Outcome of one upgrade.

    Attributes:
        document: Upgraded raw document
        log: Ordered human-readable log lines
        total_questions: Questions visited, sub-questions included
        updated_questions: Questions whose options were rewritten
    """

    document: Dict[str, Any]
    log: List[str] = field(default_factory=list)
    total_questions: int = 0
    updated_questions: int = 0

    @property
    def changed(self) -> bool:
        return self.updated_questions > 0


def _field_key(data: Dict[str, Any], name: str) -> str:
    """Key under which name is actually stored (PascalCase when absent)."""
    if name not in data and alternate_key(name) in data:
        return alternate_key(name)
    return name


def _source_version(data: Dict[str, Any]) -> str:
    raw = get_field(data, "ExaminationVersion")
    if not isinstance(raw, dict):
        raw = {}
    parts = [
        get_field(raw, "Major", DEFAULT_SOURCE_VERSION[0]),
        get_field(raw, "Minor", DEFAULT_SOURCE_VERSION[1]),
        get_field(raw, "Patch", DEFAULT_SOURCE_VERSION[2]),
    ]
    return ".".join(str(p) for p in parts)


def _convert_option(option: Any) -> Any:
    if not isinstance(option, dict):
        return option
    if detect_option_encoding(option) is not OptionEncoding.LEGACY:
        return option
    return {
        "Id": get_field(option, "Item1") or "",
        "Text": get_field(option, "Item2") or "",
    }


def _migrate_questions(questions: Optional[List[Any]], result: MigrationResult) -> None:
    if not isinstance(questions, list):
        return

    for question in questions:
        if not isinstance(question, dict):
            continue
        result.total_questions += 1

        options_key = _field_key(question, "Options")
        options = question.get(options_key)
        if isinstance(options, list) and options:
            converted = [_convert_option(o) for o in options]
            if any(new is not old for new, old in zip(converted, options)):
                question[options_key] = converted
                result.updated_questions += 1

        _migrate_questions(get_field(question, "SubQuestions"), result)


def migrate(raw: Dict[str, Any]) -> MigrationResult:
    """
    Upgrade a raw exam document to the current protocol version.

    Steps:
    1. Basic structural check (same rule as loading)
    2. Deep copy, so the caller's document is never modified
    3. Stamp the current protocol version
    4. Walk every question and sub-question, rewriting legacy options in
       place and preserving their order

    Args:
        raw: Parsed JSON document

    Returns:
        MigrationResult

    Raises:
        InvalidFormat: If metadata or sections are absent

    Example:
        >>> result = migrate({"ExaminationMetadata": {}, "ExaminationSections": []})
        >>> result.log[-1]
        'Upgrade completed successfully'
    """
    validate_examination(raw)

    target = str(CURRENT_PROTOCOL_VERSION)
    result = MigrationResult(document=copy.deepcopy(raw))
    result.log.append(f"Starting upgrade from v{_source_version(raw)} to v{target}")

    document = result.document
    document.pop(alternate_key("ExaminationVersion"), None)
    document["ExaminationVersion"] = CURRENT_PROTOCOL_VERSION.to_dict()
    result.log.append("Updated protocol version")

    for section in get_field(document, "ExaminationSections", []):
        if isinstance(section, dict):
            _migrate_questions(get_field(section, "Questions"), result)

    result.log.append(
        f"Processed {result.total_questions} questions, "
        f"updated {result.updated_questions} question options"
    )
    result.log.append("Upgrade completed successfully")

    for line in result.log:
        logger.info(line)
    return result


def migrate_file(source: Path, destination: Optional[Path] = None) -> MigrationResult:
    """
    Upgrade a document on disk.

    The source file is never overwritten unless destination points at it.
    Without a destination the result is written next to the source as
    "upgraded_<name>".

    Raises:
        FileNotFoundError: If source doesn't exist
        InvalidFormat: If the document is invalid
    """
    raw = read_json_document(source)
    result = migrate(raw)

    if destination is None:
        destination = source.with_name(f"upgraded_{source.name}")
    destination.parent.mkdir(parents=True, exist_ok=True)
    with open(destination, "w", encoding="utf-8") as f:
        json.dump(result.document, f, indent=2, ensure_ascii=False)

    logger.info(f"Wrote upgraded document to {destination}")
    return result
