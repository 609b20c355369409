"""
Serialization Utilities

Provides to/from JSON utilities for exam documents and score records.

- `load_examination()` is the single entry point that turns a raw payload
  into an Examination: validate first, then build models.
- Option encodings are resolved here, once; the models carry the tagged
  variant from then on.
- `dump_examination()` always writes the current option encoding.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from exam_toolkit.errors import InvalidFormat
from ..models.examination import Examination
from ..models.scores import ScoreRecord
from ..schemas.validator import validate_examination

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Examination Serialization
# ─────────────────────────────────────────────────────────────────────────────

def load_examination(raw: Any, *, strict: bool = False) -> Examination:
    """
    Parse a JSON-like payload into an Examination.

    Args:
        raw: Parsed JSON (dict) or a JSON string
        strict: Also validate against the bundled JSON Schema

    Returns:
        Examination instance

    Raises:
        InvalidFormat: If metadata or sections are absent, or the payload
            is not valid JSON
    """
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise InvalidFormat(f"Invalid examination format: {e}", errors=[str(e)]) from e

    validate_examination(raw, strict=strict)

    try:
        exam = Examination.from_dict(raw)
    except (TypeError, ValueError, AttributeError) as e:
        raise InvalidFormat(f"Invalid examination format: {e}", errors=[str(e)]) from e

    legacy = sum(
        1
        for *_, question in exam.iter_questions()
        for node in question.iter_tree()
        if node.has_legacy_options
    )
    if legacy:
        logger.warning(
            f"{legacy} questions use the legacy Item1/Item2 option encoding; "
            f"run 'exam-toolkit migrate' to upgrade the document"
        )

    logger.debug(f"Loaded {exam!r}")
    return exam


def dump_examination(exam: Examination) -> dict[str, Any]:
    """
    Serialize an Examination (including user answers) to a dictionary.

    Args:
        exam: Examination instance

    Returns:
        Dictionary suitable for JSON serialization
    """
    return exam.to_dict()


def read_json_document(path: Path) -> Any:
    """
    Read a raw JSON document from disk without building models.

    Raises:
        FileNotFoundError: If file doesn't exist
        InvalidFormat: If the file is not valid JSON
    """
    if not path.exists():
        raise FileNotFoundError(f"Exam file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        try:
            return json.load(f)
        except json.JSONDecodeError as e:
            raise InvalidFormat(f"Invalid examination format: {e}", path=str(path), errors=[str(e)]) from e


def load_examination_file(path: Path, *, strict: bool = False) -> Examination:
    """
    Load an exam document from a JSON file.

    Raises:
        FileNotFoundError: If file doesn't exist
        InvalidFormat: If the document is invalid
    """
    return load_examination(read_json_document(path), strict=strict)


def save_examination_file(exam: Examination, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        json.dump(dump_examination(exam), f, indent=2, ensure_ascii=False)


# ─────────────────────────────────────────────────────────────────────────────
# Score Record Serialization
# ─────────────────────────────────────────────────────────────────────────────

def dump_score_record(record: ScoreRecord) -> dict[str, Any]:
    return record.to_dict()


def load_score_record(data: dict[str, Any]) -> ScoreRecord:
    """
    Deserialize a ScoreRecord.

    Totals are recomputed from the question entries on load so a stored
    record with drifted totals is repaired rather than trusted.
    """
    return ScoreRecord.from_dict(data).recalculated()
