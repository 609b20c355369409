"""
Module: scores

Purpose:
    Provides the ScoreRecord - the scoring artifact of one exam attempt -
    and the per-question QuestionScore entries it aggregates.

Key Functions:
    - ScoreRecord.empty(): Zeroed record for a freshly loaded exam
    - ScoreRecord.recalculated(): Total recompute of section and grand totals
    - ScoreRecord.with_question_score(): Targeted merge of a single question

Dependencies:
    - dataclasses (std)
    - datetime (std)
    - uuid (std)

Used By:
    - scoring.engine.calculate_scores
    - session.controller.ExamSession
    - grading.orchestrator
    - output.report

Invariants:
    - obtained_score == sum(section_scores.values())
    - section_scores[key] == sum of obtained scores in question_scores[key]
    Both hold on every record produced by this module; records are never
    mutated after construction.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple
from uuid import uuid4

from .fields import get_field

LOCAL_USER_ID = "local-user"
LOCAL_USER_NAME = "Local User"

# Tolerance used when deciding if an AI-awarded score is full marks
FULL_MARKS_TOLERANCE = 0.001


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class QuestionScore:
    """Score of one question within a ScoreRecord."""

    question_id: str
    max_score: float
    obtained_score: float
    is_correct: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "QuestionId": self.question_id,
            "MaxScore": self.max_score,
            "ObtainedScore": self.obtained_score,
            "IsCorrect": self.is_correct,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> QuestionScore:
        return cls(
            question_id=str(get_field(data, "QuestionId", "")),
            max_score=get_field(data, "MaxScore", 0),
            obtained_score=get_field(data, "ObtainedScore", 0),
            is_correct=bool(get_field(data, "IsCorrect", False)),
        )


@dataclass(frozen=True)
class ScoreRecord:
    """
    Scores for one exam attempt (immutable snapshot).

    Attributes:
        id: Unique attempt id
        exam_id: ExaminationMetadata.exam_id ("" when absent)
        exam_title: ExaminationMetadata.title
        user_id / user_name: Single local user placeholder
        timestamp: ISO-8601 time of the last scoring pass
        total_score: Declared exam total (advisory)
        obtained_score: Sum of section scores
        section_scores: section key -> section score
        question_scores: section key -> question id -> QuestionScore

    Example:
        >>> record = ScoreRecord.empty(exam_title="Physics")
        >>> record.obtained_score
        0
    """

    id: str
    exam_id: str
    exam_title: str
    timestamp: str
    total_score: float = 0
    obtained_score: float = 0
    section_scores: Dict[str, float] = field(default_factory=dict)
    question_scores: Dict[str, Dict[str, QuestionScore]] = field(default_factory=dict)
    user_id: str = LOCAL_USER_ID
    user_name: str = LOCAL_USER_NAME

    @classmethod
    def empty(
        cls,
        exam_id: Optional[str] = None,
        exam_title: str = "",
        total_score: float = 0,
    ) -> ScoreRecord:
        return cls(
            id=str(uuid4()),
            exam_id=exam_id or "",
            exam_title=exam_title,
            timestamp=utc_timestamp(),
            total_score=total_score,
        )

    # ─────────────────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────────────────

    def locate(self, question_id: str) -> Optional[Tuple[str, QuestionScore]]:
        """
        Find a question's entry by scanning sections in order.

        Returns:
            (section_key, QuestionScore) of the first match, or None
        """
        for section_key, entries in self.question_scores.items():
            entry = entries.get(question_id)
            if entry is not None:
                return section_key, entry
        return None

    def get(self, section_key: str, question_id: str) -> Optional[QuestionScore]:
        return self.question_scores.get(section_key, {}).get(question_id)

    @property
    def is_consistent(self) -> bool:
        """True when section and grand totals match their parts."""
        for key, entries in self.question_scores.items():
            expected = sum(e.obtained_score for e in entries.values())
            if abs(self.section_scores.get(key, 0) - expected) > FULL_MARKS_TOLERANCE:
                return False
        total = sum(self.section_scores.values())
        return abs(self.obtained_score - total) <= FULL_MARKS_TOLERANCE

    # ─────────────────────────────────────────────────────────────────────────
    # Derivations (always return new records)
    # ─────────────────────────────────────────────────────────────────────────

    def recalculated(self) -> ScoreRecord:
        """Rebuild every section total and the grand total from question entries."""
        section_scores = {
            key: sum(e.obtained_score for e in entries.values())
            for key, entries in self.question_scores.items()
        }
        for key in self.section_scores:
            section_scores.setdefault(key, 0)
        return replace(
            self,
            section_scores=section_scores,
            obtained_score=sum(section_scores.values()),
        )

    def with_question_score(self, question_id: str, obtained_score: float) -> Optional[ScoreRecord]:
        """
        Merge one question's score, leaving every other entry untouched.

        The question's correctness is re-derived from the score
        (|obtained - max| < 0.001), then its section total and the grand
        total are recomputed.

        Returns:
            New ScoreRecord, or None if no entry exists for question_id
        """
        found = self.locate(question_id)
        if found is None:
            return None
        section_key, entry = found

        updated = replace(
            entry,
            obtained_score=obtained_score,
            is_correct=abs(obtained_score - entry.max_score) < FULL_MARKS_TOLERANCE,
        )
        section_entries = dict(self.question_scores[section_key])
        section_entries[question_id] = updated

        question_scores = dict(self.question_scores)
        question_scores[section_key] = section_entries

        section_scores = dict(self.section_scores)
        section_scores[section_key] = sum(e.obtained_score for e in section_entries.values())

        return replace(
            self,
            question_scores=question_scores,
            section_scores=section_scores,
            obtained_score=sum(section_scores.values()),
        )

    # ─────────────────────────────────────────────────────────────────────────
    # Serialization
    # ─────────────────────────────────────────────────────────────────────────

    def to_dict(self) -> dict[str, Any]:
        return {
            "Id": self.id,
            "ExamId": self.exam_id,
            "ExamTitle": self.exam_title,
            "UserId": self.user_id,
            "UserName": self.user_name,
            "Timestamp": self.timestamp,
            "TotalScore": self.total_score,
            "ObtainedScore": self.obtained_score,
            "SectionScores": dict(self.section_scores),
            "QuestionScores": {
                key: {qid: e.to_dict() for qid, e in entries.items()}
                for key, entries in self.question_scores.items()
            },
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScoreRecord:
        return cls(
            id=str(get_field(data, "Id", "")) or str(uuid4()),
            exam_id=str(get_field(data, "ExamId", "")),
            exam_title=str(get_field(data, "ExamTitle", "")),
            user_id=str(get_field(data, "UserId", LOCAL_USER_ID)),
            user_name=str(get_field(data, "UserName", LOCAL_USER_NAME)),
            timestamp=str(get_field(data, "Timestamp", "")) or utc_timestamp(),
            total_score=get_field(data, "TotalScore", 0),
            obtained_score=get_field(data, "ObtainedScore", 0),
            section_scores=dict(get_field(data, "SectionScores", {})),
            question_scores={
                key: {qid: QuestionScore.from_dict(e) for qid, e in entries.items()}
                for key, entries in get_field(data, "QuestionScores", {}).items()
            },
        )


class GradingStatus(str, Enum):
    """Per-question AI grading status."""

    PENDING = "pending"
    COMPLETED = "completed"
    ERROR = "error"
