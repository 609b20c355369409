"""
Module: questions

Purpose:
    Provides the Question dataclass and its supporting types. A Question
    is one exam item: stem, options, canonical answer, the user's answer
    and the grading hints used by the AI grader. Immutable; answering a
    question produces a new instance.

Key Classes:
    - QuestionType: Enumerated question kinds (wire values 0-10)
    - OptionEncoding: Tagged variant for the two historical option shapes
    - Option: A single choice (id/text)
    - Question: The exam item itself

Dependencies:
    - dataclasses (std)
    - enum (std)
    - .fields: PascalCase/camelCase lookup
    - .examination.ReferenceMaterial (runtime import in from_dict)

Used By:
    - core.models.examination.ExaminationSection
    - scoring.engine
    - grading.prompt
    - migration.upgrade
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum, IntEnum
from typing import Any, Iterator, Optional, Sequence

from .fields import get_field, get_strings, has_field


class QuestionType(IntEnum):
    """Question kinds as stored in the document ("Type": 0-10)."""

    UNKNOWN = 0
    SINGLE_CHOICE = 1
    MULTIPLE_CHOICE = 2
    JUDGMENT = 3
    FILL_IN_THE_BLANK = 4
    MATH = 5
    ESSAY = 6
    SHORT_ANSWER = 7
    CALCULATION = 8
    COMPLEX = 9
    OTHER = 10

    @classmethod
    def parse(cls, value: Any) -> QuestionType:
        """Map a raw "Type" value to a member; unrecognised values become UNKNOWN."""
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            return cls.UNKNOWN

    @property
    def label(self) -> str:
        """Human-readable label used in grading prompts and reports."""
        return _TYPE_LABELS[self]


_TYPE_LABELS = {
    QuestionType.UNKNOWN: "Unknown Question Type",
    QuestionType.SINGLE_CHOICE: "Single Choice Question",
    QuestionType.MULTIPLE_CHOICE: "Multiple Choice Question",
    QuestionType.JUDGMENT: "True/False Question",
    QuestionType.FILL_IN_THE_BLANK: "Fill in the Blank Question",
    QuestionType.MATH: "Mathematics Problem",
    QuestionType.ESSAY: "Essay Question",
    QuestionType.SHORT_ANSWER: "Short Answer Question",
    QuestionType.CALCULATION: "Calculation Question",
    QuestionType.COMPLEX: "Complex Question with Multiple Parts",
    QuestionType.OTHER: "Other Question Format",
}


class OptionEncoding(Enum):
    """How an option was encoded in the source document."""

    CURRENT = "current"  # {"Id": ..., "Text": ...}
    LEGACY = "legacy"    # {"Item1": ..., "Item2": ...}


def detect_option_encoding(data: dict[str, Any]) -> OptionEncoding:
    """
    Decide which encoding a raw option uses.

    Only called while loading or migrating; everything downstream reads
    Option.encoding instead.
    """
    if has_field(data, "Item1") and has_field(data, "Item2"):
        if not (has_field(data, "Id") or has_field(data, "Text")):
            return OptionEncoding.LEGACY
    return OptionEncoding.CURRENT


@dataclass(frozen=True)
class Option:
    """
    One choice of a choice-type question.

    Attributes:
        id: Option key the user answers with, e.g. "A"
        text: Option body
        encoding: Shape the option had in the source document
    """

    id: str
    text: str
    encoding: OptionEncoding = OptionEncoding.CURRENT

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Option:
        encoding = detect_option_encoding(data)
        if encoding is OptionEncoding.LEGACY:
            return cls(
                id=str(get_field(data, "Item1", "")),
                text=str(get_field(data, "Item2", "")),
                encoding=encoding,
            )
        return cls(
            id=str(get_field(data, "Id", "")),
            text=str(get_field(data, "Text", "")),
            encoding=encoding,
        )

    def to_dict(self) -> dict[str, str]:
        """Always the current encoding."""
        return {"Id": self.id, "Text": self.text}


@dataclass(frozen=True)
class Question:
    """
    A single exam item (immutable).

    Attributes:
        question_id: Identifier used to key scores; may be None, in which
            case the question is excluded from scoring and grading
        type: QuestionType
        stem: Question text
        options: Ordered options for choice questions
        score: Points available
        answer: Canonical answer tokens
        reference_answer: Model answer shown to the AI grader only
        user_answer: Tokens submitted by the user (None until answered)
        is_ai_judge: Document flag requesting AI grading
        commits: Special grading instructions for the AI grader
        sub_questions: Nested items of a composite question
        reference_materials: Material attached to this question

    Example:
        >>> q = Question("q1", QuestionType.SINGLE_CHOICE, "2 + 2 = ?", score=10, answer=("B",))
        >>> q.with_user_answer(["b"]).user_answer
        ('b',)
    """

    question_id: Optional[str]
    type: QuestionType
    stem: str
    options: Optional[tuple[Option, ...]] = None
    score: float = 0
    answer: tuple[str, ...] = ()
    reference_answer: Optional[tuple[str, ...]] = None
    user_answer: Optional[tuple[str, ...]] = None
    is_ai_judge: bool = False
    commits: Optional[tuple[str, ...]] = None
    sub_questions: Optional[tuple[Question, ...]] = None
    reference_materials: Optional[tuple[Any, ...]] = None

    # ─────────────────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def has_user_answer(self) -> bool:
        return bool(self.user_answer)

    @property
    def has_legacy_options(self) -> bool:
        return any(o.encoding is OptionEncoding.LEGACY for o in self.options or ())

    def iter_tree(self) -> Iterator[Question]:
        """Yield this question followed by all nested sub-questions (depth first)."""
        yield self
        for sub in self.sub_questions or ():
            yield from sub.iter_tree()

    # ─────────────────────────────────────────────────────────────────────────
    # Copy-on-write
    # ─────────────────────────────────────────────────────────────────────────

    def with_user_answer(self, answer: Sequence[str] | None) -> Question:
        """Return a copy carrying the given user answer."""
        return replace(self, user_answer=None if answer is None else tuple(answer))

    # ─────────────────────────────────────────────────────────────────────────
    # Serialization
    # ─────────────────────────────────────────────────────────────────────────

    def to_dict(self) -> dict[str, Any]:
        return {
            "QuestionId": self.question_id,
            "Type": int(self.type),
            "Stem": self.stem,
            "Options": None if self.options is None else [o.to_dict() for o in self.options],
            "Score": self.score,
            "UserAnswer": None if self.user_answer is None else list(self.user_answer),
            "Answer": list(self.answer),
            "ReferenceAnswer": None if self.reference_answer is None else list(self.reference_answer),
            "ReferenceMaterials": (
                None if self.reference_materials is None
                else [m.to_dict() for m in self.reference_materials]
            ),
            "IsAiJudge": self.is_ai_judge,
            "Commits": None if self.commits is None else list(self.commits),
            "SubQuestions": (
                None if self.sub_questions is None
                else [q.to_dict() for q in self.sub_questions]
            ),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Question:
        from .examination import ReferenceMaterial

        raw_options = get_field(data, "Options")
        raw_subs = get_field(data, "SubQuestions")
        raw_refs = get_field(data, "ReferenceMaterials")
        question_id = get_field(data, "QuestionId")

        return cls(
            question_id=None if question_id is None else str(question_id),
            type=QuestionType.parse(get_field(data, "Type", 0)),
            stem=str(get_field(data, "Stem", "")),
            options=None if raw_options is None else tuple(Option.from_dict(o) for o in raw_options),
            score=get_field(data, "Score", 0),
            answer=get_strings(data, "Answer") or (),
            reference_answer=get_strings(data, "ReferenceAnswer"),
            user_answer=get_strings(data, "UserAnswer"),
            is_ai_judge=bool(get_field(data, "IsAiJudge", False)),
            commits=get_strings(data, "Commits"),
            sub_questions=None if raw_subs is None else tuple(cls.from_dict(q) for q in raw_subs),
            reference_materials=(
                None if raw_refs is None
                else tuple(ReferenceMaterial.from_dict(m) for m in raw_refs)
            ),
        )

    def __repr__(self) -> str:
        return f"Question({self.question_id!r}, type={self.type.name}, score={self.score})"
