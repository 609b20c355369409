"""
Module: examination

Purpose:
    Provides the Examination aggregate and its parts: protocol version,
    metadata, sections and reference materials. All types are frozen;
    answering a question builds a new Examination that shares every
    untouched section and question with the previous snapshot.

Key Classes:
    - ExaminationVersion: Schema version tag (CURRENT_PROTOCOL_VERSION)
    - ReferenceMaterial / ReferenceMaterialImage: Attached reading material
    - ExaminationMetadata: Exam id, title, declared total score
    - ExaminationSection: Ordered questions with a derived scoring key
    - Examination: Root aggregate

Dependencies:
    - dataclasses (std)
    - .questions.Question

Used By:
    - core.utils.serialization
    - scoring.engine
    - session.controller
    - output.report
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Any, Iterator, Optional, Sequence

from .fields import get_field, get_strings
from .questions import Question


@dataclass(frozen=True)
class ExaminationVersion:
    """Semantic version of the document schema."""

    major: int
    minor: int
    patch: int

    def to_dict(self) -> dict[str, int]:
        return {"Major": self.major, "Minor": self.minor, "Patch": self.patch}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExaminationVersion:
        return cls(
            major=int(get_field(data, "Major", 1)),
            minor=int(get_field(data, "Minor", 0)),
            patch=int(get_field(data, "Patch", 0)),
        )

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


CURRENT_PROTOCOL_VERSION = ExaminationVersion(2, 1, 0)


class ReferenceMaterialImageType(IntEnum):
    UNKNOWN = 0
    LOCAL = 1
    REMOTE = 2
    EMBEDDED = 3


@dataclass(frozen=True)
class ReferenceMaterialImage:
    """An image attached to reference material (URI or inline base64 payload)."""

    type: ReferenceMaterialImageType
    uri: Optional[str] = None
    image: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {"Type": int(self.type), "Uri": self.uri, "Image": self.image}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ReferenceMaterialImage:
        try:
            image_type = ReferenceMaterialImageType(int(get_field(data, "Type", 0)))
        except (TypeError, ValueError):
            image_type = ReferenceMaterialImageType.UNKNOWN
        return cls(type=image_type, uri=get_field(data, "Uri"), image=get_field(data, "Image"))


@dataclass(frozen=True)
class ReferenceMaterial:
    """Ordered text blocks plus optional images."""

    materials: tuple[str, ...] = ()
    images: Optional[tuple[ReferenceMaterialImage, ...]] = None

    @property
    def text(self) -> str:
        return "\n".join(self.materials)

    def to_dict(self) -> dict[str, Any]:
        return {
            "Materials": list(self.materials),
            "Images": None if self.images is None else [i.to_dict() for i in self.images],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ReferenceMaterial:
        raw_images = get_field(data, "Images")
        return cls(
            materials=get_strings(data, "Materials") or (),
            images=(
                None if raw_images is None
                else tuple(ReferenceMaterialImage.from_dict(i) for i in raw_images)
            ),
        )


def _materials_from(data: dict[str, Any]) -> Optional[tuple[ReferenceMaterial, ...]]:
    raw = get_field(data, "ReferenceMaterials")
    if raw is None:
        return None
    return tuple(ReferenceMaterial.from_dict(m) for m in raw)


def _materials_to(materials: Optional[tuple[ReferenceMaterial, ...]]) -> Optional[list[dict]]:
    return None if materials is None else [m.to_dict() for m in materials]


@dataclass(frozen=True)
class ExaminationMetadata:
    """
    Exam-level metadata.

    Attributes:
        exam_id: Optional identifier
        title: Display title
        total_score: Declared total; advisory only, never enforced
    """

    title: str
    exam_id: Optional[str] = None
    description: Optional[str] = None
    subject: Optional[str] = None
    language: Optional[str] = None
    total_score: float = 0
    reference_materials: Optional[tuple[ReferenceMaterial, ...]] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "ExamId": self.exam_id,
            "Title": self.title,
            "Description": self.description,
            "Subject": self.subject,
            "Language": self.language,
            "TotalScore": self.total_score,
            "ReferenceMaterials": _materials_to(self.reference_materials),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExaminationMetadata:
        exam_id = get_field(data, "ExamId")
        return cls(
            exam_id=None if exam_id is None else str(exam_id),
            title=str(get_field(data, "Title", "")),
            description=get_field(data, "Description"),
            subject=get_field(data, "Subject"),
            language=get_field(data, "Language"),
            total_score=get_field(data, "TotalScore", 0),
            reference_materials=_materials_from(data),
        )


@dataclass(frozen=True)
class ExaminationSection:
    """
    A titled group of questions.

    Invariants:
        - key (section_id or title) is the only index used for this
          section in score records
    """

    title: str
    section_id: Optional[str] = None
    description: Optional[str] = None
    reference_materials: Optional[tuple[ReferenceMaterial, ...]] = None
    score: Optional[float] = None
    questions: Optional[tuple[Question, ...]] = None

    @property
    def key(self) -> str:
        return self.section_id or self.title

    @property
    def max_score(self) -> float:
        """Declared section score, or the sum of question scores when undeclared."""
        if self.score:
            return self.score
        return sum(q.score for q in self.questions or ())

    def to_dict(self) -> dict[str, Any]:
        return {
            "SectionId": self.section_id,
            "Title": self.title,
            "Description": self.description,
            "ReferenceMaterials": _materials_to(self.reference_materials),
            "Score": self.score,
            "Questions": None if self.questions is None else [q.to_dict() for q in self.questions],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExaminationSection:
        raw_questions = get_field(data, "Questions")
        section_id = get_field(data, "SectionId")
        return cls(
            section_id=None if section_id is None else str(section_id),
            title=str(get_field(data, "Title", "")),
            description=get_field(data, "Description"),
            reference_materials=_materials_from(data),
            score=get_field(data, "Score"),
            questions=(
                None if raw_questions is None
                else tuple(Question.from_dict(q) for q in raw_questions)
            ),
        )


@dataclass(frozen=True)
class Examination:
    """
    Complete exam document (immutable).

    Attributes:
        version: Protocol version; None when the source document had none
        metadata: ExaminationMetadata
        sections: Ordered sections

    Example:
        >>> exam = load_examination(raw)
        >>> answered = exam.with_user_answer(0, 1, ["B", "C"])
        >>> answered is exam
        False
    """

    metadata: ExaminationMetadata
    sections: tuple[ExaminationSection, ...] = ()
    version: Optional[ExaminationVersion] = None

    def iter_questions(self) -> Iterator[tuple[int, int, ExaminationSection, Question]]:
        """Yield (section_index, question_index, section, question) in document order."""
        for s_idx, section in enumerate(self.sections):
            for q_idx, question in enumerate(section.questions or ()):
                yield s_idx, q_idx, section, question

    def get_question(self, section_index: int, question_index: int) -> Optional[Question]:
        if not (0 <= section_index < len(self.sections)):
            return None
        questions = self.sections[section_index].questions or ()
        if not (0 <= question_index < len(questions)):
            return None
        return questions[question_index]

    @property
    def question_count(self) -> int:
        return sum(len(s.questions or ()) for s in self.sections)

    # ─────────────────────────────────────────────────────────────────────────
    # Copy-on-write
    # ─────────────────────────────────────────────────────────────────────────

    def with_version(self, version: ExaminationVersion) -> Examination:
        return replace(self, version=version)

    def with_user_answer(
        self,
        section_index: int,
        question_index: int,
        answer: Sequence[str] | None,
    ) -> Optional[Examination]:
        """
        Return a new snapshot with one question's user answer replaced.

        Only the touched section and question are rebuilt; every other
        section and question object is shared with this snapshot, which
        itself is left unchanged.

        Returns:
            New Examination, or None if the indices are out of range
        """
        question = self.get_question(section_index, question_index)
        if question is None:
            return None

        section = self.sections[section_index]
        questions = list(section.questions or ())
        questions[question_index] = question.with_user_answer(answer)

        sections = list(self.sections)
        sections[section_index] = replace(section, questions=tuple(questions))
        return replace(self, sections=tuple(sections))

    # ─────────────────────────────────────────────────────────────────────────
    # Serialization
    # ─────────────────────────────────────────────────────────────────────────

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {}
        if self.version is not None:
            d["ExaminationVersion"] = self.version.to_dict()
        d["ExaminationMetadata"] = self.metadata.to_dict()
        d["ExaminationSections"] = [s.to_dict() for s in self.sections]
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Examination:
        raw_version = get_field(data, "ExaminationVersion")
        return cls(
            version=None if raw_version is None else ExaminationVersion.from_dict(raw_version),
            metadata=ExaminationMetadata.from_dict(get_field(data, "ExaminationMetadata", {})),
            sections=tuple(
                ExaminationSection.from_dict(s) for s in get_field(data, "ExaminationSections", [])
            ),
        )

    def __repr__(self) -> str:
        return (
            f"Examination({self.metadata.title!r}, sections={len(self.sections)}, "
            f"questions={self.question_count}, version={self.version})"
        )
