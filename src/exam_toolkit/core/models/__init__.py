"""
Core Models Package

Immutable exam document and scoring models.

All models in this package are frozen dataclasses. Any change (answering
a question, merging a score) produces a new instance that shares its
untouched children with the previous one, so a reader holding an older
snapshot never observes a half-updated structure.
"""

from .questions import Option, OptionEncoding, Question, QuestionType
from .examination import (
    CURRENT_PROTOCOL_VERSION,
    Examination,
    ExaminationMetadata,
    ExaminationSection,
    ExaminationVersion,
    ReferenceMaterial,
    ReferenceMaterialImage,
    ReferenceMaterialImageType,
)
from .scores import GradingStatus, QuestionScore, ScoreRecord

__all__ = [
    "CURRENT_PROTOCOL_VERSION",
    "Examination",
    "GradingStatus",
    "ExaminationMetadata",
    "ExaminationSection",
    "ExaminationVersion",
    "Option",
    "OptionEncoding",
    "Question",
    "QuestionScore",
    "QuestionType",
    "ReferenceMaterial",
    "ReferenceMaterialImage",
    "ReferenceMaterialImageType",
    "ScoreRecord",
]
