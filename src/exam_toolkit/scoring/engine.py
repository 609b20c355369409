"""
Module: scoring.engine

Purpose:
    Decide whether a non-AI answer is correct and build the deterministic
    ScoreRecord for an exam. Pure functions with no side effects.

Key Functions:
    - evaluate(): Correctness and points for one question
    - is_deterministic(): Whether a question type can be graded locally
    - requires_ai_grading(): Whether a question is delegated to the AI grader
    - calculate_scores(): Total recompute of a ScoreRecord

Dependencies:
    - exam_toolkit.core.models

Used By:
    - session.controller.ExamSession
    - grading.orchestrator.collect_ai_gradable_questions

Grading rules:
    - SingleChoice / Judgment / FillInTheBlank: first token, trimmed and
      case-folded, equals the first canonical token
    - MultipleChoice: set of trimmed, case-folded tokens equals the
      canonical set (order and duplicates ignored)
    - Every other type is never correct here; its score comes from AI
      grading
    - No partial credit: question.score when correct, otherwise 0
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Dict, Optional, Sequence

from exam_toolkit.core.models import (
    Examination,
    Question,
    QuestionScore,
    QuestionType,
    ScoreRecord,
)
from exam_toolkit.core.models.scores import utc_timestamp

logger = logging.getLogger(__name__)


FIRST_TOKEN_TYPES = frozenset({
    QuestionType.SINGLE_CHOICE,
    QuestionType.JUDGMENT,
    QuestionType.FILL_IN_THE_BLANK,
})

DETERMINISTIC_TYPES = FIRST_TOKEN_TYPES | {QuestionType.MULTIPLE_CHOICE}


@dataclass(frozen=True)
class Evaluation:
    """Result of grading one answer locally."""

    is_correct: bool
    score: float

    @classmethod
    def incorrect(cls) -> Evaluation:
        return cls(is_correct=False, score=0)


def _normalise(token: str) -> str:
    return token.strip().casefold()


def is_deterministic(question_type: QuestionType) -> bool:
    """True for types whose correctness is decided by string comparison."""
    return question_type in DETERMINISTIC_TYPES


def requires_ai_grading(question: Question) -> bool:
    """
    True when a question's score must come from the AI grader.

    Non-deterministic types always go to the AI grader whatever their
    is_ai_judge flag says; deterministic types go there only when the
    document explicitly flags them.
    """
    return question.is_ai_judge or not is_deterministic(question.type)


def evaluate(question: Question, user_answer: Optional[Sequence[str]] = None) -> Evaluation:
    """
    Grade one answer with the deterministic rules.

    Args:
        question: Question to grade
        user_answer: Tokens to grade; defaults to question.user_answer

    Returns:
        Evaluation(is_correct, score)

    Example:
        >>> q = Question("q1", QuestionType.SINGLE_CHOICE, "?", score=10, answer=("B",))
        >>> evaluate(q, [" b "])
        Evaluation(is_correct=True, score=10)
    """
    answer = question.user_answer if user_answer is None else user_answer
    if not answer or not question.answer:
        return Evaluation.incorrect()

    if question.type in FIRST_TOKEN_TYPES:
        correct = _normalise(answer[0]) == _normalise(question.answer[0])
    elif question.type is QuestionType.MULTIPLE_CHOICE:
        correct = {_normalise(a) for a in answer} == {_normalise(a) for a in question.answer}
    else:
        correct = False

    return Evaluation(is_correct=correct, score=question.score if correct else 0)


def calculate_scores(exam: Examination, record: Optional[ScoreRecord] = None) -> ScoreRecord:
    """
    Recompute a complete ScoreRecord from the exam's current answers.

    Steps:
    1. Derive each section's key (section_id or title)
    2. For every question with an id: evaluate deterministic questions,
       record AI-graded ones as a provisional 0 / incorrect
    3. Sum section totals from question scores and the grand total from
       section totals
    4. Stamp a fresh timestamp

    This is a total recompute: any score previously merged from AI
    grading is replaced by the provisional 0.

    Args:
        exam: Examination with user answers
        record: Existing record whose identity fields (id, user) are kept

    Returns:
        New ScoreRecord
    """
    base = record or ScoreRecord.empty(
        exam_id=exam.metadata.exam_id,
        exam_title=exam.metadata.title,
    )

    section_scores: Dict[str, float] = {}
    question_scores: Dict[str, Dict[str, QuestionScore]] = {}
    skipped = 0
    pending_ai = 0

    for section in exam.sections:
        if section.questions is None:
            continue

        key = section.key
        entries: Dict[str, QuestionScore] = {}

        for question in section.questions:
            if not question.question_id:
                skipped += 1
                continue

            if requires_ai_grading(question):
                result = Evaluation.incorrect()
                pending_ai += 1
            else:
                result = evaluate(question)

            entries[question.question_id] = QuestionScore(
                question_id=question.question_id,
                max_score=question.score,
                obtained_score=result.score,
                is_correct=result.is_correct,
            )

        question_scores[key] = entries
        section_scores[key] = sum(e.obtained_score for e in entries.values())

    if skipped:
        logger.debug(f"Skipped {skipped} questions without an id")

    scored = replace(
        base,
        exam_id=exam.metadata.exam_id or "",
        exam_title=exam.metadata.title,
        total_score=exam.metadata.total_score,
        section_scores=section_scores,
        question_scores=question_scores,
        obtained_score=sum(section_scores.values()),
        timestamp=utc_timestamp(),
    )

    logger.info(
        f"Scored {exam.metadata.title!r}: {scored.obtained_score}/{scored.total_score} "
        f"({pending_ai} pending AI grading)"
    )
    return scored
