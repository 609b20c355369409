"""
Module: session.controller

Purpose:
    Own one exam attempt: the current document, its ScoreRecord, the
    session mode flags and the AI grading status/feedback. Every
    transition publishes complete new snapshots; nothing handed out to a
    caller is ever mutated afterwards.

Key Classes:
    - SessionState: EMPTY → LOADED → IN_PROGRESS → COMPLETED
    - ExamSession: The state machine

Dependencies:
    - exam_toolkit.core.models
    - exam_toolkit.scoring.engine

Used By:
    - grading.orchestrator.GradingOrchestrator
    - session.store.SessionStore
    - cli

Transitions:
    load_exam     any state              → LOADED
    start_exam    LOADED | COMPLETED     → IN_PROGRESS
    end_exam      IN_PROGRESS            → COMPLETED
    reset_exam    any state              → EMPTY
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from exam_toolkit.errors import UsageError
from exam_toolkit.core.models import (
    CURRENT_PROTOCOL_VERSION,
    Examination,
    GradingStatus,
    Question,
    ScoreRecord,
)
from exam_toolkit.scoring.engine import Evaluation, calculate_scores, evaluate, requires_ai_grading

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    EMPTY = "empty"
    LOADED = "loaded"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


SessionListener = Callable[["ExamSession"], None]


class ExamSession:
    """
    Exam session state machine.

    A single session object is created by the application and passed to
    whatever needs it (views, the grading orchestrator, the store).

    Example:
        >>> session = ExamSession()
        >>> session.load_exam(load_examination(raw))
        >>> session.start_exam()
        >>> session.update_user_answer(0, 0, ["B"])
        True
        >>> record = session.end_exam()
        >>> session.state
        <SessionState.COMPLETED: 'completed'>
    """

    def __init__(self) -> None:
        self._exam: Optional[Examination] = None
        self._score_record: Optional[ScoreRecord] = None
        self._state = SessionState.EMPTY
        self._study_mode = False
        self._grading_status: Dict[str, GradingStatus] = {}
        self._ai_feedback: Dict[str, str] = {}
        self._listeners: List[SessionListener] = []

    # ─────────────────────────────────────────────────────────────────────────
    # Snapshots
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def exam(self) -> Optional[Examination]:
        return self._exam

    @property
    def score_record(self) -> Optional[ScoreRecord]:
        return self._score_record

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def study_mode(self) -> bool:
        return self._study_mode

    @property
    def exam_in_progress(self) -> bool:
        return self._state is SessionState.IN_PROGRESS

    @property
    def grading_status(self) -> Mapping[str, GradingStatus]:
        return self._grading_status

    @property
    def ai_feedback(self) -> Mapping[str, str]:
        return self._ai_feedback

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """
        Register a callback invoked after every published change.

        Returns:
            Function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # ─────────────────────────────────────────────────────────────────────────
    # Transitions
    # ─────────────────────────────────────────────────────────────────────────

    def load_exam(self, exam: Examination) -> None:
        """
        Load a document and create a zeroed ScoreRecord for it.

        Valid from any state. A document without a version is stamped with
        the current protocol version; legacy documents are not migrated
        here (see migration.upgrade).
        """
        if exam.version is None:
            exam = exam.with_version(CURRENT_PROTOCOL_VERSION)

        self._exam = exam
        self._score_record = ScoreRecord.empty(
            exam_id=exam.metadata.exam_id,
            exam_title=exam.metadata.title,
            total_score=exam.metadata.total_score,
        )
        self._state = SessionState.LOADED
        self._study_mode = False
        self._grading_status = {}
        self._ai_feedback = {}

        logger.info(f"Loaded exam {exam.metadata.title!r} ({exam.question_count} questions)")
        self._publish()

    def start_exam(self, study_mode: bool = False) -> None:
        """
        Begin (or restart) answering.

        Raises:
            UsageError: If no exam is loaded or the exam is already in progress
        """
        if self._state not in (SessionState.LOADED, SessionState.COMPLETED):
            raise UsageError(f"Cannot start exam from state {self._state.value}")

        self._state = SessionState.IN_PROGRESS
        self._study_mode = study_mode
        logger.info(f"Exam started ({'study' if study_mode else 'exam'} mode)")
        self._publish()

    def update_user_answer(
        self,
        section_index: int,
        question_index: int,
        answer: Sequence[str],
    ) -> bool:
        """
        Record an answer for one question.

        The previous Examination snapshot is left untouched; a new one is
        published. Out-of-range indices, a missing document or a session
        that is not in progress are recoverable usage errors: the call is
        a logged no-op.

        Returns:
            True if the answer was recorded
        """
        if self._exam is None:
            logger.warning("Ignoring answer update: no exam loaded")
            return False
        if self._state is not SessionState.IN_PROGRESS:
            logger.warning(f"Ignoring answer update in state {self._state.value}")
            return False

        updated = self._exam.with_user_answer(section_index, question_index, answer)
        if updated is None:
            logger.warning(
                f"Ignoring answer update: no question at section {section_index}, "
                f"index {question_index}"
            )
            return False

        self._exam = updated
        self._publish()
        return True

    def check_answer(self, section_index: int, question_index: int) -> Optional[Evaluation]:
        """
        Immediate feedback for study mode.

        Returns:
            Evaluation for deterministic questions, None for AI-graded or
            missing questions
        """
        question = self._get_question(section_index, question_index)
        if question is None or requires_ai_grading(question):
            return None
        return evaluate(question)

    def end_exam(self) -> ScoreRecord:
        """
        Run the deterministic scoring pass and complete the attempt.

        Only valid while in progress. Re-entering from COMPLETED is
        rejected because the total recompute would erase scores already
        merged from AI grading.

        Raises:
            UsageError: If the exam is not in progress
        """
        if self._state is not SessionState.IN_PROGRESS:
            raise UsageError(f"Cannot end exam from state {self._state.value}")

        record = self._recompute()
        self._state = SessionState.COMPLETED
        self._grading_status = {}
        self._ai_feedback = {}
        logger.info(f"Exam completed: {record.obtained_score}/{record.total_score}")
        self._publish()
        return record

    def calculate_scores(self) -> ScoreRecord:
        """
        Recompute the ScoreRecord from the current answers without a transition.

        Once AI grading has started on a completed attempt the recompute is
        refused, since it would reset AI-awarded scores to 0 while their
        status and feedback remain.

        Raises:
            UsageError: If no exam is loaded, or the completed attempt has
                AI grading results
        """
        if self._state is SessionState.COMPLETED and self._grading_status:
            raise UsageError("Cannot recalculate scores after AI grading; start a new attempt")
        record = self._recompute()
        self._publish()
        return record

    def reset_exam(self) -> None:
        """Drop the document, scores and flags; back to EMPTY."""
        self._exam = None
        self._score_record = None
        self._state = SessionState.EMPTY
        self._study_mode = False
        self._grading_status = {}
        self._ai_feedback = {}
        logger.info("Session reset")
        self._publish()

    # ─────────────────────────────────────────────────────────────────────────
    # AI grading results
    # ─────────────────────────────────────────────────────────────────────────

    def set_grading_status(
        self,
        question_id: str,
        status: GradingStatus,
        feedback: Optional[str] = None,
    ) -> None:
        """Record a question's grading status, plus diagnostic feedback on failures."""
        self._grading_status = {**self._grading_status, question_id: status}
        if feedback is not None:
            self._ai_feedback = {**self._ai_feedback, question_id: feedback}
        self._publish()

    def apply_ai_score(
        self,
        question_id: str,
        score: float,
        feedback: Optional[str] = None,
    ) -> bool:
        """
        Merge one AI-awarded score into the ScoreRecord.

        Only that question's entry, its section total and the grand total
        change; every other entry is carried over as is.

        Returns:
            False if there is no score record or no entry for question_id
        """
        if self._score_record is None:
            logger.warning(f"Cannot apply AI score for {question_id}: no score record")
            return False

        merged = self._score_record.with_question_score(question_id, score)
        if merged is None:
            logger.warning(f"Cannot apply AI score: {question_id} is not in the score record")
            return False

        self._score_record = merged
        if feedback is not None:
            self._ai_feedback = {**self._ai_feedback, question_id: feedback}
        self._publish()
        return True

    # ─────────────────────────────────────────────────────────────────────────
    # Persistence support
    # ─────────────────────────────────────────────────────────────────────────

    def to_dict(self) -> dict[str, Any]:
        """Persistable snapshot of the session."""
        return {
            "state": self._state.value,
            "studyMode": self._study_mode,
            "examInProgress": self.exam_in_progress,
            "currentExam": None if self._exam is None else self._exam.to_dict(),
            "scoreRecord": None if self._score_record is None else self._score_record.to_dict(),
            "gradingStatus": {k: v.value for k, v in self._grading_status.items()},
            "aiFeedback": dict(self._ai_feedback),
        }

    def restore(
        self,
        exam: Optional[Examination],
        score_record: Optional[ScoreRecord],
        state: SessionState,
        study_mode: bool = False,
        grading_status: Optional[Mapping[str, GradingStatus]] = None,
        ai_feedback: Optional[Mapping[str, str]] = None,
    ) -> None:
        """Replace the whole session with previously persisted snapshots."""
        if exam is None:
            state = SessionState.EMPTY
            score_record = None

        self._exam = exam
        self._score_record = score_record
        self._state = state
        self._study_mode = study_mode
        self._grading_status = dict(grading_status or {})
        self._ai_feedback = dict(ai_feedback or {})
        self._publish()

    # ─────────────────────────────────────────────────────────────────────────
    # Internals
    # ─────────────────────────────────────────────────────────────────────────

    def _get_question(self, section_index: int, question_index: int) -> Optional[Question]:
        if self._exam is None:
            return None
        return self._exam.get_question(section_index, question_index)

    def _recompute(self) -> ScoreRecord:
        if self._exam is None:
            raise UsageError("No exam loaded")
        record = calculate_scores(self._exam, self._score_record)
        self._score_record = record
        return record

    def __repr__(self) -> str:
        title = self._exam.metadata.title if self._exam else None
        return f"ExamSession(state={self._state.value}, exam={title!r}, study_mode={self._study_mode})"


def ensure_completed(session: ExamSession) -> ScoreRecord:
    """
    Return the session's score record, requiring a completed attempt.

    Raises:
        UsageError: If the session has no completed score record
    """
    if session.state is not SessionState.COMPLETED or session.score_record is None:
        raise UsageError("Exam must be completed before results are available")
    return session.score_record


__all__ = ["ExamSession", "SessionState", "ensure_completed"]
