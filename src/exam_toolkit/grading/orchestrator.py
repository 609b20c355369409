"""
Module: grading.orchestrator

Purpose:
    After an attempt is completed, send every answered AI-graded question
    to the grading client one at a time and merge each returned score into
    the session's ScoreRecord.

Key Classes:
    - GradableQuestion: A question selected for AI grading, with its location
    - GradingReport: Outcome of one grading batch
    - GradingOrchestrator: Runs the batch against an ExamSession

Key Functions:
    - collect_ai_gradable_questions(): Select questions in document order

Dependencies:
    - exam_toolkit.session.controller
    - exam_toolkit.scoring.engine

Used By:
    - cli

Failure handling:
    A failure on one question never aborts the batch. The question is
    marked as error with diagnostic feedback recorded on the session, its
    score stays at the provisional 0 and the next question is graded.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from exam_toolkit.core.models import Examination, GradingStatus, Question
from exam_toolkit.errors import GradingError, MalformedGradingResponse, UsageError
from exam_toolkit.scoring.engine import requires_ai_grading
from exam_toolkit.session.controller import ExamSession, ensure_completed
from .client import GradingClient
from .parser import GradingResult, fallback_result

logger = logging.getLogger(__name__)

StatusCallback = Callable[[str, GradingStatus], None]


@dataclass(frozen=True)
class GradableQuestion:
    section_index: int
    question_index: int
    section_key: str
    question: Question

    @property
    def question_id(self) -> str:
        return self.question.question_id or ""


@dataclass(frozen=True)
class GradingFailure:
    question_id: str
    error: str


@dataclass
class GradingReport:
    """
    Outcome of one grading batch.

    Attributes:
        statuses: question id -> final status
        feedback: question id -> feedback text (diagnostic text on failures)
        results: question id -> GradingResult for successful questions
        failures: One entry per failed question, in grading order
    """

    statuses: Dict[str, GradingStatus] = field(default_factory=dict)
    feedback: Dict[str, str] = field(default_factory=dict)
    results: Dict[str, GradingResult] = field(default_factory=dict)
    failures: List[GradingFailure] = field(default_factory=list)

    @property
    def completed_count(self) -> int:
        return sum(1 for s in self.statuses.values() if s is GradingStatus.COMPLETED)

    @property
    def error_count(self) -> int:
        return sum(1 for s in self.statuses.values() if s is GradingStatus.ERROR)


def collect_ai_gradable_questions(exam: Examination) -> List[GradableQuestion]:
    """
    Select the questions to send to the AI grader.

    A question qualifies when it has an id, requires AI grading and
    carries a non-empty user answer. Order follows the document.
    """
    selected: List[GradableQuestion] = []
    for s_idx, q_idx, section, question in exam.iter_questions():
        if not question.question_id:
            continue
        if not requires_ai_grading(question) or not question.has_user_answer:
            continue
        selected.append(GradableQuestion(s_idx, q_idx, section.key, question))
    return selected


class GradingOrchestrator:
    """
    Sequential AI grading over a completed ExamSession.

    Example:
        >>> orchestrator = GradingOrchestrator(session, OpenAIGradingClient(config))
        >>> report = asyncio.run(orchestrator.grade_all())
        >>> report.completed_count
        3
    """

    def __init__(
        self,
        session: ExamSession,
        client: Optional[GradingClient],
        on_status: Optional[StatusCallback] = None,
    ) -> None:
        self.session = session
        self.client = client
        self.on_status = on_status

    def _set_status(
        self,
        report: GradingReport,
        question_id: str,
        status: GradingStatus,
        feedback: Optional[str] = None,
    ) -> None:
        report.statuses[question_id] = status
        self.session.set_grading_status(question_id, status, feedback)
        if self.on_status is not None:
            self.on_status(question_id, status)

    async def grade_all(
        self,
        questions: Optional[Sequence[GradableQuestion]] = None,
    ) -> GradingReport:
        """
        Grade each question in turn.

        Args:
            questions: Questions to grade; defaults to every AI-gradable
                question of the session's exam

        Returns:
            GradingReport with per-question status and feedback

        Raises:
            UsageError: If no client is configured or the attempt is not completed
        """
        if self.client is None:
            raise UsageError("AI grading is not configured")
        ensure_completed(self.session)
        exam = self.session.exam
        if exam is None:
            raise UsageError("No exam loaded")

        batch = list(questions) if questions is not None else collect_ai_gradable_questions(exam)
        report = GradingReport()
        if not batch:
            logger.info("No questions require AI grading")
            return report

        logger.info(f"AI grading {len(batch)} questions")
        for item in batch:
            self._set_status(report, item.question_id, GradingStatus.PENDING)

        for item in batch:
            await self._grade_one(report, item)

        logger.info(
            f"AI grading finished: {report.completed_count} completed, {report.error_count} failed"
        )
        return report

    async def _grade_one(self, report: GradingReport, item: GradableQuestion) -> None:
        qid = item.question_id
        try:
            result = await self.client.grade(item.question)
        except MalformedGradingResponse as e:
            logger.error(f"Unparseable grading response for {qid}: {e}")
            self._fail(report, qid, str(e), fallback_result().feedback)
            return
        except GradingError as e:
            logger.error(f"Grading failed for {qid}: {e}")
            self._fail(report, qid, str(e))
            return
        except Exception as e:
            logger.exception(f"Unexpected error grading {qid}")
            self._fail(report, qid, f"{type(e).__name__}: {e}")
            return

        if not self.session.apply_ai_score(qid, result.score, result.feedback):
            self._fail(report, qid, "Question is not in the score record")
            return

        report.results[qid] = result
        report.feedback[qid] = result.feedback
        self._set_status(report, qid, GradingStatus.COMPLETED)
        logger.debug(f"Graded {qid}: {result.score}/{item.question.score}")

    def _fail(
        self,
        report: GradingReport,
        question_id: str,
        error: str,
        feedback: Optional[str] = None,
    ) -> None:
        if feedback is None:
            feedback = f"AI grading failed: {error}"
        report.failures.append(GradingFailure(question_id, error))
        report.feedback[question_id] = feedback
        self._set_status(report, question_id, GradingStatus.ERROR, feedback)
