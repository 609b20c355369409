"""
Module: errors

Purpose:
    Exception taxonomy shared by every exam_toolkit subpackage.

    - InvalidFormat: malformed or incomplete document (load/migrate). Fatal
      to the triggering operation, never touches session state.
    - UsageError: recoverable misuse (wrong state, missing grading client).
    - GradingTransportError / MalformedGradingResponse: scoped to a single
      question during AI grading, converted to status by the orchestrator.

Used By:
    - core.schemas.validator
    - session.controller
    - grading.*
    - migration.upgrade
"""

from __future__ import annotations


class ExamToolkitError(Exception):
    """Base class for all exam_toolkit errors."""


class InvalidFormat(ExamToolkitError):
    """Raised when an exam document fails structural validation."""

    def __init__(self, message: str, path: str = "", errors: list[str] | None = None):
        super().__init__(message)
        self.path = path
        self.errors = errors or []


class UsageError(ExamToolkitError):
    """Raised when an operation is invoked in the wrong state or without prerequisites."""


class GradingError(ExamToolkitError):
    """Base class for per-question grading failures."""

    def __init__(self, message: str, question_id: str | None = None):
        super().__init__(message)
        self.question_id = question_id


class GradingTransportError(GradingError):
    """The grading collaborator was unreachable or returned an error."""


class MalformedGradingResponse(GradingError):
    """The grading collaborator replied but the payload could not be parsed."""

    def __init__(self, message: str, raw: str = "", question_id: str | None = None):
        super().__init__(message, question_id=question_id)
        self.raw = raw
