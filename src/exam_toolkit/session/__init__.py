"""
Module: session

Purpose:
    Exam session state machine and its persistence.

Key Classes:
    - ExamSession: Owns the document, score record and mode flags
    - SessionState: Lifecycle states
    - SessionStore: JSON file persistence
"""

from .controller import ExamSession, SessionState, ensure_completed
from .store import SessionStore

__all__ = [
    "ExamSession",
    "SessionState",
    "SessionStore",
    "ensure_completed",
]
