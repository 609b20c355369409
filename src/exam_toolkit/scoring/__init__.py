"""
Module: scoring

Purpose:
    Deterministic scoring of objective question types.

Key Functions:
    - evaluate(): Grade one answer
    - calculate_scores(): Build a complete ScoreRecord for an exam
"""

from .engine import (
    Evaluation,
    calculate_scores,
    evaluate,
    is_deterministic,
    requires_ai_grading,
)

__all__ = [
    "Evaluation",
    "calculate_scores",
    "evaluate",
    "is_deterministic",
    "requires_ai_grading",
]
