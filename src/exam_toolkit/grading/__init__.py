"""
AI grading of open-ended answers.

Prompt construction, response parsing, the OpenAI-backed client and the
sequential orchestrator that merges scores into an ExamSession.
"""

from .client import GradingClient, OpenAIGradingClient
from .orchestrator import (
    GradableQuestion,
    GradingFailure,
    GradingOrchestrator,
    GradingReport,
    collect_ai_gradable_questions,
)
from .parser import GradingDimension, GradingResult, parse_grading_response, parse_or_default
from .prompt import build_explain_prompt, build_grading_prompt, build_verify_prompt

__all__ = [
    "GradingClient",
    "OpenAIGradingClient",
    "GradableQuestion",
    "GradingFailure",
    "GradingOrchestrator",
    "GradingReport",
    "collect_ai_gradable_questions",
    "GradingDimension",
    "GradingResult",
    "parse_grading_response",
    "parse_or_default",
    "build_explain_prompt",
    "build_grading_prompt",
    "build_verify_prompt",
]
