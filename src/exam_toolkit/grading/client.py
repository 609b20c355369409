"""
Module: grading.client

Purpose:
    Talk to an OpenAI-compatible chat completions API to grade open-ended
    answers and to produce study-mode explanations.

Key Classes:
    - GradingClient: Protocol the orchestrator depends on
    - OpenAIGradingClient: Implementation backed by openai.AsyncOpenAI

Dependencies:
    - openai: AsyncOpenAI chat completions

Used By:
    - grading.orchestrator.GradingOrchestrator
    - cli
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

import openai

from exam_toolkit.config import GradingConfig
from exam_toolkit.core.models import Question
from exam_toolkit.errors import GradingTransportError, MalformedGradingResponse, UsageError
from .parser import GradingResult, parse_grading_response
from .prompt import (
    EXPLAIN_SYSTEM_MESSAGE,
    GRADING_SYSTEM_MESSAGE,
    VERIFY_SYSTEM_MESSAGE,
    build_explain_prompt,
    build_grading_prompt,
    build_verify_prompt,
)

logger = logging.getLogger(__name__)

NO_EXPLANATION = "No explanation available"
NO_VERIFICATION = "No verification available"


class GradingClient(Protocol):
    async def grade(self, question: Question) -> GradingResult:
        ...


class OpenAIGradingClient:
    """
    Grading client for any OpenAI-compatible endpoint.

    Example:
        >>> client = OpenAIGradingClient(GradingConfig.from_env())
        >>> result = await client.grade(question)
        >>> result.score
        12.0
    """

    def __init__(self, config: GradingConfig, client: Optional[openai.AsyncOpenAI] = None) -> None:
        if not config.is_configured:
            raise UsageError("AI grading requires an API URL and key")
        self.config = config
        self._client = client or openai.AsyncOpenAI(api_key=config.api_key, base_url=config.api_url)
        logger.debug(
            f"Grading client ready: url={config.api_url}, model={config.model}, "
            f"key={'set' if config.api_key else 'missing'}"
        )

    async def _complete(self, system: str, prompt: str, question_id: Optional[str]) -> str:
        try:
            response = await self._client.chat.completions.create(
                model=self.config.model,
                temperature=self.config.temperature,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": prompt},
                ],
            )
        except openai.OpenAIError as e:
            raise GradingTransportError(f"Grading request failed: {e}", question_id=question_id) from e

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    async def grade(self, question: Question) -> GradingResult:
        """
        Grade one question.

        Raises:
            GradingTransportError: If the API call fails
            MalformedGradingResponse: If the reply holds no usable JSON verdict
        """
        text = await self._complete(
            GRADING_SYSTEM_MESSAGE, build_grading_prompt(question), question.question_id
        )
        try:
            return parse_grading_response(text)
        except MalformedGradingResponse as e:
            e.question_id = question.question_id
            raise

    async def explain_question(self, question: Question) -> str:
        text = await self._complete(
            EXPLAIN_SYSTEM_MESSAGE, build_explain_prompt(question), question.question_id
        )
        return text or NO_EXPLANATION

    async def verify_question(self, question: Question) -> str:
        text = await self._complete(
            VERIFY_SYSTEM_MESSAGE, build_verify_prompt(question), question.question_id
        )
        return text or NO_VERIFICATION
