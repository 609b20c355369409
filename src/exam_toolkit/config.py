"""
Module: config

Purpose:
    Configuration dataclasses for the grading collaborator and local
    session storage. Immutable configuration with validation on
    construction.

Key Classes:
    - GradingConfig: Endpoint, credentials and sampling for AI grading

Key Functions:
    - default_state_path(): Where SessionStore keeps its file

Environment:
    EXAM_TOOLKIT_API_URL, EXAM_TOOLKIT_API_KEY, EXAM_TOOLKIT_MODEL,
    EXAM_TOOLKIT_TEMPERATURE, EXAM_TOOLKIT_STATE_DIR

Used By:
    - grading.client.OpenAIGradingClient
    - cli
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

DEFAULT_MODEL = "gpt-3.5-turbo"
DEFAULT_TEMPERATURE = 0.7
STATE_FILE_NAME = "session.json"


def _env(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


@dataclass(frozen=True)
class GradingConfig:
    """
    Configuration for the AI grading collaborator (immutable).

    Attributes:
        api_url: Base URL of an OpenAI-compatible API
        api_key: API key
        model: Model name
        temperature: Sampling temperature (0-2)

    Example:
        >>> config = GradingConfig(api_url="https://api.openai.com/v1", api_key="sk-...")
        >>> config.is_configured
        True
    """

    api_url: Optional[str] = None
    api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE

    def __post_init__(self) -> None:
        """Validate configuration on construction."""
        if not (0 <= self.temperature <= 2):
            raise ValueError(f"temperature must be between 0 and 2: {self.temperature}")
        if not self.model:
            raise ValueError("model must not be empty")

    @property
    def is_configured(self) -> bool:
        """True when both the API URL and key are non-blank."""
        return bool(self.api_url and self.api_url.strip() and self.api_key and self.api_key.strip())

    @classmethod
    def from_env(cls) -> GradingConfig:
        raw_temperature = _env("EXAM_TOOLKIT_TEMPERATURE")
        try:
            temperature = float(raw_temperature) if raw_temperature else DEFAULT_TEMPERATURE
        except ValueError:
            raise ValueError(f"EXAM_TOOLKIT_TEMPERATURE is not a number: {raw_temperature!r}")
        return cls(
            api_url=_env("EXAM_TOOLKIT_API_URL"),
            api_key=_env("EXAM_TOOLKIT_API_KEY"),
            model=_env("EXAM_TOOLKIT_MODEL") or DEFAULT_MODEL,
            temperature=temperature,
        )

    def __repr__(self) -> str:
        # Never show the key itself
        return (
            f"GradingConfig(api_url={self.api_url!r}, has_key={bool(self.api_key)}, "
            f"model={self.model!r}, temperature={self.temperature})"
        )


def default_state_path() -> Path:
    base = _env("EXAM_TOOLKIT_STATE_DIR")
    root = Path(base) if base else Path.home() / ".exam_toolkit"
    return root / STATE_FILE_NAME
