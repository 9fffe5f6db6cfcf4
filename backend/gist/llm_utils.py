"""Shared LLM helpers (OpenAI client construction, completion text)."""

from typing import Any

from openai import OpenAI

from gist.config import Settings
from gist.errors import ConfigurationError


def build_client(settings: Settings) -> OpenAI:
    """Build the one long-lived OpenAI client for the process."""
    if not settings.openai_api_key:
        raise ConfigurationError("OPENAI_API_KEY environment variable is required")
    return OpenAI(api_key=settings.openai_api_key)


def completion_text(response: Any) -> str:
    """Text of the first choice of a chat completion, stripped."""
    content = response.choices[0].message.content
    return (content or "").strip()
