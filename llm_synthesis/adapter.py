"""LLM adapters for narrative generation.

Provides a base interface and concrete adapters for OpenAI-compatible
APIs and a deterministic mock for testing.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import openai
from openai import OpenAI

from app.config import LLMSettings
from app.domain.errors import ExternalServiceError
from llm_synthesis.schema import NarrativeCompletion

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a business intelligence analyst specializing in SaaS metrics. "
    "Provide actionable insights and recommendations based on the dashboard data provided."
)


class BaseLLMAdapter(ABC):
    """Abstract base for all LLM adapters."""

    @abstractmethod
    def generate(self, prompt: str) -> NarrativeCompletion:
        """Send a prompt to the LLM and return the narrative text.

        Args:
            prompt: The fully formatted user prompt.

        Returns:
            Completion text and token usage metadata.

        Raises:
            ExternalServiceError: When the model call fails.
        """


class OpenAILLMAdapter(BaseLLMAdapter):
    """Adapter for OpenAI-compatible chat completion APIs.

    Single attempt per call: the client is built with ``max_retries=0`` and
    an explicit timeout.
    """

    def __init__(
        self,
        model: str = "gpt-4",
        max_tokens: int = 2000,
        temperature: float = 0.7,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_seconds: float = 60.0,
        client: Optional[OpenAI] = None,
    ) -> None:
        """Initialise the OpenAI adapter.

        Args:
            model: Model identifier.
            max_tokens: Maximum tokens in the completion.
            temperature: Sampling temperature.
            api_key: API key; a missing key fails at call time.
            base_url: Optional base URL for OpenAI-compatible endpoints.
            timeout_seconds: Per-request timeout.
            client: Pre-built client, mainly for tests.
        """
        self._api_key = api_key
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature

        if client is not None:
            self._client: Optional[OpenAI] = client
        elif api_key:
            client_kwargs: dict = {
                "api_key": api_key,
                "timeout": timeout_seconds,
                "max_retries": 0,
            }
            if base_url:
                client_kwargs["base_url"] = base_url
            self._client = OpenAI(**client_kwargs)
        else:
            self._client = None

    def generate(self, prompt: str) -> NarrativeCompletion:
        """Call the chat completion API with the analyst system prompt."""
        if self._client is None:
            raise ExternalServiceError("openai", "OpenAI API key not configured")

        try:
            response = self._client.chat.completions.create(
                model=self._model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                max_tokens=self._max_tokens,
                temperature=self._temperature,
                stream=False,
            )
        except openai.APIStatusError as exc:
            logger.error("OpenAI request failed status=%s error=%s", exc.status_code, exc.message)
            raise ExternalServiceError("openai", exc.message, status_code=exc.status_code) from exc
        except openai.OpenAIError as exc:
            logger.error("OpenAI request failed error=%s", exc)
            raise ExternalServiceError("openai", str(exc)) from exc

        if not response.choices:
            raise ExternalServiceError("openai", "completion returned no choices.")

        usage = response.usage.model_dump() if response.usage is not None else None
        return NarrativeCompletion(
            text=response.choices[0].message.content or "",
            usage=usage,
        )


_MOCK_NARRATIVE = """\
1. EXECUTIVE SUMMARY
Mock narrative for testing purposes.

2. KEY INSIGHTS
- Metrics were received and summarised.

3. AREAS OF CONCERN
- None; this is a test fixture.

4. RECOMMENDATIONS
- Verify integration with the upstream data.

5. TRENDS TO WATCH
- None.
"""


class MockLLMAdapter(BaseLLMAdapter):
    """Deterministic adapter that returns a fixed narrative.

    Used for local testing and CI pipelines where no LLM API
    is available.
    """

    def generate(self, prompt: str) -> NarrativeCompletion:
        return NarrativeCompletion(
            text=_MOCK_NARRATIVE,
            usage={"prompt_tokens": 0, "completion_tokens": 0, "total_tokens": 0},
        )


def build_llm_adapter(settings: LLMSettings, *, timeout_seconds: float = 60.0) -> BaseLLMAdapter:
    """Select the adapter named by ``LLM_ADAPTER``."""
    if settings.adapter == "mock":
        return MockLLMAdapter()
    if settings.adapter != "openai":
        raise RuntimeError(f"Unsupported LLM_ADAPTER '{settings.adapter}'. Use 'openai' or 'mock'.")
    return OpenAILLMAdapter(
        model=settings.model,
        max_tokens=settings.max_tokens,
        temperature=settings.temperature,
        api_key=settings.api_key,
        base_url=settings.base_url,
        timeout_seconds=timeout_seconds,
    )
