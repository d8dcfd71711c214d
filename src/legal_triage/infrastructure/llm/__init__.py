"""
LLM Client Infrastructure
==========================

Wrapper for LLM providers (OpenAI-compatible, Z.AI) providing a clean
interface for completion calls.

This module abstracts the LLM client implementation following the
Dependency Inversion Principle - the triage layer depends on abstractions,
not concrete implementations. Retries for transient failures live here,
never in the triage state machine.
"""

import asyncio
import json
import time
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from openai import AsyncOpenAI
from zai import ZaiClient

from legal_triage.config import Settings
from legal_triage.core import ConfigurationException, LLMException
from legal_triage.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class ChatCompletionResult:
    """Result of a chat completion."""

    def __init__(
        self,
        content: str,
        model: str,
        prompt_tokens: int,
        completion_tokens: int,
        latency_ms: int
    ):
        self.content = content
        self.model = model
        self.prompt_tokens = prompt_tokens
        self.completion_tokens = completion_tokens
        self.total_tokens = prompt_tokens + completion_tokens
        self.latency_ms = latency_ms


class ILLMClient(ABC):
    """
    Interface for LLM client operations.

    Following Interface Segregation Principle - only methods
    actually needed by the application are defined.
    """

    @abstractmethod
    async def chat_completion(
        self,
        messages: List[dict],
        temperature: float = 0.3,
        max_tokens: int = 1000,
        operation: str = "chat_completion"
    ) -> ChatCompletionResult:
        """Generate chat completion."""


class RetryingLLMClient(ILLMClient):
    """
    Base client adding timing, retries with exponential backoff and
    error translation around a single provider call.
    """

    def __init__(
        self,
        model: str,
        max_retries: int = 2,
        retry_base_delay: float = 0.5
    ):
        self._model = model
        self._max_retries = max_retries
        self._retry_base_delay = retry_base_delay

    @abstractmethod
    async def _create_completion(
        self,
        messages: List[dict],
        temperature: float,
        max_tokens: int
    ) -> Tuple[str, int, int]:
        """Call the provider once; returns (content, prompt_tokens, completion_tokens)."""

    async def chat_completion(
        self,
        messages: List[dict],
        temperature: float = 0.3,
        max_tokens: int = 1000,
        operation: str = "chat_completion"
    ) -> ChatCompletionResult:
        """
        Generate a chat completion.

        Args:
            messages: List of message dicts with 'role' and 'content'
            temperature: Sampling temperature (0-1)
            max_tokens: Maximum tokens to generate
            operation: Operation type for logging (intent_classification,
                field_extraction, document_answer)

        Returns:
            ChatCompletionResult with generated text

        Raises:
            LLMException: If every attempt fails
        """
        last_error: Optional[Exception] = None

        for attempt in range(self._max_retries + 1):
            start_time = time.perf_counter()
            try:
                content, prompt_tokens, completion_tokens = await self._create_completion(
                    messages, temperature, max_tokens
                )
            except Exception as e:
                last_error = e
                logger.warning(
                    "Chat completion attempt failed",
                    extra={
                        "operation": operation,
                        "attempt": attempt + 1,
                        "error": str(e),
                    }
                )
                if attempt < self._max_retries:
                    await asyncio.sleep(self._retry_base_delay * (2 ** attempt))
                continue

            latency_ms = int((time.perf_counter() - start_time) * 1000)
            logger.debug(
                "Chat completion finished",
                extra={
                    "operation": operation,
                    "model": self._model,
                    "latency_ms": latency_ms,
                    "prompt_tokens": prompt_tokens,
                    "completion_tokens": completion_tokens,
                }
            )
            return ChatCompletionResult(
                content=content or "",
                model=self._model,
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                latency_ms=latency_ms
            )

        raise LLMException(
            f"Chat completion failed: {last_error}",
            {"operation": operation, "attempts": self._max_retries + 1}
        )


class OpenAILLMClient(RetryingLLMClient):
    """
    OpenAI client implementation.

    Works with any OpenAI-compatible endpoint through `base_url`
    (e.g. Groq at https://api.groq.com/openai/v1).
    """

    def __init__(
        self,
        api_key: Optional[str],
        model: str,
        base_url: Optional[str] = None,
        timeout: float = 30.0,
        max_retries: int = 2
    ):
        if not api_key:
            raise ConfigurationException("OpenAI API key not configured")
        super().__init__(model, max_retries)
        # Retries are handled above, not by the SDK.
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=0
        )

    async def _create_completion(
        self,
        messages: List[dict],
        temperature: float,
        max_tokens: int
    ) -> Tuple[str, int, int]:
        response = await self._client.chat.completions.create(
            model=self._model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens
        )
        content = response.choices[0].message.content or ""
        usage = response.usage
        prompt_tokens = usage.prompt_tokens if usage else 0
        completion_tokens = usage.completion_tokens if usage else 0
        return content, prompt_tokens, completion_tokens


class ZAILLMClient(RetryingLLMClient):
    """
    Z.AI SDK client implementation for GLM models.

    The SDK is synchronous, so calls run in a worker thread to keep the
    event loop (and caller timeouts) responsive.
    """

    def __init__(
        self,
        api_key: Optional[str],
        model: str,
        max_retries: int = 2
    ):
        if not api_key:
            raise ConfigurationException("Z.AI API key not configured")
        super().__init__(model, max_retries)
        self._client = ZaiClient(api_key=api_key)

    async def _create_completion(
        self,
        messages: List[dict],
        temperature: float,
        max_tokens: int
    ) -> Tuple[str, int, int]:
        response = await asyncio.to_thread(
            self._client.chat.completions.create,
            model=self._model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens
        )
        content = response.choices[0].message.content or ""
        # Z.AI doesn't always return token usage, so we estimate
        return content, len(str(messages)), len(content)


class MockLLMClient(ILLMClient):
    """
    Mock LLM client for local runs and tests.

    Returns predictable responses without calling external APIs.
    """

    async def chat_completion(
        self,
        messages: List[dict],
        temperature: float = 0.3,
        max_tokens: int = 1000,
        operation: str = "chat_completion"
    ) -> ChatCompletionResult:
        """Return mock response based on operation type."""
        if operation == "intent_classification":
            content = "request"
        elif operation == "field_extraction":
            content = json.dumps({
                "requestType": None,
                "location": None,
                "department": None,
                "isDocumentQuestion": False
            })
        elif operation == "document_answer":
            content = "Mock: according to [Source 1], please review the policy document."
        else:
            content = "This is a mock LLM response for testing purposes."

        return ChatCompletionResult(
            content=content,
            model="mock-model",
            prompt_tokens=100,
            completion_tokens=len(content.split()),
            latency_ms=0
        )


def create_llm_client(settings: Settings) -> ILLMClient:
    """
    Build the completion client selected in settings.

    Raises:
        ConfigurationException: When the provider's credentials are missing
    """
    if settings.llm_provider == "mock":
        return MockLLMClient()
    if settings.llm_provider == "zai":
        return ZAILLMClient(
            settings.zai_api_key,
            model=settings.llm_model,
            max_retries=settings.llm_max_retries
        )
    return OpenAILLMClient(
        settings.openai_api_key,
        model=settings.llm_model,
        base_url=settings.openai_base_url,
        timeout=settings.llm_timeout_seconds,
        max_retries=settings.llm_max_retries
    )
