"""
Completion provider collaborators.

The orchestrator depends only on ``CompletionProvider``; concrete providers
are constructed once at startup and injected.

Version: 1.0.0

Providers:
- OpenAICompletionProvider: OpenAI chat completions with a model fallback
  list, tenacity retries per model and an aiobreaker circuit breaker
- OfflineCompletionProvider: deterministic canned replies for development
  and for deployments without an API key
"""
import logging
from abc import ABC, abstractmethod
from datetime import timedelta
from typing import List, Optional, Sequence

import openai
from aiobreaker import CircuitBreaker, CircuitBreakerError
from openai import AsyncOpenAI
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..config import Settings
from ..exceptions import ProviderFailure
from ..models import Message

logger = logging.getLogger(__name__)

DEFAULT_CONTEXT_MESSAGES = 10

SYSTEM_PROMPT = """You are an AI customer support agent for an e-commerce and services company.

You help with accounts, orders, shipping, returns, payments, billing, technical issues and company policies.

Guidelines:
1. Only answer customer-service questions. For anything else (coding, maths, general knowledge) reply:
   "I'm here to help with customer support questions like account issues, orders, billing, or technical support. How can I assist you with our services?"
2. Keep a professional, empathetic tone and use the conversation history for context.
3. If you cannot resolve the issue, offer to escalate to a human agent.
4. Never provide code or answers outside customer support."""

SUMMARY_PROMPT = """Summarize this customer support conversation for the human agent taking over. Include:
1. Main issues discussed
2. Attempted solutions
3. Current status
4. Recommended next actions

Be concise."""

RETRYABLE_ERRORS = (
    openai.APIConnectionError,
    openai.APITimeoutError,
    openai.RateLimitError,
    openai.InternalServerError,
)


def format_transcript(messages: Sequence[Message]) -> str:
    return "\n".join(f"{m.role}: {m.content}" for m in messages)


def build_context(
    transcript: Sequence[Message],
    limit: int = DEFAULT_CONTEXT_MESSAGES,
) -> str:
    """
    Rolling conversation context for the provider.

    Args:
        transcript: Full session transcript
        limit: Number of most recent messages to include

    Returns:
        Context block
    """
    if not transcript:
        return "This is a new customer support conversation."
    recent = list(transcript)[-limit:]
    return "Previous conversation context:\n" + format_transcript(recent)


class CompletionProvider(ABC):
    """Text-generation collaborator used by the orchestrator."""

    name: str = "completion"

    @abstractmethod
    async def generate(self, prompt: str, transcript: Sequence[Message]) -> str:
        """
        Generate a support reply.

        Args:
            prompt: The user's message
            transcript: Session transcript, oldest first

        Returns:
            Reply text

        Raises:
            ProviderFailure: If no reply could be produced
        """
        pass

    @abstractmethod
    async def summarize(self, transcript: Sequence[Message]) -> str:
        """
        Summarize a transcript for a human handler.

        Raises:
            ProviderFailure: If no summary could be produced
        """
        pass

    async def aclose(self) -> None:
        return None


class OpenAICompletionProvider(CompletionProvider):
    """
    OpenAI chat-completions provider.

    Features:
    - Ordered model fallback list
    - Exponential backoff retries on transient errors (tenacity)
    - Circuit breaker across calls (aiobreaker)
    - Sliding window of the last N transcript messages as context
    """

    name = "openai"

    def __init__(
        self,
        api_key: str,
        models: Sequence[str],
        base_url: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 500,
        timeout: float = 30.0,
        retry_attempts: int = 2,
        context_messages: int = DEFAULT_CONTEXT_MESSAGES,
        breaker_fail_max: int = 5,
        breaker_reset_seconds: int = 60,
        client: Optional[AsyncOpenAI] = None,
    ):
        """
        Initialize the OpenAI provider.

        Args:
            api_key: OpenAI API key
            models: Models tried in order
            base_url: Optional OpenAI-compatible endpoint
            temperature: Sampling temperature
            max_tokens: Response token cap
            timeout: Per-request timeout in seconds
            retry_attempts: Attempts per model on transient errors
            context_messages: Transcript tail length
            breaker_fail_max: Failures before the circuit opens
            breaker_reset_seconds: Seconds before a half-open probe
            client: Preconfigured client (tests)
        """
        if not models:
            raise ValueError("At least one model is required")

        self.models: List[str] = list(models)
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.retry_attempts = retry_attempts
        self.context_messages = context_messages

        self.client = client or AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=0,
        )
        self.breaker = CircuitBreaker(
            fail_max=breaker_fail_max,
            timeout_duration=timedelta(seconds=breaker_reset_seconds),
            name="completion_provider",
        )

        logger.info(
            f"OpenAICompletionProvider initialized (models={self.models}, "
            f"retry_attempts={retry_attempts}, context={context_messages})"
        )

    async def _complete_with_model(self, model: str, messages: List[dict]) -> str:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.retry_attempts),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        ):
            with attempt:
                response = await self.client.chat.completions.create(
                    model=model,
                    messages=messages,
                    temperature=self.temperature,
                    max_tokens=self.max_tokens,
                )
                content = response.choices[0].message.content if response.choices else None
                if not content or not content.strip():
                    raise ProviderFailure(f"Empty completion from {model}")
                return content.strip()

    async def _complete(self, messages: List[dict]) -> str:
        last_error: Optional[BaseException] = None

        for model in self.models:
            try:
                reply = await self._complete_with_model(model, messages)
                logger.debug(f"Completion produced by {model}")
                return reply
            except (openai.OpenAIError, ProviderFailure) as e:
                last_error = e
                logger.warning(f"Model {model} failed: {e}")
                continue

        raise ProviderFailure(
            f"All models failed. Last error: {last_error}",
            cause=last_error,
        )

    async def _call(self, messages: List[dict]) -> str:
        try:
            return await self.breaker.call_async(self._complete, messages)
        except CircuitBreakerError as e:
            logger.error(f"Completion circuit open: {e}")
            raise ProviderFailure("Completion provider temporarily unavailable", cause=e) from e

    async def generate(self, prompt: str, transcript: Sequence[Message]) -> str:
        context = build_context(transcript, self.context_messages)
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": f"{context}\n\nCustomer query: {prompt}"},
        ]
        return await self._call(messages)

    async def summarize(self, transcript: Sequence[Message]) -> str:
        messages = [
            {"role": "system", "content": SUMMARY_PROMPT},
            {"role": "user", "content": format_transcript(transcript)},
        ]
        return await self._call(messages)

    async def aclose(self) -> None:
        await self.client.close()


class OfflineCompletionProvider(CompletionProvider):
    """
    Canned provider used without an API key.

    Replies are deterministic so local runs and tests are reproducible.
    """

    name = "offline"

    GENERIC_REPLY = (
        "Thanks for reaching out. I've noted the details of your request. "
        "Could you share your order number or account email so I can look "
        "into it further?"
    )
    HANDOFF_REPLY = (
        "I understand, and I'm sorry for the trouble. I'm connecting you with "
        "a human agent who will follow up in this conversation shortly."
    )

    def __init__(self, handoff_terms: Sequence[str] = ("human", "agent", "manager", "supervisor")):
        self.handoff_terms = tuple(handoff_terms)

    async def generate(self, prompt: str, transcript: Sequence[Message]) -> str:
        lowered = prompt.lower()
        if any(term in lowered for term in self.handoff_terms):
            return self.HANDOFF_REPLY
        return self.GENERIC_REPLY

    async def summarize(self, transcript: Sequence[Message]) -> str:
        user_messages = [m.content for m in transcript if m.role == "user"]
        if not user_messages:
            return "No customer messages yet."
        latest = user_messages[-1]
        return (
            f"Customer sent {len(user_messages)} message(s). "
            f"Latest request: {latest[:200]}"
        )


def create_completion_provider(settings: Settings) -> CompletionProvider:
    """
    Build the provider selected by configuration.

    Args:
        settings: Application settings

    Returns:
        OpenAI provider when an API key is configured and mocking is off,
        otherwise the offline provider
    """
    api_key = settings.get_openai_api_key()

    if settings.dev_mock_ai or not api_key:
        logger.warning("Using offline completion provider")
        return OfflineCompletionProvider()

    return OpenAICompletionProvider(
        api_key=api_key,
        models=settings.completion_models,
        base_url=settings.openai_base_url,
        temperature=settings.completion_temperature,
        max_tokens=settings.completion_max_tokens,
        timeout=settings.completion_timeout,
        retry_attempts=settings.completion_retry_attempts,
        context_messages=settings.conversation_context_messages,
        breaker_fail_max=settings.completion_breaker_fail_max,
        breaker_reset_seconds=settings.completion_breaker_reset_seconds,
    )


__all__ = [
    'CompletionProvider',
    'OpenAICompletionProvider',
    'OfflineCompletionProvider',
    'create_completion_provider',
    'build_context',
    'format_transcript',
]
