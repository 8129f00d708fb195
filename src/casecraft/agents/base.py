"""
CaseCraft Base Agent

Abstract base class for the agents that talk to an LLM.
Provides the provider factory, retries for transient failures, and the
text and vision invocation helpers.
"""

import asyncio
import logging
import random
from abc import ABC, abstractmethod
from typing import Any, Optional

from langchain_anthropic import ChatAnthropic
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_groq import ChatGroq
from langchain_openai import ChatOpenAI

from casecraft.core.config import LLMProvider, settings
from casecraft.core.exceptions import (
    LLMConfigurationError,
    LLMRateLimitError,
    LLMResponseError,
    RetryableConnectionError,
    RetryableRateLimitError,
    RetryableTimeoutError,
    is_retryable,
)
from casecraft.tools.imaging import EncodedImage

logger = logging.getLogger(__name__)

DEFAULT_MODELS = {
    LLMProvider.ANTHROPIC: "claude-sonnet-4-20250514",
    LLMProvider.OPENAI: "gpt-4o",
    LLMProvider.GOOGLE: "gemini-2.0-flash",
    LLMProvider.GROQ: "meta-llama/llama-4-scout-17b-16e-instruct",
    LLMProvider.XAI: "grok-2-vision-1212",
}


class RetryConfig:
    """Configuration for retry behavior."""

    def __init__(
        self,
        max_retries: int = 2,
        base_delay: float = 1.0,
        max_delay: float = 30.0,
        exponential_base: float = 2.0,
        jitter: bool = True,
    ):
        """
        Initialize retry configuration.

        Args:
            max_retries: Maximum number of retry attempts
            base_delay: Initial delay between retries in seconds
            max_delay: Maximum delay between retries in seconds
            exponential_base: Base for exponential backoff calculation
            jitter: Whether to add random jitter to delays
        """
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base
        self.jitter = jitter

    def get_delay(self, attempt: int) -> float:
        """Delay in seconds before retry number `attempt` (0-indexed)."""
        delay = min(self.base_delay * (self.exponential_base ** attempt), self.max_delay)

        if self.jitter:
            # Up to 25% extra
            delay += delay * 0.25 * random.random()

        return delay


def create_llm(
    provider: Optional[LLMProvider] = None,
    model: Optional[str] = None,
    api_key: Optional[str] = None,
) -> BaseChatModel:
    """
    Create a chat model for the given or configured provider.

    Raises:
        LLMConfigurationError: If the provider has no API key or is unknown
    """
    provider = provider or settings.default_llm_provider
    model = model or settings.default_model or DEFAULT_MODELS.get(provider)
    key = api_key or settings.get_api_key(provider)

    if provider not in DEFAULT_MODELS:
        raise LLMConfigurationError(
            f"Unsupported provider: {provider}",
            details={"provider": str(provider)},
        )
    if not key:
        raise LLMConfigurationError(
            f"{provider.value.upper()}_API_KEY not configured",
            details={"provider": provider.value},
        )

    common = {
        "temperature": settings.llm_temperature,
        "max_tokens": settings.llm_max_tokens,
    }

    if provider == LLMProvider.ANTHROPIC:
        return ChatAnthropic(model=model, api_key=key, **common)
    if provider == LLMProvider.OPENAI:
        return ChatOpenAI(model=model, api_key=key, **common)
    if provider == LLMProvider.GOOGLE:
        return ChatGoogleGenerativeAI(
            model=model,
            google_api_key=key,
            temperature=settings.llm_temperature,
            max_output_tokens=settings.llm_max_tokens,
        )
    if provider == LLMProvider.GROQ:
        return ChatGroq(model=model, api_key=key, **common)
    # xAI serves an OpenAI-compatible API
    return ChatOpenAI(model=model, api_key=key, base_url=settings.xai_base_url, **common)


def response_text(content: Any) -> str:
    """Flatten a chat message content (string or content blocks) to text."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(block.get("text", ""))
        return "".join(parts)
    return str(content)


class BaseAgent(ABC):
    """
    Abstract base class for CaseCraft agents.

    Each agent has:
    - A name and role description
    - Access to an LLM
    - A system prompt defining its behavior
    - Retry logic for transient failures
    """

    name: str = "base_agent"
    role: str = "Base Agent"

    def __init__(
        self,
        llm: Optional[BaseChatModel] = None,
        provider: Optional[LLMProvider] = None,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        retry_config: Optional[RetryConfig] = None,
    ):
        """
        Initialize the agent.

        The chat model is created on first use, so an agent without a
        configured provider can still run its non-LLM paths.

        Args:
            llm: Pre-configured LLM instance (optional)
            provider: LLM provider to use (defaults to settings)
            model: Model name to use (defaults to settings)
            api_key: API key for the LLM provider (overrides env vars)
            retry_config: Configuration for retry behavior
        """
        self._llm = llm
        self.provider = provider
        self.model = model
        self._api_key = api_key
        self.retry_config = retry_config or RetryConfig(max_retries=settings.llm_max_retries)

    @property
    def llm(self) -> BaseChatModel:
        if self._llm is None:
            self._llm = create_llm(self.provider, self.model, self._api_key)
        return self._llm

    @classmethod
    def from_options(
        cls,
        provider: Optional[str] = None,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        **kwargs: Any,
    ) -> "BaseAgent":
        """Create an agent from loosely typed options such as CLI flags."""
        parsed = None
        if provider:
            try:
                parsed = LLMProvider(provider.lower())
            except ValueError:
                raise LLMConfigurationError(
                    f"Unsupported provider: {provider}",
                    details={"supported": [p.value for p in LLMProvider]},
                ) from None
        return cls(provider=parsed, model=model, api_key=api_key, **kwargs)

    @property
    @abstractmethod
    def system_prompt(self) -> str:
        """Return the system prompt that defines this agent's behavior."""

    async def invoke_llm(self, user_message: str, context: Optional[str] = None) -> str:
        """
        Invoke the LLM with the agent's system prompt.

        Args:
            user_message: The user/task message
            context: Optional additional context

        Returns:
            The LLM's response text
        """
        messages = [SystemMessage(content=self.system_prompt)]

        if context:
            messages.append(HumanMessage(content=f"Context:\n{context}"))

        messages.append(HumanMessage(content=user_message))

        return await self._invoke_with_retry(messages)

    async def invoke_vision(self, prompt: str, image: EncodedImage) -> str:
        """
        Invoke the LLM with a text prompt and one image.

        Args:
            prompt: Instruction text sent with the image
            image: Encoded image, sent as a data URI

        Returns:
            The LLM's response text
        """
        messages = [
            SystemMessage(content=self.system_prompt),
            HumanMessage(
                content=[
                    {"type": "text", "text": prompt},
                    {
                        "type": "image_url",
                        "image_url": {"url": image.data_uri, "detail": "high"},
                    },
                ]
            ),
        ]
        logger.info(f"Sending vision request ({image.mime_type}, {len(image.base64) / 1024:.2f}KB)")
        return await self._invoke_with_retry(messages)

    async def _invoke_with_retry(self, messages: list) -> str:
        """
        Invoke the LLM, retrying transient failures with backoff.

        Raises:
            LLMError subclasses once retries are exhausted or for
            non-retryable failures
        """
        llm = self.llm
        last_error: Optional[Exception] = None
        attempts = self.retry_config.max_retries + 1

        for attempt in range(attempts):
            try:
                response = await llm.ainvoke(messages)
            except Exception as e:
                last_error = e
                wrapped_error = self._wrap_llm_error(e)
                logger.warning(f"LLM invocation failed (attempt {attempt + 1}/{attempts}): {e}")

                if not is_retryable(wrapped_error):
                    logger.error(f"Non-retryable error, raising immediately: {e}")
                    raise wrapped_error from e

                if attempt < self.retry_config.max_retries:
                    delay = self.retry_config.get_delay(attempt)
                    if isinstance(wrapped_error, LLMRateLimitError) and wrapped_error.retry_after:
                        delay = max(delay, wrapped_error.retry_after)
                    logger.info(f"Retrying in {delay:.2f} seconds...")
                    await asyncio.sleep(delay)
                continue

            if response is None or not hasattr(response, "content"):
                raise LLMResponseError(
                    "Invalid response from LLM",
                    details={"response": str(response)},
                )
            text = response_text(response.content)
            if not text:
                raise LLMResponseError("No content in LLM response")
            return text

        logger.error(f"All {attempts} attempts failed")
        raise self._wrap_llm_error(last_error) from last_error

    def _wrap_llm_error(self, error: Exception) -> Exception:
        """Map a provider exception onto the LLMError hierarchy."""
        error_msg = str(error).lower()
        error_type = type(error).__name__.lower()

        if "rate" in error_msg or "429" in error_msg or "ratelimit" in error_type:
            retry_after = None
            response = getattr(error, "response", None)
            headers = getattr(response, "headers", None)
            if headers is not None:
                try:
                    retry_after = float(headers.get("retry-after"))
                except (TypeError, ValueError):
                    retry_after = None
            return RetryableRateLimitError(
                f"Rate limit exceeded: {error}",
                retry_after=retry_after,
                details={"original_error": str(error)},
            )

        if "timeout" in error_msg or "timeout" in error_type:
            return RetryableTimeoutError(
                f"Request timed out: {error}",
                details={"original_error": str(error)},
            )

        if any(term in error_msg or term in error_type for term in [
            "connection", "connect", "network", "unreachable", "503", "502"
        ]):
            return RetryableConnectionError(
                f"Connection failed: {error}",
                details={"original_error": str(error)},
            )

        return LLMResponseError(
            f"LLM error: {error}",
            details={"original_error": str(error)},
        )

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(name={self.name}, role={self.role})>"
