"""Tests for the LLM boundary shared by the agents."""

import pytest

from casecraft.agents.base import BaseAgent, RetryConfig, create_llm, response_text
from casecraft.core.config import LLMProvider
from casecraft.core.exceptions import (
    LLMConfigurationError,
    LLMResponseError,
    RetryableConnectionError,
    RetryableRateLimitError,
)
from tests.conftest import RecordingChatModel


class EchoAgent(BaseAgent):
    name = "echo"

    @property
    def system_prompt(self) -> str:
        return "Echo."


def make_agent(*replies, retries=2):
    return EchoAgent(
        llm=RecordingChatModel(*replies),
        retry_config=RetryConfig(max_retries=retries, base_delay=0, jitter=False),
    )


async def test_transient_error_is_retried():
    agent = make_agent(ConnectionError("Connection reset by peer"), "done")

    assert await agent.invoke_llm("hi") == "done"
    assert len(agent.llm.requests) == 2


async def test_non_retryable_error_raises_immediately():
    agent = make_agent(ValueError("invalid request body"), "unused")

    with pytest.raises(LLMResponseError):
        await agent.invoke_llm("hi")
    assert len(agent.llm.requests) == 1


async def test_retries_exhausted():
    agent = make_agent(ConnectionError("network unreachable"), retries=1)

    with pytest.raises(RetryableConnectionError):
        await agent.invoke_llm("hi")
    assert len(agent.llm.requests) == 2


def test_rate_limit_is_recognized():
    agent = make_agent("x")
    assert isinstance(agent._wrap_llm_error(Exception("Error 429: rate limit")), RetryableRateLimitError)


async def test_content_blocks_are_flattened():
    agent = make_agent([{"type": "text", "text": "a"}, {"type": "text", "text": "b"}])
    assert await agent.invoke_llm("hi") == "ab"


async def test_empty_reply_is_an_error():
    agent = make_agent("")
    with pytest.raises(LLMResponseError):
        await agent.invoke_llm("hi")


def test_response_text_passthrough():
    assert response_text("plain") == "plain"


def test_missing_api_key(monkeypatch):
    monkeypatch.setattr("casecraft.agents.base.settings.openai_api_key", None)
    with pytest.raises(LLMConfigurationError):
        create_llm(LLMProvider.OPENAI)


def test_unknown_provider_option():
    with pytest.raises(LLMConfigurationError):
        EchoAgent.from_options(provider="carrier-pigeon")


def test_llm_is_created_lazily():
    agent = EchoAgent.from_options(provider="OpenAI")
    assert agent.provider == LLMProvider.OPENAI
    assert agent._llm is None
