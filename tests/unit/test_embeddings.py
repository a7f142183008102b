"""Unit tests for OpenAIClient: langchain-openai calls are mocked."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from supportkb.config.settings import ChatConfig, EmbeddingConfig
from supportkb.models.records import ChatMessage
from supportkb.services.embeddings import FALLBACK_RESPONSE, OpenAIClient, to_langchain_messages
from supportkb.utils.errors import CompletionFailed, ConfigurationError, EmbeddingFailed


@pytest.fixture
def client() -> OpenAIClient:
    openai_client = OpenAIClient(
        EmbeddingConfig(api_key="sk-test", model_name="text-embedding-ada-002", embedding_dimension=4),
        ChatConfig(model="gpt-4o", max_tokens=500, temperature=0.7),
    )
    openai_client.embeddings = MagicMock()
    openai_client.llm = MagicMock()
    return openai_client


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


def test_missing_api_key_is_a_configuration_error() -> None:
    with pytest.raises(ConfigurationError):
        OpenAIClient(EmbeddingConfig(api_key=None), ChatConfig())


def test_chat_settings_are_applied() -> None:
    openai_client = OpenAIClient(
        EmbeddingConfig(api_key="sk-test"),
        ChatConfig(model="gpt-4o", max_tokens=500, temperature=0.7),
    )
    assert openai_client.llm.model_name == "gpt-4o"
    assert openai_client.llm.max_tokens == 500
    assert openai_client.llm.temperature == 0.7


# ---------------------------------------------------------------------------
# Embeddings
# ---------------------------------------------------------------------------


class TestEmbed:

    async def test_returns_vector(self, client: OpenAIClient) -> None:
        client.embeddings.aembed_query = AsyncMock(return_value=[0.1, 0.2, 0.3, 0.4])

        assert await client.embed("hello") == [0.1, 0.2, 0.3, 0.4]
        client.embeddings.aembed_query.assert_awaited_once_with("hello")

    async def test_api_error_becomes_embedding_failed(self, client: OpenAIClient) -> None:
        client.embeddings.aembed_query = AsyncMock(side_effect=RuntimeError("429 Too Many Requests"))

        with pytest.raises(EmbeddingFailed, match="429 Too Many Requests"):
            await client.embed("hello")

    async def test_wrong_dimension_becomes_embedding_failed(self, client: OpenAIClient) -> None:
        client.embeddings.aembed_query = AsyncMock(return_value=[0.1, 0.2])

        with pytest.raises(EmbeddingFailed, match="dimension"):
            await client.embed("hello")


# ---------------------------------------------------------------------------
# Completions
# ---------------------------------------------------------------------------


class TestComplete:

    async def test_system_prompt_comes_first(self, client: OpenAIClient) -> None:
        client.llm.ainvoke = AsyncMock(return_value=AIMessage(content="Sure!"))

        reply = await client.complete(
            [ChatMessage(role="user", content="Can I return this?")],
            system_prompt="Be helpful.",
        )

        assert reply == "Sure!"
        sent = client.llm.ainvoke.await_args.args[0]
        assert isinstance(sent[0], SystemMessage)
        assert sent[0].content == "Be helpful."
        assert isinstance(sent[1], HumanMessage)

    async def test_empty_content_returns_fallback(self, client: OpenAIClient) -> None:
        client.llm.ainvoke = AsyncMock(return_value=AIMessage(content=""))

        assert await client.complete([{"role": "user", "content": "hi"}]) == FALLBACK_RESPONSE

    async def test_multipart_content_is_joined(self, client: OpenAIClient) -> None:
        client.llm.ainvoke = AsyncMock(
            return_value=AIMessage(content=[{"type": "text", "text": "Hello "}, "there"])
        )

        assert await client.complete([{"role": "user", "content": "hi"}]) == "Hello there"

    async def test_api_error_becomes_completion_failed(self, client: OpenAIClient) -> None:
        client.llm.ainvoke = AsyncMock(side_effect=RuntimeError("service unavailable"))

        with pytest.raises(CompletionFailed):
            await client.complete([{"role": "user", "content": "hi"}])


def test_message_roles_are_mapped() -> None:
    messages = to_langchain_messages(
        [
            {"role": "user", "content": "Hi"},
            ChatMessage(role="assistant", content="Hello"),
            {"role": "system", "content": "Note"},
        ]
    )
    assert [type(m) for m in messages] == [HumanMessage, AIMessage, SystemMessage]


def test_unknown_role_is_rejected() -> None:
    with pytest.raises(ValueError):
        to_langchain_messages([{"role": "tool", "content": "?"}])
