"""
Embedding and chat-completion client.

The client is built once at start-up from configuration and handed to the
components that need it; nothing in this module holds global state.
"""

import logging
from abc import ABC, abstractmethod
from typing import Iterable, List, Mapping, Optional, Union

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI, OpenAIEmbeddings

from ..config.settings import ChatConfig, EmbeddingConfig
from ..models.records import ChatMessage
from ..utils.errors import CompletionFailed, ConfigurationError, EmbeddingFailed
from ..utils.text import truncate_text

logger = logging.getLogger(__name__)

FALLBACK_RESPONSE = "I apologize, but I couldn't generate a response."

MessageLike = Union[ChatMessage, Mapping[str, str]]

class LLMClient(ABC):
    """What the pipeline, retriever and chat responder need from a model provider."""

    @abstractmethod
    async def embed(self, text: str) -> List[float]:
        """Return the embedding vector for ``text`` or raise EmbeddingFailed."""

    @abstractmethod
    async def complete(
        self,
        messages: Iterable[MessageLike],
        system_prompt: Optional[str] = None
    ) -> str:
        """Return the completion text, or a fallback when the model returns nothing."""

def to_langchain_messages(
    messages: Iterable[MessageLike],
    system_prompt: Optional[str] = None
) -> List[BaseMessage]:
    """Build the message list: optional system prompt first, then the conversation."""
    chat_messages: List[BaseMessage] = []
    if system_prompt:
        chat_messages.append(SystemMessage(content=system_prompt))

    for message in messages:
        if isinstance(message, ChatMessage):
            role, content = message.role, message.content
        else:
            role, content = message["role"], message["content"]

        if role == "user":
            chat_messages.append(HumanMessage(content=content))
        elif role == "assistant":
            chat_messages.append(AIMessage(content=content))
        elif role == "system":
            chat_messages.append(SystemMessage(content=content))
        else:
            raise ValueError(f"Unknown message role: {role}")

    return chat_messages

class OpenAIClient(LLMClient):
    """OpenAI embeddings and chat completions through langchain-openai."""

    def __init__(self, embedding_config: EmbeddingConfig, chat_config: ChatConfig):
        if not embedding_config.api_key:
            raise ConfigurationError("OpenAI API key is required")

        self.embedding_config = embedding_config
        self.chat_config = chat_config

        self.embeddings = OpenAIEmbeddings(
            openai_api_key=embedding_config.api_key,
            model=embedding_config.model_name,
            max_retries=embedding_config.max_retries,
            request_timeout=embedding_config.timeout
        )
        self.llm = ChatOpenAI(
            model=chat_config.model,
            temperature=chat_config.temperature,
            max_tokens=chat_config.max_tokens,
            api_key=embedding_config.api_key,
        )

        logger.info(
            f"Initialized OpenAI client (embeddings: {embedding_config.model_name}, "
            f"chat: {chat_config.model})"
        )

    async def embed(self, text: str) -> List[float]:
        try:
            embedding = await self.embeddings.aembed_query(text)
        except Exception as e:
            logger.error(f"Embedding request failed for '{truncate_text(text, 30)}': {str(e)}")
            raise EmbeddingFailed(f"Failed to create embedding: {str(e)}") from e

        expected = self.embedding_config.embedding_dimension
        if len(embedding) != expected:
            raise EmbeddingFailed(
                f"Unexpected embedding dimension: {len(embedding)}, expected {expected}"
            )
        return list(embedding)

    async def complete(
        self,
        messages: Iterable[MessageLike],
        system_prompt: Optional[str] = None
    ) -> str:
        chat_messages = to_langchain_messages(messages, system_prompt)
        try:
            response = await self.llm.ainvoke(chat_messages)
        except Exception as e:
            logger.error(f"Chat completion failed: {str(e)}")
            raise CompletionFailed(f"Failed to generate chat response: {str(e)}") from e

        content = response.content if response is not None else None
        if isinstance(content, list):
            # Multi-part responses: keep the text parts only
            content = "".join(
                part if isinstance(part, str) else part.get("text", "")
                for part in content
            )
        if not content:
            logger.warning("Chat completion returned no content, using fallback response")
            return FALLBACK_RESPONSE
        return content
