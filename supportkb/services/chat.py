"""
Chat responder used by the admin chat test console.
"""

import logging
from typing import List, Optional

from .embeddings import LLMClient
from .retriever import RetrievalService
from ..config.settings import ChatConfig
from ..models.records import ChatMessage, ChatReply
from ..utils.errors import DatabaseError

logger = logging.getLogger(__name__)

class ChatResponder:
    """Answers a customer message using retrieved knowledge-base context."""

    def __init__(
        self,
        client: LLMClient,
        retriever: RetrievalService,
        config: Optional[ChatConfig] = None
    ):
        self.client = client
        self.retriever = retriever
        self.config = config or ChatConfig()

    def build_system_prompt(self, context_chunks: List[str]) -> str:
        context = self.retriever.build_context(context_chunks)
        return self.config.system_prompt_template.format(context=context)

    async def respond(
        self,
        message: str,
        history: Optional[List[ChatMessage]] = None,
        client_id: Optional[str] = None
    ) -> ChatReply:
        try:
            context_chunks = await self.retriever.retrieve(
                message,
                k=self.config.retriever_k,
                client_id=client_id
            )
        except DatabaseError as e:
            logger.warning(f"Context retrieval failed, answering without context: {str(e)}")
            context_chunks = []

        messages = list(history or [])
        messages.append(ChatMessage(role="user", content=message))

        response = await self.client.complete(
            messages,
            system_prompt=self.build_system_prompt(context_chunks)
        )
        logger.info(f"Generated chat response using {len(context_chunks)} context chunks")
        return ChatReply(response=response, context_chunks=context_chunks)
