"""
Chat API Router

Backs the dashboard's chat test console: answers a message the way the
support bot would, grounded on retrieved knowledge base chunks.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from ..dependencies import get_responder
from ..schemas import ChatRequest, ChatResponse
from ...services.chat import ChatResponder
from ...utils.errors import CompletionFailed

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/chat",
    tags=["chat"],
)

@router.post("", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    responder: ChatResponder = Depends(get_responder)
):
    """Generate a reply to a customer message"""
    try:
        reply = await responder.respond(
            request.message,
            history=request.history,
            client_id=request.client_id
        )
    except CompletionFailed as e:
        raise HTTPException(status_code=502, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return ChatResponse(response=reply.response, context_chunks=reply.context_chunks)
