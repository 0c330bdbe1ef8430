"""Chat endpoint: grounded answers about portfolio companies."""

import asyncio

from fastapi import APIRouter, Depends, HTTPException

from copilot.core.chat_pipeline import ChatOrchestrator, get_chat_orchestrator
from copilot.core.logging import get_logger
from copilot.core.schemas_chat import ChatRequest, ChatResponse

logger = get_logger(__name__)

router = APIRouter()


@router.post("", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    orchestrator: ChatOrchestrator = Depends(get_chat_orchestrator),
) -> ChatResponse:
    """
    Answer a question about the portfolio.

    Args:
        request: ChatRequest with message, optional selectedCompanySlug, topK and history

    Returns:
        ChatResponse with answer and the companies it was grounded on

    Raises:
        HTTPException: 500 with a generic message if any stage fails
    """
    try:
        return await asyncio.to_thread(orchestrator.handle_chat, request)
    except Exception as e:
        logger.exception("Chat request failed")
        raise HTTPException(status_code=500, detail="Failed to process chat message") from e
