"""Router for the Chat feature."""
import logging

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from di.container import ApplicationContainer as DependencyContainer
from api.features.chat.controller import ChatController
from api.features.chat.dtos import ChatRequest
from api.features.conversation.exceptions import ConversationNotFoundError
from api.shared.db import get_db_session
from api.shared.dtos import HealthCheckResponse
from api.shared.response import ResponseModel

router = APIRouter()
logger = logging.getLogger("chat.router")

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


@router.get("/health", response_model=ResponseModel[HealthCheckResponse])
async def health_check():
    """Health check endpoint for the chat relay."""
    return ResponseModel.success(
        data=HealthCheckResponse(
            status="healthy", dependencies={"llm": "ok", "database": "ok"}
        ),
        message="Chat service is healthy",
    )


@router.post("", response_class=StreamingResponse)
@inject
async def chat(
    request: ChatRequest,
    controller: ChatController = Depends(
        Provide[DependencyContainer.controllers.chat_controller]
    ),
    db_session: AsyncSession = Depends(get_db_session),
):
    """Submit a turn and stream the assistant reply as server-sent events."""
    try:
        turn = await controller.prepare_turn(request, db_session=db_session)
    except ConversationNotFoundError:
        raise HTTPException(status_code=404, detail="Conversation not found")
    except Exception:
        logger.exception("Failed to prepare chat turn")
        raise HTTPException(status_code=500, detail="Internal server error")

    return StreamingResponse(
        controller.stream_turn(turn),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
