"""Router for the Conversation feature."""
import logging
from typing import List, Optional

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from di.container import ApplicationContainer as DependencyContainer
from api.features.conversation.controller import ConversationController
from api.features.conversation.dtos import (
    ConversationDTO,
    ConversationSummaryDTO,
    CreateConversationRequest,
    DeleteConversationResponse,
    UpdateConversationRequest,
)
from api.features.conversation.exceptions import ConversationNotFoundError
from api.shared.db import get_db_session
from api.shared.dtos import HealthCheckResponse
from api.shared.response import ResponseModel

router = APIRouter()
logger = logging.getLogger("chat.conversation.router")


@router.get("/health", response_model=ResponseModel[HealthCheckResponse])
async def health_check():
    return ResponseModel.success(
        data=HealthCheckResponse(status="healthy", dependencies={"database": "ok"}),
        message="Conversation service is healthy",
    )


@router.get("", response_model=List[ConversationSummaryDTO])
@inject
async def list_conversations(
    controller: ConversationController = Depends(
        Provide[DependencyContainer.controllers.conversation_controller]
    ),
    db_session: AsyncSession = Depends(get_db_session),
):
    """List conversations, most recently updated first."""
    try:
        return await controller.list_conversations(db_session=db_session)
    except Exception:
        logger.exception("Failed to list conversations")
        raise HTTPException(status_code=500, detail="Failed to fetch conversations")


@router.post("", response_model=ConversationDTO)
@inject
async def create_conversation(
    request: Optional[CreateConversationRequest] = None,
    controller: ConversationController = Depends(
        Provide[DependencyContainer.controllers.conversation_controller]
    ),
    db_session: AsyncSession = Depends(get_db_session),
):
    """Create an empty conversation."""
    try:
        return await controller.create_conversation(
            title=request.title if request else None, db_session=db_session
        )
    except Exception:
        logger.exception("Failed to create conversation")
        raise HTTPException(status_code=500, detail="Failed to create conversation")


@router.get("/{conversation_id}", response_model=ConversationDTO)
@inject
async def get_conversation(
    conversation_id: str,
    controller: ConversationController = Depends(
        Provide[DependencyContainer.controllers.conversation_controller]
    ),
    db_session: AsyncSession = Depends(get_db_session),
):
    """Fetch a conversation with all of its messages."""
    try:
        return await controller.get_conversation(conversation_id, db_session=db_session)
    except ConversationNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception:
        logger.exception("Failed to fetch conversation")
        raise HTTPException(status_code=500, detail="Failed to fetch conversation")


@router.patch("/{conversation_id}", response_model=ConversationDTO)
@inject
async def update_conversation(
    conversation_id: str,
    request: UpdateConversationRequest,
    controller: ConversationController = Depends(
        Provide[DependencyContainer.controllers.conversation_controller]
    ),
    db_session: AsyncSession = Depends(get_db_session),
):
    """Rename a conversation."""
    try:
        return await controller.update_conversation(
            conversation_id, title=request.title, db_session=db_session
        )
    except ConversationNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception:
        logger.exception("Failed to update conversation")
        raise HTTPException(status_code=500, detail="Failed to update conversation")


@router.delete("/{conversation_id}", response_model=DeleteConversationResponse)
@inject
async def delete_conversation(
    conversation_id: str,
    controller: ConversationController = Depends(
        Provide[DependencyContainer.controllers.conversation_controller]
    ),
    db_session: AsyncSession = Depends(get_db_session),
):
    """Delete a conversation and its messages."""
    try:
        await controller.delete_conversation(conversation_id, db_session=db_session)
        return DeleteConversationResponse(success=True)
    except ConversationNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception:
        logger.exception("Failed to delete conversation")
        raise HTTPException(status_code=500, detail="Failed to delete conversation")
