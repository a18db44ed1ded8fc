"""Router for the Conversations feature."""
from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from di.container import ApplicationContainer as DependencyContainer
from api.features.conversations.controller import ConversationController
from api.features.conversations.dtos import (
    AddParticipantRequest,
    ConversationDTO,
    ConversationListResponse,
    CreateConversationRequest,
    ParticipantDTO,
)
from api.shared.db import get_db_session
from api.shared.identity import get_current_user_id
from api.shared.response import ResponseModel

router = APIRouter()


@router.get("/", response_model=ResponseModel[ConversationListResponse])
@inject
async def list_conversations(
    user_id: int = Depends(get_current_user_id),
    controller: ConversationController = Depends(
        Provide[DependencyContainer.controllers.conversation_controller]
    ),
    db_session: AsyncSession = Depends(get_db_session),
):
    result = await controller.list_conversations(user_id=user_id, db_session=db_session)
    return ResponseModel.success(data=result, message="Conversations listed")


@router.post(
    "/",
    response_model=ResponseModel[ConversationDTO],
    status_code=status.HTTP_201_CREATED,
)
@inject
async def create_conversation(
    request: CreateConversationRequest,
    user_id: int = Depends(get_current_user_id),
    controller: ConversationController = Depends(
        Provide[DependencyContainer.controllers.conversation_controller]
    ),
    db_session: AsyncSession = Depends(get_db_session),
):
    conversation = await controller.create_conversation(
        request=request, user_id=user_id, db_session=db_session
    )
    return ResponseModel.success(data=conversation, message="Conversation created")


@router.get("/{conversation_id}", response_model=ResponseModel[ConversationDTO])
@inject
async def get_conversation(
    conversation_id: int,
    user_id: int = Depends(get_current_user_id),
    controller: ConversationController = Depends(
        Provide[DependencyContainer.controllers.conversation_controller]
    ),
    db_session: AsyncSession = Depends(get_db_session),
):
    conversation = await controller.get_conversation(
        conversation_id=conversation_id, user_id=user_id, db_session=db_session
    )
    return ResponseModel.success(data=conversation, message="Conversation fetched")


@router.post(
    "/{conversation_id}/participants",
    response_model=ResponseModel[ParticipantDTO],
    status_code=status.HTTP_201_CREATED,
)
@inject
async def add_participant(
    conversation_id: int,
    request: AddParticipantRequest,
    user_id: int = Depends(get_current_user_id),
    controller: ConversationController = Depends(
        Provide[DependencyContainer.controllers.conversation_controller]
    ),
    db_session: AsyncSession = Depends(get_db_session),
):
    participant = await controller.add_participant(
        conversation_id=conversation_id,
        request=request,
        user_id=user_id,
        db_session=db_session,
    )
    return ResponseModel.success(data=participant, message="Participant added")


@router.delete(
    "/{conversation_id}/participants/{member_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
@inject
async def remove_participant(
    conversation_id: int,
    member_id: int,
    user_id: int = Depends(get_current_user_id),
    controller: ConversationController = Depends(
        Provide[DependencyContainer.controllers.conversation_controller]
    ),
    db_session: AsyncSession = Depends(get_db_session),
):
    await controller.remove_participant(
        conversation_id=conversation_id,
        member_id=member_id,
        user_id=user_id,
        db_session=db_session,
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
