"""Router for the Messages feature."""
from typing import Optional

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from di.container import ApplicationContainer as DependencyContainer
from api.features.messages.controller import MessageController
from api.features.messages.dtos import MessageDTO, MessagesResponse, SendMessageRequest
from api.shared.db import get_db_session
from api.shared.identity import get_current_user_id
from api.shared.response import ResponseModel

router = APIRouter()


@router.get(
    "/conversations/{conversation_id}/messages",
    response_model=ResponseModel[MessagesResponse],
)
@inject
async def list_messages(
    conversation_id: int,
    before_message_id: Optional[int] = Query(None, ge=1, description="Page below this id"),
    limit: Optional[int] = Query(None, ge=1, description="Page size"),
    user_id: int = Depends(get_current_user_id),
    controller: MessageController = Depends(
        Provide[DependencyContainer.controllers.message_controller]
    ),
    db_session: AsyncSession = Depends(get_db_session),
):
    result = await controller.list_messages(
        conversation_id=conversation_id,
        before_message_id=before_message_id,
        limit=limit,
        user_id=user_id,
        db_session=db_session,
    )
    return ResponseModel.success(data=result, message="Messages fetched")


@router.post(
    "/conversations/{conversation_id}/messages",
    response_model=ResponseModel[MessageDTO],
    status_code=status.HTTP_201_CREATED,
)
@inject
async def send_message(
    conversation_id: int,
    request: SendMessageRequest,
    user_id: int = Depends(get_current_user_id),
    controller: MessageController = Depends(
        Provide[DependencyContainer.controllers.message_controller]
    ),
    db_session: AsyncSession = Depends(get_db_session),
):
    message = await controller.send_message(
        conversation_id=conversation_id,
        request=request,
        user_id=user_id,
        db_session=db_session,
    )
    return ResponseModel.success(data=message, message="Message sent")


@router.post("/messages/{message_id}/read", status_code=status.HTTP_204_NO_CONTENT)
@inject
async def mark_as_read(
    message_id: int,
    user_id: int = Depends(get_current_user_id),
    controller: MessageController = Depends(
        Provide[DependencyContainer.controllers.message_controller]
    ),
    db_session: AsyncSession = Depends(get_db_session),
):
    await controller.mark_as_read(
        message_id=message_id, user_id=user_id, db_session=db_session
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/messages/{message_id}", status_code=status.HTTP_204_NO_CONTENT)
@inject
async def delete_message(
    message_id: int,
    user_id: int = Depends(get_current_user_id),
    controller: MessageController = Depends(
        Provide[DependencyContainer.controllers.message_controller]
    ),
    db_session: AsyncSession = Depends(get_db_session),
):
    await controller.delete_message(
        message_id=message_id, user_id=user_id, db_session=db_session
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
