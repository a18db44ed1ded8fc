"""Router for the Polling feature."""
from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from di.container import ApplicationContainer as DependencyContainer
from api.features.polling.controller import PollController
from api.features.polling.dtos import PollResponse
from api.shared.db import get_db_session
from api.shared.identity import get_current_user_id
from api.shared.response import ResponseModel

router = APIRouter()


@router.get(
    "",
    response_model=ResponseModel[PollResponse],
    responses={204: {"description": "No new messages before the poll timeout"}},
)
@inject
async def poll_messages(
    http_request: Request,
    after_message_id: int = Query(0, ge=0, description="Last message id already seen"),
    user_id: int = Depends(get_current_user_id),
    controller: PollController = Depends(
        Provide[DependencyContainer.controllers.poll_controller]
    ),
    db_session: AsyncSession = Depends(get_db_session),
):
    """Long-poll for messages in any of the caller's conversations.

    Clients should poll again immediately after each response, sending the
    returned `last_message_id` (or their previous cursor after a 204).
    """
    result = await controller.poll(
        after_message_id=after_message_id,
        user_id=user_id,
        db_session=db_session,
        is_disconnected=http_request.is_disconnected,
    )
    if not result.has_messages:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return ResponseModel.success(
        data=PollResponse.from_result(result), message="New messages"
    )
