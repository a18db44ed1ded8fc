"""Request-scoped database sessions for the feature routers."""
from typing import AsyncIterator

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from di.container import ApplicationContainer
from infra.resources import DatabaseResource


@inject
async def get_db_session(
    database: DatabaseResource = Depends(
        Provide[ApplicationContainer.infrastructure.database]
    ),
) -> AsyncIterator[AsyncSession]:
    """Yield one AsyncSession per request.

    Closing it returns the connection to the pool and rolls back anything
    left uncommitted. The poll route closes it early, before it waits.
    """
    async with database.get_session() as session:
        yield session
