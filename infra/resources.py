"""Infrastructure resources: the relational store.

This module is part of the infra layer and must not import from application features.
"""
from typing import Dict

from sqlalchemy import MetaData
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker


class DatabaseResource:
    """Database resource for dependency injection."""

    def __init__(
        self,
        database_url: str,
        auto_create_schema: bool = False,
        metadata: MetaData | None = None,
        server_settings: Dict[str, str] | None = None,
    ):
        self.database_url = database_url
        self.server_settings = server_settings or {}
        self.auto_create_schema = auto_create_schema
        self.metadata = metadata
        self.engine = None
        self.session_factory = None

    async def init(self):
        """Initialize database connection."""
        connect_args = {}
        # asyncpg applies these to every pooled connection it opens
        if self.server_settings and make_url(self.database_url).get_backend_name() == "postgresql":
            connect_args["server_settings"] = dict(self.server_settings)
        self.engine = create_async_engine(
            self.database_url,
            echo=False,
            pool_pre_ping=True,
            pool_recycle=3600,
            connect_args=connect_args,
        )
        self.session_factory = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        if self.auto_create_schema:
            await self.create_schema()
        return self

    async def create_schema(self):
        """Create all registered tables that do not exist yet."""
        if self.engine is None:
            raise RuntimeError("Database not initialized. Call init() first.")
        metadata = self.metadata
        if metadata is None:
            # Deferred so the infra layer does not import features at module load
            from api.shared.entities.registry import BaseEntity

            metadata = BaseEntity.metadata
        async with self.engine.begin() as conn:
            await conn.run_sync(metadata.create_all)

    @property
    def dialect_name(self) -> str:
        if self.engine is None:
            raise RuntimeError("Database not initialized. Call init() first.")
        return self.engine.dialect.name

    def get_session(self) -> AsyncSession:
        """Get database session (synchronous accessor)."""
        if self.session_factory is None:
            raise RuntimeError("Database not initialized. Call init() first.")
        return self.session_factory()

    async def shutdown(self):
        """Shutdown database connection."""
        if self.engine:
            await self.engine.dispose()
