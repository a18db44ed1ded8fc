import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy import text
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request

from api.shared.dtos import ErrorResponse, HealthCheckResponse
from api.shared.exceptions import DbChatException
from core.logging import configure_logging
from core.settings import SETTINGS
from di.container import ApplicationContainer as DependencyContainer

configure_logging(SETTINGS.APP)

logger = logging.getLogger("dbchat")


class CustomFastAPI(FastAPI):
    container: DependencyContainer


@asynccontextmanager
async def lifespan(_app: CustomFastAPI):
    logger.info("Starting application initialization...")
    start_time = time.time()

    try:
        logger.info("Initializing database connection...")
        db_start = time.time()
        db_resource = _app.container.infrastructure.database()
        await db_resource.init()
        async with db_resource.engine.begin() as _conn:
            # Verify database connection
            await _conn.execute(text("SELECT 1"))
        logger.info(
            f"Database connection ({db_resource.dialect_name}) established in {time.time() - db_start:.2f}s"
        )
        logger.info(
            f"Application startup completed in {time.time() - start_time:.2f}s"
        )
    except Exception as e:
        logger.exception(f"Failed to initialize application: {str(e)}")
        raise

    yield

    try:
        db_resource = _app.container.infrastructure.database()
        if db_resource:
            await db_resource.shutdown()
        logger.info("Application shutdown complete")
    except Exception as e:
        logger.exception(f"Error during shutdown: {str(e)}")


def _error_content(error_code: str, message: str, details: Optional[dict] = None) -> dict:
    return ErrorResponse(
        error_code=error_code, message=message, details=details
    ).model_dump(mode="json")


def register_exception_handlers(_app: FastAPI) -> None:
    @_app.exception_handler(DbChatException)
    async def chat_exception_handler(request: Request, exc: DbChatException):
        if exc.status_code >= 500:
            logger.error(f"{exc.error_code} on {request.url.path}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_content(exc.error_code, exc.message, exc.details),
        )

    @_app.exception_handler(404)
    async def not_found_handler(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=404,
            content=_error_content("NOT_FOUND", f"{exc.detail} : {request.url}"),
        )

    @_app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        return JSONResponse(
            status_code=422,
            content=_error_content(
                "VALIDATION_ERROR",
                "Request validation failed",
                {"errors": [str(error.get("msg")) for error in exc.errors()]},
            ),
        )

    @_app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled exception: {str(exc)}")
        return JSONResponse(
            status_code=500,
            content=_error_content("INTERNAL_ERROR", "An unexpected error occurred"),
        )


def create_fastapi_app(container: Optional[DependencyContainer] = None) -> CustomFastAPI:
    origins = {
        "*",
        "http://localhost",
        "http://localhost:*",
        "http://localhost:3000",
        "http://localhost:8000",
    }

    _app = CustomFastAPI(
        title="DB Chat API",
        description="Direct and group messaging with long-polling delivery",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Initialize dependency container
    _app.container = container or DependencyContainer()
    _app.container.init_resources()

    _app.add_middleware(
        CORSMiddleware,
        allow_origins=list(origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include feature routers
    from api.features.conversations.router import router as conversations_router
    from api.features.messages.router import router as messages_router
    from api.features.polling.router import router as polling_router

    _app.include_router(
        conversations_router, prefix="/api/v1/conversations", tags=["Conversations"]
    )
    _app.include_router(messages_router, prefix="/api/v1", tags=["Messages"])
    _app.include_router(polling_router, prefix="/api/v1/poll", tags=["Polling"])

    register_exception_handlers(_app)

    @_app.get("/")
    async def root():
        return {"message": "DB Chat API is running", "status": "ok"}

    @_app.get("/health", response_model=HealthCheckResponse)
    async def health():
        return HealthCheckResponse(status="ok")

    @_app.get("/ready")
    async def ready():
        return {"status": "ok"}

    return _app


app = create_fastapi_app()
