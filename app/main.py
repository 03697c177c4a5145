"""FastAPI application entry point for the AI chatbot API."""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.auth import router as auth_router
from app.api.routes.chat import router as chat_router
from app.config import Settings, settings
from app.core.errors import ChatbotError, InternalError, InvalidInput
from app.core.logging import configure_logging
from app.database import Database
from app.services.auth_service import AuthService
from app.services.chat_repository import ChatRepository
from app.services.chat_service import ChatService
from app.services.generation_client import GenerationClient

logger = logging.getLogger(__name__)


def create_app(
    app_settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    generator: Optional[GenerationClient] = None,
) -> FastAPI:
    """
    Build the application.

    All collaborators are constructed in the lifespan before the first
    request is served; a failure there aborts startup.

    Args:
        app_settings: Settings to use (defaults to the environment-loaded settings)
        database: Database handle (defaults to one built from DATABASE_URL)
        generator: Generation API client (defaults to one built from settings)
    """
    app_settings = app_settings or settings
    configure_logging(app_settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db = database or Database(app_settings.DATABASE_URL, echo=app_settings.DATABASE_ECHO)
        db.connect()
        db.init_db()
        logger.info("Database initialized")

        auth_service = AuthService.from_settings(db, app_settings)
        app.state.database = db
        app.state.auth_service = auth_service
        app.state.chat_service = ChatService(
            credentials=auth_service,
            generator=generator or GenerationClient.from_settings(app_settings),
            repository=ChatRepository(db),
            debug=app_settings.debug,
        )
        logger.info(
            f"Startup complete: environment={app_settings.ENVIRONMENT}, "
            f"model={app_settings.GENERATION_MODEL}"
        )

        try:
            yield
        finally:
            db.dispose()

    app = FastAPI(
        title="AI Chatbot API",
        description="Authenticated chat and image-description API backed by Gemini",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/api")
    def health_check():
        """Health check endpoint."""
        return {
            "message": "API is working!",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "environment": app_settings.ENVIRONMENT,
        }

    app.include_router(auth_router)
    app.include_router(chat_router)

    @app.exception_handler(ChatbotError)
    async def chatbot_error_handler(request: Request, exc: ChatbotError):
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_dict(debug=app_settings.debug),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = []
        for error in exc.errors():
            location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
            errors.append({"field": ".".join(location) or "body", "message": error.get("msg", "Invalid value")})
        return JSONResponse(status_code=400, content=InvalidInput(errors).to_dict())

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404 and exc.detail == "Not Found":
            # no route matched
            return JSONResponse(
                status_code=404,
                content={
                    "message": "Route not found",
                    "method": request.method,
                    "path": request.url.path,
                },
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """Unexpected failures are logged with traceback and reported without internals."""
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        error = InternalError(detail=str(exc))
        return JSONResponse(status_code=500, content=error.to_dict(debug=app_settings.debug))

    return app


app = create_app()
