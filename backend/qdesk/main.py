"""
QDesk Chat API - FastAPI Application

Main entry point for the backend API.
Provides auth, thread history, message posting and the /chat WebSocket.
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from qdesk.config.settings import Settings, settings as default_settings
from qdesk.infrastructure.auth.identity_gate import IdentityGate
from qdesk.infrastructure.chat.chat_store import ChatStore
from qdesk.infrastructure.exceptions import (
    QDeskError,
    ValidationError,
    UnauthorizedError,
    NotFoundError,
)

# Configure logging
logging.basicConfig(
    level=getattr(logging, default_settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    app_settings: Settings = app.state.settings
    logger.info(f"QDesk API starting in {app_settings.environment} mode...")

    yield

    logger.info("QDesk API shutting down...")


# ============================================================================
# Exception Handlers
# ============================================================================

async def validation_error_handler(request: Request, exc: ValidationError):
    """Handle validation errors."""
    return JSONResponse(
        status_code=400,
        content=exc.to_dict(),
    )


async def unauthorized_error_handler(request: Request, exc: UnauthorizedError):
    """Handle missing or invalid credentials."""
    return JSONResponse(
        status_code=401,
        content=exc.to_dict(),
        headers={"WWW-Authenticate": "Bearer"},
    )


async def not_found_error_handler(request: Request, exc: NotFoundError):
    """Handle not found errors."""
    return JSONResponse(
        status_code=404,
        content=exc.to_dict(),
    )


async def general_error_handler(request: Request, exc: QDeskError):
    """Handle all other application errors."""
    logger.error(f"Unhandled {exc.__class__.__name__}: {exc.message}")
    return JSONResponse(
        status_code=500,
        content=exc.to_dict(),
    )


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """
    Build a FastAPI application with its own ChatStore and IdentityGate.

    Each call produces fully isolated state, so tests can build one per case.
    """
    app_settings = app_settings or default_settings

    app = FastAPI(
        title="QDesk Chat API",
        description="Thread-scoped real-time messaging over HTTP and WebSocket",
        version="0.1.0",
        lifespan=lifespan,
        debug=app_settings.debug,
    )

    app.state.settings = app_settings
    app.state.chat_store = ChatStore(app_settings)
    app.state.identity_gate = IdentityGate(app_settings)

    # CORS configuration from Settings
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(UnauthorizedError, unauthorized_error_handler)
    app.add_exception_handler(NotFoundError, not_found_error_handler)
    app.add_exception_handler(QDeskError, general_error_handler)

    # ========================================================================
    # Health Check
    # ========================================================================

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "service": app_settings.service_name}

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "ok": True,
            "service": app_settings.service_name,
            "now": int(time.time() * 1000),
        }

    # ========================================================================
    # Routers
    # ========================================================================

    from qdesk.api.routes import auth, threads, chat_socket

    app.include_router(auth.router, prefix="/api", tags=["Auth"])
    app.include_router(threads.router, prefix="/api", tags=["Threads"])
    app.include_router(chat_socket.router, tags=["Chat WebSocket"])

    return app


app = create_app()
