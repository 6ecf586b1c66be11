"""Session Relay FastAPI application entry point."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from session_relay import config
from session_relay.date_utils import utc_now_iso
from session_relay.models import ServiceDescriptor
from session_relay.observability import initialize as initialize_observability, shutdown as shutdown_observability
from session_relay.routers.api import conversation_router, messages_router, sessions_router

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger("relay")

ENDPOINTS = {
    "/": "This status page",
    "/api/sessions": "Get active Claude Code sessions",
    "/api/send-message": "Send message to Claude Code (POST)",
    "/api/conversation/:sessionId": "Get conversation history",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    logger.info("Session relay listening on port %s, reading logs from %s", app.state.port, config.PROJECTS_DIR)
    initialize_observability(app)
    yield
    logger.info("Session relay shutting down")
    shutdown_observability(app)


async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)}, headers=getattr(exc, "headers", None))


async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = "; ".join(str(err.get("msg", "")) for err in errors) or "Invalid request"
    return JSONResponse(status_code=400, content={"error": message})


def create_app(port: Optional[int] = None) -> FastAPI:
    """Build the relay application; ``port`` only feeds the status page."""
    app = FastAPI(
        title="Session Relay API",
        description="Discover and append to Claude Code conversation logs",
        version=config.SERVICE_VERSION,
        lifespan=lifespan,
    )
    app.state.port = config.resolve_port(port)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Origin", "X-Requested-With", "Content-Type", "Accept", "Authorization"],
    )

    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(RequestValidationError, _validation_error)

    app.include_router(sessions_router)
    app.include_router(messages_router)
    app.include_router(conversation_router)

    @app.get("/", response_model=ServiceDescriptor)
    def status(request: Request):
        """Service descriptor."""
        return ServiceDescriptor(
            service=config.SERVICE_NAME,
            status="running",
            port=request.app.state.port,
            version=config.SERVICE_VERSION,
            description="Proxy service for bidirectional communication with Claude Code",
            endpoints=ENDPOINTS,
            timestamp=utc_now_iso(),
        )

    return app


app = create_app()
