"""Chat Relay - FastAPI Application.

Exposes the relay to browser clients:
- POST /chat (also mounted at the Netlify function path)
- OPTIONS preflight with CORS headers
- GET /health
"""

from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from shared.config import Settings, get_settings
from shared.logging import get_logger, setup_logging
from relay.handler import METHOD_NOT_ALLOWED_BODY, handle_chat

logger = get_logger(__name__)

CHAT_PATHS = ("/chat", "/.netlify/functions/openai-chat")


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    mode: str


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> FastAPI:
    """
    Build the ASGI application.

    Args:
        settings: Application settings; loaded from the environment when omitted
        transport: Optional httpx transport for upstream calls

    Returns:
        Configured FastAPI app
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler."""
        setup_logging(settings.log_level, json_output=settings.json_logs)
        logger.info(
            "Starting Chat Relay",
            environment=settings.environment,
            assistants=bool(settings.openai.assistant_id),
        )
        yield
        logger.info("Shutting down Chat Relay")

    app = FastAPI(
        title="Chat Relay",
        description="Relays chat conversations to an LLM provider without exposing the API key",
        version="0.1.0",
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors_origins,
        allow_methods=["POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    async def chat(request: Request) -> Response:
        """Relay a conversation and return ``{"reply": ...}``."""
        result = await handle_chat(await request.body(), settings.openai, transport=transport)
        return Response(
            content=result.body,
            status_code=result.status_code,
            media_type="application/json",
        )

    async def options() -> Response:
        # CORS preflights are answered by the middleware before reaching here
        return Response(status_code=200, headers={"Allow": "POST, OPTIONS"})

    async def method_not_allowed() -> Response:
        return Response(
            content=METHOD_NOT_ALLOWED_BODY,
            status_code=405,
            media_type="application/json",
            headers={"Allow": "POST, OPTIONS"},
        )

    for path in CHAT_PATHS:
        app.add_api_route(path, chat, methods=["POST"], tags=["Chat"])
        app.add_api_route(path, options, methods=["OPTIONS"], include_in_schema=False)
        app.add_api_route(
            path,
            method_not_allowed,
            methods=["GET", "HEAD", "PUT", "PATCH", "DELETE"],
            include_in_schema=False,
        )

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    async def health_check():
        """Health check endpoint. Does not contact the provider."""
        openai = settings.openai
        mode = "assistants" if openai.assistant_id else "responses"
        return HealthResponse(status="ok" if openai.api_key else "unconfigured", mode=mode)

    return app


app = create_app()


def main():
    """Run the relay server."""
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "relay.main:app",
        host=settings.server.host,
        port=settings.server.port,
        reload=settings.environment == "development"
    )


if __name__ == "__main__":
    main()
