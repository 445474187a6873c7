"""Standalone chat relay server.

Usage::

    poetry run chat-relay

    # Custom port / provider:
    PORT=9000 CHAT_PROVIDER=openai poetry run chat-relay

Environment variables (see ``RelayConfig.from_env`` for the full list):
    PORT                — Server port (default: 5000)
    CHAT_PROVIDER       — deepseek, openai, anthropic or custom (default: deepseek)
    DEEPSEEK_API_KEY    — API key of the default provider
    FRONTEND_URL        — Allowed CORS origin (default: http://localhost:3000)
    STATIC_DIR          — Built frontend to serve at / (optional)
    LOG_LEVEL           — Logging level (default: INFO)

Loads .env from the current working directory or any parent directory.
"""

import asyncio
import logging
import os
from contextlib import asynccontextmanager, suppress
from typing import Optional

from chat_relay.config import RelayConfig
from chat_relay.llm_base_client import LlmClient

logger = logging.getLogger(__name__)


async def cleanup_loop(store, interval: float, ttl: float) -> None:
    """Sweep idle conversations every ``interval`` seconds until cancelled.

    A failed sweep is logged and the loop carries on with the next one.
    """
    while True:
        await asyncio.sleep(interval)
        try:
            store.cleanup_expired(ttl=ttl)
        except Exception as e:
            logger.error(f"[APP] Conversation cleanup failed: {type(e).__name__}: {e}", exc_info=True)


def create_app(config: Optional[RelayConfig] = None, client: Optional[LlmClient] = None):
    """Create the FastAPI application.

    Heavy imports happen here so that .env is loaded before any provider
    code runs. Also called by uvicorn via the factory=True flag.

    :param config: Relay configuration. None = read from the environment
    :param client: Completion client. None = built by LLMManager from config
    """
    from fastapi import FastAPI, Request
    from fastapi.exceptions import RequestValidationError
    from fastapi.middleware.cors import CORSMiddleware
    from fastapi.responses import JSONResponse
    from fastapi.staticfiles import StaticFiles

    from chat_relay.api import SessionRegistry, build_http_router, build_ws_router
    from chat_relay.chat_coordinator import ChatCoordinator
    from chat_relay.conversation_store import ConversationStore
    from chat_relay.errors import ChatRelayError
    from chat_relay.limits import MemoryRequestLimit
    from chat_relay.llm_provider_manager import LLMManager

    if config is None:
        from dotenv import load_dotenv, find_dotenv
        load_dotenv(find_dotenv(usecwd=True))
        config = RelayConfig.from_env()
    if client is None:
        client = LLMManager().create_client(config)

    store = ConversationStore(
        max_conversations=config.max_conversations,
        max_messages=config.max_messages_per_conversation,
    )
    registry = SessionRegistry(max_connections=config.max_connections)
    coordinator = ChatCoordinator(store, registry, client, config)
    api_limit = MemoryRequestLimit(
        name="api",
        amount=config.rate_limit_requests,
        window_minutes=config.rate_limit_window_minutes,
    )

    @asynccontextmanager
    async def lifespan(_a):
        task = asyncio.create_task(cleanup_loop(store, config.cleanup_interval, config.conversation_ttl))
        logger.info(
            f"[APP] Chat relay started (provider={config.provider}, model={client.model}, "
            f"broadcast={config.broadcast_mode.value})"
        )
        yield
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task
        await coordinator.drain()
        await client.aclose()
        logger.info("[APP] Chat relay stopped")

    _app = FastAPI(title="chat-relay", docs_url=None, redoc_url=None, lifespan=lifespan)
    _app.state.config = config
    _app.state.store = store
    _app.state.registry = registry
    _app.state.coordinator = coordinator

    _app.add_middleware(
        CORSMiddleware,
        allow_origins=[config.frontend_url],
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
    )

    @_app.exception_handler(ChatRelayError)
    async def chat_relay_error_handler(request: Request, exc: ChatRelayError):
        if exc.status_code >= 500:
            logger.error(f"[HTTP] {request.method} {request.url.path} failed: {exc.error_code} {exc.message}")
        else:
            logger.warning(f"[HTTP] {request.method} {request.url.path} rejected: {exc.error_code} {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"error": exc.public_message})

    @_app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"[HTTP] {request.method} {request.url.path} invalid body: {exc.errors()}")
        return JSONResponse(status_code=400, content={"error": "Invalid request body"})

    @_app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(f"[HTTP] {request.method} {request.url.path} crashed: {type(exc).__name__}: {exc}", exc_info=exc)
        return JSONResponse(status_code=500, content={"error": ChatRelayError.public_message})

    _app.include_router(build_http_router(coordinator, api_limit))
    _app.include_router(build_ws_router(coordinator, registry))

    if config.static_dir and os.path.isdir(config.static_dir):
        _app.mount("/", StaticFiles(directory=config.static_dir, html=True), name="frontend")
        logger.info(f"[APP] Serving frontend from {config.static_dir}")

    return _app


# ── Entry point ──────────────────────────────────────────────────

def main():
    """Load .env, configure logging, and start the server."""
    # find_dotenv() searches upward through parent directories
    from dotenv import load_dotenv, find_dotenv
    load_dotenv(find_dotenv(usecwd=True))

    import uvicorn

    config = RelayConfig.from_env()

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s — %(message)s",
        datefmt="%H:%M:%S",
    )

    print(f"\n  chat-relay → http://localhost:{config.port}\n")
    uvicorn.run(
        "chat_relay.standalone:create_app",
        factory=True,
        host="0.0.0.0",
        port=config.port,
    )


if __name__ == "__main__":
    main()
