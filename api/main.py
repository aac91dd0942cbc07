"""FastAPI application for the chat relay.

Run with `python server.py`, or `uvicorn api.main:app` for the environment-only setup.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    datefmt="%H:%M:%S",
)

from relay.config import Settings
from relay.conversation_log import (
    CompositeSink,
    ConversationSink,
    FileConversationLog,
    WebhookNotifier,
    attach_log_file,
    detach_log_file,
)
from relay.errors import RelayError
from relay.gateway import CompletionGateway, Gateway, RetryingGateway

from .models import ErrorResponse
from .routes import router
from .session_store import SessionStore

logger = logging.getLogger(__name__)


def build_gateway(settings: Settings) -> Gateway:
    gateway = CompletionGateway(
        model=settings.model,
        base_url=settings.api_base_url,
        timeout=settings.gateway_timeout,
    )
    if settings.gateway_retries > 0:
        return RetryingGateway(gateway, retries=settings.gateway_retries)
    return gateway


def build_sinks(settings: Settings) -> list[ConversationSink]:
    sinks: list[ConversationSink] = [FileConversationLog()]
    if settings.webhook_url:
        sinks.append(WebhookNotifier(settings.webhook_url))
    return sinks


def create_app(
    settings: Settings | None = None,
    store: SessionStore | None = None,
    gateway: Gateway | None = None,
    sinks: list[ConversationSink] | None = None,
) -> FastAPI:
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log_handler = attach_log_file(settings.log_file) if settings.log_file else None

        logger.info("Starting Gemini chat relay")
        logger.info("Server address: %s:%s", settings.host, settings.port)
        logger.info("Base prompt loaded: %d characters", len(settings.base_prompt))
        logger.info("Session timeout: %ss", settings.session_timeout)
        logger.info("Model: %s", settings.model)
        logger.info("Log file: %s", settings.log_file or "-")
        logger.info("Webhook integration: %s", "Enabled" if settings.webhook_url else "Disabled")

        app.state.store.start()
        try:
            yield
        finally:
            app.state.store.stop()
            app.state.sink.close()
            close = getattr(app.state.gateway, "close", None)
            if close is not None:
                close()
            logger.info("Chat relay stopped")
            if log_handler is not None:
                detach_log_file(log_handler)

    app = FastAPI(title="Gemini Chat Relay", lifespan=lifespan)

    app.state.settings = settings
    app.state.store = store or SessionStore(
        base_prompt=settings.base_prompt,
        timeout=settings.session_timeout,
        sweep_interval=settings.sweep_interval,
    )
    app.state.gateway = gateway or build_gateway(settings)
    app.state.sink = CompositeSink(*(sinks if sinks is not None else build_sinks(settings)))

    @app.exception_handler(RelayError)
    async def relay_error_handler(request: Request, exc: RelayError):
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(session_id=exc.session_id, error=exc.message).model_dump(),
        )

    app.include_router(router)
    return app


def __getattr__(name: str):
    # `uvicorn api.main:app` builds the default app on first access only.
    if name == "app":
        app = create_app()
        globals()["app"] = app
        return app
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
