"""API routes: prompt relay and health check."""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from relay.conversation_log import truncate
from relay.errors import (
    ConfigurationError,
    GatewayError,
    InvalidRequest,
    MissingPrompt,
    MissingSessionID,
)

from .models import ErrorResponse, HealthResponse, PromptRequest, PromptResponse
from .session_store import Message

logger = logging.getLogger(__name__)

router = APIRouter()


async def read_prompt_request(request: Request) -> PromptRequest:
    """Decode the body as JSON regardless of the Content-Type header."""
    body = await request.body()
    try:
        return PromptRequest.model_validate_json(body)
    except ValidationError as e:
        logger.warning("Invalid request body: %s", e.errors(include_url=False))
        raise InvalidRequest() from e


@router.post(
    "/prompt",
    response_model=PromptResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def submit_prompt(request: Request, req: PromptRequest = Depends(read_prompt_request)):
    if not req.session_id:
        logger.warning("Missing session ID in request")
        raise MissingSessionID()
    if not req.prompt:
        logger.warning("Missing prompt in request from session %s", req.session_id)
        raise MissingPrompt(session_id=req.session_id)

    state = request.app.state
    settings = state.settings
    if not settings.api_key:
        logger.error("GEMINI_API_KEY is not set")
        raise ConfigurationError(session_id=req.session_id)

    logger.info(
        "Processing prompt from session %s: %s", req.session_id, truncate(req.prompt, 50)
    )

    session = state.store.get_or_create(req.session_id)
    response = error = None

    # Same-session requests queue here; the lock spans the upstream call.
    with session.lock():
        session.append(Message(role="user", content=req.prompt))
        try:
            response = state.gateway.complete(settings.api_key, session.snapshot())
        except GatewayError as e:
            error = str(e)
            logger.error("API error for session %s: %s", req.session_id, error)
        else:
            session.append(Message(role="assistant", content=response))
            if session.truncate_if_needed(settings.max_history):
                logger.info(
                    "Truncated history for session %s to %d messages",
                    req.session_id, settings.max_history,
                )

    state.sink.record(req.session_id, req.prompt, response, error)

    if error is not None:
        return JSONResponse(
            status_code=GatewayError.status_code,
            content=ErrorResponse(session_id=req.session_id, error=error).model_dump(),
        )

    logger.info(
        "Generated response for session %s: %s", req.session_id, truncate(response, 50)
    )
    return PromptResponse(session_id=req.session_id, response=response)


@router.get("/health", response_model=HealthResponse)
def health(request: Request):
    logger.debug("Health check request from %s", request.client.host if request.client else "-")
    return HealthResponse(status="healthy")
