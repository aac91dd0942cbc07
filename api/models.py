"""Pydantic request/response schemas for the relay API."""

from pydantic import BaseModel


# ── Requests ───────────────────────────────────────────────────────────────

class PromptRequest(BaseModel):
    # Absent fields are treated the same as empty ones.
    session_id: str = ""
    prompt: str = ""


# ── Responses ──────────────────────────────────────────────────────────────

class PromptResponse(BaseModel):
    session_id: str
    response: str


class ErrorResponse(BaseModel):
    session_id: str
    error: str


class HealthResponse(BaseModel):
    status: str
