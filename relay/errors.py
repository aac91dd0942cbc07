"""Error taxonomy for the relay. Each error knows the HTTP status it maps to."""


class RelayError(Exception):
    status_code = 500
    default_message = "Internal error"

    def __init__(self, message: str | None = None, session_id: str = ""):
        self.message = message or self.default_message
        self.session_id = session_id
        super().__init__(self.message)


class InvalidRequest(RelayError):
    status_code = 400
    default_message = "Invalid request body"


class MissingSessionID(RelayError):
    status_code = 400
    default_message = "Session ID is required"


class MissingPrompt(RelayError):
    status_code = 400
    default_message = "Prompt is required"


class ConfigurationError(RelayError):
    status_code = 500
    default_message = "API key not configured"


class GatewayError(RelayError):
    """Upstream completion call failed. Carries the upstream status/body when known."""

    status_code = 500
    default_message = "Completion request failed"

    def __init__(self, message: str | None = None, status: int | None = None, body: str | None = None):
        super().__init__(message)
        self.status = status
        self.body = body

    def __str__(self) -> str:
        if self.status is not None:
            return f"API error (status {self.status}): {self.body or self.message}"
        return self.message
