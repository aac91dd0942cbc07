"""
Gemini completion gateway.

Talks to Gemini through its OpenAI-compatible chat endpoint, so the request
is a plain list of role/content messages. One attempt per call; retries are
opt-in through RetryingGateway.
"""

import logging
import threading
import time
from typing import Iterable, Protocol

import httpx
import openai
from openai import OpenAI

from .errors import GatewayError

logger = logging.getLogger(__name__)

MODEL = "gemini-2.0-flash"
BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"
TIMEOUT_SECONDS = 30.0


class Gateway(Protocol):
    def complete(self, api_key: str, history: Iterable) -> str: ...


class CompletionGateway:
    def __init__(
        self,
        model: str = MODEL,
        base_url: str = BASE_URL,
        timeout: float = TIMEOUT_SECONDS,
        http_client: httpx.Client | None = None,
    ):
        self.model = model
        self.base_url = base_url
        self.timeout = timeout
        self._http_client = http_client
        self._clients: dict[str, OpenAI] = {}
        self._lock = threading.Lock()

    def _client_for(self, api_key: str) -> OpenAI:
        with self._lock:
            client = self._clients.get(api_key)
            if client is None:
                client = OpenAI(
                    api_key=api_key,
                    base_url=self.base_url,
                    timeout=self.timeout,
                    max_retries=0,
                    http_client=self._http_client,
                )
                self._clients[api_key] = client
            return client

    def complete(self, api_key: str, history: Iterable) -> str:
        """Send the conversation upstream and return the first choice's text."""
        messages = [{"role": m.role, "content": m.content} for m in history]
        client = self._client_for(api_key)

        try:
            response = client.chat.completions.create(
                model=self.model,
                messages=messages,
            )
        except openai.APIStatusError as e:
            raise GatewayError(
                "upstream returned an error",
                status=e.status_code,
                body=e.response.text,
            ) from e
        except openai.APITimeoutError as e:
            raise GatewayError(f"request timed out after {self.timeout:g}s") from e
        except openai.APIError as e:
            raise GatewayError(f"failed to make request: {e}") from e
        except ValueError as e:
            # json.JSONDecodeError on a body that is not JSON
            raise GatewayError(f"failed to unmarshal response: {e}") from e

        choices = getattr(response, "choices", None)
        if not choices:
            raise GatewayError("no candidates in response")

        message = getattr(choices[0], "message", None)
        text = getattr(message, "content", None)
        if not text:
            raise GatewayError("no content parts in response")

        usage = getattr(response, "usage", None)
        if usage is not None:
            logger.debug(
                "model=%s prompt_tokens=%s completion_tokens=%s",
                self.model, usage.prompt_tokens, usage.completion_tokens,
            )
        return text

    def close(self) -> None:
        with self._lock:
            clients, self._clients = list(self._clients.values()), {}
        if self._http_client is None:
            for client in clients:
                client.close()


class RetryingGateway:
    """Retries a gateway on GatewayError with exponential backoff."""

    def __init__(self, inner: Gateway, retries: int = 2, backoff: float = 1.0):
        self.inner = inner
        self.retries = retries
        self.backoff = backoff

    def complete(self, api_key: str, history: Iterable) -> str:
        history = tuple(history)
        for attempt in range(self.retries + 1):
            try:
                return self.inner.complete(api_key, history)
            except GatewayError as e:
                if attempt < self.retries:
                    wait = self.backoff * 2 ** attempt
                    logger.warning("Completion API error: %s, retrying in %.1fs...", e, wait)
                    time.sleep(wait)
                else:
                    raise

    def close(self) -> None:
        close = getattr(self.inner, "close", None)
        if close is not None:
            close()
