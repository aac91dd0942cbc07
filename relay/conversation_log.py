"""
Conversation sinks: where each prompt/reply pair is recorded.

Recording is best-effort. A sink that fails is logged and skipped; it never
fails the request that triggered it.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Protocol

import httpx

logger = logging.getLogger(__name__)

CONVERSATION_LOGGER = "relay.conversations"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
WEBHOOK_TIMEOUT_SECONDS = 10.0
WEBHOOK_MAX_PENDING = 100


def truncate(text: str, max_len: int) -> str:
    if len(text) <= max_len:
        return text
    return text[:max_len] + "..."


class ConversationSink(Protocol):
    def record(
        self, session_id: str, prompt: str, response: str | None, error: str | None
    ) -> None: ...


class LogFileHandler(logging.FileHandler):
    """File handler that remembers the conversation logger's prior settings."""

    saved_level = logging.NOTSET
    saved_propagate = True


def attach_log_file(path: str) -> LogFileHandler:
    """Send root and conversation logs to ``path``. Raises OSError if it cannot be opened."""
    handler = LogFileHandler(path, mode="a", encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logging.getLogger().addHandler(handler)

    conversations = logging.getLogger(CONVERSATION_LOGGER)
    handler.saved_level = conversations.level
    handler.saved_propagate = conversations.propagate
    conversations.setLevel(logging.INFO)
    conversations.propagate = False
    conversations.addHandler(handler)
    return handler


def detach_log_file(handler: LogFileHandler) -> None:
    logging.getLogger().removeHandler(handler)
    conversations = logging.getLogger(CONVERSATION_LOGGER)
    conversations.removeHandler(handler)
    conversations.setLevel(handler.saved_level)
    conversations.propagate = handler.saved_propagate
    handler.close()


class FileConversationLog:
    """Writes a full conversation block to the conversation logger."""

    def __init__(self, logger_name: str = CONVERSATION_LOGGER):
        self._logger = logging.getLogger(logger_name)

    def record(self, session_id, prompt, response, error):
        outcome = f"Error: {error}" if error is not None else f"AI Response: {response}"
        self._logger.info(
            "=== CONVERSATION LOG ===\nSession ID: %s\nUser Prompt: %s\n%s\n=== END CONVERSATION ===",
            session_id, prompt, outcome,
        )


class WebhookNotifier:
    """Posts conversation events to a Discord-style webhook off the request thread.

    At most ``max_pending`` posts are queued or in flight; further events are
    dropped until the backlog drains.
    """

    def __init__(
        self,
        url: str,
        username: str = "Chatbot-Events",
        client: httpx.Client | None = None,
        max_workers: int = 2,
        max_pending: int = WEBHOOK_MAX_PENDING,
    ):
        self.url = url
        self.username = username
        self._client = client or httpx.Client(timeout=WEBHOOK_TIMEOUT_SECONDS)
        self._owns_client = client is None
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="webhook")
        self._slots = threading.BoundedSemaphore(max_pending)

    def record(self, session_id, prompt, response, error):
        if error is not None:
            self.send_event("❌ API Error", f"Session: {session_id}\nError: {error}")
        else:
            self.send_event(
                "💬 New Conversation",
                f"Session: {session_id}\nUser: {truncate(prompt, 100)}\n"
                f"AI: {truncate(response or '', 200)}",
            )

    def send_event(self, event: str, message: str) -> None:
        payload = {"content": f"**{event}**\n{message}", "username": self.username}
        if not self._slots.acquire(blocking=False):
            logger.warning("Webhook backlog full, dropping event %r", event)
            return
        try:
            self._pool.submit(self._post, payload)
        except RuntimeError:
            self._slots.release()
            logger.warning("Webhook notifier is closed, dropping event %r", event)

    def _post(self, payload: dict) -> None:
        try:
            resp = self._client.post(self.url, json=payload)
        except httpx.HTTPError as e:
            logger.warning("Failed to send webhook event: %s", e)
            return
        finally:
            self._slots.release()
        if resp.status_code != 204:
            logger.warning("Webhook event failed with status: %d", resp.status_code)

    def close(self) -> None:
        self._pool.shutdown(wait=True)
        if self._owns_client:
            self._client.close()


class CompositeSink:
    """Fans a record out to several sinks, isolating their failures."""

    def __init__(self, *sinks: ConversationSink):
        self.sinks = list(sinks)

    def record(self, session_id, prompt, response, error):
        for sink in self.sinks:
            try:
                sink.record(session_id, prompt, response, error)
            except Exception:
                logger.exception("Conversation sink %s failed", type(sink).__name__)

    def close(self) -> None:
        for sink in self.sinks:
            close = getattr(sink, "close", None)
            if close is None:
                continue
            try:
                close()
            except Exception:
                logger.exception("Closing sink %s failed", type(sink).__name__)
