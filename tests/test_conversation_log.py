import json
import logging
import threading

import httpx

from relay.conversation_log import (
    CONVERSATION_LOGGER,
    CompositeSink,
    FileConversationLog,
    WebhookNotifier,
    attach_log_file,
    detach_log_file,
    truncate,
)

from .conftest import RecordingSink


def test_truncate():
    assert truncate("short", 10) == "short"
    assert truncate("a" * 12, 10) == "a" * 10 + "..."


def test_file_log_writes_conversation_block(tmp_path):
    path = tmp_path / "chat.log"
    handler = attach_log_file(str(path))
    try:
        FileConversationLog().record("s1", "hello", "hi there", None)
        FileConversationLog().record("s2", "hello", None, "API error (status 500): boom")
    finally:
        detach_log_file(handler)

    text = path.read_text(encoding="utf-8")
    assert "=== CONVERSATION LOG ===" in text
    assert "Session ID: s1" in text
    assert "AI Response: hi there" in text
    assert "Error: API error (status 500): boom" in text
    assert "=== END CONVERSATION ===" in text


def test_webhook_posts_conversation_event():
    posted = []

    def handler(request: httpx.Request) -> httpx.Response:
        posted.append(json.loads(request.content))
        return httpx.Response(204)

    client = httpx.Client(transport=httpx.MockTransport(handler))
    notifier = WebhookNotifier("https://hooks.test/abc", client=client)
    notifier.record("s1", "Where to eat?", "x" * 300, None)
    notifier.close()

    assert len(posted) == 1
    content = posted[0]["content"]
    assert content.startswith("**💬 New Conversation**\nSession: s1")
    assert "User: Where to eat?" in content
    assert "AI: " + "x" * 200 + "..." in content
    assert posted[0]["username"] == "Chatbot-Events"


def test_webhook_posts_error_event():
    posted = []

    def handler(request):
        posted.append(json.loads(request.content))
        return httpx.Response(204)

    notifier = WebhookNotifier(
        "https://hooks.test/abc", client=httpx.Client(transport=httpx.MockTransport(handler))
    )
    notifier.record("s1", "hi", None, "upstream down")
    notifier.close()

    assert posted[0]["content"] == "**❌ API Error**\nSession: s1\nError: upstream down"


def test_webhook_failures_are_logged_not_raised(caplog):
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    notifier = WebhookNotifier(
        "https://hooks.test/abc", client=httpx.Client(transport=httpx.MockTransport(handler))
    )
    with caplog.at_level(logging.WARNING, logger="relay.conversation_log"):
        notifier.record("s1", "hi", "hello", None)
        notifier.close()

    assert "Failed to send webhook event" in caplog.text


def test_webhook_unexpected_status_is_logged(caplog):
    notifier = WebhookNotifier(
        "https://hooks.test/abc",
        client=httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(429))),
    )
    with caplog.at_level(logging.WARNING, logger="relay.conversation_log"):
        notifier.record("s1", "hi", "hello", None)
        notifier.close()

    assert "status: 429" in caplog.text


def test_detach_restores_conversation_logger(tmp_path, caplog):
    conversations = logging.getLogger(CONVERSATION_LOGGER)
    before = (conversations.level, conversations.propagate)

    handler = attach_log_file(str(tmp_path / "chat.log"))
    assert conversations.propagate is False
    detach_log_file(handler)

    assert (conversations.level, conversations.propagate) == before
    with caplog.at_level(logging.INFO, logger=CONVERSATION_LOGGER):
        FileConversationLog().record("after", "hello", "hi", None)
    assert "Session ID: after" in caplog.text


def test_webhook_drops_events_when_backlog_is_full(caplog):
    release = threading.Event()
    posted = []

    def handler(request):
        release.wait(timeout=5)
        posted.append(json.loads(request.content))
        return httpx.Response(204)

    notifier = WebhookNotifier(
        "https://hooks.test/abc",
        client=httpx.Client(transport=httpx.MockTransport(handler)),
        max_workers=1,
        max_pending=1,
    )
    with caplog.at_level(logging.WARNING, logger="relay.conversation_log"):
        notifier.record("s1", "first", "ok", None)
        notifier.record("s2", "second", "ok", None)
        notifier.record("s3", "third", "ok", None)
        release.set()
        notifier.close()

    assert len(posted) == 1
    assert "Session: s1" in posted[0]["content"]
    assert caplog.text.count("Webhook backlog full") == 2


def test_webhook_after_close_drops_event(caplog):
    notifier = WebhookNotifier(
        "https://hooks.test/abc",
        client=httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(204))),
    )
    notifier.close()

    with caplog.at_level(logging.WARNING, logger="relay.conversation_log"):
        notifier.record("s1", "hi", "hello", None)

    assert "dropping event" in caplog.text


def test_composite_isolates_failing_sink():
    class Broken:
        def record(self, *args):
            raise OSError("nope")

    recorder = RecordingSink()
    CompositeSink(Broken(), recorder).record("s1", "hi", "hello", None)

    assert recorder.records == [("s1", "hi", "hello", None)]
