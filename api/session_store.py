"""In-memory session store for multi-turn conversation history.

Sessions live only in process memory. A background thread sweeps sessions
that have been idle longer than the configured timeout.
"""

import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Iterator, Literal

logger = logging.getLogger(__name__)

SWEEP_INTERVAL_SECONDS = 30.0
MAX_HISTORY = 20

Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class Message:
    role: Role
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass
class Session:
    id: str
    history: list[Message] = field(default_factory=list)
    _last_seen: float = field(default_factory=time.monotonic, repr=False)
    # Held for a whole request, including the completion call.
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)
    # Only ever held for a read or write of _last_seen.
    _ts_lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    @property
    def last_seen(self) -> float:
        with self._ts_lock:
            return self._last_seen

    def touch(self, now: float | None = None) -> None:
        with self._ts_lock:
            self._last_seen = time.monotonic() if now is None else now

    @contextmanager
    def lock(self) -> Iterator["Session"]:
        """Exclusive access to the history for the duration of one request."""
        with self._lock:
            yield self

    def append(self, message: Message) -> None:
        self.history.append(message)

    def truncate_if_needed(self, max_len: int = MAX_HISTORY) -> bool:
        """Keep the system message plus the newest ``max_len - 1`` messages.

        Returns True when older messages were dropped.
        """
        if len(self.history) <= max_len:
            return False
        self.history = self.history[:1] + self.history[len(self.history) - (max_len - 1):]
        return True

    def snapshot(self) -> tuple[Message, ...]:
        return tuple(self.history)


class SessionStore:
    def __init__(
        self,
        base_prompt: str,
        timeout: float,
        sweep_interval: float = SWEEP_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._base_prompt = base_prompt
        self._timeout = timeout
        self._sweep_interval = sweep_interval
        self._clock = clock
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def get_or_create(self, session_id: str) -> Session:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                session = Session(
                    id=session_id,
                    history=[Message(role="system", content=self._base_prompt)],
                    _last_seen=self._clock(),
                )
                self._sessions[session_id] = session
                logger.info("Created new session: %s", session_id)
            else:
                session.touch(self._clock())
                logger.info("Session accessed: %s", session_id)
            return session

    def get(self, session_id: str) -> Session | None:
        with self._lock:
            return self._sessions.get(session_id)

    def ids(self) -> list[str]:
        with self._lock:
            return list(self._sessions)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._sessions

    def sweep(self, now: float, timeout: float) -> int:
        """Remove sessions idle for longer than ``timeout``. Returns the count removed."""
        with self._lock:
            expired = [
                sid for sid, s in self._sessions.items()
                if now - s.last_seen > timeout
            ]
            for sid in expired:
                del self._sessions[sid]
        if expired:
            logger.info(
                "Cleaned up %d expired session(s) (timeout: %ss)", len(expired), timeout
            )
        return len(expired)

    # ── Background sweeper ──────────────────────────────────────────────────

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, name="session-sweeper", daemon=True
        )
        self._thread.start()
        logger.debug("Session sweeper started (interval=%ss)", self._sweep_interval)

    def stop(self) -> None:
        thread = self._thread
        if thread is None:
            return
        self._stop.set()
        thread.join()
        self._thread = None
        logger.debug("Session sweeper stopped")

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run(self) -> None:
        while not self._stop.wait(self._sweep_interval):
            try:
                self.sweep(self._clock(), self._timeout)
            except Exception:
                logger.exception("Session sweep failed")
