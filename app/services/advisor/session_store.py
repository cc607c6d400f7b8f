"""Session storage for advisor conversations."""
from __future__ import annotations

import asyncio
import logging
import secrets
import string
import time
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Dict, Iterable, Optional, Tuple

from .models import ChatMessage, History

logger = logging.getLogger(__name__)

DEFAULT_MAX_MESSAGES = 20
_BASE36 = string.digits + string.ascii_lowercase


def generate_session_token(now: Optional[float] = None) -> str:
    """Mint a ``conv_<epoch-ms>_<base36>`` token. Unique in practice, not secret."""
    millis = int((time.time() if now is None else now) * 1000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"conv_{millis}_{suffix}"


class SessionStore(ABC):
    """Conversation histories keyed by session token.

    Backends only implement ``get``/``put``/``delete``. Minting, trimming and
    per-token ordering live here so every backend behaves the same way.
    """

    def __init__(
        self,
        *,
        max_messages: int = DEFAULT_MAX_MESSAGES,
        token_factory: Callable[[], str] = generate_session_token,
    ) -> None:
        if max_messages < 1:
            raise ValueError("max_messages must be at least 1")
        self.max_messages = max_messages
        self._token_factory = token_factory
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    # ------------------------------------------------------------------
    # Backend interface
    # ------------------------------------------------------------------
    @abstractmethod
    def get(self, token: str) -> Optional[History]:
        """Return the stored history or ``None`` for an unknown token."""

    @abstractmethod
    def put(self, token: str, history: History) -> None:
        """Replace the stored history for ``token``."""

    @abstractmethod
    def delete(self, token: str) -> None:
        """Remove ``token``. Unknown tokens are ignored."""

    # ------------------------------------------------------------------
    # History operations
    # ------------------------------------------------------------------
    def get_or_create(self, token: Optional[str] = None) -> Tuple[str, History]:
        """Resolve ``token`` to its history, minting a new token if it is unknown.

        Nothing is written: a fresh session only exists once messages are
        appended to it.
        """
        if token:
            history = self.get(token)
            if history is not None:
                return token, list(history)
        new_token = self._token_factory()
        logger.info(f"Starting new conversation {new_token}")
        return new_token, []

    def append_and_trim(self, token: str, new_messages: Iterable[ChatMessage]) -> History:
        history = list(self.get(token) or [])
        history.extend(new_messages)
        excess = len(history) - self.max_messages
        if excess > 0:
            history = history[excess:]
        self.put(token, history)
        return list(history)

    @asynccontextmanager
    async def locked(self, token: Optional[str]) -> AsyncIterator[None]:
        """Serialize work on one token. Waiters are admitted in arrival order."""
        if not token:
            yield
            return

        lock = self._locks.get(token)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[token] = lock
        self._lock_users[token] = self._lock_users.get(token, 0) + 1
        try:
            async with lock:
                yield
        finally:
            remaining = self._lock_users[token] - 1
            if remaining:
                self._lock_users[token] = remaining
            else:
                del self._lock_users[token]
                del self._locks[token]


class InMemorySessionStore(SessionStore):
    """Process-local store with optional idle expiry.

    Expired sessions read as unknown immediately and are purged lazily on
    the next write.
    """

    def __init__(
        self,
        *,
        max_messages: int = DEFAULT_MAX_MESSAGES,
        ttl_seconds: Optional[float] = None,
        token_factory: Callable[[], str] = generate_session_token,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(max_messages=max_messages, token_factory=token_factory)
        self.ttl_seconds = ttl_seconds if ttl_seconds and ttl_seconds > 0 else None
        self._clock = clock
        self._sessions: Dict[str, History] = {}
        self._last_write: Dict[str, float] = {}

    def get(self, token: str) -> Optional[History]:
        if self._is_expired(token, self._clock()):
            return None
        history = self._sessions.get(token)
        return list(history) if history is not None else None

    def put(self, token: str, history: History) -> None:
        now = self._clock()
        self._sessions[token] = list(history)
        self._last_write[token] = now
        self._purge_expired(now)

    def delete(self, token: str) -> None:
        self._sessions.pop(token, None)
        self._last_write.pop(token, None)

    def __len__(self) -> int:
        now = self._clock()
        return sum(1 for token in self._sessions if not self._is_expired(token, now))

    def __contains__(self, token: object) -> bool:
        return isinstance(token, str) and self.get(token) is not None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _is_expired(self, token: str, now: float) -> bool:
        if self.ttl_seconds is None:
            return False
        written = self._last_write.get(token)
        return written is not None and now - written > self.ttl_seconds

    def _purge_expired(self, now: float) -> None:
        if self.ttl_seconds is None:
            return
        expired = [token for token in self._sessions if self._is_expired(token, now)]
        for token in expired:
            self.delete(token)
        if expired:
            logger.info(f"Evicted {len(expired)} idle conversation(s)")
