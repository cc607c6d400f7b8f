"""Advisor gateway orchestrating session storage and provider calls."""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

from app.core.config import settings

from .errors import UpstreamError, ValidationError
from .models import ChatMessage, ChatResult
from .prompts import SYSTEM_PROMPT
from .provider import CompletionProvider, OpenAICompletionProvider, ProviderConfig, resolve_provider_config
from .session_store import InMemorySessionStore, SessionStore

logger = logging.getLogger(__name__)


class AdvisorService:
    """High level facade for advisor conversations."""

    def __init__(
        self,
        store: SessionStore,
        provider: CompletionProvider,
        *,
        system_prompt: str = SYSTEM_PROMPT,
        provider_config: Optional[ProviderConfig] = None,
    ) -> None:
        self.store = store
        self.provider = provider
        self.system_prompt = system_prompt
        self.provider_config = provider_config

    # ------------------------------------------------------------------
    # Messaging
    # ------------------------------------------------------------------
    async def handle_chat(self, session_token: Optional[str], user_text: Optional[str]) -> ChatResult:
        """Run one round trip. History is only written if the provider succeeds."""
        if not user_text or not user_text.strip():
            raise ValidationError("Message is required")

        async with self.store.locked(session_token):
            token, history = self.store.get_or_create(session_token)
            user_message = ChatMessage(role="user", content=user_text)
            working = history + [user_message]

            try:
                reply = await self.provider.complete(self.system_prompt, working)
            except UpstreamError as exc:
                logger.error(f"Upstream completion failed for {token}: {exc}")
                raise

            assistant_message = ChatMessage(role="assistant", content=reply)
            stored = self.store.append_and_trim(token, [user_message, assistant_message])

        logger.debug(f"Conversation {token} now holds {len(stored)} messages")
        return ChatResult(reply=reply, session_token=token)

    # ------------------------------------------------------------------
    # Session management
    # ------------------------------------------------------------------
    async def handle_reset(self, session_token: Optional[str] = None) -> None:
        if not session_token:
            return
        async with self.store.locked(session_token):
            self.store.delete(session_token)
        logger.info(f"Conversation {session_token} reset")


@lru_cache(maxsize=1)
def get_advisor_service() -> AdvisorService:
    config = resolve_provider_config(settings)
    store = InMemorySessionStore(
        max_messages=settings.ADVISOR_MAX_HISTORY,
        ttl_seconds=settings.ADVISOR_SESSION_TTL_SECONDS,
    )
    return AdvisorService(store, OpenAICompletionProvider(config), provider_config=config)
