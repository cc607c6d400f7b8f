"""
Shared pytest configuration.

Puts the project root on sys.path so `import app` works in every test, and
provides an in-process completion provider that records what it was sent.
"""

import asyncio
import sys
from pathlib import Path
from typing import Iterable, List, Optional

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app.services.advisor import AdvisorService, ChatMessage, UpstreamError  # noqa: E402
from app.services.advisor.provider import CompletionProvider, DirectProviderConfig  # noqa: E402
from app.services.advisor.session_store import InMemorySessionStore  # noqa: E402


class RecordingProvider(CompletionProvider):
    """Echoes the latest user message and remembers every request it saw."""

    def __init__(self) -> None:
        self.calls: List[List[ChatMessage]] = []
        self.system_prompts: List[str] = []
        self.replies: List[str] = []
        self.fail_with: Optional[UpstreamError] = None
        self.hold: Optional[asyncio.Event] = None

    async def complete(self, system_prompt: str, history: Iterable[ChatMessage]) -> str:
        snapshot = list(history)
        self.calls.append(snapshot)
        self.system_prompts.append(system_prompt)
        if self.hold is not None:
            await self.hold.wait()
        if self.fail_with is not None:
            raise self.fail_with
        if self.replies:
            return self.replies.pop(0)
        return f"echo: {snapshot[-1].content}"


@pytest.fixture
def provider() -> RecordingProvider:
    return RecordingProvider()


@pytest.fixture
def store() -> InMemorySessionStore:
    return InMemorySessionStore(max_messages=20)


@pytest.fixture
def service(store, provider) -> AdvisorService:
    return AdvisorService(
        store,
        provider,
        system_prompt="You are a test advisor.",
        provider_config=DirectProviderConfig(api_key="sk-test", model="gpt-test"),  # pragma: allowlist secret
    )
