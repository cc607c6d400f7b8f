"""Data models used by the advisor service."""
from __future__ import annotations

from typing import Dict, List, Literal

from pydantic import BaseModel, ConfigDict

MessageRole = Literal["system", "user", "assistant"]


class ChatMessage(BaseModel):
    """A single conversation turn. Frozen once created."""

    model_config = ConfigDict(frozen=True)

    role: MessageRole
    content: str

    def to_payload(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


class ChatResult(BaseModel):
    """Reply returned to the caller together with the resolved session token."""

    reply: str
    session_token: str


History = List[ChatMessage]
