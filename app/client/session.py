"""HTTP client for the advisor API with the chat window's waiting state."""
from __future__ import annotations

import logging
from typing import Optional

import httpx

from .view import ChatView

logger = logging.getLogger(__name__)

APOLOGY_MESSAGE = (
    "Sorry, I encountered an error processing your request. "
    "Please make sure the server is running and configured correctly."
)

RESET_FAILED_MESSAGE = "Failed to reset conversation. Please try again."

WELCOME_MESSAGE = """👋 Hello! I'm your Azure vs Databricks advisor. I can help you compare these platforms across:

💰 Cost & Pricing Models
🔧 Technical Capabilities (Data Processing, ML/AI)
🔗 Integration & Ecosystem
📈 Scalability & Performance
🔒 Security & Governance

What would you like to know? Feel free to share your specific use case, current setup, or any questions you have!"""


class ChatClient:
    """Sends one message at a time and mirrors the exchange into a ``ChatView``."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        view: Optional[ChatView] = None,
        *,
        animate: bool = True,
    ) -> None:
        self.http = http
        self.view = view or ChatView()
        self.animate = animate
        self.conversation_id: Optional[str] = None
        self.is_waiting = False

    async def send(self, text: str) -> bool:
        """Send ``text``. Returns False when it was ignored (empty, or a request is pending)."""
        message = text.strip()
        if not message or self.is_waiting:
            return False

        self.view.add_message(message, "user")
        self._set_loading(True)
        try:
            response = await self.http.post(
                "/api/chat",
                json={"message": message, "conversationId": self.conversation_id},
            )
            response.raise_for_status()
            data = response.json()
            reply = data["message"]
            self.conversation_id = data["conversationId"]
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
            logger.error(f"Chat request failed: {exc}")
            self.view.add_message(APOLOGY_MESSAGE, "bot", is_error=True)
        else:
            self.view.add_message(reply, "bot", animate=self.animate)
        finally:
            self._set_loading(False)
        return True

    async def reset(self) -> bool:
        """Forget the conversation here and on the server, then greet again."""
        try:
            if self.conversation_id:
                response = await self.http.post(
                    "/api/reset",
                    json={"conversationId": self.conversation_id},
                )
                response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error(f"Error resetting conversation: {exc}")
            self.view.add_message(RESET_FAILED_MESSAGE, "bot", is_error=True)
            return False

        self.conversation_id = None
        self.view.clear()
        self.view.add_message(WELCOME_MESSAGE, "bot")
        return True

    def _set_loading(self, loading: bool) -> None:
        self.is_waiting = loading
        self.view.set_loading(loading)
