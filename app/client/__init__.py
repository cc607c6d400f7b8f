"""Client-side pieces of the advisor: markdown rendering, typing playback, chat state."""

from .playback import RenderTarget, type_out
from .render import plain_text, render, text_content
from .session import APOLOGY_MESSAGE, WELCOME_MESSAGE, ChatClient
from .view import ChatView, MessageBubble

__all__ = [
    "APOLOGY_MESSAGE",
    "WELCOME_MESSAGE",
    "ChatClient",
    "ChatView",
    "MessageBubble",
    "RenderTarget",
    "plain_text",
    "render",
    "text_content",
    "type_out",
]
