"""Headless model of the chat window: message list, input controls, indicator."""
from __future__ import annotations

import asyncio
from typing import List, Literal, Set

from .playback import TYPING_DELAY_SECONDS, type_out
from .render import render

Sender = Literal["user", "bot"]


class MessageBubble:
    """One message in the list. Acts as the render target for its own animation."""

    def __init__(self, view: "ChatView", sender: Sender, *, is_error: bool = False) -> None:
        self.view = view
        self.sender = sender
        self.is_error = is_error
        self.html = ""

    def replace_html(self, html: str) -> None:
        self.html = html
        self.view.on_bubble_changed(self)

    def scroll_to_bottom(self) -> None:
        self.view.scroll_to_bottom()


class ChatView:
    def __init__(self, *, typing_delay: float = TYPING_DELAY_SECONDS) -> None:
        self.typing_delay = typing_delay
        self.messages: List[MessageBubble] = []
        self.send_enabled = True
        self.input_enabled = True
        self.typing_indicator = False
        self.scroll_pins = 0
        self._animations: Set["asyncio.Task[None]"] = set()

    def add_message(
        self,
        content: str,
        sender: Sender,
        *,
        is_error: bool = False,
        animate: bool = False,
    ) -> MessageBubble:
        bubble = MessageBubble(self, sender, is_error=is_error)
        self.messages.append(bubble)
        if animate:
            # Fire and forget; a newer message does not interrupt this one.
            task = asyncio.ensure_future(self._play(bubble, content))
            self._animations.add(task)
            task.add_done_callback(self._animations.discard)
        else:
            bubble.replace_html(render(content))
            self.scroll_to_bottom()
            self.on_bubble_finished(bubble)
        return bubble

    def set_loading(self, loading: bool) -> None:
        self.send_enabled = not loading
        self.input_enabled = not loading
        self.typing_indicator = loading

    def clear(self) -> None:
        self.messages.clear()

    def scroll_to_bottom(self) -> None:
        self.scroll_pins += 1

    async def wait_for_animations(self) -> None:
        while self._animations:
            await asyncio.gather(*list(self._animations))

    # Hooks for concrete surfaces
    def on_bubble_changed(self, bubble: MessageBubble) -> None:
        pass

    def on_bubble_finished(self, bubble: MessageBubble) -> None:
        pass

    async def _play(self, bubble: MessageBubble, content: str) -> None:
        await type_out(content, bubble, delay=self.typing_delay)
        self.on_bubble_finished(bubble)
