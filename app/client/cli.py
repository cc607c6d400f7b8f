"""Terminal front-end for a running advisor server."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import TextIO

import httpx

from app.core.config import settings

from .render import text_content
from .session import WELCOME_MESSAGE, ChatClient
from .view import ChatView, MessageBubble


class TerminalView(ChatView):
    """Prints bot messages once they are complete. User input is already on screen."""

    def __init__(self, stream: TextIO = sys.stdout) -> None:
        super().__init__()
        self.stream = stream

    def on_bubble_finished(self, bubble: MessageBubble) -> None:
        if bubble.sender != "bot":
            return
        prefix = "! " if bubble.is_error else ""
        self.stream.write(f"\n{prefix}{text_content(bubble.html)}\n\n")
        self.stream.flush()


async def run(base_url: str) -> None:
    view = TerminalView()
    async with httpx.AsyncClient(base_url=base_url, timeout=None) as http:
        client = ChatClient(http, view, animate=False)
        view.add_message(WELCOME_MESSAGE, "bot")
        while True:
            try:
                line = await asyncio.to_thread(input, "> ")
            except EOFError:
                break
            command = line.strip().lower()
            if command in ("/quit", "/exit"):
                break
            if command == "/reset":
                await client.reset()
                continue
            await client.send(line)


def main() -> None:
    parser = argparse.ArgumentParser(description=f"Chat with the {settings.APP_NAME} from a terminal")
    parser.add_argument(
        "--url",
        type=str,
        default=f"http://localhost:{settings.PORT}",
        help="Base URL of the advisor server",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.WARNING, format=settings.LOG_FORMAT)
    print("Type a message, /reset to start over, /quit to leave.")
    try:
        asyncio.run(run(args.url))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
