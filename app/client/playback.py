"""Typing animation for replies that have already been received in full."""
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Protocol

from .render import plain_text, render

TYPING_DELAY_SECONDS = 0.015


class RenderTarget(Protocol):
    def replace_html(self, html: str) -> None:
        ...

    def scroll_to_bottom(self) -> None:
        ...


async def type_out(
    text: str,
    target: RenderTarget,
    *,
    delay: float = TYPING_DELAY_SECONDS,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> None:
    """Reveal ``text`` one character at a time.

    Every step renders the whole prefix again so the target never holds
    half-written tags. The final step writes the full rendering, which can
    differ from the last prefix when a marker was left open. Overlapping
    markers such as ``***x***`` nest crosswise in every frame, final included.
    """
    final_html = render(text)
    source = plain_text(final_html)

    for end in range(1, len(source) + 1):
        target.replace_html(render(source[:end]))
        target.scroll_to_bottom()
        await sleep(delay)

    target.replace_html(final_html)
    target.scroll_to_bottom()

