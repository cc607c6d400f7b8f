"""Markdown subset used to display advisor replies.

Supports ``**bold**``, ``*italic*``, numbered and bulleted lists, and
blank-line separated paragraphs. Anything else is passed through as-is, so
``render`` never fails on unexpected input.
"""
from __future__ import annotations

import html
import re
from typing import List

_BOLD = re.compile(r"\*\*(.*?)\*\*")
_ITALIC = re.compile(r"\*(.*?)\*")
_NUMBERED_LINE = re.compile(r"^\d+\.[ \t]+(.+)$", re.MULTILINE)
_BULLET_LINE = re.compile(r"^[-•][ \t]+(.+)$", re.MULTILINE)
_ITEM_LINE = re.compile(r"<li>.*</li>")
_LIST_MARKUP = re.compile(r"<(ul|ol|li)")
_TAG = re.compile(r"<(/?)([a-zA-Z][a-zA-Z0-9]*)[^<>]*>")


def render(text: str) -> str:
    """Convert the markdown subset to HTML. Each step relies on the output of the one before."""
    text = _BOLD.sub(r"<strong>\1</strong>", text)
    text = _ITALIC.sub(r"<em>\1</em>", text)
    text = _wrap_item_runs(_NUMBERED_LINE.sub(r"<li>\1</li>", text), "ol")
    # Ordered runs are already folded onto one "<ol>..." line, so only bullet items remain bare.
    text = _wrap_item_runs(_BULLET_LINE.sub(r"<li>\1</li>", text), "ul")

    blocks: List[str] = []
    for paragraph in text.split("\n\n"):
        if _LIST_MARKUP.match(paragraph):
            blocks.append(paragraph)
        else:
            blocks.append("<p>" + paragraph.replace("\n", "<br>") + "</p>")
    return "".join(blocks)


def _wrap_item_runs(text: str, container: str) -> str:
    lines = text.split("\n")
    out: List[str] = []
    run: List[str] = []
    for line in lines:
        if _ITEM_LINE.fullmatch(line):
            run.append(line)
            continue
        if run:
            out.append(f"<{container}>{''.join(run)}</{container}>")
            run = []
        out.append(line)
    if run:
        out.append(f"<{container}>{''.join(run)}</{container}>")
    return "\n".join(out)


def plain_text(markup: str) -> str:
    """Turn rendered HTML back into markdown-subset source.

    ``render(plain_text(render(x)))`` reproduces ``render(x)`` for text
    without angle brackets, which lets a prefix of the result be re-rendered
    while it is being typed out.
    """
    return _flatten(markup, keep_markers=True)


def text_content(markup: str) -> str:
    """Visible text of rendered HTML, for surfaces that cannot show markup."""
    return html.unescape(_flatten(markup, keep_markers=False))


def _flatten(markup: str, *, keep_markers: bool) -> str:
    parts: List[str] = []
    lists: List[List] = []  # [tag, items seen so far]
    depth = 0
    started = False
    top_is_text = False

    def emit(chunk: str) -> None:
        if chunk:
            parts.append(chunk)

    position = 0
    for match in _TAG.finditer(markup):
        text = markup[position:match.start()]
        if text:
            emit(text)
            if depth == 0:
                started = True
                top_is_text = True
        position = match.end()

        closing, tag = match.group(1) == "/", match.group(2).lower()

        if tag == "br":
            emit("\n")
            continue

        if not closing and depth == 0 and tag in ("p", "ol", "ul"):
            # Top-level blocks are separated by a blank line unless raw list text already broke the line.
            ends_line = top_is_text and bool(parts) and parts[-1].endswith("\n")
            if started and not ends_line:
                emit("\n\n")
            started = True
            top_is_text = False

        if tag in ("strong", "em"):
            if keep_markers:
                emit("**" if tag == "strong" else "*")
        elif tag in ("ol", "ul"):
            if closing:
                if lists:
                    lists.pop()
            else:
                lists.append([tag, 0])
        elif tag == "li":
            if not closing and lists:
                kind, seen = lists[-1]
                if seen:
                    emit("\n")
                lists[-1][1] = seen + 1
                emit(f"{seen + 1}. " if kind == "ol" else "- ")
        elif tag != "p":
            emit(match.group(0))
            continue

        depth = max(depth - 1, 0) if closing else depth + 1

    tail = markup[position:]
    if tail:
        emit(tail)
    return "".join(parts)
