"""Conversion of article body HTML into plain text."""

from __future__ import annotations

import re

from bs4 import BeautifulSoup

_BLOCK_TAGS = ["p", "h1", "h2", "h3", "h4", "h5", "h6", "li", "blockquote", "figcaption", "pre"]
_WHITESPACE_RE = re.compile(r"\s+")


def _clean(value: str) -> str:
    return _WHITESPACE_RE.sub(" ", value).strip()


def html_to_paragraphs(html: str) -> list[str]:
    """Split body HTML into non-empty paragraph strings."""

    soup = BeautifulSoup(html, "html.parser")
    for node in soup(["script", "style"]):
        node.decompose()

    paragraphs: list[str] = []
    blocks = soup.find_all(_BLOCK_TAGS)
    for block in blocks:
        # Nested blocks (a <p> inside a <blockquote>) are emitted once, by the innermost tag.
        if block.find(_BLOCK_TAGS):
            continue
        text = _clean(block.get_text())
        if text:
            paragraphs.append(text)

    if not paragraphs:
        text = _clean(soup.get_text(" "))
        if text:
            paragraphs.append(text)
    return paragraphs


def html_to_text(html: str) -> str:
    """Return plain text with paragraphs separated by blank lines.

    Falls back to the input when nothing readable can be extracted.
    """

    paragraphs = html_to_paragraphs(html)
    if not paragraphs:
        return html
    return "\n\n".join(paragraphs)
