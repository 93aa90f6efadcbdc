from __future__ import annotations

import re
from typing import Final

LONG_TEXT_THRESHOLD: Final[int] = 2000
MAX_CHUNK_CHARS: Final[int] = 1000
CHUNK_SEPARATOR: Final[str] = "\n\n"

# Splits between "</p>" and the next "<p ...>", capturing the whitespace gap.
_PARAGRAPH_BOUNDARY: Final[re.Pattern[str]] = re.compile(r"(?<=</p>)(\s*)(?=<p[\s>])")
_SENTENCE_BOUNDARY: Final[re.Pattern[str]] = re.compile(r"[.!?]+")


def needs_chunking(text: str) -> bool:
    return len(text) > LONG_TEXT_THRESHOLD


def split_text_into_chunks(text: str, *, max_chars: int = MAX_CHUNK_CHARS) -> list[str]:
    """Split long content into provider-sized pieces.

    HTML bodies are cut at paragraph boundaries; plain text is cut at blank
    lines and, for oversized paragraphs, at sentence punctuation.
    """
    if "<p>" in text and "</p>" in text:
        html_chunks = split_html_content(text, max_chars=max_chars)
        if html_chunks:
            return html_chunks

    chunks: list[str] = []
    for paragraph in text.split(CHUNK_SEPARATOR):
        if len(paragraph) <= max_chars:
            chunks.append(paragraph)
            continue

        sentences = [s for s in _SENTENCE_BOUNDARY.split(paragraph) if s.strip()]
        current = ""
        for sentence in sentences:
            if len(current) + len(sentence) > max_chars:
                if current.strip():
                    chunks.append(current.strip())
                current = sentence + "."
            else:
                current += sentence + "."
        if current.strip():
            chunks.append(current.strip())

    return [chunk for chunk in chunks if chunk.strip()]


def split_html_content(html: str, *, max_chars: int = MAX_CHUNK_CHARS) -> list[str]:
    """Group whole ``<p>...</p>`` paragraphs into chunks of roughly ``max_chars``."""
    parts = _PARAGRAPH_BOUNDARY.split(html)
    paragraphs, gaps = parts[0::2], parts[1::2]

    chunks: list[str] = []
    current = ""
    for index, paragraph in enumerate(paragraphs):
        gap = gaps[index - 1] if index else ""
        if current.strip() and len(current) + len(gap) + len(paragraph) > max_chars:
            chunks.append(current.strip())
            current = paragraph
        else:
            current += gap + paragraph

    if current.strip():
        chunks.append(current.strip())
    return chunks
