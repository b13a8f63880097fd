"""
hindivoice/tts/chunker.py
==========================
Speech Text Chunker — HindiVoice Stage 4

Splits Hindi text into bounded chunks for sequential synthesis:

    - Whitespace is collapsed first; text of at most SINGLE_CHUNK_LIMIT
      characters is returned as one chunk.
    - Longer text is split into sentences after terminal punctuation
      (। . ! ?) followed by whitespace, so no word is ever cut.
    - Sentences are packed greedily into chunks of at most MAX_CHUNK_LENGTH
      characters. A sentence is never split, so a single sentence longer
      than the cap becomes an oversize chunk of its own.

Chunks keep their punctuation; joining them with single spaces gives back
the cleaned text exactly.
"""

import re

SINGLE_CHUNK_LIMIT = 100
MAX_CHUNK_LENGTH = 150

_WHITESPACE = re.compile(r"\s+")
_SENTENCE_BOUNDARY = re.compile(r"(?<=[।.!?])\s+")


def clean_text(text: str) -> str:
    """Collapse every whitespace run to one space and trim the ends."""
    return _WHITESPACE.sub(" ", text or "").strip()


def split_sentences(text: str) -> list[str]:
    """
    Split after terminal punctuation (। . ! ?) that is followed by
    whitespace. Punctuation stays on its sentence; empty pieces are dropped.
    """
    return [s.strip() for s in _SENTENCE_BOUNDARY.split(text) if s.strip()]


def chunk_text(text: str, max_length: int = MAX_CHUNK_LENGTH) -> list[str]:
    """
    Split text into speakable chunks.

    Args:
        text:       Raw Hindi text; whitespace is collapsed first.
        max_length: Packing cap for multi-sentence chunks.

    Returns:
        One chunk when the cleaned text fits SINGLE_CHUNK_LIMIT, otherwise
        whole sentences packed greedily up to ``max_length``. Never empty:
        blank input yields [""], which callers reject before speaking.
    """
    cleaned = clean_text(text)
    if len(cleaned) <= SINGLE_CHUNK_LIMIT:
        return [cleaned]

    chunks: list[str] = []
    current = ""
    for sentence in split_sentences(cleaned):
        if current and len(current) + 1 + len(sentence) > max_length:
            chunks.append(current)
            current = sentence
        else:
            current = f"{current} {sentence}" if current else sentence

    if current:
        chunks.append(current)

    return chunks or [cleaned]
