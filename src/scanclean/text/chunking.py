"""Split document content into word-bounded pieces and merge them back.

Chunks are built for submission to the analysis service (paragraph reflow,
paragraph-length optimization).  A chunk is a run of whole paragraphs --
paragraphs are separated by blank lines and are never split -- closed as soon
as the next paragraph would push its word count past the target.

Chunks never overlap in content.  Each one carries ``previous_overlap``, the
trailing paragraphs of the chunk before it, purely as context for the
service; it is never part of the chunk's own text.  That is why merge() is a
plain ordered concatenation: there is nothing to deduplicate, and matching
repeated paragraphs between neighbours would delete genuine repeats.
"""

import logging
from dataclasses import dataclass

from scanclean.config import ChunkingDefaults

logger = logging.getLogger(__name__)

PARAGRAPH_SEPARATOR = "\n\n"


@dataclass(frozen=True)
class Chunk:
    """One word-bounded, paragraph-aligned slice of a document."""

    index: int
    text: str
    previous_overlap: str
    word_count: int
    start_line: int
    end_line: int


def count_words(text: str) -> int:
    """Whitespace-delimited word count."""
    return len(text.split())


def estimate_tokens(word_count: int) -> int:
    """Rough token estimate for English prose."""
    return int(word_count * 1.3)


def _trailing_context(paragraphs: list[str], overlap_words: int) -> str:
    """Collect paragraphs from the end of a chunk until overlap_words is reached."""
    if overlap_words <= 0:
        return ""
    collected: list[str] = []
    words = 0
    for paragraph in reversed(paragraphs):
        collected.insert(0, paragraph)
        words += count_words(paragraph)
        if words >= overlap_words:
            break
    return PARAGRAPH_SEPARATOR.join(collected)


def chunk(
    content: str,
    target_words: int = ChunkingDefaults.TARGET_WORDS,
    overlap_words: int = ChunkingDefaults.OVERLAP_WORDS,
    min_words: int = ChunkingDefaults.MIN_WORDS,
) -> list[Chunk]:
    """Split content into chunks of roughly target_words words each.

    A paragraph longer than target_words becomes a chunk on its own, and a
    trailing chunk under min_words is folded into its predecessor.  Content
    that already fits in one chunk is returned as a single chunk unchanged.
    """
    total_words = count_words(content)
    if total_words <= target_words:
        return [Chunk(0, content, "", total_words, 0, content.count("\n"))]

    paragraphs = content.split(PARAGRAPH_SEPARATOR)
    chunks: list[Chunk] = []
    current: list[str] = []
    current_words = 0
    current_start = 0
    line = 0
    previous_paragraphs: list[str] = []

    def _close(end_line: int) -> None:
        nonlocal previous_paragraphs
        chunks.append(
            Chunk(
                index=len(chunks),
                text=PARAGRAPH_SEPARATOR.join(current),
                previous_overlap=_trailing_context(previous_paragraphs, overlap_words),
                word_count=current_words,
                start_line=current_start,
                end_line=end_line,
            )
        )
        previous_paragraphs = list(current)

    for paragraph in paragraphs:
        words = count_words(paragraph)
        if current and current_words + words > target_words:
            # the previous paragraph ended two lines back (its last line, then the blank separator)
            _close(line - 2)
            current = []
            current_words = 0
            current_start = line
        current.append(paragraph)
        current_words += words
        line += paragraph.count("\n") + 2

    if current and chunks and current_words < min_words:
        last = chunks.pop()
        current = previous_paragraphs + current
        current_words += last.word_count
        current_start = last.start_line
        previous_paragraphs = last.previous_overlap.split(PARAGRAPH_SEPARATOR) if last.previous_overlap else []
    if current:
        _close(line - 2)

    logger.debug("Chunked %d words into %d chunks (target %d)", total_words, len(chunks), target_words)
    return chunks


def merge(texts: list[str]) -> str:
    """Concatenate processed chunk texts in order with one blank line between them.

    Empty chunks are skipped.  No overlap detection or deduplication.
    """
    result = ""
    for text in texts:
        if not text.strip():
            continue
        if not result:
            result = text
            continue
        result = result.rstrip("\n") + PARAGRAPH_SEPARATOR + text.lstrip("\n")
    return result
