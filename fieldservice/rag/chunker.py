"""Boundary-aware text chunking

Text longer than ``max_chunk_size`` is cut into windows of ``max_chunk_size``
characters. Unless a window reaches the end of the text, the cut prefers, in
order:

1. just after the right-most sentence terminator (``.``, ``!``, ``?``) at or
   before the window end,
2. just before the right-most space at or before the window end,
3. the raw window end,

where options 1 and 2 only count when the boundary lies strictly past the
middle of the window. The next window starts ``overlap`` characters before the
cut, so the tail of the text can yield a few short trailing chunks.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Iterator, List, Tuple
import logging

import tiktoken

from fieldservice.exceptions import ValidationException
from fieldservice.schemas.document import ChunkMetadata

logger = logging.getLogger(__name__)

SENTENCE_TERMINATORS = (".", "!", "?")
DEFAULT_MAX_CHUNK_SIZE = 1000
DEFAULT_OVERLAP = 100


@dataclass
class TextChunk:
    """A chunk ready for embedding"""
    content: str
    chunk_index: int
    metadata: ChunkMetadata


@lru_cache(maxsize=1)
def _get_encoding():
    """Load the cl100k_base encoder once"""
    try:
        return tiktoken.get_encoding("cl100k_base")
    except Exception as e:
        logger.warning(f"tiktoken encoding unavailable, estimating token counts: {e}")
        return None


def count_tokens(text: str) -> int:
    """Count tokens in text"""
    encoding = _get_encoding()
    if encoding:
        return len(encoding.encode(text))
    # Rough estimate
    return len(text) // 4


def _validate_params(max_chunk_size: int, overlap: int):
    if max_chunk_size < 1:
        raise ValidationException(f"max_chunk_size must be positive, got {max_chunk_size}")
    if overlap < 0:
        raise ValidationException(f"overlap must not be negative, got {overlap}")


def _find_boundary(text: str, start: int, end: int, max_chunk_size: int) -> int:
    """Pick the cut position for the window [start, end)"""
    midpoint = start + max_chunk_size * 0.5

    # The character sitting on the window end is a candidate too
    sentence_end = max(text.rfind(t, start, end + 1) for t in SENTENCE_TERMINATORS)
    if sentence_end > midpoint:
        return sentence_end + 1

    word_boundary = text.rfind(" ", start, end + 1)
    if word_boundary > midpoint:
        return word_boundary

    return end


def _iter_windows(text: str, max_chunk_size: int, overlap: int) -> Iterator[Tuple[int, int]]:
    """Yield (start, end) slice positions in document order"""
    text_length = len(text)
    if text_length <= max_chunk_size:
        yield 0, text_length
        return

    start = 0
    while start < text_length:
        end = start + max_chunk_size
        if end < text_length:
            end = _find_boundary(text, start, end, max_chunk_size)

        yield start, min(end, text_length)

        # Always move forward, even when overlap >= chunk size
        start = max(end - overlap, start + 1)


def chunk_text(
    text: str,
    max_chunk_size: int = DEFAULT_MAX_CHUNK_SIZE,
    overlap: int = DEFAULT_OVERLAP
) -> List[str]:
    """
    Split text into overlapping chunks at sentence or word boundaries

    Args:
        text: Text to chunk
        max_chunk_size: Window length in characters
        overlap: Characters shared between consecutive chunks

    Returns:
        List of trimmed, non-empty chunks
    """
    if not text:
        return []
    _validate_params(max_chunk_size, overlap)

    chunks = []
    for start, end in _iter_windows(text, max_chunk_size, overlap):
        chunk = text[start:end].strip()
        if chunk:
            chunks.append(chunk)
    return chunks


def chunk_document(
    text: str,
    max_chunk_size: int = DEFAULT_MAX_CHUNK_SIZE,
    overlap: int = DEFAULT_OVERLAP
) -> List[TextChunk]:
    """
    Chunk text and attach per-chunk metadata

    Boundaries are identical to chunk_text(); chunk_index is contiguous
    because empty slices are skipped before numbering.
    """
    if not text:
        return []
    _validate_params(max_chunk_size, overlap)

    chunks: List[TextChunk] = []
    for start, end in _iter_windows(text, max_chunk_size, overlap):
        content = text[start:end].strip()
        if not content:
            continue

        index = len(chunks)
        chunks.append(TextChunk(
            content=content,
            chunk_index=index,
            metadata=ChunkMetadata(
                chunk_index=index,
                word_count=len(content.split()),
                length=len(content),
                start_index=start,
                end_index=end,
                token_count=count_tokens(content)
            )
        ))

    logger.info(f"Split text into {len(chunks)} chunks (size: {max_chunk_size}, overlap: {overlap})")
    return chunks
