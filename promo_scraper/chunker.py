"""
Splits a sanitized document into bounded chunks for selector inference.
"""

import logging
import re
from typing import List

from .logging_utils import log_event

logger = logging.getLogger(__name__)

MAX_CHUNK_LENGTH = 15000

BLOCK_ELEMENTS = (
    "div", "section", "article", "main", "aside", "header",
    "ul", "ol", "li", "dl", "table", "tbody", "thead", "tr",
    "p", "h1", "h2", "h3", "h4", "h5", "h6", "figure", "blockquote",
)

_BLOCK_CLOSE_RE = re.compile(
    r"</(?:" + "|".join(BLOCK_ELEMENTS) + r")\s*>",
    re.IGNORECASE,
)


def find_split_index(text: str, limit: int) -> int:
    """
    Offset right after the last closing block tag that ends within `limit`,
    or `limit` itself when there is none.
    """
    split_at = 0
    for match in _BLOCK_CLOSE_RE.finditer(text, 0, limit):
        split_at = match.end()
    return split_at if split_at > 0 else limit


def split_into_chunks(text: str, max_length: int = MAX_CHUNK_LENGTH) -> List[str]:
    """
    Split `text` into ordered chunks of at most `max_length` characters.

    Chunks are cut right after a closing block element where possible, so
    tags are not broken in half. Joining the chunks gives back `text`.
    """
    if max_length < 1:
        raise ValueError("max_length must be at least 1")

    chunks: List[str] = []
    remaining = text

    while remaining:
        if len(remaining) <= max_length:
            chunks.append(remaining)
            break
        split_at = find_split_index(remaining, max_length)
        chunks.append(remaining[:split_at])
        remaining = remaining[split_at:]

    log_event(
        logger,
        logging.DEBUG,
        "document_chunked",
        total_chunks=len(chunks),
        chunk_sizes=[len(c) for c in chunks],
    )
    return chunks
