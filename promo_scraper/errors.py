"""
Error types raised inside the scrape pipeline.

Chunk-level errors are turned into ChunkResult values, session-level errors
into failed ScrapeOutcome values. Only request validation and a completely
unavailable inference service reach the caller.
"""

from typing import Any, List, Optional


class ScrapeError(Exception):
    """Base error carrying optional URL and chunk context."""

    kind = "scrape error"

    def __init__(self, message: str, url: Optional[str] = None, chunk_index: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.url = url
        self.chunk_index = chunk_index

    def describe(self) -> str:
        """Message prefixed with whatever context is known."""
        parts = []
        if self.url:
            parts.append(self.url)
        if self.chunk_index is not None:
            parts.append(f"chunk {self.chunk_index + 1}")
        prefix = " ".join(parts)
        return f"{prefix}: {self.message}" if prefix else self.message


class ValidationError(ScrapeError):
    """Malformed request (bad URL, URL count out of range)."""

    kind = "validation error"

    def __init__(self, message: str, details: Optional[List[Any]] = None):
        super().__init__(message)
        self.details = details or []


class SelectorGenerationError(ScrapeError):
    """Inference service misconfigured, or it answered with nothing usable."""

    kind = "selector generation error"


class BrowserError(ScrapeError):
    """Render engine failed to launch or navigate."""

    kind = "browser error"


class SessionError(ScrapeError):
    """Any other failure inside a session, including its deadline."""

    kind = "session error"


class InferenceUnavailableError(SelectorGenerationError):
    """
    The inference service refused our credential (HTTP 401/403).

    Every chunk of every session would fail the same way, so this is raised
    through the session and the batch instead of being recorded per chunk.
    """
