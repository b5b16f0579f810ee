"""
Promotion scraper: LLM-inferred selectors applied to rendered retail pages.
"""

from .models import (
    BatchResult,
    ChunkResult,
    FieldSelectorMap,
    PromotionRecord,
    ScrapeOutcome,
    ScrapeRequest,
)
from .errors import (
    BrowserError,
    InferenceUnavailableError,
    ScrapeError,
    SelectorGenerationError,
    SessionError,
    ValidationError,
)
from .sanitizer import sanitize_html
from .chunker import split_into_chunks
from .rate_limiter import RateLimiter
from .llm import InferenceClient
from .combiner import combine_selectors
from .parser import RecordExtractor, StaticDocument
from .browser import RenderSession
from .core import BatchCoordinator, ScrapeSession, SessionState, scrape_promotions

__version__ = "1.0.0"

__all__ = [
    "BatchResult",
    "ChunkResult",
    "FieldSelectorMap",
    "PromotionRecord",
    "ScrapeOutcome",
    "ScrapeRequest",
    "ScrapeError",
    "ValidationError",
    "SelectorGenerationError",
    "InferenceUnavailableError",
    "BrowserError",
    "SessionError",
    "sanitize_html",
    "split_into_chunks",
    "RateLimiter",
    "InferenceClient",
    "combine_selectors",
    "RecordExtractor",
    "StaticDocument",
    "RenderSession",
    "BatchCoordinator",
    "ScrapeSession",
    "SessionState",
    "scrape_promotions",
]
