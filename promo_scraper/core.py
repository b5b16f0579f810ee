import asyncio
import logging
import time
from enum import Enum
from typing import Any, Callable, List, Optional

import pydantic

from .browser import RenderSession
from .chunker import split_into_chunks
from .combiner import combine_selectors
from .config import ScraperSettings, get_settings
from .errors import InferenceUnavailableError, ScrapeError, SessionError, ValidationError
from .llm import InferenceClient
from .logging_utils import log_event
from .models import BatchResult, PromotionRecord, ScrapeOutcome, ScrapeRequest
from .parser import RecordExtractor
from .rate_limiter import RateLimiter
from .sanitizer import sanitize_html

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    INITIALIZING = "initializing"
    NAVIGATING = "navigating"
    EXTRACTING = "extracting"
    CLOSING = "closing"
    DONE = "done"
    FAILED = "failed"


RenderFactory = Callable[[ScraperSettings], Any]


class ScrapeSession:
    """
    Scrapes promotions from a single URL.

    Launches a render session, navigates, then runs
    sanitize -> chunk -> infer -> combine -> extract against the rendered
    page. Whatever happens, the page and browser are released before the
    outcome is returned; any failure becomes a failed ScrapeOutcome, except
    InferenceUnavailableError, which is raised after cleanup.
    """

    def __init__(
        self,
        url: str,
        inference: InferenceClient,
        settings: Optional[ScraperSettings] = None,
        render_factory: RenderFactory = RenderSession,
    ):
        self.url = url
        self.inference = inference
        self.settings = settings or get_settings()
        self.render_factory = render_factory
        self.state: Optional[SessionState] = None
        self.history: List[SessionState] = []
        self.chunks_total = 0
        self.chunks_skipped = 0

    def _transition(self, state: SessionState) -> None:
        self.state = state
        self.history.append(state)
        log_event(logger, logging.DEBUG, "session_state", url=self.url, state=state.value)

    async def run(self) -> ScrapeOutcome:
        logger.info("Starting scrape of %s", self.url)
        outcome: Optional[ScrapeOutcome] = None
        render = self.render_factory(self.settings)

        try:
            self._transition(SessionState.INITIALIZING)
            await render.launch()

            self._transition(SessionState.NAVIGATING)
            await render.navigate(self.url)

            self._transition(SessionState.EXTRACTING)
            records = await self._extract(render)
            outcome = ScrapeOutcome.succeeded(
                self.url, records, chunks_total=self.chunks_total, chunks_skipped=self.chunks_skipped
            )
            logger.info(
                "Scrape of %s complete: %d promotions (%d/%d chunks skipped)",
                self.url, len(records), self.chunks_skipped, self.chunks_total,
            )

        except InferenceUnavailableError as e:
            e.url = e.url or self.url
            logger.error("Inference service unavailable for %s: %s", self.url, e.message)
            raise
        except ScrapeError as e:
            if e.url is None:
                e.url = self.url
            outcome = self._fail(e)
        except Exception as e:
            outcome = self._fail(SessionError(str(e) or type(e).__name__, url=self.url))

        finally:
            self._transition(SessionState.CLOSING)
            await render.close()
            succeeded = outcome is not None and outcome.success
            self._transition(SessionState.DONE if succeeded else SessionState.FAILED)

        return outcome

    def _fail(self, error: ScrapeError) -> ScrapeOutcome:
        message = error.describe()
        logger.error("Scrape of %s failed (%s): %s", self.url, error.kind, error.message)
        return ScrapeOutcome.failed(
            self.url, message, chunks_total=self.chunks_total, chunks_skipped=self.chunks_skipped
        )

    async def _extract(self, render) -> List[PromotionRecord]:
        html = await render.body_html()
        sanitized = sanitize_html(html)
        log_event(logger, logging.DEBUG, "document_sanitized", url=self.url, raw_length=len(html), sanitized_length=len(sanitized))

        chunks = split_into_chunks(sanitized, self.settings.max_chunk_length)
        self.chunks_total = len(chunks)

        results = await self.inference.infer_chunks(chunks)
        self.chunks_skipped = sum(1 for r in results if not r.ok)

        selector_map = combine_selectors(r.selectors for r in results if r.ok)
        log_event(logger, logging.DEBUG, "selectors_combined", url=self.url, selectors=selector_map.model_dump(by_alias=True))

        extractor = RecordExtractor(selector_map)
        return await extractor.extract(render.document())


class BatchCoordinator:
    """
    Runs one ScrapeSession per URL concurrently and aggregates the outcomes.

    All sessions share one RateLimiter, so the inference budget holds for
    the whole process rather than per session. Each session runs under a
    deadline; a session that overruns it is cancelled and reported as failed.
    """

    def __init__(
        self,
        settings: Optional[ScraperSettings] = None,
        inference: Optional[InferenceClient] = None,
        rate_limiter: Optional[RateLimiter] = None,
        render_factory: RenderFactory = RenderSession,
    ):
        self.settings = settings or get_settings()
        self.rate_limiter = rate_limiter or RateLimiter(
            max_requests=self.settings.max_requests_per_minute,
            delay=self.settings.rate_limit_delay_seconds,
        )
        # Raises SelectorGenerationError up front when no credential is configured
        self.inference = inference or InferenceClient(self.rate_limiter, settings=self.settings)
        self.render_factory = render_factory

    def session_for(self, url: str) -> ScrapeSession:
        return ScrapeSession(url, self.inference, settings=self.settings, render_factory=self.render_factory)

    async def _run_session(self, url: str) -> ScrapeOutcome:
        session = self.session_for(url)
        timeout = self.settings.session_timeout_seconds
        try:
            return await asyncio.wait_for(session.run(), timeout=timeout)
        except asyncio.TimeoutError:
            error = SessionError(f"deadline of {timeout:g}s exceeded", url=url)
            logger.error("Scrape of %s cancelled: %s", url, error.message)
            return ScrapeOutcome.failed(
                url, error.describe(), chunks_total=session.chunks_total, chunks_skipped=session.chunks_skipped
            )
        except InferenceUnavailableError:
            raise
        except Exception as e:
            error = SessionError(str(e) or type(e).__name__, url=url)
            logger.exception("Unexpected error running session for %s", url)
            return ScrapeOutcome.failed(url, error.describe())

    async def run(self, urls: List[str]) -> BatchResult:
        """
        Scrape every URL; per-URL failures end up in `errors`. A rejected
        inference credential is raised once every session has closed.
        """
        start = time.monotonic()
        logger.info("Processing %d URLs", len(urls))

        outcomes = await asyncio.gather(*(self._run_session(url) for url in urls), return_exceptions=True)
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome

        promotions: List[PromotionRecord] = []
        errors: List[str] = []
        for outcome in outcomes:
            if outcome.success:
                promotions.extend(outcome.records)
            else:
                errors.append(outcome.error)

        elapsed_ms = int((time.monotonic() - start) * 1000)
        log_event(
            logger,
            logging.INFO,
            "batch_complete",
            urls=len(urls),
            promotions=len(promotions),
            errors=len(errors),
            execution_time_ms=elapsed_ms,
        )
        return BatchResult(promotions=promotions, errors=errors, execution_time_ms=elapsed_ms)


def parse_scrape_request(body: Any) -> ScrapeRequest:
    """Validate a request body, raising ValidationError with itemized details."""
    try:
        return ScrapeRequest.model_validate(body)
    except pydantic.ValidationError as e:
        details = e.errors(include_url=False, include_context=False)
        raise ValidationError("validation error", details=details) from e


async def scrape_promotions(urls: List[str], settings: Optional[ScraperSettings] = None) -> BatchResult:
    """Validate `urls` and run a batch with a fresh coordinator."""
    request = parse_scrape_request({"urls": urls})
    coordinator = BatchCoordinator(settings=settings)
    return await coordinator.run(request.url_strings)
