import json
import asyncio
import logging
from typing import List, Optional

import httpx

from .config import ScraperSettings, get_settings
from .errors import InferenceUnavailableError, SelectorGenerationError
from .logging_utils import log_event
from .models import ChunkResult, FieldSelectorMap
from .rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

# The credential is rejected; no retry or other chunk can succeed
AUTH_FAILURE_STATUSES = {401, 403}

SYSTEM_PROMPT = (
    "Generate precise, specific CSS selectors for promotion elements. "
    "Respond only with valid JSON."
)


def build_prompt(html: str) -> str:
    """User message sent with each chunk."""
    return f"""Analyze this HTML and return CSS selectors for promotion elements.
Return ONLY the content associated with promotions and discounts, not every element
that merely mentions related words: look at the context of each element.
Selectors must target elements that are present in the HTML below.
Avoid duplicated promotions or discounts.

Respond ONLY with valid JSON in this exact format:

{{"medioPago": "selector", "titulo": "selector", "descripcion": "selector", "fecha": "selector", "condiciones": "selector"}}

Use an empty string for a field that has no matching element.

HTML: {html}"""


def parse_selector_response(content: Optional[str]) -> FieldSelectorMap:
    """Turn the service's reply into a FieldSelectorMap or raise SelectorGenerationError."""
    if not content or not content.strip():
        raise SelectorGenerationError("inference service returned no selectors")
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise SelectorGenerationError(f"response is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise SelectorGenerationError("response JSON is not an object")
    return FieldSelectorMap.model_validate(data)


class InferenceClient:
    """Asks an OpenAI chat model for promotion selectors, one chunk at a time."""

    def __init__(
        self,
        rate_limiter: RateLimiter,
        settings: Optional[ScraperSettings] = None,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self.api_key = api_key or self.settings.openai_api_key
        if not self.api_key:
            raise SelectorGenerationError("OPENAI_API_KEY is not configured")
        self.base_url = self.settings.openai_base_url
        self.rate_limiter = rate_limiter
        self._transport = transport
        self.base_delay = 2.0

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.settings.request_timeout_seconds, transport=self._transport)

    async def infer_selectors(self, chunk: str, client: Optional[httpx.AsyncClient] = None) -> FieldSelectorMap:
        """Infer selectors for one chunk. Raises SelectorGenerationError on any failure."""
        log_event(logger, logging.DEBUG, "inference_request", chunk_length=len(chunk))

        if client is None:
            async with self._client() as own_client:
                return await self._infer(chunk, own_client)
        return await self._infer(chunk, client)

    async def _infer(self, chunk: str, client: httpx.AsyncClient) -> FieldSelectorMap:
        payload = {
            "model": self.settings.openai_model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_prompt(chunk)},
            ],
            "temperature": self.settings.temperature,
            "response_format": {"type": "json_object"},
        }
        max_retries = self.settings.max_retries

        for attempt in range(max_retries + 1):
            await self.rate_limiter.acquire()
            try:
                response = await client.post(
                    self.base_url,
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                    json=payload,
                )
                response.raise_for_status()
                break

            except httpx.HTTPStatusError as e:
                if e.response.status_code in AUTH_FAILURE_STATUSES:
                    raise InferenceUnavailableError(
                        f"inference service rejected the credential (HTTP {e.response.status_code})"
                    ) from e
                if e.response.status_code == 429 and attempt < max_retries:
                    delay = self.base_delay * (2 ** attempt)
                    logger.warning(
                        "Rate limited by inference service. Retrying in %ss (attempt %d/%d)",
                        delay, attempt + 1, max_retries,
                    )
                    await asyncio.sleep(delay)
                    continue
                raise SelectorGenerationError(
                    f"inference service returned HTTP {e.response.status_code}"
                ) from e
            except httpx.HTTPError as e:
                raise SelectorGenerationError(f"inference request failed: {e}") from e

        try:
            result = response.json()
            content = result["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise SelectorGenerationError("inference service returned no selectors") from e

        return parse_selector_response(content)

    async def infer_chunks(self, chunks: List[str]) -> List[ChunkResult]:
        """
        Run inference over chunks strictly in order. A failed chunk is logged
        and recorded as a ChunkResult with an error; it never stops the rest.
        A rejected credential (InferenceUnavailableError) is raised instead.
        """
        results: List[ChunkResult] = []
        async with self._client() as client:
            for index, chunk in enumerate(chunks):
                try:
                    selectors = await self.infer_selectors(chunk, client=client)
                    results.append(ChunkResult(index=index, selectors=selectors))
                except InferenceUnavailableError:
                    raise
                except SelectorGenerationError as e:
                    e.chunk_index = index
                    log_event(
                        logger,
                        logging.ERROR,
                        "chunk_failed",
                        chunk=f"{index + 1}/{len(chunks)}",
                        error=e.message,
                    )
                    results.append(ChunkResult(index=index, error=e.describe()))
        return results
