"""
Shared fixtures: settings without delays, a mocked inference service and
a fake render session backed by static HTML.
"""

import asyncio
import json

import httpx
import pytest

from promo_scraper.config import ScraperSettings
from promo_scraper.llm import InferenceClient
from promo_scraper.parser import StaticDocument
from promo_scraper.rate_limiter import RateLimiter


PROMO_PAGE = """
<html>
<head><title>Promos</title><script>var tracking = 1;</script></head>
<body>
  <nav><a href="/">Home</a></nav>
  <div class="promo"><h3 class="title">20% off groceries</h3><p class="desc">Paying with Visa</p></div>
  <div class="promo"><h3 class="title">3x2 on drinks</h3><p class="desc">Thursdays only</p></div>
  <div class="promo"><h3 class="title">Free shipping</h3><p class="desc">Orders over $50</p></div>
  <footer>Copyright</footer>
</body>
</html>
"""

PROMO_SELECTORS = {
    "titulo": ".title",
    "descripcion": ".desc",
    "medioPago": "",
    "fecha": "",
    "condiciones": "",
}


def completion(content):
    """Chat-completions response body carrying `content`."""
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def fixed_transport(content) -> httpx.MockTransport:
    """Inference service that always answers with `content`."""
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=completion(content))
    return httpx.MockTransport(handler)


def sequence_transport(responses) -> httpx.MockTransport:
    """Inference service answering with each (status, content) in turn, then repeating the last."""
    calls = {"n": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        status, content = responses[min(calls["n"], len(responses) - 1)]
        calls["n"] += 1
        if status != 200:
            return httpx.Response(status, json={"error": {"message": "nope"}})
        return httpx.Response(200, json=completion(content))

    transport = httpx.MockTransport(handler)
    transport.calls = calls
    return transport


class FakeRender:
    """Stands in for RenderSession; serves HTML from a url -> page table."""

    def __init__(self, settings, pages, launch_error=None, nav_delay=0.0):
        self.settings = settings
        self.pages = pages
        self.launch_error = launch_error
        self.nav_delay = nav_delay
        self.url = None
        self.launched = False
        self.closed = False

    async def launch(self):
        self.launched = True
        if self.launch_error:
            raise self.launch_error

    async def navigate(self, url):
        self.url = url
        if self.nav_delay:
            await asyncio.sleep(self.nav_delay)
        page = self.pages[url]
        if isinstance(page, Exception):
            raise page

    async def body_html(self):
        return self.pages[self.url]

    def document(self):
        return StaticDocument(self.pages[self.url], url=self.url)

    async def close(self):
        self.closed = True


class RenderFactory:
    """Builds FakeRender instances and remembers them for assertions."""

    def __init__(self, pages, **kwargs):
        self.pages = pages
        self.kwargs = kwargs
        self.created = []

    def __call__(self, settings):
        render = FakeRender(settings, self.pages, **self.kwargs)
        self.created.append(render)
        return render


@pytest.fixture
def settings() -> ScraperSettings:
    return ScraperSettings(
        openai_api_key="test-key",
        max_requests_per_minute=100,
        rate_limit_delay_seconds=0.0,
        max_retries=2,
        session_timeout_seconds=5.0,
    )


@pytest.fixture
def rate_limiter(settings) -> RateLimiter:
    return RateLimiter(settings.max_requests_per_minute, settings.rate_limit_delay_seconds)


@pytest.fixture
def promo_inference(settings, rate_limiter) -> InferenceClient:
    """Inference client whose service always returns the promo selectors."""
    return InferenceClient(rate_limiter, settings=settings, transport=fixed_transport(json.dumps(PROMO_SELECTORS)))
