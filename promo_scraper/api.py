"""
HTTP endpoint for batch promotion scraping.
"""

import json
import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from .config import ScraperSettings, get_settings
from .core import BatchCoordinator, parse_scrape_request
from .errors import SelectorGenerationError, ValidationError
from .logging_utils import configure_logging

logger = logging.getLogger(__name__)


def create_app(settings: Optional[ScraperSettings] = None, coordinator: Optional[BatchCoordinator] = None) -> FastAPI:
    """
    Build the API. The coordinator (and with it the shared rate limiter) is
    created on first use and reused for every later request.
    """
    app = FastAPI(title="promo-scraper")
    app.state.settings = settings
    app.state.coordinator = coordinator

    def get_coordinator() -> BatchCoordinator:
        if app.state.coordinator is None:
            app.state.coordinator = BatchCoordinator(settings=app.state.settings or get_settings())
        return app.state.coordinator

    @app.post("/api/scrape-promotions")
    async def scrape_promotions(request: Request) -> JSONResponse:
        logger.info("Received scrape request")
        try:
            try:
                body = await request.json()
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                raise ValidationError(
                    "validation error",
                    details=[{"type": "json_invalid", "loc": ["body"], "msg": f"Invalid JSON body: {e}"}],
                ) from e
            logger.debug("Request body: %s", body)

            scrape_request = parse_scrape_request(body)
            coordinator = get_coordinator()
            result = await coordinator.run(scrape_request.url_strings)
            return JSONResponse(status_code=status.HTTP_200_OK, content=result.as_response())

        except ValidationError as e:
            logger.error("Rejected request: %s", e.details)
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content={"error": "validation error", "details": e.details},
            )
        except SelectorGenerationError as e:
            logger.error("Selector generation unavailable: %s", e.message)
            return JSONResponse(
                status_code=422,
                content={"error": "selector generation error", "message": e.message},
            )
        except Exception as e:
            logger.exception("Unhandled error in scrape endpoint")
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"error": "internal server error", "message": str(e) or type(e).__name__},
            )

    return app


def build_default_app() -> FastAPI:
    """Entry point for `uvicorn promo_scraper.api:build_default_app --factory`."""
    configure_logging()
    return create_app()
