"""
Place Scraper - FastAPI Application
Main entry point with REST API endpoints.
"""
from typing import Any, Optional

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from place_scraper.config import config
from place_scraper.errors import InvalidInputError, PlaceScraperError
from place_scraper.layers.extraction import PlaceExtractionLayer
from place_scraper.models.place import FailureEnvelope, PlaceEnvelope
from place_scraper.utils.logger import get_logger, set_trace_id


VERSION = "1.0.0"

# Initialize FastAPI app
app = FastAPI(
    title="Place Scraper",
    description="Extracts business details and visitor reviews from Naver Place pages",
    version=VERSION,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Initialize pipeline
extraction_layer = PlaceExtractionLayer()

logger = get_logger("main")


def _failure(error: PlaceScraperError) -> JSONResponse:
    envelope = FailureEnvelope(
        error_kind=error.error_kind,
        message=error.message,
        http_status=error.http_status,
    )
    return JSONResponse(status_code=envelope.http_status, content=envelope.to_response())


async def _scrape(url: Any) -> JSONResponse:
    """Validate the raw input, run the pipeline and map the envelope to HTTP."""
    trace_id = set_trace_id()

    if not url or not isinstance(url, str) or not url.strip():
        logger.warning("place_request_rejected", reason="missing url", trace_id=trace_id)
        return _failure(InvalidInputError("A url string is required"))

    url = url.strip()
    logger.info("place_request", url=url, trace_id=trace_id)

    result = await extraction_layer.run(url)

    if isinstance(result, PlaceEnvelope):
        logger.info(
            "place_request_completed",
            url=url,
            source=result.place_data.source.value,
            review_count=len(result.place_data.reviews),
        )
        return JSONResponse(status_code=200, content=result.to_response())

    logger.info(
        "place_request_failed",
        url=url,
        error_kind=result.error_kind,
        status_code=result.http_status,
    )
    return JSONResponse(status_code=result.http_status, content=result.to_response())


# API Routes
@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": VERSION}


@app.post("/api/place")
async def scrape_place(request: Request):
    """
    Extract place data for the URL in the JSON body: ``{"url": "..."}``.

    Accepts naver.me short links, map.naver.com listing URLs and
    m.place.naver.com detail URLs.
    """
    try:
        payload = await request.json()
    except ValueError:
        set_trace_id()
        logger.warning("place_request_rejected", reason="body is not JSON")
        return _failure(InvalidInputError("Request body must be a JSON object"))

    url = payload.get("url") if isinstance(payload, dict) else None
    return await _scrape(url)


@app.get("/api/place")
async def scrape_place_get(url: Optional[str] = Query(None, description="Place URL to scrape")):
    """Extract place data for the ``url`` query parameter."""
    return await _scrape(url)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.HOST, port=config.PORT)
