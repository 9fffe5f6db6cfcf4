"""
Gist API: search the web, summarize each result (or all of them at once).
"""

import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any

from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel

from gist import __version__
from gist.config import Settings
from gist.errors import ConfigurationError, SearchProviderError, ValidationError
from gist.formatting import format_combined, format_digest, format_error
from gist.pipeline import SearchSummarizePipeline, build_pipeline, validate_request
from gist.schemas import CombinedSummaryResponse, PipelineRequest, PipelineResponse

logger = logging.getLogger(__name__)

SERVICE_NAME = "Get-A-Gist"
DESCRIPTION = "Search the web and summarize any content using AI"
TOOLS = ["search_and_summarize"]

app = FastAPI(title=SERVICE_NAME, version=__version__, description=DESCRIPTION)


@lru_cache
def get_settings() -> Settings:
    settings = Settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    return settings


@lru_cache
def get_pipeline() -> SearchSummarizePipeline:
    """Built once on first use and reused by every request."""
    return build_pipeline(get_settings())


class SearchBody(BaseModel):
    # Validated by validate_request so errors come back as 400, not 422
    query: Any = None
    num_results: Any = 5
    summary_length: Any = 150


def _request_from(body: SearchBody) -> PipelineRequest:
    return validate_request(body.query, body.num_results, body.summary_length)


@app.middleware("http")
async def no_cache_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
    response.headers["Pragma"] = "no-cache"
    response.headers["Expires"] = "0"
    return response


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    logger.error("Configuration error: %s", exc)
    return JSONResponse(status_code=503, content={"error": str(exc)})


@app.get("/health")
def health():
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": __version__,
        "tools": TOOLS,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.get("/")
def root():
    return {
        "name": SERVICE_NAME,
        "description": DESCRIPTION,
        "version": __version__,
        "endpoints": {
            "health": "/health",
            "search": "/api/search",
            "digest": "/api/search/digest",
            "combined": "/api/search/combined",
            "openapi": "/openapi.json",
        },
    }


def _search_failed(query: str, exc: SearchProviderError) -> JSONResponse:
    logger.error("Search failed for %r: %s", query, exc)
    return JSONResponse(
        status_code=502,
        content={"error": format_error(query, exc), "upstream_status": exc.status_code},
    )


@app.post("/api/search", response_model=PipelineResponse)
def search(body: SearchBody, pipeline: SearchSummarizePipeline = Depends(get_pipeline)):
    """
    Search, fetch each page when possible, and summarize every result.

    Returns: query, results (title, url, published_at, summary, content_source, ...), count, timestamp.
    """
    request = _request_from(body)
    try:
        return pipeline.run(request)
    except SearchProviderError as e:
        return _search_failed(request.query, e)


@app.post("/api/search/digest", response_class=PlainTextResponse)
def search_digest(
    body: SearchBody,
    pipeline: SearchSummarizePipeline = Depends(get_pipeline),
    settings: Settings = Depends(get_settings),
):
    """Same as /api/search, rendered as a Markdown digest."""
    request = _request_from(body)
    try:
        response = pipeline.run(request)
    except SearchProviderError as e:
        logger.error("Search failed for %r: %s", request.query, e)
        return PlainTextResponse(format_error(request.query, e), status_code=502)
    return PlainTextResponse(format_digest(response, settings.summary_model))


@app.post("/api/search/combined", response_model=CombinedSummaryResponse)
def search_combined(
    body: SearchBody,
    output: str = Query("json", alias="format"),
    pipeline: SearchSummarizePipeline = Depends(get_pipeline),
    settings: Settings = Depends(get_settings),
):
    """One summary across all results' snippets, sources listed separately. ?format=text for Markdown."""
    request = _request_from(body)
    try:
        response = pipeline.run_combined(request)
    except SearchProviderError as e:
        if output == "text":
            logger.error("Search failed for %r: %s", request.query, e)
            return PlainTextResponse(format_error(request.query, e), status_code=502)
        return _search_failed(request.query, e)
    if output == "text":
        return PlainTextResponse(format_combined(response, settings.summary_model))
    return response
