"""
Pipeline orchestrator: query → search → (fetch → extract) → summarize, per result.

Single entry points: SearchSummarizePipeline.run(request) for one summary per result,
SearchSummarizePipeline.run_combined(request) for one summary across all results.
"""

import concurrent.futures
import logging
import time
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence
from urllib.parse import urlparse

import requests
from pydantic import ValidationError as PydanticValidationError

from gist.clients import SerperClient
from gist.config import Settings
from gist.errors import ValidationError
from gist.extractor import DEFAULT_MAX_CHARS, extract
from gist.fetcher import PageFetcher
from gist.llm_utils import build_client
from gist.schemas import (
    CombinedSummaryResponse,
    ContentSource,
    PipelineDiagnostics,
    PipelineRequest,
    PipelineResponse,
    SearchResult,
    Source,
    SummarizedResult,
)
from gist.summarizer import Summarizer

logger = logging.getLogger(__name__)

NO_RESULTS_MESSAGE = "No search results found"
DEADLINE_EXCEEDED = "deadline exceeded"


class SearchClient(Protocol):
    def search(self, query: str, num_results: int) -> list[SearchResult]: ...


class Fetcher(Protocol):
    def fetch_page(self, url: str) -> str: ...


@dataclass(frozen=True)
class StageOutcome:
    """Result of one per-result stage: success, skipped, or degraded with a reason."""

    status: str
    value: str = ""
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == "success"


def validate_request(query: Optional[str], num_results: Optional[int] = 5, summary_length: Optional[int] = 150) -> PipelineRequest:
    """Build a PipelineRequest, turning pydantic errors into ValidationError."""
    try:
        return PipelineRequest(query=query, num_results=num_results, summary_length=summary_length)
    except PydanticValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'request'}: {err['msg']}" for err in e.errors()
        )
        raise ValidationError(details) from e


def _host(url: str) -> str:
    try:
        return (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""


class SearchSummarizePipeline:
    """Retrieve-enrich-summarize orchestrator. Holds long-lived collaborators, no per-request state."""

    def __init__(
        self,
        search_client: SearchClient,
        fetcher: Fetcher,
        summarizer: Summarizer,
        *,
        max_content_chars: int = DEFAULT_MAX_CHARS,
        page_min_chars: Optional[int] = 100,
        placeholder_domains: Sequence[str] = ("example.com",),
        max_concurrency: int = 5,
        request_deadline_seconds: Optional[float] = None,
    ):
        self.search_client = search_client
        self.fetcher = fetcher
        self.summarizer = summarizer
        self.max_content_chars = max_content_chars
        self.page_min_chars = page_min_chars
        self.placeholder_domains = tuple(d.lower().strip(".") for d in placeholder_domains if d)
        self.max_concurrency = max(1, max_concurrency)
        self.request_deadline_seconds = request_deadline_seconds

    # ----- Enrichment -----

    def should_fetch(self, url: str) -> bool:
        """False for empty URLs, URLs without a host, and placeholder domains."""
        if not url or not url.strip():
            return False
        host = _host(url)
        if not host:
            return False
        return not any(host == d or host.endswith("." + d) for d in self.placeholder_domains)

    def accepts_page(self, page_text: str, snippet: str) -> bool:
        """Page text wins if non-empty and longer than the threshold (or the snippet when unset)."""
        if not page_text:
            return False
        if self.page_min_chars is not None:
            return len(page_text) > self.page_min_chars
        return len(page_text) > len(snippet)

    def _enrich(self, result: SearchResult) -> StageOutcome:
        if not self.should_fetch(result.url):
            return StageOutcome("skipped", reason="no fetchable url")
        markup = self.fetcher.fetch_page(result.url)
        text = extract(markup, self.max_content_chars)
        if not text:
            return StageOutcome("degraded", reason="page fetch returned no content")
        if not self.accepts_page(text, result.snippet):
            return StageOutcome("degraded", reason=f"page content too short ({len(text)} chars)")
        return StageOutcome("success", value=text)

    # ----- Per-result state machine -----

    def _snippet_fallback(self, result: SearchResult, reason: str) -> SummarizedResult:
        return SummarizedResult(
            title=result.title,
            url=result.url,
            published_at=result.published_at,
            summary=result.snippet,
            original_snippet=result.snippet,
            content_source=ContentSource.SNIPPET_FALLBACK,
            content_length=len(result.snippet),
            error=reason,
        )

    def process_result(self, result: SearchResult, summary_length: int) -> SummarizedResult:
        """Summarize one search result. Never raises; failures land on the snippet fallback."""
        content = result.snippet
        source = ContentSource.SNIPPET
        try:
            enriched = self._enrich(result)
            if enriched.ok:
                content = enriched.value
                source = ContentSource.FULL_PAGE
            elif enriched.status == "degraded":
                logger.info("Using snippet for %s: %s", result.url, enriched.reason)
            summary = self.summarizer.summarize(content, summary_length, source=result.url)
        except Exception as e:
            logger.warning("Error processing %s: %s", result.url or result.title, e)
            return self._snippet_fallback(result, str(e) or type(e).__name__)

        return SummarizedResult(
            title=result.title,
            url=result.url,
            published_at=result.published_at,
            summary=summary,
            original_snippet=result.snippet,
            content_source=source,
            content_length=len(content),
        )

    def _remaining(self, started: float) -> Optional[float]:
        """Seconds left of the request deadline measured from started, or None when unbounded."""
        if self.request_deadline_seconds is None:
            return None
        return max(0.0, self.request_deadline_seconds - (time.monotonic() - started))

    def _process_all(
        self, results: list[SearchResult], summary_length: int, deadline: Optional[float] = None
    ) -> list[SummarizedResult]:
        """
        Run the per-result state machine concurrently; output keeps search rank order.
        Results still running after deadline seconds fall back to their snippets.
        """
        slots: list[Optional[SummarizedResult]] = [None] * len(results)
        executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=min(self.max_concurrency, len(results)),
            thread_name_prefix="gist-result",
        )
        try:
            future_to_index = {
                executor.submit(self.process_result, result, summary_length): idx
                for idx, result in enumerate(results)
            }
            try:
                for future in concurrent.futures.as_completed(future_to_index, timeout=deadline):
                    idx = future_to_index[future]
                    try:
                        slots[idx] = future.result()
                    except Exception as e:
                        logger.warning("Result %d failed: %s", idx + 1, e)
                        slots[idx] = self._snippet_fallback(results[idx], str(e) or type(e).__name__)
            except concurrent.futures.TimeoutError:
                logger.warning("Request deadline of %ss exceeded", self.request_deadline_seconds)
        finally:
            executor.shutdown(wait=deadline is None, cancel_futures=True)

        return [
            slot if slot is not None else self._snippet_fallback(results[idx], DEADLINE_EXCEEDED)
            for idx, slot in enumerate(slots)
        ]

    # ----- Entry points -----

    def run(self, request: PipelineRequest) -> PipelineResponse:
        """
        Search, then enrich and summarize every result.

        Raises:
            SearchProviderError / ConfigurationError from the search client. Nothing else.
        """
        started = time.monotonic()
        logger.info("Starting search for %r", request.query)
        search_results = self.search_client.search(request.query, request.num_results)[: request.num_results]
        logger.info("Search completed, found %d results", len(search_results))

        if not search_results:
            return PipelineResponse(
                query=request.query,
                message=NO_RESULTS_MESSAGE,
                diagnostics=PipelineDiagnostics(duration_seconds=time.monotonic() - started),
            )

        summarized = self._process_all(search_results, request.summary_length, self._remaining(started))
        diagnostics = PipelineDiagnostics(
            search_results_found=len(search_results),
            summaries_generated=len(summarized),
            full_page_count=sum(1 for r in summarized if r.content_source == ContentSource.FULL_PAGE),
            fallback_count=sum(1 for r in summarized if r.content_source == ContentSource.SNIPPET_FALLBACK),
            duration_seconds=time.monotonic() - started,
        )
        logger.info("Completed processing %d results", len(summarized))
        return PipelineResponse(
            query=request.query,
            results=summarized,
            count=len(summarized),
            diagnostics=diagnostics,
        )

    def run_combined(self, request: PipelineRequest) -> CombinedSummaryResponse:
        """Search, then ask for a single summary across every result's snippet. No page fetching."""
        logger.info("Starting combined summary for %r", request.query)
        search_results = self.search_client.search(request.query, request.num_results)[: request.num_results]
        if not search_results:
            return CombinedSummaryResponse(query=request.query, message=NO_RESULTS_MESSAGE)

        try:
            summary = self.summarizer.summarize_combined(request.query, search_results, request.summary_length)
        except Exception as e:
            logger.warning("Combined summary failed for %r, using snippets: %s", request.query, e)
            summary = "\n\n".join(r.snippet for r in search_results)

        sources = [
            Source(title=r.title, url=r.url, snippet=r.snippet, published_at=r.published_at)
            for r in search_results
        ]
        return CombinedSummaryResponse(
            query=request.query,
            summary=summary,
            sources=sources,
            count=len(sources),
        )


def build_pipeline(settings: Settings) -> SearchSummarizePipeline:
    """
    Construct the pipeline once from validated settings: one HTTP session shared by the
    search client and the fetcher, one OpenAI client for the summarizer.

    Raises:
        ConfigurationError: a credential is missing. No network call has been made.
    """
    settings.require_credentials()
    session = requests.Session()
    search_client = SerperClient(
        api_key=settings.serper_api_key,
        session=session,
        endpoint=settings.search_endpoint,
        country=settings.search_country,
        language=settings.search_language,
        timeout=settings.search_timeout_seconds,
    )
    fetcher = PageFetcher(
        session=session,
        user_agent=settings.fetch_user_agent,
        timeout=settings.fetch_timeout_seconds,
        max_bytes=settings.fetch_max_bytes,
    )
    summarizer = Summarizer(
        client=build_client(settings),
        model=settings.summary_model,
        truncation_fallback=settings.summary_truncation_fallback,
    )
    return SearchSummarizePipeline(
        search_client,
        fetcher,
        summarizer,
        max_content_chars=settings.max_content_chars,
        page_min_chars=settings.page_min_chars,
        placeholder_domains=settings.placeholder_domains,
        max_concurrency=settings.max_concurrency,
        request_deadline_seconds=settings.request_deadline_seconds,
    )
