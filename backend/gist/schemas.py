"""
Pydantic schemas for the search → enrich → summarize pipeline.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ----- Search -----


class SearchResult(BaseModel):
    """One normalized hit from the search backend, in provider rank order."""

    model_config = ConfigDict(frozen=True)

    title: str
    url: str = Field(default="", description="Result link; may be empty")
    snippet: str
    published_at: Optional[datetime] = None


# ----- Per-result summaries -----


class ContentSource(str, Enum):
    """Which text a summary was derived from."""

    FULL_PAGE = "full_page"
    SNIPPET = "snippet"
    SNIPPET_FALLBACK = "snippet_fallback"


class SummarizedResult(BaseModel):
    """Terminal record for one search result."""

    title: str
    url: str
    published_at: Optional[datetime] = None
    summary: str
    original_snippet: str
    content_source: ContentSource
    content_length: int = Field(default=0, ge=0, description="Characters of text sent to the summarizer")
    error: Optional[str] = Field(default=None, description="Reason the result took the degraded path")


# ----- Request / response -----


class PipelineRequest(BaseModel):
    """Validated once at entry; immutable afterwards."""

    model_config = ConfigDict(frozen=True)

    query: str = Field(..., min_length=1, description="Search query")
    num_results: int = Field(default=5, ge=1, le=10, description="Number of results to summarize")
    summary_length: int = Field(default=150, ge=50, le=500, description="Target summary length in words")

    @field_validator("query")
    @classmethod
    def _strip_query(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("query must not be empty")
        return v


class PipelineDiagnostics(BaseModel):
    search_results_found: int = 0
    summaries_generated: int = 0
    full_page_count: int = 0
    fallback_count: int = 0
    duration_seconds: float = 0.0


class PipelineResponse(BaseModel):
    """Per-result mode output: one SummarizedResult per search hit, rank order."""

    query: str
    results: list[SummarizedResult] = Field(default_factory=list)
    count: int = 0
    timestamp: datetime = Field(default_factory=utc_now)
    message: Optional[str] = Field(default=None, description="Set when the search returned nothing")
    diagnostics: PipelineDiagnostics = Field(default_factory=PipelineDiagnostics)


# ----- Combined summary mode -----


class Source(BaseModel):
    """A search hit listed under a combined summary."""

    title: str
    url: str
    snippet: str
    published_at: Optional[datetime] = None


class CombinedSummaryResponse(BaseModel):
    """Combined mode output: one cross-source summary plus the sources it drew on."""

    query: str
    summary: str = ""
    sources: list[Source] = Field(default_factory=list)
    count: int = 0
    timestamp: datetime = Field(default_factory=utc_now)
    message: Optional[str] = None
