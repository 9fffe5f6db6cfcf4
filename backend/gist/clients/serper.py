"""
Serper Search API client. Uses SERPER_API_KEY. Reuses a single requests.Session for performance.
"""

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import requests

from gist.errors import ConfigurationError, SearchProviderError
from gist.schemas import SearchResult

logger = logging.getLogger(__name__)

SERPER_ENDPOINT = "https://google.serper.dev/search"

NO_TITLE = "No title"
NO_SNIPPET = "No description available"

MAX_RESULTS = 10

_ABSOLUTE_DATE_FORMATS = ("%b %d, %Y", "%B %d, %Y", "%d %b %Y", "%d %B %Y", "%Y-%m-%d")
_RELATIVE_DATE_RE = re.compile(r"(\d+)\s+(second|minute|hour|day|week|month|year)s?\s+ago", re.IGNORECASE)
_RELATIVE_UNITS = {
    "second": timedelta(seconds=1),
    "minute": timedelta(minutes=1),
    "hour": timedelta(hours=1),
    "day": timedelta(days=1),
    "week": timedelta(weeks=1),
    "month": timedelta(days=30),
    "year": timedelta(days=365),
}


def parse_published_date(raw: Optional[str], now: Optional[datetime] = None) -> Optional[datetime]:
    """
    Best-effort parse of a Serper "date" field.

    Missing → now. ISO-8601, "Jan 5, 2024", "5 Jan 2024" and "3 days ago" are understood;
    anything else → None.
    """
    now = now or datetime.now(timezone.utc)
    if raw is None or not str(raw).strip():
        return now
    s = str(raw).strip()

    m = _RELATIVE_DATE_RE.search(s)
    if m:
        try:
            return now - int(m.group(1)) * _RELATIVE_UNITS[m.group(2).lower()]
        except OverflowError:
            logger.debug("Relative result date out of range %r", s)
            return None

    try:
        dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
    except ValueError:
        dt = None
    if dt is None:
        for fmt in _ABSOLUTE_DATE_FORMATS:
            try:
                dt = datetime.strptime(s, fmt)
                break
            except ValueError:
                continue
    if dt is None:
        logger.debug("Unparseable result date %r", s)
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _field(item: dict[str, Any], key: str, default: str) -> str:
    value = item.get(key)
    if value is None or isinstance(value, (dict, list)):
        return default
    return str(value).strip() or default


def _to_result(item: dict[str, Any], now: datetime) -> SearchResult:
    return SearchResult(
        title=_field(item, "title", NO_TITLE),
        url=_field(item, "link", ""),
        snippet=_field(item, "snippet", NO_SNIPPET),
        published_at=parse_published_date(item.get("date"), now=now),
    )


def normalize_results(data: dict[str, Any], num_results: int) -> list[SearchResult]:
    """Map a Serper response to SearchResults: organic first, news if organic is empty."""
    now = datetime.now(timezone.utc)
    for category in ("organic", "news"):
        items = data.get(category)
        if not isinstance(items, list) or not items:
            continue
        results = [_to_result(item, now) for item in items[:num_results] if isinstance(item, dict)]
        if results:
            if category != "organic":
                logger.info("No organic results, using %d %s results", len(results), category)
            return results
    return []


class SerperClient:
    """Search Provider Client for google.serper.dev."""

    def __init__(
        self,
        api_key: str,
        session: Optional[requests.Session] = None,
        endpoint: str = SERPER_ENDPOINT,
        country: str = "in",
        language: str = "en",
        timeout: float = 10.0,
    ):
        if not api_key:
            raise ConfigurationError("SERPER_API_KEY is required but not configured")
        self.api_key = api_key
        self.session = session or requests.Session()
        self.endpoint = endpoint
        self.country = country
        self.language = language
        self.timeout = timeout

    def search(self, query: str, num_results: int) -> list[SearchResult]:
        """
        Issue one search call and return at most num_results normalized results.

        Raises:
            SearchProviderError: non-2xx response, transport failure, or a body that is not JSON.
        """
        num_results = max(1, min(num_results, MAX_RESULTS))
        request_data = {
            "q": query,
            "num": num_results,
            "gl": self.country,
            "hl": self.language,
        }
        headers = {
            "X-API-KEY": self.api_key,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        logger.info("Serper search for %r (%d results)", query, num_results)

        try:
            response = self.session.post(
                self.endpoint,
                json=request_data,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error("Serper transport error for query %r: %s", query, e)
            raise SearchProviderError(f"Serper request failed: {e}") from e

        if not response.ok:
            body = response.text
            logger.error("Serper API error: %s - %s", response.status_code, body)
            raise SearchProviderError(
                f"Serper API error: {response.status_code} - {body}",
                status_code=response.status_code,
                body=body,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise SearchProviderError(
                "Serper returned a non-JSON body",
                status_code=response.status_code,
                body=response.text,
            ) from e
        if not isinstance(data, dict):
            raise SearchProviderError(
                "Serper returned an unexpected body",
                status_code=response.status_code,
                body=response.text,
            )

        results = normalize_results(data, num_results)
        logger.info("Serper found %d results for %r", len(results), query)
        return results
