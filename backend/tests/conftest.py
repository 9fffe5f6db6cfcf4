"""Pytest fixtures for the search → enrich → summarize pipeline."""

import time
from datetime import datetime, timezone
from typing import Callable, Optional, Union
from unittest.mock import MagicMock

import pytest
import requests

from gist.config import Settings
from gist.pipeline import SearchSummarizePipeline
from gist.schemas import SearchResult
from gist.summarizer import Summarizer


def make_mock_completion(content: Optional[str]):
    """Shape of an OpenAI chat completion with a single choice."""
    choice = MagicMock()
    choice.message.content = content
    choice.message.role = "assistant"
    resp = MagicMock()
    resp.choices = [choice]
    return resp


def make_http_response(
    status_code: int = 200,
    text: str = "",
    json_data=None,
    content_type: Optional[str] = "text/html; charset=utf-8",
    body: Optional[bytes] = None,
):
    """Stand-in for requests.Response as used by the clients, streamed or not."""
    resp = MagicMock()
    resp.status_code = status_code
    resp.ok = 200 <= status_code < 400
    resp.text = text
    resp.encoding = "utf-8"
    resp.headers = {"Content-Type": content_type} if content_type else {}
    raw = text.encode("utf-8") if body is None else body
    resp.iter_content.side_effect = lambda chunk_size=1, decode_unicode=False: iter(
        [raw[i : i + chunk_size] for i in range(0, len(raw), chunk_size)]
    )
    resp.__enter__.return_value = resp
    resp.__exit__.return_value = False
    if json_data is None:
        resp.json.side_effect = ValueError("No JSON")
    else:
        resp.json.return_value = json_data
    if resp.ok:
        resp.raise_for_status.return_value = None
    else:
        resp.raise_for_status.side_effect = requests.exceptions.HTTPError(f"{status_code} Error", response=resp)
    return resp


class FakeSearchClient:
    def __init__(self, results: Optional[list[SearchResult]] = None, error: Optional[Exception] = None):
        self.results = results or []
        self.error = error
        self.calls: list[tuple[str, int]] = []

    def search(self, query: str, num_results: int) -> list[SearchResult]:
        self.calls.append((query, num_results))
        if self.error:
            raise self.error
        return list(self.results)


class FakeFetcher:
    """url → markup, or url → (delay_seconds, markup). Unknown URLs return ""."""

    def __init__(self, pages: Optional[dict[str, Union[str, tuple[float, str]]]] = None):
        self.pages = pages or {}
        self.calls: list[str] = []

    def fetch_page(self, url: str) -> str:
        self.calls.append(url)
        page = self.pages.get(url, "")
        if isinstance(page, tuple):
            delay, page = page
            time.sleep(delay)
        return page


@pytest.fixture
def http_response():
    return make_http_response


@pytest.fixture
def completion():
    return make_mock_completion


@pytest.fixture
def fake_search():
    return FakeSearchClient


@pytest.fixture
def fake_fetcher():
    return FakeFetcher


@pytest.fixture
def settings():
    return Settings(openai_api_key="test-key", serper_api_key="serper-key", _env_file=None)


@pytest.fixture
def published():
    return datetime(2024, 1, 5, tzinfo=timezone.utc)


@pytest.fixture
def two_results(published):
    return [
        SearchResult(
            title="What is quantum computing?",
            url="https://www.ibm.com/topics/quantum-computing",
            snippet="Quantum computing uses qubits to perform computation.",
            published_at=published,
        ),
        SearchResult(
            title="Quantum computers explained",
            url="https://www.nature.com/articles/quantum-explained",
            snippet="An explainer on superposition and entanglement.",
            published_at=published,
        ),
    ]


@pytest.fixture
def long_page_html():
    body = " ".join(["Qubits hold superpositions of zero and one."] * 10)
    return f"<html><head><style>p{{}}</style><script>track()</script></head><body><p>{body}</p></body></html>"


@pytest.fixture
def serper_two_organic():
    return {
        "organic": [
            {
                "title": "What is quantum computing?",
                "link": "https://www.ibm.com/topics/quantum-computing",
                "snippet": "Quantum computing uses qubits.",
                "date": "Jan 5, 2024",
            },
            {
                "title": "Quantum computers explained",
                "link": "https://www.nature.com/articles/quantum-explained",
                "snippet": "Superposition and entanglement.",
            },
        ]
    }


@pytest.fixture
def mock_llm():
    """OpenAI client double; every completion returns a fixed summary."""
    client = MagicMock()
    client.chat.completions.create.return_value = make_mock_completion("A concise AI summary.")
    return client


@pytest.fixture
def summarizer(mock_llm):
    return Summarizer(client=mock_llm, model="test-model")


@pytest.fixture
def make_pipeline(summarizer) -> Callable[..., SearchSummarizePipeline]:
    def _make(search_client, fetcher=None, summarizer_override=None, **kwargs):
        return SearchSummarizePipeline(
            search_client,
            fetcher or FakeFetcher(),
            summarizer_override or summarizer,
            **kwargs,
        )

    return _make
