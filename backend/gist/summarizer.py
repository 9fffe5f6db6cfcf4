"""
Summarizer: compress text to roughly a target word count with one chat completion.

Best-effort. A failed model call degrades to a deterministic truncation of the input
unless the truncation fallback is switched off, in which case SummarizationError
propagates to the orchestrator.
"""

import logging
from typing import Optional, Sequence

from openai import OpenAI

from gist.errors import SummarizationError
from gist.llm_utils import completion_text
from gist.schemas import SearchResult

logger = logging.getLogger(__name__)

NO_CONTENT_MESSAGE = "No content available to summarize."

# Fallback keeps target_words * TRUNCATION_CHARS_PER_WORD characters
TRUNCATION_CHARS_PER_WORD = 5

SUMMARY_PROMPT = """Please provide a concise summary of the following content in approximately {target_words} words. Focus on the key points and main insights:

Content: {text}

Summary:"""

COMBINED_SYSTEM = """You are a research assistant. You receive a user's search query and a numbered list of web search results (title, URL, snippet).
Write one coherent summary that answers the query using only the information in those results.
Reconcile overlapping points, note disagreements between sources, and refer to sources by their number in square brackets, e.g. [2].
Return plain prose only. No headings or bullet lists."""

COMBINED_USER_TEMPLATE = """Query: {query}

Search results:
{sources}

Write a combined summary of approximately {target_words} words."""


def truncate_fallback(text: str, target_words: int) -> str:
    """Deterministic stand-in summary: the first target_words * 5 characters."""
    return text[: target_words * TRUNCATION_CHARS_PER_WORD]


def combined_source_text(results: Sequence[SearchResult]) -> str:
    """Numbered title/URL/snippet blocks, rank order."""
    blocks = []
    for i, r in enumerate(results, start=1):
        blocks.append(f"[{i}] {r.title}\nURL: {r.url or '(none)'}\n{r.snippet}")
    return "\n\n".join(blocks)


class Summarizer:
    def __init__(
        self,
        client: OpenAI,
        model: str = "gpt-4o-mini",
        truncation_fallback: bool = True,
        temperature: float = 0.3,
    ):
        self.client = client
        self.model = model
        self.truncation_fallback = truncation_fallback
        self.temperature = temperature

    def _complete(self, messages: list[dict[str, str]]) -> str:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            temperature=self.temperature,
        )
        return completion_text(response)

    def _fallback(self, text: str, target_words: int, error: Exception, source: Optional[str] = None) -> str:
        if not self.truncation_fallback:
            raise SummarizationError(str(error)) from error
        logger.warning("Summary generation failed for %s, using truncated content: %s", source or "(no url)", error)
        return truncate_fallback(text, target_words)

    def summarize(self, text: str, target_words: int, source: Optional[str] = None) -> str:
        """Summarize text in about target_words words. source is the originating URL, for logs."""
        if not text or not text.strip():
            return NO_CONTENT_MESSAGE

        prompt = SUMMARY_PROMPT.format(target_words=target_words, text=text)
        logger.debug("Summarizing %d chars to ~%d words", len(text), target_words)
        try:
            summary = self._complete([{"role": "user", "content": prompt}])
        except Exception as e:
            return self._fallback(text, target_words, e, source)
        if not summary:
            return self._fallback(text, target_words, ValueError("model returned an empty completion"), source)
        return summary

    def summarize_combined(self, query: str, results: Sequence[SearchResult], target_words: int) -> str:
        """One summary spanning every result's snippet."""
        snippets = "\n\n".join(r.snippet for r in results if r.snippet and r.snippet.strip())
        if not snippets:
            return NO_CONTENT_MESSAGE

        user_content = COMBINED_USER_TEMPLATE.format(
            query=query,
            sources=combined_source_text(results),
            target_words=target_words,
        )
        try:
            summary = self._complete(
                [
                    {"role": "system", "content": COMBINED_SYSTEM},
                    {"role": "user", "content": user_content},
                ]
            )
        except Exception as e:
            return self._fallback(snippets, target_words, e, f"combined summary of {query!r}")
        if not summary:
            return self._fallback(
                snippets, target_words, ValueError("model returned an empty completion"), f"combined summary of {query!r}"
            )
        return summary
