"""
Content extraction: raw HTML → bounded plain-text excerpt.

Regex-based tag stripping only; navigation and ad text can survive.
"""

import re

DEFAULT_MAX_CHARS = 5000

_COMMENT_RE = re.compile(r"<!--.*?(?:-->|$)", re.DOTALL)
# An unterminated block runs to end of input
_SCRIPT_RE = re.compile(r"<script\b[^>]*>.*?(?:</script\s*>|$)", re.IGNORECASE | re.DOTALL)
_STYLE_RE = re.compile(r"<style\b[^>]*>.*?(?:</style\s*>|$)", re.IGNORECASE | re.DOTALL)
_TAG_RE = re.compile(r"<[^>]*>")
# Dangling "<script" / "</style" fragments with no closing ">"
_LEFTOVER_RE = re.compile(r"<\s*/?\s*(?:script|style)\b", re.IGNORECASE)
_WS_RE = re.compile(r"\s+")


def extract(markup: str, max_chars: int = DEFAULT_MAX_CHARS) -> str:
    """Strip scripts, styles and tags, collapse whitespace, truncate to max_chars."""
    if not markup:
        return ""
    text = _COMMENT_RE.sub(" ", markup)
    text = _SCRIPT_RE.sub(" ", text)
    text = _STYLE_RE.sub(" ", text)
    text = _TAG_RE.sub(" ", text)
    text = _LEFTOVER_RE.sub(" ", text)
    text = _WS_RE.sub(" ", text).strip()
    return text[: max(0, max_chars)]
