"""Gist: web search → page enrichment → AI summaries."""

__version__ = "1.0.0"
