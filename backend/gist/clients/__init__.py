"""Search API clients: Serper."""

from .serper import SerperClient, normalize_results, parse_published_date

__all__ = ["SerperClient", "normalize_results", "parse_published_date"]
