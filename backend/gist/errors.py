"""Error taxonomy for the search → enrich → summarize pipeline."""

from typing import Optional


class GistError(Exception):
    """Base class for every error raised by the pipeline."""


class ConfigurationError(GistError, ValueError):
    """A required credential or setting is missing. Raised before any network call."""


class ValidationError(GistError, ValueError):
    """The incoming request failed validation."""


class SearchProviderError(GistError):
    """The search backend failed. Fatal to the request, never retried."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class SummarizationError(GistError):
    """The model call failed and the truncation fallback is disabled."""
