"""
Page fetcher. Never raises: any failure comes back as an empty string.
"""

import logging
import time
from typing import Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; GetAGist/1.0)"
DEFAULT_TIMEOUT = 10.0
DEFAULT_MAX_BYTES = 2_000_000
CHUNK_SIZE = 8192

# Content types worth handing to the extractor; a missing header is let through
TEXT_CONTENT_TYPES = ("text/", "application/xhtml+xml", "application/xml")


class FetchAborted(Exception):
    """Body rejected or abandoned part way through the download."""


class PageFetcher:
    """Single-GET fetcher sharing one requests.Session for connection pooling."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = DEFAULT_TIMEOUT,
        max_bytes: int = DEFAULT_MAX_BYTES,
    ):
        self.session = session or requests.Session()
        self.user_agent = user_agent
        self.timeout = timeout
        self.max_bytes = max_bytes

    def _read_body(self, response: requests.Response, started: float) -> bytes:
        """Read at most max_bytes, giving up once the whole download exceeds the timeout."""
        body = bytearray()
        for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
            if time.monotonic() - started > self.timeout:
                raise FetchAborted(f"download exceeded {self.timeout}s")
            body.extend(chunk)
            if len(body) >= self.max_bytes:
                logger.debug("Body of %s cut at %d bytes", response.url, self.max_bytes)
                return bytes(body[: self.max_bytes])
        return bytes(body)

    def fetch_page(self, url: str) -> str:
        """
        Return the markup at url, or "" on transport error, non-2xx status, non-text
        content type, a download slower than the timeout, or decode failure.
        """
        if not url:
            return ""
        started = time.monotonic()
        try:
            with self.session.get(
                url,
                headers={"User-Agent": self.user_agent},
                timeout=self.timeout,
                stream=True,
            ) as response:
                response.raise_for_status()
                content_type = (response.headers.get("Content-Type") or "").lower()
                if content_type and not content_type.startswith(TEXT_CONTENT_TYPES):
                    raise FetchAborted(f"unsupported content type {content_type!r}")
                body = self._read_body(response, started)
                markup = body.decode(response.encoding or "utf-8")
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else "?"
            logger.warning("Fetch failed for %s: HTTP %s", url, status)
            return ""
        except requests.exceptions.RequestException as e:
            logger.warning("Fetch failed for %s: %s", url, e)
            return ""
        except Exception as e:
            # Aborted downloads, decode failures and anything else the transport throws
            logger.warning("Fetch failed for %s: %s", url, e)
            return ""
        logger.debug("Fetched %s (%d chars)", url, len(markup))
        return markup
