"""
http_client.py - HTTP Client for the Target URL
===============================================
This module sends the rendered request bodies to the target server.

Behaviour:
----------
- Every request is a POST with ``Content-Type: application/json``
- The body is sent exactly as serialized by the caller
- No authentication headers, no retries
- Any completed exchange is returned as (status_code, body_text), whatever
  the status; only transport failures (connection refused, DNS, timeout)
  raise RequestError
"""

import logging
from typing import Tuple

import requests

from .config import Settings
from .errors import RequestError


logger = logging.getLogger(__name__)

JSON_HEADERS = {"Content-Type": "application/json"}


class HttpClient:
    """
    Thin wrapper around a requests Session.

    Usage:
        client = HttpClient(settings)
        status, text = client.post_json("https://example.com/api", '{"id":"1"}')
        client.close()

    The client is also a context manager:
        with HttpClient(settings) as client:
            ...
    """

    def __init__(self, settings: Settings | None = None, session: requests.Session | None = None):
        """
        Args:
            settings: Runtime configuration (only the timeout is used)
            session: Optional pre-built session, mainly for tests
        """
        self.settings = settings or Settings()
        self.s = session or requests.Session()
        self.timeout = self.settings.timeout_sec

    def post_json(self, url: str, body: str) -> Tuple[int, str]:
        """
        POST an already-serialized JSON body.

        Args:
            url: Full target URL
            body: JSON text

        Returns:
            (status_code, response_text)

        Raises:
            RequestError: If no HTTP response was received
        """
        try:
            r = self.s.post(
                url,
                data=body.encode("utf-8"),
                headers=JSON_HEADERS,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise RequestError(f"{type(e).__name__}: {e}", url=url) from e

        content_type = r.headers.get("content-type", "")
        # Without a declared charset requests falls back to ISO-8859-1 for
        # text/* bodies; read them as UTF-8 instead.
        if "charset" not in content_type.lower():
            r.encoding = "utf-8"

        logger.debug(f"{url} answered {r.status_code} ({content_type})")
        return r.status_code, r.text or ""

    def close(self):
        """Close the HTTP session and release pooled connections."""
        self.s.close()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(self, *exc):
        self.close()
