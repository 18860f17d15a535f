"""
HTTP transport for the delivery API.
"""

import json
import logging
import time
from typing import Dict, Optional

import requests

from ...core.connector import Connector, ConnectorRequest, ConnectorResponse


logger = logging.getLogger(__name__)

# Statuses worth another attempt after a pause
RETRY_STATUSES = frozenset({429, 502, 503, 504})


class HttpConnector(Connector):
    """
    Generic HTTP connector for GET requests against a JSON API.

    Supports:
    - Default headers (auth, content type) merged into every request
    - Rate limiting
    - Retries with exponential backoff on network errors and
      rate-limit/unavailable responses
    """

    def __init__(
        self,
        name: str = "http",
        rate_limit_delay: float = 0.0,
        timeout: int = 30,
        max_retries: int = 3,
        user_agent: Optional[str] = None,
        default_headers: Optional[Dict[str, str]] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the HTTP connector.

        Args:
            name: Connector name
            rate_limit_delay: Minimum seconds between requests
            timeout: Request timeout in seconds
            max_retries: Maximum attempts for a request
            user_agent: Custom User-Agent header
            default_headers: Headers sent with every request
            session: Existing requests session to reuse
        """
        self.name = name
        self.rate_limit_delay = rate_limit_delay
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.user_agent = user_agent or "DeliveryClient/0.1"
        self.default_headers = dict(default_headers or {})
        self.last_request_time = 0.0
        self.session = session or requests.Session()

    def fetch(self, request: ConnectorRequest) -> ConnectorResponse:
        """
        Fetch data via HTTP.

        Args:
            request: The request to execute

        Returns:
            ConnectorResponse with the result; ``status_code`` is 0 and
            ``error_message`` set when no response could be obtained
        """
        if request.method.upper() != "GET":
            raise ValueError(f"Unsupported HTTP method: {request.method}")

        headers = {**self.default_headers, **(request.headers or {})}
        if "User-Agent" not in headers:
            headers["User-Agent"] = self.user_agent

        last_error = None
        for attempt in range(self.max_retries):
            self._wait_for_rate_limit()
            try:
                start_time = time.time()
                response = self.session.get(
                    request.uri,
                    params=request.params,
                    headers=headers,
                    timeout=self.timeout,
                )
                duration_ms = int((time.time() - start_time) * 1000)

                if response.status_code in RETRY_STATUSES and attempt < self.max_retries - 1:
                    delay = self._retry_delay(response, attempt)
                    logger.warning(
                        f"Got {response.status_code} from {request.uri} "
                        f"(attempt {attempt + 1}/{self.max_retries}), retrying in {delay:.1f}s"
                    )
                    time.sleep(delay)
                    continue

                try:
                    payload = response.json()
                except (json.JSONDecodeError, ValueError):
                    payload = {
                        "content_type": response.headers.get("Content-Type", "unknown"),
                        "text": response.text,
                    }

                logger.debug(f"GET {response.url} -> {response.status_code} in {duration_ms}ms")
                return ConnectorResponse(
                    status_code=response.status_code,
                    payload=payload,
                    headers=dict(response.headers),
                    duration_ms=duration_ms,
                )

            except requests.exceptions.RequestException as e:
                last_error = str(e)
                logger.warning(
                    f"Request failed (attempt {attempt + 1}/{self.max_retries}): {e}"
                )

                if attempt < self.max_retries - 1:
                    time.sleep(2 ** attempt)
                    continue

        return ConnectorResponse(
            status_code=0,
            payload={},
            error_message=f"Request failed after {self.max_retries} attempts: {last_error}",
        )

    def _retry_delay(self, response: requests.Response, attempt: int) -> float:
        """Honour the server's reset hint, falling back to exponential backoff."""
        for header in ("X-Contentful-RateLimit-Reset", "Retry-After"):
            value = response.headers.get(header)
            if value:
                try:
                    return float(value)
                except ValueError:
                    pass
        return float(2 ** attempt)

    def _wait_for_rate_limit(self) -> None:
        """Enforce rate limiting between requests."""
        if self.rate_limit_delay > 0:
            elapsed = time.time() - self.last_request_time
            if elapsed < self.rate_limit_delay:
                time.sleep(self.rate_limit_delay - elapsed)
        self.last_request_time = time.time()

    def get_name(self) -> str:
        """Return the connector name."""
        return self.name

    def close(self) -> None:
        """Close the session."""
        if self.session:
            self.session.close()
