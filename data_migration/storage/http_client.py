"""
HTTP utilities for the blob storage backend.

Provides retries with backoff and circuit breaking for streaming
downloads of stored documents.
"""
import logging
import random
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Dict, Iterator, Optional

import requests

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}
STREAM_CHUNK_SIZE = 64 * 1024


class CircuitOpenError(RuntimeError):
    """Raised when the circuit breaker is open."""


@dataclass
class RetryConfig:
    max_retries: int = 3
    base_delay_seconds: float = 1.0
    max_delay_seconds: float = 60.0
    jitter_ratio: float = 0.3
    timeout_seconds: float = 30.0


class CircuitBreaker:
    """Basic circuit breaker with half-open probe."""

    def __init__(self, failure_threshold: int = 5, open_seconds: int = 300):
        self.failure_threshold = failure_threshold
        self.open_seconds = open_seconds
        self._failure_count = 0
        self._opened_at: Optional[float] = None
        self._half_open = False

    def can_attempt(self) -> bool:
        if self._opened_at is None:
            return True

        if time.monotonic() - self._opened_at >= self.open_seconds:
            if not self._half_open:
                self._half_open = True
                return True
            return False

        return False

    def record_success(self) -> None:
        self._failure_count = 0
        self._opened_at = None
        self._half_open = False

    def record_failure(self) -> None:
        self._failure_count += 1
        if self._failure_count >= self.failure_threshold:
            self._opened_at = time.monotonic()
            self._half_open = False


class HttpClient:
    """HTTP client with retries and circuit breaking, for streamed downloads."""

    def __init__(
        self,
        name: str,
        retry_config: Optional[RetryConfig] = None,
        circuit_breaker: Optional[CircuitBreaker] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.name = name
        self.session = requests.Session()
        if headers:
            self.session.headers.update(headers)
        self.retry_config = retry_config or RetryConfig()
        self.circuit_breaker = circuit_breaker or CircuitBreaker()

    def get_stream(self, url: str) -> Optional[Iterator[bytes]]:
        """
        Open a streamed GET request.

        Args:
            url: Absolute URL to fetch

        Returns:
            Iterator over the body chunks, or None on 404

        Raises:
            CircuitOpenError: If the circuit is open
            requests.RequestException: On transport errors or non-404 error statuses
        """
        response = self._request("GET", url, stream=True)
        if response is None:
            return None
        return self._iter_body(response)

    @staticmethod
    def _iter_body(response: requests.Response) -> Iterator[bytes]:
        with response:
            for chunk in response.iter_content(chunk_size=STREAM_CHUNK_SIZE):
                if chunk:
                    yield chunk

    def _request(self, method: str, url: str, stream: bool = False) -> Optional[requests.Response]:
        if not self.circuit_breaker.can_attempt():
            raise CircuitOpenError(f"{self.name} circuit open")

        last_error: Optional[Exception] = None

        for attempt in range(self.retry_config.max_retries + 1):
            try:
                response = self.session.request(
                    method,
                    url,
                    timeout=self.retry_config.timeout_seconds,
                    stream=stream,
                )
            except requests.RequestException as exc:
                last_error = exc
                if attempt < self.retry_config.max_retries:
                    self._sleep_with_backoff(attempt, None)
                    continue
                self.circuit_breaker.record_failure()
                raise

            if response.status_code == 404:
                # absent blob
                self.circuit_breaker.record_success()
                response.close()
                return None

            if response.status_code in RETRYABLE_STATUS_CODES:
                last_error = requests.HTTPError(f"HTTP {response.status_code}")
                if attempt < self.retry_config.max_retries:
                    retry_after = self._retry_after_seconds(response)
                    response.close()
                    self._sleep_with_backoff(attempt, retry_after)
                    continue
                self.circuit_breaker.record_failure()
                response.raise_for_status()

            if response.status_code >= 400:
                self.circuit_breaker.record_failure()
                response.raise_for_status()

            self.circuit_breaker.record_success()
            return response

        self.circuit_breaker.record_failure()
        raise last_error if last_error else RuntimeError("HTTP request failed")

    def _retry_after_seconds(self, response: requests.Response) -> Optional[float]:
        value = response.headers.get("Retry-After")
        if not value:
            return None

        try:
            return float(value)
        except ValueError:
            try:
                dt = parsedate_to_datetime(value)
                if dt.tzinfo is None:
                    dt = dt.replace(tzinfo=timezone.utc)
                return max(0.0, (dt - datetime.now(timezone.utc)).total_seconds())
            except (TypeError, ValueError):
                logger.debug("Unable to parse Retry-After header: %s", value)
                return None

    def _sleep_with_backoff(self, attempt: int, retry_after: Optional[float]) -> None:
        base = min(
            self.retry_config.max_delay_seconds,
            self.retry_config.base_delay_seconds * (2 ** attempt),
        )
        jitter = base * random.uniform(0, self.retry_config.jitter_ratio)
        delay = base + jitter
        if retry_after is not None:
            delay = max(delay, retry_after)
        time.sleep(delay)
