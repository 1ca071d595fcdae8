"""HTTP fetcher for GTFS-realtime buffers with retry logic."""

from dataclasses import dataclass
from datetime import UTC, datetime
from urllib.parse import parse_qs, urlparse, urlunparse

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from gtfs_feedkit.logging import feed_context, get_logger
from gtfs_feedkit.models import DecodeOptions, FeedSource
from gtfs_feedkit.realtime.builder import decode_feed_message
from gtfs_feedkit.realtime.models import FeedMessage

logger = get_logger(__name__)


class NonRetryableError(Exception):
    """Error that should not be retried (e.g., 4xx client errors)."""

    def __init__(self, status_code: int, message: str = "") -> None:
        self.status_code = status_code
        super().__init__(f"HTTP {status_code}: {message}")


@dataclass
class FetchResult:
    """Result of a successful feed fetch."""

    content: bytes
    headers: dict[str, str]
    status_code: int
    fetch_timestamp: datetime
    duration_ms: float
    content_length: int

    @property
    def content_type(self) -> str | None:
        """Get the content-type header if present."""
        return self.headers.get("content-type")

    @property
    def etag(self) -> str | None:
        return self.headers.get("etag")

    @property
    def last_modified(self) -> str | None:
        return self.headers.get("last-modified")


# HTTP status codes that should not be retried
NON_RETRYABLE_STATUS_CODES = {
    400,  # Bad request (our fault)
    401,  # Unauthorized (missing API key)
    403,  # Forbidden (bad API key)
    404,  # Not found (URL changed)
    410,  # Gone (feed discontinued)
}

# Exception types that warrant a retry
RETRYABLE_EXCEPTIONS = (
    httpx.TransportError,  # Connection errors and timeouts
    httpx.HTTPStatusError,  # 5xx server errors (after raise_for_status)
)


def create_retrying(source: FeedSource) -> AsyncRetrying:
    """Create a tenacity AsyncRetrying instance from a source's retry settings."""
    return AsyncRetrying(
        stop=stop_after_attempt(source.retry.max_attempts),
        wait=wait_exponential(
            multiplier=source.retry.backoff_base,
            max=source.retry.backoff_max,
        ),
        retry=retry_if_exception_type(RETRYABLE_EXCEPTIONS),
        reraise=True,
    )


def _split_url(source: FeedSource) -> tuple[str, dict[str, str]]:
    """Return the URL without its query string, and the merged query params.

    Parameters configured on the source override those already in the URL.
    """
    parsed_url = urlparse(str(source.url))
    params: dict[str, str] = {}
    if parsed_url.query:
        params = {k: v[0] for k, v in parse_qs(parsed_url.query).items()}
    params.update(source.query)

    clean_url = urlunparse((
        parsed_url.scheme,
        parsed_url.netloc,
        parsed_url.path,
        parsed_url.params,
        "",  # Rebuilt by httpx from params
        parsed_url.fragment,
    ))
    return clean_url, params


async def _do_fetch(
    client: httpx.AsyncClient,
    source: FeedSource,
) -> FetchResult:
    """Perform a single HTTP fetch attempt.

    Raises:
        NonRetryableError: For 4xx client errors that should not be retried.
        httpx.HTTPStatusError: For other error statuses.
        httpx.TransportError: For network errors and timeouts.
    """
    fetch_start = datetime.now(UTC)
    url, params = _split_url(source)

    response = await client.get(
        url,
        params=params or None,
        headers=source.headers or None,
        timeout=source.timeout_seconds,
    )

    duration_ms = (datetime.now(UTC) - fetch_start).total_seconds() * 1000

    if response.status_code in NON_RETRYABLE_STATUS_CODES:
        raise NonRetryableError(
            response.status_code,
            f"Non-retryable error for feed {source.name or url}",
        )

    response.raise_for_status()

    return FetchResult(
        content=response.content,
        headers=dict(response.headers),
        status_code=response.status_code,
        fetch_timestamp=fetch_start,
        duration_ms=duration_ms,
        content_length=len(response.content),
    )


async def fetch_feed(
    client: httpx.AsyncClient,
    source: FeedSource,
) -> FetchResult:
    """Fetch a realtime buffer with retry logic.

    Args:
        client: Async HTTP client to use for the request.
        source: Feed endpoint and retry settings.

    Returns:
        FetchResult containing the raw buffer and response metadata.

    Raises:
        NonRetryableError: For 4xx client errors that should not be retried.
        httpx.HTTPStatusError: For 5xx server errors (after retry exhaustion).
        httpx.TransportError: For network errors (after retry exhaustion).
    """
    retrying = create_retrying(source)

    async for attempt in retrying:
        with attempt:
            return await _do_fetch(client, source)

    # This should never be reached due to reraise=True
    raise RuntimeError("Retry loop exited without returning or raising")


async def fetch_and_decode(
    client: httpx.AsyncClient,
    source: FeedSource,
    options: DecodeOptions | None = None,
) -> tuple[FetchResult, FeedMessage]:
    """Fetch a realtime buffer and decode it.

    Raises:
        DecodeError: If the buffer is not a valid FeedMessage.
        InputLimitExceeded: If the buffer exceeds `options.max_buffer_bytes`.
        NonRetryableError, httpx.HTTPError: As for `fetch_feed`.
    """
    with feed_context(source=source.name or str(source.url)):
        result = await fetch_feed(client, source)
        logger.info(
            "fetch_success",
            duration_ms=result.duration_ms,
            content_length=result.content_length,
        )
        return result, decode_feed_message(result.content, options)


def create_http_client(max_connections: int = 10) -> httpx.AsyncClient:
    """Create an async HTTP client with connection pooling.

    Args:
        max_connections: Maximum number of concurrent connections.

    Returns:
        Configured httpx.AsyncClient instance.
    """
    limits = httpx.Limits(
        max_connections=max_connections,
        max_keepalive_connections=max_connections // 2,
    )

    return httpx.AsyncClient(
        limits=limits,
        follow_redirects=True,
    )
