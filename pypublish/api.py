"""API client for the publish site."""

from __future__ import annotations

import logging
import random
import time
from typing import Any

import httpx

from .config import config
from .exceptions import (
    PublishAPIError,
    PublishAuthenticationError,
    PublishConfigError,
    PublishInvalidResponseError,
    PublishNetworkError,
    PublishRateLimitError,
)
from .models import parse_file_list
from .utils import DEFAULT_MAX_RETRIES, DEFAULT_RETRY_DELAY, DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)


class PublishClient:
    """Client for the list/upload/remove endpoints of a publish site."""

    def __init__(
        self,
        site_id: str | None = None,
        token: str | None = None,
        api_url: str | None = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """Initialize publish API client.

        Args:
            site_id: Site identifier (uses config if not provided)
            token: Access token (uses config if not provided)
            api_url: Optional API URL (uses config if not provided)
            max_retries: Retry attempts for transient failures (default: 0)
            retry_delay: Initial delay between retries in seconds (default: 1.0)
            timeout: Request timeout in seconds (default: 30.0)
        """
        self.site_id = site_id or config.site_id
        self.token = token or config.token
        self.api_url = (api_url or config.api_url).rstrip("/")
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.timeout = timeout

        if not self.site_id:
            raise PublishConfigError(
                "Site not configured. Please set PUBLISH_SITE or pass --site."
            )
        if not self.token:
            raise PublishConfigError(
                "Token not configured. Please set PUBLISH_TOKEN or pass --token."
            )

        self._client: httpx.Client | None = None

    def __repr__(self) -> str:
        return f"PublishClient(site_id={self.site_id!r}, api_url={self.api_url!r})"

    def __enter__(self) -> PublishClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _get_client(self) -> httpx.Client:
        """Get or create the httpx client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
            )
        return self._client

    def close(self) -> None:
        """Close the client and release connections."""
        if self._client is not None and not self._client.is_closed:
            self._client.close()
            self._client = None

    def _should_retry(self, exception: Exception, attempt: int) -> bool:
        """Determine if a request should be retried.

        Only transient failures are retried: network errors, rate limits
        and 5xx responses.

        Args:
            exception: The exception that occurred
            attempt: Current attempt number (0-based)

        Returns:
            True if the request should be retried, False otherwise
        """
        if attempt >= self.max_retries:
            return False

        # Covers PublishRateLimitError as well
        if isinstance(exception, PublishNetworkError):
            return True

        if isinstance(exception, PublishAPIError) and exception.status_code:
            return 500 <= exception.status_code < 600

        return False

    def _calculate_retry_delay(self, attempt: int) -> float:
        """Calculate delay before next retry using exponential backoff.

        Args:
            attempt: Current attempt number (0-based)

        Returns:
            Delay in seconds
        """
        base_delay = self.retry_delay * (2**attempt)
        # Add jitter: +/- 25% of base delay
        jitter = base_delay * 0.25 * (2 * random.random() - 1)
        return base_delay + jitter

    def _handle_http_error(self, e: httpx.HTTPStatusError) -> PublishAPIError:
        """Translate an HTTP error response into a PyPublish exception.

        Args:
            e: The HTTP error exception

        Returns:
            Exception to raise (or retry on)
        """
        status_code = e.response.status_code

        if status_code in (401, 403):
            return PublishAuthenticationError(
                "Site id or token rejected by the server", status_code=status_code
            )
        if status_code == 429:
            return PublishRateLimitError(
                "Rate limit exceeded - please try again later",
                status_code=status_code,
            )

        error_msg = f"API request failed with status {status_code}"

        # Try to extract more details from response body
        try:
            if e.response.content:
                error_data = e.response.json()
                if isinstance(error_data, dict):
                    msg = (
                        error_data.get("message")
                        or error_data.get("error")
                        or error_data.get("detail")
                    )
                    if msg:
                        error_msg = f"{error_msg}: {msg}"
        except ValueError:
            # Body is not JSON, keep the status based message
            pass

        return PublishAPIError(error_msg, status_code=status_code)

    def _request(
        self,
        endpoint: str,
        allowed_statuses: tuple[int, ...] = (),
        **kwargs: Any,
    ) -> Any:
        """Make a POST request to the API with optional retry logic.

        Args:
            endpoint: API endpoint path
            allowed_statuses: Error statuses that count as success
            **kwargs: Additional arguments passed to httpx

        Returns:
            Decoded JSON body, or an empty dict for an empty body

        Raises:
            PublishAPIError: If the request fails after all retries
        """
        url = f"{self.api_url}/{endpoint.lstrip('/')}"
        client = self._get_client()

        for attempt in range(self.max_retries + 1):
            try:
                response = client.request("POST", url, **kwargs)
                if response.status_code in allowed_statuses:
                    logger.debug("%s answered %d", endpoint, response.status_code)
                    return {}
                response.raise_for_status()
                return self._decode(response)
            except httpx.HTTPStatusError as e:
                error: PublishAPIError = self._handle_http_error(e)
                cause: Exception = e
            except httpx.RequestError as e:
                error = PublishNetworkError(f"Network error: {e}")
                cause = e

            if not self._should_retry(error, attempt):
                raise error from cause

            delay = self._calculate_retry_delay(attempt)
            logger.debug(
                "Retrying %s in %.2fs (attempt %d/%d): %s",
                endpoint,
                delay,
                attempt + 1,
                self.max_retries,
                error,
            )
            time.sleep(delay)

        raise PublishAPIError("Request failed after all retry attempts")

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        """Decode a successful response body."""
        if not response.content:
            return {}

        content_type = response.headers.get("Content-Type", "")
        if "text/html" in content_type:
            # The site answers with an HTML page when credentials are wrong
            raise PublishAuthenticationError(
                "Invalid site or token - server returned HTML instead of JSON"
            )

        try:
            return response.json()
        except ValueError as e:
            raise PublishInvalidResponseError(
                "Invalid JSON response from server"
            ) from e

    # =========================
    # Manifest Operations
    # =========================

    def list_files(self) -> dict[str, str]:
        """Fetch the remote manifest.

        Returns:
            Dictionary mapping every remote path to its content hash

        Raises:
            PublishAuthenticationError: If the credentials are rejected
            PublishNetworkError: On connectivity failures
            PublishInvalidResponseError: If the response is not a well-formed
                list of files
        """
        start = time.time()
        data = self._request("/list", json={"id": self.site_id, "token": self.token})
        manifest = parse_file_list(data)
        logger.debug(
            "Listed %d remote files in %.2fs", len(manifest), time.time() - start
        )
        return manifest

    def upload_file(self, path: str, data: bytes, file_hash: str) -> Any:
        """Upload file content to a path on the site.

        Uploading the same bytes to the same path again leaves the site
        unchanged.

        Args:
            path: Target path relative to the site root
            data: Raw file content
            file_hash: Content hash of ``data``

        Returns:
            Decoded response body
        """
        headers = {
            "Content-Type": "application/octet-stream",
            "obs-hash": file_hash,
            "obs-id": self.site_id,
            "obs-path": path,
            "obs-token": self.token,
        }
        logger.debug("Uploading %s (%d bytes)", path, len(data))
        return self._request("/upload", headers=headers, content=data)

    def remove_file(self, path: str) -> Any:
        """Remove a path from the site.

        A path that is already absent is not an error.

        Args:
            path: Path relative to the site root

        Returns:
            Decoded response body
        """
        logger.debug("Removing %s", path)
        return self._request(
            "/remove",
            allowed_statuses=(404,),
            json={"id": self.site_id, "path": path, "token": self.token},
        )
