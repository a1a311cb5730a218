"""Custom exceptions for PyPublish."""

from typing import Optional


class PublishError(Exception):
    """Base exception for all PyPublish errors."""


class PublishConfigError(PublishError):
    """Raised when credentials or configuration are missing or invalid."""


class PublishFilesystemError(PublishError):
    """Raised when a local file or directory cannot be read."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class PublishAPIError(PublishError):
    """Raised when a request to the publish API fails."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class PublishAuthenticationError(PublishAPIError):
    """Raised when the site id or token is rejected."""


class PublishNetworkError(PublishAPIError):
    """Raised on connectivity failures and timeouts."""


class PublishRateLimitError(PublishNetworkError):
    """Raised when the API rate limit is exceeded."""


class PublishInvalidResponseError(PublishAPIError):
    """Raised when the API returns a response that cannot be parsed."""
