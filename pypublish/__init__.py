"""PyPublish - publish a local directory to an Obsidian Publish style site."""

from .api import PublishClient
from .exceptions import (
    PublishAPIError,
    PublishAuthenticationError,
    PublishConfigError,
    PublishError,
    PublishFilesystemError,
    PublishInvalidResponseError,
    PublishNetworkError,
    PublishRateLimitError,
)
from .utils import calculate_content_hash, calculate_file_hash

__version__ = "0.1.0"

__all__ = [
    "PublishClient",
    "PublishError",
    "PublishAPIError",
    "PublishAuthenticationError",
    "PublishConfigError",
    "PublishFilesystemError",
    "PublishInvalidResponseError",
    "PublishNetworkError",
    "PublishRateLimitError",
    "calculate_content_hash",
    "calculate_file_hash",
]
