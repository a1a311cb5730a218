"""Utility functions for PyPublish."""

import hashlib
from pathlib import Path
from typing import Union

# =============================================================================
# Constants
# =============================================================================

# Read size used when hashing files from disk (1 MB)
HASH_CHUNK_SIZE: int = 1024 * 1024

# Retry configuration for transient errors (disabled by default)
DEFAULT_MAX_RETRIES: int = 0
DEFAULT_RETRY_DELAY: float = 1.0  # seconds

# Request timeout for API calls
DEFAULT_TIMEOUT: float = 30.0  # seconds


# =============================================================================
# Hash calculation utilities
# =============================================================================


def calculate_content_hash(data: bytes) -> str:
    """Calculate the content fingerprint of a byte sequence.

    The fingerprint is the lowercase hex SHA-256 digest, which is the format
    the publish API reports for remote files.

    Args:
        data: Raw file content

    Returns:
        64 character hex digest

    Examples:
        >>> calculate_content_hash(b"")
        'e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855'
    """
    return hashlib.sha256(data).hexdigest()


def calculate_file_hash(file_path: Union[str, Path]) -> str:
    """Calculate the content fingerprint of a file on disk.

    Produces the same value as ``calculate_content_hash(path.read_bytes())``
    without holding the whole file in memory.

    Args:
        file_path: Path of the file to hash

    Returns:
        64 character hex digest

    Raises:
        OSError: If the file cannot be read
    """
    digest = hashlib.sha256()
    with open(file_path, "rb") as f:
        for chunk in iter(lambda: f.read(HASH_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


# =============================================================================
# Formatting utilities
# =============================================================================


def pluralize(count: int, word: str) -> str:
    """Format a count with a naively pluralized noun.

    Examples:
        >>> pluralize(1, "file")
        '1 file'
        >>> pluralize(3, "file")
        '3 files'
    """
    return f"{count} {word}{'' if count == 1 else 's'}"


def format_size(size_bytes: int) -> str:
    """Format file size in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted size string (e.g., "1.5 MB", "256 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / 1024 / 1024:.1f} MB"
    else:
        return f"{size_bytes / 1024 / 1024 / 1024:.1f} GB"
