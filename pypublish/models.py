"""Data models for publish API responses."""

from dataclasses import dataclass
from typing import Any

from .exceptions import PublishInvalidResponseError


@dataclass(frozen=True)
class RemoteFile:
    """A file currently stored on the publish site."""

    path: str
    """Path relative to the site root (forward slashes)"""

    hash: str
    """Content fingerprint reported by the site"""

    @classmethod
    def from_dict(cls, data: Any) -> "RemoteFile":
        """Create a RemoteFile from one element of the list response.

        Args:
            data: Decoded JSON object with ``path`` and ``hash`` keys

        Returns:
            RemoteFile instance

        Raises:
            PublishInvalidResponseError: If a field is missing or malformed
        """
        if not isinstance(data, dict):
            raise PublishInvalidResponseError(
                f"Expected file object in list response, got {type(data).__name__}"
            )

        path = data.get("path")
        file_hash = data.get("hash")

        if not isinstance(path, str) or not path:
            raise PublishInvalidResponseError(
                f"File object without a valid 'path' field: {data!r}"
            )
        if not isinstance(file_hash, str) or not file_hash:
            raise PublishInvalidResponseError(
                f"File object for '{path}' has an invalid 'hash' field: "
                f"{file_hash!r}"
            )

        return cls(path=path, hash=file_hash)


def parse_file_list(data: Any) -> dict[str, str]:
    """Turn a decoded list response into a path -> hash manifest.

    Args:
        data: Decoded JSON body of the list endpoint

    Returns:
        Dictionary mapping remote path to content hash

    Raises:
        PublishInvalidResponseError: If the body is not a list of well-formed
            file objects, or reports the same path twice
    """
    if not isinstance(data, list):
        raise PublishInvalidResponseError(
            f"Expected a list of files, got {type(data).__name__}"
        )

    manifest: dict[str, str] = {}
    for item in data:
        remote_file = RemoteFile.from_dict(item)
        if remote_file.path in manifest:
            raise PublishInvalidResponseError(
                f"Duplicate path in list response: {remote_file.path}"
            )
        manifest[remote_file.path] = remote_file.hash
    return manifest
