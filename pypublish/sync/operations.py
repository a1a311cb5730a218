"""Sync operations wrapper around the publish client."""

from pathlib import Path
from typing import Any, Union

from ..api import PublishClient
from ..exceptions import PublishFilesystemError
from ..utils import calculate_content_hash


class SyncOperations:
    """Per-file upload and removal used by the sync engine."""

    def __init__(self, client: PublishClient):
        """Initialize sync operations.

        Args:
            client: Publish API client
        """
        self.client = client

    def upload_file(self, base_path: Union[str, Path], relative_path: str) -> str:
        """Upload a local file to the same relative path on the site.

        The file is read and hashed again at upload time, so the hash sent
        with the content always matches the bytes being uploaded even if
        the file changed since the scan.

        Args:
            base_path: Root of the local tree
            relative_path: Path relative to the root (forward slashes)

        Returns:
            Hash of the uploaded content

        Raises:
            PublishFilesystemError: If the file cannot be read
        """
        file_path = Path(base_path) / relative_path
        try:
            data = file_path.read_bytes()
        except OSError as e:
            reason = e.strerror or str(e)
            raise PublishFilesystemError(
                f"Cannot read file {file_path}: {reason}", path=relative_path
            ) from e

        file_hash = calculate_content_hash(data)
        self.client.upload_file(relative_path, data, file_hash)
        return file_hash

    def delete_remote(self, relative_path: str) -> Any:
        """Remove a file from the site.

        Args:
            relative_path: Path relative to the site root

        Returns:
            Remove response from API
        """
        return self.client.remove_file(relative_path)
