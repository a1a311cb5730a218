"""Directory scanning utilities for sync operations."""

import logging
import os
import stat
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Union

from ..exceptions import PublishFilesystemError
from ..utils import calculate_file_hash, format_size, pluralize
from .ignore import ExclusionFilter

logger = logging.getLogger(__name__)


class SymlinkPolicy(str, Enum):
    """How the scanner treats symbolic links."""

    FOLLOW = "follow"
    """Hash file targets, descend into directories outside the tree"""

    SKIP = "skip"
    """Leave symlinks out of the manifest"""

    ERROR = "error"
    """Abort the scan when a symlink is found"""


@dataclass(frozen=True)
class LocalFile:
    """Represents a local file with its content hash."""

    path: Path
    """Path to the file on disk"""

    relative_path: str
    """Relative path (using forward slashes for cross-platform compatibility)"""

    hash: str
    """Content hash at scan time"""

    size: int
    """File size in bytes"""

    @classmethod
    def from_path(cls, file_path: Path, base_path: Path) -> "LocalFile":
        """Create LocalFile from a path, hashing its content.

        Args:
            file_path: Path to the file
            base_path: Base path for calculating relative paths

        Returns:
            LocalFile instance

        Raises:
            OSError: If the file cannot be read
        """
        # Use as_posix() to ensure forward slashes on all platforms
        relative_path = file_path.relative_to(base_path).as_posix()
        size = file_path.stat().st_size
        return cls(
            path=file_path,
            relative_path=relative_path,
            hash=calculate_file_hash(file_path),
            size=size,
        )


def _fs_error(action: str, path: Path, error: OSError) -> PublishFilesystemError:
    reason = error.strerror or str(error)
    return PublishFilesystemError(f"Cannot {action} {path}: {reason}", path=str(path))


def _is_directory(item: Path, st: os.stat_result) -> bool:
    if stat.S_ISLNK(st.st_mode):
        return item.is_dir()
    return stat.S_ISDIR(st.st_mode)


class DirectoryScanner:
    """Scans a directory tree and builds the local manifest.

    The walk uses an explicit stack, so nesting depth is not limited by
    the recursion limit. Every discovered file is tested against the
    exclusion predicate; excluded files are reported and dropped without
    being read. Any entry that cannot be read aborts the scan.

    Examples:
        >>> scanner = DirectoryScanner()
        >>> manifest = scanner.build_manifest(Path("."))
        >>> # Files under .git, .obsidian and node_modules are left out
    """

    def __init__(
        self,
        exclude: Optional[Callable[[str], bool]] = None,
        symlink_policy: Union[SymlinkPolicy, str] = SymlinkPolicy.FOLLOW,
    ):
        """Initialize directory scanner.

        Args:
            exclude: Predicate over relative paths (default: ExclusionFilter())
            symlink_policy: How to treat symbolic links (default: follow)
        """
        self.exclude = exclude if exclude is not None else ExclusionFilter()
        self.symlink_policy = SymlinkPolicy(symlink_policy)
        self.ignored: list[str] = []

    def _entry_kind(
        self,
        item: Path,
        st: os.stat_result,
        ancestors: frozenset[Path],
        root_real: Path,
    ) -> Optional[str]:
        """Classify a directory entry as "dir", "file" or None (drop it).

        Real directories are always descended. A directory symlink is
        only followed when its target lies outside the scanned tree and
        is not one of the directories already on the current walk chain.

        Args:
            item: Entry to classify
            st: Result of ``item.lstat()``
            ancestors: Resolved directories between the root and ``item``
            root_real: Resolved scan root

        Returns:
            "dir", "file" or None
        """
        if stat.S_ISLNK(st.st_mode):
            if self.symlink_policy == SymlinkPolicy.SKIP:
                logger.info("Skipping symlink %s", item)
                return None
            if self.symlink_policy == SymlinkPolicy.ERROR:
                raise PublishFilesystemError(
                    f"Symlinks are not allowed: {item}", path=str(item)
                )
            try:
                st = item.stat()
            except OSError as e:
                raise _fs_error("follow symlink", item, e) from e

            if stat.S_ISDIR(st.st_mode):
                real = item.resolve()
                if real in ancestors:
                    logger.warning(
                        "Skipping %s: symlink loops back to %s", item, real
                    )
                    return None
                if real == root_real or root_real in real.parents:
                    logger.warning(
                        "Skipping %s: %s is already part of the scanned tree",
                        item,
                        real,
                    )
                    return None
                return "dir"

        if stat.S_ISDIR(st.st_mode):
            return "dir"

        if stat.S_ISREG(st.st_mode):
            return "file"

        logger.warning("Skipping special file %s", item)
        return None

    def scan_local(self, directory: Union[str, Path]) -> list[LocalFile]:
        """Scan a local directory tree.

        Args:
            directory: Root of the tree

        Returns:
            List of LocalFile objects sorted by relative path

        Raises:
            PublishFilesystemError: If the root or any entry below it
                cannot be read
        """
        base_path = Path(directory)
        if not base_path.is_dir():
            raise PublishFilesystemError(
                f"Not a directory: {base_path}", path=str(base_path)
            )

        self.ignored = []
        files: list[LocalFile] = []
        root_real = base_path.resolve()
        stack = [(base_path, frozenset({root_real}))]

        while stack:
            current, ancestors = stack.pop()
            try:
                entries = sorted(current.iterdir())
            except OSError as e:
                raise _fs_error("read directory", current, e) from e

            for item in entries:
                relative_path = item.relative_to(base_path).as_posix()
                try:
                    st = item.lstat()
                except OSError as e:
                    raise _fs_error("stat", item, e) from e

                # Excluded files are dropped before any symlink policy applies
                if self.exclude(relative_path) and not _is_directory(item, st):
                    logger.debug("Ignoring %s", relative_path)
                    self.ignored.append(relative_path)
                    continue

                kind = self._entry_kind(item, st, ancestors, root_real)
                if kind == "dir":
                    stack.append((item, ancestors | {item.resolve()}))
                    continue
                if kind is None:
                    continue

                try:
                    files.append(LocalFile.from_path(item, base_path))
                except OSError as e:
                    raise _fs_error("read file", item, e) from e

        files.sort(key=lambda f: f.relative_path)
        logger.debug(
            "Scanned %s (%s), ignored %d",
            pluralize(len(files), "file"),
            format_size(sum(f.size for f in files)),
            len(self.ignored),
        )
        return files

    def build_manifest(self, directory: Union[str, Path]) -> dict[str, str]:
        """Scan a directory tree into a path -> hash manifest.

        Args:
            directory: Root of the tree

        Returns:
            Dictionary mapping relative path to content hash
        """
        return {f.relative_path: f.hash for f in self.scan_local(directory)}
