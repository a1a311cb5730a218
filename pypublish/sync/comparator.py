"""File comparison logic for sync operations."""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class SyncAction(str, Enum):
    """Actions that can be taken during sync."""

    ADD = "add"
    """Upload a file that only exists locally"""

    UPDATE = "update"
    """Upload a file whose content changed"""

    REMOVE = "remove"
    """Remove a file that only exists remotely"""

    SKIP = "skip"
    """Content is identical, no action needed"""


@dataclass(frozen=True)
class SyncDecision:
    """Represents a decision about how to sync a file."""

    action: SyncAction
    """Action to take"""

    reason: str
    """Human-readable reason for this decision"""

    relative_path: str
    """Relative path of the file"""

    local_hash: Optional[str]
    """Local content hash (if the file exists locally)"""

    remote_hash: Optional[str]
    """Remote content hash (if the file exists remotely)"""


@dataclass(frozen=True)
class ChangeSet:
    """Partition of all known paths by the action they need.

    The four sets are pairwise disjoint and together hold every path of
    the local and remote manifests exactly once.
    """

    to_add: frozenset[str] = frozenset()
    to_update: frozenset[str] = frozenset()
    to_remove: frozenset[str] = frozenset()
    unchanged: frozenset[str] = frozenset()

    @classmethod
    def from_decisions(cls, decisions: Iterable[SyncDecision]) -> "ChangeSet":
        """Build a ChangeSet from comparator decisions."""
        buckets: dict[SyncAction, set[str]] = {action: set() for action in SyncAction}
        for decision in decisions:
            buckets[decision.action].add(decision.relative_path)
        return cls(
            to_add=frozenset(buckets[SyncAction.ADD]),
            to_update=frozenset(buckets[SyncAction.UPDATE]),
            to_remove=frozenset(buckets[SyncAction.REMOVE]),
            unchanged=frozenset(buckets[SyncAction.SKIP]),
        )

    @property
    def is_empty(self) -> bool:
        """True when no upload or removal is needed."""
        return not (self.to_add or self.to_update or self.to_remove)

    @property
    def total(self) -> int:
        """Number of operations needed."""
        return len(self.to_add) + len(self.to_update) + len(self.to_remove)

    def stats(self) -> dict[str, int]:
        """Planned operation counts."""
        return {
            "added": len(self.to_add),
            "updated": len(self.to_update),
            "removed": len(self.to_remove),
            "unchanged": len(self.unchanged),
        }


class FileComparator:
    """Compares local and remote manifests by content hash.

    Paths are matched by exact string equality and hashes by exact
    equality. There is no rename detection: a renamed file shows up as
    one addition and one removal.
    """

    def compare_files(
        self,
        local_files: Mapping[str, str],
        remote_files: Mapping[str, str],
    ) -> list[SyncDecision]:
        """Compare local and remote files and determine sync actions.

        Args:
            local_files: Dictionary mapping relative_path to local hash
            remote_files: Dictionary mapping relative_path to remote hash

        Returns:
            One SyncDecision per path, sorted by path
        """
        all_paths = set(local_files) | set(remote_files)

        return [
            self._compare_single_file(
                path, local_files.get(path), remote_files.get(path)
            )
            for path in sorted(all_paths)
        ]

    def _compare_single_file(
        self,
        path: str,
        local_hash: Optional[str],
        remote_hash: Optional[str],
    ) -> SyncDecision:
        """Compare a single file and determine action.

        Args:
            path: Relative path of the file
            local_hash: Local hash (if the file exists locally)
            remote_hash: Remote hash (if the file exists remotely)

        Returns:
            SyncDecision for this file
        """
        if local_hash is not None and remote_hash is None:
            action, reason = SyncAction.ADD, "New local file"
        elif local_hash is None and remote_hash is not None:
            action, reason = SyncAction.REMOVE, "File deleted locally"
        elif local_hash != remote_hash:
            action, reason = SyncAction.UPDATE, "Content changed"
        else:
            action, reason = SyncAction.SKIP, "Content unchanged"

        return SyncDecision(
            action=action,
            reason=reason,
            relative_path=path,
            local_hash=local_hash,
            remote_hash=remote_hash,
        )


def compute_changes(
    local_files: Mapping[str, str], remote_files: Mapping[str, str]
) -> ChangeSet:
    """Compute the change set that makes the remote match the local files.

    Examples:
        >>> changes = compute_changes({"a.md": "h2"}, {"a.md": "h1"})
        >>> sorted(changes.to_update)
        ['a.md']
    """
    return ChangeSet.from_decisions(
        FileComparator().compare_files(local_files, remote_files)
    )
