"""Core sync engine for publishing a local tree to the site."""

import logging
import threading
import time
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional, Union

from ..api import PublishClient
from ..exceptions import PublishError, PublishFilesystemError
from ..output import OutputFormatter
from ..utils import pluralize
from .comparator import ChangeSet, FileComparator, SyncAction, SyncDecision
from .operations import SyncOperations
from .scanner import DirectoryScanner, SymlinkPolicy

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    """Outcome of a publish run."""

    added: list[str] = field(default_factory=list)
    """Paths uploaded as new files"""

    updated: list[str] = field(default_factory=list)
    """Paths re-uploaded with changed content"""

    removed: list[str] = field(default_factory=list)
    """Paths removed from the site"""

    unchanged: int = 0
    """Number of files already up to date"""

    ignored: int = 0
    """Number of local files left out by the exclusion rules"""

    dry_run: bool = False
    """True when nothing was applied (added/updated/removed are the plan)"""

    error: Optional[PublishError] = None
    """Error that ended the run, if any"""

    failed_path: Optional[str] = None
    """Path being processed when the run failed"""

    @property
    def success(self) -> bool:
        """True when the run finished without error."""
        return self.error is None

    @property
    def stats(self) -> dict[str, int]:
        """Operation counts."""
        return {
            "added": len(self.added),
            "updated": len(self.updated),
            "removed": len(self.removed),
            "unchanged": self.unchanged,
            "ignored": self.ignored,
        }

    def to_dict(self) -> dict[str, Any]:
        """Convert the result to a dictionary for JSON output."""
        return {
            "success": self.success,
            "dry_run": self.dry_run,
            "added": sorted(self.added),
            "updated": sorted(self.updated),
            "removed": sorted(self.removed),
            "stats": self.stats,
            "error": str(self.error) if self.error else None,
            "failed_path": self.failed_path,
        }


class SyncEngine:
    """Publishes a local directory tree to the site.

    A run scans the local tree, fetches the remote manifest, compares the
    two by content hash and then applies the changes in three phases:
    additions, updates and removals. The first error ends the run; work
    already applied is not rolled back.
    """

    def __init__(
        self,
        client: PublishClient,
        output: Optional[OutputFormatter] = None,
        exclude: Optional[Callable[[str], bool]] = None,
        symlink_policy: Union[SymlinkPolicy, str] = SymlinkPolicy.FOLLOW,
    ):
        """Initialize sync engine.

        Args:
            client: Publish API client
            output: Output formatter for displaying progress/status
            exclude: Predicate over relative paths to leave out
                (default: ExclusionFilter())
            symlink_policy: How the scanner treats symlinks
        """
        self.client = client
        self.output = output or OutputFormatter()
        self.operations = SyncOperations(client)
        self.scanner = DirectoryScanner(exclude=exclude, symlink_policy=symlink_policy)
        self.comparator = FileComparator()

    def publish(
        self,
        local_path: Union[str, Path] = ".",
        dry_run: bool = False,
        max_workers: int = 1,
    ) -> SyncResult:
        """Make the site hold exactly the files of a local directory.

        Args:
            local_path: Root of the local tree (default: current directory)
            dry_run: If True, only show what would be done
            max_workers: Number of parallel operations per phase (default: 1)

        Returns:
            SyncResult with the applied operations or the terminal error

        Examples:
            >>> engine = SyncEngine(client)
            >>> result = engine.publish(".", dry_run=True)
            >>> print(f"Would add {len(result.added)} files")
        """
        start_time = time.time()
        result = SyncResult(dry_run=dry_run)

        try:
            local_files = self._scan_local(local_path, result)
            remote_files = self._scan_remote()
        except PublishError as e:
            result.error = e
            if isinstance(e, PublishFilesystemError):
                result.failed_path = e.path
            self._display_failure(result)
            return result

        decisions = self.comparator.compare_files(local_files, remote_files)
        changes = ChangeSet.from_decisions(decisions)
        result.unchanged = len(changes.unchanged)
        self._display_sync_plan(changes, decisions, dry_run)

        if dry_run:
            result.added = sorted(changes.to_add)
            result.updated = sorted(changes.to_update)
            result.removed = sorted(changes.to_remove)
            self._display_summary(result)
            return result

        try:
            self.apply_changes(
                local_path,
                changes,
                local_files,
                remote_files,
                max_workers=max_workers,
                result=result,
            )
        except KeyboardInterrupt:
            self.output.warning("Publish cancelled by user")
            raise

        logger.debug("Publish run took %.2fs", time.time() - start_time)
        if result.success:
            self._display_summary(result)
        else:
            self._display_failure(result)
        return result

    def _scan_local(
        self, local_path: Union[str, Path], result: SyncResult
    ) -> dict[str, str]:
        """Build the local manifest.

        Args:
            local_path: Root of the local tree
            result: Result to record the ignored count on

        Returns:
            Dictionary mapping relative path to content hash
        """
        with self.output.group("Getting local files"):
            scan_start = time.time()
            local_files = self.scanner.build_manifest(local_path)
            for path in self.scanner.ignored:
                self.output.info(f"Ignoring {path}")
            result.ignored = len(self.scanner.ignored)
            self.output.info(f"Got {pluralize(len(local_files), 'file')}")
            logger.debug("Local scan took %.2fs", time.time() - scan_start)
        return local_files

    def _scan_remote(self) -> dict[str, str]:
        """Fetch the remote manifest."""
        with self.output.group("Getting remote files"):
            remote_files = self.client.list_files()
            self.output.info(f"Got {pluralize(len(remote_files), 'file')}")
        return remote_files

    def apply_changes(
        self,
        local_path: Union[str, Path],
        changes: ChangeSet,
        local_files: Mapping[str, str],
        remote_files: Mapping[str, str],
        max_workers: int = 1,
        result: Optional[SyncResult] = None,
    ) -> SyncResult:
        """Apply a change set: additions, then updates, then removals.

        Each phase only starts once the previous one has finished. The
        first failing operation ends the run and no later operation or
        phase is started.

        Args:
            local_path: Root of the local tree
            changes: Change set to apply
            local_files: Local manifest the change set was computed from
            remote_files: Remote manifest the change set was computed from
            max_workers: Number of parallel operations per phase (default: 1)
            result: Result to fill in (a new one is created if omitted)

        Returns:
            SyncResult with the applied paths, or the error and failed path
        """
        if result is None:
            result = SyncResult()

        def add_file(path: str) -> None:
            self.output.info(f"Adding {path} ({local_files.get(path)})")
            self._upload(local_path, path, local_files.get(path))

        def update_file(path: str) -> None:
            old_hash = remote_files.get(path)
            new_hash = local_files.get(path)
            self.output.info(f"Updating {path} ({old_hash} -> {new_hash})")
            self._upload(local_path, path, local_files.get(path))

        def remove_file(path: str) -> None:
            self.output.info(f"Removing {path} ({remote_files.get(path)})")
            self.operations.delete_remote(path)

        phases = [
            ("Adding new files", "Adding", changes.to_add, add_file, result.added),
            (
                "Updating existing files",
                "Updating",
                changes.to_update,
                update_file,
                result.updated,
            ),
            (
                "Removing old files",
                "Removing",
                changes.to_remove,
                remove_file,
                result.removed,
            ),
        ]

        for title, verb, paths, handler, applied in phases:
            with self.output.group(title):
                self.output.info(f"{verb} {pluralize(len(paths), 'file')}")
                failure = self._run_phase(sorted(paths), handler, applied, max_workers)
            if failure is not None:
                result.failed_path, result.error = failure
                logger.debug("Run aborted in phase '%s' at %s", title, failure[0])
                break

        return result

    def _upload(
        self, local_path: Union[str, Path], path: str, scanned_hash: Optional[str]
    ) -> None:
        """Upload one file and note when it changed since the scan."""
        action_start = time.time()
        uploaded_hash = self.operations.upload_file(local_path, path)
        if scanned_hash is not None and uploaded_hash != scanned_hash:
            logger.debug("%s changed since scan, uploaded %s", path, uploaded_hash)
        logger.debug("Upload of %s took %.2fs", path, time.time() - action_start)

    def _run_phase(
        self,
        paths: list[str],
        handler: Callable[[str], None],
        applied: list[str],
        max_workers: int,
    ) -> Optional[tuple[str, PublishError]]:
        """Run one phase, stopping at the first error.

        Args:
            paths: Paths to process
            handler: Operation to run for each path
            applied: List that successfully processed paths are appended to
            max_workers: Number of parallel operations

        Returns:
            (path, error) of the first failure, or None
        """
        if max_workers > 1 and len(paths) > 1:
            return self._run_phase_parallel(paths, handler, applied, max_workers)

        for path in paths:
            try:
                handler(path)
            except PublishError as e:
                return path, e
            applied.append(path)
        return None

    def _run_phase_parallel(
        self,
        paths: list[str],
        handler: Callable[[str], None],
        applied: list[str],
        max_workers: int,
    ) -> Optional[tuple[str, PublishError]]:
        """Run one phase with a bounded pool of workers.

        After the first failure no further operation is started; operations
        already in flight are allowed to finish. The pool is drained before
        returning, so the next phase never overlaps this one.
        """
        cancelled = threading.Event()
        lock = threading.Lock()
        failures: list[tuple[str, PublishError]] = []

        def run(path: str) -> None:
            if cancelled.is_set():
                return
            try:
                handler(path)
            except PublishError as e:
                cancelled.set()
                with lock:
                    failures.append((path, e))
                return
            with lock:
                applied.append(path)

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = [executor.submit(run, path) for path in paths]
            for future in as_completed(futures):
                # Re-raise anything that is not a PublishError
                future.result()

        return failures[0] if failures else None

    def _display_sync_plan(
        self,
        changes: ChangeSet,
        decisions: list[SyncDecision],
        dry_run: bool,
    ) -> None:
        """Display sync plan to user."""
        if self.output.quiet:
            return

        self.output.print("")
        self.output.info("Publish plan:")
        self.output.info(f"  + Add: {pluralize(len(changes.to_add), 'file')}")
        self.output.info(f"  ~ Update: {pluralize(len(changes.to_update), 'file')}")
        self.output.info(f"  - Remove: {pluralize(len(changes.to_remove), 'file')}")
        self.output.info(f"  = Unchanged: {pluralize(len(changes.unchanged), 'file')}")

        if dry_run:
            for decision in decisions:
                if decision.action != SyncAction.SKIP:
                    self.output.info(
                        f"  {decision.action.value}: {decision.relative_path} "
                        f"({decision.reason})"
                    )
        self.output.print("")

    def _display_summary(self, result: SyncResult) -> None:
        """Display publish summary."""
        self.output.print("")
        if result.dry_run:
            self.output.success("Dry run complete!")
        else:
            self.output.success("Publish complete!")

        if result.added or result.updated or result.removed:
            self.output.info(f"  Added: {len(result.added)}")
            self.output.info(f"  Updated: {len(result.updated)}")
            self.output.info(f"  Removed: {len(result.removed)}")
        else:
            self.output.info("No changes needed - site is up to date!")

    def _display_failure(self, result: SyncResult) -> None:
        """Report how far the run got before it failed."""
        if result.failed_path:
            self.output.error(
                f"Publish failed at {result.failed_path}: {result.error}"
            )
        else:
            self.output.error(f"Publish failed: {result.error}")
        self.output.info(
            f"Applied before failure: {len(result.added)} added, "
            f"{len(result.updated)} updated, {len(result.removed)} removed"
        )
