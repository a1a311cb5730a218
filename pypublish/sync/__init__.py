"""Sync engine for PyPublish - local tree to publish site reconciliation."""

from .comparator import (
    ChangeSet,
    FileComparator,
    SyncAction,
    SyncDecision,
    compute_changes,
)
from .engine import SyncEngine, SyncResult
from .ignore import DEFAULT_EXCLUDE_PATTERNS, ExclusionFilter
from .operations import SyncOperations
from .scanner import DirectoryScanner, LocalFile, SymlinkPolicy

__all__ = [
    "SyncEngine",
    "SyncResult",
    "SyncOperations",
    "DirectoryScanner",
    "LocalFile",
    "SymlinkPolicy",
    "FileComparator",
    "SyncAction",
    "SyncDecision",
    "ChangeSet",
    "compute_changes",
    "ExclusionFilter",
    "DEFAULT_EXCLUDE_PATTERNS",
]
